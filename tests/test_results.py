"""Tests for end-of-run aggregation."""

import numpy as np
import pytest

from quakeframe.dynamics.damage import DamageAccumulator
from quakeframe.dynamics.excitation import ExcitationModel, SeismicExcitation
from quakeframe.dynamics.results import (
    ResultAggregator,
    SimulationResult,
    assess_performance,
    base_shear,
    damage_percentage,
    story_drifts,
)
from quakeframe.exceptions import Divergence
from quakeframe.structural.building import BuildingModel
from quakeframe.structural.model import StructuralModel


class TestStoryDrifts:
    """Inter-story drift reduction."""

    def test_top_story_first(self):
        """Maxima 1, 3, 4 cm bottom-up → drifts 10, 20, 10 mm → reversed."""
        drifts = story_drifts([0.01, 0.03, 0.04])
        assert drifts == pytest.approx([10.0, 20.0, 10.0])

    def test_ground_drift_included(self):
        drifts = story_drifts([0.02, 0.025])
        assert drifts[-1] == pytest.approx(20.0)
        assert drifts[0] == pytest.approx(5.0)

    def test_length_matches_stories(self):
        assert len(story_drifts(np.linspace(0.01, 0.05, 7))) == 7

    def test_non_negative_for_decreasing_profile(self):
        drifts = story_drifts([0.05, 0.02, 0.01])
        assert np.all(drifts >= 0)

    def test_empty(self):
        assert story_drifts([]).size == 0


class TestBaseShear:
    """Closed-form V = W·Sa·I/R."""

    def test_reference_case(self):
        assert base_shear(1000.0, 0.75, 1.0, 4.5) == pytest.approx(166.6667, rel=1e-5)

    def test_aggregator_uses_building_weight(self, steel):
        model = StructuralModel(BuildingModel(building_weight=1000.0), steel)
        exc = ExcitationModel(SeismicExcitation(), model.natural_frequency)
        aggregator = ResultAggregator(model, exc)
        assert aggregator.base_shear() == pytest.approx(1000 * 0.75 / 4.5)

    def test_independent_of_response(self, steel):
        model = StructuralModel(BuildingModel(building_weight=1000.0), steel)
        exc = ExcitationModel(SeismicExcitation(), model.natural_frequency)
        aggregator = ResultAggregator(model, exc)
        small = aggregator.aggregate(np.full(4, 0.001), 0.0)
        large = aggregator.aggregate(np.full(4, 0.1), 50.0)
        assert small.base_shear == large.base_shear


class TestDamagePercentage:
    def test_mean_times_hundred(self):
        assert damage_percentage([0.0, 0.5, 1.0]) == pytest.approx(50.0)

    def test_no_elements(self):
        assert damage_percentage([]) == 0.0


class TestAggregate:
    """Full result assembly."""

    @pytest.fixture
    def aggregator(self, model):
        exc = ExcitationModel(SeismicExcitation(), model.natural_frequency)
        return ResultAggregator(model, exc)

    def test_units(self, aggregator, model):
        u = np.array([0.005, 0.01, 0.015, 0.02])
        result = aggregator.aggregate(u, 12.5)
        assert result.max_displacement == pytest.approx(2.0)  # cm
        assert result.story_drifts == pytest.approx((5.0, 5.0, 5.0, 5.0))
        assert result.period_of_vibration == pytest.approx(model.modal.period)
        assert result.damage_percentage == pytest.approx(12.5)
        assert result.story_displacements[0] == pytest.approx(2.0)

    def test_peak_story_forces(self, aggregator, model):
        u = np.array([0.01, 0.02, 0.03, 0.04])
        result = aggregator.aggregate(u, 0.0)
        k = model.stiffness
        assert result.peak_story_forces[-1] == pytest.approx(k * 1.0 * 0.01 / 1000)
        assert result.peak_story_forces[0] == pytest.approx(k * (1 - 0.5 * 3 / 4) * 0.04 / 1000)

    def test_damage_states_from_drift_ratio(self, aggregator):
        """3 m stories: 60 mm drift = 2% → LS."""
        result = aggregator.aggregate(np.array([0.06, 0.06, 0.06, 0.06]), 0.0)
        assert result.damage_states == ("None", "None", "None", "LS")

    def test_non_finite_raises(self, aggregator):
        with pytest.raises(Divergence):
            aggregator.aggregate(np.array([0.01, np.nan, 0.02, 0.03]), 0.0)

    def test_critical_elements(self, aggregator, model, steel):
        damage = DamageAccumulator(model.elements, steel, model.n_stories)
        damage.accumulate("column_0_0_0", 1.0, 1.0)
        result = aggregator.aggregate(np.full(4, 0.01), 0.1, damage)
        assert result.critical_elements[0]["id"] == "column_0_0_0"

    def test_result_immutable(self, aggregator):
        result = aggregator.aggregate(np.full(4, 0.01), 0.0)
        with pytest.raises(AttributeError):
            result.base_shear = 0.0

    def test_to_dict(self, aggregator):
        data = aggregator.aggregate(np.full(4, 0.01), 0.0).to_dict()
        assert isinstance(data["story_drifts"], list)
        assert set(data) >= {"max_displacement", "base_shear", "damage_percentage"}


class TestAssessPerformance:
    """Advisory rules."""

    def _result(self, **overrides):
        values = dict(
            max_displacement=0.5,
            base_shear=100.0,
            story_drifts=(1.0, 1.0),
            period_of_vibration=0.5,
            damage_percentage=1.0,
        )
        values.update(overrides)
        return SimulationResult(**values)

    def test_quiet_result(self):
        assert assess_performance(self._result(), 2.0) == []

    def test_high_displacement(self):
        notes = assess_performance(self._result(max_displacement=3.0), 2.0)
        assert any("displacement" in n for n in notes)

    def test_low_frequency(self):
        notes = assess_performance(self._result(), 0.3)
        assert any("frequency" in n for n in notes)

    def test_excessive_drift_count(self):
        notes = assess_performance(self._result(story_drifts=(12.0, 15.0)), 2.0)
        assert any("2 stories" in n for n in notes)

    def test_damage_bands(self):
        assert any("significant" in n for n in assess_performance(self._result(damage_percentage=20), 2.0))
        assert any("minor" in n for n in assess_performance(self._result(damage_percentage=8), 2.0))
