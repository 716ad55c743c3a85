"""Tests for cumulative element damage and drift damage states."""

import numpy as np
import pytest

from quakeframe.dynamics.damage import (
    DamageAccumulator,
    classify_drift_ratio,
    damage_time_factor,
    exceedance_probabilities,
    fragility_lognormal,
)
from quakeframe.exceptions import Divergence
from quakeframe.structural.building import MaterialProperties
from quakeframe.structural.model import ElementKind


@pytest.fixture
def accumulator(model, steel):
    return DamageAccumulator(model.elements, steel, model.n_stories)


class TestStress:
    """Normalised stress estimate."""

    def test_formula(self, accumulator):
        """u=0.01, m_s=1, story 2 of 4, steel 0.8, R=3 → 0.01·1.5·0.8·3/0.05."""
        stress = accumulator.stress(0.01, 1.0, 2, 3.0)
        assert float(stress) == pytest.approx(0.01 * 1.5 * 0.8 * 3.0 / 0.05)

    def test_clamped_to_one(self, accumulator):
        assert float(accumulator.stress(10.0, 1.0, 0, 3.0)) == 1.0

    def test_concrete_more_brittle(self, accumulator):
        steel = float(accumulator.stress(0.001, 1.0, 0, 1.0))
        concrete = float(accumulator.stress(0.001, 1.0, 0, 1.0, MaterialProperties.concrete()))
        assert concrete == pytest.approx(steel * 1.2 / 0.8)


class TestDamageTimeFactor:
    """progress² integrated over the update interval, in 1/60 s frames."""

    def test_single_frame_at_full_progress(self):
        assert damage_time_factor(10.0 - 1 / 60, 10.0, 10.0) == pytest.approx(1.0, rel=1e-2)

    def test_whole_run(self):
        """60 · T/3 frames for one update spanning [0, T]."""
        assert damage_time_factor(0.0, 3.0, 3.0) == pytest.approx(60.0)

    def test_additive_over_intervals(self):
        split = damage_time_factor(0.0, 1.2, 3.0) + damage_time_factor(1.2, 3.0, 3.0)
        assert split == pytest.approx(damage_time_factor(0.0, 3.0, 3.0))

    def test_per_element_previous_times(self):
        tau = damage_time_factor(np.array([0.0, 1.0, 2.0]), 2.0, 2.0)
        assert tau[0] > tau[1] > tau[2] == 0.0


class TestAccumulate:
    """Growth laws, clamping and monotonicity."""

    def test_column_law(self, accumulator, model):
        """d = 0 + s²·0.002·(1+0)·τ·m_s for a base corner column (m_s = 1.5)."""
        new = accumulator.accumulate("column_0_0_0", 0.5, 1.0)
        assert new == pytest.approx(0.25 * 0.002 * 1.0 * 1.5)

    def test_slab_law(self, accumulator):
        new = accumulator.accumulate("slab_0_0_0", 0.5, 1.0, ElementKind.SLAB)
        assert new == pytest.approx(0.5 * 0.001)

    def test_softening_accelerates_growth(self, accumulator):
        first = accumulator.accumulate("beam_x_0_0_0", 1.0, 1.0)
        second = accumulator.accumulate("beam_x_0_0_0", 1.0, 1.0) - first
        assert second > first

    def test_other_material_rescales_stress(self, accumulator):
        """Concrete against a steel map: stress × 1.2/0.8 before the column law."""
        new = accumulator.accumulate("column_0_0_0", 0.4, 1.0, material=MaterialProperties.concrete())
        assert new == pytest.approx(0.6**2 * 0.002 * 1.5)

    def test_own_material_leaves_stress(self, accumulator, steel):
        new = accumulator.accumulate("column_0_0_0", 0.4, 1.0, material=steel)
        assert new == pytest.approx(0.4**2 * 0.002 * 1.5)

    def test_rescaled_stress_clamped(self, accumulator):
        new = accumulator.accumulate("slab_0_0_0", 0.9, 1.0, material=MaterialProperties.concrete())
        assert new == pytest.approx(1.0 * 0.001)

    def test_zero_time_factor_no_growth(self, accumulator):
        assert accumulator.accumulate("column_1_0_0", 1.0, 0.0) == 0.0

    def test_clamped_to_one(self, accumulator):
        for _ in range(5000):
            d = accumulator.accumulate("column_0_0_0", 1.0, 1.0)
        assert d == 1.0

    def test_monotonic_under_random_stress(self, accumulator, model):
        rng = np.random.default_rng(7)
        indices = np.arange(len(model.elements))
        previous = accumulator.values.copy()
        for step in range(200):
            stresses = rng.uniform(0.0, 1.0, indices.size)
            accumulator.accumulate_batch(indices, stresses, (step / 200) ** 2)
            current = accumulator.values.copy()
            assert np.all(current >= previous)
            assert np.all((current >= 0.0) & (current <= 1.0))
            previous = current

    def test_non_finite_raises_without_commit(self, accumulator):
        indices = np.array([0, 1])
        with pytest.raises(Divergence):
            accumulator.accumulate_batch(indices, np.array([0.5, np.nan]), 1.0)
        assert np.all(accumulator.values[indices] == 0.0)

    def test_reset(self, accumulator):
        accumulator.accumulate("column_0_0_0", 1.0, 1.0)
        accumulator.reset()
        assert accumulator.mean() == 0.0

    def test_values_read_only(self, accumulator):
        with pytest.raises(ValueError):
            accumulator.values[0] = 1.0

    def test_most_damaged(self, accumulator):
        accumulator.accumulate("column_0_0_0", 1.0, 1.0)
        accumulator.accumulate("slab_0_0_0", 1.0, 1.0)
        top = accumulator.most_damaged(5)
        assert [e["id"] for e in top] == ["column_0_0_0", "slab_0_0_0"]
        assert top[0]["kind"] == "Column"


class TestDriftDamageStates:
    """IO / LS / CP thresholds and lognormal fragility."""

    @pytest.mark.parametrize(
        "idr, expected",
        [(0.001, "None"), (0.005, "IO"), (0.01, "IO"), (0.02, "LS"), (0.03, "CP")],
    )
    def test_classification(self, idr, expected):
        assert classify_drift_ratio(idr) == expected

    def test_fragility_median(self):
        """P = 0.5 at the median capacity."""
        assert float(fragility_lognormal(0.015, 0.015, 0.4)) == pytest.approx(0.5)

    def test_exceedance_ordering(self):
        p = exceedance_probabilities(0.01)
        assert p["IO"] > p["LS"] > p["CP"]

    def test_zero_drift(self):
        assert all(v == pytest.approx(0.0, abs=1e-9) for v in exceedance_probabilities(0.0).values())
