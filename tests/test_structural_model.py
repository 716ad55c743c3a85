"""Tests for the lumped-parameter structural model."""

import math

import numpy as np
import pytest

from quakeframe.structural.building import BuildingModel, MaterialProperties
from quakeframe.structural.model import (
    ElementKind,
    ModalProperties,
    StructuralModel,
    approximate_period,
)


class TestElementTable:
    """Element layout, ids and stress multipliers."""

    def test_counts_by_kind(self, model, building):
        table = model.elements
        assert len(table) == building.n_columns + building.n_beams + building.n_slabs
        assert int(table.mask(ElementKind.COLUMN).sum()) == building.n_columns
        assert int(table.mask(ElementKind.BEAM).sum()) == building.n_beams
        assert int(table.mask(ElementKind.SLAB).sum()) == building.n_slabs

    def test_ids_unique_and_stable(self, building, steel):
        a = StructuralModel(building, steel).elements
        b = StructuralModel(building, steel).elements
        assert len(set(a.ids)) == len(a)
        assert a.ids == b.ids

    def test_index_lookup(self, model):
        idx = model.elements.index_of("slab_1_0_3")
        element = model.elements.element(idx)
        assert element.kind is ElementKind.SLAB
        assert element.story == 3
        assert element.index == idx

    def test_unknown_id(self, model):
        with pytest.raises(KeyError):
            model.elements.index_of("column_99_0_0")

    def test_column_reference_at_mid_story(self, model):
        col = model.elements.element(model.elements.index_of("column_2_1_1"))
        assert col.reference == pytest.approx((10.0, 4.5, 6.0))

    def test_beam_and_slab_at_floor_level(self, model):
        beam = model.elements.element(model.elements.index_of("beam_x_0_0_0"))
        slab = model.elements.element(model.elements.index_of("slab_0_0_3"))
        assert beam.reference == pytest.approx((2.5, 3.0, 0.0))
        assert slab.reference[1] == pytest.approx(12.0)

    def test_corner_columns_most_stressed_at_base(self, model):
        table = model.elements
        base = table.element(table.index_of("column_0_0_0")).stress_multiplier
        top = table.element(table.index_of("column_0_0_3")).stress_multiplier
        assert base == pytest.approx(1.5)
        assert top == pytest.approx(1.0 + 0.5 * (1 - 0.6 * 3 / 4))
        assert base > top

    def test_edge_and_interior_multipliers(self):
        model = StructuralModel(BuildingModel(bays_x=2, bays_z=2), MaterialProperties.steel())
        table = model.elements
        assert table.element(table.index_of("column_1_0_0")).stress_multiplier == pytest.approx(1.15)
        assert table.element(table.index_of("column_1_1_0")).stress_multiplier == pytest.approx(1.0)
        assert table.element(table.index_of("slab_0_0_0")).stress_multiplier == pytest.approx(0.8)

    def test_arrays_read_only(self, model):
        with pytest.raises(ValueError):
            model.elements.references[0, 0] = 99.0


class TestMassAndStiffness:
    """Lumped mass and equivalent stiffness."""

    def test_mass_from_element_volumes(self, model, building, steel):
        h = building.story_height
        col = 0.4 * 0.4 * h * building.n_columns
        beams_x = 0.3 * 0.5 * building.bay_width * building.bays_x * (building.bays_z + 1)
        beams_z = 0.3 * 0.5 * building.bay_depth * (building.bays_x + 1) * building.bays_z
        slabs = building.bay_width * building.bay_depth * 0.2 * building.bays_x * building.bays_z
        volume = col + (beams_x + beams_z + slabs) * building.n_stories
        assert model.total_mass == pytest.approx(volume * steel.density)

    def test_explicit_weight_overrides(self, steel):
        model = StructuralModel(BuildingModel(building_weight=1000.0), steel)
        assert model.total_mass == pytest.approx(1000.0 * 1000 / 9.81)
        assert model.building_weight == pytest.approx(1000.0)

    def test_stiffness_formula(self, building, steel, modal_2hz):
        model = StructuralModel(building, steel, modal_2hz)
        expected = 4 * math.pi**2 * model.total_mass * 2.0**2
        assert model.stiffness == pytest.approx(expected)


class TestModalProperties:
    """Mode shape fallback and supplied modal data."""

    def test_sinusoidal_shape(self):
        modal = ModalProperties.sinusoidal(1.0, 4)
        expected = [math.sin((i + 1) * math.pi / 8) for i in range(4)]
        assert modal.mode_shape == pytest.approx(expected)
        assert modal.mode_shape[-1] == pytest.approx(1.0)

    def test_sinusoidal_monotonic(self):
        shape = ModalProperties.sinusoidal(1.0, 12).mode_shape
        assert all(b >= a for a, b in zip(shape, shape[1:]))

    def test_frequency_is_inverse_period(self):
        assert ModalProperties.sinusoidal(0.5, 3).natural_frequency == pytest.approx(2.0)

    def test_non_monotonic_rejected(self):
        with pytest.raises(ValueError):
            ModalProperties(1.0, (0.5, 1.0, 0.8))

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            ModalProperties(1.0, (0.5, 1.5))

    def test_from_shape_normalises_and_repairs(self):
        modal = ModalProperties.from_shape(0.5, [2.0, 4.0, 3.0, 8.0])
        assert modal.mode_shape == pytest.approx((0.25, 0.5, 0.5, 1.0))

    def test_from_shape_with_frequency(self):
        modal = ModalProperties.from_shape(mode_shape=[1, 2], frequency=4.0)
        assert modal.period == pytest.approx(0.25)

    def test_participation_factor_uniform_shape(self):
        """Γ = 1 for a uniform (rigid-body) shape."""
        assert ModalProperties(1.0, (1.0, 1.0, 1.0)).participation_factor == pytest.approx(1.0)

    def test_supplied_modal_takes_precedence(self, building, steel, modal_2hz):
        model = StructuralModel(building, steel, modal_2hz)
        assert model.natural_frequency == pytest.approx(2.0)
        assert model.modal_source == "supplied"

    def test_default_period_from_height(self, model, building):
        assert model.modal.period == pytest.approx(approximate_period(building.height, "Steel"))
        assert model.modal_source == "estimated"

    def test_approximate_period_by_material(self):
        assert approximate_period(12.0, "Steel") == pytest.approx(0.0724 * 12.0**0.8)
        assert approximate_period(12.0, "Concrete") == pytest.approx(0.0466 * 12.0**0.9)


class TestModeAmplification:
    """Per-element modal weights."""

    def test_weights_follow_story(self, model):
        amp = model.mode_amplification()
        shape = np.asarray(model.modal.mode_shape)
        assert np.allclose(amp, shape[model.elements.stories])

    def test_short_shape_falls_back_to_height_ratio(self, building, steel):
        model = StructuralModel(building, steel, ModalProperties(0.5, (0.5, 1.0)))
        table = model.elements
        amp = model.mode_amplification()
        idx = table.index_of("slab_0_0_3")
        assert amp[idx] == pytest.approx(1.0)  # y/H = 12/12
        idx = table.index_of("column_0_0_2")
        assert amp[idx] == pytest.approx(7.5 / 12.0)
        assert model.story_mode_weights() == pytest.approx([0.5, 1.0, 0.75, 1.0])
