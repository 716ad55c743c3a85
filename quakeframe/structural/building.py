"""
building.py — Building geometry and material definitions
========================================================

Immutable inputs to the structural model: the rectangular frame geometry
(``BuildingModel``) and the material it is built from
(``MaterialProperties``).  Both are validated at construction; an invalid
geometry raises ``InvalidGeometry`` synchronously so the engine never builds
an element set from it.

Unit System
-----------
    Length  : m   (section dimensions included)
    Modulus : Pa
    Density : kg/m³
    Weight  : kN

Material Catalogue
------------------
    Steel     E = 210 GPa   ρ = 7850 kg/m³
    Concrete  E =  30 GPa   ρ = 2400 kg/m³
    Timber    E =  12 GPa   ρ =  600 kg/m³

Author: Mikisbell
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from quakeframe.exceptions import InvalidGeometry

logger = logging.getLogger(__name__)

MATERIAL_TYPES = ("Steel", "Concrete", "Timber")

# Damping sensitivity: steel dissipates less energy per cycle than concrete
_DAMPING_FACTOR = {"Steel": 0.9}
_DAMPING_FACTOR_DEFAULT = 1.2

# Damage sensitivity: concrete is the more brittle material
_DAMAGE_MULTIPLIER = {"Concrete": 1.2}
_DAMAGE_MULTIPLIER_DEFAULT = 0.8


# ═══════════════════════════════════════════════════════════════════════════
# Material
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MaterialProperties:
    """Structural material shared by reference across all elements."""

    type: str = "Steel"  # "Steel" | "Concrete" | "Timber"
    elastic_modulus: float = 2.1e11  # Pa
    density: float = 7850.0  # kg/m³

    def __post_init__(self) -> None:
        if self.type not in MATERIAL_TYPES:
            raise ValueError(f"material type must be one of {MATERIAL_TYPES}, got {self.type!r}")
        if self.elastic_modulus <= 0:
            raise ValueError(f"elastic_modulus must be positive, got {self.elastic_modulus}")
        if self.density <= 0:
            raise ValueError(f"density must be positive, got {self.density}")

    @property
    def damping_factor(self) -> float:
        """Multiplier on the seismic damping ratio (steel < concrete)."""
        return _DAMPING_FACTOR.get(self.type, _DAMPING_FACTOR_DEFAULT)

    @property
    def damage_multiplier(self) -> float:
        return _DAMAGE_MULTIPLIER.get(self.type, _DAMAGE_MULTIPLIER_DEFAULT)

    # ------------------------------------------------------------------ #
    # Catalogue
    # ------------------------------------------------------------------ #

    @classmethod
    def steel(cls) -> MaterialProperties:
        return cls("Steel", 2.1e11, 7850.0)

    @classmethod
    def concrete(cls) -> MaterialProperties:
        return cls("Concrete", 3.0e10, 2400.0)

    @classmethod
    def timber(cls) -> MaterialProperties:
        return cls("Timber", 1.2e10, 600.0)

    @classmethod
    def from_name(cls, name: str) -> MaterialProperties:
        """Look up a catalogue material by case-insensitive name."""
        presets = {"steel": cls.steel, "concrete": cls.concrete, "timber": cls.timber}
        try:
            return presets[name.lower()]()
        except KeyError:
            raise ValueError(
                f"Unknown material '{name}'. Choose from: {', '.join(sorted(presets))}"
            ) from None


# ═══════════════════════════════════════════════════════════════════════════
# Geometry
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class BuildingModel:
    """Rectangular multi-story frame, immutable per run.

    The plan is ``length`` along x by ``width`` along z, divided into
    ``bays_x`` × ``bays_z`` equal bays; stories share a uniform height.
    ``building_weight`` (kN) overrides the element-based mass estimate when
    given.
    """

    length: float = 20.0  # m (x)
    width: float = 15.0  # m (z)
    height: float = 12.0  # m (y)
    n_stories: int = 4
    bays_x: int = 4
    bays_z: int = 3

    # Sections
    column_width: float = 0.40  # m
    column_depth: float = 0.40  # m
    beam_width: float = 0.30  # m
    beam_depth: float = 0.50  # m
    slab_thickness: float = 0.20  # m

    building_weight: float | None = None  # kN

    def __post_init__(self) -> None:
        if self.n_stories < 1:
            raise InvalidGeometry(f"n_stories must be ≥ 1, got {self.n_stories}")
        if self.bays_x < 1 or self.bays_z < 1:
            raise InvalidGeometry(
                f"bay counts must be ≥ 1, got bays_x={self.bays_x}, bays_z={self.bays_z}"
            )
        for name in (
            "length",
            "width",
            "height",
            "column_width",
            "column_depth",
            "beam_width",
            "beam_depth",
            "slab_thickness",
        ):
            value = getattr(self, name)
            if not (math.isfinite(value) and value > 0):
                raise InvalidGeometry(f"{name} must be > 0, got {value}")
        if self.building_weight is not None and not (
            math.isfinite(self.building_weight) and self.building_weight > 0
        ):
            raise InvalidGeometry(f"building_weight must be > 0, got {self.building_weight}")

    @property
    def story_height(self) -> float:
        return self.height / self.n_stories

    @property
    def bay_width(self) -> float:
        """Bay span along x (m)."""
        return self.length / self.bays_x

    @property
    def bay_depth(self) -> float:
        """Bay span along z (m)."""
        return self.width / self.bays_z

    @property
    def n_columns(self) -> int:
        return (self.bays_x + 1) * (self.bays_z + 1) * self.n_stories

    @property
    def n_beams(self) -> int:
        per_story = self.bays_x * (self.bays_z + 1) + (self.bays_x + 1) * self.bays_z
        return per_story * self.n_stories

    @property
    def n_slabs(self) -> int:
        return self.bays_x * self.bays_z * self.n_stories
