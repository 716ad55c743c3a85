"""
model.py — Lumped-parameter structural model of a rectangular frame
===================================================================

Turns a ``BuildingModel`` + ``MaterialProperties`` into:

    1. The ordered element table (columns, beams along x and z, slab panels)
       with stable string ids, story levels, reference positions and
       role-dependent stress multipliers.
    2. A lumped mass (element volume × density, or the explicit building
       weight) and the equivalent lateral stiffness k = 4π²·m·f².
    3. A default ``ModalProperties`` estimate: approximate period
       T = Ct·hⁿ and the sinusoidal first-mode shape
       φᵢ = sin((i+1)·π / (2·n_stories)).

Externally supplied modal properties (e.g. from a separate static analysis)
take precedence over the default estimate.  No eigenvalue solve is
performed; the shape is an analytic approximation of first-mode sway.

Element Layout
--------------
    column_{i}_{j}_{k}   grid line i (x), j (z), story k, at mid-story height
    beam_x_{i}_{j}_{k}   span i→i+1 on grid line j, at the floor above story k
    beam_z_{i}_{j}_{k}   span j→j+1 on grid line i, at the floor above story k
    slab_{i}_{j}_{k}     bay (i, j), at the floor above story k

Author: Mikisbell
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from quakeframe.exceptions import InvalidGeometry
from quakeframe.structural.building import BuildingModel, MaterialProperties

logger = logging.getLogger(__name__)

G = 9.81  # m/s²

# Approximate fundamental period T = Ct · h^x (h in m)
_PERIOD_COEFFICIENTS = {
    "Steel": (0.0724, 0.8),
    "Concrete": (0.0466, 0.9),
    "Timber": (0.0488, 0.75),
}

# Stress multipliers by element role
CORNER_COLUMN_BASE = 1.0
CORNER_COLUMN_BOOST = 0.5
EDGE_COLUMN_MULTIPLIER = 1.15
INTERIOR_COLUMN_MULTIPLIER = 1.0
BEAM_MULTIPLIER = 1.0
SLAB_MULTIPLIER = 0.8


# ═══════════════════════════════════════════════════════════════════════════
# Elements
# ═══════════════════════════════════════════════════════════════════════════


class ElementKind(str, Enum):
    COLUMN = "Column"
    BEAM = "Beam"
    SLAB = "Slab"


# Integer codes used in the element table arrays
KIND_CODES = {ElementKind.COLUMN: 0, ElementKind.BEAM: 1, ElementKind.SLAB: 2}
_KINDS_BY_CODE = {code: kind for kind, code in KIND_CODES.items()}


@dataclass(frozen=True)
class StructuralElement:
    """One physical member, as read from the element table."""

    id: str
    index: int
    kind: ElementKind
    story: int  # 0-indexed
    reference: tuple[float, float, float]  # undeformed (x, y, z) in m
    stress_multiplier: float


@dataclass(frozen=True, eq=False)
class ElementTable:
    """Struct-of-arrays element table indexed by a stable integer.

    Arrays are read-only; per-run mutable state (positions, damage) lives in
    the run that owns it, never in the table.
    """

    ids: tuple[str, ...]
    kind_codes: np.ndarray  # (n,) int
    stories: np.ndarray  # (n,) int
    references: np.ndarray  # (n, 3) float
    stress_multipliers: np.ndarray  # (n,) float
    volumes: np.ndarray  # (n,) float, m³
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for arr in (
            self.kind_codes,
            self.stories,
            self.references,
            self.stress_multipliers,
            self.volumes,
        ):
            arr.setflags(write=False)
        object.__setattr__(self, "_index", {eid: i for i, eid in enumerate(self.ids)})

    def __len__(self) -> int:
        return len(self.ids)

    def __iter__(self):
        for i in range(len(self.ids)):
            yield self.element(i)

    def index_of(self, element_id: str) -> int:
        try:
            return self._index[element_id]
        except KeyError:
            raise KeyError(f"Unknown element id '{element_id}'") from None

    def kind_of(self, index: int) -> ElementKind:
        return _KINDS_BY_CODE[int(self.kind_codes[index])]

    def element(self, index: int) -> StructuralElement:
        ref = self.references[index]
        return StructuralElement(
            id=self.ids[index],
            index=index,
            kind=self.kind_of(index),
            story=int(self.stories[index]),
            reference=(float(ref[0]), float(ref[1]), float(ref[2])),
            stress_multiplier=float(self.stress_multipliers[index]),
        )

    def mask(self, kind: ElementKind) -> np.ndarray:
        """Boolean mask selecting all elements of *kind*."""
        return self.kind_codes == KIND_CODES[kind]


# ═══════════════════════════════════════════════════════════════════════════
# Modal properties
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ModalProperties:
    """Fundamental period and first-mode shape.

    ``mode_shape`` holds one amplification weight per story in [0, 1],
    non-decreasing with story index (the top sways most).
    """

    period: float  # s
    mode_shape: tuple[float, ...]

    def __post_init__(self) -> None:
        if not (math.isfinite(self.period) and self.period > 0):
            raise ValueError(f"period must be > 0, got {self.period}")
        if len(self.mode_shape) == 0:
            raise ValueError("mode_shape must have at least one story weight")
        shape = np.asarray(self.mode_shape, dtype=float)
        if not np.all(np.isfinite(shape)) or shape.min() < 0 or shape.max() > 1:
            raise ValueError(f"mode_shape weights must lie in [0, 1], got {self.mode_shape}")
        if np.any(np.diff(shape) < 0):
            raise ValueError("mode_shape must be non-decreasing with story index")
        object.__setattr__(self, "mode_shape", tuple(float(v) for v in shape))

    @property
    def natural_frequency(self) -> float:
        """Fundamental frequency f = 1/T (Hz)."""
        return 1.0 / self.period

    @property
    def participation_factor(self) -> float:
        """Modal participation factor Γ = Σφ / Σφ² for uniform story mass."""
        phi = np.asarray(self.mode_shape)
        denom = float(np.sum(phi**2))
        return float(np.sum(phi)) / denom if denom > 0 else 0.0

    @classmethod
    def sinusoidal(cls, period: float, n_stories: int) -> ModalProperties:
        """First-mode approximation φᵢ = sin((i+1)·π / (2n))."""
        i = np.arange(n_stories)
        shape = np.sin((i + 1) * np.pi / (2 * n_stories))
        # sin(π/2) can land a hair above/below 1.0
        return cls(period, tuple(np.clip(shape, 0.0, 1.0)))

    @classmethod
    def from_shape(
        cls,
        period: float | None = None,
        mode_shape=None,
        frequency: float | None = None,
    ) -> ModalProperties:
        """Build from an externally computed shape of arbitrary scale.

        The shape is normalised by its peak absolute value and forced
        non-decreasing with a running maximum.  Either ``period`` or
        ``frequency`` must be given.
        """
        if period is None:
            if frequency is None or frequency <= 0:
                raise ValueError("either period or a positive frequency is required")
            period = 1.0 / frequency
        shape = np.abs(np.asarray(mode_shape, dtype=float))
        if shape.size == 0 or not np.all(np.isfinite(shape)) or shape.max() == 0:
            raise ValueError("mode_shape must contain finite, non-zero weights")
        shape = shape / shape.max()
        repaired = np.maximum.accumulate(shape)
        if not np.allclose(repaired, shape):
            logger.warning("Supplied mode shape is not monotonic; applied running maximum.")
        return cls(period, tuple(repaired))


def approximate_period(height: float, material_type: str) -> float:
    """Code-style approximate fundamental period T = Ct · hⁿ (s)."""
    ct, exponent = _PERIOD_COEFFICIENTS.get(material_type, _PERIOD_COEFFICIENTS["Concrete"])
    return ct * height**exponent


# ═══════════════════════════════════════════════════════════════════════════
# Structural model
# ═══════════════════════════════════════════════════════════════════════════


class StructuralModel:
    """Element table, lumped mass, stiffness and modal estimate of a frame.

    Usage
    -----
        building = BuildingModel(height=12.0, n_stories=4)
        model = StructuralModel(building, MaterialProperties.steel())
        model.stiffness          # N/m
        model.modal.mode_shape   # (0.38, 0.71, 0.92, 1.0)
    """

    def __init__(
        self,
        building: BuildingModel,
        material: MaterialProperties,
        modal: ModalProperties | None = None,
        default_building_weight: float = 1000.0,
    ) -> None:
        if not isinstance(building, BuildingModel):
            raise InvalidGeometry(f"expected a BuildingModel, got {type(building).__name__}")
        self.building = building
        self.material = material
        self.default_building_weight = default_building_weight

        self.elements = self._build_elements()
        self.total_mass = self._estimate_mass()

        if modal is not None:
            self.modal = modal
            self.modal_source = "supplied"
        else:
            period = approximate_period(building.height, material.type)
            self.modal = ModalProperties.sinusoidal(period, building.n_stories)
            self.modal_source = "estimated"

        logger.info(
            "Structural model: %d elements (%d columns, %d beams, %d slabs), "
            "W=%.1f kN, T=%.3f s (%s)",
            len(self.elements),
            building.n_columns,
            building.n_beams,
            building.n_slabs,
            self.building_weight,
            self.modal.period,
            self.modal_source,
        )

    # ------------------------------------------------------------------ #
    # Derived quantities
    # ------------------------------------------------------------------ #

    @property
    def n_stories(self) -> int:
        return self.building.n_stories

    @property
    def building_weight(self) -> float:
        """Seismic weight W (kN)."""
        return self.total_mass * G / 1000.0

    @property
    def natural_frequency(self) -> float:
        return self.modal.natural_frequency

    @property
    def stiffness(self) -> float:
        """Equivalent lateral stiffness k = 4π²·m·f² (N/m)."""
        return 4.0 * math.pi**2 * self.total_mass * self.natural_frequency**2

    def mode_amplification(self) -> np.ndarray:
        """Per-element mode-shape weight.

        Elements on stories beyond the supplied shape fall back to their
        height ratio y/H.
        """
        shape = np.asarray(self.modal.mode_shape)
        stories = self.elements.stories
        in_shape = stories < len(shape)
        height_ratio = np.clip(self.elements.references[:, 1] / self.building.height, 0.0, 1.0)
        return np.where(in_shape, shape[np.minimum(stories, len(shape) - 1)], height_ratio)

    def story_mode_weights(self) -> np.ndarray:
        """Mode-shape weight per story, bottom story first.

        Stories beyond the supplied shape use the floor height ratio.
        """
        shape = np.asarray(self.modal.mode_shape)
        s = np.arange(self.n_stories)
        height_ratio = (s + 1) / self.n_stories
        return np.where(s < len(shape), shape[np.minimum(s, len(shape) - 1)], height_ratio)

    def story_force_factors(self) -> np.ndarray:
        """Story force distribution 1 − 0.5·s/n, bottom story first."""
        s = np.arange(self.n_stories)
        return 1.0 - 0.5 * s / self.n_stories

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    def _estimate_mass(self) -> float:
        """Total mass (kg): explicit weight, else Σ volume × density."""
        if self.building.building_weight is not None:
            return self.building.building_weight * 1000.0 / G
        element_mass = float(np.sum(self.elements.volumes)) * self.material.density
        if element_mass > 0:
            return element_mass
        logger.warning(
            "No element mass derivable; using default weight %.1f kN",
            self.default_building_weight,
        )
        return self.default_building_weight * 1000.0 / G

    def _build_elements(self) -> ElementTable:
        b = self.building
        n = b.n_stories
        h = b.story_height
        bw, bd = b.bay_width, b.bay_depth
        col_vol = b.column_width * b.column_depth * h
        beam_area = b.beam_width * b.beam_depth
        slab_vol = bw * bd * b.slab_thickness

        ids: list[str] = []
        kinds: list[int] = []
        stories: list[int] = []
        refs: list[tuple[float, float, float]] = []
        mults: list[float] = []
        vols: list[float] = []

        def add(eid, kind, story, ref, mult, vol):
            ids.append(eid)
            kinds.append(KIND_CODES[kind])
            stories.append(story)
            refs.append(ref)
            mults.append(mult)
            vols.append(vol)

        for k in range(n):
            floor_y = (k + 1) * h

            # ── Columns ─────────────────────────────────────────────────
            for i in range(b.bays_x + 1):
                for j in range(b.bays_z + 1):
                    on_x_edge = i in (0, b.bays_x)
                    on_z_edge = j in (0, b.bays_z)
                    if on_x_edge and on_z_edge:
                        mult = CORNER_COLUMN_BASE + CORNER_COLUMN_BOOST * (1.0 - 0.6 * k / n)
                    elif on_x_edge or on_z_edge:
                        mult = EDGE_COLUMN_MULTIPLIER
                    else:
                        mult = INTERIOR_COLUMN_MULTIPLIER
                    add(
                        f"column_{i}_{j}_{k}",
                        ElementKind.COLUMN,
                        k,
                        (i * bw, k * h + h / 2, j * bd),
                        mult,
                        col_vol,
                    )

            # ── Beams along x ───────────────────────────────────────────
            for i in range(b.bays_x):
                for j in range(b.bays_z + 1):
                    add(
                        f"beam_x_{i}_{j}_{k}",
                        ElementKind.BEAM,
                        k,
                        ((i + 0.5) * bw, floor_y, j * bd),
                        BEAM_MULTIPLIER,
                        beam_area * bw,
                    )

            # ── Beams along z ───────────────────────────────────────────
            for i in range(b.bays_x + 1):
                for j in range(b.bays_z):
                    add(
                        f"beam_z_{i}_{j}_{k}",
                        ElementKind.BEAM,
                        k,
                        (i * bw, floor_y, (j + 0.5) * bd),
                        BEAM_MULTIPLIER,
                        beam_area * bd,
                    )

            # ── Slabs ───────────────────────────────────────────────────
            for i in range(b.bays_x):
                for j in range(b.bays_z):
                    add(
                        f"slab_{i}_{j}_{k}",
                        ElementKind.SLAB,
                        k,
                        ((i + 0.5) * bw, floor_y, (j + 0.5) * bd),
                        SLAB_MULTIPLIER,
                        slab_vol,
                    )

        return ElementTable(
            ids=tuple(ids),
            kind_codes=np.asarray(kinds, dtype=np.int8),
            stories=np.asarray(stories, dtype=np.int64),
            references=np.asarray(refs, dtype=float).reshape(-1, 3),
            stress_multipliers=np.asarray(mults, dtype=float),
            volumes=np.asarray(vols, dtype=float),
        )
