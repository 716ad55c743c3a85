"""
damage.py — Cumulative per-element damage and drift-based damage states
=======================================================================

Two complementary damage measures:

1. **Element damage index** d ∈ [0, 1], accumulated each step from an
   instantaneous stress estimate.  Monotonically non-decreasing within a
   run; only ``reset()`` lowers it.

       stress = min(1, u · m_s · (1 + s/n) · m_mat · R / u_lim)

       Column / Beam : d ← min(1, d + stress² · 0.002 · (1 + 5d) · τ · m_s)
       Slab          : d ← min(1, d + stress  · 0.001 · (1 + 3d) · τ)

   with u the element displacement, m_s its stress multiplier, s/n its
   relative story, m_mat the material damage multiplier, R the resonance
   factor and u_lim the 5 cm damage threshold.  τ is the damage time
   factor: progress² (cumulative fatigue) integrated over the time since
   the element was last updated and expressed in reference frames of
   1/60 s, so the accumulated damage does not depend on the frame rate:

       τ = 60 · ∫ (t/T)² dt  over [t_prev, t]  = 60 · (t³ − t_prev³) / 3T²

2. **Drift damage states** (FEMA P-58 / ASCE 41 for moment frames):

       IO  = 0.5%  (Immediate Occupancy)
       LS  = 1.5%  (Life Safety)
       CP  = 2.5%  (Collapse Prevention)

   with lognormal fragility P(DS ≥ ds | IDR) = Φ(ln(IDR/θ) / β).

Author: Mikisbell
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.stats import norm

from quakeframe.exceptions import Divergence
from quakeframe.structural.building import MaterialProperties
from quakeframe.structural.model import KIND_CODES, ElementKind, ElementTable

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DISPLACEMENT_THRESHOLD = 0.05  # m
REFERENCE_FRAME_RATE = 60.0  # Hz, growth coefficients are per frame at this rate

FRAME_RATE_COEFF = 0.002  # columns and beams
FRAME_SOFTENING = 5.0
SLAB_RATE_COEFF = 0.001
SLAB_SOFTENING = 3.0

DAMAGE_STATES = {
    "IO": 0.005,  # 0.5% IDR
    "LS": 0.015,  # 1.5% IDR
    "CP": 0.025,  # 2.5% IDR
}
DS_LABELS = {
    "IO": "Immediate Occupancy (0.5%)",
    "LS": "Life Safety (1.5%)",
    "CP": "Collapse Prevention (2.5%)",
}
DEFAULT_BETA = 0.4

_SLAB_CODE = KIND_CODES[ElementKind.SLAB]


# ---------------------------------------------------------------------------
# Fragility model
# ---------------------------------------------------------------------------


def fragility_lognormal(im, theta: float, beta: float = DEFAULT_BETA):
    """Lognormal fragility function: P(DS ≥ ds | IM = im)."""
    im = np.maximum(np.asarray(im, dtype=float), 1e-12)
    return norm.cdf(np.log(im / theta) / beta)


def exceedance_probabilities(idr: float, beta: float = DEFAULT_BETA) -> dict[str, float]:
    """Probability of reaching each drift damage state at *idr*."""
    return {ds: float(fragility_lognormal(idr, theta, beta)) for ds, theta in DAMAGE_STATES.items()}


def classify_drift_ratio(idr: float) -> str:
    """Highest damage state whose drift limit *idr* reaches, or ``"None"``."""
    state = "None"
    for ds, limit in DAMAGE_STATES.items():
        if idr >= limit:
            state = ds
    return state


# ---------------------------------------------------------------------------
# Element damage
# ---------------------------------------------------------------------------


def damage_time_factor(previous, elapsed: float, duration: float):
    """Time factor τ for an update spanning [*previous*, *elapsed*] seconds.

    ``previous`` may be an array of per-element last-update times.  The
    result is the progress² fatigue weight integrated over the interval, in
    reference frames, so one 1/60 s step at progress p gives τ ≈ p².
    """
    previous = np.minimum(np.asarray(previous, dtype=float), elapsed)
    return REFERENCE_FRAME_RATE * (elapsed**3 - previous**3) / (3.0 * duration**2)


def damage_growth(existing, stress, damage_time_factor: float, is_slab, stress_multiplier):
    """Proposed new damage for the frame (column/beam) or slab law, unclamped below."""
    existing = np.asarray(existing, dtype=float)
    stress = np.asarray(stress, dtype=float)
    frame = (
        stress**2
        * FRAME_RATE_COEFF
        * (1.0 + existing * FRAME_SOFTENING)
        * damage_time_factor
        * np.asarray(stress_multiplier, dtype=float)
    )
    slab = stress * SLAB_RATE_COEFF * (1.0 + existing * SLAB_SOFTENING) * damage_time_factor
    return np.minimum(1.0, existing + np.where(is_slab, slab, frame))


class DamageAccumulator:
    """Per-element damage map owned by one simulation run.

    Elements are addressed by their stable id (``accumulate``) or by their
    integer index in the element table (``accumulate_batch``).

    Parameters
    ----------
    elements : ElementTable
        Table the damage map is keyed on.
    material : MaterialProperties
        Default material for the damage multiplier.
    n_stories : int
        Story count used in the story damage multiplier 1 + s/n.
    displacement_threshold : float
        Displacement (m) at which the normalised stress saturates at 1.
    """

    def __init__(
        self,
        elements: ElementTable,
        material: MaterialProperties,
        n_stories: int,
        displacement_threshold: float = DISPLACEMENT_THRESHOLD,
    ) -> None:
        self.elements = elements
        self.material = material
        self.n_stories = n_stories
        self.displacement_threshold = displacement_threshold
        self._damage = np.zeros(len(elements), dtype=float)

    # ------------------------------------------------------------------ #
    # Stress estimate
    # ------------------------------------------------------------------ #

    def stress(
        self,
        displacement,
        stress_multiplier,
        story,
        resonance: float,
        material: MaterialProperties | None = None,
    ):
        """Normalised instantaneous stress in [0, 1]."""
        material = material or self.material
        story_mult = 1.0 + np.asarray(story, dtype=float) / self.n_stories
        raw = (
            np.asarray(displacement, dtype=float)
            * np.asarray(stress_multiplier, dtype=float)
            * story_mult
            * material.damage_multiplier
            * resonance
            / self.displacement_threshold
        )
        return np.minimum(1.0, raw)

    # ------------------------------------------------------------------ #
    # Accumulation
    # ------------------------------------------------------------------ #

    def accumulate(
        self,
        element_id: str,
        stress: float,
        damage_time_factor: float,
        kind: ElementKind | None = None,
        material: MaterialProperties | None = None,
    ) -> float:
        """Update one element and return its new damage.

        *stress* is normalised for the accumulator's material.  When another
        ``material`` is given the stress is rescaled by the ratio of damage
        multipliers (and clamped to 1) before the growth law is applied.
        """
        idx = self.elements.index_of(element_id)
        kind = ElementKind(kind) if kind is not None else self.elements.kind_of(idx)
        if material is not None and material != self.material:
            ratio = material.damage_multiplier / self.material.damage_multiplier
            stress = min(1.0, float(stress) * ratio)
        new = damage_growth(
            self._damage[idx],
            stress,
            damage_time_factor,
            kind is ElementKind.SLAB,
            self.elements.stress_multipliers[idx],
        )
        if not np.isfinite(new):
            raise Divergence(f"Non-finite damage for element '{element_id}'")
        self._damage[idx] = max(self._damage[idx], float(new))
        return float(self._damage[idx])

    def propose(self, indices: np.ndarray, stresses: np.ndarray, damage_time_factor: float):
        """New damage values for *indices* without committing them.

        Raises
        ------
        Divergence
            If any proposed value is not finite.
        """
        new = damage_growth(
            self._damage[indices],
            stresses,
            damage_time_factor,
            self.elements.kind_codes[indices] == _SLAB_CODE,
            self.elements.stress_multipliers[indices],
        )
        if not np.all(np.isfinite(new)):
            raise Divergence(f"Non-finite damage in {int(np.sum(~np.isfinite(new)))} elements")
        return new

    def commit(self, indices: np.ndarray, values: np.ndarray) -> None:
        """Store proposed values; never lowers existing damage."""
        self._damage[indices] = np.clip(np.maximum(self._damage[indices], values), 0.0, 1.0)

    def accumulate_batch(self, indices, stresses, damage_time_factor: float) -> np.ndarray:
        indices = np.asarray(indices, dtype=np.int64)
        new = self.propose(indices, stresses, damage_time_factor)
        self.commit(indices, new)
        return self._damage[indices].copy()

    def reset(self) -> None:
        self._damage[:] = 0.0

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the damage map in element-table order."""
        view = self._damage.view()
        view.setflags(write=False)
        return view

    def damage_of(self, element_id: str) -> float:
        return float(self._damage[self.elements.index_of(element_id)])

    def mean(self) -> float:
        """Mean damage over all tracked elements (0 if none)."""
        return float(self._damage.mean()) if self._damage.size else 0.0

    def most_damaged(self, count: int = 5) -> list[dict]:
        """The *count* most damaged elements, highest first (undamaged omitted)."""
        order = np.argsort(-self._damage, kind="stable")[:count]
        order = order[self._damage[order] > 0]
        return [
            {
                "id": self.elements.ids[i],
                "kind": self.elements.kind_of(int(i)).value,
                "story": int(self.elements.stories[i]),
                "damage": float(self._damage[i]),
            }
            for i in order
        ]
