"""
results.py — End-of-run aggregation into a SimulationResult
===========================================================

Converts the per-story maximum displacements tracked by the integrator into
inter-story drifts, computes the code-style base shear (independent of the
time-stepped path) and reduces element damage to a single percentage.

Conventions
-----------
    max_displacement : cm
    base_shear       : kN   V = W · Sa · I / R
    story_drifts     : mm, index 0 = topmost story, length = n_stories
    damage           : %    mean element damage × 100

Author: Mikisbell
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

import numpy as np

from quakeframe.dynamics.damage import DamageAccumulator, classify_drift_ratio
from quakeframe.dynamics.excitation import ExcitationModel
from quakeframe.exceptions import Divergence
from quakeframe.structural.model import StructuralModel

logger = logging.getLogger(__name__)

# Advisory thresholds
HIGH_DISPLACEMENT_CM = 1.5
LOW_FREQUENCY_HZ = 0.5
EXCESSIVE_DRIFT_MM = 10.0
HEAVY_ELEMENT_DAMAGE = 0.8
NEAR_RESONANCE = 2.0
MODERATE_DAMAGE_PCT = 5.0
SEVERE_DAMAGE_PCT = 15.0


@dataclass(frozen=True)
class SimulationResult:
    """Summary response of one completed run.  Immutable."""

    max_displacement: float  # cm
    base_shear: float  # kN
    story_drifts: tuple[float, ...]  # mm, top story first
    period_of_vibration: float  # s
    damage_percentage: float  # 0–100

    resonance_factor: float = 1.0
    strategy: str = "detailed"
    story_displacements: tuple[float, ...] = ()  # cm, top story first
    peak_story_forces: tuple[float, ...] = ()  # kN, top story first
    damage_states: tuple[str, ...] = ()  # top story first
    critical_elements: tuple[dict, ...] = field(default=(), compare=False)

    def to_dict(self) -> dict:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, tuple):
                data[key] = list(value)
        return data


# ---------------------------------------------------------------------------
# Closed-form reductions
# ---------------------------------------------------------------------------


def story_drifts(story_max_displacement) -> np.ndarray:
    """Inter-story drifts (mm), topmost story first.

    Bottom-up, story 0 drifts relative to the ground and story i relative to
    story i−1; the sequence is then reversed.
    """
    u = np.asarray(story_max_displacement, dtype=float)
    if u.size == 0:
        return u
    below = np.concatenate(([0.0], u[:-1]))
    return (np.abs(u - below) * 1000.0)[::-1]


def base_shear(
    building_weight: float,
    spectral_acceleration: float,
    importance_factor: float,
    response_modification: float,
) -> float:
    """Equivalent lateral force base shear V = W·Sa·I/R (kN)."""
    return building_weight * spectral_acceleration * importance_factor / response_modification


def damage_percentage(damage_values) -> float:
    values = np.asarray(damage_values, dtype=float)
    return float(values.mean() * 100.0) if values.size else 0.0


def assess_performance(result: SimulationResult, natural_frequency: float) -> list[str]:
    """Plain-language advisories for a completed run."""
    notes: list[str] = []
    if result.max_displacement > HIGH_DISPLACEMENT_CM:
        notes.append(
            f"High lateral displacement ({result.max_displacement:.2f} cm): consider shear "
            "walls or bracing along the perimeter."
        )
    if natural_frequency < LOW_FREQUENCY_HZ:
        notes.append(
            f"Low fundamental frequency ({natural_frequency:.2f} Hz) indicates resonance risk "
            "with long-period ground motion."
        )
    if result.resonance_factor > NEAR_RESONANCE:
        notes.append(
            f"Excitation is near resonance (amplification ×{result.resonance_factor:.2f})."
        )
    n_drift = sum(1 for d in result.story_drifts if d > EXCESSIVE_DRIFT_MM)
    if n_drift:
        notes.append(
            f"Excessive story drift (> {EXCESSIVE_DRIFT_MM:.0f} mm) in {n_drift} "
            f"{'story' if n_drift == 1 else 'stories'}."
        )
    n_heavy = sum(1 for e in result.critical_elements if e["damage"] > HEAVY_ELEMENT_DAMAGE)
    if n_heavy:
        notes.append(f"{n_heavy} critical element(s) heavily damaged (d > {HEAVY_ELEMENT_DAMAGE}).")
    if result.damage_percentage > SEVERE_DAMAGE_PCT:
        notes.append("Building may require significant repairs.")
    elif result.damage_percentage > MODERATE_DAMAGE_PCT:
        notes.append("Building has minor structural damage.")
    return notes


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------


class ResultAggregator:
    """Builds the ``SimulationResult`` of a run from its tracked state."""

    def __init__(self, model: StructuralModel, excitation: ExcitationModel) -> None:
        self.model = model
        self.excitation = excitation

    def base_shear(self) -> float:
        exc = self.excitation.excitation
        return base_shear(
            self.model.building_weight,
            exc.spectral_acceleration,
            exc.importance_factor,
            exc.response_modification,
        )

    def aggregate(
        self,
        story_max_displacement: np.ndarray,
        damage_pct: float,
        damage: DamageAccumulator | None = None,
        strategy: str = "detailed",
    ) -> SimulationResult:
        """Reduce tracked per-story maxima (m, bottom first) into a result.

        Raises
        ------
        Divergence
            If any tracked quantity is non-finite.
        """
        u = np.asarray(story_max_displacement, dtype=float)
        if not np.all(np.isfinite(u)) or not np.isfinite(damage_pct):
            raise Divergence("Non-finite response reached result aggregation")

        drifts = story_drifts(u)
        story_height = self.model.building.story_height
        drift_ratios = drifts / 1000.0 / story_height
        forces = self.model.stiffness * self.model.story_force_factors() * u / 1000.0

        result = SimulationResult(
            max_displacement=float(u.max() * 100.0) if u.size else 0.0,
            base_shear=self.base_shear(),
            story_drifts=tuple(float(d) for d in drifts),
            period_of_vibration=self.model.modal.period,
            damage_percentage=float(np.clip(damage_pct, 0.0, 100.0)),
            resonance_factor=self.excitation.resonance,
            strategy=strategy,
            story_displacements=tuple(float(v * 100.0) for v in u[::-1]),
            peak_story_forces=tuple(float(f) for f in forces[::-1]),
            damage_states=tuple(classify_drift_ratio(r) for r in drift_ratios),
            critical_elements=tuple(damage.most_damaged(5)) if damage is not None else (),
        )

        logger.info(
            "Result: u_max=%.3f cm, V=%.2f kN, max drift=%.3f mm, damage=%.2f%%",
            result.max_displacement,
            result.base_shear,
            max(result.story_drifts) if result.story_drifts else 0.0,
            result.damage_percentage,
        )
        return result
