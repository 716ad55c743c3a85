"""
dynamics — Excitation, damage, time integration and result aggregation.

Modules
-------
excitation : SeismicExcitation inputs and the resonance/offset law.
damage     : Per-element cumulative damage and drift damage states.
clock      : Wall and simulated frame clocks.
integrator : Run state machine with detailed and spectral strategies.
results    : SimulationResult and end-of-run aggregation.
"""

from quakeframe.dynamics.clock import SimulatedClock, WallClock
from quakeframe.dynamics.damage import (
    DAMAGE_STATES,
    DamageAccumulator,
    classify_drift_ratio,
    exceedance_probabilities,
    fragility_lognormal,
)
from quakeframe.dynamics.excitation import ExcitationModel, SeismicExcitation, resonance_factor
from quakeframe.dynamics.integrator import (
    DetailedResponseStrategy,
    ResponseHistory,
    ResponseIntegrator,
    ResponseStrategy,
    RunState,
    SpectralResponseStrategy,
)
from quakeframe.dynamics.results import (
    ResultAggregator,
    SimulationResult,
    assess_performance,
    base_shear,
    damage_percentage,
    story_drifts,
)

__all__ = [
    "SimulatedClock",
    "WallClock",
    "DAMAGE_STATES",
    "DamageAccumulator",
    "classify_drift_ratio",
    "exceedance_probabilities",
    "fragility_lognormal",
    "ExcitationModel",
    "SeismicExcitation",
    "resonance_factor",
    "DetailedResponseStrategy",
    "ResponseHistory",
    "ResponseIntegrator",
    "ResponseStrategy",
    "RunState",
    "SpectralResponseStrategy",
    "ResultAggregator",
    "SimulationResult",
    "assess_performance",
    "base_shear",
    "damage_percentage",
    "story_drifts",
]
