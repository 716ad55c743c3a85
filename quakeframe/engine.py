"""
engine.py — SeismicSimulationEngine: imperative facade over one building
========================================================================

Owns the structural model, the damage map and at most one active run, and
exposes the control surface consumed by a presentation layer:

    start() / step() / suspend() / resume() / cancel() / reset()
    set_building_model() / set_excitation() / set_modal_properties()
    snapshot()  → immutable per-element (position, damage) states
    on_frame / on_complete / on_error callbacks

Single-threaded and cooperative: each ``step()`` is one frame tick and
completes before the next is scheduled.  Starting a new run or changing any
input cancels the active run first.  Run-time failures never raise out of
``step()``; they end the run in ``RunState.FAILED`` and are reported through
``on_error`` and ``engine.error``.  Construction-time failures
(``InvalidGeometry``) are raised synchronously.

Usage::

    from quakeframe.engine import SeismicSimulationEngine
    from quakeframe.dynamics import SeismicExcitation, SimulatedClock

    engine = SeismicSimulationEngine(
        excitation=SeismicExcitation(intensity=0.4, frequency=2.0),
        clock=SimulatedClock(),
    )
    result = engine.run()
    print(result.max_displacement, result.story_drifts)

Author: Mikisbell
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

from quakeframe.config import SimulationConfig
from quakeframe.dynamics.clock import WallClock
from quakeframe.dynamics.damage import DamageAccumulator
from quakeframe.dynamics.excitation import ExcitationModel, SeismicExcitation
from quakeframe.dynamics.integrator import (
    DetailedResponseStrategy,
    ResponseHistory,
    ResponseIntegrator,
    ResponseStrategy,
    RunState,
    SpectralResponseStrategy,
)
from quakeframe.dynamics.results import SimulationResult
from quakeframe.exceptions import SceneUnavailable, SimulationError
from quakeframe.structural.building import BuildingModel, MaterialProperties
from quakeframe.structural.model import ModalProperties, StructuralModel

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Presentation-facing types
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ElementState:
    """Read-only view of one element at the current frame."""

    id: str
    kind: str
    story: int
    position: tuple[float, float, float]
    damage: float


class SceneAdapter(Protocol):
    """Capability probe of the rendering/backing context."""

    def is_available(self) -> bool: ...

    def supports_detailed(self) -> bool: ...


class HeadlessScene:
    """Scene adapter for runs without a renderer."""

    def __init__(self, available: bool = True, detailed: bool = True) -> None:
        self.available = available
        self.detailed = detailed

    def is_available(self) -> bool:
        return self.available

    def supports_detailed(self) -> bool:
        return self.detailed


# ═══════════════════════════════════════════════════════════════════════════
# Engine
# ═══════════════════════════════════════════════════════════════════════════


class SeismicSimulationEngine:
    """Simulation engine for one building model at a time.

    Parameters
    ----------
    building, material : optional
        Frame geometry and material (defaults: 4-story steel frame).
    excitation : SeismicExcitation, optional
        Ground-motion parameters.
    modal : ModalProperties, optional
        Externally supplied modal properties; take precedence over the
        derived estimate.
    config : SimulationConfig, optional
    scene : SceneAdapter, optional
        Defaults to an available, detailed ``HeadlessScene``.
    clock : optional
        ``WallClock`` (default) or ``SimulatedClock``.

    Raises
    ------
    InvalidGeometry
        If the building geometry is invalid.
    """

    def __init__(
        self,
        building: BuildingModel | None = None,
        material: MaterialProperties | None = None,
        excitation: SeismicExcitation | None = None,
        modal: ModalProperties | None = None,
        config: SimulationConfig | None = None,
        scene: SceneAdapter | None = None,
        clock=None,
    ) -> None:
        self.config = config or SimulationConfig()
        self.config.validate()
        self.scene = scene or HeadlessScene()
        self.clock = clock or WallClock()

        self._excitation = excitation or SeismicExcitation()
        self._run: ResponseIntegrator | None = None
        self._result: SimulationResult | None = None
        self._error: SimulationError | None = None
        self._listeners: dict[str, list[Callable]] = {"frame": [], "complete": [], "error": []}

        self._build(building or BuildingModel(), material or MaterialProperties.steel(), modal)

    # ------------------------------------------------------------------ #
    # Inputs
    # ------------------------------------------------------------------ #

    @property
    def building(self) -> BuildingModel:
        return self.model.building

    @property
    def material(self) -> MaterialProperties:
        return self.model.material

    @property
    def excitation(self) -> SeismicExcitation:
        return self._excitation

    def set_building_model(
        self,
        building: BuildingModel,
        material: MaterialProperties | None = None,
        modal: ModalProperties | None = None,
    ) -> None:
        """Cancel any active run and rebuild elements and modal defaults.

        ``material`` defaults to the current material.  Modal properties are
        re-derived unless ``modal`` is given.
        """
        self.cancel()
        self._build(building, material or self.material, modal)

    def set_excitation(self, excitation: SeismicExcitation) -> None:
        """Cancel any active run and rebuild the element set."""
        self.cancel()
        self._excitation = excitation
        supplied = self.model.modal if self.model.modal_source == "supplied" else None
        self._build(self.building, self.material, supplied)

    def set_modal_properties(self, modal: ModalProperties | None) -> None:
        """Replace (or with ``None`` re-derive) the modal properties."""
        self.cancel()
        self._build(self.building, self.material, modal)

    def _build(
        self,
        building: BuildingModel,
        material: MaterialProperties,
        modal: ModalProperties | None,
    ) -> None:
        model = StructuralModel(
            building,
            material,
            modal,
            default_building_weight=self.config.default_building_weight,
        )
        self.model = model
        self.damage = DamageAccumulator(
            model.elements,
            material,
            model.n_stories,
            displacement_threshold=self.config.displacement_threshold,
        )
        self._run = None
        self._result = None
        self._error = None

    # ------------------------------------------------------------------ #
    # Listeners
    # ------------------------------------------------------------------ #

    def on_frame(self, callback: Callable[[SeismicSimulationEngine], None]) -> Callable:
        """Register *callback(engine)*, called after every running step."""
        self._listeners["frame"].append(callback)
        return callback

    def on_complete(self, callback: Callable[[SimulationResult], None]) -> Callable:
        self._listeners["complete"].append(callback)
        return callback

    def on_error(self, callback: Callable[[SimulationError], None]) -> Callable:
        self._listeners["error"].append(callback)
        return callback

    def _emit(self, event: str, payload) -> None:
        for callback in list(self._listeners[event]):
            callback(payload)

    # ------------------------------------------------------------------ #
    # Run control
    # ------------------------------------------------------------------ #

    def _select_strategy(self) -> ResponseStrategy:
        if self.config.force_fallback:
            logger.info("Fallback requested: using spectral response strategy")
            return SpectralResponseStrategy()
        if not self.scene.supports_detailed():
            logger.warning("Scene lacks detailed support: using spectral response strategy")
            return SpectralResponseStrategy()
        return DetailedResponseStrategy()

    def start(self) -> RunState:
        """Cancel any active run and start a fresh one.

        Returns the state of the new run (``RUNNING``, or ``FAILED`` when the
        scene is unavailable).
        """
        self.cancel()
        self.damage.reset()
        self._result = None
        self._error = None

        excitation_model = ExcitationModel(
            self._excitation,
            self.model.natural_frequency,
            self.material.damping_factor,
        )
        self._run = ResponseIntegrator(
            self.model,
            excitation_model,
            self.damage,
            self._select_strategy(),
            clock=self.clock,
            config=self.config,
        )

        if not self.scene.is_available():
            self._fail(SceneUnavailable("No rendering context available; run aborted"))
            return self._run.state

        self._run.start()
        return self._run.state

    def step(self) -> bool:
        """Advance the active run by one frame.  True while still running."""
        run = self._run
        if run is None:
            return False
        before = run.state
        state = run.step()

        if state is RunState.RUNNING:
            if self._listeners["frame"] and not run.suspended:
                self._emit("frame", self)
            return True

        if before is RunState.RUNNING:
            if state is RunState.COMPLETED:
                self._result = run.result
                if self._listeners["frame"]:
                    self._emit("frame", self)
                self._emit("complete", run.result)
            elif state is RunState.FAILED:
                self._error = run.error
                self._emit("error", run.error)
        return False

    def suspend(self) -> None:
        """Pause stepping; elapsed time stops accumulating."""
        if self._run is not None:
            self._run.suspend()

    def resume(self) -> None:
        if self._run is not None:
            self._run.resume()

    def cancel(self) -> bool:
        """Cooperatively cancel the active run.  No result is produced."""
        if self._run is None:
            return False
        return self._run.cancel()

    def reset(self, clear_damage: bool = True) -> None:
        """Cancel, restore reference positions and drop the last result.

        Idempotent.  With ``clear_damage=False`` element damage is kept.
        """
        self.cancel()
        self._run = None
        if clear_damage:
            self.damage.reset()
        self._result = None
        self._error = None
        logger.debug("Engine reset (clear_damage=%s)", clear_damage)

    def run(self, max_steps: int | None = None) -> SimulationResult | None:
        """Drive the step loop until the run ends (headless).

        Starts a run if none is active.  Between frames the clock sleeps one
        ``config.frame_interval``; with a ``SimulatedClock`` this advances
        time instantly.

        Returns ``None`` without stepping further when the run is (or
        becomes) suspended; call ``resume()`` and ``run()`` again to finish.
        """
        if self.state is not RunState.RUNNING:
            self.start()
        steps = 0
        while not self.suspended and self.step():
            steps += 1
            if max_steps is not None and steps >= max_steps:
                break
            self.clock.sleep(self.config.frame_interval)
        if self.suspended:
            logger.info("Run suspended at t=%.3f s; step loop left", self.elapsed)
        return self._result

    def _fail(self, error: SimulationError) -> None:
        self._run.abort(error)
        self._error = error
        self._emit("error", error)

    # ------------------------------------------------------------------ #
    # Observation
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> RunState:
        return self._run.state if self._run is not None else RunState.IDLE

    @property
    def result(self) -> SimulationResult | None:
        return self._result

    @property
    def error(self) -> SimulationError | None:
        return self._error

    @property
    def elapsed(self) -> float:
        return self._run.elapsed if self._run is not None else 0.0

    @property
    def progress(self) -> float:
        return self._run.progress if self._run is not None else 0.0

    @property
    def suspended(self) -> bool:
        return self._run is not None and self._run.suspended

    @property
    def history(self) -> ResponseHistory | None:
        return self._run.history if self._run is not None else None

    @property
    def positions(self):
        """Current (n, 3) element positions (read-only copy)."""
        if self._run is None:
            return self.model.elements.references.copy()
        return self._run.positions.copy()

    def snapshot(self) -> tuple[ElementState, ...]:
        """Immutable per-element state for the presentation layer."""
        elements = self.model.elements
        positions = self._run.positions if self._run is not None else elements.references
        damage = self.damage.values
        return tuple(
            ElementState(
                id=elements.ids[i],
                kind=elements.kind_of(i).value,
                story=int(elements.stories[i]),
                position=(
                    float(positions[i, 0]),
                    float(positions[i, 1]),
                    float(positions[i, 2]),
                ),
                damage=float(damage[i]),
            )
            for i in range(len(elements))
        )
