"""
integrator.py — Frame-clock driven response integration
=======================================================

Advances one simulation run through simulated time.  Each step reads the
elapsed time from a clock (never from a step count), computes the damped
harmonic offset of every scheduled element, tracks the per-story maximum
displacement and feeds the instantaneous displacement into the damage
accumulator.

State Machine
-------------
    IDLE ──start()──► RUNNING ──► COMPLETED   (elapsed ≥ duration)
                         │──────► CANCELLED   (cancel(), one-shot flag)
                         └──────► FAILED      (Divergence / SceneUnavailable)

Strategies
----------
The response path is selected once, at run start:

    DetailedResponseStrategy   per-element integration; above
                               ``batch_threshold`` elements a rotating batch
                               is updated each step.  A final sweep at the
                               full duration reaches every element whose
                               last update lags behind it, including any the
                               rotation never visited.
    SpectralResponseStrategy   closed-form peak envelope, no per-element
                               integration (degraded / 2D fidelity).

Suspension
----------
``suspend()`` freezes elapsed time; ``resume()`` continues the same run.
Wall time spent suspended is excluded from ``elapsed`` and the rotating
batch cursor is untouched.

Author: Mikisbell
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from quakeframe.config import SimulationConfig
from quakeframe.dynamics.clock import WallClock
from quakeframe.dynamics.damage import DamageAccumulator, damage_time_factor
from quakeframe.dynamics.excitation import MODAL_GAIN, ExcitationModel
from quakeframe.dynamics.results import ResultAggregator, SimulationResult, damage_percentage
from quakeframe.exceptions import Divergence, SimulationError
from quakeframe.structural.model import StructuralModel

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.CANCELLED, RunState.FAILED)


# ═══════════════════════════════════════════════════════════════════════════
# Response history
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class ResponseHistory:
    """Per-step record of one run (story order: bottom first)."""

    n_stories: int
    times: list[float] = field(default_factory=list)
    ground_accel: list[float] = field(default_factory=list)  # g
    displacements: list[np.ndarray] = field(default_factory=list)  # m, per story
    mean_damage: list[float] = field(default_factory=list)

    def record(self, t: float, ground_accel: float, displacement, damage: float) -> None:
        self.times.append(float(t))
        self.ground_accel.append(float(ground_accel))
        self.displacements.append(np.asarray(displacement, dtype=float).copy())
        self.mean_damage.append(float(damage))

    def __len__(self) -> int:
        return len(self.times)

    def as_arrays(self) -> dict[str, np.ndarray]:
        n = len(self.times)
        disp = np.vstack(self.displacements) if n else np.zeros((0, self.n_stories))
        return {
            "time": np.asarray(self.times),
            "ground_accel": np.asarray(self.ground_accel),
            "displacement": disp,
            "mean_damage": np.asarray(self.mean_damage),
        }


# ═══════════════════════════════════════════════════════════════════════════
# Strategies
# ═══════════════════════════════════════════════════════════════════════════


class ResponseStrategy(ABC):
    """One way of turning a run's elapsed time into response state."""

    name = "abstract"

    def begin(self, run: ResponseIntegrator) -> None:
        """Called once when the run enters RUNNING."""

    @abstractmethod
    def advance(self, run: ResponseIntegrator, elapsed: float, progress: float) -> None:
        """Advance response state to *elapsed* seconds."""

    def finish(self, run: ResponseIntegrator) -> None:
        """Called once when the duration has elapsed, before aggregation."""

    @abstractmethod
    def damage_percentage(self, run: ResponseIntegrator) -> float:
        """Damage index (0–100) reported in the result."""


class DetailedResponseStrategy(ResponseStrategy):
    """Per-element time integration with optional rotating batches."""

    name = "detailed"

    def __init__(self) -> None:
        self.batching = False
        self.batch_size = 0
        self.cursor = 0
        self.visited = np.zeros(0, dtype=bool)

    def begin(self, run: ResponseIntegrator) -> None:
        n = len(run.model.elements)
        self.batching = n > run.config.batch_threshold
        self.batch_size = min(run.config.batch_size, n) if self.batching else n
        self.cursor = 0
        self.visited = np.zeros(n, dtype=bool)
        if self.batching:
            logger.info(
                "%d elements > %d: updating rotating batches of %d",
                n,
                run.config.batch_threshold,
                self.batch_size,
            )

    def next_batch(self) -> np.ndarray:
        n = self.visited.size
        if not self.batching:
            return np.arange(n)
        indices = (self.cursor + np.arange(self.batch_size)) % n
        self.cursor = int((self.cursor + self.batch_size) % n)
        return indices

    def advance(self, run: ResponseIntegrator, elapsed: float, progress: float) -> None:
        indices = self.next_batch()
        run.update_elements(indices, elapsed)
        self.visited[indices] = True

    def finish(self, run: ResponseIntegrator) -> None:
        stale = int(np.sum(~self.visited))
        if stale:
            logger.debug("Final sweep reaches %d unvisited elements", stale)
        lagging = np.flatnonzero(run.last_update < run.duration)
        if lagging.size:
            run.update_elements(lagging, run.duration)
            self.visited[lagging] = True

    def damage_percentage(self, run: ResponseIntegrator) -> float:
        return damage_percentage(run.damage.values)


class SpectralResponseStrategy(ResponseStrategy):
    """Closed-form peak envelope; elements stay at their references."""

    name = "spectral"

    def advance(self, run: ResponseIntegrator, elapsed: float, progress: float) -> None:
        pass

    def finish(self, run: ResponseIntegrator) -> None:
        exc = run.excitation
        run.story_max[:] = (
            exc.base_intensity
            * run.story_weights
            * MODAL_GAIN
            * exc.resonance
            * exc.peak_pattern_amplitude()
        )

    def damage_percentage(self, run: ResponseIntegrator) -> float:
        return min(run.excitation.excitation.intensity * 10.0, 100.0)


# ═══════════════════════════════════════════════════════════════════════════
# Integrator
# ═══════════════════════════════════════════════════════════════════════════


class ResponseIntegrator:
    """State machine of a single simulation run.

    A run owns its element positions, per-story maxima and (through the
    engine) a freshly reset damage map.  It is single-use: a finished run
    is replaced, never restarted.

    Usage
    -----
        run = ResponseIntegrator(model, excitation, damage, DetailedResponseStrategy())
        run.start()
        while run.step() is RunState.RUNNING:
            clock.sleep(1 / 60)
        run.result
    """

    def __init__(
        self,
        model: StructuralModel,
        excitation: ExcitationModel,
        damage: DamageAccumulator,
        strategy: ResponseStrategy,
        clock=None,
        config: SimulationConfig | None = None,
    ) -> None:
        self.model = model
        self.excitation = excitation
        self.damage = damage
        self.strategy = strategy
        self.clock = clock or WallClock()
        self.config = config or SimulationConfig()

        elements = model.elements
        self.positions = elements.references.copy()
        self.story_max = np.zeros(model.n_stories)
        self.last_update = np.zeros(len(elements))  # s, per element
        self.story_weights = model.story_mode_weights()
        self._mode_amp = model.mode_amplification()
        self._aggregator = ResultAggregator(model, excitation)

        self.history = ResponseHistory(model.n_stories) if self.config.record_history else None
        self.state = RunState.IDLE
        self.result: SimulationResult | None = None
        self.error: SimulationError | None = None
        self.n_steps = 0

        self._cancel_requested = False
        self._in_step = False
        self._start_time: float | None = None
        self._paused_at: float | None = None
        self._paused_total = 0.0
        self._final_elapsed: float | None = None

    # ------------------------------------------------------------------ #
    # Time
    # ------------------------------------------------------------------ #

    @property
    def duration(self) -> float:
        return self.excitation.duration

    @property
    def suspended(self) -> bool:
        return self._paused_at is not None

    @property
    def elapsed(self) -> float:
        """Seconds of simulated excitation so far (suspension excluded)."""
        if self._final_elapsed is not None:
            return self._final_elapsed
        if self._start_time is None:
            return 0.0
        now = self._paused_at if self._paused_at is not None else self.clock.now()
        return max(0.0, now - self._start_time - self._paused_total)

    @property
    def progress(self) -> float:
        return min(self.elapsed / self.duration, 1.0)

    # ------------------------------------------------------------------ #
    # Control
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"run already {self.state.value}; start a new run instead")
        self._start_time = self.clock.now()
        self.state = RunState.RUNNING
        self.strategy.begin(self)
        logger.info(
            "Run started: %s strategy, %d elements, %.1f s, resonance ×%.2f",
            self.strategy.name,
            len(self.model.elements),
            self.duration,
            self.excitation.resonance,
        )

    def suspend(self) -> None:
        if self.state is RunState.RUNNING and self._paused_at is None:
            self._paused_at = self.clock.now()
            logger.debug("Run suspended at t=%.3f s", self.elapsed)

    def resume(self) -> None:
        if self._paused_at is not None:
            self._paused_total += self.clock.now() - self._paused_at
            self._paused_at = None
            logger.debug("Run resumed at t=%.3f s", self.elapsed)

    def cancel(self) -> bool:
        """Request cancellation; honoured now unless a step is executing.

        Returns True if the request was accepted.
        """
        if self.state.is_terminal:
            return False
        self._cancel_requested = True
        if not self._in_step:
            self._honor_cancel()
        return True

    def abort(self, error: SimulationError) -> None:
        """Move to FAILED with *error*, keeping last-good positions."""
        self._final_elapsed = self.elapsed
        self._paused_at = None
        self.state = RunState.FAILED
        self.error = error
        logger.error("Run failed at t=%.3f s: %s", self._final_elapsed, error)

    def _honor_cancel(self) -> None:
        self._cancel_requested = False
        if self.state.is_terminal:
            return
        self._final_elapsed = self.elapsed
        self._paused_at = None
        self.positions[:] = self.model.elements.references
        self.state = RunState.CANCELLED
        logger.info("Run cancelled at t=%.3f s", self._final_elapsed)

    # ------------------------------------------------------------------ #
    # Stepping
    # ------------------------------------------------------------------ #

    def step(self) -> RunState:
        """Advance one frame; returns the state after the step."""
        if self._cancel_requested:
            self._honor_cancel()
            return self.state
        if self.state is not RunState.RUNNING or self.suspended:
            return self.state

        self._in_step = True
        try:
            elapsed = self.elapsed
            if elapsed >= self.duration:
                self._complete()
            else:
                self.strategy.advance(self, elapsed, elapsed / self.duration)
                self._record(elapsed)
                self.n_steps += 1
        except Divergence as exc:
            self.abort(exc)
        finally:
            self._in_step = False
        return self.state

    def update_elements(self, indices: np.ndarray, elapsed: float) -> None:
        """Offset, track and damage the elements at *indices*.

        Every value is validated before any state is committed, so a
        ``Divergence`` leaves positions and damage at their last finite
        values.
        """
        elements = self.model.elements
        u_x, u_z = self.excitation.offsets(self._mode_amp[indices], elapsed)
        displacement = np.hypot(u_x, u_z)

        new_positions = elements.references[indices].copy()
        new_positions[:, 0] += u_x
        new_positions[:, 2] += u_z
        if not (np.all(np.isfinite(new_positions)) and np.all(np.isfinite(displacement))):
            raise Divergence(f"Non-finite element offset at t={elapsed:.4f} s")

        stories = elements.stories[indices]
        stresses = self.damage.stress(
            displacement,
            elements.stress_multipliers[indices],
            stories,
            self.excitation.resonance,
        )
        dtf = damage_time_factor(self.last_update[indices], elapsed, self.duration)
        new_damage = self.damage.propose(indices, stresses, dtf)

        self.positions[indices] = new_positions
        np.maximum.at(self.story_max, stories, displacement)
        self.damage.commit(indices, new_damage)
        self.last_update[indices] = elapsed

    def _record(self, elapsed: float) -> None:
        if self.history is None:
            return
        u_x, u_z = self.excitation.offsets(self.story_weights, elapsed)
        self.history.record(
            elapsed,
            float(self.excitation.ground_motion(elapsed)),
            np.hypot(u_x, u_z),
            self.damage.mean(),
        )

    def _complete(self) -> None:
        self._final_elapsed = self.duration
        self.strategy.finish(self)
        self._record(self.duration)
        self.result = self._aggregator.aggregate(
            self.story_max,
            self.strategy.damage_percentage(self),
            self.damage,
            self.strategy.name,
        )
        self.state = RunState.COMPLETED
        logger.info("Run completed in %d steps (%s)", self.n_steps, self.strategy.name)
