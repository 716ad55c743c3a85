"""
clock.py — Frame clocks driving the step loop
=============================================

The integrator measures elapsed time from a clock, never from a step count,
so results are independent of the achieved frame rate.

    WallClock       real time (``time.perf_counter``), sleeps between frames
    SimulatedClock  deterministic time that advances only when told to;
                    used for headless batch runs and tests

Author: Mikisbell
"""

from __future__ import annotations

import time as timer


class WallClock:
    """Monotonic wall-clock time in seconds."""

    def now(self) -> float:
        return timer.perf_counter()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            timer.sleep(seconds)


class SimulatedClock:
    """Deterministic clock: ``sleep()`` advances time instantly."""

    def __init__(self, start: float = 0.0) -> None:
        self._t = float(start)

    def now(self) -> float:
        return self._t

    def sleep(self, seconds: float) -> None:
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"cannot move clock backwards by {seconds} s")
        self._t += seconds
