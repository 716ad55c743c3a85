"""
exceptions.py — Error taxonomy for the simulation engine
========================================================

    SimulationError      base class for every engine failure
    InvalidGeometry      construction-time, raised synchronously to the caller
    SceneUnavailable     rendering/backing context missing at run start
    Divergence           a computed position or damage value is non-finite

Run-time failures (``SceneUnavailable``, ``Divergence``) never escape the
step loop: they move the run to ``RunState.FAILED`` and are delivered through
the engine's error callbacks.  Cancellation is a terminal state, not an error.

Author: Mikisbell
"""

from __future__ import annotations


class SimulationError(Exception):
    """Base class for all simulation engine errors."""


class InvalidGeometry(SimulationError, ValueError):
    """Building geometry violates a construction invariant."""


class SceneUnavailable(SimulationError, RuntimeError):
    """The scene adapter cannot provide a backing context for the run."""


class Divergence(SimulationError, ArithmeticError):
    """A computed offset, position or damage value is not finite."""
