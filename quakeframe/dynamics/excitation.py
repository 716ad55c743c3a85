"""
excitation.py — Synthetic seismic excitation and resonance amplification
========================================================================

``SeismicExcitation`` holds the immutable input parameters of one run;
``ExcitationModel`` binds them to a structure's natural frequency and
material damping and produces the per-element horizontal offsets of the
damped harmonic excitation.

Resonance Law
-------------
    r = f_exc / f_n
    R(r) = 1 + 2·exp(−4·(r − 1)²)    for 0 < r < 2
    R(r) = 1                          otherwise

This is a closed-form single-degree-of-freedom approximation of response
spectrum amplification (peak ≈ 3 at r = 1), not a code-compliant response
spectrum.

Offsets
-------
    A(t)  = 0.1·PGA · φ · 3 · R · exp(−ζ·c_mat·π·t)
    u_x   = sin(2π·f·t) · A
    u_z   = cos(2π·f·t + 0.4) · A · 0.7

The 0.4 rad phase shift decorrelates the two horizontal axes to approximate
bidirectional, non-planar shaking.  An axis is suppressed entirely when the
excitation direction restricts motion to the other one.

Author: Mikisbell
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

DIRECTIONS = ("x", "z", "both")

INTENSITY_SCALE = 0.1  # g → display-scale displacement amplitude (m)
MODAL_GAIN = 3.0
SECONDARY_PHASE = 0.4  # rad
SECONDARY_RATIO = 0.7


# ═══════════════════════════════════════════════════════════════════════════
# Input parameters
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SeismicExcitation:
    """Synthetic earthquake parameters, immutable per run."""

    intensity: float = 0.3  # PGA (g)
    frequency: float = 2.0  # Hz
    duration: float = 15.0  # s
    direction: str = "both"  # "x" | "z" | "both"
    damping_ratio: float = 0.05

    # Code-style spectral parameters (base shear only)
    spectral_acceleration: float = 0.75  # Sa (g)
    importance_factor: float = 1.0  # I
    response_modification: float = 4.5  # R

    def __post_init__(self) -> None:
        for name in ("intensity", "frequency", "duration"):
            value = getattr(self, name)
            if not (math.isfinite(value) and value > 0):
                raise ValueError(f"{name} must be > 0, got {value}")
        if self.direction not in DIRECTIONS:
            raise ValueError(f"direction must be one of {DIRECTIONS}, got {self.direction!r}")
        if not 0 < self.damping_ratio < 1:
            raise ValueError(f"damping_ratio must lie in (0, 1), got {self.damping_ratio}")
        if self.spectral_acceleration < 0:
            raise ValueError(
                f"spectral_acceleration must be ≥ 0, got {self.spectral_acceleration}"
            )
        if self.importance_factor <= 0:
            raise ValueError(f"importance_factor must be > 0, got {self.importance_factor}")
        if self.response_modification < 1:
            raise ValueError(
                f"response_modification must be ≥ 1, got {self.response_modification}"
            )


def resonance_factor(excitation_frequency: float, natural_frequency: float) -> float:
    """Resonance amplification factor (≥ 1) for a frequency ratio.

    Parameters
    ----------
    excitation_frequency : float
        Dominant frequency of the ground motion (Hz).
    natural_frequency : float
        Fundamental frequency of the structure (Hz).
    """
    if natural_frequency <= 0:
        return 1.0
    r = excitation_frequency / natural_frequency
    if 0 < r < 2:
        return 1.0 + 2.0 * math.exp(-4.0 * (r - 1.0) ** 2)
    return 1.0


# ═══════════════════════════════════════════════════════════════════════════
# Excitation model
# ═══════════════════════════════════════════════════════════════════════════


class ExcitationModel:
    """Damped harmonic excitation bound to one structure.

    Parameters
    ----------
    excitation : SeismicExcitation
        Ground-motion parameters.
    natural_frequency : float
        Fundamental frequency of the structure (Hz).
    material_damping_factor : float
        Material multiplier on the damping ratio (see
        ``MaterialProperties.damping_factor``).
    """

    def __init__(
        self,
        excitation: SeismicExcitation,
        natural_frequency: float,
        material_damping_factor: float = 1.0,
    ) -> None:
        self.excitation = excitation
        self.natural_frequency = natural_frequency
        self.material_damping_factor = material_damping_factor
        self.resonance = resonance_factor(excitation.frequency, natural_frequency)
        self.enable_x = 0.0 if excitation.direction == "z" else 1.0
        self.enable_z = 0.0 if excitation.direction == "x" else 1.0

        logger.debug(
            "Excitation: PGA=%.2fg f=%.2f Hz dir=%s, f_n=%.3f Hz → resonance=%.3f",
            excitation.intensity,
            excitation.frequency,
            excitation.direction,
            natural_frequency,
            self.resonance,
        )

    @property
    def base_intensity(self) -> float:
        return self.excitation.intensity * INTENSITY_SCALE

    @property
    def duration(self) -> float:
        return self.excitation.duration

    def damping_factor(self, elapsed: float) -> float:
        """Amplitude decay exp(−ζ·c_mat·π·t)."""
        zeta = self.excitation.damping_ratio
        return math.exp(-zeta * self.material_damping_factor * math.pi * elapsed)

    def amplitude(self, mode_amplification, elapsed: float):
        """Scaled intensity per element at time *elapsed* (m)."""
        return (
            self.base_intensity
            * np.asarray(mode_amplification)
            * MODAL_GAIN
            * self.resonance
            * self.damping_factor(elapsed)
        )

    def offsets(self, mode_amplification, elapsed: float) -> tuple[np.ndarray, np.ndarray]:
        """Horizontal offsets (u_x, u_z) in m for each mode weight."""
        scaled = self.amplitude(mode_amplification, elapsed)
        phase = 2.0 * math.pi * self.excitation.frequency * elapsed
        u_x = math.sin(phase) * scaled * self.enable_x
        u_z = math.cos(phase + SECONDARY_PHASE) * scaled * SECONDARY_RATIO * self.enable_z
        return u_x, u_z

    def peak_pattern_amplitude(self, samples: int = 720) -> float:
        """Peak of √(u_x² + u_z²) per unit amplitude over one cycle."""
        theta = np.linspace(0.0, 2.0 * math.pi, samples, endpoint=False)
        u_x = np.sin(theta) * self.enable_x
        u_z = np.cos(theta + SECONDARY_PHASE) * SECONDARY_RATIO * self.enable_z
        return float(np.max(np.hypot(u_x, u_z)))

    def ground_motion(self, times) -> np.ndarray:
        """Synthetic ground acceleration (g) at *times*."""
        t = np.asarray(times, dtype=float)
        zeta = self.excitation.damping_ratio
        envelope = np.exp(-zeta * self.material_damping_factor * np.pi * t)
        return self.excitation.intensity * np.sin(2.0 * np.pi * self.excitation.frequency * t) * envelope
