"""
QuakeFrame: Seismic Response Simulation Engine for Multi-Story Frames

A Python framework for fast, engineering-order-of-magnitude estimates of the
dynamic response of rectangular frame buildings to synthetic earthquakes:
- Lumped-parameter structural model with an approximate first-mode shape
- Closed-form resonance amplification and damped harmonic excitation
- Cumulative per-element damage tracking with drift-based damage states

Results are intended for visualization and comparison, not for
code-compliant structural design.
"""

__version__ = "0.1.0"
__author__ = "Mikisbell"
__description__ = "Seismic Response Simulation Engine for Multi-Story Frames"
