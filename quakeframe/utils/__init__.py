"""
Utility package for QuakeFrame.

Modules:
    figure_manager - Sequential figure saving and caption registry
"""

from quakeframe.utils.figure_manager import FigureManager

__all__ = ["FigureManager"]
