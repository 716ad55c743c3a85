"""
structural — Building definition and lumped-parameter structural model.

Modules
-------
building : BuildingModel geometry and MaterialProperties catalogue.
model    : Element table, mass/stiffness estimate and modal properties.
"""

from quakeframe.structural.building import BuildingModel, MaterialProperties
from quakeframe.structural.model import (
    ElementKind,
    ElementTable,
    ModalProperties,
    StructuralElement,
    StructuralModel,
    approximate_period,
)

__all__ = [
    "BuildingModel",
    "MaterialProperties",
    "ElementKind",
    "ElementTable",
    "ModalProperties",
    "StructuralElement",
    "StructuralModel",
    "approximate_period",
]
