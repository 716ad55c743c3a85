"""Shared fixtures for the QuakeFrame test suite."""

import matplotlib

matplotlib.use("Agg")

import pytest

from quakeframe.config import SimulationConfig
from quakeframe.dynamics.clock import SimulatedClock
from quakeframe.dynamics.excitation import SeismicExcitation
from quakeframe.engine import SeismicSimulationEngine
from quakeframe.structural.building import BuildingModel, MaterialProperties
from quakeframe.structural.model import ModalProperties, StructuralModel


@pytest.fixture
def building():
    """Small 4-story, 2×1-bay frame, 12 m tall (3 m stories)."""
    return BuildingModel(length=10.0, width=6.0, height=12.0, n_stories=4, bays_x=2, bays_z=1)


@pytest.fixture
def steel():
    return MaterialProperties.steel()


@pytest.fixture
def model(building, steel):
    return StructuralModel(building, steel)


@pytest.fixture
def modal_2hz():
    """Supplied modal properties: f = 2 Hz (T = 0.5 s)."""
    return ModalProperties.sinusoidal(0.5, 4)


@pytest.fixture
def clock():
    return SimulatedClock()


@pytest.fixture
def short_excitation():
    return SeismicExcitation(intensity=0.3, frequency=2.0, duration=2.0)


@pytest.fixture
def config():
    return SimulationConfig(frame_rate=30.0)


@pytest.fixture
def engine(building, steel, short_excitation, modal_2hz, config, clock):
    return SeismicSimulationEngine(
        building=building,
        material=steel,
        excitation=short_excitation,
        modal=modal_2hz,
        config=config,
        clock=clock,
    )
