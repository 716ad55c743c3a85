"""
config.py — SimulationConfig: Single source of truth for engine tuning
======================================================================

Centralizes the knobs that govern how a run is paced and how much work each
frame performs (frame rate, element batching, damage normalisation), so that
the engine, the CLI and any saved run metadata always agree.  The CLI can
load a persisted config with ``--config`` and every saved run embeds the
config it was produced with.

Usage::

    from quakeframe.config import SimulationConfig

    cfg = SimulationConfig(frame_rate=30.0, batch_size=40)
    cfg.validate()
    cfg.save("data/runs")

    cfg = SimulationConfig.load("data/runs")

Author: Mikisbell
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

_CONFIG_FILENAME = "simulation_config.json"


@dataclass
class SimulationConfig:
    """Tuning parameters for the response simulation engine."""

    # ------------------------------------------------------------------ #
    # Frame pacing
    # ------------------------------------------------------------------ #
    frame_rate: float = 60.0  # frames/s of the headless frame clock

    # ------------------------------------------------------------------ #
    # Element batching (detailed strategy)
    # ------------------------------------------------------------------ #
    batch_threshold: int = 500  # elements; above this, rotate batches
    batch_size: int = 20  # elements updated per step when batching

    # ------------------------------------------------------------------ #
    # Damage model
    # ------------------------------------------------------------------ #
    displacement_threshold: float = 0.05  # m  (stress = 1 at this displacement)
    default_building_weight: float = 1000.0  # kN  (only if no mass is derivable)

    # ------------------------------------------------------------------ #
    # Strategy / output
    # ------------------------------------------------------------------ #
    force_fallback: bool = False  # use the closed-form spectral strategy
    record_history: bool = True  # keep per-step response history
    output_dir: str = "data/runs"

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def save(self, directory: Path | str) -> Path:
        """Serialize config to *directory*/simulation_config.json."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        config_file = directory / _CONFIG_FILENAME
        with open(config_file, "w") as f:
            json.dump(asdict(self), f, indent=4)
        logger.info("SimulationConfig saved → %s", config_file)
        return config_file

    @classmethod
    def load(cls, directory: Path | str) -> SimulationConfig:
        """Load config from *directory*/simulation_config.json.

        Parameters
        ----------
        directory:
            Path to a directory containing ``simulation_config.json``, or
            directly to a JSON file.

        Raises
        ------
        FileNotFoundError
            If the config file does not exist.
        ValueError
            If the file holds keys that are not config fields, or values out
            of range.
        """
        path = Path(directory)
        config_file = path if path.suffix == ".json" else path / _CONFIG_FILENAME
        if not config_file.exists():
            raise FileNotFoundError(f"{_CONFIG_FILENAME} not found in '{directory}'.")
        with open(config_file) as f:
            data = json.load(f)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys in {config_file}: {', '.join(unknown)}")

        cfg = cls(**data)
        cfg.validate()
        return cfg

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def validate(self) -> None:
        """Raise ``ValueError`` if parameters are out of valid range."""
        if self.frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {self.frame_rate}")
        if self.batch_threshold < 1:
            raise ValueError(f"batch_threshold must be ≥ 1, got {self.batch_threshold}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be ≥ 1, got {self.batch_size}")
        if self.displacement_threshold <= 0:
            raise ValueError(
                f"displacement_threshold must be positive, got {self.displacement_threshold}"
            )
        if self.default_building_weight <= 0:
            raise ValueError(
                f"default_building_weight must be positive, got {self.default_building_weight}"
            )

    @property
    def frame_interval(self) -> float:
        """Seconds between frames of the headless clock."""
        return 1.0 / self.frame_rate
