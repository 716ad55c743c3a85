"""
reporting.py — Run export: CSV history, JSON metadata and figures
=================================================================

Output Format
-------------
    <name>.csv        time, ground_accel, disp_1..disp_n, mean_damage
                      (displacements in m, story 1 = ground floor)
    <name>_meta.json  building, material, excitation, modal properties,
                      engine config, result and performance advisories

Figures
-------
    plot_story_drifts  horizontal bar chart of peak drifts, top story first
    plot_roof_history  roof displacement and ground acceleration vs. time

Author: Mikisbell
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import asdict
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from quakeframe.dynamics.damage import DAMAGE_STATES
from quakeframe.dynamics.integrator import ResponseHistory
from quakeframe.dynamics.results import EXCESSIVE_DRIFT_MM, SimulationResult, assess_performance
from quakeframe.utils.figure_manager import FigureManager

logger = logging.getLogger(__name__)

_DS_COLORS = {"None": "#1f77b4", "IO": "#2ecc71", "LS": "#f39c12", "CP": "#e74c3c"}


# ─────────────────────────────────────────────────────────────────────────────
# Data export
# ─────────────────────────────────────────────────────────────────────────────


def save_results(
    engine,
    output_dir: str | Path,
    name: str = "run",
) -> tuple[Path, Path]:
    """Save the last completed run of *engine* as CSV + JSON.

    Raises
    ------
    RuntimeError
        If the engine holds no completed result.
    """
    result: SimulationResult | None = engine.result
    if result is None:
        raise RuntimeError("No completed simulation result to save")

    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    safe_name = name.replace("/", "_").replace(" ", "_")
    csv_path = out_dir / f"{safe_name}.csv"
    json_path = out_dir / f"{safe_name}_meta.json"

    # ── CSV output ──────────────────────────────────────────────────────
    n_stories = engine.model.n_stories
    history: ResponseHistory | None = engine.history
    headers = ["time", "ground_accel"]
    headers.extend(f"disp_{i}" for i in range(1, n_stories + 1))
    headers.append("mean_damage")

    n_rows = 0
    with open(csv_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        if history is not None:
            arrays = history.as_arrays()
            n_rows = len(arrays["time"])
            for idx in range(n_rows):
                row = [arrays["time"][idx], arrays["ground_accel"][idx]]
                row.extend(arrays["displacement"][idx].tolist())
                row.append(arrays["mean_damage"][idx])
                writer.writerow(row)

    # ── JSON metadata ───────────────────────────────────────────────────
    modal = engine.model.modal
    metadata = {
        "building": asdict(engine.building),
        "material": {
            **asdict(engine.material),
            "damping_factor": engine.material.damping_factor,
            "damage_multiplier": engine.material.damage_multiplier,
        },
        "excitation": asdict(engine.excitation),
        "modal": {
            "source": engine.model.modal_source,
            "period": modal.period,
            "natural_frequency": modal.natural_frequency,
            "mode_shape": list(modal.mode_shape),
            "participation_factor": modal.participation_factor,
        },
        "structure": {
            "n_elements": len(engine.model.elements),
            "building_weight_kN": engine.model.building_weight,
            "stiffness_N_per_m": engine.model.stiffness,
        },
        "config": asdict(engine.config),
        "results": result.to_dict(),
        "assessment": assess_performance(result, modal.natural_frequency),
        "n_steps_recorded": n_rows,
    }
    with open(json_path, "w") as f:
        json.dump(metadata, f, indent=2)

    logger.info("Results saved: %s, %s", csv_path.name, json_path.name)
    return csv_path, json_path


# ─────────────────────────────────────────────────────────────────────────────
# Figures
# ─────────────────────────────────────────────────────────────────────────────


def plot_story_drifts(result: SimulationResult):
    n = len(result.story_drifts)
    stories = [f"S{n - i}" for i in range(n)]  # top story first
    states = result.damage_states or ("None",) * n
    colors = [_DS_COLORS.get(s, _DS_COLORS["None"]) for s in states]

    fig, ax = plt.subplots(figsize=(6, max(3, n * 0.6)))
    ax.barh(stories, result.story_drifts, color=colors, edgecolor="white", linewidth=0.5)
    ax.axvline(
        EXCESSIVE_DRIFT_MM,
        color="#d62728",
        linestyle="--",
        linewidth=1.0,
        label=f"Advisory limit ({EXCESSIVE_DRIFT_MM:.0f} mm)",
    )
    ax.set_xlabel("Peak inter-story drift (mm)")
    ax.set_title(f"Story drifts ({result.strategy}, ×{result.resonance_factor:.2f} resonance)")
    ax.legend(fontsize=8)
    ax.invert_yaxis()
    ax.grid(True, axis="x", alpha=0.3)
    fig.tight_layout()
    return fig


def plot_roof_history(history: ResponseHistory):
    arrays = history.as_arrays()
    t = arrays["time"]
    roof = arrays["displacement"][:, -1] * 100.0 if len(t) else np.zeros(0)

    fig, (ax_u, ax_g) = plt.subplots(2, 1, figsize=(7, 4.5), sharex=True)
    ax_u.plot(t, roof, color="#1f77b4", linewidth=1.2)
    ax_u.set_ylabel("Roof disp. (cm)")
    ax_u.grid(True, alpha=0.3)
    ax_g.plot(t, arrays["ground_accel"], color="#7f7f7f", linewidth=0.8)
    ax_g.set_ylabel("Ground accel. (g)")
    ax_g.set_xlabel("Time (s)")
    ax_g.grid(True, alpha=0.3)
    fig.tight_layout()
    return fig


def save_figures(engine, output_dir: str | Path) -> list[Path]:
    """Save drift and roof-history figures of the last completed run."""
    result = engine.result
    if result is None:
        raise RuntimeError("No completed simulation result to plot")

    fm = FigureManager(output_dir=output_dir)
    worst = max(result.story_drifts) if result.story_drifts else 0.0
    limit = DAMAGE_STATES["IO"] * engine.building.story_height * 1000.0
    paths = [
        fm.save(
            plot_story_drifts(result),
            caption=(
                f"Peak inter-story drifts (max {worst:.2f} mm; IO limit {limit:.1f} mm), "
                f"{engine.building.n_stories}-story {engine.material.type.lower()} frame."
            ),
            label="story_drifts",
        )
    ]
    if engine.history is not None and len(engine.history):
        paths.append(
            fm.save(
                plot_roof_history(engine.history),
                caption=(
                    f"Roof displacement and ground acceleration, "
                    f"PGA {engine.excitation.intensity:.2f} g at {engine.excitation.frequency:.2f} Hz."
                ),
                label="roof_history",
            )
        )
    return paths
