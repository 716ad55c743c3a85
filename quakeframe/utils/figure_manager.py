"""
Figure Manager for Simulation Reports
=====================================

Saves matplotlib figures produced from simulation runs with:
  - Sequential naming: Figure_1.png, Figure_2.png, ... (or a custom label)
  - 300 DPI minimum resolution
  - A persistent caption registry (caption_registry.json), exportable to
    Markdown for run reports

Usage:
    from quakeframe.utils.figure_manager import FigureManager

    fm = FigureManager(output_dir="data/runs/figures")
    fig = plot_story_drifts(result)
    fm.save(fig, caption="Peak inter-story drift, 4-story steel frame.")

Author: Mikisbell
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

logger = logging.getLogger(__name__)

_REGISTRY_NAME = "caption_registry.json"
MIN_DPI = 300


class FigureManager:
    """
    Saves figures with sequential names and keeps a caption registry.

    Parameters
    ----------
    output_dir : str or Path
        Directory where figures are written (created if missing).
    dpi : int
        Resolution; raised to 300 if lower.
    fmt : str
        Image format: 'png', 'pdf', 'svg'.
    close : bool
        Close each figure after saving to release memory in batch runs.
    """

    def __init__(
        self,
        output_dir: str | Path = "figures",
        dpi: int = MIN_DPI,
        fmt: str = "png",
        close: bool = True,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.dpi = max(dpi, MIN_DPI)
        self.fmt = fmt
        self.close = close
        self._captions: list[dict] = self._load_registry()
        self._counter = self._next_index()

        logger.debug(
            "FigureManager: dir=%s, next_index=%d, dpi=%d",
            self.output_dir,
            self._counter,
            self.dpi,
        )

    # -------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------
    def save(self, fig: Figure, caption: str = "", label: str | None = None) -> Path:
        """
        Write *fig* and register its caption.

        Returns
        -------
        Path
            Path of the written file.
        """
        filename = f"{label}.{self.fmt}" if label else f"Figure_{self._counter}.{self.fmt}"
        filepath = self.output_dir / filename

        fig.savefig(filepath, dpi=self.dpi, bbox_inches="tight", facecolor="white")
        if self.close:
            plt.close(fig)

        self._captions.append(
            {
                "figure": filename,
                "number": self._counter,
                "caption": caption,
                "path": str(filepath),
            }
        )
        self._save_registry()
        logger.info("Figure saved → %s (%d DPI)", filepath, self.dpi)

        self._counter += 1
        return filepath

    @property
    def captions(self) -> list[dict]:
        return list(self._captions)

    def export_captions_markdown(self) -> str:
        """Write figure_captions.md and return its text."""
        lines = ["## List of Figures\n"]
        lines.extend(f"**Figure {e['number']}.** {e['caption']}\n" for e in self._captions)
        text = "\n".join(lines)
        (self.output_dir / "figure_captions.md").write_text(text, encoding="utf-8")
        return text

    # -------------------------------------------------------------------
    # Registry persistence
    # -------------------------------------------------------------------
    def _next_index(self) -> int:
        numbers = [e.get("number", 0) for e in self._captions]
        return max(numbers, default=0) + 1

    def _load_registry(self) -> list[dict]:
        registry = self.output_dir / _REGISTRY_NAME
        if registry.exists():
            with open(registry, encoding="utf-8") as f:
                return json.load(f)
        return []

    def _save_registry(self) -> None:
        with open(self.output_dir / _REGISTRY_NAME, "w", encoding="utf-8") as f:
            json.dump(self._captions, f, indent=2, ensure_ascii=False)
