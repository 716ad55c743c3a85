"""
cli.py — Command-line runner for the Seismic Response Simulation Engine
=======================================================================

Builds a frame, runs one synthetic earthquake headlessly and prints the
summary response with performance advisories.

Usage::

    # Default 4-story steel frame, PGA 0.3 g at 2 Hz for 15 s
    python -m quakeframe

    # Concrete frame driven at its own natural frequency
    python -m quakeframe --material concrete --period 0.5 --frequency 2.0

    # Supplied mode shape (any scale; normalised), spectral fallback only
    python -m quakeframe --period 0.5 --mode-shape 0.3,0.6,0.85,1.0 --fallback

    # Pace against the wall clock and save CSV/JSON + figures
    python -m quakeframe --realtime --save-results --save-fig

Author: Mikisbell
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from quakeframe.config import SimulationConfig
from quakeframe.dynamics.clock import SimulatedClock, WallClock
from quakeframe.dynamics.excitation import DIRECTIONS, SeismicExcitation
from quakeframe.dynamics.integrator import RunState
from quakeframe.dynamics.results import SimulationResult, assess_performance
from quakeframe.engine import SeismicSimulationEngine
from quakeframe.exceptions import SimulationError
from quakeframe.structural.building import BuildingModel, MaterialProperties
from quakeframe.structural.model import ModalProperties

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Output formatting
# ─────────────────────────────────────────────────────────────────────────────


def _print_results(result: SimulationResult, notes: list[str], source: str) -> None:
    width = 60
    bar_max = 24

    print()
    print("=" * width)
    print("  Seismic Response Simulation")
    print(f"  Input : {source}")
    print("=" * width)
    print(f"  Max displacement   : {result.max_displacement:10.3f} cm")
    print(f"  Base shear         : {result.base_shear:10.2f} kN")
    print(f"  Period             : {result.period_of_vibration:10.3f} s")
    print(f"  Resonance factor   : {result.resonance_factor:10.3f}")
    print(f"  Damage             : {result.damage_percentage:10.2f} %")
    print(f"  Strategy           : {result.strategy:>10}")
    print("-" * width)
    print(f"  {'Story':<10} {'Drift':>10}  {'DS':<5} {'Bar'}")

    n = len(result.story_drifts)
    peak = max(result.story_drifts, default=0.0) or 1e-9
    states = result.damage_states or ("None",) * n
    for i, (drift, ds) in enumerate(zip(result.story_drifts, states)):
        bar = "█" * int(drift / peak * bar_max)
        print(f"  Story {n - i:<4} {drift:>7.3f} mm  {ds:<5} {bar}")

    if result.critical_elements:
        print("-" * width)
        print("  Most damaged elements")
        for e in result.critical_elements:
            print(f"    {e['id']:<22} {e['kind']:<7} d={e['damage']:.4f}")

    print("=" * width)
    for note in notes or ["No structural concerns flagged."]:
        print(f"  • {note}")
    print("=" * width)
    print()


def _parse_shape(text: str) -> list[float]:
    try:
        return [float(v) for v in text.split(",") if v.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid mode shape '{text}'") from None


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quakeframe",
        description="Seismic response simulation of a rectangular multi-story frame",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    geo = parser.add_argument_group("building")
    geo.add_argument("--length", type=float, default=20.0, help="Plan length along x (m)")
    geo.add_argument("--width", type=float, default=15.0, help="Plan width along z (m)")
    geo.add_argument("--height", type=float, default=12.0, help="Total height (m)")
    geo.add_argument("--stories", type=int, default=4)
    geo.add_argument("--bays-x", type=int, default=4)
    geo.add_argument("--bays-z", type=int, default=3)
    geo.add_argument("--column-size", type=float, default=0.40, help="Square column side (m)")
    geo.add_argument("--beam-width", type=float, default=0.30, help="(m)")
    geo.add_argument("--beam-depth", type=float, default=0.50, help="(m)")
    geo.add_argument("--slab-thickness", type=float, default=0.20, help="(m)")
    geo.add_argument("--weight", type=float, default=None, help="Building weight override (kN)")
    geo.add_argument(
        "--material", choices=["steel", "concrete", "timber"], default="steel"
    )

    modal = parser.add_argument_group("modal properties")
    modal.add_argument("--period", type=float, default=None, help="Fundamental period (s)")
    modal.add_argument(
        "--natural-frequency", type=float, default=None, help="Fundamental frequency (Hz)"
    )
    modal.add_argument(
        "--mode-shape",
        type=_parse_shape,
        default=None,
        help="Comma-separated story weights, ground floor first",
    )

    exc = parser.add_argument_group("excitation")
    exc.add_argument("--intensity", type=float, default=0.3, help="PGA (g)")
    exc.add_argument("--frequency", type=float, default=2.0, help="Dominant frequency (Hz)")
    exc.add_argument("--duration", type=float, default=15.0, help="(s)")
    exc.add_argument("--direction", choices=DIRECTIONS, default="both")
    exc.add_argument("--damping", type=float, default=0.05, help="Damping ratio")
    exc.add_argument("--sa", type=float, default=0.75, help="Spectral acceleration (g)")
    exc.add_argument("--importance", type=float, default=1.0, help="Importance factor I")
    exc.add_argument("--r-factor", type=float, default=4.5, help="Response modification R")

    run = parser.add_argument_group("run")
    run.add_argument("--config", type=Path, default=None, help="simulation_config.json")
    run.add_argument("--fps", type=float, default=None, help="Frame rate of the step loop")
    run.add_argument("--realtime", action="store_true", help="Pace against the wall clock")
    run.add_argument("--fallback", action="store_true", help="Closed-form spectral strategy")
    run.add_argument("--output-dir", type=Path, default=None)
    run.add_argument("--name", default="run", help="Base name of saved files")
    run.add_argument("--save-results", action="store_true", help="Write CSV + JSON")
    run.add_argument("--save-fig", action="store_true", help="Write drift and history figures")
    run.add_argument("-v", "--verbose", action="store_true")
    return parser


def _modal_from_args(args) -> ModalProperties | None:
    if args.period is None and args.natural_frequency is None:
        if args.mode_shape is not None:
            raise SystemExit("--mode-shape requires --period or --natural-frequency")
        return None
    shape = args.mode_shape
    if shape is None:
        period = args.period if args.period is not None else 1.0 / args.natural_frequency
        return ModalProperties.sinusoidal(period, args.stories)
    return ModalProperties.from_shape(args.period, shape, frequency=args.natural_frequency)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    # ── Config and inputs (construction errors surface here) ────────────────
    try:
        config = SimulationConfig.load(args.config) if args.config else SimulationConfig()
        if args.fps is not None:
            config.frame_rate = args.fps
        if args.fallback:
            config.force_fallback = True
        if args.output_dir is not None:
            config.output_dir = str(args.output_dir)
        config.validate()

        building = BuildingModel(
            length=args.length,
            width=args.width,
            height=args.height,
            n_stories=args.stories,
            bays_x=args.bays_x,
            bays_z=args.bays_z,
            column_width=args.column_size,
            column_depth=args.column_size,
            beam_width=args.beam_width,
            beam_depth=args.beam_depth,
            slab_thickness=args.slab_thickness,
            building_weight=args.weight,
        )
        excitation = SeismicExcitation(
            intensity=args.intensity,
            frequency=args.frequency,
            duration=args.duration,
            direction=args.direction,
            damping_ratio=args.damping,
            spectral_acceleration=args.sa,
            importance_factor=args.importance,
            response_modification=args.r_factor,
        )
        engine = SeismicSimulationEngine(
            building=building,
            material=MaterialProperties.from_name(args.material),
            excitation=excitation,
            modal=_modal_from_args(args),
            config=config,
            clock=WallClock() if args.realtime else SimulatedClock(),
        )
    except (ValueError, FileNotFoundError) as exc:
        logger.error("Invalid input: %s", exc)
        return 2

    errors: list[SimulationError] = []
    engine.on_error(errors.append)

    # ── Run ─────────────────────────────────────────────────────────────────
    result = engine.run()
    if engine.state is not RunState.COMPLETED or result is None:
        reason = errors[0] if errors else engine.state.value
        logger.error("Simulation did not complete: %s", reason)
        return 1

    source = (
        f"{args.stories}-story {args.material}, PGA {args.intensity:.2f} g "
        f"@ {args.frequency:.2f} Hz, {args.direction}"
    )
    _print_results(result, assess_performance(result, engine.model.natural_frequency), source)

    # ── Output ──────────────────────────────────────────────────────────────
    out_dir = Path(config.output_dir)
    if args.save_results:
        from quakeframe.reporting import save_results

        save_results(engine, out_dir, name=args.name)
        config.save(out_dir)
    if args.save_fig:
        from quakeframe.reporting import save_figures

        for path in save_figures(engine, out_dir / "figures"):
            print(f"  Figure saved → {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
