"""Command line entry point for exporting route videos."""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import AspectRatio, VehicleType, load_config
from .exporter import Completed, ExportJob, ExportOrchestrator, Failed
from .gazetteer import Gazetteer, resolve_waypoints
from .route import Route
from .store import RouteStore

_logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export an animated travel route as an MP4 video.")
    parser.add_argument(
        "config",
        type=Path,
        help="Path to the JSON or YAML file describing the route and export settings.",
    )
    parser.add_argument("-o", "--output", type=Path, help="Video file to write (overrides the config).")
    parser.add_argument("--duration", type=float, help="Video length in seconds (3-60).")
    parser.add_argument(
        "--aspect",
        choices=[ratio.value for ratio in AspectRatio],
        help="Frame shape: square 1080x1080, vertical 720x1280 or horizontal 1280x720.",
    )
    parser.add_argument("--vehicle", choices=[vehicle.value for vehicle in VehicleType])
    parser.add_argument(
        "--save-route",
        type=Path,
        metavar="STORE",
        help="Also save the resolved route to this JSON route store.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-frame details.")
    return parser.parse_args(argv)


def _print_progress(progress: float) -> None:
    print(f"\rRendering... {progress * 100:5.1f}%", end="", file=sys.stderr, flush=True)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        document = load_config(args.config)
        export = document.export
        if args.duration is not None:
            export = replace(export, duration_seconds=args.duration)
        if args.aspect:
            export = replace(export, aspect_ratio=AspectRatio.parse(args.aspect))
        if args.vehicle:
            export = replace(export, vehicle=VehicleType.parse(args.vehicle))
    except (OSError, ValueError, RuntimeError) as exc:
        _logger.debug("Configuration rejected", exc_info=True)
        print(f"Invalid configuration {args.config}: {exc}", file=sys.stderr)
        return 1
    output_path = args.output or document.output_path

    waypoints = resolve_waypoints(document.waypoints, Gazetteer())

    if args.save_route:
        route = Route(name=document.name or args.config.stem, waypoints=tuple(waypoints))
        RouteStore(args.save_route).save(route)

    orchestrator = ExportOrchestrator(on_progress=_print_progress)
    orchestrator.start(ExportJob.create(waypoints, export, output_path))
    try:
        state = orchestrator.wait()
    except KeyboardInterrupt:
        orchestrator.cancel()
        state = orchestrator.wait()
    print(file=sys.stderr)

    if isinstance(state, Completed):
        print(f"Saved animation to {state.output_path}")
        return 0
    if isinstance(state, Failed):
        print(f"Export failed: {state.reason}", file=sys.stderr)
    return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
