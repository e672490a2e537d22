"""Command-line interface for map generation."""

import argparse
import logging
import sys
import time
from pathlib import Path

import structlog


def configure_logging(verbose: bool) -> None:
    """Configure structlog for console output."""
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a procedural tile-based planetary map"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Name of a bundled TOML config or path to one",
    )
    parser.add_argument("--width", type=int, default=None, help="Map width in tiles")
    parser.add_argument("--height", type=int, default=None, help="Map height in tiles")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--wrap-x",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Wrap the map on the X axis",
    )
    parser.add_argument(
        "--wrap-y",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Wrap the map on the Y axis",
    )
    parser.add_argument(
        "--ocean-fraction", type=float, default=None, help="Fraction of ocean tiles"
    )
    parser.add_argument(
        "--noise-scale", type=float, default=None, help="Noise units across the map"
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Save the map to this .npz path (optional)",
    )
    parser.add_argument(
        "--debug-images",
        type=str,
        default=None,
        help="Directory to save debug images (optional)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return parser


# CLI flag -> MapParameters field
OVERRIDES = {
    "width": "width",
    "height": "height",
    "wrap_x": "wrap_x",
    "wrap_y": "wrap_y",
    "ocean_fraction": "ocean_fraction",
    "noise_scale": "noise_scale",
}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for map generation."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    from .config import MapParameters, find_config, load_parameters
    from .exceptions import InvalidParametersError
    from .generator import generate_map
    from .persistence import save_map

    if args.config:
        try:
            params = load_parameters(find_config(args.config))
        except FileNotFoundError as e:
            logger.error("config_not_found", error=str(e))
            return 1
    else:
        params = MapParameters()

    updates = {
        field: getattr(args, flag)
        for flag, field in OVERRIDES.items()
        if getattr(args, flag) is not None
    }
    if updates:
        params = MapParameters.model_validate({**params.model_dump(), **updates})

    start_time = time.time()
    try:
        result = generate_map(
            params,
            seed=args.seed,
            debug_output_dir=Path(args.debug_images) if args.debug_images else None,
        )
    except InvalidParametersError as e:
        logger.error("invalid_parameters", errors=e.errors)
        return 1
    gen_time = time.time() - start_time

    size = f"{result.parameters.width}x{result.parameters.height}"
    print(f"Generated {size} map in {gen_time:.1f}s")
    print(f"Seed: {result.seed}")
    total = result.grid.size
    for name, count in result.tile_type_counts().items():
        label = name if name is not None else "(unmatched)"
        print(f"  {label}: {count:,} ({count / total:.1%})")
    print(f"  river corners: {len(result.rivers):,}")

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        save_map(output_path, result)
        print(f"Saved to {output_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
