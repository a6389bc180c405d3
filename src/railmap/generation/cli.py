"""Command-line interface for board generation."""

import argparse
import logging
import time
from pathlib import Path

import structlog


def configure_logging(verbose: bool = False) -> None:
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
        description="Generate a procedural railway board"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Config name from configs/ or path to a TOML file",
    )
    parser.add_argument("--width", type=float, default=None, help="Board width")
    parser.add_argument("--height", type=float, default=None, help="Board height")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--lakes", type=int, default=None, help="Number of lakes")
    parser.add_argument("--rivers", type=int, default=None, help="Number of rivers")
    parser.add_argument(
        "--major-cities", type=int, default=None, help="Number of major cities"
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Write the board snapshot as JSON to this path (optional)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for board generation."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    # Import here to avoid slow startup for --help
    from ..config import BoardConfig, find_config, load_config
    from .generator import generate_board
    from .validation import validate_board

    config = load_config(find_config(args.config)) if args.config else BoardConfig()

    overrides = {
        "width": args.width,
        "height": args.height,
        "seed": args.seed,
    }
    update = {key: value for key, value in overrides.items() if value is not None}
    if args.lakes is not None:
        update["lakes"] = config.lakes.model_copy(update={"count": args.lakes})
    if args.rivers is not None:
        update["rivers"] = config.rivers.model_copy(update={"count": args.rivers})
    if args.major_cities is not None:
        update["cities"] = config.cities.model_copy(
            update={"major_count": args.major_cities}
        )
    config = config.model_copy(update=update)

    print(f"Generating {config.width:g}x{config.height:g} board with seed {config.seed}")

    start_time = time.time()
    board = generate_board(config)
    gen_time = time.time() - start_time
    result = validate_board(board, log=False)

    print()
    print(f"Generation complete in {gen_time:.1f}s")
    print(f"  Lakes:     {len(board.lakes)}")
    print(f"  Cities:    {len(board.cities)}")
    print(f"  Mileposts: {len(board.mileposts)} ({len(board.mountain_mileposts)} mountains)")
    print(f"  Rivers:    {len(board.rivers)}")
    print(f"  Validation: {'passed' if result.passed else 'FAILED'}")
    for error in result.errors:
        print(f"    error: {error}")
    for warning in result.warnings:
        print(f"    warning: {warning}")

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(board.model_dump_json(indent=2))
        print(f"Saved to {output_path}")


if __name__ == "__main__":
    main()
