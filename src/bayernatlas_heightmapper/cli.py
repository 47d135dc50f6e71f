#!/usr/bin/env python3
"""
bayernatlas-heightmapper - Entry Point

Parses the command line into a RunConfig, then downloads the height grid
and writes one output: raw values, a grayscale heightmap, or a topographic
map. Status messages go to stderr so raw values on stdout stay clean.
"""

import argparse
import asyncio
import locale
import logging
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from .constants import (
    DEFAULT_SCALE,
    DEFAULT_SIZE_M,
    DEFAULT_STEP_M,
    SUMMARY_FORMATS,
    AppConfig,
    EnvVar,
    ErrorMessages,
    OutputMode,
    SuccessMessages,
    Traversal,
)
from .core.grid import NoValidDataError
from .core.heightmap_manager import HeightmapManager
from .models.config import RunConfig
from .models.responses import ErrorResponse, format_response

logger = logging.getLogger(__name__)


def _load_env() -> None:
    """Load a .env file from the working directory, if there is one."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)


def _env_overrides() -> dict[str, Any]:
    """Service settings taken from environment variables."""
    overrides: dict[str, Any] = {}
    url = os.environ.get(EnvVar.SERVICE_URL)
    if url:
        overrides["service_url"] = url
    batch_size = os.environ.get(EnvVar.BATCH_SIZE)
    if batch_size:
        overrides["batch_size"] = batch_size
    timeout = os.environ.get(EnvVar.TIMEOUT)
    if timeout:
        overrides["timeout_s"] = timeout
    return overrides


def parse_size(value: str) -> tuple[int, int]:
    """argparse type for 'X,Y' half-extent pairs."""
    parts = value.split(",")
    try:
        if len(parts) != 2:
            raise ValueError(value)
        return int(parts[0]), int(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(ErrorMessages.INVALID_SIZE.format(value)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=AppConfig.NAME,
        description=AppConfig.DESCRIPTION,
    )
    parser.add_argument("center_x", type=int, help="GK4 easting of the center")
    parser.add_argument("center_y", type=int, help="GK4 northing of the center")
    parser.add_argument(
        "output_file",
        nargs="?",
        default=None,
        help="Write the output to a file. Required unless using -r/--raw",
    )
    parser.add_argument(
        "-u",
        "--units",
        type=int,
        default=DEFAULT_STEP_M,
        help=f"Units per pixel (meters). Default: {DEFAULT_STEP_M}",
    )
    parser.add_argument(
        "-S",
        "--simple",
        action="store_true",
        help="Use the simple line-by-line download algorithm (one request per column)",
    )
    parser.add_argument(
        "-s",
        "--size",
        type=parse_size,
        default=(DEFAULT_SIZE_M, DEFAULT_SIZE_M),
        metavar="X,Y",
        help=(
            "Size in GK4 units in each direction from the center. "
            f"Default: {DEFAULT_SIZE_M},{DEFAULT_SIZE_M}"
        ),
    )
    parser.add_argument(
        "-x",
        "--scale",
        type=float,
        default=DEFAULT_SCALE,
        help=f"Scale the resulting image by this factor. Default: {DEFAULT_SCALE:g}",
    )
    parser.add_argument(
        "-r",
        "--raw",
        action="store_true",
        help="Don't render an image; output raw numeric height values instead",
    )
    parser.add_argument(
        "-t",
        "--topo",
        type=float,
        default=None,
        metavar="STEP",
        help="Draw a simplified topographical map with lines every STEP meters of height",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print the underlying error of failed requests",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Maximum points per request for the default algorithm",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the arguments and print the plan without downloading",
    )
    parser.add_argument(
        "--summary-format",
        choices=SUMMARY_FORMATS,
        default="text",
        help="Format of the final summary (default: text)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    """Build a validated RunConfig; flags win over environment settings.

    Raises:
        ValidationError: if the combination of arguments is invalid
    """
    if args.raw:
        mode = OutputMode.RAW
    elif args.topo is not None:
        mode = OutputMode.TOPOGRAPHIC
    else:
        mode = OutputMode.IMAGE

    values: dict[str, Any] = _env_overrides()
    values.update(
        center_x=args.center_x,
        center_y=args.center_y,
        size_x=args.size[0],
        size_y=args.size[1],
        step_m=args.units,
        scale=args.scale,
        mode=mode,
        topo_line_spacing=args.topo,
        traversal=Traversal.PER_COLUMN if args.simple else Traversal.BOUSTROPHEDON,
        output_path=args.output_file,
        verbose=args.verbose,
    )
    if args.batch_size is not None:
        values["batch_size"] = args.batch_size

    return RunConfig(**values)


def print_progress(number: int, total: int, traversal: str) -> None:
    if traversal == Traversal.PER_COLUMN:
        print(SuccessMessages.LINE_PROGRESS.format(number, total), file=sys.stderr)
    else:
        print(SuccessMessages.BATCH_PROGRESS.format(number, total), file=sys.stderr)


def _validation_message(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        loc = ".".join(str(part) for part in item.get("loc", ()))
        msg = str(item.get("msg", "")).removeprefix("Value error, ")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the heightmapper CLI."""
    argv = sys.argv[1:] if argv is None else argv

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    # Heights are formatted with '.' decimals regardless of the user's locale.
    locale.setlocale(locale.LC_NUMERIC, "C")
    _load_env()

    try:
        config = config_from_args(args)
    except ValidationError as e:
        error = ErrorResponse(error=_validation_message(e))
        print(format_response(error, "text"), file=sys.stderr)
        return 1
    logger.debug(f"Configuration: {config.model_dump()}")

    manager = HeightmapManager(progress_callback=print_progress)
    print(format_response(manager.plan(config), "text"), file=sys.stderr)
    print(file=sys.stderr)

    try:
        result = asyncio.run(manager.run(config, dry_run=args.dry_run))
    except NoValidDataError as e:
        print(format_response(ErrorResponse(error=str(e)), "text"), file=sys.stderr)
        return 1
    except OSError as e:
        message = ErrorMessages.WRITE_FAILED.format(
            config.output_path or "stdout", e.strerror or e
        )
        print(format_response(ErrorResponse(error=message), "text"), file=sys.stderr)
        return 1

    # JSON summaries go to stdout for scripts unless raw heights already use it.
    raw_on_stdout = config.mode == OutputMode.RAW and config.output_path is None
    summary = format_response(result.summary, args.summary_format)
    if args.summary_format == "json" and not raw_on_stdout:
        print(summary)
    else:
        print(summary, file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
