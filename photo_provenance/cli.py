"""Command-line entry point: ``photo-provenance``.

Usage::

    photo-provenance [OPTIONS] LOCATIONS_CSV IMAGE [IMAGE ...]
    photo-provenance [OPTIONS] --fixed-location IMAGE [IMAGE ...]

Environment variables (``PROVENANCE_*``) set defaults; flags override
them.  Exit status: 0 when every image succeeded, 1 when at least one
image failed, 2 for usage or configuration errors.

This module is purely the wiring layer between ``argparse`` and the
batch orchestrator.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from collections.abc import Sequence

from photo_provenance import __version__
from photo_provenance.core.config import RunConfig
from photo_provenance.core.constants import DEFAULT_DATETIME, DEFAULT_OFFSET, DEFAULT_SUBSEC
from photo_provenance.core.exceptions import ProvenanceError
from photo_provenance.core.logging_setup import configure_logging
from photo_provenance.models.dimensions import ResizeMode
from photo_provenance.orchestrators.batch import run_batch

logger = logging.getLogger("photo_provenance.cli")

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="photo-provenance",
        description=(
            "Fit images to the device canvas and rewrite their metadata with a "
            "shared capture time and an optionally fuzzed capture location."
        ),
    )
    parser.add_argument(
        "--resize-mode",
        choices=[mode.value for mode in ResizeMode],
        default=None,
        help="auto: scale if the aspect ratio is close, else crop (default: auto).",
    )
    parser.add_argument(
        "--random-filenames",
        action="store_true",
        help="Name outputs IMG_XXXX.JPG with random digits instead of IMG_0001.JPG ...",
    )
    parser.add_argument(
        "--fixed-location",
        action="store_true",
        help="Use the built-in capture coordinate; the CSV argument is then omitted.",
    )
    parser.add_argument("--output-dir", default=None, help="Directory for output files.")
    parser.add_argument(
        "--datetime",
        default=None,
        help=f'Local capture time "YYYY:MM:DD HH:MM:SS" (default: "{DEFAULT_DATETIME}").',
    )
    parser.add_argument(
        "--offset",
        default=None,
        help=f'Offset of the capture time from UTC "+HH:MM" (default: "{DEFAULT_OFFSET}").',
    )
    parser.add_argument(
        "--subsec",
        default=None,
        help=f'Sub-second digits (default: "{DEFAULT_SUBSEC}").',
    )
    parser.add_argument(
        "--fuzz-meters",
        type=float,
        default=None,
        help="Maximum per-axis location perturbation in metres (default: 100).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs.")
    parser.add_argument(
        "--no-thumbnail",
        action="store_true",
        help="Do not embed an EXIF thumbnail.",
    )
    parser.add_argument(
        "--keep-file-times",
        action="store_true",
        help="Do not set output file times to the capture time.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "paths",
        nargs="+",
        metavar="PATH",
        help="LOCATIONS_CSV (unless --fixed-location) followed by one or more images.",
    )
    return parser


def build_config(args: argparse.Namespace) -> RunConfig:
    """Apply command-line overrides on top of the environment configuration.

    Raises:
        ConfigValidationError: If an environment or flag value is invalid.
    """
    config = RunConfig.from_env()
    overrides: dict[str, object] = {
        "use_fixed_location": args.fixed_location,
        "random_filenames": args.random_filenames,
        "embed_thumbnail": not args.no_thumbnail,
        "set_file_times": not args.keep_file_times,
    }
    if args.resize_mode is not None:
        overrides["resize_mode"] = ResizeMode(args.resize_mode)
    if args.datetime is not None:
        overrides["datetime_text"] = args.datetime
    if args.offset is not None:
        overrides["offset_text"] = args.offset
    if args.subsec is not None:
        overrides["subsec_text"] = args.subsec
    if args.fuzz_meters is not None:
        overrides["fuzz_radius_m"] = args.fuzz_meters
    if args.seed is not None:
        overrides["seed"] = args.seed

    config = dataclasses.replace(config, **overrides)
    config.validate()
    return config


#: Flags whose values may start with "-" (e.g. a west-of-UTC offset).
DASH_VALUE_FLAGS = ("--offset", "--datetime")


def join_dash_values(argv: Sequence[str]) -> list[str]:
    """Rewrite ``--offset -05:00`` as ``--offset=-05:00``.

    argparse treats a separate token starting with ``-`` as an option, so
    values for ``DASH_VALUE_FLAGS`` are attached to their flag first.
    """
    joined: list[str] = []
    tokens = iter(argv)
    for token in tokens:
        if token == "--":
            joined.append(token)
            joined.extend(tokens)
            break
        if token in DASH_VALUE_FLAGS:
            value = next(tokens, None)
            if value is not None:
                joined.append(f"{token}={value}")
                continue
        joined.append(token)
    return joined


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse ``argv`` (default: ``sys.argv[1:]``) with dash-prefixed values allowed."""
    if argv is None:
        argv = sys.argv[1:]
    return build_parser().parse_args(join_dash_values(argv))


def split_paths(paths: Sequence[str], *, fixed_location: bool) -> tuple[str | None, list[str]]:
    """Separate the optional leading CSV from the image paths."""
    if fixed_location:
        return None, list(paths)
    return paths[0], list(paths[1:])


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return the process exit status."""
    args = parse_args(argv)
    configure_logging("DEBUG" if args.verbose else "INFO")

    locations_csv, images = split_paths(args.paths, fixed_location=args.fixed_location)
    if not images:
        build_parser().print_usage(sys.stderr)
        logger.error("No input image files specified.")
        return EXIT_USAGE

    try:
        config = build_config(args)
        result = run_batch(
            images,
            config,
            locations_csv=locations_csv,
            output_dir=args.output_dir,
        )
    except ProvenanceError as exc:
        logger.error(
            "Run aborted | stage=%s | code=%s | error=%s", exc.stage, exc.code, exc.message
        )
        return EXIT_USAGE

    for outcome in result["outcomes"]:
        if outcome["status"] == "succeeded":
            print(f"{outcome['source_file']} -> {outcome['output_file']}")
        else:
            print(f"{outcome['source_file']} FAILED: {outcome['error'].get('message', '')}")

    return EXIT_OK if result["failed"] == 0 else EXIT_PARTIAL


if __name__ == "__main__":
    sys.exit(main())
