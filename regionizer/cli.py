"""
Command-line interface for the regionizer.

Usage:
    python -m regionizer <image_path>
    python -m regionizer <image_path> [--threshold 5.0] [--config regionizer.yaml] [--json]
    python -m regionizer --help

Writes <name>_regionized.<ext> next to the input image.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

import yaml

from . import __version__
from .config.regionizer_config import RegionizerConfig, MERGE_STRATEGY_NAMES
from .errors import RegionizerError

logger = logging.getLogger(__name__)


def setup_argparse() -> argparse.ArgumentParser:
    """Set up argument parser."""
    parser = argparse.ArgumentParser(
        prog="regionizer",
        description="Mark the borders between color regions of an image",
    )

    parser.add_argument(
        "image_path",
        type=str,
        help="Path to the input image (the extension selects the output format)",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Maximum Lab distance between neighbours in one region (default: 5.0)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML configuration file",
    )
    parser.add_argument(
        "--merge-strategy",
        choices=list(MERGE_STRATEGY_NAMES),
        default=None,
        help="Row merge implementation (default: member_list)",
    )
    parser.add_argument(
        "--flag-scan-origin",
        action="store_true",
        default=None,
        help="Also mark the first pixel of every row and column",
    )
    parser.add_argument(
        "--regions-output",
        type=str,
        default=None,
        help="Also write an image with every region painted in a flat color",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print a JSON summary of the run to stdout",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def build_config(args: argparse.Namespace) -> RegionizerConfig:
    """Load the config file, if any, and apply command-line overrides."""
    if args.config:
        config = RegionizerConfig.from_yaml(args.config)
    else:
        config = RegionizerConfig.default()

    return config.with_overrides(
        threshold=args.threshold,
        merge_strategy=args.merge_strategy,
        flag_scan_origin=args.flag_scan_origin,
    )


def cmd_regionize(args: argparse.Namespace) -> int:
    """Handle the default command: regionize one image."""
    from .pipeline import regionize_file

    try:
        config = build_config(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        file_result = regionize_file(
            args.image_path,
            config=config,
            regions_output_path=args.regions_output,
        )
    except RegionizerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(file_result.to_dict(), indent=2))
    else:
        print(f"Border mask saved to: {file_result.output_path}")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = setup_argparse()
    args = parser.parse_args(argv)

    # Logs go to stderr so --json output stays parseable
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    return cmd_regionize(args)


if __name__ == "__main__":
    sys.exit(main())
