"""
Command-line interface.

    convgen path/to/package [--stdout] [--strict-overrides] [--no-format]
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from . import __version__
from .generator import ConverterGenerator
from .utils.config import ConvgenConfig
from .utils.exceptions import AssemblyError, ConvgenError
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="convgen",
        description="Generate type-directed conversion functions for a Python package.",
    )
    parser.add_argument("package_dir", help="Directory of the package to generate converters for")
    parser.add_argument("--config", help="Configuration file (default: convgen.yaml/.yml/.json in the current directory)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level (overrides the configuration)",
    )
    parser.add_argument("--output", help="Name of the generated module file (default: generated.py)")
    parser.add_argument("--stdout", action="store_true", help="Print the generated module instead of writing it")
    parser.add_argument(
        "--strict-overrides",
        action="store_true",
        help="Fail when generated code would call an override function that does not exist",
    )
    parser.add_argument("--no-format", action="store_true", help="Skip formatting the output with black")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_cli_config(args: argparse.Namespace) -> ConvgenConfig:
    """Configuration file values with command-line options applied on top."""
    config = ConvgenConfig(config_file=args.config)
    if args.output:
        config.generation.output_filename = args.output
    if args.strict_overrides:
        config.generation.strict_overrides = True
    if args.no_format:
        config.formatting.enabled = False
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the convgen command."""
    args = build_parser().parse_args(argv)

    try:
        config = load_cli_config(args)
        log_file = config.logging.log_file if config.logging.enable_file_logging else None
        setup_logging(args.log_level or config.logging.level, log_file)

        result = ConverterGenerator(config).run(args.package_dir, write=not args.stdout)
    except AssemblyError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if e.raw_source:
            print(e.raw_source, file=sys.stderr)
        return 1
    except ConvgenError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if result is not None and args.stdout:
        sys.stdout.write(result.source)
    return 0


if __name__ == "__main__":
    sys.exit(main())
