"""Command line interface for selectively merging OpenAPI documents.

Usage:
  oas-merge run api-config.json
  oas-merge --debug run api-config.yaml --output gateway/openapi.json
  python -m oas_merge run api-config.json --stdout
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Iterable, Optional

from oas_merge import __version__
from oas_merge import config
from oas_merge.errors import OASMergeError
from oas_merge.models import load_config
from oas_merge.output import FORMATS, dump_document, format_for_path, write_document
from oas_merge.pipeline import perform_selective_merge


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="oas-merge", description="Selectively merge OpenAPI schemas via a config file.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    run_parser = subparsers.add_parser("run", help="Execute merge based on a config file")
    run_parser.add_argument("config_file", metavar="config-file", help="Path to the JSON or YAML merge config")
    run_parser.add_argument("-o", "--output", help="Output file path (overrides config)")
    run_parser.add_argument(
        "--format",
        choices=FORMATS,
        help="Output format (default: json for .json outputs, yaml otherwise)",
    )
    run_parser.add_argument("--stdout", action="store_true", help="Print the merged document instead of writing a file")
    return parser


def setup_logging(debug: bool) -> logging.Logger:
    """Configure root logging and return the CLI logger."""
    log_level = logging.DEBUG if debug else logging.INFO
    # Enhanced log format with timestamp and line number
    log_format = "%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(name)s - %(message)s"
    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler()],
    )
    logger = logging.getLogger("OASMergeCLI")
    logger.setLevel(log_level)
    if debug:
        logging.getLogger("httpx").setLevel(logging.DEBUG)
        logger.info("Debug mode enabled")
    else:
        logging.getLogger("httpx").setLevel(logging.WARNING)
    return logger


def run(args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute the ``run`` command."""
    merge_config = load_config(args.config_file)

    document = asyncio.run(perform_selective_merge(merge_config))

    if args.stdout:
        sys.stdout.write(dump_document(document, args.format or "yaml"))
        return 0

    output_path = args.output or merge_config.output or config.OAS_MERGE_DEFAULT_OUTPUT
    write_document(document, output_path, args.format or format_for_path(output_path))
    logger.info("Merged %d source(s) into %s", len(merge_config.inputs), output_path)
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 when the merge fails)
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logger = setup_logging(args.debug)
    logger.debug("Starting oas-merge %s with args: %s", __version__, args)

    try:
        return run(args, logger)
    except OASMergeError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
