#!/usr/bin/env python3
"""
ZIP assembly CLI tool

Builds a ZIP archive from source directories and named files, selecting
files with include/exclude regular expressions and keeping their
permission bits.

Usage:
    python3 cli_zip.py create --source-dir src --destination-dir dist --name app.zip
    python3 cli_zip.py create --config zip-ops.yml --include '.*\\.py$'
    python3 cli_zip.py create --config zip-ops.yml --file LICENSE.txt=../LICENSE
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from colored_logger import TRACE_LEVEL, setup_colored_logging, get_colored_logger
from zip_ops import (
    ArchiveAssembler,
    NamedFile,
    load_config,
    operation_from_config,
    permission_bits,
)

logger = get_colored_logger(__name__)


def _named_file_argument(value: str) -> NamedFile:
    """Parse NAME=PATH into a NamedFile."""
    name, separator, path = value.partition("=")
    if not separator or not name or not path:
        raise argparse.ArgumentTypeError(f"Expected NAME=PATH, got '{value}'")
    return NamedFile(name, Path(path))


class ZipCLI:
    """Command-line interface for ZIP assembly."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser with all commands and options."""
        parser = argparse.ArgumentParser(
            description="Assemble ZIP archives from directories and named files",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Archive every file of two directories (flattened to basenames)
  python3 cli_zip.py create -s src -s resources -d dist -n app.zip

  # Only .text files, but not source5*
  python3 cli_zip.py create -s source -d dist -n out.zip -i 'source.*\\.text' -x 'source5.*'

  # Start from a YAML config and add a renamed file
  python3 cli_zip.py create --config zip-ops.yml --file README.txt=docs/README.md
            """,
        )

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        create_parser = subparsers.add_parser("create", help="Create a ZIP archive")
        create_parser.add_argument(
            "--config", "-c", help="YAML configuration file to start from"
        )
        create_parser.add_argument(
            "--source-dir",
            "-s",
            action="append",
            default=[],
            dest="source_directories",
            help="Directory whose files are archived (repeatable)",
        )
        create_parser.add_argument(
            "--file",
            "-f",
            action="append",
            default=[],
            type=_named_file_argument,
            dest="source_files",
            metavar="NAME=PATH",
            help="Single file stored in the archive as NAME (repeatable)",
        )
        create_parser.add_argument(
            "--destination-dir", "-d", help="Directory the archive is written to"
        )
        create_parser.add_argument("--name", "-n", help="Archive file name")
        create_parser.add_argument(
            "--include",
            "-i",
            action="append",
            default=[],
            help="Regex a file name must match (repeatable)",
        )
        create_parser.add_argument(
            "--exclude",
            "-x",
            action="append",
            default=[],
            help="Regex that excludes a matching file name (repeatable)",
        )
        create_parser.add_argument(
            "--level", "-l", type=int, help="ZIP compression level (0-9, default: 6)"
        )
        create_parser.add_argument(
            "--quiet", "-q", action="store_true", help="Suppress progress output"
        )
        create_parser.add_argument(
            "--verbose",
            "-v",
            action="count",
            default=0,
            help="Increase log detail (-v debug, -vv trace)",
        )

        return parser

    def run(self, args: Optional[list] = None) -> int:
        """Run the CLI with the given arguments."""
        parsed_args = self.parser.parse_args(args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            if parsed_args.command == "create":
                return self._handle_create(parsed_args)
            else:
                logger.error("Unknown command: %s", parsed_args.command)
                return 1

        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130
        except Exception as e:
            logger.error("Error: %s", e)
            logger.debug("Full error details:", exc_info=True)
            return 1

    def _configure_logging(self, args) -> None:
        if args.verbose >= 2:
            logging.getLogger().setLevel(TRACE_LEVEL)
        elif args.verbose == 1:
            logging.getLogger().setLevel(logging.DEBUG)
        elif args.quiet:
            logging.getLogger().setLevel(logging.WARNING)

    def _progress_callback(self, current: int, total: int) -> None:
        logger.progress(
            "Archiving progress: %d/%d files (%.1f%%)",
            current,
            total,
            (current / total) * 100,
        )

    def _build_operation(self, args):
        operation = operation_from_config(load_config(args.config))

        operation.add_source_directories(args.source_directories)
        operation.add_source_files(args.source_files)
        operation.add_included(args.include)
        operation.add_excluded(args.exclude)

        if args.destination_dir:
            operation.set_destination_directory(args.destination_dir)
        if args.name:
            operation.set_destination_file_name(args.name)
        if args.level is not None:
            operation.set_compression_level(args.level)

        return operation

    def _handle_create(self, args) -> int:
        """Handle the 'create' command."""
        self._configure_logging(args)
        operation = self._build_operation(args)

        progress_callback = None if args.quiet else self._progress_callback
        result = ArchiveAssembler().assemble(operation, progress_callback)

        logger.info("Archive entries: %d", len(result.entries))
        for entry in result.entries:
            logger.debug("  %s (%o)", entry.name, permission_bits(entry.mode))
        return 0


def main():
    """Main entry point for the CLI."""
    setup_colored_logging(level=logging.INFO)

    cli = ZipCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
