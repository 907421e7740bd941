#!/usr/bin/env python3
"""
Filtered zip CLI tool

A command-line interface for zipping a directory through include/exclude
glob patterns, with an optional limit on the compressed size.

Usage:
    python3 cli_zip.py create /path/to/project -o project.zip
    python3 cli_zip.py create /path/to/project -o src.zip -p "**/*.py, !**/tests/**"
    python3 cli_zip.py list /path/to/project -i "**/*.py" -e "**/build/**"
"""

import argparse
import logging
import sys
from typing import Optional

from zipper import (
    MaxZipSizeReachedError,
    NoFilesToZipError,
    Zipper,
    load_config,
    zip_directory,
)
from zipper.colored_logger import get_colored_logger, setup_colored_logging

logger = get_colored_logger(__name__)


class ZipperCLI:
    """Command-line interface for filtered directory zipping."""

    def __init__(self):
        self.parser = self._create_parser()

    def _add_pattern_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--patterns",
            "-p",
            help='Combined filter, comma/newline separated, "!" marks excludes',
        )
        parser.add_argument(
            "--include",
            "-i",
            action="append",
            help="Include glob pattern (repeatable)",
        )
        parser.add_argument(
            "--exclude",
            "-e",
            action="append",
            help="Exclude glob pattern (repeatable)",
        )
        parser.add_argument("--config", "-c", help="Path to a YAML config file")

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser with all commands and options."""
        parser = argparse.ArgumentParser(
            description="Zip the files of a directory that pass a glob filter",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Zip everything below a directory
  python3 cli_zip.py create /path/to/project -o project.zip

  # Zip Python sources except tests, at most 10 MB compressed
  python3 cli_zip.py create /path/to/project -o src.zip \\
      -p "**/*.py, !**/tests/**" --max-size 10485760

  # Show which files a filter would select
  python3 cli_zip.py list /path/to/project -i "**/*.py" -e "**/build/**"
            """,
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable debug logging"
        )

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        create_parser = subparsers.add_parser(
            "create", help="Create a zip archive of the selected files"
        )
        create_parser.add_argument("base_dir", help="Directory to zip")
        create_parser.add_argument(
            "--output", "-o", required=True, help="Output archive path"
        )
        create_parser.add_argument(
            "--max-size",
            type=int,
            help="Limit on compressed bytes, 0 for no limit (default: from config)",
        )
        create_parser.add_argument(
            "--quiet", "-q", action="store_true", help="Suppress progress output"
        )
        self._add_pattern_arguments(create_parser)

        list_parser = subparsers.add_parser(
            "list", help="List the files that would be zipped"
        )
        list_parser.add_argument("base_dir", help="Directory to scan")
        self._add_pattern_arguments(list_parser)

        return parser

    def run(self, args: Optional[list] = None) -> int:
        """Run the CLI with the given arguments."""
        parsed_args = self.parser.parse_args(args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        if parsed_args.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        try:
            if parsed_args.patterns is not None and (
                parsed_args.include or parsed_args.exclude
            ):
                logger.error("Use either --patterns or --include/--exclude, not both")
                return 1

            if parsed_args.command == "create":
                return self._handle_create(parsed_args)
            elif parsed_args.command == "list":
                return self._handle_list(parsed_args)
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

    def _pattern_kwargs(self, args) -> dict:
        if args.patterns is not None:
            return {"filter_patterns": args.patterns}
        return {
            "include_patterns": args.include or [],
            "exclude_patterns": args.exclude or [],
        }

    def _handle_create(self, args) -> int:
        """Handle the 'create' command."""
        config = load_config(args.config)
        if args.quiet:
            logging.getLogger("zipper").setLevel(logging.WARNING)

        try:
            summary = zip_directory(
                args.base_dir,
                args.output,
                max_zip_size=args.max_size,
                config=config,
                **self._pattern_kwargs(args),
            )
        except NoFilesToZipError:
            logger.warning("No files to zip in: %s", args.base_dir)
            return 1
        except MaxZipSizeReachedError as e:
            logger.error(
                "Size limit of %d bytes reached at %s (%d bytes compressed so far)",
                e.max_zip_size,
                e.file_name,
                e.compressed_size,
            )
            return 1

        if summary.files_skipped:
            logger.warning("%d unreadable files were skipped", summary.files_skipped)
        return 0

    def _handle_list(self, args) -> int:
        """Handle the 'list' command."""
        config = load_config(args.config)
        zipper = Zipper.from_config(config)
        selection = zipper.select(args.base_dir, **self._pattern_kwargs(args))

        if not selection:
            logger.warning("No files selected in: %s", args.base_dir)
            return 1

        for name in selection:
            print(name)

        logger.info(
            "%d files selected, %d excluded",
            len(selection),
            len(selection.excluded_files),
        )
        return 0


def main():
    """Main entry point for the CLI."""
    setup_colored_logging(level=logging.INFO)

    cli = ZipperCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
