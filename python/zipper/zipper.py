"""
File zipper with filter.

Zipper traverses a base directory and archives all files passing the filter
test. The filter is either a single string of comma/newline separated
patterns (excludes prefixed with ``!``) or separate include and exclude
pattern lists.

Pattern syntax
--------------
Paths are split into segments on ``/``. ``**`` as a whole segment matches
zero or more segments, ``*`` matches zero or more characters inside a
segment and ``?`` matches exactly one character. Matching ignores case.

- ``**/*.class`` matches all .class files in the tree
- ``test/a??.java`` matches e.g. ``test/abc.java``
- ``**`` matches everything
- ``**/test/**/XYZ*`` matches files starting with XYZ that have a parent
  directory called test

When no include patterns are given, ``**`` is used. When no exclude patterns
are given, nothing is excluded.

Example::

    zipper = Zipper()
    data = zipper.zip_to_bytes("project", "**/*.py, !**/tests/**")
"""

import io
import logging
import os
from typing import Any, BinaryIO, Dict, Iterable, Optional, Sequence

from .archive_writer import (
    AVERAGE_ZIP_COMPRESSION_RATIO,
    COMPRESSION_METHODS,
    ArchiveSummary,
    ArchiveWriter,
    ProgressListener,
    ratio_estimator,
)
from .colored_logger import get_colored_logger
from .config import load_config
from .directory_selector import DirectorySelector, SelectionResult
from .pattern_parser import PatternSet, parse_filter_patterns

logger = get_colored_logger(__name__)


class _ByteSink(io.BytesIO):
    """In-memory output that keeps its contents after being closed."""

    contents = b""

    def close(self) -> None:
        if not self.closed:
            self.contents = self.getvalue()
        super().close()


def _without_paths(
    base_dir: str, file_names: Sequence[str], skip_paths: Iterable[str]
) -> Sequence[str]:
    """Drop the names that resolve to one of ``skip_paths``."""
    skipped = {os.path.realpath(path) for path in skip_paths}
    kept = []
    for name in file_names:
        if os.path.realpath(os.path.join(base_dir, name)) in skipped:
            logger.debug("Not archiving output file: %s", name)
            continue
        kept.append(name)
    return kept


class Zipper:
    """
    Scans, filters and zips a directory.

    This facade wires together the pattern parser, the directory selector and
    the archive writer:
    - Pattern parsing: parse_filter_patterns
    - File selection: DirectorySelector
    - Archive creation: ArchiveWriter
    """

    def __init__(
        self,
        selector: Optional[DirectorySelector] = None,
        writer: Optional[ArchiveWriter] = None,
    ):
        self.selector = selector or DirectorySelector()
        self.writer = writer or ArchiveWriter()

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "Zipper":
        """Build a Zipper from a configuration dict (see zipper.config)."""
        if config is None:
            config = load_config()

        scanner = config.get("scanner") or {}
        archive = config.get("archive") or {}

        compression_name = str(archive.get("compression", "deflated")).lower()
        if compression_name not in COMPRESSION_METHODS:
            raise ValueError(f"Unsupported compression method: {compression_name}")

        selector = DirectorySelector(
            case_sensitive=bool(scanner.get("case_sensitive", False)),
            follow_symlinks=bool(scanner.get("follow_symlinks", False)),
        )
        ratio = float(archive.get("compression_ratio", AVERAGE_ZIP_COMPRESSION_RATIO))
        writer = ArchiveWriter(
            compression=COMPRESSION_METHODS[compression_name],
            chunk_size=int(archive.get("chunk_size", 8192)),
            size_estimator=ratio_estimator(ratio),
        )
        return cls(selector, writer)

    def _resolve_patterns(
        self,
        filter_patterns: Optional[str],
        include_patterns: Optional[Sequence[str]],
        exclude_patterns: Optional[Sequence[str]],
    ) -> PatternSet:
        if filter_patterns is not None and (
            include_patterns is not None or exclude_patterns is not None
        ):
            raise ValueError(
                "Pass either filter_patterns or include/exclude pattern lists, not both"
            )
        if filter_patterns is not None:
            return parse_filter_patterns(filter_patterns)
        return PatternSet(list(include_patterns or []), list(exclude_patterns or []))

    def _log_selection(self, selection: SelectionResult) -> None:
        """Dump the scan outcome at debug level."""
        if not logger.isEnabledFor(logging.DEBUG):
            return

        logger.debug("Base Directory: %s", selection.base_dir)
        for name in selection.included_files:
            logger.debug("Included: %s", name)
        for name in selection.excluded_files:
            logger.debug("Excluded File: %s", name)
        for name in selection.excluded_dirs:
            logger.debug("Excluded Dir: %s", name)
        for name in selection.not_followed_symlinks:
            logger.debug("Not followed symbolic link: %s", name)
        for name in selection.unreadable_dirs:
            logger.debug("Unreadable Dir: %s", name or ".")

    def select(
        self,
        base_dir: str,
        filter_patterns: Optional[str] = None,
        include_patterns: Optional[Sequence[str]] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
    ) -> SelectionResult:
        """Scan ``base_dir`` and return the files that would be zipped."""
        if base_dir is None:
            raise ValueError("base_dir must not be None")

        patterns = self._resolve_patterns(
            filter_patterns, include_patterns, exclude_patterns
        )
        selection = self.selector.select(
            base_dir, patterns.include_patterns, patterns.exclude_patterns
        )
        self._log_selection(selection)
        return selection

    def zip(
        self,
        base_dir: str,
        output_stream: BinaryIO,
        filter_patterns: Optional[str] = None,
        *,
        include_patterns: Optional[Sequence[str]] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
        max_zip_size: int = 0,
        listener: Optional[ProgressListener] = None,
        skip_paths: Optional[Iterable[str]] = None,
    ) -> ArchiveSummary:
        """
        Scan the base directory, filter the files and write the compressed
        content to ``output_stream``.

        Args:
            base_dir: Contents of this directory will be filtered and zipped
            output_stream: Compressed content is written here; closed on
                return and on NoFilesToZipError / MaxZipSizeReachedError
            filter_patterns: Combined pattern string, see module docs
            include_patterns: Include globs (instead of filter_patterns)
            exclude_patterns: Exclude globs (instead of filter_patterns)
            max_zip_size: Limit on compressed bytes, 0 for no limit. Checked
                on file boundaries with an estimate, so the final archive may
                exceed it by the compressed size of the last file.
            listener: Notified with (file name, compressed bytes so far) each
                time a file begins compression
            skip_paths: Files never archived even when selected, e.g. the
                archive being written when it lives inside base_dir

        Returns:
            ArchiveSummary of the written archive

        Raises:
            MaxZipSizeReachedError: If max_zip_size would be exceeded
            NoFilesToZipError: If the base directory is empty or missing, or
                every file was filtered out
            ValueError: On invalid arguments
        """
        if output_stream is None:
            raise ValueError("output_stream must not be None")
        if max_zip_size < 0:
            raise ValueError(f"max_zip_size must not be negative, got {max_zip_size}")

        selection = self.select(
            base_dir, filter_patterns, include_patterns, exclude_patterns
        )
        file_names = selection.included_files
        if skip_paths:
            file_names = _without_paths(base_dir, file_names, skip_paths)

        return self.writer.write(
            os.fspath(base_dir),
            file_names,
            output_stream,
            max_zip_size=max_zip_size,
            listener=listener,
        )

    def zip_to_bytes(
        self,
        base_dir: str,
        filter_patterns: Optional[str] = None,
        *,
        include_patterns: Optional[Sequence[str]] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
        max_zip_size: int = 0,
        listener: Optional[ProgressListener] = None,
    ) -> bytes:
        """
        Scan the base directory, filter the files and return the compressed
        content. Takes the same arguments and raises the same errors as zip().
        """
        sink = _ByteSink()
        self.zip(
            base_dir,
            sink,
            filter_patterns,
            include_patterns=include_patterns,
            exclude_patterns=exclude_patterns,
            max_zip_size=max_zip_size,
            listener=listener,
        )
        return sink.contents


def zip_directory(
    base_dir: str,
    archive_path: str,
    filter_patterns: Optional[str] = None,
    include_patterns: Optional[Sequence[str]] = None,
    exclude_patterns: Optional[Sequence[str]] = None,
    max_zip_size: Optional[int] = None,
    config: Optional[Dict[str, Any]] = None,
) -> ArchiveSummary:
    """
    Convenience function to zip a directory into a file with progress logging.

    Args:
        base_dir: Directory to zip
        archive_path: Output .zip path (parent directories are created)
        filter_patterns: Combined pattern string
        include_patterns: Include globs (instead of filter_patterns)
        exclude_patterns: Exclude globs (instead of filter_patterns)
        max_zip_size: Size budget, falls back to archive.max_zip_size from config
        config: Configuration dict, loaded with load_config() when omitted

    Returns:
        ArchiveSummary of the written archive
    """
    if config is None:
        config = load_config()
    if max_zip_size is None:
        max_zip_size = int((config.get("archive") or {}).get("max_zip_size", 0))

    zipper = Zipper.from_config(config)

    def progress_listener(file_name: str, compressed_size: int) -> None:
        logger.progress(
            "Zipping %s (%.2f MB compressed so far)",
            file_name,
            compressed_size / (1024 * 1024),
        )

    parent = os.path.dirname(os.path.abspath(archive_path))
    os.makedirs(parent, exist_ok=True)
    temp_archive_path = f"{archive_path}.tmp.{os.getpid()}"

    try:
        with open(temp_archive_path, "wb") as output_stream:
            summary = zipper.zip(
                base_dir,
                output_stream,
                filter_patterns,
                include_patterns=include_patterns,
                exclude_patterns=exclude_patterns,
                max_zip_size=max_zip_size,
                listener=progress_listener,
                skip_paths=(temp_archive_path, archive_path),
            )

        # Atomic move to final location
        os.replace(temp_archive_path, archive_path)

    except BaseException:
        if os.path.exists(temp_archive_path):
            os.remove(temp_archive_path)
        raise

    logger.success(
        "Zip created successfully: %s (%d files, %.2f MB)",
        archive_path,
        summary.files_written,
        os.path.getsize(archive_path) / (1024 * 1024),
    )
    return summary
