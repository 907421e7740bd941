"""
Streaming ZIP writer with a compressed-size budget.

Files are added one at a time to a ZIP written straight into the caller's
output stream. Before each file the writer estimates how much it will add to
the archive and stops once the estimate would cross ``max_zip_size``.
"""

import os
import zipfile
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, List, Optional, Sequence

from .colored_logger import get_colored_logger
from .errors import MaxZipSizeReachedError, NoFilesToZipError

logger = get_colored_logger(__name__)

AVERAGE_ZIP_COMPRESSION_RATIO = 4.0

ProgressListener = Callable[[str, int], None]
SizeEstimator = Callable[[int], float]

COMPRESSION_METHODS = {
    "stored": zipfile.ZIP_STORED,
    "deflated": zipfile.ZIP_DEFLATED,
    "bzip2": zipfile.ZIP_BZIP2,
    "lzma": zipfile.ZIP_LZMA,
}


def ratio_estimator(ratio: float = AVERAGE_ZIP_COMPRESSION_RATIO) -> SizeEstimator:
    """Estimate a file's compressed size as ``raw_size / ratio``."""
    if ratio <= 0:
        raise ValueError(f"Compression ratio must be positive, got {ratio}")

    def estimate(raw_size: int) -> float:
        return raw_size / ratio

    return estimate


def is_readable_file(path: str) -> bool:
    """Check that ``path`` is a regular file (after symlinks) we may open."""
    return os.path.isfile(path) and os.access(path, os.R_OK)


@dataclass
class ArchiveSummary:
    """What a completed write produced."""

    entries: List[str] = field(default_factory=list)
    files_skipped: int = 0
    compressed_size: int = 0
    uncompressed_size: int = 0

    @property
    def files_written(self) -> int:
        return len(self.entries)


class ArchiveWriter:
    """Writes a list of base-relative files into a ZIP output stream."""

    def __init__(
        self,
        compression: int = zipfile.ZIP_DEFLATED,
        chunk_size: int = 8192,
        size_estimator: Optional[SizeEstimator] = None,
    ):
        self.compression = compression
        self.chunk_size = max(1024, chunk_size)  # Minimum 1KB chunks
        self.size_estimator = size_estimator or ratio_estimator()

    def _create_zipfile_instance(self, output_stream: BinaryIO) -> zipfile.ZipFile:
        return zipfile.ZipFile(
            output_stream, "w", compression=self.compression, allowZip64=True
        )

    def _close(self, zipf: Optional[zipfile.ZipFile], output_stream: BinaryIO) -> None:
        # ZipFile.close() writes the central directory but leaves a caller's
        # stream open
        if zipf is not None:
            zipf.close()
        output_stream.close()

    def _exceeds_budget(
        self, compressed_size: int, raw_size: int, max_zip_size: int
    ) -> bool:
        if max_zip_size <= 0:
            return False
        return compressed_size + self.size_estimator(raw_size) > max_zip_size

    def _add_file_to_zip(
        self, zipf: zipfile.ZipFile, file_path: str, archive_name: str
    ) -> zipfile.ZipInfo:
        """Stream one file into a new entry and return the finished entry."""
        zinfo = zipfile.ZipInfo.from_file(
            file_path, archive_name, strict_timestamps=False
        )
        zinfo.compress_type = self.compression

        with open(file_path, "rb") as src_file:
            with zipf.open(zinfo, "w") as dst_file:
                while True:
                    chunk = src_file.read(self.chunk_size)
                    if not chunk:
                        break
                    dst_file.write(chunk)

        return zinfo

    def write(
        self,
        base_dir: str,
        file_names: Sequence[str],
        output_stream: BinaryIO,
        max_zip_size: int = 0,
        listener: Optional[ProgressListener] = None,
    ) -> ArchiveSummary:
        """
        Archive ``file_names`` (relative to ``base_dir``) into ``output_stream``.

        Args:
            base_dir: Directory the names are relative to
            file_names: Ordered base-relative paths, used as entry names
            output_stream: Writable binary stream, closed when done
            max_zip_size: Compressed size budget in bytes, 0 for no limit
            listener: Called with (file name, compressed bytes so far) right
                before each file is compressed

        Returns:
            ArchiveSummary of the written archive

        Raises:
            NoFilesToZipError: If there is nothing to archive
            MaxZipSizeReachedError: If the next file would exceed the budget.
                The archive holds every file before it and is properly closed.
            OSError: If reading a file or writing the stream fails. The
                stream is left unusable.
        """
        if not file_names:
            output_stream.close()
            logger.info("No files to zip")
            raise NoFilesToZipError()

        base_dir = os.fspath(base_dir)
        summary = ArchiveSummary()
        zipf = self._create_zipfile_instance(output_stream)

        for file_name in file_names:
            logger.debug("Adding file to zip: %s", file_name)

            file_path = os.path.join(base_dir, file_name)
            if not is_readable_file(file_path):
                logger.warning("Skipping unreadable file: %s", file_path)
                summary.files_skipped += 1
                continue

            raw_size = os.path.getsize(file_path)
            if self._exceeds_budget(summary.compressed_size, raw_size, max_zip_size):
                logger.info(
                    "Maximum zip file size reached. Zip size: %d bytes Limit: %d bytes",
                    summary.compressed_size,
                    max_zip_size,
                )
                self._close(zipf, output_stream)
                raise MaxZipSizeReachedError(
                    summary.compressed_size, max_zip_size, file_name=file_name
                )

            if listener is not None:
                listener(file_name, summary.compressed_size)

            zinfo = self._add_file_to_zip(zipf, file_path, file_name)
            summary.entries.append(file_name)
            summary.compressed_size += zinfo.compress_size
            summary.uncompressed_size += zinfo.file_size

        self._close(zipf, output_stream)

        if not summary.entries:
            logger.info(
                "No files to zip, all %d selected files were unreadable",
                summary.files_skipped,
            )
            raise NoFilesToZipError()

        logger.debug(
            "Zip complete: %d files, %d bytes compressed, %d skipped",
            summary.files_written,
            summary.compressed_size,
            summary.files_skipped,
        )
        return summary
