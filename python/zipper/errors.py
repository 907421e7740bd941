"""
Exceptions raised by the zipper pipeline.

Both failure kinds close the output stream before they are raised, so a
caller only has to decide whether the condition is fatal for its use case.
"""

from typing import Optional


class ZipperError(Exception):
    """Base class for all zipper failures."""

    pass


class NoFilesToZipError(ZipperError):
    """
    Raised when there is nothing to archive.

    Either the base directory is empty or does not exist, all files were
    filtered out by the patterns, or none of the selected files could be read.
    """

    def __init__(self, message: str = "No files to zip"):
        super().__init__(message)


class MaxZipSizeReachedError(ZipperError):
    """Raised when the next file would push the archive over its size budget."""

    def __init__(
        self,
        compressed_size: int,
        max_zip_size: int,
        file_name: Optional[str] = None,
    ):
        self.file_name = file_name
        self.compressed_size = compressed_size
        self.max_zip_size = max_zip_size

        if file_name is not None:
            message = (
                f"When trying to zip file {file_name}, zip compressed size "
                f"reached a limit of {max_zip_size} bytes"
            )
        else:
            message = f"Zip compressed size reached a limit of {max_zip_size} bytes"
        super().__init__(message)
