from .errors import ZipperError, NoFilesToZipError, MaxZipSizeReachedError

# Pipeline components
from .pattern_parser import PatternSet, parse_filter_patterns, split_filter_patterns
from .glob_matcher import GlobMatcher
from .directory_selector import DirectorySelector, SelectionResult
from .archive_writer import (
    ArchiveWriter,
    ArchiveSummary,
    ProgressListener,
    ratio_estimator,
    AVERAGE_ZIP_COMPRESSION_RATIO,
)
from .config import load_config

# Facade
from .zipper import Zipper, zip_directory

__version__ = "1.2.1"

__all__ = [
    # Facade
    "Zipper",
    "zip_directory",
    # Errors
    "ZipperError",
    "NoFilesToZipError",
    "MaxZipSizeReachedError",
    # Pattern parsing
    "PatternSet",
    "parse_filter_patterns",
    "split_filter_patterns",
    # File selection
    "GlobMatcher",
    "DirectorySelector",
    "SelectionResult",
    # Archive writing
    "ArchiveWriter",
    "ArchiveSummary",
    "ProgressListener",
    "ratio_estimator",
    "AVERAGE_ZIP_COMPRESSION_RATIO",
    # Configuration
    "load_config",
]
