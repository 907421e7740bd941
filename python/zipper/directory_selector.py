"""
Directory scanning and pattern-based file selection.

This module walks a base directory and decides which files end up in the
archive, based on include and exclude glob patterns.
"""

import os
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from .colored_logger import get_colored_logger
from .glob_matcher import MATCH_ALL, GlobMatcher

logger = get_colored_logger(__name__)


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of a directory scan. Paths are base-relative and use ``/``."""

    base_dir: str
    included_files: Tuple[str, ...] = ()
    excluded_files: Tuple[str, ...] = ()
    excluded_dirs: Tuple[str, ...] = ()
    not_followed_symlinks: Tuple[str, ...] = ()
    unreadable_dirs: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.included_files)

    def __iter__(self) -> Iterator[str]:
        return iter(self.included_files)

    def __bool__(self) -> bool:
        return bool(self.included_files)


@dataclass
class _ScanState:
    """Mutable accumulator used while a scan is running."""

    included_files: List[str] = field(default_factory=list)
    excluded_files: List[str] = field(default_factory=list)
    excluded_dirs: List[str] = field(default_factory=list)
    not_followed_symlinks: List[str] = field(default_factory=list)
    unreadable_dirs: List[str] = field(default_factory=list)
    visited: Set[str] = field(default_factory=set)

    def freeze(self, base_dir: str) -> SelectionResult:
        return SelectionResult(
            base_dir=base_dir,
            included_files=tuple(self.included_files),
            excluded_files=tuple(self.excluded_files),
            excluded_dirs=tuple(self.excluded_dirs),
            not_followed_symlinks=tuple(self.not_followed_symlinks),
            unreadable_dirs=tuple(self.unreadable_dirs),
        )


def _join(rel_dir: str, name: str) -> str:
    return f"{rel_dir}/{name}" if rel_dir else name


class DirectorySelector:
    """
    Selects files below a base directory using include/exclude globs.

    A file is selected when it matches at least one include pattern (``**``
    when none are given) and no exclude pattern. Symbolic links to
    directories are not descended into unless ``follow_symlinks`` is set;
    symbolic links to files are selected like regular files.
    """

    def __init__(self, case_sensitive: bool = False, follow_symlinks: bool = False):
        self.case_sensitive = case_sensitive
        self.follow_symlinks = follow_symlinks

    def select(
        self,
        base_dir: str,
        include_patterns: Optional[Sequence[str]] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
    ) -> SelectionResult:
        """
        Scan ``base_dir`` and return the files passing the filter.

        A missing or unreadable base directory yields an empty result.
        """
        base_dir = os.fspath(base_dir)
        includes = GlobMatcher(include_patterns or [MATCH_ALL], self.case_sensitive)
        excludes = GlobMatcher(exclude_patterns or [], self.case_sensitive)
        state = _ScanState()

        if not os.path.isdir(base_dir):
            logger.info("Base directory missing or not a directory: %s", base_dir)
            return state.freeze(base_dir)

        state.visited.add(os.path.realpath(base_dir))
        self._scan_directory(base_dir, "", includes, excludes, state)

        logger.debug(
            "Scan of %s complete: %d included, %d excluded",
            base_dir,
            len(state.included_files),
            len(state.excluded_files),
        )
        return state.freeze(base_dir)

    def _list_entries(self, abs_dir: str) -> List[os.DirEntry]:
        with os.scandir(abs_dir) as it:
            return sorted(it, key=lambda entry: entry.name)

    def _scan_directory(
        self,
        abs_dir: str,
        rel_dir: str,
        includes: GlobMatcher,
        excludes: GlobMatcher,
        state: _ScanState,
    ) -> None:
        try:
            entries = self._list_entries(abs_dir)
        except OSError as e:
            logger.warning("Cannot read directory, skipping: %s (%s)", abs_dir, e)
            state.unreadable_dirs.append(rel_dir)
            return

        for entry in entries:
            rel_path = _join(rel_dir, entry.name)

            if entry.is_symlink():
                self._handle_symlink(entry, rel_path, includes, excludes, state)
            elif entry.is_dir(follow_symlinks=False):
                self._handle_directory(entry.path, rel_path, includes, excludes, state)
            elif entry.is_file(follow_symlinks=False):
                self._classify_file(rel_path, includes, excludes, state)

    def _handle_symlink(
        self,
        entry: os.DirEntry,
        rel_path: str,
        includes: GlobMatcher,
        excludes: GlobMatcher,
        state: _ScanState,
    ) -> None:
        if entry.is_file():
            self._classify_file(rel_path, includes, excludes, state)
            return

        if not entry.is_dir() or not self.follow_symlinks:
            # Dangling link, or a linked directory we do not walk into
            state.not_followed_symlinks.append(rel_path)
            return

        target = os.path.realpath(entry.path)
        if target in state.visited:
            logger.debug("Symbolic link loop detected, not following: %s", rel_path)
            state.not_followed_symlinks.append(rel_path)
            return

        self._handle_directory(entry.path, rel_path, includes, excludes, state)

    def _handle_directory(
        self,
        abs_path: str,
        rel_path: str,
        includes: GlobMatcher,
        excludes: GlobMatcher,
        state: _ScanState,
    ) -> None:
        if excludes.matches_contents_of(rel_path):
            state.excluded_dirs.append(rel_path)
            return
        if excludes.matches(rel_path):
            state.excluded_dirs.append(rel_path)

        real_path = os.path.realpath(abs_path)
        state.visited.add(real_path)
        try:
            self._scan_directory(abs_path, rel_path, includes, excludes, state)
        finally:
            # Only ancestors count as loops, siblings may share a target
            state.visited.discard(real_path)

    def _classify_file(
        self,
        rel_path: str,
        includes: GlobMatcher,
        excludes: GlobMatcher,
        state: _ScanState,
    ) -> None:
        if not includes.matches(rel_path):
            return
        if excludes.matches(rel_path):
            state.excluded_files.append(rel_path)
            return
        state.included_files.append(rel_path)
