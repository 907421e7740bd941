"""
Ant-style glob matching for relative file paths.

Segment matching is delegated to pathspec's gitwildmatch patterns. This
module fixes the places where the two syntaxes disagree:

- every pattern is rooted at the base directory, so ``*.txt`` only matches
  top-level files and ``**/*.txt`` matches at any depth;
- the last pattern segment must match the last path segment, so ``build``
  does not match ``build/out.o`` (gitignore would match it as a directory);
- a pattern starting with ``/`` only matches a path that also starts with
  ``/`` (and the other way around);
- ``\\`` in a pattern is a path separator, not an escape;
- ``[`` and ``]`` are literal characters, there are no character classes;
- matching is case-insensitive unless asked otherwise.
"""

from typing import Iterable, List, Optional, Tuple

import pathspec

SEPARATOR = "/"
MATCH_ALL = "**"
_CONTENTS_SUFFIX = SEPARATOR + MATCH_ALL

# Appended to both sides so the real last segment is never the pattern's last
# segment. NUL cannot occur in a file name.
_TERMINATOR = SEPARATOR + "\x00"

# Ant patterns have no character classes
_CLASS_OPEN = "["
_ESCAPED_CLASS_OPEN = "\\["

CompiledPattern = Tuple[bool, Optional[pathspec.PathSpec]]


def normalize_pattern(pattern: str) -> str:
    """Use forward slashes and expand a trailing separator to ``/**``."""
    normalized = pattern.replace("\\", SEPARATOR)
    if normalized.endswith(SEPARATOR) and normalized.strip(SEPARATOR):
        normalized += MATCH_ALL
    return normalized


class GlobMatcher:
    """Matches relative paths against a list of Ant-style glob patterns."""

    def __init__(self, patterns: Iterable[str], case_sensitive: bool = False):
        self.case_sensitive = case_sensitive
        self.patterns: List[str] = [normalize_pattern(p) for p in patterns]
        self._compiled: List[CompiledPattern] = [
            self._compile(p) for p in self.patterns
        ]
        # "<dir>/**" matches everything below any directory matching <dir>
        self._contents: List[CompiledPattern] = [
            self._compile(p[: -len(_CONTENTS_SUFFIX)])
            for p in self.patterns
            if p.endswith(_CONTENTS_SUFFIX) and len(p) > len(_CONTENTS_SUFFIX)
        ]

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def _fold(self, value: str) -> str:
        return value if self.case_sensitive else value.lower()

    def _compile(self, pattern: str) -> CompiledPattern:
        anchored = pattern.startswith(SEPARATOR)
        body = pattern[1:] if anchored else pattern
        if not body.strip(SEPARATOR):
            return anchored, None
        literal = self._fold(body).replace(_CLASS_OPEN, _ESCAPED_CLASS_OPEN)
        rooted = SEPARATOR + literal + _TERMINATOR
        return anchored, pathspec.PathSpec.from_lines("gitwildmatch", [rooted])

    def _match_any(self, compiled: List[CompiledPattern], path: str) -> bool:
        path = path.replace("\\", SEPARATOR)
        path_anchored = path.startswith(SEPARATOR)
        relative = path[1:] if path_anchored else path
        if not relative:
            return False
        candidate = self._fold(relative) + _TERMINATOR

        for anchored, spec in compiled:
            if spec is None or anchored != path_anchored:
                continue
            if spec.match_file(candidate):
                return True
        return False

    def matches(self, path: str) -> bool:
        """True if ``path`` matches at least one pattern."""
        return self._match_any(self._compiled, path)

    def matches_contents_of(self, directory: str) -> bool:
        """True if every path below ``directory`` is guaranteed to match."""
        return self._match_any(self._contents, directory)
