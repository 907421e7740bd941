"""
Parsing of combined filter strings into include and exclude glob lists.

A filter string holds glob patterns separated by commas and/or newlines.
Patterns prefixed with ``!`` are excludes, everything else is an include:

    "**/*.py, !**/test_*.py\\n**/*.cfg"
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from .colored_logger import get_colored_logger

logger = get_colored_logger(__name__)

NEGATION_MARKER = "!"
_SEPARATORS = re.compile(r"[,\n]")


@dataclass
class PatternSet:
    """Include and exclude glob patterns, in input order."""

    include_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.include_patterns and not self.exclude_patterns


def split_filter_patterns(filter_patterns: Optional[str]) -> List[str]:
    """
    Splits a comma/newline separated string into non-empty, stripped tokens.
    """
    if not filter_patterns:
        return []
    return [
        token.strip()
        for token in _SEPARATORS.split(filter_patterns)
        if token.strip()
    ]


def parse_filter_patterns(filter_patterns: Optional[str]) -> PatternSet:
    """
    Parse a combined filter string into a PatternSet.

    Args:
        filter_patterns: Comma and/or newline separated globs, or None

    Returns:
        PatternSet with the ``!`` marker removed from exclude patterns
    """
    patterns = PatternSet()

    for token in split_filter_patterns(filter_patterns):
        if token.startswith(NEGATION_MARKER):
            pattern = token[len(NEGATION_MARKER) :]
            patterns.exclude_patterns.append(pattern)
            logger.debug("Exclude pattern detected: >%s<", pattern)
        else:
            patterns.include_patterns.append(token)
            logger.debug("Include pattern detected: >%s<", token)

    return patterns
