# telemetry_analyzer/httplog/patterns.py - URI pattern normalization
"""
Collapses request URIs into endpoint patterns.
"""

import re
from typing import List, Optional, Pattern, Sequence, Tuple
import logging


logger = logging.getLogger(__name__)

NUMERIC_SEGMENT = re.compile(r'/\d+(?=/|\?|$)')
ID_PLACEHOLDER = '/:id'


class MatchingGroups:
    """
    Operator-defined URI groups, evaluated in declaration order.

    A pattern that does not compile is skipped; the others keep their
    declaration index in the group label.
    """

    def __init__(self, patterns: Optional[Sequence[str]] = None):
        """
        Initialize the matching groups.

        Args:
            patterns: Regular expressions in declaration order
        """
        self.patterns = list(patterns or [])
        self.compiled: List[Tuple[int, str, Pattern]] = []

        for index, pattern in enumerate(self.patterns, 1):
            try:
                self.compiled.append((index, pattern, re.compile(pattern)))
            except re.error as e:
                logger.warning(f"Invalid regex pattern in ALP config: {pattern} ({e})")

    def __bool__(self):
        return bool(self.patterns)

    def match(self, uri: str) -> Optional[str]:
        """
        Label of the first group matching the URI.

        Args:
            uri: Request URI

        Returns:
            "group_<index>: <pattern>", or None when no group matches
        """
        for index, pattern, regex in self.compiled:
            if regex.search(uri):
                return f"group_{index}: {pattern}"
        return None


def normalize_numeric_ids(uri: str) -> str:
    """
    Replace purely numeric path segments with ":id".

    Example:
        "/users/42/posts/7" -> "/users/:id/posts/:id"
    """
    return NUMERIC_SEGMENT.sub(ID_PLACEHOLDER, uri)


def patternize_uri(uri: str, groups: Optional[MatchingGroups] = None) -> str:
    """
    Normalize a URI into its endpoint pattern.

    Args:
        uri: Request URI
        groups: Optional operator matching groups, tried first

    Returns:
        Matching group label, or the numeric-id normalized URI
    """
    if groups:
        label = groups.match(uri)
        if label is not None:
            return label

    return normalize_numeric_ids(uri)
