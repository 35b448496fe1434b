"""
Include/exclude evaluation of candidate file names.
"""

from typing import Any, Iterable, List, Optional

from colored_logger import get_colored_logger

logger = get_colored_logger(__name__)


def _matches_any(patterns: List[Any], name: str) -> bool:
    return any(pattern.search(name) is not None for pattern in patterns)


class PatternMatcher:
    """
    Decides whether a basename is selected by ordered inclusion and exclusion patterns.

    With no inclusion patterns every name is included; a name must then not
    match any exclusion pattern. Exclusion always wins over inclusion.
    """

    def __init__(
        self,
        included: Optional[Iterable[Any]] = None,
        excluded: Optional[Iterable[Any]] = None,
    ):
        self.included = list(included or [])
        self.excluded = list(excluded or [])

    def is_included(self, name: str) -> bool:
        if not self.included:
            return True
        return _matches_any(self.included, name)

    def is_excluded(self, name: str) -> bool:
        return _matches_any(self.excluded, name)

    def accepts(self, name: str) -> bool:
        """Return True when ``name`` passes both the inclusion and exclusion rules."""
        if not self.is_included(name):
            logger.trace("Rejected %s: no inclusion pattern matched", name)
            return False

        if self.is_excluded(name):
            logger.trace("Rejected %s: matched an exclusion pattern", name)
            return False

        return True
