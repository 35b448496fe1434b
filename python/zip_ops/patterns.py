"""
Compilation of include/exclude patterns.

Patterns may be given as raw strings or as already compiled objects; anything
exposing a ``search(text)`` method is accepted as-is.
"""

import re
from typing import Any, Dict, Iterable, List, Union

from colored_logger import get_colored_logger

from .errors import PatternCompileError

logger = get_colored_logger(__name__)

PatternLike = Union[str, "re.Pattern[str]", Any]

# Cache for compiled regex patterns
_regex_cache: Dict[str, "re.Pattern[str]"] = {}


def compile_pattern(pattern: PatternLike) -> Any:
    """
    Compile a raw pattern string, or pass through an already compiled pattern.

    Raises:
        PatternCompileError: If a raw string is not a valid regular expression
        TypeError: If the value is neither a string nor a pattern object
    """
    if isinstance(pattern, str):
        if pattern in _regex_cache:
            return _regex_cache[pattern]

        try:
            compiled = re.compile(pattern)
        except re.error as e:
            logger.error("Invalid regex pattern '%s': %s", pattern, e)
            raise PatternCompileError(pattern, str(e)) from e

        _regex_cache[pattern] = compiled
        return compiled

    if callable(getattr(pattern, "search", None)):
        return pattern

    raise TypeError(f"Expected a pattern string or compiled pattern, got {pattern!r}")


def compile_patterns(patterns: Iterable[PatternLike]) -> List[Any]:
    """Compile every pattern in order."""
    return [compile_pattern(pattern) for pattern in patterns]
