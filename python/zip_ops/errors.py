"""
Exceptions raised by the ZIP assembly components.

Missing or unreadable source files surface as the builtin
``FileNotFoundError`` / ``OSError`` so callers can handle them the usual way.
"""


class ConfigurationError(ValueError):
    """Raised when an operation is executed without a usable configuration."""

    pass


class PatternCompileError(ValueError):
    """Raised when a raw include/exclude pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason
