"""Error taxonomy.

A structural validator returning ``False`` is not an error: the match is
simply excluded. Only the cases below raise.
"""

from __future__ import annotations


class PurgeError(Exception):
    """Base class for pii-purge errors."""


class InvalidPatternError(PurgeError, ValueError):
    """A custom pattern failed the admission gate."""

    def __init__(self, reason: str, pattern_name: str = "") -> None:
        self.reason = reason
        self.pattern_name = pattern_name
        label = f"{pattern_name}: " if pattern_name else ""
        super().__init__(f"{label}{reason}")


class MalformedSectionError(PurgeError, ValueError):
    """A content section is missing required fields."""


def describe_error(exc: BaseException) -> str:
    """One-line, PII-safe summary of an exception for logs and status fields.

    Error messages can embed document text, so only the type name and the
    first line (truncated) are kept.
    """
    message = str(exc).split("\n", 1)[0][:100]
    name = type(exc).__name__
    return f"{name}: {message}" if message else name
