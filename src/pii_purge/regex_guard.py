"""Admission gate for user-supplied regex patterns.

Custom patterns run against every section, so a pattern that backtracks
catastrophically would stall a whole scan.  Nothing here times out; instead
the gate refuses the shapes known to explode before they are compiled.
"""

from __future__ import annotations
import logging
import re
from typing import Iterable

from .errors import InvalidPatternError, describe_error
from .patterns import CUSTOM_PRIORITY, PatternDefinition
from .types import CustomPattern

logger = logging.getLogger(__name__)

MAX_PATTERN_LENGTH = 500

_DANGEROUS: list[re.Pattern] = [
    # Nested quantifiers: (a+)+ or (a*)*
    re.compile(r"\([^)]*[+*]\)[+*{]"),
    # Quantified alternation: (a|a)+
    re.compile(r"\([^)]*\|[^)]*\)[+*]"),
    # Stacked bounded quantifiers: x{2}{3}
    re.compile(r"\{[0-9,]+\}\s*\{"),
    # (.*)+ / (.*)*
    re.compile(r"\(\.\*\)[+*]"),
    # (.+)+ / (.+)*
    re.compile(r"\(\.\+\)[+*]"),
    # Quantified group wrapping a quantified group
    re.compile(r"\([^)]*\([^)]*[+*][^)]*\)[^)]*\)[+*]"),
]

_DANGEROUS_MESSAGE = (
    "Pattern contains constructs that could cause slow matching. "
    "Avoid nested quantifiers like (a+)+ or (.*)+"
)


def validate_regex(pattern: str) -> str | None:
    """Return the reason a pattern is rejected, or None if it is acceptable."""
    if len(pattern) > MAX_PATTERN_LENGTH:
        return f"Pattern too long (max {MAX_PATTERN_LENGTH} characters, got {len(pattern)})"
    if not pattern.strip():
        return "Pattern cannot be empty"
    for dangerous in _DANGEROUS:
        if dangerous.search(pattern):
            return _DANGEROUS_MESSAGE
    try:
        re.compile(pattern)
    except re.error as e:
        return f"Invalid regex syntax: {e}"
    return None


def compile_custom_pattern(custom: CustomPattern) -> PatternDefinition:
    """Admit one custom pattern into the library at the custom tier."""
    reason = validate_regex(custom.regex)
    if reason is not None:
        raise InvalidPatternError(reason, pattern_name=custom.name)
    return PatternDefinition(
        category="custom",
        pattern=re.compile(custom.regex),
        priority=CUSTOM_PRIORITY,
        name=custom.name or custom.id,
    )


def admit_custom_patterns(
    customs: Iterable[CustomPattern],
) -> tuple[list[PatternDefinition], list[str]]:
    """Compile the enabled patterns; rejected ones are reported, not raised."""
    admitted: list[PatternDefinition] = []
    rejected: list[str] = []
    for custom in customs:
        if not custom.enabled:
            continue
        try:
            admitted.append(compile_custom_pattern(custom))
        except InvalidPatternError as e:
            logger.warning("Custom pattern rejected: %s", describe_error(e))
            rejected.append(str(e))
    return admitted, rejected
