"""Pattern library — ordered regex table for structured PII.

Each entry carries a category, a compiled pattern, an integer priority
(higher is checked first and wins overlaps) and an optional structural
validator.  A validator that returns False drops the match outright.

Every pattern here uses bounded repetition with no nested unbounded
quantifiers, so matching time stays linear in the section length.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Iterable, Sequence

Validator = Callable[[str], bool]

CUSTOM_PRIORITY = 100


@dataclass(frozen=True, slots=True)
class PatternDefinition:
    category: str
    pattern: re.Pattern
    priority: int
    validator: Validator | None = None
    name: str = ""


@dataclass(frozen=True, slots=True)
class PatternMatch:
    """A raw match that survived its validator."""
    definition: PatternDefinition
    start: int
    end: int
    value: str

    @property
    def validated(self) -> bool:
        return self.definition.validator is not None


# ── Validators ───────────────────────────────────────────────────────

def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def luhn_check(number: str) -> bool:
    """Luhn checksum over a string of digits."""
    total = 0
    for i, ch in enumerate(reversed(number)):
        digit = int(ch)
        if i % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def validate_ssn(value: str) -> bool:
    """SSA allocation rules plus the known advertising/dummy numbers."""
    digits = _digits(value)
    if len(digits) != 9:
        return False
    area, group, serial = digits[:3], digits[3:5], digits[5:]
    if area in ("000", "666") or area >= "900":
        return False
    if group == "00" or serial == "0000":
        return False
    # Reserved for advertising: 987-65-4320 through 987-65-4329
    if area == "987" and group == "65" and 4320 <= int(serial) <= 4329:
        return False
    # Woolworth wallet card
    if digits == "078051120":
        return False
    return True


def validate_credit_card(value: str) -> bool:
    digits = _digits(value)
    if not 15 <= len(digits) <= 16:
        return False
    return luhn_check(digits)


def validate_phone(value: str) -> bool:
    return 10 <= len(_digits(value)) <= 11


# Capitalized pairs that are almost never a person
_NOT_NAMES = frozenset({
    # Places
    "New York", "Los Angeles", "San Francisco", "San Diego", "Las Vegas",
    "United States", "United Kingdom", "North America", "South America",
    "North Carolina", "South Carolina", "New Jersey", "New Mexico",
    "New Hampshire", "New Zealand",
    # Companies
    "General Electric", "American Express",
    # Column headers and field labels
    "Full Name", "First Name", "Last Name", "Middle Name", "Given Name",
    "Family Name", "Company Name", "Business Name", "Account Name",
    "Customer Name", "Employee Name", "Contact Name", "Display Name",
    "Legal Name", "Billing Name", "Shipping Name", "Primary Contact",
    "Emergency Contact", "Phone Number", "Email Address", "Street Address",
    "Mailing Address", "Billing Address", "Shipping Address", "Home Address",
    "Work Address", "Office Address", "Physical Address", "Postal Code",
    "Zip Code", "Area Code", "Country Code", "Report Date", "Start Date",
    "End Date", "Due Date", "Birth Date", "Hire Date", "Created Date",
    "Modified Date", "Last Modified", "Date Created", "Customer Service",
    "Technical Support", "Human Resources", "Account Number",
    "Reference Number", "Order Number", "Invoice Number", "Serial Number",
    "Tracking Number", "Case Number", "Report Number", "Total Amount",
    "Grand Total", "Net Amount", "Tax Amount",
})


def validate_person_name(value: str) -> bool:
    return value not in _NOT_NAMES


# ── Pattern table ────────────────────────────────────────────────────

_PATTERNS: list[PatternDefinition] = [
    PatternDefinition("email", re.compile(
        r"\b[a-zA-Z0-9._%+\-]{1,64}@(?:[a-zA-Z0-9\-]{1,63}\.){1,8}[a-zA-Z]{2,24}\b"
    ), 100, name="email"),

    # SSN: 123-45-6789, 123 45 6789, 123456789
    PatternDefinition("ssn", re.compile(
        r"\b\d{3}[-\s]?\d{2}[-\s]?\d{4}\b"
    ), 100, validate_ssn, name="ssn"),

    # Credit card: 4x4 groups, Amex 4-6-5, or a bare 15/16 digit run
    PatternDefinition("credit_card", re.compile(
        r"\b(?:\d{4}[-\s]?){3}\d{4}\b"
        r"|\b\d{4}[-\s]?\d{6}[-\s]?\d{5}\b"
        r"|\b\d{15,16}\b"
    ), 95, validate_credit_card, name="credit_card"),

    # Phone: US formats
    PatternDefinition("phone", re.compile(
        r"(?<!\d)"
        r"(?:\+?1[-.\s]?)?"
        r"(?:\(?\d{3}\)?[-.\s]?)?"
        r"\d{3}[-.\s]?\d{4}"
        r"(?!\d)"
    ), 90, validate_phone, name="phone_us"),

    # Phone: E.164
    PatternDefinition("phone", re.compile(
        r"\+[1-9]\d{6,14}\b"
    ), 85, name="phone_e164"),

    PatternDefinition("ip_address", re.compile(
        r"\b(?:(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\.){3}"
        r"(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\b"
    ), 80, name="ipv4"),

    # UK postcode: SW1A 1AA, M1 1AA, B33 8TH
    PatternDefinition("address", re.compile(
        r"\b[A-Z]{1,2}\d{1,2}[A-Z]?\s?\d[A-Z]{2}\b"
    ), 70, name="uk_postcode"),

    # Date of birth: MM/DD/YYYY or YYYY-MM-DD
    PatternDefinition("date_of_birth", re.compile(
        r"\b(?:0?[1-9]|1[0-2])[-/](?:0?[1-9]|[12]\d|3[01])[-/](?:19|20)\d{2}\b"
        r"|\b(?:19|20)\d{2}[-/](?:0?[1-9]|1[0-2])[-/](?:0?[1-9]|[12]\d|3[01])\b"
    ), 70, name="date"),

    # Street address: up to four whitespace-separated words before the suffix
    PatternDefinition("address", re.compile(
        r"\b\d{1,5}\s+[A-Za-z]{1,30}(?:\s+[A-Za-z]{1,30}){0,3}\s+"
        r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Drive|Dr|Lane|Ln|Way|"
        r"Court|Ct|Circle|Cir|Place|Pl)\b\.?",
        re.IGNORECASE,
    ), 60, name="street_address"),

    # Person name with a title
    PatternDefinition("person_name", re.compile(
        r"\b(?:Mr|Mrs|Ms|Miss|Dr|Prof)\.?\s+[A-Z][a-z]{1,20}(?:\s+[A-Z][a-z]{1,20}){1,3}\b"
    ), 50, name="titled_name"),

    # Person name: any capitalized pair; high false-positive rate
    PatternDefinition("person_name", re.compile(
        r"\b[A-Z][a-z]{2,15}\s+[A-Z][a-z]{2,20}\b"
    ), 30, validate_person_name, name="capitalized_pair"),
]

PATTERNS: tuple[PatternDefinition, ...] = tuple(
    sorted(_PATTERNS, key=lambda p: -p.priority)
)


@lru_cache(maxsize=128)
def _patterns_for_key(key: tuple[str, ...]) -> tuple[PatternDefinition, ...]:
    return tuple(p for p in PATTERNS if p.category in key)


def get_patterns_for_categories(categories: Iterable[str]) -> tuple[PatternDefinition, ...]:
    """Patterns for the enabled categories, priority-ordered.

    Cached on the sorted category set, so the same set in any order returns
    the same tuple object.
    """
    return _patterns_for_key(tuple(sorted(set(categories))))


def merge_custom_patterns(
    base: Sequence[PatternDefinition],
    custom: Sequence[PatternDefinition],
) -> tuple[PatternDefinition, ...]:
    """Fold admitted custom patterns into a table, keeping priority order."""
    if not custom:
        return tuple(base)
    return tuple(sorted([*base, *custom], key=lambda p: -p.priority))


# ── Matching ─────────────────────────────────────────────────────────

def find_matches(text: str, definitions: Sequence[PatternDefinition]) -> list[PatternMatch]:
    """Run every pattern, drop validator rejections, resolve overlaps."""
    matches: list[PatternMatch] = []
    for definition in definitions:
        for m in definition.pattern.finditer(text):
            if m.end() <= m.start():
                continue
            value = m.group()
            if definition.validator is not None and not definition.validator(value):
                continue
            matches.append(PatternMatch(definition, m.start(), m.end(), value))
    return resolve_overlaps(matches)


def resolve_overlaps(matches: list[PatternMatch]) -> list[PatternMatch]:
    """Remove overlapping matches, keeping the higher-priority ones."""
    if not matches:
        return matches
    # Priority desc, then longer span, then earlier start
    ranked = sorted(
        matches,
        key=lambda m: (-m.definition.priority, -(m.end - m.start), m.start),
    )
    taken: list[PatternMatch] = []
    used_ranges: list[tuple[int, int]] = []
    for m in ranked:
        if not any(m.start < e and m.end > s for s, e in used_ranges):
            taken.append(m)
            used_ranges.append((m.start, m.end))
    return sorted(taken, key=lambda m: (m.start, m.end))
