"""Partial masks — hide most of a value while keeping its shape readable.

    ssn            ***-**-1234
    credit_card    ****-****-****-5678
    email          j****@domain.com
    phone          (***) ***-1234
    address        *** Example St
    person_name    J**** S****   (titles kept)
    ip_address     ***.***.***.123
    date_of_birth  **/**/1990
"""

from __future__ import annotations
import re

MASK = "*"

_TITLE = re.compile(r"^(?:Mr|Mrs|Ms|Miss|Dr|Prof)\.?$", re.IGNORECASE)


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def mask_ssn(value: str) -> str:
    digits = _digits(value)
    if len(digits) != 9:
        return MASK * len(value)
    return f"***-**-{digits[-4:]}"


def mask_credit_card(value: str) -> str:
    digits = _digits(value)
    if not 15 <= len(digits) <= 16:
        return MASK * len(value)
    last4 = digits[-4:]
    for sep in ("-", " "):
        if sep in value:
            if len(digits) == 16:
                return sep.join([MASK * 4] * 3 + [last4])
            return f"{MASK * 4}{sep}{MASK * 6}{sep}{MASK}{last4}"
    return MASK * (len(digits) - 4) + last4


def mask_email(value: str) -> str:
    at = value.find("@")
    if at < 1:
        return MASK * len(value)
    local, domain = value[:at], value[at:]
    if len(local) == 1:
        return local + MASK * 3 + domain
    return local[0] + MASK * min(len(local) - 1, 5) + domain


def mask_phone(value: str) -> str:
    digits = _digits(value)
    if len(digits) < 10:
        return MASK * len(value)
    last4 = digits[-4:]
    if "(" in value and ")" in value:
        return f"(***) ***-{last4}"
    if value.startswith("+"):
        country = re.match(r"^\+\d+", value)
        code = country.group() if country else "+1"
        return f"{code}-***-***-{last4}"
    if "-" in value:
        return f"***-***-{last4}"
    if "." in value:
        return f"***.***.{last4}"
    return MASK * (len(digits) - 4) + last4


def mask_address(value: str) -> str:
    m = re.match(r"^(\d+)\s+(.+)$", value)
    if m:
        return MASK * len(m.group(1)) + " " + m.group(2)
    words = value.split()
    if len(words) > 1:
        words[0] = MASK * len(words[0])
        return " ".join(words)
    return MASK * len(value)


def mask_person_name(value: str) -> str:
    parts = []
    for part in value.split():
        if _TITLE.match(part) or len(part) == 1:
            parts.append(part)
        else:
            parts.append(part[0] + MASK * min(len(part) - 1, 5))
    return " ".join(parts)


def mask_ip_address(value: str) -> str:
    octets = value.split(".")
    if len(octets) != 4:
        return MASK * len(value)
    return f"***.***.***.{octets[3]}"


def mask_date_of_birth(value: str) -> str:
    if re.match(r"^\d{4}[-/]\d{1,2}[-/]\d{1,2}$", value):
        sep = "-" if "-" in value else "/"
        return f"{value[:4]}{sep}**{sep}**"
    m = re.match(r"^(\d{1,2})([-/])(\d{1,2})\2(\d{4})$", value)
    if m:
        sep, year = m.group(2), m.group(4)
        return f"**{sep}**{sep}{year}"
    if len(value) >= 4:
        return MASK * (len(value) - 4) + value[-4:]
    return MASK * len(value)


def mask_custom(value: str) -> str:
    if len(value) <= 4:
        return MASK * len(value)
    visible = min(2, len(value) // 4)
    return value[:visible] + MASK * (len(value) - 2 * visible) + value[-visible:]


_MASKERS = {
    "ssn": mask_ssn,
    "credit_card": mask_credit_card,
    "email": mask_email,
    "phone": mask_phone,
    "address": mask_address,
    "person_name": mask_person_name,
    "ip_address": mask_ip_address,
    "date_of_birth": mask_date_of_birth,
    "custom": mask_custom,
}


def partial_mask(category: str, value: str) -> str:
    """Format-preserving mask for a detected value."""
    masker = _MASKERS.get(category)
    if masker is not None:
        return masker(value)
    if len(value) <= 2:
        return MASK * len(value)
    return value[0] + MASK * (len(value) - 2) + value[-1]
