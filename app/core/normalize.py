"""Record Normalizer — pure reduction of freeform MAC/phone/name text to canonical form.

Invariants:
    - Canonical MAC is exactly 12 lowercase hex chars, no separators
    - Rejection is a None return (validation outcome), never an exception
    - Phone check is length-only (6-20 after trim) — admits international formats

Design Decisions:
    - Strip-everything-non-hex over separator-aware regex: colon, dash, dot, space
      and mixed styles all collapse to one form, so uniqueness and search-by-MAC
      compare a single representation (ADR: one canonical form at the edge)
"""

import re

MAC_HEX_LENGTH = 12
PHONE_MIN_LENGTH = 6
PHONE_MAX_LENGTH = 20
NAME_MAX_LENGTH = 200

_NON_HEX = re.compile(r"[^0-9a-fA-F]")


def normalize_mac(text: str) -> str | None:
    """Return the canonical 12-hex-char MAC, or None when it can't be one."""
    digits = _NON_HEX.sub("", str(text)).lower()
    if len(digits) != MAC_HEX_LENGTH:
        return None
    return digits


def format_mac(canonical: str, sep: str = ":") -> str:
    """aabbccddeeff -> aa:bb:cc:dd:ee:ff"""
    return sep.join(canonical[i:i + 2] for i in range(0, len(canonical), 2))


def is_valid_phone(text: str) -> bool:
    return PHONE_MIN_LENGTH <= len(str(text).strip()) <= PHONE_MAX_LENGTH


def clean_phone(text: str) -> str | None:
    """Trimmed phone if valid, else None."""
    phone = str(text).strip()
    return phone if is_valid_phone(phone) else None


def clean_name(text: str) -> str | None:
    """Trimmed name if non-empty and within NAME_MAX_LENGTH, else None."""
    name = str(text).strip()
    if not name or len(name) > NAME_MAX_LENGTH:
        return None
    return name
