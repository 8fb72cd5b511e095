"""Per-field parsing for the fixed onboarding profile schema."""

from __future__ import annotations

import math
import re
from typing import Any

from .constants import (
    AMOUNT_FIELDS,
    MAX_AMOUNT,
    PROFILE_FALLBACK_PROMPT,
    PROFILE_FIELD_ORDER,
    PROFILE_PROMPTS,
    RISK_TOLERANCE_KEYWORDS,
)
from .types import UserProfile
from onboarding.utils import round_half_up

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"\d*(?:\.\d*)?")


def normalize_text(value: str) -> str:
    return value.strip().lower()


def parse_country(value: str) -> str | None:
    country = value.strip()
    return country or None


def parse_amount(value: str) -> int | None:
    """
    '$3,200' -> 3200, 'three thousand' -> None.

    Every non-digit, non-dot character is dropped first, so '$3k-$4k' reads as 34.
    """
    digits = _NON_NUMERIC.sub("", value)
    if not digits:
        return None

    # Parse the leading numeric prefix only: '3.2.1' reads as 3.2.
    prefix = _LEADING_NUMBER.match(digits).group(0)
    try:
        parsed = float(prefix)
    except ValueError:
        return None

    if not math.isfinite(parsed) or parsed <= 0 or parsed > MAX_AMOUNT:
        return None
    return round_half_up(parsed)


def parse_risk_tolerance(value: str) -> str | None:
    normalized = normalize_text(value)
    for keyword, tier in RISK_TOLERANCE_KEYWORDS.items():
        if keyword in normalized:
            return tier
    return None


def parse_field(field_name: str, value: str) -> Any | None:
    if field_name == "country":
        return parse_country(value)
    if field_name in AMOUNT_FIELDS:
        return parse_amount(value)
    if field_name == "risk_tolerance":
        return parse_risk_tolerance(value)
    raise ValueError(f"Unknown profile field: {field_name}")


def next_profile_field(profile: UserProfile) -> str | None:
    for field_name in PROFILE_FIELD_ORDER:
        if getattr(profile, field_name) is None:
            return field_name
    return None


def profile_prompt(field_name: str) -> str:
    return PROFILE_PROMPTS.get(field_name, PROFILE_FALLBACK_PROMPT)
