from __future__ import annotations

from typing import Literal, get_args

CanonicalKey = Literal[
    "full_name",
    "first_name",
    "last_name",
    "email",
    "phone",
    "city",
    "work_authorization",
    "requires_sponsorship",
    "years_dotnet",
    "years_azure",
    "linkedin_url",
    "salary_expectation",
    "us_timezone",
    "why_fit",
    "unknown",
]

CANONICAL_KEYS: tuple[CanonicalKey, ...] = get_args(CanonicalKey)
UNKNOWN: CanonicalKey = "unknown"

# Keys a label may legitimately resolve to; "unknown" is the no-match sentinel.
ANSWERABLE_KEYS: tuple[CanonicalKey, ...] = tuple(key for key in CANONICAL_KEYS if key != UNKNOWN)


def is_canonical_key(value: object) -> bool:
    return isinstance(value, str) and value in CANONICAL_KEYS


def coerce_key(value: object) -> CanonicalKey:
    """Map a collaborator-supplied key onto the vocabulary, or ``unknown``."""
    if not isinstance(value, str):
        return UNKNOWN
    candidate = value.strip().lower()
    if candidate in CANONICAL_KEYS:
        return candidate  # type: ignore[return-value]
    return UNKNOWN
