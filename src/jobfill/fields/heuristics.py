"""Ordered label heuristics.

Rules are evaluated top to bottom and the first match wins, so the order is
part of the contract: specific patterns ("first name") must stay ahead of the
looser ones ("name") they would otherwise lose to.
"""

from __future__ import annotations

import re

from jobfill.fields.canonical import CanonicalKey

_SEPARATOR = r"[\s_-]*"
_DECORATION = re.compile(r"^[\s*:]+|[\s*:]+$")
_WHITESPACE = re.compile(r"\s+")


def _rule(pattern: str) -> re.Pattern[str]:
    # A literal space in a rule stands for any run of spaces, hyphens or underscores.
    return re.compile(pattern.replace(" ", _SEPARATOR), re.IGNORECASE)


HEURISTICS: tuple[tuple[re.Pattern[str], CanonicalKey, float], ...] = (
    (_rule(r"^(legal |preferred )?first name"), "first_name", 0.99),
    (_rule(r"^(legal )?(last name|surname|family name)"), "last_name", 0.99),
    (_rule(r"full name|legal name|first and last"), "full_name", 0.99),
    (_rule(r"^((your|candidate) )?name$"), "full_name", 0.95),
    (_rule(r"e-?mail( address)?"), "email", 0.99),
    (_rule(r"phone|mobile|telephone"), "phone", 0.99),
    (_rule(r"\bcity\b|\blocation\b|where.*located"), "city", 0.98),
    (_rule(r"(require|need).*sponsor|visa sponsor|^sponsorship"), "requires_sponsorship", 0.99),
    (_rule(r"work authori[sz]ation|authori[sz]ed to work|legal.*work"), "work_authorization", 0.99),
    (_rule(r"(years?|experience).*(\.net|dotnet)|(\.net|dotnet).*(years?|experience)"), "years_dotnet", 0.95),
    (_rule(r"(years?|experience).*azure|azure.*(years?|experience)"), "years_azure", 0.95),
    (_rule(r"linked in( profile| url)?"), "linkedin_url", 0.99),
    (_rule(r"(comp|salary|pay).*expect|expected (comp|salary|pay)|desired (salary|pay)"), "salary_expectation", 0.95),
    (_rule(r"time zone"), "us_timezone", 0.98),
    (_rule(r"why.*fit|why.*interested|why.*apply|cover letter"), "why_fit", 0.95),
)


def normalize_label(label: str) -> str:
    """Collapse whitespace and drop required-field markers such as ``*`` or a trailing colon."""
    collapsed = _WHITESPACE.sub(" ", label).strip()
    return _DECORATION.sub("", collapsed)


def match_label(label: str) -> tuple[CanonicalKey, float] | None:
    candidate = normalize_label(label)
    if not candidate:
        return None

    for pattern, key, confidence in HEURISTICS:
        if pattern.search(candidate):
            return key, confidence
    return None
