from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import ValidationError

from jobfill.config import get_settings
from jobfill.errors import PolicyViolationError
from jobfill.types import AnswerSet, AnswersPolicy, FieldPolicy

logger = logging.getLogger(__name__)

DEFAULT_POLICY = AnswersPolicy(
    fields={
        "why_fit": FieldPolicy(max_length=400, strip_emoji=True),
        "requires_sponsorship": FieldPolicy(allowed_values=["Yes", "No"]),
        "salary_expectation": FieldPolicy(max_length=50, strip_emoji=True),
    }
)

_DECORATIVE_SYMBOLS = re.compile(
    "["
    "\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "]"
)
_WHITESPACE = re.compile(r"\s+")

_PII_PATTERNS = (
    re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),
    re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),
    re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
)


def load_policy(path: Path | str | None = None) -> AnswersPolicy:
    """Load the answers policy, falling back to ``DEFAULT_POLICY`` when no usable file exists."""
    policy_path = Path(path) if path is not None else get_settings().answers_policy_path
    return _load_policy_file(policy_path.expanduser().resolve())


@lru_cache(maxsize=8)
def _load_policy_file(path: Path) -> AnswersPolicy:
    if not path.exists():
        logger.info("No answers policy at %s; using built-in default", path)
        return DEFAULT_POLICY

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Unreadable answers policy %s (%s); using built-in default", path, exc)
        return DEFAULT_POLICY

    if not isinstance(raw, dict):
        logger.warning("Answers policy %s is not a mapping; using built-in default", path)
        return DEFAULT_POLICY

    try:
        return AnswersPolicy.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Invalid answers policy %s (%s); using built-in default", path, exc)
        return DEFAULT_POLICY


def apply_field_policy(field: str, value: str, policy: AnswersPolicy) -> str:
    field_policy = policy.fields.get(field)
    if field_policy is None:
        return value

    result = value
    if field_policy.strip_emoji:
        result = _DECORATIVE_SYMBOLS.sub("", result)

    result = _WHITESPACE.sub(" ", result).strip()

    if field_policy.max_length and len(result) > field_policy.max_length:
        result = result[: field_policy.max_length].rstrip()

    if field_policy.allowed_values is not None and result not in field_policy.allowed_values:
        raise PolicyViolationError(field, result, field_policy.allowed_values)

    return result


def sanitize_answers(answer_set: AnswerSet, policy: AnswersPolicy | None = None) -> AnswerSet:
    """Return a copy of ``answer_set`` with every policed field brought into policy.

    Raises ``PolicyViolationError`` when an enumerated field holds a value
    outside its allowed set. Sanitizing an already sanitized set returns an
    equal set.
    """
    active = policy or load_policy()
    answers = {
        field: apply_field_policy(field, value, active)
        for field, value in answer_set.answers.items()
    }
    return AnswerSet(answers=answers, resume_variant=answer_set.resume_variant)


def redact_pii(text: str) -> str:
    result = text
    for pattern in _PII_PATTERNS:
        result = pattern.sub("***", result)
    return result
