from __future__ import annotations

from pathlib import Path

import pytest

from jobfill.errors import PolicyViolationError
from jobfill.fields.policy import DEFAULT_POLICY, apply_field_policy, load_policy, redact_pii, sanitize_answers
from jobfill.types import AnswerSet


def test_missing_policy_file_falls_back_to_default(tmp_path: Path) -> None:
    policy = load_policy(tmp_path / "nope.yml")
    assert policy == DEFAULT_POLICY
    assert policy.fields["why_fit"].max_length == 400
    assert policy.fields["requires_sponsorship"].allowed_values == ["Yes", "No"]


def test_policy_file_is_loaded_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "answers-policy.yml"
    path.write_text(
        "fields:\n"
        "  why_fit:\n"
        "    max_length: 120\n"
        "    strip_emoji: true\n"
        "  requires_sponsorship:\n"
        "    allowed_values: ['Yes', 'No', 'Maybe']\n",
        encoding="utf-8",
    )

    policy = load_policy(path)

    assert policy.fields["why_fit"].max_length == 120
    assert policy.fields["requires_sponsorship"].allowed_values == ["Yes", "No", "Maybe"]
    assert "salary_expectation" not in policy.fields


@pytest.mark.parametrize("content", ["fields: [not, a, mapping", "- just\n- a list\n", "fields:\n  why_fit:\n    max_length: -3\n"])
def test_unusable_policy_file_falls_back_to_default(tmp_path: Path, content: str) -> None:
    path = tmp_path / "broken.yml"
    path.write_text(content, encoding="utf-8")
    assert load_policy(path) == DEFAULT_POLICY


def test_apply_field_policy_strips_symbols_collapses_whitespace_and_truncates() -> None:
    value = "Great   fit \U0001F680 for\nthe team ✨" + " word" * 200

    result = apply_field_policy("why_fit", value, DEFAULT_POLICY)

    assert "\U0001F680" not in result
    assert "✨" not in result
    assert "  " not in result
    assert "\n" not in result
    assert len(result) <= 400
    assert result == result.strip()


def test_unpoliced_fields_pass_through_unchanged() -> None:
    assert apply_field_policy("email", "  a@b.co  ", DEFAULT_POLICY) == "  a@b.co  "


def test_enumerated_field_rejects_values_outside_allowed_set() -> None:
    with pytest.raises(PolicyViolationError) as excinfo:
        apply_field_policy("requires_sponsorship", "Maybe", DEFAULT_POLICY)

    assert excinfo.value.field == "requires_sponsorship"
    assert excinfo.value.allowed == ["Yes", "No"]


def test_sanitizing_a_sanitized_answer_set_is_a_no_op() -> None:
    raw = AnswerSet(
        answers={
            "why_fit": "I ship reliable services \U0001F600.  " + "Detail " * 80,
            "salary_expectation": "Open  to discussion ☀ " + "x" * 80,
            "requires_sponsorship": " No ",
            "email": "jordan@example.com",
        },
        resume_variant="resume.pdf",
    )

    once = sanitize_answers(raw, DEFAULT_POLICY)
    twice = sanitize_answers(once, DEFAULT_POLICY)

    assert once == twice
    assert once.get("requires_sponsorship") == "No"
    assert len(once.get("salary_expectation")) <= 50
    assert once.resume_variant == "resume.pdf"


def test_redact_pii_masks_contact_details() -> None:
    text = "Reach me at jordan@example.com or 555-010-2030, SSN 123-45-6789."
    redacted = redact_pii(text)
    assert "jordan@example.com" not in redacted
    assert "555-010-2030" not in redacted
    assert "123-45-6789" not in redacted
