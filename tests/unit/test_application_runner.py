from __future__ import annotations

import logging
from pathlib import Path

import pytest

from jobfill.browser.engine import ApplicationRunner
from jobfill.config import Settings
from jobfill.core.cache import ResolutionCache
from jobfill.core.resolver import FieldResolutionEngine
from jobfill.db.store import InMemoryStore
from jobfill.types import AnswerSet

GREENHOUSE_URL = "https://boards.greenhouse.io/acme/jobs/4012"
GREENHOUSE_ELEMENTS = {
    'css=form[action*="greenhouse"], #application_form': 1,
    "css=form": 1,
    'css=button[type="submit"], input[type="submit"]': 1,
    'css=input[type="file"]': 1,
    "label=Email": 1,
}
ANSWERS = AnswerSet(answers={"email": "jordan.avery@example.com"}, resume_variant="resume_backend.pdf")


@pytest.fixture
def runner() -> ApplicationRunner:
    resolver = FieldResolutionEngine(ResolutionCache(InMemoryStore()))
    return ApplicationRunner(resolver, Settings(max_form_steps=3))


def test_successful_attempt_reaches_submitted(fake_page, runner, resume_file: Path) -> None:
    page = fake_page(GREENHOUSE_URL, labels=["Email"], elements=GREENHOUSE_ELEMENTS)

    result = runner.run(page, ANSWERS, resume_file)

    assert result.success
    assert result.platform == "greenhouse"
    assert result.state == "submitted"
    assert result.failed_stage is None
    assert result.filled_fields == ["Email"]


def test_dry_run_reports_filled(fake_page, runner, resume_file: Path) -> None:
    page = fake_page(GREENHOUSE_URL, labels=["Email"], elements=GREENHOUSE_ELEMENTS)

    result = runner.run(page, ANSWERS, resume_file, submit=False)

    assert result.success
    assert result.state == "filled"
    assert page.clicks == []


def test_smoke_failure_is_reported_before_any_fill(fake_page, runner, resume_file: Path) -> None:
    elements = {key: value for key, value in GREENHOUSE_ELEMENTS.items() if "submit" not in key}
    page = fake_page(GREENHOUSE_URL, labels=["Email"], elements=elements)

    result = runner.run(page, ANSWERS, resume_file)

    assert not result.success
    assert result.state == "failed"
    assert result.failed_stage == "smoke_test"
    assert page.values == {}


def test_resume_upload_failure_names_the_stage(fake_page, runner, resume_file: Path) -> None:
    elements = {key: value for key, value in GREENHOUSE_ELEMENTS.items() if "file" not in key}
    page = fake_page(GREENHOUSE_URL, labels=["Email"], elements=elements)

    result = runner.run(page, ANSWERS, resume_file)

    assert result.failed_stage == "resume_upload"
    assert "resume upload" in result.message


def test_unknown_platform_can_be_rejected(fake_page, resume_file: Path) -> None:
    resolver = FieldResolutionEngine(ResolutionCache(InMemoryStore()))
    runner = ApplicationRunner(resolver, Settings(require_known_platform=True))
    page = fake_page("https://careers.example.com/apply", labels=["Email"], elements=GREENHOUSE_ELEMENTS)

    result = runner.run(page, ANSWERS, resume_file)

    assert result.failed_stage == "detection"
    assert result.platform == "generic"


def test_generic_fallback_handles_unknown_platform(fake_page, runner, resume_file: Path) -> None:
    page = fake_page("https://careers.example.com/apply", labels=["Email"], elements=GREENHOUSE_ELEMENTS)

    result = runner.run(page, ANSWERS, resume_file)

    assert result.success
    assert result.platform == "generic"


def test_unexpected_errors_become_failed_results(fake_page, runner, resume_file: Path, caplog) -> None:
    page = fake_page(GREENHOUSE_URL, labels=["Email"], elements=GREENHOUSE_ELEMENTS)

    def explode() -> list[str]:
        raise RuntimeError("target closed")

    page.field_labels = explode

    with caplog.at_level(logging.ERROR):
        result = runner.run(page, ANSWERS, resume_file)

    assert result.failed_stage == "field_fill"
    assert "target closed" in result.message
    assert "Unexpected error" in caplog.text
