from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="jobfill-tests-"))
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT / 'jobfill.db'}"
os.environ["DATA_DIR"] = str(_TEST_ROOT)
os.environ["RESUME_DIR"] = str(_TEST_ROOT / "resumes")
os.environ["ANSWERS_POLICY_PATH"] = str(_TEST_ROOT / "missing-policy.yml")
os.environ["LOCAL_LLM_ENABLED"] = "false"
os.environ["OPENAI_API_KEY"] = ""

from jobfill.browser.page import Target  # noqa: E402
from jobfill.db import models  # noqa: E402,F401
from jobfill.db.base import Base  # noqa: E402
from jobfill.db.session import engine  # noqa: E402
from jobfill.types import ApplicantProfile, EducationEntry, ExperienceEntry, SkillEntry  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


class FakeGenerator:
    """Records every call and answers from ``replies`` keyed by output shape."""

    def __init__(self, replies: dict[str, Any] | None = None, error: Exception | None = None):
        self.replies = replies or {}
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def generate(self, prompt: str, shape: str = "text") -> Any:
        self.calls.append((prompt, shape))
        if self.error is not None:
            raise self.error
        reply = self.replies.get(shape)
        if callable(reply):
            return reply(prompt)
        return reply

    def calls_for(self, shape: str) -> list[str]:
        return [prompt for prompt, call_shape in self.calls if call_shape == shape]


@dataclass
class FakeStep:
    labels: list[str] = field(default_factory=list)
    elements: dict[str, int] = field(default_factory=dict)


class FakePage:
    """In-memory page keyed by ``Target.describe()`` strings.

    Clicking a target listed in ``advance_on`` moves to the next step.
    """

    def __init__(
        self,
        url: str,
        steps: list[FakeStep],
        *,
        advance_on: tuple[str, ...] = (),
        broken: tuple[str, ...] = (),
    ):
        self.url = url
        self.steps = steps
        self.advance_on = set(advance_on)
        self.broken = set(broken)
        self.index = 0
        self.values: dict[str, str] = {}
        self.clicks: list[str] = []
        self.uploads: list[tuple[str, Path]] = []

    @property
    def step(self) -> FakeStep:
        return self.steps[self.index]

    def count(self, target: Target) -> int:
        return self.step.elements.get(target.describe(), 0)

    def fill(self, target: Target, value: str) -> None:
        descriptor = target.describe()
        if descriptor in self.broken:
            raise RuntimeError(f"element {descriptor} is detached")
        self.values[descriptor] = value

    def read(self, target: Target) -> str:
        return self.values.get(target.describe(), "")

    def click(self, target: Target) -> None:
        descriptor = target.describe()
        self.clicks.append(descriptor)
        if descriptor in self.advance_on and self.index < len(self.steps) - 1:
            self.index += 1

    def upload(self, target: Target, path: Path) -> None:
        self.uploads.append((target.describe(), Path(path)))

    def field_labels(self) -> list[str]:
        return list(self.step.labels)

    def wait_until_ready(self) -> None:
        return None


@pytest.fixture
def fake_generator():
    return FakeGenerator


@pytest.fixture
def fake_page():
    def _make(url: str, labels=(), elements=None, *, steps=None, advance_on=(), broken=()) -> FakePage:
        if steps is None:
            steps = [FakeStep(labels=list(labels), elements=dict(elements or {}))]
        return FakePage(url, steps, advance_on=tuple(advance_on), broken=tuple(broken))

    return _make


@pytest.fixture
def fake_step():
    return FakeStep


@pytest.fixture
def resume_file(tmp_path: Path) -> Path:
    path = tmp_path / "resume_backend.pdf"
    path.write_bytes(b"%PDF-1.4 test resume")
    return path


@pytest.fixture
def applicant_profile() -> ApplicantProfile:
    return ApplicantProfile(
        full_name="Jordan Avery",
        email="jordan.avery@example.com",
        phone="555-010-2030",
        city="Austin, TX",
        linkedin_url="https://www.linkedin.com/in/jordan-avery",
        us_timezone="Central",
        work_authorization="Authorized to work in the US",
        requires_sponsorship="No",
        years_dotnet="8",
        years_azure="5",
        summary="Backend engineer focused on .NET services on Azure.",
        resume_variants=["resume_backend.pdf", "resume_cloud_architect.pdf"],
        skills=[SkillEntry(name="C#", category="Languages"), SkillEntry(name="Azure Functions", category="Cloud")],
        experience=[
            ExperienceEntry(
                title="Senior Software Engineer",
                company="Northwind",
                duration="2019-2024",
                description="Built payment APIs.",
                technologies=".NET 8, Azure Service Bus",
            )
        ],
        education=[EducationEntry(institution="UT Austin", degree="BSc", field="Computer Science")],
        common_answers={"salary_expectation": "150000"},
    )
