from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from jobfill.browser.page import PageContext, Target
from jobfill.core.resolver import FieldResolutionEngine
from jobfill.errors import AdapterError
from jobfill.fields.canonical import UNKNOWN
from jobfill.fields.heuristics import normalize_label
from jobfill.types import AnswerSet

logger = logging.getLogger(__name__)

FORM = Target(css="form")
SUBMIT_BUTTON = Target(css='button[type="submit"], input[type="submit"]')
TEXT_INPUTS = Target(css="input, textarea")
FILE_INPUT = Target(css='input[type="file"]')

NEXT_BUTTONS = (
    Target(role="button", name="Next"),
    Target(role="button", name="Continue"),
    Target(role="button", name="Save and Continue"),
)


@dataclass(slots=True)
class FillReport:
    filled: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    uploaded: bool = False
    submitted: bool = False
    steps: int = 0


class ATSAdapter(ABC):
    """Detect, smoke-test and fill one applicant tracking system's application form.

    ``fill`` walks the form step by step: it resolves the visible labels,
    fills every field whose canonical key has an answer, uploads the resume
    as soon as an upload control appears and then either advances or submits.
    Missing optional fields are skipped. Missing resume upload or submit
    controls raise ``AdapterError``.
    """

    name: str = "generic"
    url_pattern: re.Pattern[str] | None = None
    marker_targets: tuple[Target, ...] = ()
    submit_targets: tuple[Target, ...] = (SUBMIT_BUTTON,)
    next_targets: tuple[Target, ...] = ()
    resume_targets: tuple[Target, ...] = (FILE_INPUT,)

    def __init__(self, resolver: FieldResolutionEngine, max_steps: int = 10):
        self.resolver = resolver
        self.max_steps = max_steps

    def detect(self, page: PageContext) -> bool:
        if self.url_pattern is None or not self.url_pattern.search(page.url):
            return False
        return any(page.count(target) > 0 for target in self.marker_targets)

    def smoke(self, page: PageContext) -> bool:
        return page.count(FORM) > 0 and self._first_present(page, self.submit_targets) is not None

    @abstractmethod
    def field_targets(self, label: str, key: str) -> list[Target]:
        """Lookup order for the element behind ``label`` resolved to ``key``."""

    def fill(self, page: PageContext, answers: AnswerSet, resume_path: Path | str, *, submit: bool = True) -> FillReport:
        resume = Path(resume_path).expanduser()
        if not resume.is_file():
            raise AdapterError("resume_upload", f"resume file not found: {resume}")

        report = FillReport()
        page.wait_until_ready()
        previous: list[str] | None = None

        for step in range(1, self.max_steps + 1):
            report.steps = step
            labels = page.field_labels()
            if previous is not None and labels and labels == previous:
                raise AdapterError("field_fill", f"{self.name} form did not advance past step {step - 1}")

            self._fill_step(page, labels, answers, report)
            if not report.uploaded:
                report.uploaded = self._upload_resume(page, resume)

            next_target = self._first_present(page, self.next_targets)
            if next_target is not None:
                logger.info("%s step %d complete; advancing via %s", self.name, step, next_target.describe())
                page.click(next_target)
                page.wait_until_ready()
                previous = labels
                continue

            submit_target = self._first_present(page, self.submit_targets)
            if submit_target is None:
                raise AdapterError("submit", f"no submit or next control found on {self.name} step {step}")
            if not report.uploaded:
                raise AdapterError("resume_upload", f"no resume upload field found on {self.name} form")

            if submit:
                page.click(submit_target)
                report.submitted = True
                logger.info("%s application submitted after %d step(s)", self.name, step)
            else:
                logger.info("%s dry run stopped before submit after %d step(s)", self.name, step)
            return report

        raise AdapterError("field_fill", f"{self.name} form did not reach submit within {self.max_steps} steps")

    def _fill_step(self, page: PageContext, labels: Sequence[str], answers: AnswerSet, report: FillReport) -> None:
        if not labels:
            return

        seen: set[str] = set()
        for resolution in self.resolver.resolve_labels(labels):
            label = resolution.label
            if label in seen:
                continue
            seen.add(label)

            value = answers.get(resolution.key) if resolution.key != UNKNOWN else ""
            if not value:
                report.skipped.append(label)
                continue

            locator = self._fill_field(page, label, resolution.key, value)
            self.resolver.record_fill_outcome(label, locator)
            if locator is None:
                logger.warning("Could not fill %r (%s) on %s; leaving it blank", label, resolution.key, self.name)
                report.skipped.append(label)
            else:
                logger.debug("Filled %r via %s with %s", label, locator, value)
                report.filled.append(label)

    def _fill_field(self, page: PageContext, label: str, key: str, value: str) -> str | None:
        for target in self.field_targets(label, key):
            try:
                if page.count(target) == 0:
                    continue
                page.fill(target, value)
            except Exception as exc:
                logger.debug("Fill via %s failed for %r: %s", target.describe(), label, exc)
                continue
            return target.describe()
        return None

    def _upload_resume(self, page: PageContext, resume: Path) -> bool:
        target = self._first_present(page, self.resume_targets)
        if target is None:
            return False
        try:
            page.upload(target, resume)
        except Exception as exc:
            raise AdapterError("resume_upload", f"could not attach {resume.name}: {exc}") from exc
        logger.info("Uploaded resume %s via %s", resume.name, target.describe())
        return True

    @staticmethod
    def _first_present(page: PageContext, targets: Sequence[Target]) -> Target | None:
        for target in targets:
            if page.count(target) > 0:
                return target
        return None


class GreenhouseAdapter(ATSAdapter):
    name = "greenhouse"
    url_pattern = re.compile(r"greenhouse\.io", re.IGNORECASE)
    marker_targets = (Target(css='form[action*="greenhouse"], #application_form'),)
    resume_targets = (
        FILE_INPUT,
        Target(css='input[name*="resume"]'),
        Target(css='input[id*="resume"]'),
    )

    def field_targets(self, label: str, key: str) -> list[Target]:
        return [
            Target(label=normalize_label(label)),
            Target(css=f'[name*="{key}"]'),
            Target(css=f'[id*="{key}"]'),
        ]


class LeverAdapter(ATSAdapter):
    name = "lever"
    url_pattern = re.compile(r"jobs\.lever\.co", re.IGNORECASE)
    marker_targets = (Target(css='form[action*="/apply"]'),)
    submit_targets = (
        SUBMIT_BUTTON,
        Target(css="#btn-submit"),
        Target(role="button", name="Submit application"),
    )
    resume_targets = (Target(css='input[name="resume"]'), FILE_INPUT)

    # Lever's stable input names for the fields it always renders.
    field_names = {
        "full_name": "name",
        "email": "email",
        "phone": "phone",
        "city": "location",
        "linkedin_url": "urls[LinkedIn]",
    }

    def field_targets(self, label: str, key: str) -> list[Target]:
        text = normalize_label(label)
        return [
            Target(placeholder=text),
            Target(label=text),
            Target(css=f'[name="{self.field_names.get(key, key)}"]'),
        ]


class WorkdayAdapter(ATSAdapter):
    name = "workday"
    url_pattern = re.compile(r"myworkdayjobs\.com|workday\.com", re.IGNORECASE)
    marker_targets = (Target(css="[data-automation-id]"),)
    submit_targets = (
        Target(role="button", name="Submit"),
        SUBMIT_BUTTON,
    )
    next_targets = (Target(css='[data-automation-id="bottom-navigation-next-button"]'), *NEXT_BUTTONS)
    resume_targets = (
        Target(css='[data-automation-id*="resume"] input[type="file"]'),
        Target(css='[data-automation-id*="cv"] input[type="file"]'),
        FILE_INPUT,
    )

    def smoke(self, page: PageContext) -> bool:
        if page.count(TEXT_INPUTS) == 0:
            return False
        controls = (*self.submit_targets, *self.next_targets)
        return self._first_present(page, controls) is not None

    def field_targets(self, label: str, key: str) -> list[Target]:
        automation_id = key.replace("_", "")
        return [
            Target(role="textbox", name=normalize_label(label)),
            Target(css=f'[data-automation-id*="{automation_id}" i] input'),
            Target(css=f'[data-automation-id*="{automation_id}" i] textarea'),
            Target(label=normalize_label(label)),
        ]


class GenericAdapter(ATSAdapter):
    name = "generic"
    submit_targets = (
        SUBMIT_BUTTON,
        Target(role="button", name="Submit"),
        Target(role="button", name="Apply"),
    )
    next_targets = NEXT_BUTTONS

    def detect(self, page: PageContext) -> bool:
        return False

    def smoke(self, page: PageContext) -> bool:
        if page.count(FORM) == 0 and page.count(TEXT_INPUTS) == 0:
            return False
        controls = (*self.submit_targets, *self.next_targets)
        return self._first_present(page, controls) is not None

    def field_targets(self, label: str, key: str) -> list[Target]:
        text = normalize_label(label)
        return [
            Target(label=text),
            Target(placeholder=text),
            Target(css=f'[name*="{key}"]'),
            Target(css=f'[id*="{key}"]'),
        ]


ADAPTER_PRIORITY: tuple[type[ATSAdapter], ...] = (LeverAdapter, GreenhouseAdapter, WorkdayAdapter)


def detect_adapter(page: PageContext, resolver: FieldResolutionEngine, max_steps: int = 10) -> ATSAdapter:
    for adapter_cls in ADAPTER_PRIORITY:
        adapter = adapter_cls(resolver, max_steps=max_steps)
        try:
            if adapter.detect(page):
                logger.info("Detected %s application form at %s", adapter.name, page.url)
                return adapter
        except Exception as exc:
            logger.warning("%s detection failed at %s: %s", adapter.name, page.url, exc)
    logger.info("No known ATS platform at %s; using generic adapter", page.url)
    return GenericAdapter(resolver, max_steps=max_steps)
