from __future__ import annotations

import logging
from pathlib import Path

from jobfill.browser.domain_adapters import ATSAdapter, GenericAdapter, detect_adapter
from jobfill.browser.page import PageContext
from jobfill.config import Settings, get_settings
from jobfill.core.resolver import FieldResolutionEngine
from jobfill.errors import AdapterError
from jobfill.types import AdapterResult, AnswerSet, FailureStage

logger = logging.getLogger(__name__)


class ApplicationRunner:
    """Runs one application attempt: detect, smoke-test, fill and submit.

    Never raises for a failed attempt; the returned ``AdapterResult`` names
    the stage that failed. There is no retry within an attempt.
    """

    def __init__(self, resolver: FieldResolutionEngine, settings: Settings | None = None):
        self.resolver = resolver
        self.settings = settings or get_settings()

    def run(
        self,
        page: PageContext,
        answers: AnswerSet,
        resume_path: Path | str,
        *,
        submit: bool = True,
    ) -> AdapterResult:
        stage: FailureStage = "detection"
        adapter: ATSAdapter | None = None
        try:
            adapter = detect_adapter(page, self.resolver, max_steps=self.settings.max_form_steps)
            if isinstance(adapter, GenericAdapter) and self.settings.require_known_platform:
                raise AdapterError("detection", f"no supported ATS platform recognised at {page.url}")

            stage = "smoke_test"
            if not adapter.smoke(page):
                raise AdapterError("smoke_test", f"{adapter.name} form or submit control missing at {page.url}")

            stage = "field_fill"
            report = adapter.fill(page, answers, resume_path, submit=submit)
        except AdapterError as exc:
            logger.warning("Application at %s failed: %s", page.url, exc)
            return self._failed(adapter, exc.stage, str(exc))  # type: ignore[arg-type]
        except Exception as exc:
            logger.exception("Unexpected error during %s at %s", stage, page.url)
            return self._failed(adapter, stage, str(exc))

        return AdapterResult(
            success=True,
            platform=adapter.name,
            state="submitted" if report.submitted else "filled",
            message=f"{len(report.filled)} field(s) filled over {report.steps} step(s)",
            filled_fields=report.filled,
            skipped_fields=report.skipped,
        )

    @staticmethod
    def _failed(adapter: ATSAdapter | None, stage: FailureStage, message: str) -> AdapterResult:
        return AdapterResult(
            success=False,
            platform=adapter.name if adapter is not None else "unknown",
            state="failed",
            failed_stage=stage,
            message=message,
        )
