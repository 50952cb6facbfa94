from __future__ import annotations

from collections.abc import Sequence


class JobfillError(Exception):
    """Base class for errors surfaced to callers of the form automation core."""


class AdapterError(JobfillError):
    """A critical step of one application attempt failed.

    ``stage`` is one of ``detection``, ``smoke_test``, ``field_fill``,
    ``resume_upload`` or ``submit``.
    """

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage.replace('_', ' ')} failed: {message}")
        self.stage = stage
        self.message = message


class PolicyViolationError(JobfillError):
    def __init__(self, field: str, value: str, allowed: Sequence[str]):
        super().__init__(
            f"Field {field} has invalid value {value!r}. Allowed: {', '.join(allowed)}"
        )
        self.field = field
        self.value = value
        self.allowed = list(allowed)


class GenerationError(JobfillError):
    """No generative-text provider produced a usable response."""
