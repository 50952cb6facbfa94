from __future__ import annotations

import logging

from jobfill.config import get_settings
from jobfill.fields.policy import redact_pii


_LOG_CONFIGURED = False


class RedactingFilter(logging.Filter):
    """Masks e-mail addresses, phone numbers and SSNs in formatted log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_pii(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging() -> None:
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if settings.redact_log_pii:
        for handler in logging.getLogger().handlers:
            handler.addFilter(RedactingFilter())
    _LOG_CONFIGURED = True
