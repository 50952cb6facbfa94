from __future__ import annotations

import logging

from jobfill.logging_config import RedactingFilter


def test_redacting_filter_masks_contact_details() -> None:
    record = logging.LogRecord(
        name="jobfill.test",
        level=logging.DEBUG,
        pathname=__file__,
        lineno=1,
        msg="Filled %r with %s",
        args=("Email", "jordan.avery@example.com"),
        exc_info=None,
    )

    assert RedactingFilter().filter(record) is True
    assert record.getMessage() == "Filled 'Email' with ***"


def test_redacting_filter_leaves_clean_messages_untouched() -> None:
    record = logging.LogRecord("jobfill.test", logging.INFO, __file__, 1, "step %d complete", (2,), None)

    RedactingFilter().filter(record)

    assert record.msg == "step %d complete"
    assert record.getMessage() == "step 2 complete"
