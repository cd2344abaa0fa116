"""
Structured logging: masking of credentials and free text.
"""

import logging

from nash.util.logging import StructuredLogger, mask_token, truncate


def test_mask_token():
    assert mask_token("nsh-0123456789abcdef0123456789abcdef") == "nsh-...cdef"
    assert mask_token("short") == "***"
    assert mask_token("") == ""


def test_truncate():
    assert truncate("a" * 60) == "a" * 50 + "..."
    assert truncate("short") == "short"
    assert truncate(None) is None


def test_credential_event_never_logs_full_token(caplog):
    structured = StructuredLogger("nash.test.credentials")
    token = "nsh-0123456789abcdef0123456789abcdef"

    with caplog.at_level(logging.INFO, logger="nash.test.credentials"):
        structured.log_credential_event("generate", token)

    assert token not in caplog.text
    assert "nsh-...cdef" in caplog.text
    assert "credentials.generate" in caplog.text


def test_failed_operation_logs_at_error_level(caplog):
    structured = StructuredLogger("nash.test.failures")

    with caplog.at_level(logging.INFO, logger="nash.test.failures"):
        structured.log_operation("matcher.train", "failed", {"error": "boom"})

    assert caplog.records[-1].levelno == logging.ERROR


def test_validation_error_log_omits_values(caplog):
    structured = StructuredLogger("nash.test.validation")

    with caplog.at_level(logging.INFO, logger="nash.test.validation"):
        structured.log_validation_error("/nash", [{"field": "apiKey", "message": "too short", "value": "secret-value"}])

    assert "apiKey" in caplog.text
    assert "secret-value" not in caplog.text
