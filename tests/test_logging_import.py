"""
Test that desk_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from desk_logging and use the logger."""
    from backend_walletdesk.desk_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "exception")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_request_sets_context():
    import structlog

    from backend_walletdesk.desk_logging import bind_request

    bind_request("req-1", path="/api/config")
    context = structlog.contextvars.get_contextvars()
    assert context["request_id"] == "req-1"
    assert context["path"] == "/api/config"

    bind_request("req-2")
    context = structlog.contextvars.get_contextvars()
    assert context == {"request_id": "req-2"}
    structlog.contextvars.clear_contextvars()


def test_secret_fields_are_masked():
    from backend_walletdesk.desk_logging.logger import REDACTED, _mask_secrets

    event = _mask_secrets(None, "info", {"event_type": "x", "seed": "sEdSecret", "address": "rAbc"})
    assert event["seed"] == REDACTED
    assert event["address"] == "rAbc"
