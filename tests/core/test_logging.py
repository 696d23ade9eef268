"""Tests for the structlog configuration.

Kept minimal since structlog's own test suite is comprehensive.
"""

import logging

import structlog

from hubhook.core.logging import _inject_request_id, configure_structlog
from hubhook.core.middleware import _request_id_var


class TestConfigureStructlog:
    def test_configure_does_not_raise_in_debug_mode(self) -> None:
        configure_structlog(debug=True)

    def test_configure_does_not_raise_in_prod_mode(self) -> None:
        configure_structlog(debug=False)

    def test_logger_usable_after_configure(self) -> None:
        configure_structlog(debug=False)
        logger = structlog.get_logger("test")
        logger.info("test message", key="value")

    def test_configure_multiple_times_is_safe(self) -> None:
        configure_structlog(debug=True)
        configure_structlog(debug=False)

    def test_stdlib_logger_usable_after_configure(self) -> None:
        configure_structlog(debug=False)
        logging.getLogger("test.stdlib").info("stdlib message")


class TestInjectRequestId:
    def test_adds_request_id_inside_request(self) -> None:
        token = _request_id_var.set("req-123")
        try:
            event = _inject_request_id(None, "info", {"event": "x"})
        finally:
            _request_id_var.reset(token)
        assert event["request_id"] == "req-123"

    def test_leaves_event_alone_outside_request(self) -> None:
        assert _inject_request_id(None, "info", {"event": "x"}) == {"event": "x"}
