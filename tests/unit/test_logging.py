from __future__ import annotations

import io
import json
import logging

from hostasis.core.config import LoggingConfig
from hostasis.core.log import configure_logging
from tests.conftest import ANVIL_KEY_0


def test_text_output_includes_extras_and_redacts() -> None:
    buf = io.StringIO()
    configure_logging(LoggingConfig(level="INFO"), stream=buf)

    logging.getLogger("hostasis.feeds.orchestrator").warning("batch_depth_fallback", extra={"depth": 20, "key": ANVIL_KEY_0})
    logging.getLogger("hostasis.test").info("leaked %s", ANVIL_KEY_0)

    out = buf.getvalue()
    assert "warning: batch_depth_fallback" in out
    assert "depth=20" in out
    assert ANVIL_KEY_0[2:] not in out
    assert "[REDACTED]" in out


def test_json_output_one_object_per_line() -> None:
    buf = io.StringIO()
    configure_logging(LoggingConfig(level="DEBUG", json_output=True), stream=buf)

    logging.getLogger("hostasis.integrations.gateway").debug("feed_index_unreadable", extra={"status": 500})

    lines = [json.loads(line) for line in buf.getvalue().splitlines()]
    assert len(lines) == 1
    assert lines[0]["event"] == "feed_index_unreadable"
    assert lines[0]["status"] == 500
    assert lines[0]["level"] == "debug"
    assert lines[0]["logger"] == "hostasis.integrations.gateway"


def test_level_filters_and_reconfigure_is_idempotent() -> None:
    buf = io.StringIO()
    configure_logging(LoggingConfig(level="WARNING"), stream=buf)
    configure_logging(LoggingConfig(level="WARNING"), stream=buf)

    log = logging.getLogger("hostasis.x")
    log.info("hidden")
    log.warning("shown")

    assert buf.getvalue().count("shown") == 1
    assert "hidden" not in buf.getvalue()
