"""hostasis.core.log

One stderr handler, text or JSON lines, with key redaction on every record.

Loggers across the package emit snake_case event names with structured
context in ``extra=``; this module decides how that is rendered.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from hostasis.core.config import LoggingConfig
from hostasis.security.redaction import redact_secrets, sanitize_for_log

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS and not k.startswith("_")}


class RedactionFilter(logging.Filter):
    """Scrub key-shaped strings from the message, args and extras."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_secrets(str(record.msg))
        if record.args:
            if isinstance(record.args, dict):
                record.args = sanitize_for_log(record.args)
            else:
                record.args = tuple(redact_secrets(a) if isinstance(a, str) else a for a in record.args)
        for k, v in sanitize_for_log(_extras(record)).items():
            setattr(record, k, v)
        return True


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname.lower()}: {record.getMessage()}"
        extras = _extras(record)
        if extras:
            base += " " + " ".join(f"{k}={v}" for k, v in sorted(extras.items()))
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info:
            out["exc"] = self.formatException(record.exc_info)
        return json.dumps(out, default=str, sort_keys=True)


def configure_logging(config: LoggingConfig, *, stream: TextIO | None = None) -> logging.Logger:
    """Install the package handler on the ``hostasis`` logger. Idempotent."""

    logger = logging.getLogger("hostasis")
    for h in list(logger.handlers):
        if getattr(h, "_hostasis", False):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler._hostasis = True  # type: ignore[attr-defined]
    handler.addFilter(RedactionFilter())
    handler.setFormatter(JsonFormatter() if config.json_output else TextFormatter())

    logger.addHandler(handler)
    logger.setLevel(str(config.level).upper())
    logger.propagate = False
    return logger
