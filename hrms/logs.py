"""Process logging setup and correlation-aware request loggers."""

from __future__ import annotations

import logging
import sys
from typing import Any, MutableMapping

PROCESS_LOGGER = "hrms"

_FORMAT = "%(asctime)s %(levelname)s [%(app)s] %(name)s request_id=%(request_id)s user_id=%(user_id)s %(message)s"


class _DefaultFieldsFilter(logging.Filter):
    """Guarantee the correlation fields exist on every record so the formatter never fails."""

    def __init__(self, app_name: str) -> None:
        super().__init__()
        self._app_name = app_name

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "app"):
            record.app = self._app_name
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        if not hasattr(record, "user_id"):
            record.user_id = "-"
        return True


def configure_logging(app_name: str, level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.addFilter(_DefaultFieldsFilter(app_name))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)


class CorrelationAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps request correlation fields onto each record."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **fields: Any) -> "CorrelationAdapter":
        """Return a new adapter carrying additional fields; this one is left untouched."""
        merged = dict(self.extra or {})
        merged.update(fields)
        return CorrelationAdapter(self.logger, merged)


def process_logger() -> logging.Logger:
    return logging.getLogger(PROCESS_LOGGER)


def request_logger(request_id: str) -> CorrelationAdapter:
    return CorrelationAdapter(logging.getLogger(f"{PROCESS_LOGGER}.request"), {"request_id": request_id})
