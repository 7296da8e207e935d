"""JSON logging bound to the request context.

Records pick up ``correlation_id`` and ``organization`` from the current
request context when they are created, so every handler (pytest's ``caplog``
included) sees them. Structured values passed through ``extra`` are emitted
under ``fields`` when their key is one of ``FIELD_NAMES``; typed ids render as
their string form.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from crm_api.context import current_request_context
from crm_api.core.config import get_settings

FIELD_NAMES = frozenset(
    {
        "method",
        "path",
        "status_code",
        "duration_ms",
        "org_id",
        "entity_type",
        "entity_id",
        "relation",
        "error_code",
        "error",
    }
)
_MAX_ERROR_LENGTH = 500

_base_record_factory = logging.getLogRecordFactory()


def _context_record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
    record = _base_record_factory(*args, **kwargs)
    context = current_request_context()
    record.correlation_id = context.correlation_id
    record.organization = context.organization
    return record


def _field_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return str(value)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        fields = {key: _field_value(value) for key, value in vars(record).items() if key in FIELD_NAMES}
        if isinstance(fields.get("error"), str):
            fields["error"] = fields["error"][:_MAX_ERROR_LENGTH]
        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)

        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None),
            "organization": getattr(record, "organization", None),
            "fields": fields,
        }
        return json.dumps(payload, default=str)


def configure_logging(level: str | None = None) -> None:
    """Install the JSON handler on the root logger; later calls are no-ops."""
    root_logger = logging.getLogger()
    if getattr(root_logger, "_crm_configured", False):
        return

    resolved = logging.getLevelName((level or get_settings().log_level).upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonLogFormatter())

    root_logger.handlers.clear()
    root_logger.setLevel(resolved)
    root_logger.addHandler(handler)
    logging.setLogRecordFactory(_context_record_factory)
    root_logger._crm_configured = True  # type: ignore[attr-defined]
