"""Structured Logging — one JSON object per line, with upload context fields.

Invariants:
    - Every record carries timestamp (event time, UTC), level, logger and message
    - Context passed via extra= (entity_id, upload_id, document_type, fail_reason, ...)
      is copied to the top level when present
    - setup_logging is idempotent: a second call replaces the handler instead of stacking one
    - boto3/botocore/httpx chatter is capped at WARNING

Design Decisions:
    - Stdlib logging + JSONFormatter: log shippers parse one object per line, no extra dependency
    - LOG_FORMAT=text for local runs and tests
"""

import json
import logging
from datetime import datetime, timezone

CONTEXT_KEYS = (
    "error_code", "path", "flow", "entity_id", "upload_id",
    "document_type", "fail_reason", "side_effect",
)

_QUIET_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "httpx", "httpcore")
_HANDLER_NAME = "fleetdesk"


class JSONFormatter(logging.Formatter):
    """Render a LogRecord as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = str(value)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
