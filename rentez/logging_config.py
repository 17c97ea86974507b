# rentez/logging_config.py
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .middleware.request_id import get_request_id

# record attributes copied into the JSON line when a caller passes them via extra=
EXTRA_KEYS = (
    "user_id",
    "user_email",
    "property_id",
    "application_id",
    "lease_id",
    "payment_id",
    "connection_id",
    "method",
    "path",
    "status_code",
    "latency_ms",
)

NOISY_LOGGERS = ("uvicorn.access", "aiosmtplib", "celery.app.trace")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = get_request_id()
        if rid:
            line["request_id"] = rid

        for key in EXTRA_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                line[key] = val

        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(line, ensure_ascii=False, default=str)


def configure_logging() -> None:
    """
    JSON lines on stdout. LOG_LEVEL sets the app level, SQL_LOG_LEVEL the
    SQLAlchemy engine; LOG_FORMAT=plain switches to a human format locally.
    """
    level = (os.getenv("LOG_LEVEL") or "INFO").upper()
    plain = (os.getenv("LOG_FORMAT") or "json").lower() == "plain"

    handler = logging.StreamHandler(sys.stdout)
    if plain:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    # replace, not append: uvicorn --reload and repeated create_app() calls
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.getLevelName(level), logging.WARNING))
    logging.getLogger("sqlalchemy.engine").setLevel((os.getenv("SQL_LOG_LEVEL") or "WARNING").upper())
