"""
Logging configuration.

WHAT: Configures the root logger for the service.

HOW: Human-readable console lines in development, one JSON object per line
in production. Modules log through ``logging.getLogger(__name__)``; a
handler filter tags every record with the current request ID, or ``-``
outside a request (e.g. in the sweep).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, Union

from pushrelay.middleware.request_context import get_request_context

NO_REQUEST_ID = "-"


class RequestContextFilter(logging.Filter):
    """
    Copy the request context onto each log record.

    WHAT: Sets ``record.request_id`` and ``record.client_ip`` from the
    RequestContext the middleware stores in its ContextVar.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_request_context()
        record.request_id = context.request_id if context else NO_REQUEST_ID
        record.client_ip = context.ip_address if context else None
        return True


class JSONFormatter(logging.Formatter):
    """
    Formatter that renders each record as a single JSON object.

    Fields: timestamp, level, logger, request_id, message, plus client_ip
    inside a request and exception text when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", NO_REQUEST_ID),
            "message": record.getMessage(),
        }

        client_ip = getattr(record, "client_ip", None)
        if client_ip:
            log_data["client_ip"] = client_ip

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


CONSOLE_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s - [%(request_id)s] %(message)s"
CONSOLE_DATE_FORMAT = "%H:%M:%S"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    json_output: bool = False,
    stream: Optional[object] = None,
) -> None:
    """
    Configure root and uvicorn loggers.

    Args:
        level: Log level name or number
        json_output: Emit JSON lines instead of the console format
        stream: Output stream (stdout by default)
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(RequestContextFilter())
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # Keep uvicorn in step with the app
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)

    # apscheduler is chatty at DEBUG
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
