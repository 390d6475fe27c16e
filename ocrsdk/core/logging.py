from __future__ import annotations

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

# Context var to carry the remote task id across awaits of one process() call
_task_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("task_id", default="-")

_EXTRA_FIELDS = (
    "task_id",
    "status",
    "attempt",
    "variant",
    "path",
    "bucket",
    "key",
    "duration_ms",
    "http_status",
    "size",
    "error_code",
)


def get_task_id() -> str:
    return _task_id_ctx.get()


def bind_task_id(task_id: str) -> contextvars.Token[str]:
    return _task_id_ctx.set(task_id)


def reset_task_id(token: contextvars.Token[str]) -> None:
    _task_id_ctx.reset(token)


class TaskIdFilter(logging.Filter):
    """Inject task_id from contextvars into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 (shadow builtins)
        if not hasattr(record, "task_id"):
            record.task_id = get_task_id()
        return True


class StructuredFormatter(logging.Formatter):
    """JSON formatter: standard fields plus whitelisted ``extra`` context.

    Example:
        >>> logger.info("task_status", extra={"status": "Queued", "attempt": 1})
        # {"timestamp": "...", "level": "INFO", "message": "task_status",
        #  "task_id": "...", "status": "Queued", "attempt": 1, ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False, stream: TextIO | None = None) -> None:
    """Configure root logging with one stream handler (stdout by default).

    Safe to call repeatedly; existing root handlers are replaced.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level.upper())
    handler.addFilter(TaskIdFilter())
    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(levelname)s | %(name)s | task_id=%(task_id)s | %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
        )
    root.addHandler(handler)

    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
