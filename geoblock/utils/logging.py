"""
Structured JSON logging with request context.

Every log line is JSON with: timestamp, level, correlation_id, module, message,
plus the request path and the blocking action in progress when known.

Request-scoped values live in contextvars. The middleware sets the correlation
id and path; the blocking service tags the action (block, unblock, check) and
the expiry sweeper tags its own task with "sweep".
"""
import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
request_path_ctx: ContextVar[Optional[str]] = ContextVar("request_path", default=None)
action_ctx: ContextVar[Optional[str]] = ContextVar("action", default=None)

# Per-record extras copied into the JSON line when passed via `extra=`
RECORD_FIELDS = ("country_code", "ip_address", "error_code")


def get_correlation_id() -> Optional[str]:
    return correlation_id_ctx.get()


def set_correlation_id(cid: str) -> None:
    correlation_id_ctx.set(cid)


def generate_correlation_id() -> str:
    """UUID4 hex, 32 chars."""
    return uuid.uuid4().hex


def set_request_path(path: Optional[str]) -> None:
    request_path_ctx.set(path)


def set_action(action: Optional[str]) -> None:
    """Tag every following log line in this context with the blocking action."""
    action_ctx.set(action)


def get_action() -> Optional[str]:
    return action_ctx.get()


class StructuredJsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    {"timestamp": "...", "level": "INFO", "correlation_id": "...", "module": "...",
     "message": "...", "path": "/api/...", "action": "block", "country_code": "FR"}

    An explicit `extra={"action": ...}` wins over the context action.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "correlation_id": get_correlation_id(),
            "module": record.name,
            "message": record.getMessage(),
        }

        path = request_path_ctx.get()
        if path:
            log_entry["path"] = path

        action = getattr(record, "action", None) or get_action()
        if action:
            log_entry["action"] = action

        for key in RECORD_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def configure_structured_logging(log_level: str = "INFO") -> None:
    """
    Install the JSON formatter on the root logger.
    Called from create_app before any request is served.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    for noisy in ("uvicorn.access", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
