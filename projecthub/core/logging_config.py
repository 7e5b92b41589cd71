"""
ProjectHub - Logging

One "projecthub" logger for the whole service. Records are enriched with the
request id, the authenticated user id and the project id being addressed, all
taken from context variables that the HTTP middleware and the access gate set
per request.

ENVIRONMENT=production emits one JSON object per line; every other environment
gets a compact text line.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from projecthub.core.config import Settings, settings as default_settings


LOGGER_NAME = "projecthub"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str] = ContextVar("user_id", default="")
project_id_var: ContextVar[str] = ContextVar("project_id", default="")

_CONTEXT_VARS = {
    "request_id": request_id_var,
    "user_id": user_id_var,
    "project_id": project_id_var,
}


def get_request_id() -> str:
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_user_id() -> str:
    return user_id_var.get()


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def get_project_id() -> str:
    return project_id_var.get()


def set_project_id(project_id: str) -> None:
    project_id_var.set(project_id)


def clear_log_context() -> None:
    for var in _CONTEXT_VARS.values():
        var.set("")


def log_context() -> Dict[str, str]:
    """Non-empty context values for the current request"""
    return {name: var.get() for name, var in _CONTEXT_VARS.items() if var.get()}


def generate_request_id() -> str:
    """Short random id used when the client did not send X-Request-ID"""
    return uuid.uuid4().hex[:8]


# Present on every LogRecord; anything else arrived through `extra=`
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """One JSON document per record, for log shippers"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcfromtimestamp(record.created).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(log_context())

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ContextualFormatter(logging.Formatter):
    """Text formatter that can reference %(request_id)s, %(user_id)s and %(project_id)s"""

    def format(self, record: logging.LogRecord) -> str:
        for name, var in _CONTEXT_VARS.items():
            setattr(record, name, var.get() or "-")
        return super().format(record)


class ProjectHubLogger(logging.Logger):
    """Logger with helpers for the events this service cares about"""

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **kwargs) -> None:
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        self.log(
            level,
            f"{method} {path} -> {status_code} in {duration_ms:.1f}ms",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": round(duration_ms, 2),
                **kwargs
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: Optional[str] = None,
                       reason: Optional[str] = None, **kwargs) -> None:
        """Register, sign-in and token checks; never pass passwords or tokens here"""
        outcome = "ok" if success else f"rejected ({reason or 'no reason'})"
        who = f" for {user_email}" if user_email else ""
        self.log(
            logging.INFO if success else logging.WARNING,
            f"Auth {event}{who}: {outcome}",
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_project_event(self, action: str, project_id: str, owner_id: str, **kwargs) -> None:
        self.info(
            f"Project {project_id} {action}",
            extra={
                "event_type": "project",
                "project_action": action,
                "owner_id": owner_id,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None,
                               **kwargs) -> None:
        where = f" during {context}" if context else ""
        self.error(
            f"{type(error).__name__}{where}: {error}",
            exc_info=error,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_context": context,
                **kwargs
            }
        )


TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"
TEXT_FORMAT_DETAILED = (
    "%(asctime)s %(levelname)-7s [%(request_id)s user=%(user_id)s project=%(project_id)s] "
    "%(module)s:%(lineno)d %(message)s"
)


def setup_logging(app_settings: Settings = default_settings) -> ProjectHubLogger:
    """(Re)configure the service logger from settings and return it"""
    logging.setLoggerClass(ProjectHubLogger)
    logger = logging.getLogger(LOGGER_NAME)
    if not isinstance(logger, ProjectHubLogger):
        # Created before setLoggerClass ran (e.g. by a third-party import)
        logger.__class__ = ProjectHubLogger

    logger.setLevel(getattr(logging, app_settings.LOG_LEVEL.upper(), logging.INFO))
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    json_logs = app_settings.ENVIRONMENT == "production"
    if json_logs:
        console_formatter: logging.Formatter = JSONFormatter()
        file_formatter: logging.Formatter = console_formatter
    else:
        console_formatter = ContextualFormatter(TEXT_FORMAT)
        file_formatter = ContextualFormatter(TEXT_FORMAT_DETAILED)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(console_formatter)
    logger.addHandler(console)

    if app_settings.LOG_FILE:
        path = Path(app_settings.LOG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    for noisy in ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


logger: ProjectHubLogger = setup_logging()


__all__ = [
    "logger",
    "setup_logging",
    "log_context",
    "clear_log_context",
    "get_request_id",
    "set_request_id",
    "get_user_id",
    "set_user_id",
    "get_project_id",
    "set_project_id",
    "generate_request_id",
    "ProjectHubLogger",
    "JSONFormatter",
    "ContextualFormatter",
]
