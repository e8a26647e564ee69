"""
Structured logging configuration for the SaaS Billing service.

Deployed environments write one JSON object per line: errors go to stderr,
everything else to stdout. Development logs plain text to the console and
test runs only surface warnings and errors.
"""

import json
import logging
import logging.config
import traceback
from datetime import datetime, timezone
from typing import Any

from saasbilling.config.env import EnvConfig

APP_LOGGERS = ["saasbilling", "saasbilling.api", "saasbilling.security"]

# Third-party loggers and the stream their warnings belong on
LIBRARY_LOGGERS = {
  "uvicorn": "stdout",
  "sqlalchemy": "stdout",
  "stripe": "stderr",
  "boto3": "stderr",
  "botocore": "stderr",
}

# Default level per environment; dev can be overridden with LOG_LEVEL
ENVIRONMENT_LEVELS = {
  "prod": "INFO",
  "staging": "INFO",
  "test": "WARNING",
}

# `extra` keys copied onto the JSON line when a record carries them
CONTEXT_FIELDS = (
  "action",
  "user_id",
  "entity_id",
  "event_type",
  "ip_address",
  "method",
  "path",
  "status_code",
  "duration_ms",
  "metadata",
  "request_id",
)


class StructuredFormatter(logging.Formatter):
  """Render a record as a single JSON line."""

  def format(self, record: logging.LogRecord) -> str:
    entry: dict[str, Any] = {
      "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
      "level": record.levelname,
      "component": getattr(record, "component", record.name),
      "message": record.getMessage(),
    }
    for field in CONTEXT_FIELDS:
      value = getattr(record, field, None)
      if value is not None:
        entry[field] = value

    if record.levelno >= logging.ERROR and record.exc_info:
      exc_type, exc_value, _ = record.exc_info
      entry["error"] = {
        "type": exc_type.__name__ if exc_type else "Unknown",
        "message": str(exc_value) if exc_value else "",
        "traceback": traceback.format_exception(*record.exc_info),
        "category": getattr(record, "error_category", "application"),
      }

    return json.dumps(entry, default=str, separators=(",", ":"))


class LevelRangeFilter:
  """Pass records whose level falls in [min_level, max_level)."""

  def __init__(self, min_level: str = "DEBUG", max_level: str | None = None):
    self.min_level = logging.getLevelName(min_level)
    self.max_level = logging.getLevelName(max_level) if max_level else None

  def filter(self, record: logging.LogRecord) -> bool:
    if record.levelno < self.min_level:
      return False
    return self.max_level is None or record.levelno < self.max_level


def _stream_handler(stream: str, level: str, formatter: str, filter_name: str | None = None):
  handler: dict[str, Any] = {
    "class": "logging.StreamHandler",
    "level": level,
    "formatter": formatter,
    "stream": f"ext://sys.{stream}",
  }
  if filter_name:
    handler["filters"] = [filter_name]
  return handler


def get_logging_config(environment: str | None = None) -> dict[str, Any]:
  """Build the dictConfig for an environment (defaults to ENVIRONMENT)."""
  env = environment or EnvConfig.ENVIRONMENT
  level = ENVIRONMENT_LEVELS.get(env) or getattr(EnvConfig, "LOG_LEVEL", None) or "DEBUG"
  console = env == "dev"

  handlers: dict[str, Any] = {
    "console": _stream_handler("stdout", level, "simple" if console else "structured"),
    "stderr": _stream_handler("stderr", "ERROR", "structured", "errors_only"),
    "stdout": _stream_handler("stdout", "DEBUG", "structured", "below_errors"),
  }
  app_handlers = ["console"] if console else ["stderr", "stdout"]

  def library_handlers(stream: str) -> list[str]:
    return ["console"] if console else [stream]

  return {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
      "structured": {"()": StructuredFormatter},
      "simple": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
    },
    "filters": {
      "errors_only": {"()": LevelRangeFilter, "min_level": "ERROR"},
      "below_errors": {"()": LevelRangeFilter, "max_level": "ERROR"},
    },
    "handlers": handlers,
    "loggers": {
      **{
        name: {"level": level, "handlers": list(app_handlers), "propagate": False}
        for name in APP_LOGGERS
      },
      **{
        name: {
          "level": "WARNING",
          "handlers": library_handlers(stream),
          "propagate": False,
        }
        for name, stream in LIBRARY_LOGGERS.items()
      },
    },
    "root": {"level": "WARNING", "handlers": library_handlers("stderr")},
  }


def setup_logging(environment: str | None = None) -> None:
  logging.config.dictConfig(get_logging_config(environment))


def get_logger(name: str) -> logging.Logger:
  return logging.getLogger(name)


def log_api_request(
  logger: logging.Logger,
  method: str,
  path: str,
  status_code: int,
  duration_ms: float,
  user_id: str | None = None,
  request_id: str | None = None,
) -> None:
  """One line per completed request; 5xx responses are logged as errors."""
  level = logging.ERROR if status_code >= 500 else logging.INFO
  logger.log(
    level,
    f"{method} {path} - {status_code} ({duration_ms:.2f}ms)",
    extra={
      "component": "api",
      "action": "request_completed",
      "method": method,
      "path": path,
      "status_code": status_code,
      "duration_ms": round(duration_ms, 2),
      "user_id": user_id,
      "request_id": request_id,
    },
  )


def log_error(
  logger: logging.Logger,
  error: Exception,
  component: str,
  action: str,
  error_category: str = "application",
  user_id: str | None = None,
  entity_id: str | None = None,
  metadata: dict[str, Any] | None = None,
) -> None:
  logger.error(
    f"Error in {component}.{action}: {error!s}",
    exc_info=True,
    extra={
      "component": component,
      "action": action,
      "error_category": error_category,
      "user_id": user_id,
      "entity_id": entity_id,
      "metadata": metadata or {},
    },
  )


def log_security_event(
  logger: logging.Logger,
  event_type: str,
  user_id: str | None = None,
  ip_address: str | None = None,
  success: bool = True,
  metadata: dict[str, Any] | None = None,
) -> None:
  """Failed security events are warnings so they reach alerting."""
  logger.log(
    logging.INFO if success else logging.WARNING,
    f"Security event: {event_type} - {'Success' if success else 'Failed'}",
    extra={
      "component": "security",
      "action": event_type,
      "user_id": user_id,
      "ip_address": ip_address,
      "metadata": {"success": success, **(metadata or {})},
    },
  )
