"""
SaaS Billing logging entry point.

Configures structured logging once and exposes the application loggers
plus convenience wrappers used by middleware and routers.
"""

import logging
from typing import Optional, Dict, Any

from .config import env
from .config.logging import (
  setup_logging,
  get_logger,
  log_api_request,
  log_error,
  log_security_event,
)

setup_logging()

logger = get_logger("saasbilling")

if env.is_development():
  logging.getLogger("httpx").setLevel(logging.WARNING)
  logging.getLogger("httpcore").setLevel(logging.WARNING)
  logging.getLogger("urllib3").setLevel(logging.WARNING)

api_logger = get_logger("saasbilling.api")
security_logger = get_logger("saasbilling.security")


def log_api(
  method: str,
  path: str,
  status_code: int,
  duration_ms: float,
  user_id: Optional[str] = None,
  request_id: Optional[str] = None,
) -> None:
  """Log API requests with structured data."""
  log_api_request(
    api_logger, method, path, status_code, duration_ms, user_id, request_id
  )


def log_app_error(
  error: Exception,
  component: str,
  action: str,
  error_category: str = "application",
  user_id: Optional[str] = None,
  entity_id: Optional[str] = None,
  metadata: Optional[Dict[str, Any]] = None,
) -> None:
  """Log application errors with context."""
  log_error(
    logger, error, component, action, error_category, user_id, entity_id, metadata
  )


def log_auth_event(
  event_type: str,
  user_id: Optional[str] = None,
  ip_address: Optional[str] = None,
  success: bool = True,
  metadata: Optional[Dict[str, Any]] = None,
) -> None:
  """Log security/authentication events."""
  log_security_event(
    security_logger, event_type, user_id, ip_address, success, metadata
  )


__all__ = [
  "logger",
  "api_logger",
  "security_logger",
  "log_api",
  "log_app_error",
  "log_auth_event",
  "get_logger",
]
