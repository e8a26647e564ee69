"""
Logging middleware for structured API request logging.

Every request gets a request id (reused from an incoming X-Request-ID header
when present) that is attached to request.state, echoed in the response
headers, and included in the request log line.
"""

import asyncio
import time
import uuid
from typing import Callable, Optional
from urllib.parse import parse_qsl, urlencode

import stripe
from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from saasbilling.logger import log_api, log_app_error, log_auth_event

# Query parameters whose values never reach the logs
SENSITIVE_QUERY_PARAMS = {
  "token",
  "password",
  "secret",
  "authorization",
  "session",
  "temporary_password",
}

AUTH_PATH_PREFIX = "/auth/"


def categorize_error(error: Exception) -> str:
  """Coarse failure source used to group unhandled errors in the logs."""
  if isinstance(error, SQLAlchemyError):
    return "database"
  if isinstance(error, stripe.StripeError):
    return "payment_provider"
  if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
    return "timeout"
  if isinstance(error, PermissionError):
    return "authorization"
  return "application"


def redact_sensitive_query_params(query_string: str) -> str:
  """Replace sensitive query parameter values with REDACTED."""
  if not query_string:
    return ""

  try:
    pairs = parse_qsl(query_string, keep_blank_values=True)
  except ValueError:
    return ""
  return urlencode(
    [(k, "REDACTED" if k.lower() in SENSITIVE_QUERY_PARAMS else v) for k, v in pairs]
  )


def get_safe_url_for_logging(request: Request) -> str:
  """Request path plus redacted query string."""
  path = request.url.path
  if request.url.query:
    safe_query = redact_sensitive_query_params(str(request.url.query))
    if safe_query:
      return f"{path}?{safe_query}"
  return path


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
  """
  Log every API request with method, path, status, duration, and request id.

  Unhandled exceptions are logged with their category and re-raised for the
  application's exception handlers.
  """

  def __init__(self, app, exclude_paths: Optional[list] = None):
    super().__init__(app)
    self.exclude_paths = exclude_paths or [
      "/status",
      "/favicon.ico",
      "/docs",
      "/redoc",
      "/openapi.json",
    ]

  async def dispatch(self, request: Request, call_next: Callable) -> Response:
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    if any(request.url.path.startswith(path) for path in self.exclude_paths):
      response = await call_next(request)
      response.headers["X-Request-ID"] = request_id
      return response

    start_time = time.time()

    try:
      response = await call_next(request)
    except Exception as e:
      duration_ms = (time.time() - start_time) * 1000
      user_id = getattr(request.state, "user_id", None)

      log_app_error(
        error=e,
        component="api_middleware",
        action="request_processing",
        error_category=categorize_error(e),
        user_id=str(user_id) if user_id else None,
        metadata={
          "method": request.method,
          "path": request.url.path,
          "duration_ms": duration_ms,
          "request_id": request_id,
        },
      )
      raise

    duration_ms = (time.time() - start_time) * 1000
    user_id = getattr(request.state, "user_id", None)

    log_api(
      method=request.method,
      path=request.url.path,
      status_code=response.status_code,
      duration_ms=duration_ms,
      user_id=str(user_id) if user_id else None,
      request_id=request_id,
    )

    response.headers["X-Request-ID"] = request_id
    return response


class SecurityLoggingMiddleware(BaseHTTPMiddleware):
  """
  Security event logging.

  Logs the outcome of every auth endpoint call and every 403 response.
  """

  async def dispatch(self, request: Request, call_next: Callable) -> Response:
    client_ip = request.client.host if request.client else "unknown"
    user_agent = request.headers.get("user-agent", "unknown")

    response = await call_next(request)
    user_id = getattr(request.state, "user_id", None)

    if request.url.path.startswith(AUTH_PATH_PREFIX):
      action = request.url.path.rstrip("/").split("/")[-1]
      log_auth_event(
        event_type=f"auth_{action}",
        user_id=str(user_id) if user_id else None,
        ip_address=client_ip,
        success=200 <= response.status_code < 300,
        metadata={
          "user_agent": user_agent,
          "status_code": response.status_code,
          "method": request.method,
          "path": request.url.path,
        },
      )

    if response.status_code == 403:
      log_auth_event(
        event_type="authorization_failed",
        user_id=str(user_id) if user_id else None,
        ip_address=client_ip,
        success=False,
        metadata={
          "method": request.method,
          "path": get_safe_url_for_logging(request),
          "user_agent": user_agent,
          "status_code": response.status_code,
        },
      )

    return response
