"""SaaS Billing Service API main application module."""

from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version as pkg_version

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from saasbilling.config import env
from saasbilling.config.logging import get_logger
from saasbilling.config.validation import EnvValidator
from saasbilling.middleware.database import DatabaseSessionMiddleware
from saasbilling.middleware.logging import (
  SecurityLoggingMiddleware,
  StructuredLoggingMiddleware,
)
from saasbilling.routers import (
  admin_router,
  auth_router,
  billing_router,
  status_router,
  usage_router,
  webhooks_router,
)

logger = get_logger("saasbilling.api")

API_TAGS = [
  {"name": "Auth", "description": "Login, logout and the current session"},
  {"name": "Billing", "description": "Tiers, checkout, invoices and refunds"},
  {"name": "Usage", "description": "Usage metering"},
  {"name": "Webhooks", "description": "Payment provider callbacks"},
  {"name": "Admin", "description": "Administration; requires the ADMIN role"},
  {"name": "Status", "description": "Health checks"},
]


def get_version() -> str:
  try:
    return pkg_version("saasbilling-service")
  except PackageNotFoundError:
    return "0.0.0"


def create_app() -> FastAPI:
  """
  Create the FastAPI app and include the routers.

  Returns:
      FastAPI: The configured FastAPI application.
  """
  app = FastAPI(
    title="SaaS Billing API",
    version=get_version(),
    description="Subscriptions, invoices, usage metering and refunds.",
    openapi_url="/openapi.json",
    openapi_tags=API_TAGS,
  )

  app.state.current_time = datetime.now(timezone.utc)

  @app.on_event("startup")
  async def startup_event():
    """Validate configuration on startup."""
    logger.info("Starting SaaS Billing API...")

    try:
      EnvValidator.validate_required_vars(env)
      config_summary = EnvValidator.get_config_summary(env)
      logger.info(f"Configuration validated successfully: {config_summary}")
    except Exception as e:
      logger.error(f"Configuration validation failed: {e}")
      if env.is_production():
        raise
      logger.warning("Continuing with invalid configuration (non-production)")

    logger.info("SaaS Billing API startup complete")

  cors_origins = env.get_main_cors_origins()
  logger.info(f"CORS origins: {cors_origins}")

  app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=env.CORS_ALLOW_CREDENTIALS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=[
      "Accept",
      "Accept-Language",
      "Content-Type",
      "Authorization",
      "X-Requested-With",
    ],
    expose_headers=["X-Request-ID"],
    max_age=3600,
  )

  # Order matters: first added = outermost layer
  app.add_middleware(StructuredLoggingMiddleware)
  app.add_middleware(SecurityLoggingMiddleware)
  app.add_middleware(DatabaseSessionMiddleware)

  @app.middleware("http")
  async def security_headers_middleware(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if env.is_production() or env.is_staging():
      response.headers["Strict-Transport-Security"] = (
        "max-age=31536000; includeSubDomains"
      )

    if request.url.path.startswith(("/auth", "/billing", "/admin")):
      response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
      response.headers["Pragma"] = "no-cache"

    response.headers["Permissions-Policy"] = "geolocation=(), camera=(), microphone=()"
    return response

  @app.exception_handler(Exception)
  async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler returning generic error and request ID.

    Internal exception details are logged server-side; clients receive a generic
    message with a correlation identifier.
    """
    request_id = getattr(request.state, "request_id", None)
    logger.error(
      f"Unhandled exception: {exc!s}",
      extra={"request_id": request_id},
      exc_info=exc,
    )
    return JSONResponse(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      content={"detail": "Internal server error", "request_id": request_id},
    )

  app.include_router(status_router)
  app.include_router(auth_router)
  app.include_router(billing_router)
  app.include_router(usage_router)
  app.include_router(webhooks_router)
  app.include_router(admin_router)

  return app


app = create_app()

if __name__ == "__main__":
  import uvicorn

  uvicorn.run("main:app", host=env.HOST, port=env.PORT, reload=env.is_development())
