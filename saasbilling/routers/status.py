"""
Unprotected status endpoint for load balancers and monitoring.
"""

from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter

from ..config import env
from ..models.api.common import StatusResponse

router = APIRouter(tags=["Status"])


def get_app_version() -> str:
  """Get the application version from installed package metadata."""
  try:
    return version("saasbilling-service")
  except PackageNotFoundError:
    return "unknown"


@router.get(
  "/status",
  response_model=StatusResponse,
  operation_id="getServiceStatus",
  summary="Health Check",
  description="Service health check endpoint for monitoring and load balancers",
)
async def service_status() -> StatusResponse:
  return StatusResponse(
    status="healthy",
    environment=env.ENVIRONMENT,
    version=get_app_version(),
    timestamp=datetime.now(timezone.utc).isoformat(),
  )
