"""Usage metering endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..exceptions import ValidationError
from ..logger import get_logger
from ..middleware.auth.dependencies import get_current_user
from ..models.api.common import ErrorResponse
from ..models.api.usage import TrackUsageRequest, TrackUsageResponse, UsageTotal
from ..models.iam import User
from ..operations.billing import UsageService

logger = get_logger(__name__)

router = APIRouter(prefix="/usage", tags=["Usage"])


@router.post(
  "/track",
  response_model=TrackUsageResponse,
  summary="Track Usage",
  description="""Record a usage sample for the current user.

Exceeding a plan limit is logged and does not reject the sample.""",
  operation_id="trackUsage",
  responses={400: {"model": ErrorResponse, "description": "Invalid sample"}},
)
async def track_usage(
  body: TrackUsageRequest,
  current_user: User = Depends(get_current_user),
  db: Session = Depends(get_db_session),
) -> TrackUsageResponse:
  try:
    UsageService(db).track(current_user.id, body.metric, body.value)
    return TrackUsageResponse(success=True)
  except ValidationError as e:
    logger.info(f"Rejected usage sample from {current_user.id}: {e.message}")
    raise HTTPException(
      status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to track usage"
    )
  except Exception as e:
    logger.error(f"Failed to track usage for {current_user.id}: {e}", exc_info=True)
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail="Failed to track usage",
    )


@router.get(
  "/current",
  response_model=List[UsageTotal],
  summary="Current Usage",
  description="Per-metric totals over the trailing usage window.",
  operation_id="getCurrentUsage",
)
async def current_usage(
  current_user: User = Depends(get_current_user),
  db: Session = Depends(get_db_session),
) -> List[UsageTotal]:
  totals = UsageService(db).current_usage(current_user.id)
  return [UsageTotal(metric=metric, total=total) for metric, total in totals.items()]
