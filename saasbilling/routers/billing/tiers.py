"""Public subscription tier catalog."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...database import get_db_session
from ...logger import get_logger
from ...models.api.billing import TierResponse
from ...models.billing import SubscriptionTier

logger = get_logger(__name__)

router = APIRouter()


@router.get(
  "/tiers",
  response_model=List[TierResponse],
  summary="List Subscription Tiers",
  description="Active subscription tiers in display order, with prices, limits and features.",
  operation_id="listSubscriptionTiers",
)
async def list_tiers(db: Session = Depends(get_db_session)) -> List[TierResponse]:
  try:
    return [TierResponse.from_model(tier) for tier in SubscriptionTier.get_active(db)]
  except Exception as e:
    logger.error(f"Failed to list subscription tiers: {e}", exc_info=True)
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail="Failed to retrieve subscription tiers",
    )
