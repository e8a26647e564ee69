"""User refund requests."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...database import get_db_session
from ...exceptions import SaaSBillingError, to_http_exception
from ...logger import get_logger
from ...middleware.auth.dependencies import get_current_user
from ...models.api.billing import RefundCreateRequest, RefundResponse
from ...models.api.common import ErrorResponse
from ...models.iam import User
from ...operations.billing import RefundService

logger = get_logger(__name__)

router = APIRouter()


@router.post(
  "/refunds",
  response_model=RefundResponse,
  status_code=status.HTTP_201_CREATED,
  summary="Request a Refund",
  description="""Ask for a refund of one of your invoices.

The request is created in PENDING for the full invoice total and waits for
an administrator. Only one open request per invoice is allowed.""",
  operation_id="createRefundRequest",
  responses={
    400: {"model": ErrorResponse, "description": "Missing fields or open request exists"},
    404: {"model": ErrorResponse, "description": "Invoice not found"},
  },
)
async def create_refund_request(
  body: RefundCreateRequest,
  current_user: User = Depends(get_current_user),
  db: Session = Depends(get_db_session),
) -> RefundResponse:
  try:
    refund = RefundService(db).request_refund(current_user, body.invoice_id, body.reason)
    return RefundResponse.from_model(refund)
  except SaaSBillingError as e:
    raise to_http_exception(e)
  except HTTPException:
    raise
  except Exception as e:
    logger.error(
      f"Failed to create refund request for {current_user.id}: {e}", exc_info=True
    )
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail="Failed to create refund request",
    )


@router.get(
  "/refunds",
  response_model=List[RefundResponse],
  summary="List Refund Requests",
  description="The current user's refund requests, newest first.",
  operation_id="listRefundRequests",
)
async def list_refund_requests(
  current_user: User = Depends(get_current_user),
  db: Session = Depends(get_db_session),
) -> List[RefundResponse]:
  return [
    RefundResponse.from_model(r) for r in RefundService(db).list_for_user(current_user)
  ]
