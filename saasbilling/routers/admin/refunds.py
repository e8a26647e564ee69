"""Admin refund approval and rejection."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ...database import get_db_session
from ...exceptions import PaymentProviderError, SaaSBillingError, to_http_exception
from ...logger import get_logger
from ...middleware.auth import Permission, get_client_ip, require_admin_permission
from ...models.api.admin import (
  RefundActionResponse,
  RefundApproveRequest,
  RefundRejectRequest,
)
from ...models.api.billing import RefundResponse
from ...models.api.common import ErrorResponse
from ...models.iam import User
from ...operations.aws.ses import SESEmailService, get_email_service
from ...operations.billing import PaymentProvider, RefundService, get_payment_provider

logger = get_logger(__name__)

router = APIRouter(prefix="/refund")


@router.post(
  "/approve",
  response_model=RefundActionResponse,
  summary="Approve Refund",
  description="""Refund the invoice through the payment provider.

If the provider call fails the request stays PENDING and can be retried.""",
  operation_id="adminApproveRefund",
  responses={
    400: {"model": ErrorResponse, "description": "Not pending or provider failure"},
    404: {"model": ErrorResponse, "description": "Refund request not found"},
  },
)
async def approve_refund(
  body: RefundApproveRequest,
  request: Request,
  admin: User = Depends(require_admin_permission(Permission.MANAGE_BILLING)),
  db: Session = Depends(get_db_session),
  payment_provider: PaymentProvider = Depends(get_payment_provider),
  email_service: SESEmailService = Depends(get_email_service),
) -> RefundActionResponse:
  try:
    service = RefundService(db, payment_provider, email_service)
    refund = await service.approve(
      admin, body.refund_id, ip_address=get_client_ip(request)
    )
    return RefundActionResponse(
      message="Refund approved and processed",
      refund=RefundResponse.from_model(refund),
    )
  except PaymentProviderError as e:
    logger.error(f"Refund {body.refund_id} failed at the provider: {e.message}")
    raise HTTPException(
      status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to process refund"
    )
  except SaaSBillingError as e:
    raise to_http_exception(e)
  except HTTPException:
    raise
  except Exception as e:
    logger.error(f"Failed to approve refund {body.refund_id}: {e}", exc_info=True)
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail="Failed to approve refund",
    )


@router.post(
  "/reject",
  response_model=RefundActionResponse,
  summary="Reject Refund",
  description="Reject a pending refund request with an optional note.",
  operation_id="adminRejectRefund",
  responses={
    400: {"model": ErrorResponse, "description": "Not pending"},
    404: {"model": ErrorResponse, "description": "Refund request not found"},
  },
)
async def reject_refund(
  body: RefundRejectRequest,
  request: Request,
  admin: User = Depends(require_admin_permission(Permission.MANAGE_BILLING)),
  db: Session = Depends(get_db_session),
) -> RefundActionResponse:
  try:
    refund = RefundService(db).reject(
      admin, body.refund_id, reason=body.reason, ip_address=get_client_ip(request)
    )
    return RefundActionResponse(
      message="Refund request rejected", refund=RefundResponse.from_model(refund)
    )
  except SaaSBillingError as e:
    raise to_http_exception(e)
  except HTTPException:
    raise
  except Exception as e:
    logger.error(f"Failed to reject refund {body.refund_id}: {e}", exc_info=True)
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail="Failed to reject refund",
    )
