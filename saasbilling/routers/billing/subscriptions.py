"""Checkout and current subscription endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ...database import get_db_session
from ...exceptions import SaaSBillingError, to_http_exception
from ...logger import get_logger
from ...middleware.auth.dependencies import get_client_ip, get_current_user
from ...models.api.billing import (
  InvoiceSummary,
  SubscribeRequest,
  SubscribeResponse,
  SubscriptionResponse,
)
from ...models.api.common import ErrorResponse
from ...models.billing import Subscription
from ...models.iam import User
from ...operations.aws.ses import SESEmailService, get_email_service
from ...operations.billing import (
  PaymentProvider,
  SubscriptionService,
  get_payment_provider,
)

logger = get_logger(__name__)

router = APIRouter()


@router.post(
  "/subscribe",
  response_model=SubscribeResponse,
  status_code=status.HTTP_201_CREATED,
  summary="Subscribe to a Tier",
  description="""Start a paid subscription for the current user.

Creates (or reuses) the payment provider customer, creates the provider
subscription, and records the subscription and its first invoice locally.
Payment is completed on the hosted invoice page returned as `checkout_url`.

**Validation order:** billing address, country code, tier id, billing cycle,
tier lookup, existing open subscription. The first failure is returned.""",
  operation_id="createSubscription",
  responses={
    400: {"model": ErrorResponse, "description": "Invalid request or payment failure"},
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    404: {"model": ErrorResponse, "description": "Tier not found"},
  },
)
async def subscribe(
  body: SubscribeRequest,
  request: Request,
  current_user: User = Depends(get_current_user),
  db: Session = Depends(get_db_session),
  payment_provider: PaymentProvider = Depends(get_payment_provider),
  email_service: SESEmailService = Depends(get_email_service),
) -> SubscribeResponse:
  try:
    service = SubscriptionService(db, payment_provider, email_service)
    result = await service.subscribe(
      current_user,
      body,
      ip_address=get_client_ip(request),
      user_agent=request.headers.get("user-agent"),
    )

    return SubscribeResponse(
      success=True,
      subscription=SubscriptionResponse.from_model(result.subscription),
      invoice=InvoiceSummary.from_model(result.invoice),
      checkout_url=result.checkout_url,
      message=f"Subscribed to {result.subscription.tier.name}",
    )

  except SaaSBillingError as e:
    logger.warning(f"Checkout rejected for user {current_user.id}: {e.message}")
    raise to_http_exception(e)
  except HTTPException:
    raise
  except Exception as e:
    logger.error(
      f"Checkout failed for user {current_user.id}: {e}",
      exc_info=True,
    )
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail="Failed to create subscription",
    )


@router.get(
  "/subscription",
  response_model=SubscriptionResponse,
  summary="Get Current Subscription",
  description="The current user's subscription with its tier, features and limits.",
  operation_id="getCurrentSubscription",
  responses={404: {"model": ErrorResponse, "description": "No subscription"}},
)
async def get_subscription(
  current_user: User = Depends(get_current_user),
  db: Session = Depends(get_db_session),
) -> SubscriptionResponse:
  subscription = Subscription.get_by_user_id(current_user.id, db)
  if subscription is None:
    raise HTTPException(
      status_code=status.HTTP_404_NOT_FOUND, detail="No subscription found"
    )
  return SubscriptionResponse.from_model(subscription)
