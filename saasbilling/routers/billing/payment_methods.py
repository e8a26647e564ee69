"""Stored payment methods."""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db_session
from ...exceptions import PaymentProviderError
from ...logger import get_logger
from ...middleware.auth.dependencies import get_current_user
from ...models.api.billing import PaymentMethodResponse
from ...models.billing import PaymentMethod
from ...models.iam import User
from ...operations.billing import PaymentProvider, get_payment_provider

logger = get_logger(__name__)

router = APIRouter()


def sync_payment_methods(
  user: User, db: Session, payment_provider: PaymentProvider
) -> None:
  """Refresh the local copy of the user's cards from the provider."""
  for method in payment_provider.list_payment_methods(user.stripe_customer_id):
    PaymentMethod.upsert(
      db,
      user_id=user.id,
      stripe_payment_method_id=method["id"],
      card_brand=method.get("brand"),
      card_last4=method.get("last4"),
      card_exp_month=method.get("exp_month"),
      card_exp_year=method.get("exp_year"),
      is_default=method.get("is_default", False),
    )


@router.get(
  "/payment-methods",
  response_model=List[PaymentMethodResponse],
  summary="List Payment Methods",
  description="""The current user's stored cards, default first.

With `refresh=true` the list is synced from the payment provider first; a
provider failure falls back to the stored list.""",
  operation_id="listPaymentMethods",
)
async def list_payment_methods(
  refresh: bool = Query(False, description="Sync from the payment provider first"),
  current_user: User = Depends(get_current_user),
  db: Session = Depends(get_db_session),
  payment_provider: PaymentProvider = Depends(get_payment_provider),
) -> List[PaymentMethodResponse]:
  if refresh and current_user.stripe_customer_id:
    try:
      sync_payment_methods(current_user, db, payment_provider)
    except PaymentProviderError as e:
      logger.warning(f"Payment method sync failed for {current_user.id}: {e.message}")

  return [
    PaymentMethodResponse.from_model(method)
    for method in PaymentMethod.get_for_user(current_user.id, db)
  ]
