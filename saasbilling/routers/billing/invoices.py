"""Invoice history and billing overview."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...database import get_db_session
from ...logger import get_logger
from ...middleware.auth.dependencies import get_current_user
from ...models.api.billing import BillingOverviewResponse, InvoiceResponse
from ...models.billing import Invoice, InvoiceStatus, Subscription
from ...models.iam import User

logger = get_logger(__name__)

router = APIRouter()


@router.get(
  "/invoices",
  response_model=List[InvoiceResponse],
  summary="List Invoices",
  description="The current user's invoices, newest first.",
  operation_id="listInvoices",
)
async def list_invoices(
  current_user: User = Depends(get_current_user),
  db: Session = Depends(get_db_session),
) -> List[InvoiceResponse]:
  return [
    InvoiceResponse.from_model(invoice)
    for invoice in Invoice.get_for_user(current_user.id, db)
  ]


@router.get(
  "/overview",
  response_model=BillingOverviewResponse,
  summary="Billing Overview",
  description="""Invoices plus totals for the billing page.

`total_spent` sums the totals of PAID invoices; `next_billing_date` is the
renewal date of the current subscription, if any.""",
  operation_id="getBillingOverview",
)
async def billing_overview(
  current_user: User = Depends(get_current_user),
  db: Session = Depends(get_db_session),
) -> BillingOverviewResponse:
  try:
    invoices = Invoice.get_for_user(current_user.id, db)
    paid = [i for i in invoices if i.status == InvoiceStatus.PAID.value]
    subscription = Subscription.get_by_user_id(current_user.id, db)

    return BillingOverviewResponse(
      invoices=[InvoiceResponse.from_model(i) for i in invoices],
      total_spent=sum(i.total_cents for i in paid) / 100,
      paid_invoice_count=len(paid),
      next_billing_date=(
        subscription.renewal_date
        if subscription is not None and subscription.is_open()
        else None
      ),
    )
  except Exception as e:
    logger.error(
      f"Failed to build billing overview for {current_user.id}: {e}", exc_info=True
    )
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail="Failed to retrieve billing overview",
    )
