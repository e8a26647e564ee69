"""Payment provider webhook handlers.

Each handler mirrors one provider-side change into local state. Handlers set
fields to absolute values, so replaying an event re-applies the same state;
invoice.created skips provider invoices that already have a local row.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from sqlalchemy.orm import Session

from ...models.billing import (
  Invoice,
  RefundRequest,
  Subscription,
  SubscriptionStatus,
)
from ...models.iam import User
from ..aws.ses import SESEmailService
from .payment_provider import from_timestamp, get_field

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[None]]


class WebhookEventProcessor:
  """Dispatch verified provider events to their handlers."""

  def __init__(self, session: Session, email_service: Optional[SESEmailService] = None):
    self.session = session
    self.email_service = email_service
    self.handlers: Dict[str, Handler] = {
      "customer.subscription.created": self.handle_subscription_created,
      "customer.subscription.updated": self.handle_subscription_updated,
      "customer.subscription.deleted": self.handle_subscription_deleted,
      "invoice.created": self.handle_invoice_created,
      "invoice.payment_succeeded": self.handle_payment_succeeded,
      "invoice.payment_failed": self.handle_payment_failed,
      "charge.refunded": self.handle_charge_refunded,
    }

  async def process(self, event: Any) -> bool:
    """
    Run the handler for an event.

    Returns:
        True if the event type has a handler, False if it was ignored
    """
    event_type = get_field(event, "type")
    event_id = get_field(event, "id")
    handler = self.handlers.get(event_type)

    if handler is None:
      logger.info(f"Ignoring unhandled webhook event {event_type} ({event_id})")
      return False

    logger.info(
      f"Processing webhook event {event_type}",
      extra={"event_type": event_type, "entity_id": event_id},
    )
    await handler(get_field(get_field(event, "data"), "object"))
    return True

  # ==========================================================================
  # Subscription events
  # ==========================================================================

  async def handle_subscription_created(self, subscription: Any) -> None:
    # Local rows are created by checkout; nothing to mirror here
    logger.info(f"Provider subscription created: {get_field(subscription, 'id')}")

  async def handle_subscription_updated(self, subscription: Any) -> None:
    provider_id = get_field(subscription, "id")
    local = Subscription.get_by_stripe_subscription_id(provider_id, self.session)
    if local is None:
      logger.warning(f"Subscription {provider_id} not found locally; skipping update")
      return

    period_end = get_field(subscription, "current_period_end")
    if period_end is None:
      items = get_field(get_field(subscription, "items"), "data", [])
      if items:
        period_end = get_field(items[0], "current_period_end")

    status = SubscriptionStatus.from_provider(get_field(subscription, "status"))
    local.update_status(status, self.session, renewal_date=from_timestamp(period_end))

  async def handle_subscription_deleted(self, subscription: Any) -> None:
    provider_id = get_field(subscription, "id")
    local = Subscription.get_by_stripe_subscription_id(provider_id, self.session)
    if local is None:
      logger.warning(f"Subscription {provider_id} not found locally; skipping cancel")
      return
    local.cancel(self.session)

  # ==========================================================================
  # Invoice events
  # ==========================================================================

  async def handle_invoice_created(self, invoice: Any) -> None:
    provider_id = get_field(invoice, "id")
    if Invoice.get_by_stripe_invoice_id(provider_id, self.session) is not None:
      logger.info(f"Invoice {provider_id} already recorded; skipping")
      return

    user = User.get_by_stripe_customer_id(get_field(invoice, "customer"), self.session)
    if user is None:
      logger.warning(
        f"No user for customer {get_field(invoice, 'customer')}; invoice {provider_id} not recorded"
      )
      return

    subscription_id = None
    provider_subscription_id = get_field(invoice, "subscription")
    if provider_subscription_id:
      local = Subscription.get_by_stripe_subscription_id(
        provider_subscription_id, self.session
      )
      subscription_id = local.id if local else None

    Invoice.create(
      self.session,
      user_id=user.id,
      subscription_id=subscription_id,
      invoice_number=get_field(invoice, "number"),
      subtotal_cents=get_field(invoice, "subtotal", 0),
      tax_cents=get_field(invoice, "tax", 0),
      total_cents=get_field(invoice, "total", 0),
      description=get_field(invoice, "description", "Subscription Invoice"),
      period_start=from_timestamp(get_field(invoice, "period_start")),
      period_end=from_timestamp(get_field(invoice, "period_end")),
      due_date=from_timestamp(get_field(invoice, "due_date")),
      stripe_invoice_id=provider_id,
      hosted_invoice_url=get_field(invoice, "hosted_invoice_url"),
    )

  async def handle_payment_succeeded(self, invoice: Any) -> None:
    Invoice.mark_paid_by_stripe_id(get_field(invoice, "id"), self.session)

    user = User.get_by_stripe_customer_id(get_field(invoice, "customer"), self.session)
    if user is not None and self.email_service is not None:
      try:
        await self.email_service.send_payment_received(
          user.email, user.name, get_field(invoice, "total", 0) / 100
        )
      except Exception as e:
        logger.warning(f"Failed to send payment received email to {user.id}: {e}")

  async def handle_payment_failed(self, invoice: Any) -> None:
    Invoice.mark_failed_by_stripe_id(get_field(invoice, "id"), self.session)

    user = User.get_by_stripe_customer_id(get_field(invoice, "customer"), self.session)
    if user is not None and self.email_service is not None:
      try:
        await self.email_service.send_payment_failed(
          user.email, user.name, get_field(invoice, "total", 0) / 100
        )
      except Exception as e:
        logger.warning(f"Failed to send payment failed email to {user.id}: {e}")

  # ==========================================================================
  # Charge events
  # ==========================================================================

  async def handle_charge_refunded(self, charge: Any) -> None:
    refunds = get_field(get_field(charge, "refunds"), "data", []) or []
    refund_ids = [rid for rid in (get_field(r, "id") for r in refunds) if rid]

    # Refunds issued through approval already carry their provider id
    known = RefundRequest.get_by_stripe_refund_ids(refund_ids, self.session)
    if known is not None:
      logger.info(
        f"Charge {get_field(charge, 'id')} refund {known.stripe_refund_id} "
        f"already recorded on request {known.id}"
      )
      return

    amount_cents = get_field(charge, "amount_refunded") or get_field(charge, "amount", 0)
    user = User.get_by_stripe_customer_id(get_field(charge, "customer"), self.session)

    refund = RefundRequest.find_open_by_amount(
      amount_cents, self.session, user_id=user.id if user else None
    )
    if refund is None:
      logger.info(
        f"No open refund request for charge {get_field(charge, 'id')} ({amount_cents} cents)"
      )
      return

    provider_refund_id = (
      refund.stripe_refund_id
      or (refund_ids[0] if refund_ids else None)
      or get_field(charge, "id")
    )
    refund.mark_refunded(self.session, stripe_refund_id=provider_refund_id)
