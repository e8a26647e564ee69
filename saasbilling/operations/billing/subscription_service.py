"""Checkout workflow: subscribe a user to a tier through the payment provider."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import BillingConfig, env
from ...exceptions import (
  AuthenticationError,
  ConfigurationError,
  DuplicateEntityError,
  EntityNotFoundError,
  ValidationError,
)
from ...models.api.billing import Address, SubscribeRequest
from ...models.billing import (
  AuditAction,
  AuditLog,
  Invoice,
  Subscription,
  SubscriptionStatus,
  SubscriptionTier,
)
from ...models.iam import User
from ..aws.ses import SESEmailService
from .payment_provider import PaymentProvider

logger = logging.getLogger(__name__)

COUNTRY_CODE_PATTERN = re.compile(r"^[A-Za-z]{2}$")

DUPLICATE_SUBSCRIPTION_MESSAGE = "User already has an active subscription"


@dataclass
class CheckoutResult:
  """Rows created by a successful checkout."""

  subscription: Subscription
  invoice: Invoice
  checkout_url: Optional[str]


class SubscriptionService:
  """Service for subscribing users to tiers.

  Steps run strictly in sequence with a commit after each write; a failure
  after the provider subscription exists does not undo earlier writes. All
  validation happens before the first provider call.
  """

  def __init__(
    self,
    session: Session,
    payment_provider: PaymentProvider,
    email_service: Optional[SESEmailService] = None,
  ):
    self.session = session
    self.payment_provider = payment_provider
    self.email_service = email_service

  def validate_request(
    self, user: Optional[User], request: SubscribeRequest
  ) -> tuple[SubscriptionTier, str, Optional[Subscription]]:
    """
    Validate a subscription request in order and return its resolved parts.

    Order: authentication, billing address and country code, tier id,
    billing cycle, tier existence and active flag, existing open subscription.

    Returns:
        Tuple of (tier, billing cycle, closed subscription row to reuse or None)
    """
    if user is None:
      raise AuthenticationError("Authentication required")

    address = request.billing_address
    if address is None or not address.country:
      raise ValidationError("Billing address is required", field="billing_address")
    if not COUNTRY_CODE_PATTERN.match(address.country.strip()):
      raise ValidationError(
        "Billing address country must be a 2-letter country code",
        field="billing_address.country",
      )

    if not request.tier_id:
      raise ValidationError("Tier ID is required", field="tier_id")

    billing_cycle = (request.billing_cycle or "").strip().upper()
    if billing_cycle not in BillingConfig.BILLING_CYCLES:
      raise ValidationError(
        "Billing cycle must be MONTHLY or YEARLY", field="billing_cycle"
      )

    tier = SubscriptionTier.get_by_id(request.tier_id, self.session)
    if tier is None or not tier.is_active:
      raise EntityNotFoundError(request.tier_id, "Subscription tier")

    existing = Subscription.get_by_user_id(user.id, self.session)
    if existing is not None and existing.is_open():
      raise DuplicateEntityError(
        user.id, "Subscription", message=DUPLICATE_SUBSCRIPTION_MESSAGE
      )

    return tier, billing_cycle, existing

  def resolve_customer(
    self,
    user: User,
    customer_name: str,
    billing_address: Address,
    shipping_address: Optional[Address],
  ) -> str:
    """Reuse the user's provider customer or create and store a new one."""
    if user.stripe_customer_id:
      return user.stripe_customer_id

    customer_id = self.payment_provider.create_customer(
      user_id=user.id,
      email=user.email,
      name=customer_name,
      billing_address=billing_address.to_provider(),
      shipping_address=shipping_address.to_provider() if shipping_address else None,
    )
    user.set_stripe_customer_id(customer_id, self.session)
    return customer_id

  async def subscribe(
    self,
    user: Optional[User],
    request: SubscribeRequest,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
  ) -> CheckoutResult:
    """
    Subscribe a user to a tier.

    Raises:
        AuthenticationError: No user
        ValidationError: Missing or malformed input
        EntityNotFoundError: Unknown or inactive tier
        DuplicateEntityError: The user already has an open subscription
        ConfigurationError: No provider price configured for the tier and cycle
        PaymentProviderError: A provider call failed
    """
    tier, billing_cycle, closed_subscription = self.validate_request(user, request)
    cycle_label = BillingConfig.get_cycle_label(billing_cycle)
    description = f"{tier.name} - {cycle_label} Subscription"
    price_cents = tier.get_price_cents(billing_cycle)

    customer_id = self.resolve_customer(
      user,
      (request.customer_name or "").strip() or user.name,
      request.billing_address,
      request.shipping_address,
    )

    price_id = BillingConfig.get_price_id(tier.name, billing_cycle)
    if not price_id:
      logger.error(f"No Stripe price configured for {tier.name} {billing_cycle}")
      raise ConfigurationError(
        f"STRIPE_PRICE_{tier.name.upper()}_{billing_cycle}", "price id is not set"
      )

    provider_subscription = self.payment_provider.create_subscription(
      customer_id=customer_id,
      price_id=price_id,
      metadata={
        "user_id": user.id,
        "tier_id": tier.id,
        "billing_cycle": billing_cycle,
      },
      description=description,
    )

    status = (
      SubscriptionStatus.ACTIVE
      if provider_subscription.get("status") == "active"
      else SubscriptionStatus.TRIAL
    )
    renewal_date = provider_subscription.get("current_period_end")

    try:
      subscription = Subscription.open_for_user(
        self.session,
        user_id=user.id,
        tier_id=tier.id,
        status=status,
        billing_cycle=billing_cycle,
        stripe_subscription_id=provider_subscription["id"],
        renewal_date=renewal_date,
        trial_ends_at=provider_subscription.get("trial_end"),
        existing=closed_subscription,
      )
    except IntegrityError as e:
      # A concurrent checkout for the same user committed first
      logger.error(
        f"Subscription insert conflict for user {user.id}; provider subscription "
        f"{provider_subscription['id']} has no local row: {e}"
      )
      raise DuplicateEntityError(
        user.id, "Subscription", message=DUPLICATE_SUBSCRIPTION_MESSAGE
      ) from e

    invoice = self._record_invoice(
      user, subscription, provider_subscription, price_cents, description, renewal_date
    )

    AuditLog.log_event(
      self.session,
      action=AuditAction.SUBSCRIPTION_CREATED,
      entity="Subscription",
      entity_id=subscription.id,
      user_id=user.id,
      new_values={
        "tier": tier.name,
        "billing_cycle": billing_cycle,
        "stripe_subscription_id": subscription.stripe_subscription_id,
        "amount": price_cents / 100,
      },
      ip_address=ip_address,
      user_agent=user_agent,
    )

    checkout_url = provider_subscription.get("hosted_invoice_url")
    await self._send_confirmation(
      user, tier, cycle_label, price_cents, renewal_date, checkout_url
    )

    logger.info(
      f"User {user.id} subscribed to {tier.name} ({billing_cycle})",
      extra={"user_id": user.id, "entity_id": subscription.id},
    )
    return CheckoutResult(
      subscription=subscription, invoice=invoice, checkout_url=checkout_url
    )

  def _record_invoice(
    self,
    user: User,
    subscription: Subscription,
    provider_subscription: dict,
    price_cents: int,
    description: str,
    renewal_date: Optional[datetime],
  ) -> Invoice:
    """Create the checkout invoice, or claim the row an invoice.created webhook made."""
    stripe_invoice_id = provider_subscription.get("latest_invoice_id")
    hosted_invoice_url = provider_subscription.get("hosted_invoice_url")

    if stripe_invoice_id:
      mirrored = Invoice.get_by_stripe_invoice_id(stripe_invoice_id, self.session)
      if mirrored is not None:
        mirrored.subscription_id = subscription.id
        mirrored.description = description
        mirrored.hosted_invoice_url = hosted_invoice_url or mirrored.hosted_invoice_url
        mirrored.updated_at = datetime.now(timezone.utc)
        self.session.commit()
        self.session.refresh(mirrored)
        return mirrored

    return Invoice.create(
      self.session,
      user_id=user.id,
      subscription_id=subscription.id,
      subtotal_cents=price_cents,
      tax_cents=0,
      total_cents=price_cents,
      description=description,
      period_start=datetime.now(timezone.utc),
      period_end=renewal_date,
      due_days=env.INVOICE_DUE_DAYS,
      stripe_invoice_id=stripe_invoice_id,
      hosted_invoice_url=hosted_invoice_url,
    )

  async def _send_confirmation(
    self,
    user: User,
    tier: SubscriptionTier,
    cycle_label: str,
    price_cents: int,
    renewal_date: Optional[datetime],
    checkout_url: Optional[str],
  ) -> None:
    if self.email_service is None:
      return
    try:
      await self.email_service.send_subscription_confirmation(
        user_email=user.email,
        user_name=user.name,
        tier_name=tier.name,
        billing_cycle_label=cycle_label,
        amount=price_cents / 100,
        renewal_date=renewal_date,
        checkout_url=checkout_url,
      )
    except Exception as e:
      logger.warning(f"Failed to send subscription confirmation to {user.id}: {e}")
