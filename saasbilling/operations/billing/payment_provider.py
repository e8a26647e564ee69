"""Payment provider abstraction layer.

Business logic talks to ``PaymentProvider``; ``StripePaymentProvider`` is the
production implementation. Provider SDK errors are converted into
``PaymentProviderError`` at this boundary so callers never handle SDK types.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List

import stripe

from ...config import env
from ...exceptions import PaymentProviderError
from ...logger import get_logger

logger = get_logger(__name__)


def get_field(obj: Any, key: str, default: Any = None) -> Any:
  """Read a field from a Stripe object or plain dict, with a default when absent."""
  if obj is None:
    return default
  try:
    value = obj[key]
  except (KeyError, TypeError):
    return default
  return default if value is None else value


def from_timestamp(value: Optional[int]) -> Optional[datetime]:
  """Convert a Unix timestamp from the provider into an aware datetime."""
  if value is None:
    return None
  return datetime.fromtimestamp(int(value), tz=timezone.utc)


class PaymentProvider(ABC):
  """Abstract payment provider interface."""

  @abstractmethod
  def create_customer(
    self,
    user_id: str,
    email: str,
    name: str,
    billing_address: Dict[str, Any],
    shipping_address: Optional[Dict[str, Any]] = None,
  ) -> str:
    """Create customer in payment system.

    Args:
        user_id: Internal user ID
        email: User email address
        name: Customer display name
        billing_address: Address dict (line1, line2, city, state, postal_code, country)
        shipping_address: Optional address dict in the same shape

    Returns:
        provider_customer_id: Customer ID in payment provider system
    """
    pass

  @abstractmethod
  def create_subscription(
    self,
    customer_id: str,
    price_id: str,
    metadata: Dict[str, Any],
    description: Optional[str] = None,
  ) -> Dict[str, Any]:
    """Create a subscription awaiting its first payment.

    Returns:
        Dict with keys: id, status, current_period_end, trial_end,
        latest_invoice_id, hosted_invoice_url
    """
    pass

  @abstractmethod
  def create_refund(
    self,
    provider_invoice_id: str,
    amount_cents: int,
    metadata: Optional[Dict[str, Any]] = None,
  ) -> str:
    """Refund (part of) the payment collected for an invoice.

    Returns:
        provider_refund_id: Refund ID in payment provider
    """
    pass

  @abstractmethod
  def verify_webhook(self, payload: bytes, signature: str) -> Dict[str, Any]:
    """Verify and parse webhook event.

    Args:
        payload: Raw webhook payload
        signature: Webhook signature header

    Returns:
        Parsed webhook event

    Raises:
        ValueError: Invalid payload or signature
    """
    pass

  @abstractmethod
  def list_payment_methods(self, customer_id: str) -> List[Dict[str, Any]]:
    """List card payment methods for a customer.

    Returns:
        List of dicts with keys: id, brand, last4, exp_month, exp_year, is_default
    """
    pass


class StripePaymentProvider(PaymentProvider):
  """Stripe implementation of payment provider."""

  def __init__(self):
    """Initialize Stripe with API key from environment."""
    stripe.api_key = env.STRIPE_SECRET_KEY
    # Pinned so current_period_end and invoice.payment_intent keep their shape
    stripe.api_version = env.STRIPE_API_VERSION
    self.stripe = stripe
    logger.debug("Initialized Stripe payment provider")

  def create_customer(
    self,
    user_id: str,
    email: str,
    name: str,
    billing_address: Dict[str, Any],
    shipping_address: Optional[Dict[str, Any]] = None,
  ) -> str:
    """Create Stripe customer."""
    params: Dict[str, Any] = {
      "email": email,
      "name": name,
      "address": billing_address,
      "metadata": {"user_id": user_id},
    }
    if shipping_address:
      params["shipping"] = {"name": name, "address": shipping_address}

    try:
      customer = self.stripe.Customer.create(**params)
    except self.stripe.StripeError as e:
      logger.error(f"Failed to create Stripe customer for user {user_id}: {e}")
      raise PaymentProviderError("create_customer", str(e)) from e

    logger.info(
      f"Created Stripe customer {customer.id} for user {user_id}",
      extra={"user_id": user_id, "metadata": {"stripe_customer_id": customer.id}},
    )
    return customer.id

  def create_subscription(
    self,
    customer_id: str,
    price_id: str,
    metadata: Dict[str, Any],
    description: Optional[str] = None,
  ) -> Dict[str, Any]:
    """Create Stripe subscription in the default_incomplete payment state."""
    try:
      subscription = self.stripe.Subscription.create(
        customer=customer_id,
        items=[{"price": price_id}],
        payment_behavior="default_incomplete",
        metadata=metadata,
        description=description,
        expand=["latest_invoice.payment_intent"],
      )
    except self.stripe.StripeError as e:
      logger.error(f"Failed to create Stripe subscription for {customer_id}: {e}")
      raise PaymentProviderError("create_subscription", str(e)) from e

    latest_invoice = get_field(subscription, "latest_invoice")
    latest_invoice_id = None
    hosted_invoice_url = None
    if isinstance(latest_invoice, str):
      latest_invoice_id = latest_invoice
    elif latest_invoice:
      latest_invoice_id = get_field(latest_invoice, "id")
      hosted_invoice_url = get_field(latest_invoice, "hosted_invoice_url")

    current_period_end = get_field(subscription, "current_period_end")
    if current_period_end is None:
      # Newer API versions moved the period onto subscription items
      items = get_field(subscription, "items")
      data = get_field(items, "data") or []
      if data:
        current_period_end = get_field(data[0], "current_period_end")

    logger.info(
      f"Created Stripe subscription {subscription.id}",
      extra={"metadata": {"customer_id": customer_id, **metadata}},
    )

    return {
      "id": subscription.id,
      "status": get_field(subscription, "status"),
      "current_period_end": from_timestamp(current_period_end),
      "trial_end": from_timestamp(get_field(subscription, "trial_end")),
      "latest_invoice_id": latest_invoice_id,
      "hosted_invoice_url": hosted_invoice_url,
    }

  def create_refund(
    self,
    provider_invoice_id: str,
    amount_cents: int,
    metadata: Optional[Dict[str, Any]] = None,
  ) -> str:
    """Refund the payment behind a Stripe invoice."""
    try:
      invoice = self.stripe.Invoice.retrieve(provider_invoice_id)
      payment_intent = get_field(invoice, "payment_intent")
      charge = get_field(invoice, "charge")

      params: Dict[str, Any] = {"amount": amount_cents, "metadata": metadata or {}}
      if payment_intent:
        params["payment_intent"] = (
          payment_intent if isinstance(payment_intent, str) else payment_intent.id
        )
      elif charge:
        params["charge"] = charge if isinstance(charge, str) else charge.id
      else:
        raise PaymentProviderError(
          "create_refund", f"Invoice {provider_invoice_id} has no payment to refund"
        )

      refund = self.stripe.Refund.create(**params)
    except self.stripe.StripeError as e:
      logger.error(f"Failed to refund Stripe invoice {provider_invoice_id}: {e}")
      raise PaymentProviderError("create_refund", str(e)) from e

    logger.info(
      f"Created Stripe refund {refund.id} for invoice {provider_invoice_id}",
      extra={"metadata": {"amount_cents": amount_cents}},
    )
    return refund.id

  def verify_webhook(self, payload: bytes, signature: str) -> Dict[str, Any]:
    """Verify Stripe webhook signature and parse event."""
    if not env.STRIPE_WEBHOOK_SECRET:
      logger.error("Stripe webhook secret is not configured")
      raise ValueError("Webhook secret is not configured")

    try:
      event = self.stripe.Webhook.construct_event(
        payload, signature, env.STRIPE_WEBHOOK_SECRET
      )
    except ValueError as e:
      logger.warning(f"Invalid webhook payload: {e}")
      raise
    except self.stripe.SignatureVerificationError as e:
      logger.warning(f"Invalid webhook signature: {e}")
      raise ValueError("Invalid webhook signature") from e

    logger.debug(
      f"Verified Stripe webhook: {event['type']}",
      extra={"event_type": event["type"], "entity_id": event["id"]},
    )
    return event

  def list_payment_methods(self, customer_id: str) -> List[Dict[str, Any]]:
    """List card payment methods for a Stripe customer."""
    try:
      payment_methods = self.stripe.PaymentMethod.list(
        customer=customer_id, type="card"
      )
      customer = self.stripe.Customer.retrieve(customer_id)
    except self.stripe.StripeError as e:
      logger.error(f"Failed to list payment methods for {customer_id}: {e}")
      raise PaymentProviderError("list_payment_methods", str(e)) from e

    invoice_settings = get_field(customer, "invoice_settings")
    default_payment_method = get_field(invoice_settings, "default_payment_method")

    result = []
    for pm in payment_methods.data:
      card = get_field(pm, "card")
      result.append(
        {
          "id": pm.id,
          "brand": get_field(card, "brand"),
          "last4": get_field(card, "last4"),
          "exp_month": get_field(card, "exp_month"),
          "exp_year": get_field(card, "exp_year"),
          "is_default": pm.id == default_payment_method,
        }
      )

    logger.debug(f"Listed {len(result)} payment methods for customer {customer_id}")
    return result


def get_payment_provider() -> PaymentProvider:
  """Factory function to get the configured payment provider.

  Routers take it through Depends so tests can override it.
  """
  return StripePaymentProvider()
