"""API models for billing: tiers, checkout, invoices, and refunds."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..billing import (
  Invoice,
  PaymentMethod,
  RefundRequest,
  Subscription,
  SubscriptionTier,
)


class CamelModel(BaseModel):
  """Request model accepting snake_case or camelCase field names."""

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Requests
# ============================================================================


class Address(CamelModel):
  """Postal address sent to the payment provider."""

  line1: Optional[str] = Field(None, description="Street address")
  line2: Optional[str] = Field(None, description="Apartment, suite, etc.")
  city: Optional[str] = None
  state: Optional[str] = None
  postal_code: Optional[str] = None
  country: Optional[str] = Field(
    None, description="Two-letter ISO 3166-1 country code (e.g., 'US')"
  )

  def to_provider(self) -> Dict[str, Any]:
    """Address dict in the shape Stripe expects, without empty fields."""
    fields = {
      "line1": self.line1,
      "line2": self.line2,
      "city": self.city,
      "state": self.state,
      "postal_code": self.postal_code,
      "country": self.country.upper() if self.country else None,
    }
    return {key: value for key, value in fields.items() if value}


class SubscribeRequest(CamelModel):
  """Request to subscribe the current user to a tier.

  Fields are optional at the schema level; the checkout workflow validates
  them in a fixed order and reports the first failure as a 400.
  """

  tier_id: Optional[str] = Field(None, description="Subscription tier ID")
  billing_cycle: Optional[str] = Field(
    None, description="Billing cycle: 'MONTHLY' or 'YEARLY'"
  )
  customer_name: Optional[str] = Field(
    None, description="Name shown on the customer record and invoices"
  )
  billing_address: Optional[Address] = Field(None, description="Billing address")
  shipping_address: Optional[Address] = Field(None, description="Shipping address")


class RefundCreateRequest(CamelModel):
  """Request a refund for one of the caller's invoices."""

  invoice_id: Optional[str] = Field(None, description="Invoice to refund")
  reason: Optional[str] = Field(None, description="Why the refund is requested")


# ============================================================================
# Responses
# ============================================================================


class TierResponse(BaseModel):
  """A subscription tier as shown in the catalog."""

  id: str
  name: str
  description: Optional[str] = None
  price_monthly: float = Field(..., description="Monthly price in dollars")
  price_yearly: float = Field(..., description="Yearly price in dollars")
  limits: Dict[str, Optional[int]]
  features: List[str]

  @classmethod
  def from_model(cls, tier: SubscriptionTier) -> "TierResponse":
    return cls(
      id=tier.id,
      name=tier.name,
      description=tier.description,
      price_monthly=tier.get_price_cents("MONTHLY") / 100,
      price_yearly=tier.get_price_cents("YEARLY") / 100,
      limits=tier.get_limits(),
      features=list(tier.features or []),
    )


class SubscriptionTierSummary(BaseModel):
  id: str
  name: str
  price: float = Field(..., description="Price for the subscription's cycle")


class SubscriptionResponse(BaseModel):
  """A user's subscription with its tier."""

  id: str
  status: str
  billing_cycle: str
  start_date: datetime
  renewal_date: Optional[datetime] = None
  trial_ends_at: Optional[datetime] = None
  cancelled_at: Optional[datetime] = None
  tier: SubscriptionTierSummary
  features: List[str]
  limits: Dict[str, Optional[int]]

  @classmethod
  def from_model(cls, subscription: Subscription) -> "SubscriptionResponse":
    tier = subscription.tier
    return cls(
      id=subscription.id,
      status=subscription.status,
      billing_cycle=subscription.billing_cycle,
      start_date=subscription.start_date,
      renewal_date=subscription.renewal_date,
      trial_ends_at=subscription.trial_ends_at,
      cancelled_at=subscription.cancelled_at,
      tier=SubscriptionTierSummary(
        id=tier.id,
        name=tier.name,
        price=tier.get_price_cents(subscription.billing_cycle) / 100,
      ),
      features=list(tier.features or []),
      limits=tier.get_limits(),
    )


class InvoiceSummary(BaseModel):
  """Invoice fields returned by checkout."""

  id: str
  invoice_number: str
  amount: float
  total: float
  due_date: Optional[datetime] = None
  created_at: datetime
  status: str

  @classmethod
  def from_model(cls, invoice: Invoice) -> "InvoiceSummary":
    return cls(
      id=invoice.id,
      invoice_number=invoice.invoice_number,
      amount=invoice.total,
      total=invoice.total,
      due_date=invoice.due_date,
      created_at=invoice.created_at,
      status=invoice.status,
    )


class InvoiceResponse(BaseModel):
  """Full invoice detail."""

  id: str
  invoice_number: str
  description: Optional[str] = None
  subtotal: float
  tax: float
  total: float
  status: str
  period_start: Optional[datetime] = None
  period_end: Optional[datetime] = None
  due_date: Optional[datetime] = None
  paid_at: Optional[datetime] = None
  hosted_invoice_url: Optional[str] = None
  created_at: datetime

  @classmethod
  def from_model(cls, invoice: Invoice) -> "InvoiceResponse":
    return cls(
      id=invoice.id,
      invoice_number=invoice.invoice_number,
      description=invoice.description,
      subtotal=invoice.subtotal,
      tax=invoice.tax,
      total=invoice.total,
      status=invoice.status,
      period_start=invoice.period_start,
      period_end=invoice.period_end,
      due_date=invoice.due_date,
      paid_at=invoice.paid_at,
      hosted_invoice_url=invoice.hosted_invoice_url,
      created_at=invoice.created_at,
    )


class SubscribeResponse(BaseModel):
  """Result of a successful checkout."""

  success: bool = True
  subscription: SubscriptionResponse
  invoice: InvoiceSummary
  checkout_url: Optional[str] = Field(
    None, description="Hosted invoice page where the customer completes payment"
  )
  message: str


class BillingOverviewResponse(BaseModel):
  invoices: List[InvoiceResponse]
  total_spent: float
  paid_invoice_count: int
  next_billing_date: Optional[datetime] = None


class PaymentMethodResponse(BaseModel):
  id: str
  card_brand: Optional[str] = None
  card_last4: Optional[str] = None
  card_exp_month: Optional[int] = None
  card_exp_year: Optional[int] = None
  is_default: bool

  @classmethod
  def from_model(cls, method: PaymentMethod) -> "PaymentMethodResponse":
    return cls(
      id=method.id,
      card_brand=method.card_brand,
      card_last4=method.card_last4,
      card_exp_month=method.card_exp_month,
      card_exp_year=method.card_exp_year,
      is_default=method.is_default,
    )


class RefundResponse(BaseModel):
  """A refund request."""

  id: str
  invoice_id: str
  amount: float
  reason: str
  status: str
  stripe_refund_id: Optional[str] = None
  admin_notes: Optional[str] = None
  processed_at: Optional[datetime] = None
  created_at: datetime

  @classmethod
  def from_model(cls, refund: RefundRequest) -> "RefundResponse":
    return cls(
      id=refund.id,
      invoice_id=refund.invoice_id,
      amount=refund.amount,
      reason=refund.reason,
      status=refund.status,
      stripe_refund_id=refund.stripe_refund_id,
      admin_notes=refund.admin_notes,
      processed_at=refund.processed_at,
      created_at=refund.created_at,
    )
