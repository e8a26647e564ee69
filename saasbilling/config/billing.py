"""
Core billing configuration - subscription tier catalog and pricing rules.

The tier catalog below seeds the subscription_tiers table in the initial
migration. Once seeded, tiers are admin-managed rows; this module is not
consulted at request time for tier data, only for pricing rules and the
role/price-id conventions.
"""

from typing import Dict, Any, List, Optional

from .env import env


DEFAULT_SUBSCRIPTION_TIERS: List[Dict[str, Any]] = [
  {
    "name": "Starter",
    "description": "For individuals getting started",
    "price_monthly_cents": 900,  # $9.00
    "price_yearly_cents": 9000,  # $90.00
    "max_storage_gb": 10,
    "max_api_calls": 10000,
    "max_projects": 3,
    "max_users": 1,
    "features": [
      "10 GB storage",
      "10,000 API calls per month",
      "Email support",
    ],
    "display_order": 1,
  },
  {
    "name": "Pro",
    "description": "For growing teams",
    "price_monthly_cents": 2900,  # $29.00
    "price_yearly_cents": 29000,  # $290.00
    "max_storage_gb": 100,
    "max_api_calls": 100000,
    "max_projects": 20,
    "max_users": 10,
    "features": [
      "100 GB storage",
      "100,000 API calls per month",
      "Priority email support",
      "Usage analytics",
    ],
    "display_order": 2,
  },
  {
    "name": "Enterprise",
    "description": "For organizations with advanced needs",
    "price_monthly_cents": 9900,  # $99.00
    "price_yearly_cents": 99000,  # $990.00
    "max_storage_gb": 1000,
    "max_api_calls": 1000000,
    "max_projects": None,  # Unlimited
    "max_users": None,  # Unlimited
    "features": [
      "1 TB storage",
      "1,000,000 API calls per month",
      "Dedicated support",
      "Usage analytics",
      "Single sign-on",
    ],
    "display_order": 3,
  },
]


class BillingConfig:
  """Pricing rules shared by checkout, invoicing, and the tier catalog."""

  MONTHLY = "MONTHLY"
  YEARLY = "YEARLY"
  BILLING_CYCLES = (MONTHLY, YEARLY)

  @classmethod
  def get_cycle_price_cents(
    cls,
    price_monthly_cents: int,
    price_yearly_cents: Optional[int],
    billing_cycle: str,
  ) -> int:
    """
    Price charged for one billing period.

    Yearly tiers without an explicit yearly price are charged twelve months.
    """
    if billing_cycle == cls.YEARLY:
      if price_yearly_cents is not None:
        return price_yearly_cents
      return price_monthly_cents * 12
    return price_monthly_cents

  @classmethod
  def get_cycle_label(cls, billing_cycle: str) -> str:
    """Human readable period name used in invoice and Stripe descriptions."""
    return "Annual" if billing_cycle == cls.YEARLY else "Monthly"

  @classmethod
  def get_price_id(cls, tier_name: str, billing_cycle: str) -> Optional[str]:
    """Resolve the Stripe price id for a tier and cycle."""
    return env.get_stripe_price_id(tier_name, billing_cycle)
