"""Subscription tier catalog model."""

from datetime import datetime, timezone
from typing import Optional, Sequence, Dict, Any

from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON
from sqlalchemy.orm import Session

from ...config.billing import BillingConfig, DEFAULT_SUBSCRIPTION_TIERS
from ...database import Model
from ...logger import get_logger
from ...utils.ulid import generate_prefixed_ulid

logger = get_logger(__name__)


class SubscriptionTier(Model):
  """A named plan with prices, resource limits, and a feature list.

  Tiers are reference data: checkout reads them, admins manage them, and no
  user flow mutates them.
  """

  __tablename__ = "subscription_tiers"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("tier"))
  name = Column(String, unique=True, nullable=False)
  description = Column(String, nullable=True)

  price_monthly_cents = Column(Integer, nullable=False)
  price_yearly_cents = Column(Integer, nullable=True)

  # None means unlimited
  max_storage_gb = Column(Integer, nullable=True)
  max_api_calls = Column(Integer, nullable=True)
  max_projects = Column(Integer, nullable=True)
  max_users = Column(Integer, nullable=True)

  features = Column(JSON, default=list, nullable=False)
  is_active = Column(Boolean, default=True, nullable=False)
  display_order = Column(Integer, default=0, nullable=False)

  created_at = Column(
    DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
  )
  updated_at = Column(
    DateTime,
    default=lambda: datetime.now(timezone.utc),
    onupdate=lambda: datetime.now(timezone.utc),
    nullable=False,
  )

  def __repr__(self) -> str:
    return f"<SubscriptionTier {self.name} ${self.price_monthly_cents / 100:.2f}/mo>"

  @classmethod
  def get_by_id(cls, tier_id: str, session: Session) -> Optional["SubscriptionTier"]:
    return session.query(cls).filter(cls.id == tier_id).first()

  @classmethod
  def get_by_name(cls, name: str, session: Session) -> Optional["SubscriptionTier"]:
    return session.query(cls).filter(cls.name == name).first()

  @classmethod
  def get_active(cls, session: Session) -> Sequence["SubscriptionTier"]:
    """Active tiers in display order."""
    return (
      session.query(cls)
      .filter(cls.is_active.is_(True))
      .order_by(cls.display_order.asc(), cls.price_monthly_cents.asc())
      .all()
    )

  @classmethod
  def seed_defaults(cls, session: Session) -> Sequence["SubscriptionTier"]:
    """Insert any default tiers that do not exist yet, matched by name."""
    created = []
    for definition in DEFAULT_SUBSCRIPTION_TIERS:
      if cls.get_by_name(definition["name"], session):
        continue
      tier = cls(**definition)
      session.add(tier)
      created.append(tier)

    if created:
      session.commit()
      logger.info(f"Seeded {len(created)} subscription tiers")
    return created

  def get_price_cents(self, billing_cycle: str) -> int:
    """Price charged for one period of the given cycle."""
    return BillingConfig.get_cycle_price_cents(
      self.price_monthly_cents, self.price_yearly_cents, billing_cycle
    )

  def get_limits(self) -> Dict[str, Any]:
    return {
      "max_storage_gb": self.max_storage_gb,
      "max_api_calls": self.max_api_calls,
      "max_projects": self.max_projects,
      "max_users": self.max_users,
    }

  def get_metric_limit(self, metric: str) -> Optional[float]:
    """Plan limit for a usage metric, or None when the metric is not limited."""
    limits = {
      "STORAGE_GB": self.max_storage_gb,
      "API_CALLS": self.max_api_calls,
    }
    return limits.get(metric.upper())
