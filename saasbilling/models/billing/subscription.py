"""Subscription model - one subscription per user, mirrored from Stripe."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import Session, relationship
from sqlalchemy.exc import SQLAlchemyError

from ...database import Model
from ...logger import get_logger
from ...utils.ulid import generate_prefixed_ulid

logger = get_logger(__name__)


class SubscriptionStatus(str, Enum):
  """Subscription status states."""

  TRIAL = "TRIAL"
  ACTIVE = "ACTIVE"
  PAST_DUE = "PAST_DUE"
  PAUSED = "PAUSED"
  CANCELLED = "CANCELLED"
  EXPIRED = "EXPIRED"

  @classmethod
  def from_provider(cls, provider_status: Optional[str]) -> "SubscriptionStatus":
    """Map a Stripe subscription status onto the local status."""
    return PROVIDER_STATUS_MAP.get(provider_status or "", cls.ACTIVE)


PROVIDER_STATUS_MAP = {
  "trialing": SubscriptionStatus.TRIAL,
  "active": SubscriptionStatus.ACTIVE,
  "past_due": SubscriptionStatus.PAST_DUE,
  "unpaid": SubscriptionStatus.PAST_DUE,
  "paused": SubscriptionStatus.PAUSED,
  "canceled": SubscriptionStatus.CANCELLED,
  "incomplete_expired": SubscriptionStatus.EXPIRED,
}

# Statuses that free the user to subscribe again
CLOSED_STATUSES = (SubscriptionStatus.CANCELLED.value, SubscriptionStatus.EXPIRED.value)


class BillingCycle(str, Enum):
  """Billing cycle options."""

  MONTHLY = "MONTHLY"
  YEARLY = "YEARLY"


class Subscription(Model):
  """A user's subscription to a tier.

  user_id is unique, so a user has at most one row; a closed (cancelled or
  expired) row is reopened in place when the user subscribes again.
  """

  __tablename__ = "subscriptions"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("sub"))
  user_id = Column(String, ForeignKey("users.id"), unique=True, nullable=False)
  tier_id = Column(String, ForeignKey("subscription_tiers.id"), nullable=False)

  status = Column(String, default=SubscriptionStatus.TRIAL.value, nullable=False)
  billing_cycle = Column(String, default=BillingCycle.MONTHLY.value, nullable=False)

  start_date = Column(DateTime, nullable=False)
  renewal_date = Column(DateTime, nullable=True)
  trial_ends_at = Column(DateTime, nullable=True)
  cancelled_at = Column(DateTime, nullable=True)

  stripe_subscription_id = Column(String, unique=True, nullable=True)

  created_at = Column(
    DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
  )
  updated_at = Column(
    DateTime,
    default=lambda: datetime.now(timezone.utc),
    onupdate=lambda: datetime.now(timezone.utc),
    nullable=False,
  )

  user = relationship("User", back_populates="subscription")
  tier = relationship("SubscriptionTier")

  __table_args__ = (Index("idx_subscriptions_status", "status"),)

  def __repr__(self) -> str:
    return f"<Subscription {self.id} user={self.user_id} status={self.status}>"

  @classmethod
  def get_by_user_id(cls, user_id: str, session: Session) -> Optional["Subscription"]:
    return session.query(cls).filter(cls.user_id == user_id).first()

  @classmethod
  def get_by_stripe_subscription_id(
    cls, stripe_subscription_id: str, session: Session
  ) -> Optional["Subscription"]:
    return (
      session.query(cls)
      .filter(cls.stripe_subscription_id == stripe_subscription_id)
      .first()
    )

  @classmethod
  def count_active(cls, session: Session) -> int:
    return (
      session.query(cls)
      .filter(cls.status == SubscriptionStatus.ACTIVE.value)
      .count()
    )

  @classmethod
  def open_for_user(
    cls,
    session: Session,
    user_id: str,
    tier_id: str,
    status: SubscriptionStatus,
    billing_cycle: str,
    stripe_subscription_id: str,
    renewal_date: Optional[datetime] = None,
    trial_ends_at: Optional[datetime] = None,
    existing: Optional["Subscription"] = None,
  ) -> "Subscription":
    """
    Persist a new subscription for a user.

    When ``existing`` is a closed row it is reopened with the new values;
    otherwise a new row is inserted. An IntegrityError propagates when another
    row for the same user already exists.
    """
    now = datetime.now(timezone.utc)
    subscription = existing if existing is not None else cls(user_id=user_id)

    subscription.tier_id = tier_id
    subscription.status = status.value
    subscription.billing_cycle = billing_cycle
    subscription.start_date = now
    subscription.renewal_date = renewal_date
    subscription.trial_ends_at = trial_ends_at
    subscription.cancelled_at = None
    subscription.stripe_subscription_id = stripe_subscription_id
    subscription.updated_at = now

    session.add(subscription)
    try:
      session.commit()
    except SQLAlchemyError:
      session.rollback()
      raise
    session.refresh(subscription)

    logger.info(
      f"Opened subscription {subscription.id} for user {user_id} ({status.value})"
    )
    return subscription

  def is_open(self) -> bool:
    """True while the subscription blocks a new checkout."""
    return self.status not in CLOSED_STATUSES

  def update_status(
    self,
    status: SubscriptionStatus,
    session: Session,
    renewal_date: Optional[datetime] = None,
  ) -> None:
    """Apply a provider-side status change."""
    self.status = status.value
    if renewal_date is not None:
      self.renewal_date = renewal_date
    if status == SubscriptionStatus.CANCELLED and self.cancelled_at is None:
      self.cancelled_at = datetime.now(timezone.utc)
    self.updated_at = datetime.now(timezone.utc)

    session.commit()
    session.refresh(self)

    logger.info(f"Subscription {self.id} status -> {self.status}")

  def cancel(self, session: Session) -> None:
    """Mark the subscription cancelled."""
    self.update_status(SubscriptionStatus.CANCELLED, session)
