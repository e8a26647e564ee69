"""Payment method model - local mirror of Stripe payment instruments."""

from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Session, relationship

from ...database import Model
from ...logger import get_logger
from ...utils.ulid import generate_prefixed_ulid

logger = get_logger(__name__)


class PaymentMethod(Model):
  """A stored card belonging to a user."""

  __tablename__ = "payment_methods"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("pm"))
  user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
  stripe_payment_method_id = Column(String, unique=True, nullable=False)

  card_brand = Column(String, nullable=True)
  card_last4 = Column(String, nullable=True)
  card_exp_month = Column(Integer, nullable=True)
  card_exp_year = Column(Integer, nullable=True)
  is_default = Column(Boolean, default=False, nullable=False)

  created_at = Column(
    DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
  )
  updated_at = Column(
    DateTime,
    default=lambda: datetime.now(timezone.utc),
    onupdate=lambda: datetime.now(timezone.utc),
    nullable=False,
  )

  user = relationship("User", back_populates="payment_methods")

  def __repr__(self) -> str:
    return f"<PaymentMethod {self.card_brand} ****{self.card_last4}>"

  @classmethod
  def get_for_user(cls, user_id: str, session: Session) -> Sequence["PaymentMethod"]:
    """A user's payment methods, default first."""
    return (
      session.query(cls)
      .filter(cls.user_id == user_id)
      .order_by(cls.is_default.desc(), cls.created_at.desc())
      .all()
    )

  @classmethod
  def get_by_stripe_id(
    cls, stripe_payment_method_id: str, session: Session
  ) -> Optional["PaymentMethod"]:
    return (
      session.query(cls)
      .filter(cls.stripe_payment_method_id == stripe_payment_method_id)
      .first()
    )

  @classmethod
  def upsert(
    cls,
    session: Session,
    user_id: str,
    stripe_payment_method_id: str,
    card_brand: Optional[str] = None,
    card_last4: Optional[str] = None,
    card_exp_month: Optional[int] = None,
    card_exp_year: Optional[int] = None,
    is_default: bool = False,
  ) -> "PaymentMethod":
    """Insert or refresh the local copy of a provider payment method."""
    method = cls.get_by_stripe_id(stripe_payment_method_id, session)
    if method is None:
      method = cls(user_id=user_id, stripe_payment_method_id=stripe_payment_method_id)
      session.add(method)

    method.card_brand = card_brand
    method.card_last4 = card_last4
    method.card_exp_month = card_exp_month
    method.card_exp_year = card_exp_year
    method.is_default = is_default
    method.updated_at = datetime.now(timezone.utc)

    session.commit()
    session.refresh(method)

    logger.debug(f"Stored payment method {method.id} for user {user_id}")
    return method
