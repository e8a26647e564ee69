"""User authentication model."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Sequence, Tuple

from sqlalchemy import Column, String, DateTime, Boolean, or_
from sqlalchemy.orm import relationship, Session
from sqlalchemy.exc import SQLAlchemyError

from ...database import Model
from ...logger import get_logger
from ...utils.ulid import generate_prefixed_ulid

logger = get_logger(__name__)


class UserRole(str, Enum):
  """Roles a user account can hold."""

  ADMIN = "ADMIN"
  USER = "USER"


class User(Model):
  """User model for authentication, authorization, and billing identity."""

  __tablename__ = "users"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("user"))
  email = Column(String, unique=True, nullable=False, index=True)
  name = Column(String, nullable=False)
  password_hash = Column(String, nullable=False)
  role = Column(String, default=UserRole.USER.value, nullable=False)
  is_active = Column(Boolean, default=True, nullable=False)
  stripe_customer_id = Column(String, unique=True, nullable=True)
  created_at = Column(
    DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
  )
  updated_at = Column(
    DateTime,
    default=lambda: datetime.now(timezone.utc),
    onupdate=lambda: datetime.now(timezone.utc),
    nullable=False,
  )

  # Relationships
  subscription = relationship(
    "Subscription", back_populates="user", uselist=False, cascade="all, delete-orphan"
  )
  invoices = relationship("Invoice", back_populates="user", cascade="all, delete-orphan")
  payment_methods = relationship(
    "PaymentMethod", back_populates="user", cascade="all, delete-orphan"
  )

  def __repr__(self) -> str:
    """String representation of the user."""
    return f"<User {self.id} {self.email}>"

  @classmethod
  def get_by_id(cls, user_id: str, session: Session) -> Optional["User"]:
    """Get a user by ID."""
    return session.query(cls).filter(cls.id == user_id).first()

  @classmethod
  def get_by_email(cls, email: str, session: Session) -> Optional["User"]:
    """Get a user by email (case-insensitive).

    Emails are stored trimmed and lower-cased, so the lookup normalizes its
    input the same way and hits the unique index directly.
    """
    return session.query(cls).filter(cls.email == cls.normalize_email(email)).first()

  @classmethod
  def get_by_stripe_customer_id(
    cls, stripe_customer_id: str, session: Session
  ) -> Optional["User"]:
    """Get the user linked to a payment provider customer."""
    if not stripe_customer_id:
      return None
    return (
      session.query(cls).filter(cls.stripe_customer_id == stripe_customer_id).first()
    )

  @staticmethod
  def normalize_email(email: str) -> str:
    return (email or "").strip().lower()

  @classmethod
  def create(
    cls,
    email: str,
    name: str,
    password_hash: str,
    session: Session,
    role: str = UserRole.USER.value,
  ) -> "User":
    """Create a new user."""
    user = cls(
      email=cls.normalize_email(email),
      name=name,
      password_hash=password_hash,
      role=role,
    )
    session.add(user)
    try:
      session.commit()
      session.refresh(user)
    except SQLAlchemyError:
      session.rollback()
      raise

    logger.info(f"Created user {user.id} with role {role}")
    return user

  @classmethod
  def count(cls, session: Session) -> int:
    return session.query(cls).count()

  @classmethod
  def search(
    cls,
    session: Session,
    page: int = 1,
    limit: int = 50,
    search: Optional[str] = None,
    role: Optional[str] = None,
  ) -> Tuple[Sequence["User"], int]:
    """
    Page through users, newest first.

    Args:
        session: Database session
        page: 1-based page number
        limit: Page size
        search: Case-insensitive substring matched against email or name
        role: Role filter; None or "all" disables it

    Returns:
        Tuple of (users on the page, total matching users)
    """
    query = session.query(cls)

    if search:
      pattern = f"%{search.strip()}%"
      query = query.filter(or_(cls.email.ilike(pattern), cls.name.ilike(pattern)))

    if role and role.lower() != "all":
      query = query.filter(cls.role == role.upper())

    total = query.count()
    users = (
      query.order_by(cls.created_at.desc())
      .offset((page - 1) * limit)
      .limit(limit)
      .all()
    )
    return users, total

  def set_stripe_customer_id(self, stripe_customer_id: str, session: Session) -> None:
    """Link this user to a payment provider customer."""
    self.stripe_customer_id = stripe_customer_id
    self.updated_at = datetime.now(timezone.utc)
    try:
      session.commit()
      session.refresh(self)
    except SQLAlchemyError:
      session.rollback()
      raise

  def update(self, session: Session, auto_commit: bool = True, **kwargs) -> None:
    """Update user fields.

    Args:
        session: Database session
        auto_commit: Whether to automatically commit the transaction (default: True)
        **kwargs: Fields to update
    """
    for key, value in kwargs.items():
      if hasattr(self, key):
        if key == "email" and isinstance(value, str):
          setattr(self, key, self.normalize_email(value))
        else:
          setattr(self, key, value)
    self.updated_at = datetime.now(timezone.utc)

    if auto_commit:
      try:
        session.commit()
        session.refresh(self)
      except SQLAlchemyError:
        session.rollback()
        raise
