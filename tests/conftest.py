import os

# Settings are read when saasbilling.config is imported
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_dummy")
os.environ.setdefault("STRIPE_PRICE_PRO_MONTHLY", "price_pro_monthly")
os.environ.setdefault("STRIPE_PRICE_PRO_YEARLY", "price_pro_yearly")
os.environ.setdefault("STRIPE_PRICE_STARTER_MONTHLY", "price_starter_monthly")

from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import saasbilling.models  # noqa: F401
from saasbilling.config import env
from saasbilling.database import Model as Base, get_db_session
from saasbilling.middleware.auth.jwt import create_session_token
from saasbilling.models.billing import SubscriptionTier
from saasbilling.models.iam import User, UserRole
from saasbilling.operations.aws.ses import SESEmailService, get_email_service
from saasbilling.operations.billing import PaymentProvider, get_payment_provider
from saasbilling.security import PasswordSecurity
from main import app

TEST_PASSWORD = "T3stP@ssw0rd!"


@pytest.fixture(scope="session")
def test_engine():
  """Create the test database once per run."""
  database_url = os.environ.get("TEST_DATABASE_URL", "sqlite://")
  if database_url.startswith("sqlite"):
    engine = create_engine(
      database_url,
      connect_args={"check_same_thread": False},
      poolclass=StaticPool,
    )
  else:
    engine = create_engine(database_url)

  Base.metadata.drop_all(bind=engine)
  Base.metadata.create_all(bind=engine)
  yield engine
  engine.dispose()


@pytest.fixture
def db_session(test_engine):
  """A session per test; every table is emptied afterwards."""
  TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
  session = TestingSessionLocal()
  yield session

  session.rollback()
  for table in reversed(Base.metadata.sorted_tables):
    session.execute(table.delete())
  session.commit()
  session.close()


@pytest.fixture
def test_db(db_session):
  """Alias kept for tests written against the older fixture name."""
  return db_session


@pytest.fixture
def mock_payment_provider():
  provider = Mock(spec=PaymentProvider)
  provider.create_customer.return_value = "cus_test123"
  provider.create_subscription.return_value = {
    "id": "sub_stripe_123",
    "status": "active",
    "current_period_end": None,
    "trial_end": None,
    "latest_invoice_id": "in_test123",
    "hosted_invoice_url": "https://invoice.stripe.com/i/in_test123",
  }
  provider.create_refund.return_value = "re_test123"
  provider.list_payment_methods.return_value = []
  return provider


@pytest.fixture
def mock_email_service():
  service = Mock(spec=SESEmailService)
  service.send_email = AsyncMock(return_value=True)
  service.send_subscription_confirmation = AsyncMock(return_value=True)
  service.send_payment_received = AsyncMock(return_value=True)
  service.send_payment_failed = AsyncMock(return_value=True)
  service.send_refund_approved = AsyncMock(return_value=True)
  service.send_invitation = AsyncMock(return_value=True)
  return service


@pytest.fixture
def client(db_session, mock_payment_provider, mock_email_service):
  """Test client bound to the test database with external services mocked."""

  def override_get_db():
    yield db_session

  app.dependency_overrides[get_db_session] = override_get_db
  app.dependency_overrides[get_payment_provider] = lambda: mock_payment_provider
  app.dependency_overrides[get_email_service] = lambda: mock_email_service

  test_client = TestClient(app)
  yield test_client

  app.dependency_overrides = {}


def _create_user(session, email, name, role=UserRole.USER.value):
  return User.create(
    email=email,
    name=name,
    password_hash=PasswordSecurity.hash_password(TEST_PASSWORD),
    session=session,
    role=role,
  )


@pytest.fixture
def test_user(db_session):
  """A regular active user whose password is TEST_PASSWORD."""
  return _create_user(db_session, "user@example.com", "Test User")


@pytest.fixture
def admin_user(db_session):
  return _create_user(db_session, "admin@example.com", "Admin User", UserRole.ADMIN.value)


@pytest.fixture
def tiers(db_session):
  """The default tier catalog, keyed by name."""
  SubscriptionTier.seed_defaults(db_session)
  return {tier.name: tier for tier in SubscriptionTier.get_active(db_session)}


@pytest.fixture
def user_client(client, test_user):
  """Client carrying a real session cookie for test_user."""
  client.cookies.set(env.SESSION_COOKIE_NAME, create_session_token(test_user))
  client.user = test_user
  return client


@pytest.fixture
def admin_client(client, admin_user):
  client.cookies.set(env.SESSION_COOKIE_NAME, create_session_token(admin_user))
  client.user = admin_user
  return client
