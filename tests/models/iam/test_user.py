"""Tests for the User model."""

import pytest
from sqlalchemy.exc import IntegrityError

from saasbilling.models.iam import User, UserRole


class TestUserCreation:
  def test_create_normalizes_email(self, db_session):
    user = User.create(
      email="  Jane.Doe@Example.COM ",
      name="Jane",
      password_hash="hash",
      session=db_session,
    )

    assert user.id.startswith("user_")
    assert user.email == "jane.doe@example.com"
    assert user.role == UserRole.USER.value
    assert user.is_active is True

  def test_duplicate_email_rejected(self, db_session):
    User.create(email="dup@example.com", name="A", password_hash="h", session=db_session)

    with pytest.raises(IntegrityError):
      User.create(
        email="DUP@example.com", name="B", password_hash="h", session=db_session
      )


class TestUserLookup:
  def test_get_by_email_is_case_insensitive(self, db_session, test_user):
    found = User.get_by_email("USER@Example.com", db_session)
    assert found is not None
    assert found.id == test_user.id

  def test_get_by_email_unknown(self, db_session):
    assert User.get_by_email("nobody@example.com", db_session) is None

  def test_get_by_stripe_customer_id(self, db_session, test_user):
    test_user.set_stripe_customer_id("cus_abc", db_session)

    found = User.get_by_stripe_customer_id("cus_abc", db_session)
    assert found.id == test_user.id


class TestUserSearch:
  @pytest.fixture
  def many_users(self, db_session):
    users = []
    for i in range(5):
      users.append(
        User.create(
          email=f"member{i}@example.com",
          name=f"Member {i}",
          password_hash="h",
          session=db_session,
        )
      )
    users.append(
      User.create(
        email="boss@corp.io",
        name="The Boss",
        password_hash="h",
        session=db_session,
        role=UserRole.ADMIN.value,
      )
    )
    return users

  def test_pagination(self, db_session, many_users):
    page_one, total = User.search(db_session, page=1, limit=4)
    page_two, _ = User.search(db_session, page=2, limit=4)

    assert total == 6
    assert len(page_one) == 4
    assert len(page_two) == 2
    assert not {u.id for u in page_one} & {u.id for u in page_two}

  def test_search_matches_email_or_name(self, db_session, many_users):
    by_email, total = User.search(db_session, search="CORP.IO")
    assert total == 1
    assert by_email[0].email == "boss@corp.io"

    by_name, total = User.search(db_session, search="member 3")
    assert total == 1
    assert by_name[0].email == "member3@example.com"

  def test_role_filter(self, db_session, many_users):
    admins, total = User.search(db_session, role="ADMIN")
    assert total == 1
    assert admins[0].role == "ADMIN"

    _, total_all = User.search(db_session, role="all")
    assert total_all == 6
