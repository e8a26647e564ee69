"""Tests for admin user management."""

from saasbilling.models.billing import Invoice, InvoiceStatus
from saasbilling.models.iam import User


class TestListUsers:
  def test_regular_user_forbidden(self, user_client):
    assert user_client.get("/admin/users").status_code == 403

  def test_lists_with_pagination(self, admin_client, test_user):
    data = admin_client.get("/admin/users?limit=1").json()

    assert len(data["users"]) == 1
    assert data["pagination"] == {"page": 1, "limit": 1, "total": 2, "total_pages": 2}

  def test_limit_is_capped(self, admin_client):
    data = admin_client.get("/admin/users?limit=500").json()
    assert data["pagination"]["limit"] == 100

  def test_search_and_role_filter(self, admin_client, test_user):
    by_search = admin_client.get("/admin/users?search=test%20user").json()
    assert [u["email"] for u in by_search["users"]] == ["user@example.com"]

    admins = admin_client.get("/admin/users?role=ADMIN").json()
    assert [u["email"] for u in admins["users"]] == ["admin@example.com"]


class TestCreateUser:
  def test_create_with_invite(self, admin_client, db_session, mock_email_service):
    response = admin_client.post(
      "/admin/users", json={"name": "Invited", "email": "invited@example.com"}
    )

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "User created and invitation sent"
    assert data["temporary_password"] is None
    assert User.get_by_email("invited@example.com", db_session) is not None
    mock_email_service.send_invitation.assert_awaited_once()

  def test_create_without_invite_returns_password(self, admin_client, mock_email_service):
    response = admin_client.post(
      "/admin/users",
      json={"name": "Quiet", "email": "quiet@example.com", "sendInvite": False},
    )

    data = response.json()
    assert data["message"] == "User created"
    assert data["temporary_password"]
    mock_email_service.send_invitation.assert_not_called()

  def test_invite_failure_still_creates(self, admin_client, mock_email_service):
    mock_email_service.send_invitation.return_value = False

    response = admin_client.post(
      "/admin/users", json={"name": "Bounced", "email": "bounced@example.com"}
    )

    assert response.status_code == 201
    assert "could not be sent" in response.json()["message"]

  def test_duplicate_email(self, admin_client, test_user):
    response = admin_client.post(
      "/admin/users", json={"name": "Dup", "email": "user@example.com"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "User already exists"

  def test_invalid_role(self, admin_client):
    response = admin_client.post(
      "/admin/users", json={"name": "X", "email": "x@example.com", "role": "ROOT"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Role must be USER or ADMIN"


class TestUserDetail:
  def test_unknown_user(self, admin_client):
    response = admin_client.get("/admin/users/user_missing")
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"

  def test_detail_totals(self, admin_client, db_session, test_user):
    for total_cents, status in [(2900, InvoiceStatus.PAID), (900, InvoiceStatus.FAILED)]:
      Invoice.create(
        db_session,
        user_id=test_user.id,
        subtotal_cents=total_cents,
        total_cents=total_cents,
        status=status,
      )

    data = admin_client.get(f"/admin/users/{test_user.id}").json()

    assert data["user"]["email"] == "user@example.com"
    assert data["subscription"] is None
    assert data["invoice_count"] == 2
    assert data["total_spent"] == 29.0
    assert data["usage_count"] == 0
