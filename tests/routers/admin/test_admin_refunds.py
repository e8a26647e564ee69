"""Tests for admin refund approval and rejection."""

import pytest

from saasbilling.exceptions import PaymentProviderError
from saasbilling.models.billing import (
  Invoice,
  InvoiceStatus,
  RefundRequest,
  RefundStatus,
)


@pytest.fixture
def pending_refund(db_session, test_user):
  invoice = Invoice.create(
    db_session,
    user_id=test_user.id,
    subtotal_cents=2900,
    total_cents=2900,
    stripe_invoice_id="in_admin",
    status=InvoiceStatus.PAID,
  )
  return RefundRequest.create(
    db_session,
    user_id=test_user.id,
    invoice_id=invoice.id,
    amount_cents=2900,
    reason="Charged twice",
  )


def test_user_cannot_approve(user_client, pending_refund):
  response = user_client.post(
    "/admin/refund/approve", json={"refundId": pending_refund.id}
  )
  assert response.status_code == 403


def test_approve(admin_client, db_session, pending_refund, mock_payment_provider):
  response = admin_client.post(
    "/admin/refund/approve", json={"refundId": pending_refund.id}
  )

  assert response.status_code == 200
  data = response.json()
  assert data["message"] == "Refund approved and processed"
  assert data["refund"]["status"] == "REFUNDED"
  assert data["refund"]["stripe_refund_id"] == "re_test123"
  mock_payment_provider.create_refund.assert_called_once()


def test_approve_provider_failure(
  admin_client, db_session, pending_refund, mock_payment_provider
):
  mock_payment_provider.create_refund.side_effect = PaymentProviderError(
    "create_refund", "insufficient balance"
  )

  response = admin_client.post(
    "/admin/refund/approve", json={"refundId": pending_refund.id}
  )

  assert response.status_code == 400
  assert response.json()["detail"] == "Failed to process refund"
  db_session.refresh(pending_refund)
  assert pending_refund.status == RefundStatus.PENDING.value


def test_approve_unknown(admin_client):
  response = admin_client.post("/admin/refund/approve", json={"refundId": "ref_nope"})
  assert response.status_code == 404
  assert response.json()["detail"] == "Refund request not found"


def test_reject(admin_client, pending_refund, mock_payment_provider):
  response = admin_client.post(
    "/admin/refund/reject",
    json={"refundId": pending_refund.id, "reason": "Outside window"},
  )

  assert response.status_code == 200
  data = response.json()
  assert data["message"] == "Refund request rejected"
  assert data["refund"]["status"] == "REJECTED"
  assert data["refund"]["admin_notes"] == "Outside window"
  mock_payment_provider.create_refund.assert_not_called()


def test_reject_twice(admin_client, pending_refund):
  admin_client.post("/admin/refund/reject", json={"refundId": pending_refund.id})

  response = admin_client.post(
    "/admin/refund/reject", json={"refundId": pending_refund.id}
  )
  assert response.status_code == 400
  assert response.json()["detail"] == "Refund request is already REJECTED"
