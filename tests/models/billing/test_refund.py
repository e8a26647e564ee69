"""Tests for the RefundRequest model."""

import pytest

from saasbilling.models.billing import Invoice, RefundRequest, RefundStatus


@pytest.fixture
def invoice(db_session, test_user):
  return Invoice.create(
    db_session,
    user_id=test_user.id,
    subtotal_cents=2900,
    total_cents=2900,
    stripe_invoice_id="in_refund",
  )


@pytest.fixture
def refund(db_session, test_user, invoice):
  return RefundRequest.create(
    db_session,
    user_id=test_user.id,
    invoice_id=invoice.id,
    amount_cents=invoice.total_cents,
    reason="Charged twice",
  )


class TestRefundRequest:
  def test_created_pending(self, refund):
    assert refund.status == RefundStatus.PENDING.value
    assert refund.is_pending()
    assert refund.amount == 29.0

  def test_open_request_lookup(self, db_session, refund, invoice):
    assert RefundRequest.get_open_for_invoice(invoice.id, db_session).id == refund.id

  def test_find_open_by_amount_scoped_to_user(
    self, db_session, refund, test_user, admin_user
  ):
    assert (
      RefundRequest.find_open_by_amount(2900, db_session, user_id=test_user.id).id
      == refund.id
    )
    assert RefundRequest.find_open_by_amount(2900, db_session, user_id=admin_user.id) is None
    assert RefundRequest.find_open_by_amount(100, db_session) is None

  def test_mark_refunded(self, db_session, refund, admin_user):
    refund.mark_refunded(db_session, stripe_refund_id="re_1", processed_by=admin_user.id)

    assert refund.status == RefundStatus.REFUNDED.value
    assert refund.stripe_refund_id == "re_1"
    assert refund.processed_by == admin_user.id
    assert refund.processed_at is not None
    assert RefundRequest.count_pending(db_session) == 0

  def test_reject(self, db_session, refund, admin_user, invoice):
    refund.reject(db_session, processed_by=admin_user.id, admin_notes="Outside window")

    assert refund.status == RefundStatus.REJECTED.value
    assert refund.admin_notes == "Outside window"
    # A rejected request no longer blocks a new one
    assert RefundRequest.get_open_for_invoice(invoice.id, db_session) is None
