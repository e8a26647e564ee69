"""Tests for the Invoice model."""

import re
from datetime import timedelta

from saasbilling.models.billing import Invoice, InvoiceStatus


class TestInvoiceCreation:
  def test_create_with_due_days(self, db_session, test_user):
    invoice = Invoice.create(
      db_session,
      user_id=test_user.id,
      subtotal_cents=2900,
      total_cents=2900,
      description="Pro - Monthly Subscription",
      due_days=7,
    )

    assert invoice.id.startswith("inv_")
    assert invoice.status == InvoiceStatus.PENDING.value
    assert invoice.total == 29.0
    assert invoice.tax == 0.0
    assert invoice.due_date - invoice.created_at == timedelta(days=7)

  def test_invoice_numbers_are_sequential_per_month(self, db_session, test_user):
    first = Invoice.create(
      db_session, user_id=test_user.id, subtotal_cents=100, total_cents=100
    )
    second = Invoice.create(
      db_session, user_id=test_user.id, subtotal_cents=100, total_cents=100
    )

    assert re.fullmatch(r"INV-\d{4}-\d{2}-0001", first.invoice_number)
    assert second.invoice_number.endswith("-0002")

  def test_provider_number_kept(self, db_session, test_user):
    invoice = Invoice.create(
      db_session,
      user_id=test_user.id,
      subtotal_cents=100,
      total_cents=100,
      invoice_number="ABC-0042",
    )
    assert invoice.invoice_number == "ABC-0042"


class TestInvoiceQueries:
  def test_ownership_scoped_lookup(self, db_session, test_user, admin_user):
    invoice = Invoice.create(
      db_session, user_id=test_user.id, subtotal_cents=100, total_cents=100
    )

    assert Invoice.get_by_id_for_user(invoice.id, test_user.id, db_session) is not None
    assert Invoice.get_by_id_for_user(invoice.id, admin_user.id, db_session) is None

  def test_mark_paid_and_totals(self, db_session, test_user):
    Invoice.create(
      db_session,
      user_id=test_user.id,
      subtotal_cents=2900,
      total_cents=2900,
      stripe_invoice_id="in_paid",
    )
    Invoice.create(
      db_session,
      user_id=test_user.id,
      subtotal_cents=900,
      total_cents=900,
      stripe_invoice_id="in_open",
    )

    paid = Invoice.mark_paid_by_stripe_id("in_paid", db_session)

    assert len(paid) == 1
    assert paid[0].status == InvoiceStatus.PAID.value
    assert paid[0].paid_at is not None
    assert Invoice.total_paid_cents(db_session) == 2900
    assert Invoice.total_paid_cents(db_session, user_id=test_user.id) == 2900
    assert Invoice.count_for_user(test_user.id, db_session) == 2

  def test_mark_failed(self, db_session, test_user):
    Invoice.create(
      db_session,
      user_id=test_user.id,
      subtotal_cents=900,
      total_cents=900,
      stripe_invoice_id="in_fail",
    )

    failed = Invoice.mark_failed_by_stripe_id("in_fail", db_session)
    assert failed[0].status == InvoiceStatus.FAILED.value

  def test_mark_paid_unknown_invoice_is_noop(self, db_session):
    assert Invoice.mark_paid_by_stripe_id("in_missing", db_session) == []
