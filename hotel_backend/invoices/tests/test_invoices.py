# invoices/tests/test_invoices.py

from __future__ import annotations

import re
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from folios.models import Folio
from folios.services import events
from folios.services.coordinator import close_folio, open_folio
from folios.services.exceptions import (
    BillingNotFoundError,
    BillingValidationError,
    InvalidStateError,
)
from folios.services.ledger import Charge, post_charge, void_item
from folios.services.payments import record_payment
from folios.tests.factories import (
    RecordingEmitter,
    make_booking,
    make_guest,
    make_hotel,
    make_user,
)
from invoices.models import Invoice, InvoicePayment
from invoices.services.invoice_service import (
    cancel_invoice,
    export_invoice,
    generate_invoice,
    mark_invoice_paid,
    record_invoice_payment,
    refresh_overdue_invoices,
)

INVOICE_RE = re.compile(r"^INV-\d{4}-\d{5}$")


class InvoiceTestMixin:
    def setUp(self):
        self.hotel = make_hotel()
        self.manager = make_user(self.hotel, role="manager")
        self.guest = make_guest(self.hotel, first_name="Ngozi", last_name="Ade")
        self.emitter = RecordingEmitter()

    def _open(self):
        return open_folio(booking_id=make_booking(self.hotel, guest=self.guest).id)

    def _paid_closed_folio(self):
        folio = self._open()
        record_payment(folio_id=folio.id, amount="330.00", method="CARD")
        return close_folio(folio_id=folio.id, user=self.manager)

    def _unpaid_closed_folio(self, paid="100.00"):
        folio = self._open()
        record_payment(folio_id=folio.id, amount=paid, method="CASH")
        return close_folio(
            folio_id=folio.id,
            allow_unpaid=True,
            override_reason="Corporate billing",
            user=self.manager,
        )


class GenerateInvoiceTests(InvoiceTestMixin, TestCase):
    def test_generate_from_closed_folio(self):
        folio = self._paid_closed_folio()

        with self.captureOnCommitCallbacks(execute=True):
            invoice = generate_invoice(
                folio_id=folio.id,
                notes="Thank you",
                user=self.manager,
                emitter=self.emitter,
            )

        self.assertRegex(invoice.invoice_number, INVOICE_RE)
        self.assertEqual(invoice.status, Invoice.STATUS_ISSUED)
        self.assertEqual(invoice.subtotal, Decimal("300.00"))
        self.assertEqual(invoice.tax_amount, Decimal("30.00"))
        self.assertEqual(invoice.total_amount, Decimal("330.00"))
        self.assertEqual(invoice.prepaid_amount, Decimal("330.00"))
        self.assertEqual(invoice.paid_amount, Decimal("330.00"))
        self.assertEqual(invoice.balance_due, Decimal("0.00"))
        self.assertEqual(invoice.currency, folio.currency)
        self.assertEqual(invoice.issued_by, self.manager)
        self.assertEqual(invoice.notes, "Thank you")
        self.assertEqual(invoice.bill_to["name"], "Ngozi Ade")

        self.assertEqual(
            (invoice.due_date - invoice.issue_date).days,
            30,
        )
        self.assertEqual(self.emitter.types, [events.INVOICE_GENERATED])

    def test_generate_is_idempotent(self):
        folio = self._paid_closed_folio()

        first = generate_invoice(folio_id=folio.id)
        second = generate_invoice(folio_id=folio.id, notes="ignored")

        self.assertEqual(first.id, second.id)
        self.assertEqual(second.notes, "")
        self.assertEqual(Invoice.objects.count(), 1)

        # numbering did not advance
        third = generate_invoice(folio_id=self._paid_closed_folio().id)
        self.assertTrue(first.invoice_number.endswith("-00001"))
        self.assertTrue(third.invoice_number.endswith("-00002"))

    def test_open_folio_cannot_be_invoiced(self):
        folio = self._open()

        with self.assertRaises(InvalidStateError):
            generate_invoice(folio_id=folio.id)

        self.assertFalse(Invoice.objects.exists())

    def test_unknown_folio(self):
        folio = self._paid_closed_folio()

        with self.assertRaises(BillingNotFoundError):
            generate_invoice(folio_id=folio.id, hotel_id=make_hotel().id)

    def test_due_date_from_date(self):
        folio = self._paid_closed_folio()
        due = timezone.localdate() + timedelta(days=7)

        invoice = generate_invoice(folio_id=folio.id, due_date=due)

        local_due = timezone.localtime(invoice.due_date)
        self.assertEqual(local_due.date(), due)
        self.assertEqual((local_due.hour, local_due.minute), (23, 59))

    def test_due_date_before_issue_is_rejected(self):
        folio = self._paid_closed_folio()

        with self.assertRaises(BillingValidationError):
            generate_invoice(folio_id=folio.id, due_date=date(2000, 1, 1))

    @override_settings(INVOICE_DEFAULT_DUE_DAYS=14)
    def test_default_due_days_configurable(self):
        invoice = generate_invoice(folio_id=self._paid_closed_folio().id)
        self.assertEqual((invoice.due_date - invoice.issue_date).days, 14)

    def test_billing_identity_snapshot(self):
        folio = open_folio(
            booking_id=make_booking(self.hotel, guest=self.guest).id,
            billing_info={"billing_name": "Acme Ltd", "billing_email": "ap@acme.test"},
        )
        record_payment(folio_id=folio.id, amount="330.00", method="CARD")
        close_folio(folio_id=folio.id)

        invoice = generate_invoice(folio_id=folio.id)

        self.assertEqual(invoice.bill_to["name"], "Acme Ltd")
        self.assertEqual(invoice.bill_to["email"], "ap@acme.test")
        self.assertEqual(invoice.bill_to["address"], self.guest.address)

    def test_snapshot_fields_are_immutable(self):
        invoice = generate_invoice(folio_id=self._paid_closed_folio().id)
        invoice.total_amount = Decimal("1.00")

        with self.assertRaises(ValidationError):
            invoice.save()

        with self.assertRaises(RuntimeError):
            invoice.delete()


class InvoiceSettlementTests(InvoiceTestMixin, TestCase):
    def test_mark_paid_settles_fully_prepaid_invoice(self):
        invoice = generate_invoice(folio_id=self._paid_closed_folio().id)

        with self.captureOnCommitCallbacks(execute=True):
            invoice = mark_invoice_paid(invoice_id=invoice.id, emitter=self.emitter)

        self.assertEqual(invoice.status, Invoice.STATUS_PAID)
        self.assertIsNotNone(invoice.paid_date)
        self.assertEqual(self.emitter.types, [events.INVOICE_PAID])

        # already PAID: returned unchanged, no new event
        paid_date = invoice.paid_date
        with self.captureOnCommitCallbacks(execute=True):
            again = mark_invoice_paid(invoice_id=invoice.id, emitter=self.emitter)
        self.assertEqual(again.paid_date, paid_date)
        self.assertEqual(len(self.emitter.events), 1)

    def test_mark_paid_with_balance_stays_issued(self):
        invoice = generate_invoice(folio_id=self._unpaid_closed_folio().id)

        invoice = mark_invoice_paid(invoice_id=invoice.id)

        self.assertEqual(invoice.status, Invoice.STATUS_ISSUED)
        self.assertEqual(invoice.balance_due, Decimal("230.00"))

    def test_past_due_with_balance_becomes_overdue(self):
        invoice = generate_invoice(folio_id=self._unpaid_closed_folio().id)

        invoice = mark_invoice_paid(
            invoice_id=invoice.id,
            now=invoice.due_date + timedelta(days=1),
        )
        self.assertEqual(invoice.status, Invoice.STATUS_OVERDUE)

    def test_invoice_payments_settle_balance(self):
        invoice = generate_invoice(folio_id=self._unpaid_closed_folio().id)
        self.assertEqual(invoice.balance_due, Decimal("230.00"))

        record_invoice_payment(
            invoice_id=invoice.id,
            amount="100.00",
            method="BANK_TRANSFER",
            reference="WIRE-1",
            user=self.manager,
        )
        invoice.refresh_from_db()
        self.assertEqual(invoice.paid_amount, Decimal("200.00"))
        self.assertEqual(invoice.balance_due, Decimal("130.00"))
        self.assertEqual(invoice.status, Invoice.STATUS_ISSUED)

        with self.captureOnCommitCallbacks(execute=True):
            record_invoice_payment(
                invoice_id=invoice.id,
                amount="130.00",
                method="BANK_TRANSFER",
                emitter=self.emitter,
            )
        invoice.refresh_from_db()
        self.assertEqual(invoice.balance_due, Decimal("0.00"))
        self.assertEqual(invoice.status, Invoice.STATUS_PAID)
        self.assertEqual(self.emitter.types, [events.INVOICE_PAID])

        with self.assertRaises(InvalidStateError):
            record_invoice_payment(invoice_id=invoice.id, amount="1.00", method="CASH")

        self.assertEqual(InvoicePayment.objects.filter(invoice=invoice).count(), 2)

    def test_invoice_payment_validation(self):
        invoice = generate_invoice(folio_id=self._unpaid_closed_folio().id)

        with self.assertRaises(BillingValidationError):
            record_invoice_payment(invoice_id=invoice.id, amount="0", method="CASH")

        with self.assertRaises(BillingValidationError):
            record_invoice_payment(invoice_id=invoice.id, amount="5.00", method="IOU")

    def test_invoice_payment_does_not_touch_closed_folio(self):
        folio = self._unpaid_closed_folio()
        invoice = generate_invoice(folio_id=folio.id)

        record_invoice_payment(invoice_id=invoice.id, amount="230.00", method="CASH")

        folio = Folio.objects.get(pk=folio.pk)
        self.assertEqual(folio.balance_due, Decimal("230.00"))
        self.assertEqual(folio.status, Folio.STATUS_CLOSED)

    def test_overdue_sweep(self):
        paid_invoice = generate_invoice(folio_id=self._paid_closed_folio().id)
        unpaid_invoice = generate_invoice(folio_id=self._unpaid_closed_folio().id)

        later = timezone.now() + timedelta(days=45)
        updated = refresh_overdue_invoices(hotel_id=self.hotel.id, now=later)

        self.assertEqual(len(updated), 2)

        paid_invoice.refresh_from_db()
        unpaid_invoice.refresh_from_db()
        self.assertEqual(paid_invoice.status, Invoice.STATUS_PAID)
        self.assertEqual(unpaid_invoice.status, Invoice.STATUS_OVERDUE)

        # OVERDUE invoices are not swept again
        self.assertEqual(refresh_overdue_invoices(hotel_id=self.hotel.id, now=later), [])

    def test_overdue_command(self):
        invoice = generate_invoice(folio_id=self._unpaid_closed_folio().id)
        Invoice.objects.filter(pk=invoice.pk).update(
            due_date=timezone.now() - timedelta(days=1)
        )

        out = StringIO()
        call_command("mark_overdue_invoices", "--hotel", self.hotel.code, stdout=out)

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_OVERDUE)
        self.assertIn("Overdue: 1", out.getvalue())


class CancelInvoiceTests(InvoiceTestMixin, TestCase):
    def test_cancel_issued_invoice(self):
        folio = self._unpaid_closed_folio()
        invoice = generate_invoice(folio_id=folio.id)

        with self.captureOnCommitCallbacks(execute=True):
            invoice = cancel_invoice(
                invoice_id=invoice.id,
                reason="Billed to wrong company",
                user=self.manager,
                emitter=self.emitter,
            )

        self.assertEqual(invoice.status, Invoice.STATUS_CANCELLED)
        self.assertEqual(invoice.cancelled_by, self.manager)
        self.assertEqual(invoice.cancellation_reason, "Billed to wrong company")
        self.assertIsNotNone(invoice.cancelled_at)
        self.assertEqual(self.emitter.types, [events.INVOICE_CANCELLED])

        folio = Folio.objects.get(pk=folio.pk)
        self.assertEqual(folio.status, Folio.STATUS_CLOSED)

    def test_cancel_requires_reason(self):
        invoice = generate_invoice(folio_id=self._unpaid_closed_folio().id)

        with self.assertRaises(BillingValidationError):
            cancel_invoice(invoice_id=invoice.id, reason=" ")

    def test_cancelled_is_terminal(self):
        invoice = generate_invoice(folio_id=self._unpaid_closed_folio().id)
        cancel_invoice(invoice_id=invoice.id, reason="Duplicate")

        with self.assertRaises(InvalidStateError):
            cancel_invoice(invoice_id=invoice.id, reason="Again")

        with self.assertRaises(InvalidStateError):
            mark_invoice_paid(invoice_id=invoice.id)

        with self.assertRaises(InvalidStateError):
            record_invoice_payment(invoice_id=invoice.id, amount="10.00", method="CASH")

    def test_paid_invoice_cannot_be_cancelled(self):
        invoice = generate_invoice(folio_id=self._paid_closed_folio().id)
        mark_invoice_paid(invoice_id=invoice.id)

        with self.assertRaises(InvalidStateError):
            cancel_invoice(invoice_id=invoice.id, reason="Too late")


class ExportInvoiceTests(InvoiceTestMixin, TestCase):
    def test_export_shape(self):
        folio = self._open()
        dinner = post_charge(
            folio_id=folio.id,
            charge=Charge(
                description="Dinner",
                category="FOOD_BEVERAGE",
                quantity=Decimal("1"),
                unit_price=Decimal("25.00"),
                tax_rate=Decimal("10.00"),
            ),
        )
        void_item(item_id=dinner.id, reason="Comped")
        record_payment(folio_id=folio.id, amount="100.00", method="CASH")
        close_folio(
            folio_id=folio.id,
            allow_unpaid=True,
            override_reason="City ledger",
            user=self.manager,
        )

        invoice = generate_invoice(folio_id=folio.id)
        record_invoice_payment(invoice_id=invoice.id, amount="50.00", method="CARD", reference="POS-9")
        invoice.refresh_from_db()

        data = export_invoice(invoice)

        self.assertEqual(data["invoice_number"], invoice.invoice_number)
        self.assertEqual(data["folio_number"], folio.folio_number)
        self.assertEqual(data["hotel"]["name"], self.hotel.name)
        self.assertEqual(data["bill_to"]["name"], "Ngozi Ade")

        # voided charge and its reversal are not invoice lines
        self.assertEqual([line["category"] for line in data["line_items"]], ["ROOM"])

        self.assertEqual([p["source"] for p in data["payments"]], ["FOLIO", "INVOICE"])
        self.assertEqual(data["payments"][1]["reference"], "POS-9")

        self.assertEqual(
            data["totals"],
            {
                "subtotal": "300.00",
                "tax_amount": "30.00",
                "total_amount": "330.00",
                "paid_amount": "150.00",
                "balance_due": "180.00",
            },
        )
        self.assertIsNone(data["paid_date"])
