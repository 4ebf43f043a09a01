# folios/tests/test_front_desk.py

from __future__ import annotations

from decimal import Decimal

from django.test import TestCase

from folios.models import Folio
from folios.services import front_desk
from folios.services.exceptions import (
    BillingNotFoundError,
    InsufficientPaymentError,
    InvalidStateError,
)
from folios.tests.factories import make_booking, make_hotel, make_user
from hotels.models import Booking
from invoices.models import Invoice


class FrontDeskFlowTests(TestCase):
    """
    End-to-end stay: check-in -> charges -> payment -> check-out -> invoice.
    """

    def setUp(self):
        self.hotel = make_hotel()
        self.user = make_user(self.hotel, role="manager")
        self.booking = make_booking(self.hotel)

    def _check_in(self, **kwargs):
        return front_desk.check_in(
            hotel_id=self.hotel.id,
            booking_id=self.booking.id,
            user=self.user,
            **kwargs,
        )

    def test_full_stay(self):
        folio = self._check_in()

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.STATUS_CHECKED_IN)
        self.assertIsNotNone(self.booking.checked_in_at)

        for description, price in (("Dinner", "25.00"), ("Laundry", "15.00")):
            front_desk.add_charge(
                hotel_id=self.hotel.id,
                folio_id=folio.id,
                charge={
                    "description": description,
                    "category": "SERVICE",
                    "unit_price": price,
                    "tax_rate": "10.00",
                },
                user=self.user,
            )

        front_desk.record_folio_payment(
            hotel_id=self.hotel.id,
            folio_id=folio.id,
            payment={"amount": "374.00", "method": "CARD"},
            user=self.user,
        )

        closed = front_desk.check_out(
            hotel_id=self.hotel.id,
            booking_id=self.booking.id,
            user=self.user,
        )
        self.assertEqual(closed.status, Folio.STATUS_CLOSED)
        self.assertEqual(closed.total_amount, Decimal("374.00"))

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.STATUS_CHECKED_OUT)
        self.assertIsNotNone(self.booking.checked_out_at)

        invoice = front_desk.generate_folio_invoice(
            hotel_id=self.hotel.id,
            folio_id=folio.id,
            options={"notes": "Thank you for staying"},
            user=self.user,
        )
        self.assertEqual(invoice.total_amount, Decimal("374.00"))
        self.assertEqual(invoice.balance_due, Decimal("0.00"))
        self.assertEqual(invoice.notes, "Thank you for staying")

    def test_check_in_is_idempotent(self):
        first = self._check_in()
        second = self._check_in()

        self.assertEqual(first.id, second.id)
        self.assertEqual(Folio.objects.filter(booking=self.booking).count(), 1)

    def test_check_in_passes_billing_info(self):
        folio = self._check_in(billing_info={"billing_name": "Acme Ltd"})
        self.assertEqual(folio.billing_name, "Acme Ltd")

    def test_check_in_rejects_cancelled_booking(self):
        Booking.objects.filter(pk=self.booking.pk).update(status=Booking.STATUS_CANCELLED)

        with self.assertRaises(InvalidStateError):
            self._check_in()

    def test_check_out_requires_checked_in_booking(self):
        with self.assertRaises(InvalidStateError):
            front_desk.check_out(hotel_id=self.hotel.id, booking_id=self.booking.id)

    def test_check_out_with_balance_keeps_booking_checked_in(self):
        self._check_in()

        with self.assertRaises(InsufficientPaymentError):
            front_desk.check_out(hotel_id=self.hotel.id, booking_id=self.booking.id)

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.STATUS_CHECKED_IN)

    def test_check_out_forced(self):
        self._check_in()

        folio = front_desk.check_out(
            hotel_id=self.hotel.id,
            booking_id=self.booking.id,
            allow_unpaid=True,
            override_reason="Direct bill to employer",
            user=self.user,
        )

        self.assertEqual(folio.status, Folio.STATUS_CLOSED)
        self.assertEqual(folio.close_override.reason, "Direct bill to employer")

    def test_other_hotel_cannot_touch_folio(self):
        folio = self._check_in()
        other = make_hotel()

        with self.assertRaises(BillingNotFoundError):
            front_desk.add_charge(
                hotel_id=other.id,
                folio_id=folio.id,
                charge={"description": "Spa", "category": "SPA", "unit_price": "10.00"},
            )

        with self.assertRaises(BillingNotFoundError):
            front_desk.record_folio_payment(
                hotel_id=other.id,
                folio_id=folio.id,
                payment={"amount": "10.00", "method": "CASH"},
            )

        with self.assertRaises(BillingNotFoundError):
            front_desk.check_out(hotel_id=other.id, booking_id=self.booking.id)

        with self.assertRaises(BillingNotFoundError):
            front_desk.generate_folio_invoice(hotel_id=other.id, folio_id=folio.id)

        self.assertFalse(Invoice.objects.exists())
