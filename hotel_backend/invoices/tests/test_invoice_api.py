# invoices/tests/test_invoice_api.py

from __future__ import annotations

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from folios.services.coordinator import close_folio, open_folio
from folios.services.payments import record_payment
from folios.tests.factories import make_booking, make_hotel, make_user
from invoices.models import Invoice


class InvoiceAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.hotel = make_hotel()
        self.front_desk = make_user(self.hotel, role="front_desk")
        self.cashier = make_user(self.hotel, role="cashier")
        self.manager = make_user(self.hotel, role="manager")

        self.folio = self._closed_folio(self.hotel, paid="100.00")

    def _closed_folio(self, hotel, *, paid):
        folio = open_folio(booking_id=make_booking(hotel).id)
        record_payment(folio_id=folio.id, amount=paid, method="CASH")
        return close_folio(
            folio_id=folio.id,
            allow_unpaid=True,
            override_reason="Corporate billing",
            user=make_user(hotel, role="manager"),
        )

    def _issue(self):
        self.client.force_authenticate(user=self.front_desk)
        response = self.client.post(
            reverse("folios-invoice", args=[self.folio.id]),
            {"notes": "Net 30"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        return response.data

    def test_issue_invoice_via_folio(self):
        data = self._issue()

        self.assertTrue(data["invoice_number"].startswith("INV-"))
        self.assertEqual(data["status"], Invoice.STATUS_ISSUED)
        self.assertEqual(data["folio_number"], self.folio.folio_number)
        self.assertEqual(data["balance_due"], "230.00")
        self.assertEqual(data["notes"], "Net 30")

        # idempotent
        again = self._issue()
        self.assertEqual(again["id"], data["id"])

    def test_list_and_filters(self):
        invoice = self._issue()
        self._closed_folio(make_hotel(), paid="330.00")

        response = self.client.get(reverse("invoices-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in response.data["results"]], [invoice["id"]])

        response = self.client.get(reverse("invoices-list"), {"unpaid_only": "true"})
        self.assertEqual(len(response.data["results"]), 1)

        response = self.client.get(reverse("invoices-list"), {"status": "PAID"})
        self.assertEqual(response.data["results"], [])

    def test_cashier_records_payment_until_paid(self):
        invoice = self._issue()

        self.client.force_authenticate(user=self.cashier)
        response = self.client.post(
            reverse("invoices-payments", args=[invoice["id"]]),
            {"amount": "230.00", "method": "BANK_TRANSFER", "reference": "WIRE-7"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["amount"], "230.00")

        detail = self.client.get(reverse("invoices-detail", args=[invoice["id"]]))
        self.assertEqual(detail.data["status"], Invoice.STATUS_PAID)
        self.assertEqual(detail.data["balance_due"], "0.00")
        self.assertEqual(len(detail.data["payments"]), 1)

        response = self.client.post(
            reverse("invoices-payments", args=[invoice["id"]]),
            {"amount": "1.00", "method": "CASH"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "INVALID_STATE")

    def test_front_desk_cannot_settle_or_cancel(self):
        invoice = self._issue()

        response = self.client.post(reverse("invoices-mark-paid", args=[invoice["id"]]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.post(
            reverse("invoices-cancel", args=[invoice["id"]]),
            {"reason": "Oops"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_mark_paid_with_balance_stays_issued(self):
        invoice = self._issue()

        self.client.force_authenticate(user=self.cashier)
        response = self.client.post(reverse("invoices-mark-paid", args=[invoice["id"]]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], Invoice.STATUS_ISSUED)

    def test_manager_cancels(self):
        invoice = self._issue()

        self.client.force_authenticate(user=self.manager)
        response = self.client.post(
            reverse("invoices-cancel", args=[invoice["id"]]),
            {"reason": "Wrong company"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], Invoice.STATUS_CANCELLED)
        self.assertEqual(response.data["cancellation_reason"], "Wrong company")

        response = self.client.post(
            reverse("invoices-cancel", args=[invoice["id"]]),
            {"reason": "Again"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_cancel_requires_reason(self):
        invoice = self._issue()

        self.client.force_authenticate(user=self.manager)
        response = self.client.post(
            reverse("invoices-cancel", args=[invoice["id"]]),
            {},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_export(self):
        invoice = self._issue()

        response = self.client.get(reverse("invoices-export", args=[invoice["id"]]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["invoice_number"], invoice["invoice_number"])
        self.assertEqual(response.data["totals"]["balance_due"], "230.00")
        self.assertEqual(len(response.data["line_items"]), 1)

    def test_other_hotel_invoice_is_not_found(self):
        self._issue()
        other_folio = self._closed_folio(make_hotel(), paid="330.00")
        self.client.force_authenticate(user=make_user(other_folio.hotel, role="manager"))

        invoice_id = Invoice.objects.get(folio=self.folio).id

        response = self.client.get(reverse("invoices-detail", args=[invoice_id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.post(
            reverse("invoices-cancel", args=[invoice_id]),
            {"reason": "Not mine"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["code"], "NOT_FOUND")
