# folios/tests/test_ledger.py

from __future__ import annotations

import uuid
from datetime import timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from folios.models import Folio, FolioItem
from folios.services.coordinator import close_folio, open_folio
from folios.services.exceptions import (
    BillingNotFoundError,
    BillingValidationError,
    InvalidStateError,
)
from folios.services.ledger import (
    Charge,
    derive_payment_status,
    post_charge,
    recalculate_aggregates,
    void_item,
)
from folios.services.payments import record_payment
from folios.tests.factories import (
    RecordingEmitter,
    make_booking,
    make_hotel,
    make_user,
)


def _charge(description, unit_price, *, quantity="1", tax_rate="10.00", category="FOOD_BEVERAGE"):
    return Charge(
        description=description,
        category=category,
        quantity=Decimal(quantity),
        unit_price=Decimal(unit_price),
        tax_rate=Decimal(tax_rate),
    )


class FolioLedgerTests(TestCase):
    """
    Ledger posting, voiding and aggregate derivation.

    GUARANTEES:
    - total = subtotal + tax, balance = total - paid after every mutation
    - voids are additive reversals; originals stay in history
    - only OPEN folios accept posts and voids
    """

    def setUp(self):
        self.hotel = make_hotel()
        self.user = make_user(self.hotel, role="manager")
        self.emitter = RecordingEmitter()
        self.booking = make_booking(self.hotel)
        self.folio = open_folio(
            booking_id=self.booking.id,
            user=self.user,
            emitter=self.emitter,
        )

    def _post(self, description, unit_price, **kwargs):
        return post_charge(
            folio_id=self.folio.id,
            charge=_charge(description, unit_price, **kwargs),
            user=self.user,
            emitter=self.emitter,
        )

    # --------------------------------------------------
    # Room charge on open
    # --------------------------------------------------

    def test_open_posts_room_charge_with_tax(self):
        item = self.folio.items.get()

        self.assertEqual(item.category, FolioItem.CATEGORY_ROOM)
        self.assertEqual(item.quantity, Decimal("3.00"))
        self.assertEqual(item.total_price, Decimal("300.00"))
        self.assertEqual(item.tax_amount, Decimal("30.00"))
        self.assertEqual(item.reference_type, FolioItem.REFERENCE_ROOM_CHARGE)
        self.assertEqual(item.reference_id, str(self.booking.id))

        self.assertEqual(self.folio.total_amount, Decimal("330.00"))
        self.assertEqual(self.folio.balance_due, Decimal("330.00"))
        self.assertEqual(self.folio.payment_status, Folio.PAYMENT_UNPAID)

    # --------------------------------------------------
    # Posting
    # --------------------------------------------------

    def test_post_additional_charges_rederives_totals(self):
        self._post("Dinner", "25.00")
        self._post("Laundry", "15.00", category="LAUNDRY")

        self.folio.refresh_from_db()
        self.assertEqual(self.folio.subtotal, Decimal("340.00"))
        self.assertEqual(self.folio.tax_amount, Decimal("34.00"))
        self.assertEqual(self.folio.total_amount, Decimal("374.00"))
        self.assertEqual(self.folio.balance_due, Decimal("374.00"))

    def test_item_amounts_round_half_up(self):
        item = self._post("Water", "3.33", quantity="3", tax_rate="7.50", category="MINIBAR")

        self.assertEqual(item.total_price, Decimal("9.99"))
        self.assertEqual(item.tax_amount, Decimal("0.75"))

    def test_post_records_actor(self):
        item = self._post("Dinner", "25.00")
        self.assertEqual(item.posted_by, self.user)

    def test_category_is_normalized(self):
        item = self._post("Spa", "50.00", category="spa")
        self.assertEqual(item.category, FolioItem.CATEGORY_SPA)

    def test_post_rejects_invalid_input(self):
        bad_charges = [
            _charge("", "10.00"),
            _charge("Dinner", "10.00", category="CASINO"),
            _charge("Dinner", "-1.00"),
            _charge("Dinner", "10.00", quantity="0"),
            _charge("Dinner", "10.00", tax_rate="101"),
            _charge("Dinner", "10.00", tax_rate="-1"),
        ]
        for charge in bad_charges:
            with self.assertRaises(BillingValidationError):
                post_charge(folio_id=self.folio.id, charge=charge)

        self.assertEqual(self.folio.items.count(), 1)

    def test_quantity_must_fit_stored_precision(self):
        for quantity in ("1.005", "0.001", "100000000"):
            with self.assertRaises(BillingValidationError):
                post_charge(
                    folio_id=self.folio.id,
                    charge=_charge("Room service", "100.00", quantity=quantity, tax_rate="0"),
                )

        self.assertEqual(self.folio.items.count(), 1)

    def test_stored_item_keeps_quantity_times_price(self):
        item = self._post("Room service", "100.00", quantity="1.5", tax_rate="0")
        item.refresh_from_db()

        self.assertEqual(item.quantity, Decimal("1.50"))
        self.assertEqual(item.total_price, item.quantity * item.unit_price)

        self.folio.refresh_from_db()
        self.assertEqual(self.folio.subtotal, Decimal("450.00"))

    def test_charge_from_dict_defaults(self):
        charge = Charge.from_dict(
            {"description": "Parking", "category": "PARKING", "unit_price": "8.00"}
        )
        self.assertEqual(charge.quantity, 1)
        self.assertEqual(charge.tax_rate, Decimal("0.00"))
        self.assertEqual(charge.reference_id, "")

    def test_post_unknown_folio_is_not_found(self):
        with self.assertRaises(BillingNotFoundError):
            post_charge(folio_id=uuid.uuid4(), charge=_charge("Dinner", "10.00"))

        with self.assertRaises(BillingNotFoundError):
            post_charge(folio_id="not-a-uuid", charge=_charge("Dinner", "10.00"))

    def test_post_is_scoped_to_hotel(self):
        other_hotel = make_hotel()

        with self.assertRaises(BillingNotFoundError):
            post_charge(
                folio_id=self.folio.id,
                charge=_charge("Dinner", "10.00"),
                hotel_id=other_hotel.id,
            )

    # --------------------------------------------------
    # Voiding
    # --------------------------------------------------

    def test_void_appends_reversal_and_reduces_totals(self):
        dinner = self._post("Dinner", "25.00")
        self._post("Laundry", "15.00", category="LAUNDRY")

        reversal = void_item(
            item_id=dinner.id,
            reason="Charged to wrong room",
            user=self.user,
            emitter=self.emitter,
        )

        self.folio.refresh_from_db()
        self.assertEqual(self.folio.subtotal, Decimal("315.00"))
        self.assertEqual(self.folio.tax_amount, Decimal("31.50"))
        self.assertEqual(self.folio.total_amount, Decimal("346.50"))
        self.assertEqual(self.folio.balance_due, Decimal("346.50"))

        dinner.refresh_from_db()
        self.assertTrue(dinner.is_voided)
        self.assertEqual(dinner.void_reason, "Charged to wrong room")
        self.assertEqual(dinner.voided_by, self.user)
        self.assertIsNotNone(dinner.voided_at)

        self.assertEqual(reversal.entry_type, FolioItem.ENTRY_REVERSAL)
        self.assertEqual(reversal.total_price, Decimal("-25.00"))
        self.assertEqual(reversal.tax_amount, Decimal("-2.50"))
        self.assertEqual(reversal.reference_id, str(dinner.id))
        self.assertEqual(reversal.reference_type, FolioItem.REFERENCE_VOID)
        self.assertTrue(reversal.description.startswith("VOID: Dinner"))

        # Original and reversal both remain in history
        self.assertEqual(self.folio.items.count(), 4)

    def test_reversal_keeps_service_date_of_voided_item(self):
        served = timezone.now() - timedelta(days=2)
        dinner = post_charge(
            folio_id=self.folio.id,
            charge=Charge(
                description="Dinner",
                category="FOOD_BEVERAGE",
                quantity=Decimal("1"),
                unit_price=Decimal("25.00"),
                service_date=served,
            ),
        )

        reversal = void_item(item_id=dinner.id, reason="Wrong room")

        reversal.refresh_from_db()
        self.assertEqual(reversal.service_date, served)

    def test_void_requires_reason(self):
        dinner = self._post("Dinner", "25.00")

        with self.assertRaises(BillingValidationError):
            void_item(item_id=dinner.id, reason="   ")

        dinner.refresh_from_db()
        self.assertFalse(dinner.is_voided)

    def test_void_twice_is_rejected(self):
        dinner = self._post("Dinner", "25.00")
        void_item(item_id=dinner.id, reason="Duplicate")

        with self.assertRaises(InvalidStateError):
            void_item(item_id=dinner.id, reason="Again")

        self.assertEqual(
            self.folio.items.filter(entry_type=FolioItem.ENTRY_REVERSAL).count(), 1
        )

    def test_reversal_cannot_be_voided(self):
        dinner = self._post("Dinner", "25.00")
        reversal = void_item(item_id=dinner.id, reason="Duplicate")

        with self.assertRaises(InvalidStateError):
            void_item(item_id=reversal.id, reason="Undo the undo")

    def test_void_unknown_item_is_not_found(self):
        with self.assertRaises(BillingNotFoundError):
            void_item(item_id=uuid.uuid4(), reason="Missing")

    # --------------------------------------------------
    # Closed folio
    # --------------------------------------------------

    def test_closed_folio_rejects_posts_and_voids(self):
        dinner = self._post("Dinner", "25.00")
        self.folio.refresh_from_db()
        record_payment(
            folio_id=self.folio.id,
            amount=self.folio.balance_due,
            method="CASH",
        )
        close_folio(folio_id=self.folio.id, user=self.user)

        with self.assertRaises(InvalidStateError):
            self._post("Late snack", "5.00")

        with self.assertRaises(InvalidStateError):
            void_item(item_id=dinner.id, reason="Too late")

        self.assertEqual(self.folio.items.count(), 2)

    # --------------------------------------------------
    # Aggregates
    # --------------------------------------------------

    def test_derive_payment_status(self):
        total = Decimal("100.00")
        self.assertEqual(
            derive_payment_status(total_amount=total, paid_amount=Decimal("0.00")),
            Folio.PAYMENT_UNPAID,
        )
        self.assertEqual(
            derive_payment_status(total_amount=total, paid_amount=Decimal("40.00")),
            Folio.PAYMENT_PARTIALLY_PAID,
        )
        self.assertEqual(
            derive_payment_status(total_amount=total, paid_amount=Decimal("100.00")),
            Folio.PAYMENT_PAID,
        )
        self.assertEqual(
            derive_payment_status(total_amount=total, paid_amount=Decimal("120.00")),
            Folio.PAYMENT_PAID,
        )

    def test_recalculate_is_idempotent(self):
        self._post("Dinner", "25.00")
        self.folio.refresh_from_db()
        before = (self.folio.subtotal, self.folio.tax_amount, self.folio.balance_due)

        recalculate_aggregates(self.folio)
        recalculate_aggregates(self.folio)

        self.folio.refresh_from_db()
        self.assertEqual(
            (self.folio.subtotal, self.folio.tax_amount, self.folio.balance_due),
            before,
        )

    def test_inconsistent_aggregates_cannot_be_saved(self):
        self.folio.total_amount = Decimal("999.00")

        with self.assertRaises(ValidationError):
            self.folio.save()


class FolioImmutabilityTests(TestCase):
    def setUp(self):
        self.hotel = make_hotel()
        self.folio = open_folio(booking_id=make_booking(self.hotel).id)
        self.item = self.folio.items.get()

    def test_item_fields_cannot_be_edited(self):
        self.item.description = "Free upgrade"

        with self.assertRaises(ValidationError):
            self.item.save()

    def test_item_amount_cannot_be_edited(self):
        self.item.unit_price = Decimal("1.00")

        with self.assertRaises(ValidationError):
            self.item.save()

    def test_items_cannot_be_deleted(self):
        with self.assertRaises(RuntimeError):
            self.item.delete()

    def test_folios_cannot_be_deleted(self):
        with self.assertRaises(RuntimeError):
            self.folio.delete()

    def test_payments_are_immutable(self):
        payment = record_payment(folio_id=self.folio.id, amount="10.00", method="CASH")
        payment.amount = Decimal("1000.00")

        with self.assertRaises(RuntimeError):
            payment.save()

        with self.assertRaises(RuntimeError):
            payment.delete()

    def test_closed_folio_cannot_be_saved(self):
        record_payment(folio_id=self.folio.id, amount="330.00", method="CARD")
        close_folio(folio_id=self.folio.id)

        folio = Folio.objects.get(pk=self.folio.pk)
        folio.billing_name = "Someone Else"

        with self.assertRaises(ValidationError):
            folio.save()
