# folios/tests/test_events.py

from __future__ import annotations

from decimal import Decimal

from django.test import TestCase, override_settings

from folios.models import Folio
from folios.services import events
from folios.services.coordinator import close_folio, open_folio
from folios.services.exceptions import BillingValidationError
from folios.services.ledger import Charge, post_charge
from folios.services.payments import record_payment
from folios.tests.factories import (
    ExplodingEmitter,
    RecordingEmitter,
    make_booking,
    make_hotel,
)


class CollectingEmitter(events.DomainEventEmitter):
    collected = []

    def emit(self, event_type, payload):
        CollectingEmitter.collected.append(event_type)


class PostCommitEventTests(TestCase):
    def setUp(self):
        self.hotel = make_hotel()
        self.booking = make_booking(self.hotel)
        self.emitter = RecordingEmitter()

    def test_events_fire_only_on_commit(self):
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            open_folio(booking_id=self.booking.id, emitter=self.emitter)

        # Nothing emitted until the transaction commits
        self.assertEqual(self.emitter.events, [])
        self.assertEqual(len(callbacks), 2)

        for callback in callbacks:
            callback()

        self.assertEqual(
            self.emitter.types,
            [events.FOLIO_CHARGE_POSTED, events.FOLIO_OPENED],
        )

    def test_lifecycle_event_sequence(self):
        with self.captureOnCommitCallbacks(execute=True):
            folio = open_folio(booking_id=self.booking.id, emitter=self.emitter)
            record_payment(
                folio_id=folio.id,
                amount="330.00",
                method="CASH",
                emitter=self.emitter,
            )
            close_folio(folio_id=folio.id, emitter=self.emitter)

        self.assertEqual(
            self.emitter.types,
            [
                events.FOLIO_CHARGE_POSTED,
                events.FOLIO_OPENED,
                events.FOLIO_PAYMENT_RECORDED,
                events.FOLIO_CLOSED,
            ],
        )

        _, closed_payload = self.emitter.events[-1]
        self.assertEqual(closed_payload["folio_id"], str(folio.id))
        self.assertFalse(closed_payload["forced"])

    def test_failed_mutation_emits_nothing(self):
        folio = open_folio(booking_id=self.booking.id)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(BillingValidationError):
                post_charge(
                    folio_id=folio.id,
                    charge=Charge(
                        description="",
                        category="OTHER",
                        quantity=Decimal("1"),
                        unit_price=Decimal("1.00"),
                    ),
                    emitter=self.emitter,
                )

        self.assertEqual(callbacks, [])
        self.assertEqual(self.emitter.events, [])

    def test_emitter_failure_does_not_affect_ledger(self):
        with self.assertLogs("folios.services.events", level="ERROR"):
            with self.captureOnCommitCallbacks(execute=True):
                folio = open_folio(booking_id=self.booking.id, emitter=ExplodingEmitter())

        folio = Folio.objects.get(pk=folio.pk)
        self.assertEqual(folio.total_amount, Decimal("330.00"))

    @override_settings(FOLIO_EVENT_EMITTER="folios.services.events.MissingEmitter")
    def test_unimportable_emitter_does_not_roll_back_charge(self):
        folio = open_folio(booking_id=self.booking.id, emitter=self.emitter)

        with self.assertLogs("folios.services.events", level="ERROR"):
            with self.captureOnCommitCallbacks(execute=True):
                post_charge(
                    folio_id=folio.id,
                    charge=Charge(
                        description="Dinner",
                        category="FOOD_BEVERAGE",
                        quantity=Decimal("1"),
                        unit_price=Decimal("25.00"),
                    ),
                )

        self.assertEqual(folio.items.count(), 2)
        self.assertEqual(Folio.objects.get(pk=folio.pk).subtotal, Decimal("325.00"))

    def test_signal_receiver_failure_is_logged(self):
        def broken_receiver(sender, event_type, payload, **kwargs):
            raise RuntimeError("receiver down")

        received = []

        def good_receiver(sender, event_type, payload, **kwargs):
            received.append(event_type)

        events.billing_event.connect(broken_receiver)
        events.billing_event.connect(good_receiver)
        self.addCleanup(events.billing_event.disconnect, broken_receiver)
        self.addCleanup(events.billing_event.disconnect, good_receiver)

        with self.assertLogs("folios.services.events", level="ERROR"):
            events.SignalEventEmitter().emit(events.FOLIO_OPENED, {"folio_id": "x"})

        self.assertEqual(received, [events.FOLIO_OPENED])

    @override_settings(FOLIO_EVENT_EMITTER="folios.tests.test_events.CollectingEmitter")
    def test_emitter_is_configurable(self):
        CollectingEmitter.collected = []

        self.assertIsInstance(events.get_event_emitter(), CollectingEmitter)

        with self.captureOnCommitCallbacks(execute=True):
            open_folio(booking_id=self.booking.id)

        self.assertIn(events.FOLIO_OPENED, CollectingEmitter.collected)
