"""
======================================================
PATH: folios/services/front_desk.py
======================================================
FRONT DESK BILLING FACADE

Inbound operations called by the booking workflow and billing UI.
Every call is scoped to the requesting hotel: records owned by another
hotel are reported as not found.

- check_in               -> open_folio (+ initial room charge), booking CHECKED_IN
- add_charge             -> post_charge
- record_folio_payment   -> record_payment
- check_out              -> close_folio (+ loyalty accrual), booking CHECKED_OUT
- generate_folio_invoice -> generate_invoice
"""

from __future__ import annotations

from typing import Optional, Union

from django.db import transaction
from django.utils import timezone

from folios.models import Folio, FolioItem, FolioPayment
from folios.services.coordinator import close_folio, lock_booking, open_folio
from folios.services.exceptions import BillingNotFoundError, InvalidStateError
from folios.services.ledger import Charge, post_charge
from folios.services.locking import surface_contention
from folios.services.payments import record_payment
from hotels.models import Booking
from invoices.models import Invoice
from invoices.services.invoice_service import generate_invoice


@surface_contention
@transaction.atomic
def check_in(
    *,
    hotel_id,
    booking_id,
    billing_info: Optional[dict] = None,
    user=None,
    emitter=None,
) -> Folio:
    booking = lock_booking(booking_id=booking_id, hotel_id=hotel_id)

    if booking.status in (Booking.STATUS_CANCELLED, Booking.STATUS_CHECKED_OUT):
        raise InvalidStateError(
            f"Cannot check in booking {booking.id} with status {booking.status}"
        )

    folio = open_folio(
        booking_id=booking.id,
        billing_info=billing_info,
        user=user,
        hotel_id=hotel_id,
        emitter=emitter,
    )

    if booking.status == Booking.STATUS_CONFIRMED:
        booking.status = Booking.STATUS_CHECKED_IN
        booking.checked_in_at = timezone.now()
        booking.save(update_fields=["status", "checked_in_at", "updated_at"])

    return folio


def add_charge(
    *,
    hotel_id,
    folio_id,
    charge: Union[Charge, dict],
    user=None,
    emitter=None,
) -> FolioItem:
    if isinstance(charge, dict):
        charge = Charge.from_dict(charge)

    return post_charge(
        folio_id=folio_id,
        charge=charge,
        user=user,
        hotel_id=hotel_id,
        emitter=emitter,
    )


def record_folio_payment(
    *,
    hotel_id,
    folio_id,
    payment: dict,
    user=None,
    emitter=None,
) -> FolioPayment:
    return record_payment(
        folio_id=folio_id,
        amount=payment.get("amount"),
        method=payment.get("method", ""),
        currency=payment.get("currency"),
        reference=payment.get("reference", ""),
        payment_date=payment.get("payment_date"),
        user=user,
        hotel_id=hotel_id,
        emitter=emitter,
    )


@surface_contention
@transaction.atomic
def check_out(
    *,
    hotel_id,
    booking_id,
    allow_unpaid: bool = False,
    override_reason: str = "",
    user=None,
    emitter=None,
) -> Folio:
    booking = lock_booking(booking_id=booking_id, hotel_id=hotel_id)

    if booking.status != Booking.STATUS_CHECKED_IN:
        raise InvalidStateError(
            f"Cannot check out booking {booking.id} with status {booking.status}"
        )

    folio_id = (
        Folio.objects.filter(booking=booking).values_list("id", flat=True).first()
    )
    if folio_id is None:
        raise BillingNotFoundError(f"No folio found for booking {booking.id}")

    folio = close_folio(
        folio_id=folio_id,
        allow_unpaid=allow_unpaid,
        override_reason=override_reason,
        user=user,
        hotel_id=hotel_id,
        emitter=emitter,
    )

    booking.status = Booking.STATUS_CHECKED_OUT
    booking.checked_out_at = timezone.now()
    booking.save(update_fields=["status", "checked_out_at", "updated_at"])

    return folio


def generate_folio_invoice(
    *,
    hotel_id,
    folio_id,
    options: Optional[dict] = None,
    user=None,
    emitter=None,
) -> Invoice:
    options = options or {}
    return generate_invoice(
        folio_id=folio_id,
        due_date=options.get("due_date"),
        notes=options.get("notes", ""),
        terms_and_conditions=options.get("terms_and_conditions", ""),
        user=user,
        hotel_id=hotel_id,
        emitter=emitter,
    )
