"""
======================================================
PATH: folios/services/coordinator.py
======================================================
FOLIO LIFECYCLE COORDINATOR

open_folio  (check-in)
- IDEMPOTENT: an existing folio for the booking is returned unchanged
- allocates F-{year}-{seq} per hotel
- creates an OPEN folio with zero totals
- posts the initial room charge (nights x nightly rate) in the SAME transaction

close_folio (check-out)
- OPEN -> CLOSED only (CLOSED is terminal)
- positive balance requires allow_unpaid + an authenticated actor + a reason,
  recorded as an immutable FolioCloseOverride
- applies loyalty accrual to the guest in the SAME transaction

Events (folio.opened / folio.closed) fire after commit only.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from folios.models import Folio, FolioCloseOverride, FolioItem
from folios.models.sequence import DocumentSequence
from folios.services.events import FOLIO_CLOSED, FOLIO_OPENED, emit_after_commit
from folios.services.exceptions import (
    BillingNotFoundError,
    BillingValidationError,
    InsufficientPaymentError,
    InvalidStateError,
)
from folios.services.folio_lifecycle import validate_transition
from folios.services.ledger import Charge, post_charge, recalculate_aggregates
from folios.services.locking import lock_folio, surface_contention
from folios.services.numbering import allocate_document_number
from guests.services.loyalty import apply_stay_accrual
from hotels.models import Booking

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

BILLING_FIELDS = ("billing_name", "billing_address", "billing_email", "billing_phone")


def _actor(user):
    return user if getattr(user, "is_authenticated", False) else None


def lock_booking(*, booking_id, hotel_id=None) -> Booking:
    qs = Booking.objects.select_for_update(of=("self",)).select_related(
        "hotel",
        "guest",
        "room",
        "room__room_type",
    )
    if hotel_id is not None:
        qs = qs.filter(hotel_id=hotel_id)

    try:
        return qs.get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, DjangoValidationError) as exc:
        raise BillingNotFoundError(f"Booking {booking_id} not found") from exc


def _resolve_billing_identity(booking: Booking, billing_info: dict) -> dict:
    guest = booking.guest
    fallback = {
        "billing_name": guest.full_name,
        "billing_address": guest.address,
        "billing_email": guest.email,
        "billing_phone": guest.phone,
    }

    identity = {}
    for key in BILLING_FIELDS:
        value = (billing_info.get(key) or "").strip()
        identity[key] = value or (fallback[key] or "")

    if not identity["billing_name"]:
        raise BillingValidationError("A billing name is required to open a folio")

    return identity


# ============================================================
# OPEN
# ============================================================


@surface_contention
@transaction.atomic
def open_folio(
    *,
    booking_id,
    billing_info: Optional[dict] = None,
    user=None,
    hotel_id=None,
    emitter=None,
) -> Folio:
    billing_info = billing_info or {}

    booking = lock_booking(booking_id=booking_id, hotel_id=hotel_id)

    existing = Folio.objects.filter(booking=booking).first()
    if existing is not None:
        return existing

    if booking.status == Booking.STATUS_CANCELLED:
        raise InvalidStateError(f"Cannot open a folio for cancelled booking {booking.id}")

    nights = booking.nights
    if nights <= 0:
        raise BillingValidationError("Check-out date must be after check-in date")

    nightly_rate = billing_info.get("nightly_rate")
    if nightly_rate is None:
        nightly_rate = booking.resolve_nightly_rate()

    room_tax_rate = billing_info.get("room_tax_rate")
    if room_tax_rate is None:
        room_tax_rate = booking.hotel.room_tax_rate

    currency = (
        billing_info.get("currency")
        or booking.hotel.currency
        or settings.FOLIO_DEFAULT_CURRENCY
    ).strip().upper()

    identity = _resolve_billing_identity(booking, billing_info)
    actor = _actor(user)

    try:
        with transaction.atomic():
            folio = Folio.objects.create(
                hotel=booking.hotel,
                booking=booking,
                guest=booking.guest,
                folio_number=allocate_document_number(
                    hotel_id=booking.hotel_id,
                    kind=DocumentSequence.KIND_FOLIO,
                ),
                currency=currency,
                opened_by=actor,
                **identity,
            )
    except IntegrityError:
        # Concurrent open won the unique(booking) race
        existing = Folio.objects.filter(booking=booking).first()
        if existing is not None:
            return existing
        raise

    post_charge(
        folio_id=folio.id,
        charge=Charge(
            description=f"Room {booking.room.number} - {nights} night(s)",
            category=FolioItem.CATEGORY_ROOM,
            quantity=Decimal(nights),
            unit_price=nightly_rate,
            tax_rate=room_tax_rate,
            service_date=timezone.now(),
            reference_id=str(booking.id),
            reference_type=FolioItem.REFERENCE_ROOM_CHARGE,
        ),
        user=actor,
        emitter=emitter,
    )

    folio.refresh_from_db()

    logger.info(
        "Folio opened",
        extra={
            "folio_id": str(folio.id),
            "folio_number": folio.folio_number,
            "booking_id": str(booking.id),
            "nights": nights,
            "total_amount": str(folio.total_amount),
        },
    )

    emit_after_commit(
        FOLIO_OPENED,
        {
            "folio_id": str(folio.id),
            "folio_number": folio.folio_number,
            "booking_id": str(booking.id),
            "guest_id": str(folio.guest_id),
            "hotel_id": str(folio.hotel_id),
        },
        emitter=emitter,
    )

    return folio


# ============================================================
# CLOSE
# ============================================================


@surface_contention
@transaction.atomic
def close_folio(
    *,
    folio_id,
    allow_unpaid: bool = False,
    override_reason: str = "",
    user=None,
    hotel_id=None,
    emitter=None,
) -> Folio:
    folio = lock_folio(folio_id=folio_id, hotel_id=hotel_id)
    validate_transition(folio=folio, target_status=Folio.STATUS_CLOSED)

    recalculate_aggregates(folio)
    actor = _actor(user)

    if folio.balance_due > ZERO:
        if not allow_unpaid:
            raise InsufficientPaymentError(
                f"Cannot close folio with outstanding balance: "
                f"{folio.currency} {folio.balance_due}",
                balance_due=folio.balance_due,
                currency=folio.currency,
            )

        override_reason = (override_reason or "").strip()
        if not override_reason:
            raise BillingValidationError(
                "A reason is required to close a folio with an outstanding balance"
            )
        if actor is None:
            raise BillingValidationError(
                "An authenticated user is required to close an unpaid folio"
            )

        FolioCloseOverride.objects.create(
            folio=folio,
            authorized_by=actor,
            reason=override_reason,
            balance_due=folio.balance_due,
            currency=folio.currency,
        )

        logger.warning(
            "Unpaid folio close override",
            extra={
                "folio_id": str(folio.id),
                "balance_due": str(folio.balance_due),
                "authorized_by": str(actor.pk),
                "reason": override_reason,
            },
        )

    folio.status = Folio.STATUS_CLOSED
    folio.closed_at = timezone.now()
    folio.closed_by = actor
    folio.save(update_fields=["status", "closed_at", "closed_by", "updated_at"])

    guest = apply_stay_accrual(
        guest_id=folio.guest_id,
        stay_total=folio.total_amount,
        stay_date=folio.closed_at,
    )

    logger.info(
        "Folio closed",
        extra={
            "folio_id": str(folio.id),
            "folio_number": folio.folio_number,
            "total_amount": str(folio.total_amount),
            "balance_due": str(folio.balance_due),
            "loyalty_tier": guest.loyalty_tier,
        },
    )

    emit_after_commit(
        FOLIO_CLOSED,
        {
            "folio_id": str(folio.id),
            "folio_number": folio.folio_number,
            "total_amount": str(folio.total_amount),
            "balance_due": str(folio.balance_due),
            "forced": folio.balance_due > ZERO,
        },
        emitter=emitter,
    )

    return folio
