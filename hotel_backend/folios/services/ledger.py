"""
======================================================
PATH: folios/services/ledger.py
======================================================
FOLIO LEDGER

This module is the ONLY place allowed to:
- Insert FolioItem rows (charges and reversals)
- Mark items voided
- Write folio aggregates (subtotal, tax, total, paid, balance, payment status)

GUARANTEES:
- Every mutation runs in ONE transaction on a row-locked folio
- Aggregates are fully re-summed from rows inside that same transaction
- Items are never deleted or edited; voids are additive reversals
- Only OPEN folios accept posts and voids
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from folios.models import Folio, FolioItem, FolioPayment
from folios.services.events import (
    FOLIO_CHARGE_POSTED,
    FOLIO_ITEM_VOIDED,
    emit_after_commit,
)
from folios.services.exceptions import BillingValidationError, InvalidStateError
from folios.services.folio_lifecycle import require_open
from folios.services.locking import lock_folio, lock_item_folio, surface_contention

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
MAX_TAX_RATE = Decimal("100")
# FolioItem.quantity is DecimalField(max_digits=10, decimal_places=2)
MAX_QUANTITY = Decimal("100000000")

VALID_CATEGORIES = {code for code, _ in FolioItem.CATEGORY_CHOICES}


def _money(value) -> Decimal:
    return Decimal(str(value or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _decimal(value, *, field_name: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise BillingValidationError(f"Invalid {field_name}: {value!r}") from exc


# ============================================================
# CHARGE INPUT
# ============================================================


@dataclass(frozen=True)
class Charge:
    description: str
    category: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal = ZERO
    service_date: Optional[datetime] = None
    reference_id: str = ""
    reference_type: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Charge":
        return cls(
            description=data.get("description") or "",
            category=data.get("category") or "",
            quantity=data.get("quantity", 1),
            unit_price=data.get("unit_price"),
            tax_rate=data.get("tax_rate") or ZERO,
            service_date=data.get("service_date"),
            reference_id=str(data.get("reference_id") or ""),
            reference_type=str(data.get("reference_type") or ""),
        )


def _validated_charge_fields(charge: Charge) -> dict:
    description = (charge.description or "").strip()
    if not description:
        raise BillingValidationError("Charge description is required")

    category = (charge.category or "").strip().upper()
    if category not in VALID_CATEGORIES:
        raise BillingValidationError(f"Unknown charge category: {charge.category!r}")

    if charge.unit_price is None:
        raise BillingValidationError("Charge unit_price is required")

    quantity = _decimal(charge.quantity, field_name="quantity")
    unit_price = _decimal(charge.unit_price, field_name="unit_price")
    tax_rate = _decimal(charge.tax_rate, field_name="tax_rate")

    if not quantity.is_finite():
        raise BillingValidationError("Charge quantity must be a finite number")
    if abs(quantity) >= MAX_QUANTITY:
        raise BillingValidationError("Charge quantity is too large")
    if quantity != quantity.quantize(TWOPLACES):
        raise BillingValidationError("Charge quantity allows at most 2 decimal places")
    if quantity == 0:
        raise BillingValidationError("Charge quantity must be non-zero")
    if unit_price < 0:
        raise BillingValidationError("Charge unit_price cannot be negative")
    if tax_rate < 0 or tax_rate > MAX_TAX_RATE:
        raise BillingValidationError("Charge tax_rate must be between 0 and 100")

    return {
        "description": description,
        "category": category,
        "quantity": quantity.quantize(TWOPLACES),
        "unit_price": _money(unit_price),
        "tax_rate": tax_rate.quantize(TWOPLACES, rounding=ROUND_HALF_UP),
        "service_date": charge.service_date or timezone.now(),
        "reference_id": charge.reference_id or "",
        "reference_type": charge.reference_type or "",
    }


# ============================================================
# AGGREGATES
# ============================================================


def derive_payment_status(*, total_amount: Decimal, paid_amount: Decimal) -> str:
    if paid_amount == ZERO:
        return Folio.PAYMENT_UNPAID
    if paid_amount >= total_amount:
        return Folio.PAYMENT_PAID
    return Folio.PAYMENT_PARTIALLY_PAID


def recalculate_aggregates(folio: Folio) -> Folio:
    """
    Re-derive every aggregate from item and payment rows.

    Caller MUST hold the folio row lock inside an open transaction.
    Voided charges drop out of the sums; their reversal rows are audit
    companions carrying the exact negation, so each pair nets to zero.
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("recalculate_aggregates must run inside the mutating transaction")

    item_totals = FolioItem.objects.filter(
        folio=folio,
        entry_type=FolioItem.ENTRY_CHARGE,
        is_voided=False,
    ).aggregate(
        subtotal=Coalesce(Sum("total_price"), ZERO),
        tax=Coalesce(Sum("tax_amount"), ZERO),
    )

    paid = FolioPayment.objects.filter(
        folio=folio,
        status=FolioPayment.STATUS_COMPLETED,
    ).aggregate(total=Coalesce(Sum("amount"), ZERO))["total"]

    folio.subtotal = _money(item_totals["subtotal"])
    folio.tax_amount = _money(item_totals["tax"])
    folio.total_amount = folio.subtotal + folio.tax_amount
    folio.paid_amount = _money(paid)
    folio.balance_due = folio.total_amount - folio.paid_amount
    folio.payment_status = derive_payment_status(
        total_amount=folio.total_amount,
        paid_amount=folio.paid_amount,
    )

    folio.save(
        update_fields=[
            "subtotal",
            "tax_amount",
            "total_amount",
            "paid_amount",
            "balance_due",
            "payment_status",
            "updated_at",
        ]
    )
    return folio


# ============================================================
# POST
# ============================================================


@surface_contention
@transaction.atomic
def post_charge(
    *,
    folio_id,
    charge: Charge,
    user=None,
    hotel_id=None,
    emitter=None,
) -> FolioItem:
    """
    Append one charge line to an OPEN folio and re-derive aggregates.
    """
    folio = lock_folio(folio_id=folio_id, hotel_id=hotel_id)
    require_open(folio=folio, action="add items")

    fields = _validated_charge_fields(charge)

    item = FolioItem.objects.create(
        folio=folio,
        entry_type=FolioItem.ENTRY_CHARGE,
        posted_by=user if getattr(user, "is_authenticated", False) else None,
        **fields,
    )

    recalculate_aggregates(folio)

    logger.info(
        "Charge posted",
        extra={
            "folio_id": str(folio.id),
            "item_id": str(item.id),
            "category": item.category,
            "total_price": str(item.total_price),
            "tax_amount": str(item.tax_amount),
            "balance_due": str(folio.balance_due),
        },
    )

    emit_after_commit(
        FOLIO_CHARGE_POSTED,
        {
            "folio_id": str(folio.id),
            "item_id": str(item.id),
            "total_price": str(item.total_price),
            "tax_amount": str(item.tax_amount),
        },
        emitter=emitter,
    )

    return item


# ============================================================
# VOID
# ============================================================


@surface_contention
@transaction.atomic
def void_item(
    *,
    item_id,
    reason: str,
    user=None,
    hotel_id=None,
    emitter=None,
) -> FolioItem:
    """
    Void a charge by marking it and appending an equal-and-opposite
    REVERSAL row. Returns the reversal.
    """
    reason = (reason or "").strip()
    if not reason:
        raise BillingValidationError("A void reason is required")

    item, folio = lock_item_folio(item_id=item_id, hotel_id=hotel_id)
    require_open(folio=folio, action="void items")

    if item.is_reversal:
        raise InvalidStateError("Reversal entries cannot be voided")
    if item.is_voided:
        raise InvalidStateError(f"Folio item {item.id} is already voided")

    actor = user if getattr(user, "is_authenticated", False) else None
    now = timezone.now()

    item.is_voided = True
    item.voided_at = now
    item.voided_by = actor
    item.void_reason = reason
    item.save(update_fields=["is_voided", "voided_at", "voided_by", "void_reason"])

    reversal = FolioItem.objects.create(
        folio=folio,
        entry_type=FolioItem.ENTRY_REVERSAL,
        description=f"VOID: {item.description} ({reason})",
        category=item.category,
        quantity=-item.quantity,
        unit_price=item.unit_price,
        tax_rate=item.tax_rate,
        service_date=item.service_date,
        posted_at=now,
        posted_by=actor,
        reference_id=str(item.id),
        reference_type=FolioItem.REFERENCE_VOID,
    )

    if reversal.total_price != -item.total_price or reversal.tax_amount != -item.tax_amount:
        raise RuntimeError("Reversal amounts do not negate the original item")

    recalculate_aggregates(folio)

    logger.info(
        "Item voided",
        extra={
            "folio_id": str(folio.id),
            "item_id": str(item.id),
            "reversal_id": str(reversal.id),
            "reason": reason,
            "balance_due": str(folio.balance_due),
        },
    )

    emit_after_commit(
        FOLIO_ITEM_VOIDED,
        {
            "folio_id": str(folio.id),
            "item_id": str(item.id),
            "reversal_id": str(reversal.id),
            "reason": reason,
        },
        emitter=emitter,
    )

    return reversal
