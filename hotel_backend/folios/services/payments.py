"""
======================================================
PATH: folios/services/payments.py
======================================================
FOLIO PAYMENT RECORDER

Records captured payments against an OPEN folio.

Rules:
- amount must be > 0
- currency must match the folio (no conversion in this core)
- CLOSED folios reject payments; post-close settlement is an
  invoice-level payment (invoices.services.invoice_service)
- aggregates are re-derived in the same transaction
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction

from folios.models import FolioPayment
from folios.models.sequence import DocumentSequence
from folios.services.events import FOLIO_PAYMENT_RECORDED, emit_after_commit
from folios.services.exceptions import BillingValidationError
from folios.services.folio_lifecycle import require_open
from folios.services.ledger import recalculate_aggregates
from folios.services.locking import lock_folio, surface_contention
from folios.services.numbering import allocate_document_number

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

VALID_METHODS = {code for code, _ in FolioPayment.METHOD_CHOICES}


def _money(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise BillingValidationError(f"Invalid payment amount: {value!r}") from exc
    return amount.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def validate_payment_input(*, amount, method: str) -> tuple[Decimal, str]:
    if amount is None or amount == "":
        raise BillingValidationError("Payment amount is required")

    amount = _money(amount)
    if amount <= 0:
        raise BillingValidationError("Payment amount must be greater than zero")

    method = (method or "").strip().upper()
    if method not in VALID_METHODS:
        raise BillingValidationError(f"Unsupported payment method: {method!r}")

    return amount, method


@surface_contention
@transaction.atomic
def record_payment(
    *,
    folio_id,
    amount,
    method: str,
    currency: str | None = None,
    reference: str = "",
    payment_date=None,
    user=None,
    hotel_id=None,
    emitter=None,
) -> FolioPayment:
    amount, method = validate_payment_input(amount=amount, method=method)

    folio = lock_folio(folio_id=folio_id, hotel_id=hotel_id)
    require_open(folio=folio, action="record payments")

    currency = (currency or folio.currency).strip().upper()
    if currency != folio.currency:
        raise BillingValidationError(
            f"Payment currency {currency} does not match folio currency {folio.currency}"
        )

    logger.info(
        "Recording folio payment",
        extra={
            "folio_id": str(folio.id),
            "amount": str(amount),
            "method": method,
        },
    )

    create_kwargs = {
        "folio": folio,
        "receipt_number": allocate_document_number(
            hotel_id=folio.hotel_id,
            kind=DocumentSequence.KIND_RECEIPT,
        ),
        "amount": amount,
        "currency": currency,
        "method": method,
        "reference": (reference or "").strip(),
        "recorded_by": user if getattr(user, "is_authenticated", False) else None,
    }
    if payment_date is not None:
        create_kwargs["payment_date"] = payment_date

    payment = FolioPayment.objects.create(**create_kwargs)

    recalculate_aggregates(folio)

    logger.info(
        "Payment recorded",
        extra={
            "folio_id": str(folio.id),
            "payment_id": str(payment.id),
            "receipt_number": payment.receipt_number,
            "paid_amount": str(folio.paid_amount),
            "balance_due": str(folio.balance_due),
            "payment_status": folio.payment_status,
        },
    )

    emit_after_commit(
        FOLIO_PAYMENT_RECORDED,
        {
            "folio_id": str(folio.id),
            "payment_id": str(payment.id),
            "amount": str(payment.amount),
            "method": payment.method,
            "payment_status": folio.payment_status,
        },
        emitter=emitter,
    )

    return payment
