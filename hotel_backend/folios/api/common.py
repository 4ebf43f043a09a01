"""
======================================================
PATH: folios/api/common.py
======================================================
SHARED BILLING API HELPERS

- error_response: canonical {"error": {"code", "message"}} body
- billing_error_response: domain error -> HTTP status + code
- resolve_hotel_id: the hotel scope of the current request
======================================================
"""

from __future__ import annotations

import uuid

from rest_framework import status
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response

from folios.services.exceptions import (
    BillingError,
    BillingNotFoundError,
    BillingValidationError,
    InsufficientPaymentError,
    InvalidStateError,
    LedgerContentionError,
)

# Most specific first
ERROR_MAP = (
    (BillingNotFoundError, "NOT_FOUND", status.HTTP_404_NOT_FOUND),
    (InsufficientPaymentError, "INSUFFICIENT_PAYMENT", status.HTTP_409_CONFLICT),
    (InvalidStateError, "INVALID_STATE", status.HTTP_409_CONFLICT),
    (BillingValidationError, "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST),
    (LedgerContentionError, "RETRYABLE_CONFLICT", status.HTTP_503_SERVICE_UNAVAILABLE),
)


def error_response(*, code: str, message: str, http_status: int, **details):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message}
    body.update(details)
    return Response({"error": body}, status=http_status)


def billing_error_response(exc: BillingError):
    details = {}
    if isinstance(exc, InsufficientPaymentError) and exc.balance_due is not None:
        details = {"balance_due": str(exc.balance_due), "currency": exc.currency}
    if isinstance(exc, LedgerContentionError):
        details = {"retryable": True}

    for exc_type, code, http_status in ERROR_MAP:
        if isinstance(exc, exc_type):
            return error_response(
                code=code,
                message=str(exc),
                http_status=http_status,
                **details,
            )

    return error_response(
        code="BILLING_ERROR",
        message=str(exc),
        http_status=status.HTTP_400_BAD_REQUEST,
    )


def resolve_hotel_id(request):
    """
    Staff act on their own hotel only.
    Superusers may target a hotel via ?hotel_id= / body hotel_id,
    or see every hotel when none is given (returns None).
    """
    user = request.user

    if getattr(user, "is_superuser", False):
        raw = request.query_params.get("hotel_id") or (
            request.data.get("hotel_id") if hasattr(request.data, "get") else None
        )
        if not raw:
            return getattr(user, "hotel_id", None)
        return _parse_uuid(raw)

    hotel_id = getattr(user, "hotel_id", None)
    if hotel_id is None:
        raise PermissionDenied("Your account is not attached to a hotel.")
    return hotel_id


def _parse_uuid(raw):
    try:
        return uuid.UUID(str(raw))
    except ValueError as exc:
        raise ValidationError({"hotel_id": "Must be a valid UUID."}) from exc
