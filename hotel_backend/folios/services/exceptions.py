# folios/services/exceptions.py

"""
BILLING SERVICE ERRORS

Centralized domain errors for the folio ledger and invoice services.

Idempotent operations (open folio, generate invoice) never raise on
duplicates: they return the existing record.
"""


class BillingError(Exception):
    """Base exception for all billing service failures."""


class BillingNotFoundError(BillingError):
    """Raised when a folio, item, invoice or booking is missing or belongs to another hotel."""


class InvalidStateError(BillingError):
    """Raised when an operation is not allowed in the record's current state."""


class InsufficientPaymentError(BillingError):
    """Raised when closing a folio that still carries a positive balance."""

    def __init__(self, message, *, balance_due=None, currency=None):
        super().__init__(message)
        self.balance_due = balance_due
        self.currency = currency


class BillingValidationError(BillingError):
    """Raised on invalid input (amounts, charge fields, billing identity)."""


class LedgerContentionError(BillingError):
    """Raised when the database aborts a ledger transaction on lock contention."""

    retryable = True
