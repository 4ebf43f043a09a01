"""
FOLIO LIFECYCLE DOMAIN RULES

OPEN --close--> CLOSED (terminal; no reopen path)

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Single source of truth for folio state checks
"""

from folios.models import Folio
from folios.services.exceptions import InvalidStateError

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    Folio.STATUS_CLOSED,
}

ALLOWED_TRANSITIONS = {
    Folio.STATUS_OPEN: {
        Folio.STATUS_CLOSED,
    },
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, folio: Folio, target_status: str):
    if not can_transition(
        from_status=folio.status,
        to_status=target_status,
    ):
        raise InvalidStateError(
            f"Folio {folio.folio_number} cannot transition from "
            f"'{folio.status}' to '{target_status}'"
        )


def require_open(*, folio: Folio, action: str):
    if folio.status != Folio.STATUS_OPEN:
        raise InvalidStateError(
            f"Cannot {action} on {folio.status} folio {folio.folio_number}"
        )
