"""
======================================================
PATH: folios/services/events.py
======================================================
DOMAIN EVENTS (POST-COMMIT, BEST-EFFORT)

Ledger services never talk to a notification transport directly.
They receive a DomainEventEmitter and call emit_after_commit().

Rules:
- Events fire ONLY after the surrounding transaction commits
  (transaction.on_commit). A rolled-back mutation emits nothing.
- Failures, emitter lookup included, are logged and swallowed.
  Committed ledger state is never affected.

Default emitter: SignalEventEmitter (Django signal `billing_event`).
Override with settings.FOLIO_EVENT_EMITTER (dotted path).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from django.conf import settings
from django.db import transaction
from django.dispatch import Signal
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)

# ============================================================
# EVENT TYPES
# ============================================================

FOLIO_OPENED = "folio.opened"
FOLIO_CHARGE_POSTED = "folio.charge_posted"
FOLIO_ITEM_VOIDED = "folio.item_voided"
FOLIO_PAYMENT_RECORDED = "folio.payment_recorded"
FOLIO_CLOSED = "folio.closed"

INVOICE_GENERATED = "invoice.generated"
INVOICE_PAID = "invoice.paid"
INVOICE_CANCELLED = "invoice.cancelled"

# Receivers get: sender, event_type, payload
billing_event = Signal()

DEFAULT_EMITTER_PATH = "folios.services.events.SignalEventEmitter"


# ============================================================
# EMITTERS
# ============================================================


class DomainEventEmitter:
    """Transport-agnostic emission interface."""

    def emit(self, event_type: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError


class SignalEventEmitter(DomainEventEmitter):
    def emit(self, event_type, payload):
        results = billing_event.send_robust(
            sender=self.__class__,
            event_type=event_type,
            payload=payload,
        )
        for receiver, response in results:
            if isinstance(response, Exception):
                logger.error(
                    "Billing event receiver failed",
                    exc_info=response,
                    extra={
                        "event_type": event_type,
                        "receiver": getattr(receiver, "__qualname__", repr(receiver)),
                    },
                )


def get_event_emitter() -> DomainEventEmitter:
    path = getattr(settings, "FOLIO_EVENT_EMITTER", "") or DEFAULT_EMITTER_PATH
    return import_string(path)()


# ============================================================
# POST-COMMIT DISPATCH
# ============================================================


def emit_after_commit(
    event_type: str,
    payload: dict[str, Any],
    *,
    emitter: Optional[DomainEventEmitter] = None,
) -> None:
    def _dispatch():
        try:
            (emitter or get_event_emitter()).emit(event_type, payload)
        except Exception:
            logger.exception(
                "Billing event emission failed",
                extra={"event_type": event_type},
            )

    transaction.on_commit(_dispatch)
