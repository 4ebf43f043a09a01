"""
PATH: guests/services/loyalty.py

LOYALTY ACCRUAL POLICY

Applied exactly once per stay, inside the folio close transaction.

RULES:
- total_stays += 1
- total_spent += folio total_amount
- tier = highest tier whose spend threshold <= total_spent
- tiers only move UP (a lower computed tier never downgrades a guest)
- VIP flag is raised for the top two tiers of the table
- VIP is never cleared here (staff may grant VIP manually)

The threshold table is settings.LOYALTY_TIERS:
    [("10000.00", "SILVER"), ("25000.00", "GOLD"), ("50000.00", "PLATINUM")]
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from django.utils import timezone

from guests.models import Guest

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

DEFAULT_TIER_TABLE = (
    ("10000.00", Guest.TIER_SILVER),
    ("25000.00", Guest.TIER_GOLD),
    ("50000.00", Guest.TIER_PLATINUM),
)

VIP_TIER_COUNT = 2


def _money(v) -> Decimal:
    return Decimal(str(v or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# ============================================================
# TIER TABLE
# ============================================================


def get_tier_table(raw: Optional[Iterable] = None) -> list[tuple[Decimal, str]]:
    """
    Ordered (ascending threshold) tier table.
    """
    if raw is None:
        raw = getattr(settings, "LOYALTY_TIERS", DEFAULT_TIER_TABLE)

    known = {code for code, _ in Guest.TIER_CHOICES} - {Guest.TIER_NONE}
    table = []

    for threshold, tier in raw:
        try:
            amount = _money(threshold)
        except InvalidOperation as exc:
            raise ImproperlyConfigured(
                f"Invalid loyalty threshold {threshold!r}"
            ) from exc

        if tier not in known:
            raise ImproperlyConfigured(f"Unknown loyalty tier {tier!r}")

        table.append((amount, tier))

    return sorted(table, key=lambda row: row[0])


def tier_for_spend(total_spent, *, table=None) -> str:
    table = get_tier_table() if table is None else table
    spend = _money(total_spent)

    tier = Guest.TIER_NONE
    for threshold, candidate in table:
        if spend >= threshold:
            tier = candidate
    return tier


def vip_tiers(*, table=None) -> set[str]:
    table = get_tier_table() if table is None else table
    return {tier for _, tier in table[-VIP_TIER_COUNT:]}


def _rank(tier: str, table) -> int:
    for index, (_, candidate) in enumerate(table, start=1):
        if candidate == tier:
            return index
    return 0


# ============================================================
# ACCRUAL
# ============================================================


@transaction.atomic
def apply_stay_accrual(*, guest_id, stay_total, stay_date=None) -> Guest:
    """
    Credit one completed stay to the guest profile.

    The guest row is locked so that two folios closing for the
    same guest cannot lose each other's spend.
    """
    guest = Guest.objects.select_for_update().get(pk=guest_id)
    table = get_tier_table()

    previous_tier = guest.loyalty_tier

    guest.total_stays += 1
    guest.total_spent = _money(guest.total_spent) + _money(stay_total)
    guest.last_stay_date = stay_date or timezone.now()

    computed = tier_for_spend(guest.total_spent, table=table)
    if _rank(computed, table) > _rank(guest.loyalty_tier, table):
        guest.loyalty_tier = computed

    if guest.loyalty_tier in vip_tiers(table=table):
        guest.is_vip = True

    guest.save(
        update_fields=[
            "total_stays",
            "total_spent",
            "last_stay_date",
            "loyalty_tier",
            "is_vip",
            "updated_at",
        ]
    )

    logger.info(
        "Loyalty accrual applied",
        extra={
            "guest_id": str(guest.id),
            "stay_total": str(stay_total),
            "total_spent": str(guest.total_spent),
            "tier_from": previous_tier,
            "tier_to": guest.loyalty_tier,
            "is_vip": guest.is_vip,
        },
    )

    return guest
