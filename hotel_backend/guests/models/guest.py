# guests/models/guest.py

"""
GUEST PROFILE

Lifetime counters (total_stays, total_spent) and loyalty state
(loyalty_tier, is_vip) are written ONLY by folio close accrual
(guests.services.loyalty).
"""

import uuid
from decimal import Decimal

from django.db import models


class Guest(models.Model):
    TIER_NONE = "NONE"
    TIER_SILVER = "SILVER"
    TIER_GOLD = "GOLD"
    TIER_PLATINUM = "PLATINUM"

    TIER_CHOICES = [
        (TIER_NONE, "None"),
        (TIER_SILVER, "Silver"),
        (TIER_GOLD, "Gold"),
        (TIER_PLATINUM, "Platinum"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    hotel = models.ForeignKey(
        "hotels.Hotel",
        on_delete=models.PROTECT,
        related_name="guests",
    )

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.TextField(blank=True)

    loyalty_tier = models.CharField(
        max_length=16,
        choices=TIER_CHOICES,
        default=TIER_NONE,
    )
    is_vip = models.BooleanField(default=False)

    total_stays = models.PositiveIntegerField(default=0)
    total_spent = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    last_stay_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["last_name", "first_name"]
        indexes = [
            models.Index(fields=["hotel", "email"], name="guest_hotel_email_idx"),
            models.Index(fields=["loyalty_tier"], name="guest_loyalty_tier_idx"),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        return self.full_name or str(self.id)
