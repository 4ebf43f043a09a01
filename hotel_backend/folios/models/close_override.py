# folios/models/close_override.py

"""
FOLIO CLOSE OVERRIDE AUDIT (IMMUTABLE)

Written when a folio is closed with a positive balance (allow_unpaid).
Captures WHO forced the close, WHY, and the balance left outstanding.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from .folio import Folio

User = settings.AUTH_USER_MODEL


class FolioCloseOverride(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    folio = models.OneToOneField(
        Folio,
        on_delete=models.PROTECT,
        related_name="close_override",
    )

    authorized_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name="folio_close_overrides",
    )

    reason = models.TextField()

    balance_due = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Outstanding balance at close (snapshot).",
    )
    currency = models.CharField(max_length=3)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("FolioCloseOverride records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("FolioCloseOverride records cannot be deleted")

    def __str__(self):
        return f"Override | {self.folio_id} | {self.currency} {self.balance_due}"
