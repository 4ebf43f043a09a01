# hotels/models/hotel.py

import uuid
from decimal import Decimal

from django.db import models


class Hotel(models.Model):
    """
    Owning property.

    Folio, invoice and receipt numbers are sequenced per hotel per year.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)
    code = models.CharField(
        max_length=32,
        unique=True,
        help_text="Short property code (e.g. LGS01)",
    )

    currency = models.CharField(max_length=3, default="USD")

    room_tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Default tax percentage applied to room charges",
    )

    address = models.TextField(blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.code})"
