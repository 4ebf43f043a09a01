# folios/models/folio_item.py

"""
FOLIO ITEM (APPEND-ONLY)

One posted line: a CHARGE or the REVERSAL of a voided charge.

Rules:
- total_price = quantity x unit_price
- tax_amount  = total_price x tax_rate / 100 (half-up to cents)
- Rows are never deleted.
- After posting, the ONLY permitted change is the void marker
  (is_voided, voided_at, voided_by, void_reason) on a CHARGE row.
"""

import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .folio import Folio

User = settings.AUTH_USER_MODEL

TWOPLACES = Decimal("0.01")


class FolioItem(models.Model):
    ENTRY_CHARGE = "CHARGE"
    ENTRY_REVERSAL = "REVERSAL"

    ENTRY_TYPE_CHOICES = [
        (ENTRY_CHARGE, "Charge"),
        (ENTRY_REVERSAL, "Reversal"),
    ]

    CATEGORY_ROOM = "ROOM"
    CATEGORY_FOOD_BEVERAGE = "FOOD_BEVERAGE"
    CATEGORY_MINIBAR = "MINIBAR"
    CATEGORY_LAUNDRY = "LAUNDRY"
    CATEGORY_SPA = "SPA"
    CATEGORY_TELEPHONE = "TELEPHONE"
    CATEGORY_PARKING = "PARKING"
    CATEGORY_SERVICE = "SERVICE"
    CATEGORY_OTHER = "OTHER"

    CATEGORY_CHOICES = [
        (CATEGORY_ROOM, "Room"),
        (CATEGORY_FOOD_BEVERAGE, "Food & beverage"),
        (CATEGORY_MINIBAR, "Minibar"),
        (CATEGORY_LAUNDRY, "Laundry"),
        (CATEGORY_SPA, "Spa"),
        (CATEGORY_TELEPHONE, "Telephone"),
        (CATEGORY_PARKING, "Parking"),
        (CATEGORY_SERVICE, "Service"),
        (CATEGORY_OTHER, "Other"),
    ]

    REFERENCE_ROOM_CHARGE = "ROOM_CHARGE"
    REFERENCE_VOID = "VOID"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    folio = models.ForeignKey(
        Folio,
        on_delete=models.PROTECT,
        related_name="items",
    )

    entry_type = models.CharField(
        max_length=16,
        choices=ENTRY_TYPE_CHOICES,
        default=ENTRY_CHARGE,
    )

    description = models.CharField(max_length=255)
    category = models.CharField(max_length=32, choices=CATEGORY_CHOICES)

    quantity = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Negative on reversal rows",
    )
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Percentage, e.g. 10.00",
    )
    tax_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    service_date = models.DateTimeField(default=timezone.now)
    posted_at = models.DateTimeField(default=timezone.now, db_index=True)
    posted_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="posted_folio_items",
    )

    is_voided = models.BooleanField(default=False)
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="voided_folio_items",
    )
    void_reason = models.TextField(blank=True)

    # Reversal -> original item id ("VOID"), room charge -> booking id ("ROOM_CHARGE")
    reference_id = models.CharField(max_length=64, blank=True)
    reference_type = models.CharField(max_length=32, blank=True)

    class Meta:
        ordering = ["posted_at", "id"]
        indexes = [
            models.Index(fields=["folio", "posted_at"], name="folio_item_posted_idx"),
            models.Index(fields=["folio", "is_voided"], name="folio_item_voided_idx"),
            models.Index(fields=["reference_type", "reference_id"], name="folio_item_reference_idx"),
        ]

    _VOID_MARKER_FIELDS = ("is_voided", "voided_at", "voided_by_id", "void_reason")

    _IMMUTABLE_FIELDS = (
        "folio_id",
        "entry_type",
        "description",
        "category",
        "quantity",
        "unit_price",
        "tax_rate",
        "service_date",
        "posted_at",
        "posted_by_id",
        "reference_id",
        "reference_type",
    )

    # ======================================================
    # DERIVED AMOUNTS
    # ======================================================

    @staticmethod
    def compute_amounts(quantity, unit_price, tax_rate):
        total = (Decimal(str(quantity)) * Decimal(str(unit_price))).quantize(
            TWOPLACES, rounding=ROUND_HALF_UP
        )
        tax = (total * Decimal(str(tax_rate)) / Decimal("100")).quantize(
            TWOPLACES, rounding=ROUND_HALF_UP
        )
        return total, tax

    @property
    def is_reversal(self) -> bool:
        return self.entry_type == self.ENTRY_REVERSAL

    # ======================================================
    # IMMUTABILITY
    # ======================================================

    def _validate_void_marker_only(self, previous: "FolioItem"):
        for field in self._IMMUTABLE_FIELDS:
            if getattr(self, field) != getattr(previous, field):
                raise ValidationError(f"FolioItem field '{field}' is immutable")

        if previous.is_voided:
            raise ValidationError("Voided folio items are immutable")

        if previous.is_reversal:
            raise ValidationError("Reversal entries are immutable")

        if not self.is_voided:
            raise ValidationError("FolioItem records are immutable once posted")

    def save(self, *args, **kwargs):
        if self._state.adding:
            self.total_price, self.tax_amount = self.compute_amounts(
                self.quantity, self.unit_price, self.tax_rate
            )
        else:
            previous = FolioItem.objects.filter(pk=self.pk).first()
            if previous is None:
                raise ValidationError("FolioItem records are immutable")
            self._validate_void_marker_only(previous)
            self.total_price = previous.total_price
            self.tax_amount = previous.tax_amount

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("FolioItem records cannot be deleted")

    def __str__(self):
        return f"{self.description} x {self.quantity}"
