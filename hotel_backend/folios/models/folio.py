# folios/models/folio.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Folio(models.Model):
    """
    A guest's running account for ONE stay (1:1 with booking).

    GUARANTEES:
    - total_amount == subtotal + tax_amount
    - balance_due == total_amount - paid_amount
    - aggregates are re-derived from item/payment rows by the ledger
      (folios.services.ledger.recalculate_aggregates), never edited directly
    - CLOSED is terminal: a closed folio can no longer be saved or deleted
    """

    STATUS_OPEN = "OPEN"
    STATUS_CLOSED = "CLOSED"

    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_CLOSED, "Closed"),
    ]

    PAYMENT_UNPAID = "UNPAID"
    PAYMENT_PARTIALLY_PAID = "PARTIALLY_PAID"
    PAYMENT_PAID = "PAID"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_UNPAID, "Unpaid"),
        (PAYMENT_PARTIALLY_PAID, "Partially paid"),
        (PAYMENT_PAID, "Paid"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    hotel = models.ForeignKey(
        "hotels.Hotel",
        on_delete=models.PROTECT,
        related_name="folios",
    )
    booking = models.OneToOneField(
        "hotels.Booking",
        on_delete=models.PROTECT,
        related_name="folio",
    )
    guest = models.ForeignKey(
        "guests.Guest",
        on_delete=models.PROTECT,
        related_name="folios",
    )

    folio_number = models.CharField(
        max_length=32,
        help_text="F-{year}-{sequence}, sequential per hotel per year",
    )

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_OPEN,
    )

    currency = models.CharField(max_length=3, default="USD")

    # ----------------------------
    # Billing identity (falls back to guest profile on invoices)
    # ----------------------------
    billing_name = models.CharField(max_length=255, blank=True)
    billing_address = models.TextField(blank=True)
    billing_email = models.EmailField(blank=True)
    billing_phone = models.CharField(max_length=32, blank=True)

    # ----------------------------
    # Aggregates (derived)
    # ----------------------------
    subtotal = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    tax_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    paid_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    balance_due = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    payment_status = models.CharField(
        max_length=16,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_UNPAID,
    )

    opened_at = models.DateTimeField(default=timezone.now)
    opened_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="opened_folios",
    )

    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="closed_folios",
    )

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-opened_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["hotel", "folio_number"],
                name="uniq_folio_number_per_hotel",
            ),
        ]
        indexes = [
            models.Index(fields=["hotel", "status"], name="folio_hotel_status_idx"),
            models.Index(fields=["payment_status"], name="folio_payment_status_idx"),
            models.Index(fields=["opened_at"], name="folio_opened_at_idx"),
        ]

    # ======================================================
    # INVARIANTS
    # ======================================================

    def _validate_aggregates(self):
        subtotal = Decimal(self.subtotal)
        tax = Decimal(self.tax_amount)
        total = Decimal(self.total_amount)
        paid = Decimal(self.paid_amount)
        balance = Decimal(self.balance_due)

        if total != subtotal + tax:
            raise ValidationError("Folio total_amount must equal subtotal + tax_amount")
        if balance != total - paid:
            raise ValidationError("Folio balance_due must equal total_amount - paid_amount")

    @property
    def is_open(self) -> bool:
        return self.status == self.STATUS_OPEN

    def save(self, *args, **kwargs):
        if not self._state.adding:
            previous_status = (
                Folio.objects.filter(pk=self.pk)
                .values_list("status", flat=True)
                .first()
            )
            if previous_status == self.STATUS_CLOSED:
                raise ValidationError(
                    f"Folio {self.folio_number} is closed and immutable"
                )

        self._validate_aggregates()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Folio records cannot be deleted")

    def __str__(self):
        return f"{self.folio_number} ({self.status})"
