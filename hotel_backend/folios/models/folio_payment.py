# folios/models/folio_payment.py

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from .folio import Folio

User = settings.AUTH_USER_MODEL


class FolioPayment(models.Model):
    """
    A captured payment recorded against an OPEN folio.
    Created once. Never updated. Never deleted.

    Gateway capture happens upstream; this row is the ledger's record of it.
    """

    METHOD_CASH = "CASH"
    METHOD_CARD = "CARD"
    METHOD_BANK_TRANSFER = "BANK_TRANSFER"
    METHOD_MOBILE = "MOBILE"
    METHOD_VOUCHER = "VOUCHER"
    METHOD_OTHER = "OTHER"

    METHOD_CHOICES = [
        (METHOD_CASH, "Cash"),
        (METHOD_CARD, "Card"),
        (METHOD_BANK_TRANSFER, "Bank transfer"),
        (METHOD_MOBILE, "Mobile money"),
        (METHOD_VOUCHER, "Voucher"),
        (METHOD_OTHER, "Other"),
    ]

    STATUS_COMPLETED = "COMPLETED"

    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    folio = models.ForeignKey(
        Folio,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    receipt_number = models.CharField(
        max_length=32,
        help_text="RCP-{year}-{sequence}, sequential per hotel per year",
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3)
    method = models.CharField(max_length=16, choices=METHOD_CHOICES)

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_COMPLETED,
    )

    reference = models.CharField(
        max_length=128,
        blank=True,
        help_text="External transaction id (gateway, bank ref, voucher code)",
    )

    payment_date = models.DateTimeField(default=timezone.now)

    recorded_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recorded_folio_payments",
    )

    class Meta:
        ordering = ["payment_date", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="folio_payment_amount_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["folio", "status"], name="folio_pay_folio_status_idx"),
            models.Index(fields=["receipt_number"], name="folio_pay_receipt_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("FolioPayment records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("FolioPayment records cannot be deleted")

    def __str__(self):
        return f"{self.receipt_number} | {self.currency} {self.amount}"
