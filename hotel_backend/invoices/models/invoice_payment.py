# invoices/models/invoice_payment.py

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from folios.models import FolioPayment

from .invoice import Invoice

User = settings.AUTH_USER_MODEL


class InvoicePayment(models.Model):
    """
    Post-close settlement recorded against an invoice.
    Created once. Never updated. Never deleted.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=16, choices=FolioPayment.METHOD_CHOICES)
    reference = models.CharField(max_length=128, blank=True)

    payment_date = models.DateTimeField(default=timezone.now)

    recorded_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recorded_invoice_payments",
    )

    class Meta:
        ordering = ["payment_date", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="invoice_payment_amount_positive",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("InvoicePayment records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("InvoicePayment records cannot be deleted")

    def __str__(self):
        return f"{self.invoice_id} | {self.amount}"
