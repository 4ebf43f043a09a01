# invoices/models/invoice.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Invoice(models.Model):
    """
    Billing document projected ONCE from a CLOSED folio.

    GUARANTEES:
    - at most one invoice per folio (unique folio)
    - totals are a snapshot of the folio at generation time and never change
    - paid_amount / balance_due evolve only through invoice-level payments
    - PAID and CANCELLED are terminal
    """

    STATUS_ISSUED = "ISSUED"
    STATUS_PAID = "PAID"
    STATUS_OVERDUE = "OVERDUE"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_ISSUED, "Issued"),
        (STATUS_PAID, "Paid"),
        (STATUS_OVERDUE, "Overdue"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    TERMINAL_STATUSES = (STATUS_PAID, STATUS_CANCELLED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    hotel = models.ForeignKey(
        "hotels.Hotel",
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    folio = models.OneToOneField(
        "folios.Folio",
        on_delete=models.PROTECT,
        related_name="invoice",
    )

    invoice_number = models.CharField(
        max_length=32,
        help_text="INV-{year}-{sequence}, sequential per hotel per year",
    )

    currency = models.CharField(max_length=3)

    # ----------------------------
    # Snapshot of folio totals (generation time)
    # ----------------------------
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    prepaid_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Folio payments already taken when the invoice was issued.",
    )

    # ----------------------------
    # Evolving settlement state
    # ----------------------------
    paid_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    balance_due = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    bill_to = models.JSONField(default=dict)

    issue_date = models.DateTimeField(default=timezone.now)
    due_date = models.DateTimeField()
    paid_date = models.DateTimeField(null=True, blank=True)

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_ISSUED,
    )

    notes = models.TextField(blank=True)
    terms_and_conditions = models.TextField(blank=True)

    issued_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="issued_invoices",
    )

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cancelled_invoices",
    )
    cancellation_reason = models.TextField(blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-issue_date"]
        constraints = [
            models.UniqueConstraint(
                fields=["hotel", "invoice_number"],
                name="uniq_invoice_number_per_hotel",
            ),
        ]
        indexes = [
            models.Index(fields=["hotel", "status"], name="invoice_hotel_status_idx"),
            models.Index(fields=["due_date"], name="invoice_due_date_idx"),
            models.Index(fields=["issue_date"], name="invoice_issue_date_idx"),
        ]

    _SNAPSHOT_FIELDS = (
        "hotel_id",
        "folio_id",
        "invoice_number",
        "currency",
        "subtotal",
        "tax_amount",
        "total_amount",
        "prepaid_amount",
        "bill_to",
        "issue_date",
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def save(self, *args, **kwargs):
        if not self._state.adding:
            previous = Invoice.objects.filter(pk=self.pk).first()
            if previous is None:
                raise ValidationError("Invoice records are immutable")

            if previous.status in self.TERMINAL_STATUSES:
                raise ValidationError(
                    f"Invoice {previous.invoice_number} is {previous.status} and immutable"
                )

            for field in self._SNAPSHOT_FIELDS:
                if getattr(self, field) != getattr(previous, field):
                    raise ValidationError(f"Invoice field '{field}' is immutable")

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Invoice records cannot be deleted")

    def __str__(self):
        return f"{self.invoice_number} ({self.status})"
