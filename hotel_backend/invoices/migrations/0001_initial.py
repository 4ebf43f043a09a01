"""
======================================================
PATH: invoices/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Invoice, InvoicePayment
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("hotels", "0001_initial"),
        ("folios", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Invoice",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                (
                    "invoice_number",
                    models.CharField(
                        max_length=32,
                        help_text="INV-{year}-{sequence}, sequential per hotel per year",
                    ),
                ),
                ("currency", models.CharField(max_length=3)),
                ("subtotal", models.DecimalField(max_digits=12, decimal_places=2)),
                ("tax_amount", models.DecimalField(max_digits=12, decimal_places=2)),
                ("total_amount", models.DecimalField(max_digits=12, decimal_places=2)),
                (
                    "prepaid_amount",
                    models.DecimalField(
                        max_digits=12,
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Folio payments already taken when the invoice was issued.",
                    ),
                ),
                (
                    "paid_amount",
                    models.DecimalField(
                        max_digits=12, decimal_places=2, default=Decimal("0.00")
                    ),
                ),
                (
                    "balance_due",
                    models.DecimalField(
                        max_digits=12, decimal_places=2, default=Decimal("0.00")
                    ),
                ),
                ("bill_to", models.JSONField(default=dict)),
                ("issue_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("due_date", models.DateTimeField()),
                ("paid_date", models.DateTimeField(null=True, blank=True)),
                (
                    "status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("ISSUED", "Issued"),
                            ("PAID", "Paid"),
                            ("OVERDUE", "Overdue"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="ISSUED",
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("terms_and_conditions", models.TextField(blank=True)),
                ("cancelled_at", models.DateTimeField(null=True, blank=True)),
                ("cancellation_reason", models.TextField(blank=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "cancelled_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="cancelled_invoices",
                    ),
                ),
                (
                    "folio",
                    models.OneToOneField(
                        to="folios.folio",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoice",
                    ),
                ),
                (
                    "hotel",
                    models.ForeignKey(
                        to="hotels.hotel",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                    ),
                ),
                (
                    "issued_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="issued_invoices",
                    ),
                ),
            ],
            options={
                "ordering": ["-issue_date"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("hotel", "invoice_number"),
                        name="uniq_invoice_number_per_hotel",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["hotel", "status"], name="invoice_hotel_status_idx"),
                    models.Index(fields=["due_date"], name="invoice_due_date_idx"),
                    models.Index(fields=["issue_date"], name="invoice_issue_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoicePayment",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("amount", models.DecimalField(max_digits=12, decimal_places=2)),
                (
                    "method",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("CASH", "Cash"),
                            ("CARD", "Card"),
                            ("BANK_TRANSFER", "Bank transfer"),
                            ("MOBILE", "Mobile money"),
                            ("VOUCHER", "Voucher"),
                            ("OTHER", "Other"),
                        ],
                    ),
                ),
                ("reference", models.CharField(max_length=128, blank=True)),
                ("payment_date", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "invoice",
                    models.ForeignKey(
                        to="invoices.invoice",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                    ),
                ),
                (
                    "recorded_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="recorded_invoice_payments",
                    ),
                ),
            ],
            options={
                "ordering": ["payment_date", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(amount__gt=0),
                        name="invoice_payment_amount_positive",
                    ),
                ],
            },
        ),
    ]
