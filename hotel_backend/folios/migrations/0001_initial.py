"""
======================================================
PATH: folios/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Folio ledger tables

- Folio (1:1 booking)
- FolioItem (append-only charges / reversals)
- FolioPayment (immutable receipts)
- FolioCloseOverride (forced-close audit)
- DocumentSequence (per hotel / kind / year counters)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def _uuid_pk():
    return models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        serialize=False,
    )


def _money(**kwargs):
    return models.DecimalField(max_digits=12, decimal_places=2, **kwargs)


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("hotels", "0002_booking"),
        ("guests", "0001_initial"),
    ]

    operations = [
        # ----------------------------
        # FOLIO
        # ----------------------------
        migrations.CreateModel(
            name="Folio",
            fields=[
                ("id", _uuid_pk()),
                (
                    "folio_number",
                    models.CharField(
                        max_length=32,
                        help_text="F-{year}-{sequence}, sequential per hotel per year",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        max_length=16,
                        choices=[("OPEN", "Open"), ("CLOSED", "Closed")],
                        default="OPEN",
                    ),
                ),
                ("currency", models.CharField(max_length=3, default="USD")),
                ("billing_name", models.CharField(max_length=255, blank=True)),
                ("billing_address", models.TextField(blank=True)),
                ("billing_email", models.EmailField(max_length=254, blank=True)),
                ("billing_phone", models.CharField(max_length=32, blank=True)),
                ("subtotal", _money(default=Decimal("0.00"))),
                ("tax_amount", _money(default=Decimal("0.00"))),
                ("total_amount", _money(default=Decimal("0.00"))),
                ("paid_amount", _money(default=Decimal("0.00"))),
                ("balance_due", _money(default=Decimal("0.00"))),
                (
                    "payment_status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("UNPAID", "Unpaid"),
                            ("PARTIALLY_PAID", "Partially paid"),
                            ("PAID", "Paid"),
                        ],
                        default="UNPAID",
                    ),
                ),
                ("opened_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("closed_at", models.DateTimeField(null=True, blank=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "booking",
                    models.OneToOneField(
                        to="hotels.booking",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="folio",
                    ),
                ),
                (
                    "closed_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="closed_folios",
                    ),
                ),
                (
                    "guest",
                    models.ForeignKey(
                        to="guests.guest",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="folios",
                    ),
                ),
                (
                    "hotel",
                    models.ForeignKey(
                        to="hotels.hotel",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="folios",
                    ),
                ),
                (
                    "opened_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="opened_folios",
                    ),
                ),
            ],
            options={
                "ordering": ["-opened_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("hotel", "folio_number"),
                        name="uniq_folio_number_per_hotel",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["hotel", "status"], name="folio_hotel_status_idx"),
                    models.Index(fields=["payment_status"], name="folio_payment_status_idx"),
                    models.Index(fields=["opened_at"], name="folio_opened_at_idx"),
                ],
            },
        ),
        # ----------------------------
        # FOLIO ITEM
        # ----------------------------
        migrations.CreateModel(
            name="FolioItem",
            fields=[
                ("id", _uuid_pk()),
                (
                    "entry_type",
                    models.CharField(
                        max_length=16,
                        choices=[("CHARGE", "Charge"), ("REVERSAL", "Reversal")],
                        default="CHARGE",
                    ),
                ),
                ("description", models.CharField(max_length=255)),
                (
                    "category",
                    models.CharField(
                        max_length=32,
                        choices=[
                            ("ROOM", "Room"),
                            ("FOOD_BEVERAGE", "Food & beverage"),
                            ("MINIBAR", "Minibar"),
                            ("LAUNDRY", "Laundry"),
                            ("SPA", "Spa"),
                            ("TELEPHONE", "Telephone"),
                            ("PARKING", "Parking"),
                            ("SERVICE", "Service"),
                            ("OTHER", "Other"),
                        ],
                    ),
                ),
                (
                    "quantity",
                    models.DecimalField(
                        max_digits=10,
                        decimal_places=2,
                        help_text="Negative on reversal rows",
                    ),
                ),
                ("unit_price", _money()),
                ("total_price", _money(editable=False)),
                (
                    "tax_rate",
                    models.DecimalField(
                        max_digits=5,
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Percentage, e.g. 10.00",
                    ),
                ),
                ("tax_amount", _money(editable=False)),
                ("service_date", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "posted_at",
                    models.DateTimeField(default=django.utils.timezone.now, db_index=True),
                ),
                ("is_voided", models.BooleanField(default=False)),
                ("voided_at", models.DateTimeField(null=True, blank=True)),
                ("void_reason", models.TextField(blank=True)),
                ("reference_id", models.CharField(max_length=64, blank=True)),
                ("reference_type", models.CharField(max_length=32, blank=True)),
                (
                    "folio",
                    models.ForeignKey(
                        to="folios.folio",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="items",
                    ),
                ),
                (
                    "posted_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="posted_folio_items",
                    ),
                ),
                (
                    "voided_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="voided_folio_items",
                    ),
                ),
            ],
            options={
                "ordering": ["posted_at", "id"],
                "indexes": [
                    models.Index(fields=["folio", "posted_at"], name="folio_item_posted_idx"),
                    models.Index(fields=["folio", "is_voided"], name="folio_item_voided_idx"),
                    models.Index(
                        fields=["reference_type", "reference_id"],
                        name="folio_item_reference_idx",
                    ),
                ],
            },
        ),
        # ----------------------------
        # FOLIO PAYMENT
        # ----------------------------
        migrations.CreateModel(
            name="FolioPayment",
            fields=[
                ("id", _uuid_pk()),
                (
                    "receipt_number",
                    models.CharField(
                        max_length=32,
                        help_text="RCP-{year}-{sequence}, sequential per hotel per year",
                    ),
                ),
                ("amount", _money()),
                ("currency", models.CharField(max_length=3)),
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
                (
                    "status",
                    models.CharField(
                        max_length=16,
                        choices=[("COMPLETED", "Completed")],
                        default="COMPLETED",
                    ),
                ),
                (
                    "reference",
                    models.CharField(
                        max_length=128,
                        blank=True,
                        help_text="External transaction id (gateway, bank ref, voucher code)",
                    ),
                ),
                ("payment_date", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "folio",
                    models.ForeignKey(
                        to="folios.folio",
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
                        related_name="recorded_folio_payments",
                    ),
                ),
            ],
            options={
                "ordering": ["payment_date", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(amount__gt=0),
                        name="folio_payment_amount_positive",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["folio", "status"], name="folio_pay_folio_status_idx"),
                    models.Index(fields=["receipt_number"], name="folio_pay_receipt_idx"),
                ],
            },
        ),
        # ----------------------------
        # CLOSE OVERRIDE AUDIT
        # ----------------------------
        migrations.CreateModel(
            name="FolioCloseOverride",
            fields=[
                ("id", _uuid_pk()),
                ("reason", models.TextField()),
                (
                    "balance_due",
                    _money(
                        default=Decimal("0.00"),
                        help_text="Outstanding balance at close (snapshot).",
                    ),
                ),
                ("currency", models.CharField(max_length=3)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "authorized_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="folio_close_overrides",
                    ),
                ),
                (
                    "folio",
                    models.OneToOneField(
                        to="folios.folio",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="close_override",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        # ----------------------------
        # DOCUMENT SEQUENCE
        # ----------------------------
        migrations.CreateModel(
            name="DocumentSequence",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "kind",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("FOLIO", "Folio"),
                            ("INVOICE", "Invoice"),
                            ("RECEIPT", "Receipt"),
                        ],
                    ),
                ),
                ("year", models.PositiveIntegerField()),
                ("last_value", models.PositiveIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "hotel",
                    models.ForeignKey(
                        to="hotels.hotel",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="document_sequences",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("hotel", "kind", "year"),
                        name="uniq_document_sequence_scope",
                    ),
                ],
            },
        ),
    ]
