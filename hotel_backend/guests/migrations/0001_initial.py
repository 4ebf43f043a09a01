"""
======================================================
PATH: guests/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Guest
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("hotels", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Guest",
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
                ("first_name", models.CharField(max_length=100)),
                ("last_name", models.CharField(max_length=100, blank=True)),
                ("email", models.EmailField(max_length=254, blank=True)),
                ("phone", models.CharField(max_length=32, blank=True)),
                ("address", models.TextField(blank=True)),
                (
                    "loyalty_tier",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("NONE", "None"),
                            ("SILVER", "Silver"),
                            ("GOLD", "Gold"),
                            ("PLATINUM", "Platinum"),
                        ],
                        default="NONE",
                    ),
                ),
                ("is_vip", models.BooleanField(default=False)),
                ("total_stays", models.PositiveIntegerField(default=0)),
                (
                    "total_spent",
                    models.DecimalField(
                        max_digits=12, decimal_places=2, default=Decimal("0.00")
                    ),
                ),
                ("last_stay_date", models.DateTimeField(null=True, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "hotel",
                    models.ForeignKey(
                        to="hotels.hotel",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="guests",
                    ),
                ),
            ],
            options={
                "ordering": ["last_name", "first_name"],
                "indexes": [
                    models.Index(fields=["hotel", "email"], name="guest_hotel_email_idx"),
                    models.Index(fields=["loyalty_tier"], name="guest_loyalty_tier_idx"),
                ],
            },
        ),
    ]
