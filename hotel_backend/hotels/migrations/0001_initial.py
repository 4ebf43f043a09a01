"""
======================================================
PATH: hotels/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Hotel, RoomType, Room

Booking is created in 0002 (it depends on guests.Guest,
which itself depends on Hotel).
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Hotel",
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
                ("name", models.CharField(max_length=255)),
                (
                    "code",
                    models.CharField(
                        max_length=32,
                        unique=True,
                        help_text="Short property code (e.g. LGS01)",
                    ),
                ),
                ("currency", models.CharField(max_length=3, default="USD")),
                (
                    "room_tax_rate",
                    models.DecimalField(
                        max_digits=5,
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Default tax percentage applied to room charges",
                    ),
                ),
                ("address", models.TextField(blank=True)),
                ("email", models.EmailField(max_length=254, blank=True)),
                ("phone", models.CharField(max_length=32, blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="RoomType",
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
                ("code", models.CharField(max_length=32)),
                ("name", models.CharField(max_length=120)),
                ("base_rate", models.DecimalField(max_digits=12, decimal_places=2)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "hotel",
                    models.ForeignKey(
                        to="hotels.hotel",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="room_types",
                    ),
                ),
            ],
            options={
                "ordering": ["hotel", "code"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("hotel", "code"),
                        name="uniq_room_type_code_per_hotel",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(base_rate__gte=0),
                        name="room_type_base_rate_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Room",
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
                ("number", models.CharField(max_length=16)),
                (
                    "hotel",
                    models.ForeignKey(
                        to="hotels.hotel",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rooms",
                    ),
                ),
                (
                    "room_type",
                    models.ForeignKey(
                        to="hotels.roomtype",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rooms",
                    ),
                ),
            ],
            options={
                "ordering": ["hotel", "number"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("hotel", "number"),
                        name="uniq_room_number_per_hotel",
                    ),
                ],
            },
        ),
    ]
