"""
======================================================
PATH: hotels/migrations/0002_booking.py
======================================================
MIGRATION: CREATE Booking
"""

from __future__ import annotations

import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("hotels", "0001_initial"),
        ("guests", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
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
                ("confirmation_code", models.CharField(max_length=32, blank=True)),
                ("check_in_date", models.DateField()),
                ("check_out_date", models.DateField()),
                (
                    "nightly_rate",
                    models.DecimalField(
                        max_digits=12,
                        decimal_places=2,
                        null=True,
                        blank=True,
                        help_text="Negotiated nightly rate; empty means room type base rate",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("CONFIRMED", "Confirmed"),
                            ("CHECKED_IN", "Checked in"),
                            ("CHECKED_OUT", "Checked out"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="CONFIRMED",
                    ),
                ),
                ("checked_in_at", models.DateTimeField(null=True, blank=True)),
                ("checked_out_at", models.DateTimeField(null=True, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "guest",
                    models.ForeignKey(
                        to="guests.guest",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                    ),
                ),
                (
                    "hotel",
                    models.ForeignKey(
                        to="hotels.hotel",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                    ),
                ),
                (
                    "room",
                    models.ForeignKey(
                        to="hotels.room",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                    ),
                ),
            ],
            options={
                "ordering": ["-check_in_date"],
                "indexes": [
                    models.Index(fields=["hotel", "status"], name="booking_hotel_status_idx"),
                    models.Index(fields=["check_in_date"], name="booking_check_in_idx"),
                ],
            },
        ),
    ]
