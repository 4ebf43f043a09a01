# hotels/models/booking.py

"""
BOOKING REFERENCE

Bookings are owned by the reservation workflow.
Billing only needs:
- stay dates (night count for the room charge)
- the agreed nightly rate (falls back to the room type base rate)
- the guest
- check-in / check-out status transitions
"""

import math
import uuid
from datetime import datetime, time

from django.db import models

from hotels.models.hotel import Hotel
from hotels.models.room import Room


class Booking(models.Model):
    STATUS_CONFIRMED = "CONFIRMED"
    STATUS_CHECKED_IN = "CHECKED_IN"
    STATUS_CHECKED_OUT = "CHECKED_OUT"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_CHECKED_IN, "Checked in"),
        (STATUS_CHECKED_OUT, "Checked out"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    hotel = models.ForeignKey(
        Hotel,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    guest = models.ForeignKey(
        "guests.Guest",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    room = models.ForeignKey(
        Room,
        on_delete=models.PROTECT,
        related_name="bookings",
    )

    confirmation_code = models.CharField(max_length=32, blank=True)

    check_in_date = models.DateField()
    check_out_date = models.DateField()

    nightly_rate = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Negotiated nightly rate; empty means room type base rate",
    )

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_CONFIRMED,
    )

    checked_in_at = models.DateTimeField(null=True, blank=True)
    checked_out_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-check_in_date"]
        indexes = [
            models.Index(fields=["hotel", "status"], name="booking_hotel_status_idx"),
            models.Index(fields=["check_in_date"], name="booking_check_in_idx"),
        ]

    # --------------------------------------------------
    # STAY MATH
    # --------------------------------------------------

    @property
    def nights(self) -> int:
        """
        Whole nights billed for the stay (partial days round up).
        """
        start = datetime.combine(self.check_in_date, time.min)
        end = datetime.combine(self.check_out_date, time.min)
        return math.ceil((end - start).total_seconds() / 86400)

    def resolve_nightly_rate(self):
        if self.nightly_rate is not None:
            return self.nightly_rate
        return self.room.room_type.base_rate

    def __str__(self):
        return f"Booking {self.confirmation_code or self.id} ({self.status})"
