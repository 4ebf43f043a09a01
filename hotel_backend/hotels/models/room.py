# hotels/models/room.py

import uuid

from django.db import models

from hotels.models.hotel import Hotel


class RoomType(models.Model):
    """
    Room/rate catalog entry.

    base_rate is the nightly rate used for the initial room charge
    when the booking carries no negotiated rate.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    hotel = models.ForeignKey(
        Hotel,
        on_delete=models.PROTECT,
        related_name="room_types",
    )

    code = models.CharField(max_length=32)
    name = models.CharField(max_length=120)

    base_rate = models.DecimalField(max_digits=12, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["hotel", "code"]
        constraints = [
            models.UniqueConstraint(
                fields=["hotel", "code"],
                name="uniq_room_type_code_per_hotel",
            ),
            models.CheckConstraint(
                condition=models.Q(base_rate__gte=0),
                name="room_type_base_rate_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} @ {self.base_rate}"


class Room(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    hotel = models.ForeignKey(
        Hotel,
        on_delete=models.PROTECT,
        related_name="rooms",
    )
    room_type = models.ForeignKey(
        RoomType,
        on_delete=models.PROTECT,
        related_name="rooms",
    )

    number = models.CharField(max_length=16)

    class Meta:
        ordering = ["hotel", "number"]
        constraints = [
            models.UniqueConstraint(
                fields=["hotel", "number"],
                name="uniq_room_number_per_hotel",
            ),
        ]

    def __str__(self):
        return f"Room {self.number}"
