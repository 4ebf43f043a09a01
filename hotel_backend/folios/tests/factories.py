# folios/tests/factories.py

"""
Shared fixtures for billing tests.

Default stay: 3 nights @ 100.00, hotel room tax 10% (USD).
"""

from __future__ import annotations

import itertools
from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model

from guests.models import Guest
from hotels.models import Booking, Hotel, Room, RoomType

User = get_user_model()

_seq = itertools.count(1)


def make_hotel(*, code=None, currency="USD", room_tax_rate="10.00"):
    n = next(_seq)
    return Hotel.objects.create(
        name=f"Test Hotel {n}",
        code=code or f"HTL{n:03d}",
        currency=currency,
        room_tax_rate=Decimal(room_tax_rate),
        address="1 Marina Road",
        email="frontdesk@hotel.test",
        phone="+10000000",
    )


def make_guest(hotel, **overrides):
    data = {
        "hotel": hotel,
        "first_name": "Ada",
        "last_name": "Obi",
        "email": "ada@example.com",
        "phone": "+2348000000",
        "address": "12 Allen Avenue",
    }
    data.update(overrides)
    return Guest.objects.create(**data)


def make_booking(
    hotel,
    *,
    guest=None,
    nights=3,
    base_rate="100.00",
    nightly_rate=None,
    status=Booking.STATUS_CONFIRMED,
):
    n = next(_seq)
    room_type = RoomType.objects.create(
        hotel=hotel,
        code=f"STD{n}",
        name="Standard",
        base_rate=Decimal(base_rate),
    )
    room = Room.objects.create(hotel=hotel, room_type=room_type, number=f"{100 + n}")

    check_in = date(2026, 3, 1)
    return Booking.objects.create(
        hotel=hotel,
        guest=guest or make_guest(hotel),
        room=room,
        confirmation_code=f"CNF{n:05d}",
        check_in_date=check_in,
        check_out_date=check_in + timedelta(days=nights),
        nightly_rate=Decimal(nightly_rate) if nightly_rate is not None else None,
        status=status,
    )


def make_user(hotel=None, *, role=User.ROLE_FRONT_DESK, email=None, **extra):
    n = next(_seq)
    return User.objects.create_user(
        email=email or f"staff{n}@hotel.test",
        password="pass",
        role=role,
        hotel=hotel,
        **extra,
    )


class RecordingEmitter:
    """Collects (event_type, payload) pairs."""

    def __init__(self):
        self.events = []

    def emit(self, event_type, payload):
        self.events.append((event_type, payload))

    @property
    def types(self):
        return [event_type for event_type, _ in self.events]


class ExplodingEmitter:
    def emit(self, event_type, payload):
        raise RuntimeError("transport down")
