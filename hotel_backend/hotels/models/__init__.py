from .hotel import Hotel
from .room import Room, RoomType
from .booking import Booking

__all__ = [
    "Hotel",
    "RoomType",
    "Room",
    "Booking",
]
