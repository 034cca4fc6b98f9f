from .booking import HOLDING_STATUSES, Booking, BookingRoom, BookingStatus, PaymentMethod, PaymentStatus
from .room import Room, RoomCategory, RoomType

__all__ = [
    "Room",
    "RoomType",
    "RoomCategory",
    "Booking",
    "BookingRoom",
    "BookingStatus",
    "PaymentStatus",
    "PaymentMethod",
    "HOLDING_STATUSES",
]
