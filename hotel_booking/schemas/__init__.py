from .booking import (
    AdminLogin,
    AdminLoginResponse,
    BookingListResponse,
    BookingRequest,
    CheckoutResponse,
    GuestInfo,
    ProofUploadResponse,
    RoomSelection,
)
from .room import AvailabilityResponse, RoomOut

__all__ = [
    "GuestInfo",
    "RoomSelection",
    "BookingRequest",
    "BookingListResponse",
    "CheckoutResponse",
    "AdminLogin",
    "AdminLoginResponse",
    "ProofUploadResponse",
    "RoomOut",
    "AvailabilityResponse",
]
