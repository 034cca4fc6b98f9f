from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from hotel_booking.models import PaymentMethod, RoomCategory, RoomType


class GuestInfo(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class RoomSelection(BaseModel):
    room_number: str
    price: Optional[Decimal] = Field(None, gt=0)


class BookingRequest(BaseModel):
    customer: GuestInfo
    room_type: Optional[RoomType] = None
    category: Optional[RoomCategory] = None
    selected_rooms: List[RoomSelection] = Field(default_factory=list)
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    arrival_time: Optional[datetime] = None
    payment_method: PaymentMethod = PaymentMethod.ONLINE
    special_requests: Optional[str] = None
    payment_proof: Optional[str] = None


class BookingListResponse(BaseModel):
    bookings: List[Dict[str, Any]]
    total_pages: int
    current_page: int
    total: int


class CheckoutResponse(BaseModel):
    message: str = "Checkout successful"
    room_numbers: List[str]


class AdminLogin(BaseModel):
    username: str
    password: str


class AdminLoginResponse(BaseModel):
    success: bool
    message: str


class ProofUploadResponse(BaseModel):
    payment_proof: str
