from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from hotel_booking.models import RoomCategory, RoomType


class RoomOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    room_number: str
    room_type: RoomType
    category: Optional[RoomCategory] = None
    price: Decimal
    capacity: Optional[int] = None
    amenities: List[str] = Field(default_factory=list)
    is_available: bool


class AvailabilityResponse(BaseModel):
    mode: str
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    rooms: List[RoomOut]
