from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, CheckConstraint, Enum as SqlEnum, Integer, Numeric, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from hotel_booking.db.base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class RoomType(str, Enum):
    AC = "AC"
    NON_AC = "Non-AC"
    GENERAL = "General"


class RoomCategory(str, Enum):
    SUITE = "Suite"
    STANDARD = "Standard"


class Room(Base):
    __tablename__ = "rooms"

    room_number: Mapped[str] = mapped_column(String(32), primary_key=True)
    room_type: Mapped[RoomType] = mapped_column(SqlEnum(RoomType, name="room_type"), nullable=False, index=True)
    category: Mapped[Optional[RoomCategory]] = mapped_column(SqlEnum(RoomCategory, name="room_category"))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    capacity: Mapped[Optional[int]] = mapped_column(Integer)
    amenities: Mapped[List[str]] = mapped_column(JSONType, default=list)
    # Cached hint only; the booking ledger decides date-range availability.
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_rooms_price_positive"),
        CheckConstraint("capacity IS NULL OR capacity > 0", name="ck_rooms_capacity_positive"),
    )
    __mapper_args__ = {"eager_defaults": True}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_number": self.room_number,
            "room_type": self.room_type.value,
            "category": self.category.value if self.category else None,
            "price": str(self.price),
            "capacity": self.capacity,
            "amenities": self.amenities or [],
            "is_available": self.is_available,
        }
