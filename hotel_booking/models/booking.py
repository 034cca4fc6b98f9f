from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import CheckConstraint, Date, DateTime, Enum as SqlEnum, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hotel_booking.db.base import Base
from hotel_booking.models.room import RoomCategory, RoomType


class BookingStatus(str, Enum):
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class PaymentMethod(str, Enum):
    ONLINE = "online"
    CASH = "cash"


# Bookings in these states keep their rooms off the market for their dates.
HOLDING_STATUSES = (BookingStatus.CONFIRMED,)


def _new_booking_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_booking_id)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255))
    customer_address: Mapped[Optional[str]] = mapped_column(Text)
    room_type: Mapped[RoomType] = mapped_column(SqlEnum(RoomType, name="room_type"), nullable=False)
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    check_out_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    arrival_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SqlEnum(PaymentStatus, name="payment_status"), default=PaymentStatus.PENDING, nullable=False
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SqlEnum(PaymentMethod, name="payment_method"), default=PaymentMethod.ONLINE, nullable=False
    )
    payment_proof: Mapped[Optional[str]] = mapped_column(String(512))
    special_requests: Mapped[Optional[str]] = mapped_column(Text)
    booking_status: Mapped[BookingStatus] = mapped_column(
        SqlEnum(BookingStatus, name="booking_status"), default=BookingStatus.CONFIRMED, nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now(), nullable=False)

    selected_rooms: Mapped[List["BookingRoom"]] = relationship(
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingRoom.position",
        lazy="selectin",
    )

    __table_args__ = (CheckConstraint("check_in_date < check_out_date", name="ck_bookings_date_order"),)
    __mapper_args__ = {"eager_defaults": True}

    @property
    def reference(self) -> str:
        """Short code quoted to guests in emails."""
        return self.id[-6:].upper()

    @property
    def nights(self) -> int:
        return max(1, (self.check_out_date - self.check_in_date).days)

    @property
    def room_numbers(self) -> List[str]:
        return [entry.room_number for entry in self.selected_rooms]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "reference": self.reference,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "customer_address": self.customer_address,
            "room_type": self.room_type.value,
            "selected_rooms": [entry.to_dict() for entry in self.selected_rooms],
            "check_in_date": self.check_in_date.isoformat(),
            "check_out_date": self.check_out_date.isoformat(),
            "arrival_time": self.arrival_time.isoformat() if self.arrival_time else None,
            "nights": self.nights,
            "total_amount": str(self.total_amount),
            "payment_status": self.payment_status.value,
            "payment_method": self.payment_method.value,
            "payment_proof": self.payment_proof,
            "special_requests": self.special_requests,
            "booking_status": self.booking_status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class BookingRoom(Base):
    __tablename__ = "booking_rooms"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    booking_id: Mapped[str] = mapped_column(ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    room_number: Mapped[str] = mapped_column(ForeignKey("rooms.room_number"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    room_type: Mapped[RoomType] = mapped_column(SqlEnum(RoomType, name="room_type"), nullable=False)
    category: Mapped[Optional[RoomCategory]] = mapped_column(SqlEnum(RoomCategory, name="room_category"))

    booking: Mapped[Booking] = relationship(back_populates="selected_rooms")

    __table_args__ = (UniqueConstraint("booking_id", "room_number", name="uq_booking_rooms_booking_room"),)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_number": self.room_number,
            "price": str(self.price),
            "room_type": self.room_type.value,
            "category": self.category.value if self.category else None,
        }
