from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from hotel_booking.exceptions import ValidationError
from hotel_booking.models import HOLDING_STATUSES, Booking, BookingRoom, Room, RoomCategory, RoomType

logger = logging.getLogger(__name__)

MODE_DATE_RANGE = "date_range"
MODE_FLAG = "flag"


def validate_date_range(check_in: Optional[date], check_out: Optional[date]) -> None:
    if check_in is None or check_out is None:
        raise ValidationError("Both check-in and check-out dates are required")
    if check_in >= check_out:
        raise ValidationError("Check-in date must be before check-out date")


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open overlap: a checkout day never clashes with a same-day check-in."""
    return a_start < b_end and b_start < a_end


def overlapping_holds(check_in: date, check_out: date) -> ColumnElement[bool]:
    return and_(
        Booking.booking_status.in_(HOLDING_STATUSES),
        Booking.check_in_date < check_out,
        check_in < Booking.check_out_date,
    )


@dataclass
class AvailabilityResult:
    mode: str
    rooms: List[Room] = field(default_factory=list)
    check_in: Optional[date] = None
    check_out: Optional[date] = None


class AvailabilityService:
    """Answers which rooms are free, from the booking ledger or the cached flag."""

    async def list_available_rooms(
        self,
        session: AsyncSession,
        check_in: Optional[date] = None,
        check_out: Optional[date] = None,
        category: Optional[RoomCategory] = None,
        room_type: Optional[RoomType] = None,
    ) -> AvailabilityResult:
        if check_in is None and check_out is None:
            return await self.list_flagged_rooms(session, category=category, room_type=room_type)

        validate_date_range(check_in, check_out)

        busy = (
            select(BookingRoom.room_number)
            .join(Booking, Booking.id == BookingRoom.booking_id)
            .where(overlapping_holds(check_in, check_out))
        )
        stmt = select(Room).where(Room.room_number.not_in(busy))
        stmt = self._apply_filters(stmt, category, room_type).order_by(Room.room_number)
        rooms = list((await session.execute(stmt)).scalars().all())

        logger.info(
            "Availability computed",
            extra={
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
                "available_rooms": [room.room_number for room in rooms],
            },
        )
        return AvailabilityResult(mode=MODE_DATE_RANGE, rooms=rooms, check_in=check_in, check_out=check_out)

    async def list_flagged_rooms(
        self,
        session: AsyncSession,
        category: Optional[RoomCategory] = None,
        room_type: Optional[RoomType] = None,
    ) -> AvailabilityResult:
        """Coarse fallback: trusts the cached flag and ignores dates entirely."""

        stmt = select(Room).where(Room.is_available.is_(True))
        stmt = self._apply_filters(stmt, category, room_type).order_by(Room.room_number)
        rooms = list((await session.execute(stmt)).scalars().all())
        return AvailabilityResult(mode=MODE_FLAG, rooms=rooms)

    async def find_conflicts(
        self,
        session: AsyncSession,
        room_numbers: Iterable[str],
        check_in: date,
        check_out: date,
    ) -> Dict[str, str]:
        """Map each requested room that is already held for the range to the holding booking id."""

        numbers = list(room_numbers)
        if not numbers:
            return {}
        stmt = (
            select(BookingRoom.room_number, Booking.id)
            .join(Booking, Booking.id == BookingRoom.booking_id)
            .where(BookingRoom.room_number.in_(numbers), overlapping_holds(check_in, check_out))
        )
        conflicts: Dict[str, str] = {}
        for room_number, booking_id in (await session.execute(stmt)).all():
            conflicts.setdefault(room_number, booking_id)
        return conflicts

    async def held_room_numbers(self, session: AsyncSession, room_numbers: Iterable[str]) -> set[str]:
        """Rooms still referenced by any holding booking, whatever its dates."""

        numbers = list(room_numbers)
        if not numbers:
            return set()
        stmt = (
            select(BookingRoom.room_number)
            .join(Booking, Booking.id == BookingRoom.booking_id)
            .where(BookingRoom.room_number.in_(numbers), Booking.booking_status.in_(HOLDING_STATUSES))
        )
        return set((await session.execute(stmt)).scalars().all())

    @staticmethod
    def _apply_filters(stmt, category: Optional[RoomCategory], room_type: Optional[RoomType]):
        if category is not None:
            stmt = stmt.where(Room.category == category)
        if room_type is not None:
            stmt = stmt.where(Room.room_type == room_type)
        return stmt


def get_availability_service() -> AvailabilityService:
    return AvailabilityService()
