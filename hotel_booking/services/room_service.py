from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.db.database import transaction
from hotel_booking.models import Room, RoomCategory, RoomType

logger = logging.getLogger(__name__)


class RoomService:
    """Read access to the room directory plus first-run provisioning."""

    async def list_rooms(
        self,
        session: AsyncSession,
        room_type: Optional[RoomType] = None,
        category: Optional[RoomCategory] = None,
    ) -> List[Room]:
        stmt = select(Room).order_by(Room.room_number)
        if room_type is not None:
            stmt = stmt.where(Room.room_type == room_type)
        if category is not None:
            stmt = stmt.where(Room.category == category)
        return list((await session.execute(stmt)).scalars().all())

    async def seed_rooms(self, session: AsyncSession, records: Iterable[Dict[str, Any]]) -> int:
        """Load the inventory into an empty directory. Returns how many rooms were created."""

        async with transaction(session):
            existing = (await session.execute(select(func.count()).select_from(Room))).scalar_one()
            if existing:
                logger.info("Room directory already provisioned", extra={"rooms": existing})
                return 0

            rooms = [
                Room(
                    room_number=str(record["room_number"]),
                    room_type=RoomType(record["room_type"]),
                    category=RoomCategory(record["category"]) if record.get("category") else None,
                    price=Decimal(str(record["price"])),
                    capacity=record.get("capacity"),
                    amenities=list(record.get("amenities", [])),
                    is_available=True,
                )
                for record in records
            ]
            session.add_all(rooms)

        logger.info("Seeded room directory", extra={"rooms": len(rooms)})
        return len(rooms)


def get_room_service() -> RoomService:
    return RoomService()
