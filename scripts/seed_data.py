from __future__ import annotations

import asyncio
import logging

from hotel_booking.data.room_loader import load_room_inventory
from hotel_booking.db.database import async_session_factory, engine
from hotel_booking.services.room_service import get_room_service
from hotel_booking.utils.config import get_settings

logging.basicConfig(level=logging.INFO)


async def seed() -> int:
    settings = get_settings()
    inventory = load_room_inventory(settings.room_data_path)
    if not inventory:
        raise FileNotFoundError(f"Room seed data not found or empty: {settings.room_data_path}")

    async with async_session_factory() as session:
        created = await get_room_service().seed_rooms(session, inventory)

    await engine.dispose()
    return created


if __name__ == "__main__":
    print(f"Created {asyncio.run(seed())} rooms")
