from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.data.room_loader import load_room_inventory
from hotel_booking.db.database import async_session_factory, engine, get_session
from hotel_booking.exceptions import BookingError, TransientInfraError
from hotel_booking.exceptions.handlers import booking_error_handler, transient_infra_error_handler
from hotel_booking.routes import admin, booking, rooms, uploads
from hotel_booking.services.room_service import get_room_service
from hotel_booking.utils.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_seed_rooms:
        async with async_session_factory() as session:
            await get_room_service().seed_rooms(session, load_room_inventory())
    yield
    await engine.dispose()


app = FastAPI(title="Hotel Booking API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

app.add_exception_handler(TransientInfraError, transient_infra_error_handler)
app.add_exception_handler(BookingError, booking_error_handler)

app.include_router(rooms.router, prefix="/api")
app.include_router(booking.router, prefix="/api")
app.include_router(admin.router, prefix="/api")
app.include_router(uploads.router, prefix="/api")


@app.get("/health")
async def healthcheck(db: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    try:
        await db.execute(text("SELECT 1"))
        database = "up"
    except (SQLAlchemyError, OSError) as error:
        logger.error("Database health probe failed: %s", error)
        database = "down"
    return {"status": "ok" if database == "up" else "degraded", "database": database}
