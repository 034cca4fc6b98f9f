from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.db.database import get_session
from hotel_booking.models import RoomCategory, RoomType
from hotel_booking.schemas import AvailabilityResponse, RoomOut
from hotel_booking.services.availability_service import AvailabilityService, get_availability_service
from hotel_booking.services.room_service import RoomService, get_room_service

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("", response_model=List[RoomOut])
async def list_rooms(
    room_type: Optional[RoomType] = None,
    category: Optional[RoomCategory] = None,
    db: AsyncSession = Depends(get_session),
    room_service: RoomService = Depends(get_room_service),
) -> List[RoomOut]:
    rooms = await room_service.list_rooms(db, room_type=room_type, category=category)
    return [RoomOut.model_validate(room) for room in rooms]


@router.get("/available", response_model=AvailabilityResponse)
async def list_available_rooms(
    check_in: Optional[date] = None,
    check_out: Optional[date] = None,
    category: Optional[RoomCategory] = None,
    room_type: Optional[RoomType] = None,
    db: AsyncSession = Depends(get_session),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Rooms free for [check_in, check_out). Without dates, falls back to the cached flag."""

    result = await availability_service.list_available_rooms(
        db,
        check_in=check_in,
        check_out=check_out,
        category=category,
        room_type=room_type,
    )
    return AvailabilityResponse(
        mode=result.mode,
        check_in=result.check_in,
        check_out=result.check_out,
        rooms=[RoomOut.model_validate(room) for room in result.rooms],
    )


@router.get("/available/{room_type}", response_model=AvailabilityResponse)
async def list_flagged_rooms_by_type(
    room_type: RoomType,
    db: AsyncSession = Depends(get_session),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    result = await availability_service.list_flagged_rooms(db, room_type=room_type)
    return AvailabilityResponse(mode=result.mode, rooms=[RoomOut.model_validate(room) for room in result.rooms])
