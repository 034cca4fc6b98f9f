from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.db.database import get_session
from hotel_booking.schemas import AdminLogin, AdminLoginResponse, BookingListResponse
from hotel_booking.services.admin_auth_service import AdminAuthService, get_admin_auth_service
from hotel_booking.services.booking_service import BookingService, get_booking_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=AdminLoginResponse)
async def login(
    payload: AdminLogin,
    auth_service: AdminAuthService = Depends(get_admin_auth_service),
) -> AdminLoginResponse:
    if not auth_service.check_credentials(payload.username, payload.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return AdminLoginResponse(success=True, message="Login successful")


@router.get("/bookings", response_model=BookingListResponse)
async def list_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    result = await booking_service.list_bookings(db, page=page, limit=limit)
    return BookingListResponse(
        bookings=[booking.to_dict() for booking in result.bookings],
        total_pages=result.total_pages,
        current_page=result.current_page,
        total=result.total,
    )
