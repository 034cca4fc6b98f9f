from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.db.database import get_session
from hotel_booking.schemas import BookingRequest, CheckoutResponse
from hotel_booking.services.booking_service import (
    BookingService,
    GuestPayload,
    ReservationPayload,
    RoomSelectionPayload,
    get_booking_service,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])

NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"description": "Booking not found"}}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingRequest,
    db: AsyncSession = Depends(get_session),
    booking_service: BookingService = Depends(get_booking_service),
) -> Dict[str, Any]:
    result = await booking_service.create_booking(
        session=db,
        guest=GuestPayload(
            name=payload.customer.name,
            phone=payload.customer.phone,
            email=payload.customer.email,
            address=payload.customer.address,
        ),
        reservation=ReservationPayload(
            room_type=payload.room_type,
            category=payload.category,
            selections=[
                RoomSelectionPayload(room_number=selection.room_number, price=selection.price)
                for selection in payload.selected_rooms
            ],
            check_in=payload.check_in_date,
            check_out=payload.check_out_date,
            payment_method=payload.payment_method,
            special_requests=payload.special_requests,
            payment_proof=payload.payment_proof,
            arrival_time=payload.arrival_time,
        ),
    )
    return {
        "booking": result.booking.to_dict(),
        "email_sent": result.email_sent,
        "message": "Booking created successfully",
    }


@router.get("/{booking_id}")
async def get_booking(
    booking_id: str,
    db: AsyncSession = Depends(get_session),
    booking_service: BookingService = Depends(get_booking_service),
) -> Dict[str, Any]:
    booking = await booking_service.get_booking(db, booking_id)
    return {"booking": booking.to_dict()}


@router.put(
    "/{booking_id}/payment",
    responses={**NOT_FOUND, status.HTTP_409_CONFLICT: {"description": "Payment already completed"}},
)
async def complete_payment(
    booking_id: str,
    db: AsyncSession = Depends(get_session),
    booking_service: BookingService = Depends(get_booking_service),
) -> Dict[str, Any]:
    booking = await booking_service.complete_payment(db, booking_id)
    return {"booking": booking.to_dict()}


@router.put(
    "/{booking_id}/checkout",
    response_model=CheckoutResponse,
    responses={**NOT_FOUND, status.HTTP_409_CONFLICT: {"description": "Booking is not confirmed"}},
)
async def checkout(
    booking_id: str,
    db: AsyncSession = Depends(get_session),
    booking_service: BookingService = Depends(get_booking_service),
) -> CheckoutResponse:
    room_numbers = await booking_service.checkout(db, booking_id)
    return CheckoutResponse(room_numbers=room_numbers)
