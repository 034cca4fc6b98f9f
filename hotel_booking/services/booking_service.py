from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.db.database import transaction
from hotel_booking.exceptions import ConflictError, NotFoundError, TransientInfraError, ValidationError
from hotel_booking.models import (
    Booking,
    BookingRoom,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    Room,
    RoomCategory,
    RoomType,
)
from hotel_booking.services.availability_service import AvailabilityService, validate_date_range
from hotel_booking.services.notification_service import NotificationService, get_notification_service
from hotel_booking.stores.room_locks import RoomLockRegistry, room_locks
from hotel_booking.utils.config import get_settings

logger = logging.getLogger(__name__)

# PostgreSQL serialization_failure and deadlock_detected.
_RETRYABLE_SQLSTATES = {"40001", "40P01"}


@dataclass
class GuestPayload:
    name: Optional[str]
    phone: Optional[str]
    email: Optional[str] = None
    address: Optional[str] = None


@dataclass
class RoomSelectionPayload:
    room_number: str
    price: Optional[Decimal] = None


@dataclass
class ReservationPayload:
    room_type: Optional[RoomType]
    selections: List[RoomSelectionPayload]
    check_in: Optional[date]
    check_out: Optional[date]
    category: Optional[RoomCategory] = None
    payment_method: PaymentMethod = PaymentMethod.ONLINE
    special_requests: Optional[str] = None
    payment_proof: Optional[str] = None
    arrival_time: Optional[datetime] = None


@dataclass
class ReservationResult:
    booking: Booking
    email_sent: bool


@dataclass
class BookingPage:
    bookings: List[Booking] = field(default_factory=list)
    total_pages: int = 0
    current_page: int = 1
    total: int = 0


def count_nights(check_in: date, check_out: date) -> int:
    return max(1, math.ceil((check_out - check_in).days))


def compute_total_amount(prices: Iterable[Decimal], check_in: date, check_out: date) -> Decimal:
    return sum(prices, Decimal("0")) * count_nights(check_in, check_out)


def _is_retryable(error: DBAPIError) -> bool:
    if error.connection_invalidated:
        return True
    original = error.orig
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    return isinstance(error, OperationalError) and "locked" in str(original).lower()


class BookingService:
    """Owns every write to the booking ledger and the room availability flags."""

    def __init__(
        self,
        availability_service: AvailabilityService | None = None,
        notification_service: NotificationService | None = None,
        locks: RoomLockRegistry | None = None,
        max_attempts: int | None = None,
        retry_backoff: float | None = None,
    ) -> None:
        settings = get_settings()
        self.availability_service = availability_service or AvailabilityService()
        self.notification_service = notification_service or get_notification_service()
        self.locks = locks or room_locks
        self.max_attempts = max(1, max_attempts or settings.transaction_max_attempts)
        self.retry_backoff = settings.transaction_retry_backoff if retry_backoff is None else retry_backoff

    async def create_booking(
        self,
        session: AsyncSession,
        guest: GuestPayload,
        reservation: ReservationPayload,
    ) -> ReservationResult:
        self._validate_request(guest, reservation)
        room_numbers = [selection.room_number for selection in reservation.selections]

        attempt = 1
        while True:
            try:
                async with self.locks.hold(room_numbers):
                    booking = await self._reserve(session, guest, reservation)
                break
            except DBAPIError as error:
                if not _is_retryable(error):
                    raise
                if attempt >= self.max_attempts:
                    logger.error(
                        "Reservation gave up after transient storage errors",
                        extra={"room_numbers": room_numbers, "attempts": attempt},
                    )
                    raise TransientInfraError("Booking storage is busy, please retry") from error
                delay = self.retry_backoff * (2 ** (attempt - 1))
                logger.warning(
                    "Transient storage error during reservation, retrying (%d/%d)",
                    attempt,
                    self.max_attempts,
                    extra={"room_numbers": room_numbers, "error": str(error.orig)},
                )
                await asyncio.sleep(delay)
                attempt += 1

        logger.info(
            "Booking confirmed",
            extra={
                "booking_id": booking.id,
                "room_numbers": room_numbers,
                "total_amount": str(booking.total_amount),
            },
        )

        # Runs after commit; a failed email never undoes the booking.
        email_sent = await self.notification_service.notify(booking)
        return ReservationResult(booking=booking, email_sent=email_sent)

    def _validate_request(self, guest: GuestPayload, reservation: ReservationPayload) -> None:
        if not (guest.name or "").strip():
            raise ValidationError("Guest name is required")
        if not (guest.phone or "").strip():
            raise ValidationError("Guest phone is required")
        if reservation.room_type is None:
            raise ValidationError("Room type is required")
        if not reservation.selections:
            raise ValidationError("At least one room must be selected")
        validate_date_range(reservation.check_in, reservation.check_out)

        seen: set[str] = set()
        for selection in reservation.selections:
            if not (selection.room_number or "").strip():
                raise ValidationError("Room number is required for every selected room")
            if selection.room_number in seen:
                raise ValidationError(f"Room {selection.room_number} is selected more than once", selection.room_number)
            seen.add(selection.room_number)

    async def _reserve(
        self,
        session: AsyncSession,
        guest: GuestPayload,
        reservation: ReservationPayload,
    ) -> Booking:
        room_numbers = [selection.room_number for selection in reservation.selections]

        async with transaction(session):
            rooms = await self._lock_rooms(session, room_numbers)
            self._check_rooms(rooms, reservation)

            conflicts = await self.availability_service.find_conflicts(
                session, room_numbers, reservation.check_in, reservation.check_out
            )
            for room_number in room_numbers:
                if room_number in conflicts:
                    raise ValidationError(
                        f"Room {room_number} is not available for the selected dates",
                        room_number,
                    )

            entries = [
                BookingRoom(
                    room_number=room_number,
                    position=position,
                    price=rooms[room_number].price,
                    room_type=rooms[room_number].room_type,
                    category=rooms[room_number].category,
                )
                for position, room_number in enumerate(room_numbers)
            ]
            booking = Booking(
                customer_name=guest.name.strip(),
                customer_phone=guest.phone.strip(),
                customer_email=guest.email or None,
                customer_address=guest.address or None,
                room_type=reservation.room_type,
                check_in_date=reservation.check_in,
                check_out_date=reservation.check_out,
                arrival_time=reservation.arrival_time,
                total_amount=compute_total_amount(
                    (entry.price for entry in entries), reservation.check_in, reservation.check_out
                ),
                payment_status=PaymentStatus.PENDING,
                payment_method=reservation.payment_method,
                payment_proof=reservation.payment_proof or None,
                special_requests=reservation.special_requests or None,
                booking_status=BookingStatus.CONFIRMED,
                selected_rooms=entries,
            )
            session.add(booking)
            await session.flush()

            await self._mark_rooms(session, room_numbers, available=False)

        return booking

    async def _lock_rooms(self, session: AsyncSession, room_numbers: Sequence[str]) -> dict[str, Room]:
        stmt = (
            select(Room)
            .where(Room.room_number.in_(room_numbers))
            .order_by(Room.room_number)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        rooms = {room.room_number: room for room in (await session.execute(stmt)).scalars().all()}
        for room_number in room_numbers:
            if room_number not in rooms:
                raise ValidationError(f"Room {room_number} does not exist", room_number)
        return rooms

    def _check_rooms(self, rooms: dict[str, Room], reservation: ReservationPayload) -> None:
        for selection in reservation.selections:
            room = rooms[selection.room_number]
            if room.room_type != reservation.room_type:
                raise ValidationError(
                    f"Room {room.room_number} is {room.room_type.value}, not {reservation.room_type.value}",
                    room.room_number,
                )
            if reservation.category is not None and room.category != reservation.category:
                raise ValidationError(
                    f"Room {room.room_number} is not in category {reservation.category.value}",
                    room.room_number,
                )
            if selection.price is not None and Decimal(selection.price) != room.price:
                raise ValidationError(
                    f"Price for room {room.room_number} is {room.price}, not {selection.price}",
                    room.room_number,
                )

    async def _mark_rooms(self, session: AsyncSession, room_numbers: Sequence[str], available: bool) -> None:
        if not room_numbers:
            return
        await session.execute(
            update(Room).where(Room.room_number.in_(room_numbers)).values(is_available=available)
        )

    async def complete_payment(self, session: AsyncSession, booking_id: str) -> Booking:
        async with transaction(session):
            result = await session.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.payment_status == PaymentStatus.PENDING)
                .values(payment_status=PaymentStatus.COMPLETED)
                .execution_options(synchronize_session=False)
            )
            booking = await self._get_booking(session, booking_id)
            if result.rowcount == 0:
                raise ConflictError("Payment already completed")

        logger.info("Payment completed", extra={"booking_id": booking_id})
        return booking

    async def checkout(self, session: AsyncSession, booking_id: str) -> List[str]:
        """Complete a confirmed booking; rooms still held by another confirmed booking keep their flag."""

        room_numbers = (await self._get_booking(session, booking_id)).room_numbers
        # End the read transaction before waiting on room locks.
        await session.commit()

        async with self.locks.hold(room_numbers):
            async with transaction(session):
                result = await session.execute(
                    update(Booking)
                    .where(Booking.id == booking_id, Booking.booking_status == BookingStatus.CONFIRMED)
                    .values(booking_status=BookingStatus.COMPLETED)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    booking = await self._get_booking(session, booking_id)
                    raise ConflictError(f"Booking is already {booking.booking_status.value.lower()}")

                # Another confirmed booking may still hold one of these rooms.
                still_held = await self.availability_service.held_room_numbers(session, room_numbers)
                released = [number for number in room_numbers if number not in still_held]
                await self._mark_rooms(session, released, available=True)

        logger.info(
            "Checkout completed",
            extra={"booking_id": booking_id, "room_numbers": room_numbers, "released": released},
        )
        return room_numbers

    async def get_booking(self, session: AsyncSession, booking_id: str) -> Booking:
        return await self._get_booking(session, booking_id)

    async def _get_booking(self, session: AsyncSession, booking_id: str) -> Booking:
        stmt = select(Booking).where(Booking.id == booking_id).execution_options(populate_existing=True)
        booking = (await session.execute(stmt)).scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    async def list_bookings(self, session: AsyncSession, page: int = 1, limit: int = 10) -> BookingPage:
        if page < 1:
            raise ValidationError("page must be at least 1")
        if limit < 1:
            raise ValidationError("limit must be at least 1")

        total = (await session.execute(select(func.count()).select_from(Booking))).scalar_one()
        stmt = (
            select(Booking)
            .order_by(Booking.created_at.desc(), Booking.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        bookings = list((await session.execute(stmt)).scalars().unique().all())
        return BookingPage(
            bookings=bookings,
            total_pages=math.ceil(total / limit),
            current_page=page,
            total=total,
        )


def get_booking_service() -> BookingService:
    return BookingService()
