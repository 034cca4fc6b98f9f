import asyncio
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError

from conftest import RecordingNotifier, guest, reservation
from hotel_booking.exceptions import ConflictError, NotFoundError, TransientInfraError, ValidationError
from hotel_booking.models import Booking, BookingRoom, BookingStatus, PaymentStatus, Room, RoomType
from hotel_booking.services.availability_service import AvailabilityService
from hotel_booking.services.booking_service import (
    BookingService,
    ReservationResult,
    compute_total_amount,
    count_nights,
)
from hotel_booking.stores.room_locks import RoomLockRegistry


async def _room(session_factory, room_number: str) -> Room:
    async with session_factory() as session:
        return await session.get(Room, room_number)


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


def test_total_amount_is_nights_times_nightly_sum():
    assert count_nights(date(2024, 1, 10), date(2024, 1, 13)) == 3
    total = compute_total_amount([Decimal("1200"), Decimal("2500")], date(2024, 1, 10), date(2024, 1, 12))
    assert total == Decimal("7400")


async def test_create_booking_persists_and_flags_room(rooms, session, session_factory, booking_service, notifier):
    result = await booking_service.create_booking(session, guest(), reservation("101"))

    booking = result.booking
    assert booking.id
    assert booking.total_amount == Decimal("3600")
    assert booking.booking_status == BookingStatus.CONFIRMED
    assert booking.payment_status == PaymentStatus.PENDING
    assert booking.room_numbers == ["101"]
    assert booking.selected_rooms[0].price == Decimal("1200")
    assert booking.selected_rooms[0].room_type == RoomType.GENERAL
    assert result.email_sent is True
    assert notifier.notified == [booking]

    assert (await _room(session_factory, "101")).is_available is False
    assert (await _room(session_factory, "102")).is_available is True


async def test_multi_room_booking_keeps_selection_order(rooms, session, booking_service):
    result = await booking_service.create_booking(session, guest(), reservation("102", "101", price=Decimal("1200")))

    assert result.booking.room_numbers == ["102", "101"]
    assert result.booking.total_amount == Decimal("7200")


@pytest.mark.parametrize(
    "payload_kwargs, message",
    [
        ({"name": ""}, "Guest name is required"),
        ({"phone": "  "}, "Guest phone is required"),
    ],
)
async def test_guest_fields_are_required(rooms, session, booking_service, payload_kwargs, message):
    with pytest.raises(ValidationError, match=message):
        await booking_service.create_booking(session, guest(**payload_kwargs), reservation("101"))


async def test_rejects_bad_reservation_input(rooms, session, booking_service):
    empty = reservation("101")
    empty.selections = []
    with pytest.raises(ValidationError, match="At least one room"):
        await booking_service.create_booking(session, guest(), empty)

    no_type = reservation("101")
    no_type.room_type = None
    with pytest.raises(ValidationError, match="Room type is required"):
        await booking_service.create_booking(session, guest(), no_type)

    with pytest.raises(ValidationError, match="before check-out"):
        await booking_service.create_booking(
            session, guest(), reservation("101", check_in=date(2024, 1, 13), check_out=date(2024, 1, 13))
        )

    with pytest.raises(ValidationError, match="more than once"):
        await booking_service.create_booking(session, guest(), reservation("101", "101"))


async def test_rejects_unknown_mismatched_or_mispriced_rooms(rooms, session, session_factory, booking_service):
    with pytest.raises(ValidationError) as missing:
        await booking_service.create_booking(session, guest(), reservation("101", "999"))
    assert missing.value.room_number == "999"

    with pytest.raises(ValidationError) as wrong_type:
        await booking_service.create_booking(session, guest(), reservation("101", "201"))
    assert wrong_type.value.room_number == "201"

    with pytest.raises(ValidationError) as wrong_price:
        await booking_service.create_booking(session, guest(), reservation("101", price=Decimal("900")))
    assert wrong_price.value.room_number == "101"
    assert wrong_price.value.message.startswith("Price for room 101")

    assert await _count(session_factory, Booking) == 0
    assert (await _room(session_factory, "101")).is_available is True


async def test_overlapping_booking_is_rejected_naming_room(rooms, session, booking_service):
    await booking_service.create_booking(session, guest(), reservation("101"))

    with pytest.raises(ValidationError) as excinfo:
        await booking_service.create_booking(
            session, guest("Ravi"), reservation("102", "101", check_in=date(2024, 1, 12), check_out=date(2024, 1, 14))
        )
    assert excinfo.value.room_number == "101"
    assert "Room 101" in excinfo.value.message


async def test_back_to_back_stays_do_not_conflict(rooms, session, booking_service):
    await booking_service.create_booking(session, guest(), reservation("101"))
    result = await booking_service.create_booking(
        session, guest("Ravi"), reservation("101", check_in=date(2024, 1, 13), check_out=date(2024, 1, 15))
    )
    assert result.booking.check_in_date == date(2024, 1, 13)


async def test_failure_between_insert_and_room_update_rolls_back(rooms, session, session_factory, booking_service, monkeypatch):
    async def explode(*args, **kwargs):
        raise RuntimeError("room update failed")

    monkeypatch.setattr(booking_service, "_mark_rooms", explode)

    with pytest.raises(RuntimeError):
        await booking_service.create_booking(session, guest(), reservation("101"))

    assert await _count(session_factory, Booking) == 0
    assert await _count(session_factory, BookingRoom) == 0
    assert (await _room(session_factory, "101")).is_available is True


async def test_concurrent_bookings_for_same_room_admit_exactly_one(rooms, session_factory, booking_service):
    async def attempt(name: str):
        async with session_factory() as session:
            return await booking_service.create_booking(session, guest(name), reservation("101"))

    results = await asyncio.gather(attempt("First"), attempt("Second"), return_exceptions=True)

    successes = [result for result in results if isinstance(result, ReservationResult)]
    failures = [result for result in results if isinstance(result, ValidationError)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert failures[0].room_number == "101"
    assert await _count(session_factory, Booking) == 1


async def test_database_lock_admits_one_booking_across_processes(rooms, session_factory, notifier):
    # Separate lock registries stand in for two worker processes.
    services = [
        BookingService(notification_service=notifier, locks=RoomLockRegistry(), max_attempts=3, retry_backoff=0)
        for _ in range(2)
    ]

    async def attempt(service: BookingService, name: str):
        async with session_factory() as session:
            return await service.create_booking(session, guest(name), reservation("101"))

    results = await asyncio.gather(
        attempt(services[0], "First"), attempt(services[1], "Second"), return_exceptions=True
    )

    successes = [result for result in results if isinstance(result, ReservationResult)]
    failures = [result for result in results if isinstance(result, ValidationError)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert failures[0].room_number == "101"
    assert await _count(session_factory, Booking) == 1


async def test_notification_failure_keeps_booking(rooms, session, session_factory):
    service = BookingService(notification_service=RecordingNotifier(succeed=False), locks=RoomLockRegistry())

    result = await service.create_booking(session, guest(), reservation("101"))

    assert result.email_sent is False
    assert await _count(session_factory, Booking) == 1


async def test_transient_storage_errors_are_retried(rooms, session, booking_service, monkeypatch):
    calls = {"count": 0}
    original = AvailabilityService.find_conflicts

    async def flaky(self, *args, **kwargs):
        calls["count"] += 1
        if calls["count"] == 1:
            raise OperationalError("SELECT", {}, Exception("database is locked"))
        return await original(self, *args, **kwargs)

    monkeypatch.setattr(AvailabilityService, "find_conflicts", flaky)

    result = await booking_service.create_booking(session, guest(), reservation("101"))

    assert calls["count"] == 2
    assert result.booking.room_numbers == ["101"]


async def test_retries_are_bounded(rooms, session, session_factory, booking_service, monkeypatch):
    async def always_locked(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(AvailabilityService, "find_conflicts", always_locked)

    with pytest.raises(TransientInfraError):
        await booking_service.create_booking(session, guest(), reservation("101"))
    assert await _count(session_factory, Booking) == 0


async def test_complete_payment_once_then_conflict(rooms, session, booking_service):
    booking = (await booking_service.create_booking(session, guest(), reservation("101"))).booking

    updated = await booking_service.complete_payment(session, booking.id)
    assert updated.payment_status == PaymentStatus.COMPLETED

    with pytest.raises(ConflictError, match="already completed"):
        await booking_service.complete_payment(session, booking.id)


async def test_complete_payment_unknown_booking(rooms, session, booking_service):
    with pytest.raises(NotFoundError):
        await booking_service.complete_payment(session, "does-not-exist")


async def test_checkout_releases_rooms(rooms, session, session_factory, booking_service):
    booking = (await booking_service.create_booking(session, guest(), reservation("101"))).booking

    assert await booking_service.checkout(session, booking.id) == ["101"]
    assert (await _room(session_factory, "101")).is_available is True

    stored = await booking_service.get_booking(session, booking.id)
    assert stored.booking_status == BookingStatus.COMPLETED

    with pytest.raises(ConflictError):
        await booking_service.checkout(session, booking.id)


async def test_checkout_keeps_flag_for_room_held_by_later_booking(rooms, session, session_factory, booking_service):
    first = (await booking_service.create_booking(session, guest(), reservation("101"))).booking
    await booking_service.create_booking(
        session, guest("Ravi"), reservation("101", check_in=date(2024, 2, 1), check_out=date(2024, 2, 3))
    )

    assert await booking_service.checkout(session, first.id) == ["101"]
    assert (await _room(session_factory, "101")).is_available is False


async def test_checkout_unknown_booking(rooms, session, booking_service):
    with pytest.raises(NotFoundError):
        await booking_service.checkout(session, "does-not-exist")


async def test_cancelled_booking_frees_its_dates(rooms, session, booking_service):
    booking = (await booking_service.create_booking(session, guest(), reservation("101"))).booking
    await session.execute(
        update(Booking).where(Booking.id == booking.id).values(booking_status=BookingStatus.CANCELLED)
    )
    await session.commit()

    result = await booking_service.create_booking(session, guest("Ravi"), reservation("101"))
    assert result.booking.id != booking.id


async def test_list_bookings_pages_newest_first(rooms, session, booking_service):
    created = []
    for room_number in ("101", "102", "201"):
        room_type = RoomType.AC if room_number == "201" else RoomType.GENERAL
        result = await booking_service.create_booking(session, guest(), reservation(room_number, room_type=room_type))
        created.append(result.booking.id)

    first_page = await booking_service.list_bookings(session, page=1, limit=2)
    assert first_page.total == 3
    assert first_page.total_pages == 2
    assert first_page.current_page == 1
    assert [booking.id for booking in first_page.bookings] == [created[2], created[1]]

    second_page = await booking_service.list_bookings(session, page=2, limit=2)
    assert [booking.id for booking in second_page.bookings] == [created[0]]

    with pytest.raises(ValidationError):
        await booking_service.list_bookings(session, page=0)


async def test_checkout_of_cancelled_booking_conflicts(rooms, session, booking_service):
    booking = (await booking_service.create_booking(session, guest(), reservation("101"))).booking
    await session.execute(
        update(Booking).where(Booking.id == booking.id).values(booking_status=BookingStatus.CANCELLED)
    )
    await session.commit()

    with pytest.raises(ConflictError, match="already cancelled"):
        await booking_service.checkout(session, booking.id)
