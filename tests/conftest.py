from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotel_booking.db.base import Base
from hotel_booking.db.database import build_engine
from hotel_booking.models import Booking, Room, RoomCategory, RoomType
from hotel_booking.services.booking_service import (
    BookingService,
    GuestPayload,
    ReservationPayload,
    RoomSelectionPayload,
)
from hotel_booking.services.notification_service import NotificationService
from hotel_booking.stores.room_locks import RoomLockRegistry


class RecordingNotifier(NotificationService):
    def __init__(self, succeed: bool = True) -> None:
        super().__init__()
        self.succeed = succeed
        self.notified: list[Booking] = []

    async def notify(self, booking: Booking) -> bool:  # type: ignore[override]
        self.notified.append(booking)
        return self.succeed


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}", timeout=5.0)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def rooms(session_factory):
    async with session_factory() as session:
        session.add_all(
            [
                Room(room_number="101", room_type=RoomType.GENERAL, category=RoomCategory.STANDARD, price=Decimal("1200"), capacity=4, amenities=["Fan"]),
                Room(room_number="102", room_type=RoomType.GENERAL, category=RoomCategory.STANDARD, price=Decimal("1200"), capacity=4, amenities=["Fan"]),
                Room(room_number="201", room_type=RoomType.AC, category=RoomCategory.SUITE, price=Decimal("2500"), capacity=2, amenities=["AC", "TV"]),
                Room(room_number="202", room_type=RoomType.NON_AC, category=RoomCategory.STANDARD, price=Decimal("1800"), capacity=2),
            ]
        )
        await session.commit()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def booking_service(notifier):
    return BookingService(notification_service=notifier, locks=RoomLockRegistry(), max_attempts=3, retry_backoff=0)


def guest(name: str = "Asha Rao", phone: str = "+919800000001", email: str | None = "asha@example.com") -> GuestPayload:
    return GuestPayload(name=name, phone=phone, email=email)


def reservation(
    *room_numbers: str,
    check_in: date = date(2024, 1, 10),
    check_out: date = date(2024, 1, 13),
    room_type: RoomType = RoomType.GENERAL,
    price: Decimal | None = None,
) -> ReservationPayload:
    return ReservationPayload(
        room_type=room_type,
        selections=[RoomSelectionPayload(room_number=number, price=price) for number in (room_numbers or ("101",))],
        check_in=check_in,
        check_out=check_out,
    )
