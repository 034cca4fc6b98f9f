from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager
from threading import RLock
from typing import Dict


class RoomLockRegistry:
    """In-process single-writer locks, one per room number.

    Reservations and checkouts touching the same room in this process run one
    at a time. Locks are always taken in sorted order so two requests over
    overlapping room sets cannot deadlock each other.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._guard = RLock()

    def _lock_for(self, room_number: str) -> asyncio.Lock:
        with self._guard:
            lock = self._locks.get(room_number)
            if lock is None:
                lock = self._locks[room_number] = asyncio.Lock()
            return lock

    @asynccontextmanager
    async def hold(self, room_numbers: Iterable[str]) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for room_number in sorted(set(room_numbers)):
                await stack.enter_async_context(self._lock_for(room_number))
            yield

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()


room_locks = RoomLockRegistry()
