"""Per-hotel write serialisation"""
import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator


class HotelLockRegistry:
    """One asyncio.Lock per hotel id.

    Ledger writes run "check conflict, then write" inside the hotel's lock so
    two requests for the same hotel can never interleave between the check
    and the write. Locks are process-local: a multi-process deployment needs
    a store-level exclusion constraint instead.

    Entries are weakly held and disappear once no coroutine holds or waits
    on the lock, so the registry only tracks hotels with writes in flight.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, hotel_id: str) -> asyncio.Lock:
        lock = self._locks.get(hotel_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[hotel_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, hotel_id: str) -> AsyncIterator[None]:
        lock = self._lock_for(hotel_id)
        async with lock:
            yield

    def is_locked(self, hotel_id: str) -> bool:
        lock = self._locks.get(hotel_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
