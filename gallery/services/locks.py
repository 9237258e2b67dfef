"""
Per-key asyncio locks for operations that must not interleave on one image
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Hashable


class KeyedLocks:
    """One asyncio.Lock per key, dropped again once nobody holds or waits on it"""

    def __init__(self):
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable):
        # Get or create lock for this key
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        lock = self._locks[key]
        self._users[key] = self._users.get(key, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


# Shared by rotation (key: ("image", image_id)), linking
# (key: ("link", image_id, person_id)) and directory sync (key: ("sync",))
image_locks = KeyedLocks()
