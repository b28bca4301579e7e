"""Per-asset leases for the compression coordinator."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class AssetLockRegistry:
    """Serializes coordinator runs per asset id within one event loop.

    Locks are created on demand and dropped when the last holder or waiter
    releases them, so the registry does not grow with the asset count.
    """

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, asset_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(asset_id, asyncio.Lock())
        self._users[asset_id] = self._users.get(asset_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[asset_id] -= 1
            if self._users[asset_id] == 0:
                del self._users[asset_id]
                del self._locks[asset_id]

    def is_held(self, asset_id: int) -> bool:
        lock = self._locks.get(asset_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
