"""
In-process serialization of runs that target the same job.

A re-delivered upload event and a restitch directive for the same video would
otherwise race on the same output objects and status row.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class JobLocks:
    """One asyncio.Lock per job key, dropped when no run holds or awaits it."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def is_held(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
