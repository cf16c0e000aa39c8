"""
backend/estate_reviews/review/locks.py

Per-target serialization.
Mutations of one target's reviews run one at a time inside this process, so
the duplicate check and the aggregate read-modify-write cannot interleave
with another mutation of the same target.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from estate_reviews.review.schemas import TargetRef


class TargetLocks:
    """Registry of asyncio locks keyed by target, dropped once unused."""

    def __init__(self) -> None:
        self._locks: dict[TargetRef, asyncio.Lock] = {}
        self._users: dict[TargetRef, int] = {}

    @asynccontextmanager
    async def hold(self, target: TargetRef) -> AsyncIterator[None]:
        lock = self._locks.setdefault(target, asyncio.Lock())
        self._users[target] = self._users.get(target, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[target] -= 1
            if self._users[target] == 0:
                del self._users[target]
                del self._locks[target]

    def __len__(self) -> int:
        return len(self._locks)


# Shared by every request handled by this process
target_locks = TargetLocks()
