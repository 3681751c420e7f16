from __future__ import annotations

from asyncio import Lock
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class MatchLocks:
    """Per-match async mutexes.

    Scoring writes read the ledger, derive new state and write it back; two
    interleaved requests for the same match could both act on the same last
    point. Holding the match lock across the service call and the commit keeps
    those sequences serial within one process.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[str, Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, match_id: str) -> AsyncIterator[None]:
        async with self._guard:
            lock = self._locks.setdefault(match_id, Lock())
            self._holders[match_id] = self._holders.get(match_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            async with self._guard:
                remaining = self._holders[match_id] - 1
                if remaining:
                    self._holders[match_id] = remaining
                else:
                    self._holders.pop(match_id, None)
                    self._locks.pop(match_id, None)

    def __len__(self) -> int:
        return len(self._locks)


match_locks = MatchLocks()
