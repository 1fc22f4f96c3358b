"""In-process statement period cache."""

import asyncio
from typing import Dict, Optional
from uuid import UUID

from cardcycle.domain.entities import CachedStatementPeriods
from cardcycle.domain.interfaces import StatementPeriodCache


class InMemoryStatementPeriodCache(StatementPeriodCache):
    """
    Statement period cache held in process memory.

    Entries are never evicted here; freshness is decided by the caller
    using the entry's fetched_at timestamp.
    """

    def __init__(self):
        self._entries: Dict[str, CachedStatementPeriods] = {}
        self._lock = asyncio.Lock()

    async def get(self, account_id: UUID) -> Optional[CachedStatementPeriods]:
        async with self._lock:
            return self._entries.get(str(account_id))

    async def set(self, account_id: UUID, entry: CachedStatementPeriods) -> None:
        async with self._lock:
            self._entries[str(account_id)] = entry

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()


statement_period_cache = InMemoryStatementPeriodCache()
