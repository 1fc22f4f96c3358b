"""External statement-period confirmations and their cache value object."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional, Tuple


@dataclass(frozen=True)
class StatementPeriod:
    """A statement period confirmed by the data provider."""

    end_date: date
    start_date: Optional[date] = None
    confidence: float = 1.0


@dataclass(frozen=True)
class CachedStatementPeriods:
    """Statement periods for one account and when they were fetched."""

    data: Tuple[StatementPeriod, ...]
    fetched_at: datetime = field(default_factory=datetime.utcnow)

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.fetched_at < ttl
