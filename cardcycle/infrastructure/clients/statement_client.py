"""HTTP implementation of StatementProviderClient."""

import asyncio
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx
import structlog

from cardcycle.core.config import settings
from cardcycle.core.metrics import (
    track_statement_fetch_latency,
    record_statement_fetch_success,
    record_statement_fetch_failure,
)
from cardcycle.domain.entities import StatementPeriod
from cardcycle.domain.exceptions import (
    TransientProviderError,
    TransientProviderTimeoutError,
)
from cardcycle.domain.interfaces import StatementProviderClient

logger = structlog.get_logger(__name__)


class HttpStatementProviderClient(StatementProviderClient):
    """
    HTTP client for the data provider's statement listings.

    Fetches confirmed statement periods with retry logic. Every failure
    surfaces as TransientProviderError so callers can fall back to
    heuristic boundaries.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        self._base_url = base_url or settings.statement_provider_url
        self._timeout = timeout or settings.statement_provider_timeout
        self._max_retries = max_retries or settings.statement_provider_max_retries

    async def get_statement_periods(self, account_id: UUID) -> List[StatementPeriod]:
        """
        Fetch statement periods for an account.

        Implements retry logic with exponential backoff. A 404 means the
        provider has no statements for the account and is not retried.
        """
        url = f"{self._base_url}/statements/periods"
        params = {"account_id": str(account_id)}

        last_exception = None

        for attempt in range(self._max_retries):
            try:
                with track_statement_fetch_latency():
                    async with httpx.AsyncClient(timeout=self._timeout) as client:
                        response = await client.get(url, params=params)

                        if response.status_code == 404:
                            record_statement_fetch_success()
                            return []

                        if response.status_code >= 500:
                            raise TransientProviderError(
                                message=f"Statement provider error: {response.text}",
                                status_code=response.status_code,
                            )

                        if response.status_code >= 400:
                            record_statement_fetch_failure()
                            raise TransientProviderError(
                                message=f"Statement provider rejected request: {response.text}",
                                status_code=response.status_code,
                            )

                        periods = self._parse_periods(response.json())
                        record_statement_fetch_success()
                        return periods

            except httpx.TimeoutException:
                record_statement_fetch_failure()
                last_exception = TransientProviderTimeoutError()
                logger.warning(
                    "statement_provider_timeout",
                    account_id=str(account_id),
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                )
            except TransientProviderError as e:
                if e.status_code is not None and e.status_code < 500:
                    raise
                record_statement_fetch_failure()
                last_exception = e
                logger.warning(
                    "statement_provider_error",
                    account_id=str(account_id),
                    attempt=attempt + 1,
                    status_code=e.status_code,
                )
            except Exception as e:
                record_statement_fetch_failure()
                last_exception = TransientProviderError(
                    message=f"Unexpected error: {str(e)}",
                )
                logger.error(
                    "statement_provider_error",
                    account_id=str(account_id),
                    attempt=attempt + 1,
                    error=str(e),
                )

            # Exponential backoff
            if attempt < self._max_retries - 1:
                await asyncio.sleep(2**attempt * 0.1)

        raise last_exception or TransientProviderError("Failed to fetch statement periods")

    def _parse_periods(self, data: Dict[str, Any]) -> List[StatementPeriod]:
        """Parse raw API response into StatementPeriod entities."""
        periods = []

        for item in data.get("periods", []):
            end_date = _parse_date(item.get("end_date"))
            if end_date is None:
                continue

            periods.append(
                StatementPeriod(
                    end_date=end_date,
                    start_date=_parse_date(item.get("start_date")),
                    confidence=float(item.get("confidence", 1.0)),
                )
            )

        return sorted(periods, key=lambda p: p.end_date, reverse=True)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])
