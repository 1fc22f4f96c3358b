"""Billing cycle service - orchestrates cycle computation across accounts."""

import asyncio
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple
from uuid import UUID

import structlog

from cardcycle.application.dto import (
    AccountBillingCyclesResponse,
    AccountCycleResult,
    AccountCycleStatus,
    AccountSummary,
    BillingCycleDTO,
    UserBillingCyclesResponse,
)
from cardcycle.core.metrics import (
    record_account_failure,
    record_cycle_computation,
    record_payment_detected,
    record_statement_cache,
    track_cycle_computation_latency,
)
from cardcycle.domain.entities import (
    Account,
    BillingCycle,
    CachedStatementPeriods,
    StatementPeriod,
)
from cardcycle.domain.exceptions import (
    AccountNotFoundException,
    DomainException,
    InvalidBoundaryPolicyError,
    PersistenceConflictError,
    TransientProviderError,
)
from cardcycle.domain.interfaces import (
    AccountRepository,
    BillingCycleRepository,
    StatementPeriodCache,
    StatementProviderClient,
    TransactionRepository,
)
from cardcycle.service.cycles import (
    CycleSettings,
    apply_display_policy,
    calculate_billing_cycles,
    cycle_settings,
    latest_closed_cycle,
)

logger = structlog.get_logger(__name__)

StatementPeriods = Tuple[StatementPeriod, ...]


class BillingCycleService:
    """
    Application service for billing cycle use cases.

    Statement confirmations are fetched concurrently for all accounts.
    Each account is then computed into a local list and written once, so a
    failing account never affects the others.
    """

    PERSISTENCE_ATTEMPTS = 2

    def __init__(
        self,
        account_repository: AccountRepository,
        transaction_repository: TransactionRepository,
        billing_cycle_repository: BillingCycleRepository,
        statement_cache: StatementPeriodCache,
        statement_client: Optional[StatementProviderClient] = None,
        cache_ttl: timedelta = timedelta(hours=24),
        settings: CycleSettings = cycle_settings,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self._account_repo = account_repository
        self._transaction_repo = transaction_repository
        self._cycle_repo = billing_cycle_repository
        self._statement_cache = statement_cache
        self._statement_client = statement_client
        self._cache_ttl = cache_ttl
        self._settings = settings
        self._clock = clock

    async def compute_for_user(
        self,
        user_id: str,
        today: Optional[date] = None,
    ) -> UserBillingCyclesResponse:
        """
        Compute, store and merge billing cycles for every account of a user.

        Args:
            user_id: The user's identifier
            today: Current date (defaults to the system date)

        Returns:
            UserBillingCyclesResponse with cycles sorted newest end date
            first and one result per account
        """
        today = today or date.today()
        log = logger.bind(user_id=user_id)

        with track_cycle_computation_latency():
            accounts = await self._account_repo.get_by_user_id(user_id)
            anchored = [
                a for a in accounts if a.has_anchor_signal and a.policy_error is None
            ]
            fetched = await asyncio.gather(
                *(self._statement_periods(a) for a in anchored)
            )
            periods: Dict[UUID, StatementPeriods] = {
                account.id: result for account, result in zip(anchored, fetched)
            }

            results: List[AccountCycleResult] = []
            merged: List[BillingCycleDTO] = []
            for account in accounts:
                result, cycles = await self._process_account(
                    account,
                    today,
                    periods.get(account.id, ()),
                )
                results.append(result)
                merged.extend(BillingCycleDTO.from_entity(c, account) for c in cycles)

        merged.sort(key=lambda c: (c.end_date, c.start_date), reverse=True)

        log.info(
            "user_cycles_computed",
            account_count=len(accounts),
            cycle_count=len(merged),
            failed=sum(1 for r in results if r.status == AccountCycleStatus.FAILED),
            skipped=sum(1 for r in results if r.status == AccountCycleStatus.SKIPPED),
        )

        return UserBillingCyclesResponse(user_id=user_id, cycles=merged, accounts=results)

    async def compute_for_account(
        self,
        account_id: UUID,
        today: Optional[date] = None,
    ) -> AccountBillingCyclesResponse:
        """
        Compute billing cycles for a single account.

        Unlike the user-level computation, an account without an anchor
        signal gets a provisional best-effort window. That window is not
        stored.

        Raises:
            AccountNotFoundException: If the account doesn't exist
            InvalidBoundaryPolicyError: If the account's policy is invalid
            PersistenceConflictError: If the write fails after retrying
        """
        today = today or date.today()
        account = await self._get_account(account_id)
        log = logger.bind(account_id=str(account.id), user_id=account.user_id)
        self._check_policy(account)

        with track_cycle_computation_latency():
            periods: StatementPeriods = ()
            if account.has_anchor_signal:
                periods = await self._statement_periods(account)

            transactions = await self._transaction_repo.get_by_account_id(account.id)
            cycles = calculate_billing_cycles(
                account,
                transactions,
                today,
                statement_periods=periods,
                settings=self._settings,
                apply_display_window=False,
            )

            if account.has_anchor_signal:
                await self._persist(account, cycles, log)
                visible = apply_display_policy(cycles, account.issuer, today, self._settings)
            else:
                log.info("best_effort_window_emitted")
                visible = cycles

        self._record_payments(cycles)
        record_cycle_computation("ok")
        log.info(
            "cycles_computed",
            cycle_count=len(visible),
            stored_count=len(cycles),
            latest_close=self._latest_close(cycles),
        )

        return AccountBillingCyclesResponse(
            account=AccountSummary.from_entity(account),
            cycles=[BillingCycleDTO.from_entity(c, account) for c in visible],
        )

    async def get_stored_cycles(self, account_id: UUID) -> AccountBillingCyclesResponse:
        """
        Get the persisted cycles of an account.

        Raises:
            AccountNotFoundException: If the account doesn't exist
        """
        account = await self._get_account(account_id)
        cycles = await self._cycle_repo.get_by_account_id(account.id)
        return AccountBillingCyclesResponse(
            account=AccountSummary.from_entity(account),
            cycles=[BillingCycleDTO.from_entity(c, account) for c in cycles],
        )

    async def _get_account(self, account_id: UUID) -> Account:
        account = await self._account_repo.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundException(str(account_id))
        return account

    async def _process_account(
        self,
        account: Account,
        today: date,
        periods: StatementPeriods,
    ) -> Tuple[AccountCycleResult, List[BillingCycle]]:
        """Compute and store one account's cycles, isolating any failure."""
        log = logger.bind(account_id=str(account.id), user_id=account.user_id)
        summary = AccountSummary.from_entity(account)

        if not account.has_anchor_signal and account.policy_error is None:
            log.info("account_skipped_missing_anchor")
            record_cycle_computation("skipped")
            return (
                AccountCycleResult(
                    account=summary,
                    status=AccountCycleStatus.SKIPPED,
                    error_code="MISSING_ANCHOR",
                    message="No statement date or boundary policy for this account",
                ),
                [],
            )

        try:
            self._check_policy(account)
            transactions = await self._transaction_repo.get_by_account_id(account.id)
            cycles = calculate_billing_cycles(
                account,
                transactions,
                today,
                statement_periods=periods,
                settings=self._settings,
                apply_display_window=False,
            )
            await self._persist(account, cycles, log)
        except PersistenceConflictError as e:
            record_account_failure("persistence_conflict")
            return self._failed(summary, e.code, e.message), []
        except DomainException as e:
            log.warning(
                "account_cycle_computation_failed",
                code=e.code,
                message=e.message,
            )
            record_account_failure("domain_error")
            return self._failed(summary, e.code, e.message), []
        except Exception as e:
            log.exception(
                "account_cycle_computation_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            record_account_failure("unexpected")
            return self._failed(summary, "INTERNAL_ERROR", "Cycle computation failed"), []

        self._record_payments(cycles)
        visible = apply_display_policy(cycles, account.issuer, today, self._settings)
        record_cycle_computation("ok")
        log.info(
            "cycles_computed",
            cycle_count=len(visible),
            stored_count=len(cycles),
            latest_close=self._latest_close(cycles),
        )

        return (
            AccountCycleResult(
                account=summary,
                status=AccountCycleStatus.OK,
                cycle_count=len(visible),
            ),
            visible,
        )

    async def _persist(self, account: Account, cycles: List[BillingCycle], log) -> None:
        """Write an account's cycles, retrying once on conflict."""
        for attempt in range(1, self.PERSISTENCE_ATTEMPTS + 1):
            try:
                await self._cycle_repo.upsert_many(account.id, cycles)
                return
            except PersistenceConflictError as e:
                log.warning(
                    "cycle_persistence_conflict",
                    attempt=attempt,
                    max_attempts=self.PERSISTENCE_ATTEMPTS,
                    message=e.message,
                )
                if attempt == self.PERSISTENCE_ATTEMPTS:
                    raise

    async def _statement_periods(self, account: Account) -> StatementPeriods:
        """
        Confirmed statement periods for an account, via the cache.

        A fresh cache entry is used as is. Otherwise the provider is asked;
        if the cache or the provider fails the stale entry is used when
        present, else none, and cycles fall back to the boundary policy.
        """
        log = logger.bind(account_id=str(account.id))
        cached: Optional[CachedStatementPeriods] = None
        now = self._clock()

        try:
            cached = await self._statement_cache.get(account.id)
            if cached is not None and cached.is_fresh(now, self._cache_ttl):
                record_statement_cache("hit")
                log.debug("statement_cache_hit", fetched_at=cached.fetched_at.isoformat())
                return cached.data

            record_statement_cache("stale" if cached is not None else "miss")
            if self._statement_client is None:
                return cached.data if cached is not None else ()

            periods = tuple(await self._statement_client.get_statement_periods(account.id))
        except TransientProviderError as e:
            log.warning(
                "statement_periods_fetch_failed",
                code=e.code,
                message=e.message,
                using_stale=cached is not None,
            )
            return cached.data if cached is not None else ()
        except Exception as e:
            log.exception(
                "statement_periods_fetch_failed",
                error=str(e),
                error_type=type(e).__name__,
                using_stale=cached is not None,
            )
            return cached.data if cached is not None else ()

        try:
            await self._statement_cache.set(
                account.id,
                CachedStatementPeriods(data=periods, fetched_at=now),
            )
        except Exception as e:
            log.warning(
                "statement_cache_write_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
        return periods

    @staticmethod
    def _check_policy(account: Account) -> None:
        if account.policy_error is not None:
            raise InvalidBoundaryPolicyError(account.policy_error)

    @staticmethod
    def _failed(summary: AccountSummary, code: str, message: str) -> AccountCycleResult:
        return AccountCycleResult(
            account=summary,
            status=AccountCycleStatus.FAILED,
            error_code=code,
            message=message,
        )

    @staticmethod
    def _latest_close(cycles: List[BillingCycle]) -> Optional[str]:
        latest = latest_closed_cycle(cycles)
        return latest.end_date.isoformat() if latest else None

    @staticmethod
    def _record_payments(cycles: List[BillingCycle]) -> None:
        for cycle in cycles:
            if cycle.payment_detected:
                record_payment_detected()
