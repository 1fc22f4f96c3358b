"""
Cycle Boundary Generation for CardCycle.

This module turns a statement anchor (the most recent known close date)
and a boundary policy into a contiguous chain of statement periods:

- a trailing chain of closed periods ending on the anchor,
- any periods that have closed since the anchor (stale provider data),
- exactly one open period that ends after today.

Every window is derived from two consecutive close dates, so the chain is
contiguous by construction: a window starts the day after the previous
close.

Supported policies:
- fixed-day-of-month: close on day D, clamped to the month's length
- days-before-month-end: close N days before the last day of the month
- dynamic-anchor: close drifts by a day across month-length transitions
  while being pulled toward a target day (see DynamicAnchorRule)
- explicit dates: closes listed by a manual override
"""

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from cardcycle.domain.entities import (
    Account,
    BoundaryPolicy,
    BoundaryPolicyType,
    StatementPeriod,
)
from cardcycle.domain.exceptions import InvalidBoundaryPolicyError, MissingAnchorError

from .settings import CycleSettings, cycle_settings


MonthKey = Tuple[int, int]


@dataclass(frozen=True)
class CycleWindow:
    """One statement period, end date inclusive."""

    start_date: date
    end_date: date
    is_open: bool = False
    is_anchor: bool = False

    @property
    def length_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class CycleBoundaries:
    """
    A chain of statement close dates for one account.

    Attributes:
        closes: Close dates, oldest first. The first entry only bounds the
            start of the oldest window.
        anchor: The close the chain was built around
        open_end: End date of the open period (always after today)
    """

    closes: Tuple[date, ...]
    anchor: date
    open_end: date
    reported_anchor: Optional[date] = None

    def windows(self) -> List[CycleWindow]:
        """Return every window, newest start first."""
        windows = [
            CycleWindow(
                start_date=self.closes[-1] + timedelta(days=1),
                end_date=self.open_end,
                is_open=True,
            )
        ]
        for earlier, later in zip(reversed(self.closes[:-1]), reversed(self.closes[1:])):
            windows.append(
                CycleWindow(
                    start_date=earlier + timedelta(days=1),
                    end_date=later,
                    is_anchor=later == self.reported_anchor,
                )
            )
        return windows


# =============================================================================
# Calendar helpers
# =============================================================================

def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def shift_month(year: int, month: int, delta: int) -> MonthKey:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping the day into the month."""
    return date(year, month, max(1, min(day, days_in_month(year, month))))


def month_end(year: int, month: int) -> date:
    return date(year, month, days_in_month(year, month))


def subtract_months(d: date, months: int) -> date:
    year, month = shift_month(d.year, d.month, -months)
    return clamp_day(year, month, d.day)


# =============================================================================
# Policy validation
# =============================================================================

def validate_policy(policy: BoundaryPolicy) -> None:
    """
    Check that a policy's parameters are usable.

    Raises:
        InvalidBoundaryPolicyError: If a required parameter is missing
            or out of range
    """
    if policy.type == BoundaryPolicyType.FIXED_DAY_OF_MONTH:
        if policy.day is None or not 1 <= policy.day <= 31:
            raise InvalidBoundaryPolicyError("fixed_day_of_month requires day in 1..31")
    elif policy.type == BoundaryPolicyType.DAYS_BEFORE_MONTH_END:
        if policy.days_before_end is None or not 0 <= policy.days_before_end <= 27:
            raise InvalidBoundaryPolicyError(
                "days_before_month_end requires days_before_end in 0..27"
            )
    elif policy.type == BoundaryPolicyType.DYNAMIC_ANCHOR:
        if policy.day is None or not 1 <= policy.day <= 31:
            raise InvalidBoundaryPolicyError("dynamic_anchor requires target day in 1..31")
        if policy.grace_days is not None and not 0 <= policy.grace_days <= 60:
            raise InvalidBoundaryPolicyError("dynamic_anchor grace_days must be in 0..60")
        if policy.target_due_day is not None and not 1 <= policy.target_due_day <= 31:
            raise InvalidBoundaryPolicyError("dynamic_anchor target_due_day must be in 1..31")
    elif policy.type == BoundaryPolicyType.EXPLICIT_DATES:
        if not policy.close_dates:
            raise InvalidBoundaryPolicyError("explicit_dates requires at least one close date")


# =============================================================================
# Dynamic anchor rule
# =============================================================================

class DynamicAnchorRule:
    """
    Close-date recurrence for issuers whose cycle length drifts.

    Walking backward from a close, the previous close day is

        prev_day = current_day + days_in_previous_month - T

    i.e. the close T days earlier, clamped into the previous month. T is
    picked from the rule table:

    1. base length keyed on the previous month's day count, adjusted by
       the calendar month of the later close;
    2. pulled at most one day toward the length that lands on the target
       day;
    3. bounded to [min_length, max_length];
    4. if that would produce a third consecutive cycle of the same length,
       the nearest alternative length is used instead.

    The rule is deterministic for identical inputs.
    """

    def __init__(self, target_day: int, settings: CycleSettings = cycle_settings):
        self._target_day = target_day
        self._settings = settings
        self._base_lengths = settings.dynamic_length_by_prev_month_days
        self._month_adjustments = settings.dynamic_month_adjustments

    def previous(self, current: date, recent_lengths: Sequence[int]) -> date:
        year, month = shift_month(current.year, current.month, -1)
        prev_month_days = days_in_month(year, month)
        ideal = clamp_day(year, month, self._target_day)
        preferred = self._preferred_length(
            ideal_length=(current - ideal).days,
            earlier_month_days=prev_month_days,
            later_month=current.month,
        )

        def place(length: int) -> date:
            return self._clamp_into(current - timedelta(days=length), year, month)

        return self._choose(current, preferred, place, recent_lengths)

    def next(self, current: date, recent_lengths: Sequence[int]) -> date:
        year, month = shift_month(current.year, current.month, 1)
        ideal = clamp_day(year, month, self._target_day)
        preferred = self._preferred_length(
            ideal_length=(ideal - current).days,
            earlier_month_days=days_in_month(current.year, current.month),
            later_month=month,
        )

        def place(length: int) -> date:
            return self._clamp_into(current + timedelta(days=length), year, month)

        return self._choose(current, preferred, place, recent_lengths)

    def _preferred_length(
        self,
        ideal_length: int,
        earlier_month_days: int,
        later_month: int,
    ) -> int:
        base = self._base_lengths[earlier_month_days]
        base += self._month_adjustments.get(later_month, 0)
        length = max(base - 1, min(base + 1, ideal_length))
        return self._bound(length)

    def _bound(self, length: int) -> int:
        return max(self._settings.dynamic_min_length, min(self._settings.dynamic_max_length, length))

    def _choose(self, current: date, preferred: int, place, recent_lengths: Sequence[int]) -> date:
        low = self._settings.dynamic_min_length
        high = self._settings.dynamic_max_length
        candidates = sorted(range(low, high + 1), key=lambda n: (abs(n - preferred), n))

        repeated = None
        if len(recent_lengths) >= 2 and recent_lengths[-1] == recent_lengths[-2]:
            repeated = recent_lengths[-1]

        fallback = place(candidates[0])
        for length in candidates:
            candidate = place(length)
            if abs((candidate - current).days) != repeated:
                return candidate
        return fallback

    @staticmethod
    def _clamp_into(d: date, year: int, month: int) -> date:
        first = date(year, month, 1)
        last = month_end(year, month)
        return max(first, min(last, d))


# =============================================================================
# Policy stepping
# =============================================================================

class BoundaryStepper:
    """
    Steps from one close date to the previous or next one under a policy.

    Every step moves exactly one calendar month. Explicit dates are used
    in the months they name; other months close on the day of the most
    recent listed date, so a sparse list never yields multi-month windows.
    """

    def __init__(self, policy: BoundaryPolicy, settings: CycleSettings = cycle_settings):
        validate_policy(policy)
        self._policy = policy
        self._settings = settings
        self._dynamic = (
            DynamicAnchorRule(policy.day, settings)
            if policy.type == BoundaryPolicyType.DYNAMIC_ANCHOR
            else None
        )
        explicit = sorted(policy.close_dates)
        self._explicit: Dict[MonthKey, date] = {(d.year, d.month): d for d in explicit}
        self._fallback_day = explicit[-1].day if explicit else None

    def close_in_month(self, year: int, month: int) -> date:
        """The policy's close date for a calendar month."""
        policy = self._policy
        if policy.type == BoundaryPolicyType.DAYS_BEFORE_MONTH_END:
            return clamp_day(year, month, days_in_month(year, month) - policy.days_before_end)
        if policy.type == BoundaryPolicyType.EXPLICIT_DATES:
            listed = self._explicit.get((year, month))
            return listed if listed is not None else clamp_day(year, month, self._fallback_day)
        return clamp_day(year, month, policy.day)

    def previous(self, current: date, recent_lengths: Sequence[int] = ()) -> date:
        if self._dynamic is not None:
            return self._dynamic.previous(current, recent_lengths)
        year, month = shift_month(current.year, current.month, -1)
        return self.close_in_month(year, month)

    def next(self, current: date, recent_lengths: Sequence[int] = ()) -> date:
        if self._dynamic is not None:
            return self._dynamic.next(current, recent_lengths)
        year, month = shift_month(current.year, current.month, 1)
        return self.close_in_month(year, month)

    def latest_close_on_or_before(self, today: date) -> date:
        """Most recent close the policy would have produced by today."""
        candidate = self.close_in_month(today.year, today.month)
        if candidate > today:
            year, month = shift_month(today.year, today.month, -1)
            candidate = self.close_in_month(year, month)
        return candidate


def effective_policy(account: Account) -> Optional[BoundaryPolicy]:
    """
    The policy used for an account.

    Accounts without a configured policy but with a reported statement
    date recur on that date's day of month.
    """
    if account.boundary_policy is not None:
        return account.boundary_policy
    if account.last_statement_date is not None:
        return BoundaryPolicy.fixed_day(account.last_statement_date.day)
    return None


def resolve_anchor(
    account: Account,
    today: date,
    settings: CycleSettings = cycle_settings,
) -> date:
    """
    Determine the most recent known statement close for an account.

    A reported statement date wins when it is not in the future. A future
    date (bad provider data) is walked back under the account's policy.

    Raises:
        MissingAnchorError: If neither a statement date nor a policy exists
    """
    policy = effective_policy(account)
    if policy is None:
        raise MissingAnchorError(str(account.id))

    reported = account.last_statement_date
    if reported is not None and reported <= today:
        return reported

    stepper = BoundaryStepper(policy, settings)
    if reported is not None:
        anchor = reported
        while anchor > today:
            anchor = stepper.previous(anchor)
        return anchor
    return stepper.latest_close_on_or_before(today)


# =============================================================================
# Statement period confirmations
# =============================================================================

def confirmed_closes(
    periods: Iterable[StatementPeriod],
    settings: CycleSettings = cycle_settings,
) -> Dict[MonthKey, date]:
    """
    Close dates confirmed by the provider, keyed by calendar month.

    A period's own start date implies the previous close. A period without
    a start date is only usable when an older period supplies its start,
    so the oldest start-less period contributes nothing.
    """
    usable = sorted(
        (p for p in periods if p.confidence >= settings.statement_period_min_confidence),
        key=lambda p: p.end_date,
    )
    closes: Dict[MonthKey, date] = {}
    for index, period in enumerate(usable):
        if period.start_date is None and index == 0:
            continue
        closes[(period.end_date.year, period.end_date.month)] = period.end_date
        if period.start_date is not None:
            previous_close = period.start_date - timedelta(days=1)
            closes.setdefault((previous_close.year, previous_close.month), previous_close)
    return closes


# =============================================================================
# Chain generation
# =============================================================================

@dataclass
class _Walk:
    stepper: BoundaryStepper
    confirmed: Dict[MonthKey, date]
    lengths: List[int] = field(default_factory=list)

    def step(self, current: date, backward: bool) -> date:
        if backward:
            candidate = self.stepper.previous(current, self.lengths)
        else:
            candidate = self.stepper.next(current, self.lengths)
        confirmed = self.confirmed.get((candidate.year, candidate.month))
        if confirmed is not None and (confirmed < current if backward else confirmed > current):
            candidate = confirmed
        self.lengths.append(abs((current - candidate).days))
        return candidate


def generate_boundaries(
    anchor: date,
    policy: BoundaryPolicy,
    today: date,
    periods: Iterable[StatementPeriod] = (),
    reported_anchor: Optional[date] = None,
    settings: CycleSettings = cycle_settings,
) -> CycleBoundaries:
    """
    Build the close-date chain around an anchor.

    Algorithm:
        1. Walk backward from the anchor ``trailing_closes`` times; the oldest
           close only bounds the oldest window.
        2. Walk forward from the anchor while closes are on or before
           today (periods that closed after stale provider data).
        3. The first forward close after today ends the open period.

    Confirmed provider closes replace the policy's close in the same
    calendar month, except for the anchor's own month.

    Args:
        anchor: Most recent known close
        policy: Boundary policy
        today: Current date
        periods: Confirmed statement periods
        reported_anchor: Provider-reported statement date; the window
            ending on it is flagged as the anchor cycle
        settings: Cycle settings (uses defaults if not provided)

    Returns:
        CycleBoundaries for the account
    """
    stepper = BoundaryStepper(policy, settings)
    confirmed = confirmed_closes(periods, settings)
    confirmed.pop((anchor.year, anchor.month), None)

    backward = _Walk(stepper, confirmed)
    older: List[date] = []
    current = anchor
    for _ in range(settings.trailing_closes):
        current = backward.step(current, backward=True)
        older.append(current)

    # Forward lengths continue the chronological sequence ending at the anchor
    forward = _Walk(stepper, confirmed, lengths=list(reversed(backward.lengths[:2])))
    newer: List[date] = []
    current = anchor
    while True:
        current = forward.step(current, backward=False)
        if current > today:
            break
        newer.append(current)

    closes = tuple(reversed(older)) + (anchor,) + tuple(newer)
    return CycleBoundaries(
        closes=closes,
        anchor=anchor,
        open_end=current,
        reported_anchor=reported_anchor,
    )


def best_effort_window(
    today: date,
    open_date: Optional[date] = None,
    settings: CycleSettings = cycle_settings,
) -> CycleWindow:
    """
    Provisional window for accounts with no anchor signal.

    Covers the trailing ``best_effort_window_days`` and ends at the end of
    the current month, so no statement history is invented.
    """
    start = today - timedelta(days=settings.best_effort_window_days - 1)
    if open_date is not None and start < open_date <= today:
        start = open_date
    end = month_end(today.year, today.month)
    if end <= today:
        year, month = shift_month(today.year, today.month, 1)
        end = month_end(year, month)
    return CycleWindow(start_date=start, end_date=end, is_open=True)
