"""
Per-issuer display windows.

Most issuers expose enough statement history to show a year of cycles.
Issuers whose providers return only a few months of transactions are
limited to their most recent cycles so that empty history is not shown
as zero spend.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from cardcycle.domain.entities import BillingCycle, IssuerClass

from .boundaries import subtract_months
from .settings import CycleSettings, cycle_settings


class DisplayWindowType(str, Enum):
    MONTHS = "months"
    RECENT_CYCLES = "recent_cycles"


@dataclass(frozen=True)
class DisplayPolicy:
    type: DisplayWindowType
    limit: Optional[int] = None


def _policies(settings: CycleSettings) -> Dict[IssuerClass, DisplayPolicy]:
    return {
        IssuerClass.CAPITAL_ONE: DisplayPolicy(
            DisplayWindowType.RECENT_CYCLES, settings.limited_history_cycles
        ),
    }


def display_policy_for(
    issuer: IssuerClass,
    settings: CycleSettings = cycle_settings,
) -> DisplayPolicy:
    return _policies(settings).get(
        issuer,
        DisplayPolicy(DisplayWindowType.MONTHS, settings.default_history_months),
    )


def apply_display_policy(
    cycles: List[BillingCycle],
    issuer: IssuerClass,
    today: date,
    settings: CycleSettings = cycle_settings,
) -> List[BillingCycle]:
    """
    Restrict an account's cycles to its issuer's display window.

    The open cycle is always kept.

    Args:
        cycles: Cycles for one account, newest start first
        issuer: Issuer classification
        today: Current date
        settings: Cycle settings (uses defaults if not provided)

    Returns:
        Visible cycles, newest start first
    """
    policy = display_policy_for(issuer, settings)

    if policy.type == DisplayWindowType.RECENT_CYCLES:
        newest = sorted(cycles, key=lambda c: c.end_date, reverse=True)[: policy.limit]
        keep = {id(c) for c in newest}
        keep.update(id(c) for c in cycles if c.is_open)
        return [c for c in cycles if id(c) in keep]

    cutoff = subtract_months(today, policy.limit)
    return [c for c in cycles if c.is_open or c.end_date >= cutoff]
