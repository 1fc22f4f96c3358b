"""
Billing Cycle Engine for CardCycle
"""

from .settings import CycleSettings, cycle_settings, get_cycle_settings
from .classifier import classify_issuer, is_payment
from .boundaries import (
    BoundaryStepper,
    CycleBoundaries,
    CycleWindow,
    DynamicAnchorRule,
    best_effort_window,
    confirmed_closes,
    effective_policy,
    generate_boundaries,
    resolve_anchor,
    validate_policy,
)
from .due_dates import due_date_for_close, estimate_due_date
from .aggregator import CycleSpend, aggregate_spend, payments_after
from .reconciliation import (
    StatementFigures,
    estimate_minimum_payment,
    is_statement_settled,
    reconcile_cycle,
)
from .payment_status import assign_payment_status
from .display_policy import apply_display_policy, display_policy_for
from .engine import calculate_billing_cycles, latest_closed_cycle

__all__ = [
    # Settings
    "CycleSettings",
    "cycle_settings",
    "get_cycle_settings",
    # Classification
    "classify_issuer",
    "is_payment",
    # Boundaries
    "BoundaryStepper",
    "CycleBoundaries",
    "CycleWindow",
    "DynamicAnchorRule",
    "best_effort_window",
    "confirmed_closes",
    "effective_policy",
    "generate_boundaries",
    "resolve_anchor",
    "validate_policy",
    # Due dates
    "due_date_for_close",
    "estimate_due_date",
    # Aggregation
    "CycleSpend",
    "aggregate_spend",
    "payments_after",
    # Reconciliation
    "StatementFigures",
    "estimate_minimum_payment",
    "is_statement_settled",
    "reconcile_cycle",
    # Payment status
    "assign_payment_status",
    # Display
    "apply_display_policy",
    "display_policy_for",
    # Engine
    "calculate_billing_cycles",
    "latest_closed_cycle",
]
