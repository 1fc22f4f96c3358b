"""
Cycle Engine Settings for CardCycle.

This module contains every tunable constant of the billing-cycle engine.
The payment-matching tolerance and the dynamic-anchor rule table were
derived from observed provider behavior for specific issuers, so they are
configuration rather than domain invariants.

Environment variables use the CYCLE_ prefix:
    CYCLE_PAYMENT_MATCH_TOLERANCE_CENTS=500
    CYCLE_DEFAULT_GRACE_DAYS=25
    CYCLE_DYNAMIC_MONTH_ADJUSTMENTS_JSON='{"3": 1}'

Usage:
    from cardcycle.service.cycles.settings import cycle_settings

    tolerance = cycle_settings.payment_match_tolerance_cents

    # Or create custom settings for testing
    custom = CycleSettings(trailing_closes=6)
"""

import json
from functools import lru_cache
from typing import Dict

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CycleSettings(BaseSettings):
    """
    Configurable parameters for billing-cycle derivation.

    All monetary values are in cents.
    """

    model_config = SettingsConfigDict(
        env_prefix="CYCLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Boundary Generation ===
    trailing_closes: int = Field(
        default=13,
        ge=1,
        le=36,
        description="Closes walked backward from the anchor; the oldest only bounds a window",
    )
    best_effort_window_days: int = Field(
        default=60,
        ge=1,
        description="Length of the provisional window for accounts with no anchor",
    )

    # === Dynamic Anchor Rule Table ===
    dynamic_min_length: int = Field(
        default=29,
        description="Shortest cycle length the dynamic-anchor rule may choose",
    )
    dynamic_max_length: int = Field(
        default=32,
        description="Longest cycle length the dynamic-anchor rule may choose",
    )
    dynamic_length_by_prev_month_days_json: str = Field(
        default='{"28": 29, "29": 30, "30": 30, "31": 31}',
        description="Base cycle length keyed on the previous month's day count",
    )
    dynamic_month_adjustments_json: str = Field(
        default='{"3": 1}',
        description="Length adjustment keyed on the calendar month of the later close",
    )

    # === Due Dates ===
    default_grace_days: int = Field(
        default=25,
        ge=0,
        le=60,
        description="Days from statement close to due date when nothing better is known",
    )
    due_date_confidence_days: int = Field(
        default=5,
        ge=0,
        description="Maximum shift when snapping an estimated due date to a known day",
    )

    # === Reconciliation ===
    payment_match_tolerance_cents: int = Field(
        default=500,
        ge=0,
        description="A payment within this distance of the statement balance settles it",
    )
    payment_settle_min_coverage: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description=(
            "Share of the reported balance that payments after close must reach "
            "to settle it; 0 settles on any payment"
        ),
    )
    min_payment_floor_cents: int = Field(
        default=2500,
        ge=0,
        description="Floor of the estimated minimum payment ($25)",
    )
    min_payment_rate: float = Field(
        default=0.02,
        ge=0.0,
        le=1.0,
        description="Estimated minimum payment as a share of cycle spend",
    )

    # === Display Window ===
    default_history_months: int = Field(
        default=12,
        ge=1,
        description="Months of closed cycles shown for most issuers",
    )
    limited_history_cycles: int = Field(
        default=4,
        ge=1,
        description="Most recent cycles shown for issuers with short provider history",
    )

    # === Statement Period Confirmations ===
    statement_period_min_confidence: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Confirmed periods below this confidence are ignored",
    )

    @field_validator("dynamic_length_by_prev_month_days_json")
    @classmethod
    def validate_length_table(cls, v: str) -> str:
        """Validate the base length table covers every month length."""
        try:
            table = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}")
        if not isinstance(table, dict):
            raise ValueError("Length table must be an object")
        for month_days in ("28", "29", "30", "31"):
            if month_days not in table:
                raise ValueError(f"Length table is missing month length {month_days}")
            if not isinstance(table[month_days], int):
                raise ValueError("Cycle lengths must be integers")
        return v

    @field_validator("dynamic_month_adjustments_json")
    @classmethod
    def validate_month_adjustments(cls, v: str) -> str:
        """Validate month adjustments are keyed on calendar months."""
        try:
            table = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}")
        if not isinstance(table, dict):
            raise ValueError("Month adjustments must be an object")
        for month, adjustment in table.items():
            if not month.isdigit() or not 1 <= int(month) <= 12:
                raise ValueError(f"Invalid calendar month: {month}")
            if not isinstance(adjustment, int):
                raise ValueError("Adjustments must be integers")
        return v

    @property
    def dynamic_length_by_prev_month_days(self) -> Dict[int, int]:
        table = json.loads(self.dynamic_length_by_prev_month_days_json)
        return {int(k): v for k, v in table.items()}

    @property
    def dynamic_month_adjustments(self) -> Dict[int, int]:
        table = json.loads(self.dynamic_month_adjustments_json)
        return {int(k): v for k, v in table.items()}


@lru_cache
def get_cycle_settings() -> CycleSettings:
    """Get cached cycle settings instance."""
    return CycleSettings()


cycle_settings = get_cycle_settings()
