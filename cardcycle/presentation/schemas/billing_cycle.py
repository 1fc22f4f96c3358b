"""Billing cycle Pydantic schemas."""

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from cardcycle.application.dto import AccountCycleStatus


class AccountSummarySchema(BaseModel):
    """Schema for the account shown alongside its cycles."""

    account_id: str = Field(
        ...,
        description="UUID of the account",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )
    name: str = Field(..., description="Display name", examples=["Sapphire Preferred"])
    mask: Optional[str] = Field(None, description="Last four digits", examples=["4242"])
    issuer: str = Field(..., description="Issuer classification", examples=["chase"])
    current_balance_cents: int = Field(
        ...,
        description="Signed current balance; the absolute value is owed",
        examples=[-154230],
    )
    credit_limit_cents: Optional[int] = Field(
        None,
        description="Provider limit when valid, otherwise the manual override",
        examples=[1000000],
    )
    is_manual_limit: bool = Field(
        False,
        description="Whether the credit limit comes from a manual override",
    )
    utilization: Optional[float] = Field(
        None,
        ge=0,
        description="Amount owed divided by credit limit",
        examples=[0.1542],
    )
    last_statement_date: Optional[date] = Field(None, description="Last statement close")
    next_payment_due_date: Optional[date] = Field(None, description="Next payment due date")


class BillingCycleSchema(BaseModel):
    """Schema for one billing cycle."""

    cycle_id: str = Field(..., description="UUID of the cycle")
    account_id: str = Field(..., description="UUID of the account")
    account_name: str = Field(..., description="Account display name")
    account_mask: Optional[str] = Field(None, description="Account last four digits")
    start_date: date = Field(..., description="First day of the cycle", examples=["2024-03-16"])
    end_date: date = Field(
        ...,
        description="Statement close date (inclusive)",
        examples=["2024-04-15"],
    )
    total_spend_cents: int = Field(
        ...,
        description="Signed spend excluding payments; refunds reduce it",
        examples=[12000],
    )
    transaction_count: int = Field(..., ge=0, description="Non-payment transactions counted")
    statement_balance_cents: Optional[int] = Field(
        None,
        description="Statement balance (null for the open cycle)",
    )
    minimum_payment_cents: Optional[int] = Field(
        None,
        ge=0,
        description="Minimum payment (null for the open cycle)",
    )
    due_date: Optional[date] = Field(None, description="Payment due date")
    is_open: bool = Field(..., description="Whether the cycle is still accumulating spend")
    is_anchor: bool = Field(..., description="Whether the cycle ends on the reported statement date")
    is_estimated: bool = Field(..., description="Whether the boundaries are heuristic")
    payment_detected: bool = Field(
        ...,
        description="Whether a payment after close settled the statement",
    )
    payment_status: Literal["current", "due", "paid", "outstanding"] = Field(
        ...,
        description="Payment status of the cycle",
    )


class AccountCycleResultSchema(BaseModel):
    """Schema for the outcome of one account's computation."""

    account: AccountSummarySchema
    status: AccountCycleStatus = Field(..., description="Computation outcome")
    cycle_count: int = Field(0, ge=0, description="Number of cycles returned")
    error_code: Optional[str] = Field(None, examples=["MISSING_ANCHOR"])
    message: Optional[str] = Field(None, description="Why the account was skipped or failed")


class UserBillingCyclesResponseSchema(BaseModel):
    """Schema for GET /v1/users/{user_id}/billing-cycles."""

    user_id: str = Field(..., description="User identifier")
    cycles: List[BillingCycleSchema] = Field(
        default_factory=list,
        description="Cycles of all accounts, newest end date first",
    )
    accounts: List[AccountCycleResultSchema] = Field(
        default_factory=list,
        description="One result per account",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "user_id": "user_123",
                    "cycles": [
                        {
                            "cycle_id": "0b6f5a9e-7a4f-4f7e-9f3e-3f6f7c1d2e10",
                            "account_id": "550e8400-e29b-41d4-a716-446655440000",
                            "account_name": "Sapphire Preferred",
                            "account_mask": "4242",
                            "start_date": "2024-03-16",
                            "end_date": "2024-04-15",
                            "total_spend_cents": 12000,
                            "transaction_count": 3,
                            "statement_balance_cents": None,
                            "minimum_payment_cents": None,
                            "due_date": "2024-05-09",
                            "is_open": True,
                            "is_anchor": False,
                            "is_estimated": True,
                            "payment_detected": False,
                            "payment_status": "current",
                        }
                    ],
                    "accounts": [],
                }
            ]
        }
    )


class AccountBillingCyclesResponseSchema(BaseModel):
    """Schema for single-account billing cycle responses."""

    account: AccountSummarySchema
    cycles: List[BillingCycleSchema] = Field(
        default_factory=list,
        description="Cycles, newest start first",
    )
