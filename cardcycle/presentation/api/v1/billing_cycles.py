"""Billing cycle API endpoints."""

from dataclasses import asdict
from datetime import date
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from cardcycle.application.dto import AccountBillingCyclesResponse
from cardcycle.application.services import BillingCycleService
from cardcycle.core.dependencies import get_billing_cycle_service
from cardcycle.presentation.schemas import (
    AccountBillingCyclesResponseSchema,
    ErrorResponseSchema,
    UserBillingCyclesResponseSchema,
)

billing_cycle_router = APIRouter(
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid boundary policy"},
        404: {"model": ErrorResponseSchema, "description": "Account not found"},
        409: {"model": ErrorResponseSchema, "description": "Cycle write conflict"},
    },
)

AsOfQuery = Annotated[
    Optional[date],
    Query(description="Compute as of this date instead of today"),
]


@billing_cycle_router.get(
    "/users/{user_id}/billing-cycles",
    response_model=UserBillingCyclesResponseSchema,
    summary="Get User Billing Cycles",
    description="""
    Compute, store and return the billing cycles of every account a user owns.

    Cycles from all accounts are merged, newest end date first. Accounts
    without a statement date or boundary policy are reported as skipped,
    and a failing account is reported without hiding the others.
    """,
    responses={
        200: {"description": "Cycles computed successfully"},
    },
)
async def get_user_billing_cycles(
    user_id: Annotated[
        str,
        Path(min_length=1, max_length=255, description="User ID"),
    ],
    service: Annotated[BillingCycleService, Depends(get_billing_cycle_service)],
    as_of: AsOfQuery = None,
) -> UserBillingCyclesResponseSchema:
    response = await service.compute_for_user(user_id.strip(), today=as_of)
    return UserBillingCyclesResponseSchema.model_validate(asdict(response))


@billing_cycle_router.get(
    "/accounts/{account_id}/billing-cycles",
    response_model=AccountBillingCyclesResponseSchema,
    summary="Get Account Billing Cycles",
    description="""
    Compute, store and return the billing cycles of one account.

    Accounts without any anchor signal get a single provisional window,
    which is not stored.
    """,
    responses={
        200: {"description": "Cycles computed successfully"},
    },
)
async def get_account_billing_cycles(
    account_id: UUID,
    service: Annotated[BillingCycleService, Depends(get_billing_cycle_service)],
    as_of: AsOfQuery = None,
) -> AccountBillingCyclesResponseSchema:
    response = await service.compute_for_account(account_id, today=as_of)
    return _to_schema(response)


@billing_cycle_router.get(
    "/accounts/{account_id}/billing-cycles/stored",
    response_model=AccountBillingCyclesResponseSchema,
    summary="Get Stored Billing Cycles",
    description="Return the billing cycles last stored for an account, newest first.",
    responses={
        200: {"description": "Stored cycles retrieved successfully"},
    },
)
async def get_stored_billing_cycles(
    account_id: UUID,
    service: Annotated[BillingCycleService, Depends(get_billing_cycle_service)],
) -> AccountBillingCyclesResponseSchema:
    response = await service.get_stored_cycles(account_id)
    return _to_schema(response)


def _to_schema(response: AccountBillingCyclesResponse) -> AccountBillingCyclesResponseSchema:
    return AccountBillingCyclesResponseSchema.model_validate(asdict(response))
