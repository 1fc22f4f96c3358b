from fastapi import APIRouter

from .billing_cycles import billing_cycle_router

router = APIRouter()

router.include_router(billing_cycle_router, tags=["Billing Cycles"])
