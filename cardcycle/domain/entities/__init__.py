"""Domain Entities - Core business objects."""

from .account import Account, BoundaryPolicy, BoundaryPolicyType, IssuerClass
from .billing_cycle import BillingCycle, PaymentStatus
from .statement_period import CachedStatementPeriods, StatementPeriod
from .transaction import Transaction

__all__ = [
    "Account",
    "BoundaryPolicy",
    "BoundaryPolicyType",
    "IssuerClass",
    "BillingCycle",
    "PaymentStatus",
    "CachedStatementPeriods",
    "StatementPeriod",
    "Transaction",
]
