"""Domain Exceptions - Business rule violations and domain errors."""

from .base import DomainException
from .account import (
    AccountNotFoundException,
    InvalidBoundaryPolicyError,
    MissingAnchorError,
)
from .provider import TransientProviderError, TransientProviderTimeoutError
from .persistence import PersistenceConflictError

__all__ = [
    "DomainException",
    "AccountNotFoundException",
    "InvalidBoundaryPolicyError",
    "MissingAnchorError",
    "TransientProviderError",
    "TransientProviderTimeoutError",
    "PersistenceConflictError",
]
