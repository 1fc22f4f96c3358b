"""Account-related domain exceptions."""

from .base import DomainException


class AccountNotFoundException(DomainException):
    """Raised when an account cannot be found."""

    def __init__(self, account_id: str):
        super().__init__(
            message=f"Account not found: {account_id}",
            code="ACCOUNT_NOT_FOUND",
        )
        self.account_id = account_id


class MissingAnchorError(DomainException):
    """
    Raised when an account has no statement date and no manual policy.

    This is a soft error: the account is skipped rather than failed.
    """

    def __init__(self, account_id: str):
        super().__init__(
            message=f"No statement anchor available for account: {account_id}",
            code="MISSING_ANCHOR",
        )
        self.account_id = account_id


class InvalidBoundaryPolicyError(DomainException):
    """Raised when a boundary policy's parameters are out of range."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_BOUNDARY_POLICY",
        )
