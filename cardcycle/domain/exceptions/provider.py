"""Statement provider domain exceptions."""

from .base import DomainException


class TransientProviderError(DomainException):
    """Raised when statement-period confirmations cannot be fetched."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            code="STATEMENT_PROVIDER_ERROR",
        )
        self.status_code = status_code


class TransientProviderTimeoutError(TransientProviderError):
    """Raised when the statement provider times out."""

    def __init__(self):
        super().__init__(
            message="Statement provider request timed out",
            status_code=None,
        )
        self.code = "STATEMENT_PROVIDER_TIMEOUT"
