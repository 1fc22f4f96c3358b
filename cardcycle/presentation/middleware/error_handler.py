"""Error handling middleware and exception handlers."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from cardcycle.domain.exceptions import (
    AccountNotFoundException,
    DomainException,
    InvalidBoundaryPolicyError,
    PersistenceConflictError,
    TransientProviderError,
)
from .request_context import get_request_id

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": code,
            "message": message,
            "request_id": get_request_id(),
        },
    )


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Maps domain exceptions to appropriate HTTP responses.
    """

    @app.exception_handler(AccountNotFoundException)
    async def account_not_found_handler(
        request: Request,
        exc: AccountNotFoundException,
    ) -> JSONResponse:
        """Handle account not found errors."""
        return _error_response(404, exc.code, exc.message)

    @app.exception_handler(InvalidBoundaryPolicyError)
    async def invalid_policy_handler(
        request: Request,
        exc: InvalidBoundaryPolicyError,
    ) -> JSONResponse:
        """Handle invalid boundary policy errors."""
        return _error_response(400, exc.code, exc.message)

    @app.exception_handler(PersistenceConflictError)
    async def persistence_conflict_handler(
        request: Request,
        exc: PersistenceConflictError,
    ) -> JSONResponse:
        """Handle billing cycle write conflicts."""
        logger.error(
            "cycle_persistence_failed",
            request_id=get_request_id(),
            account_id=exc.account_id,
        )
        return _error_response(409, exc.code, "Billing cycles could not be saved. Please retry.")

    @app.exception_handler(TransientProviderError)
    async def provider_error_handler(
        request: Request,
        exc: TransientProviderError,
    ) -> JSONResponse:
        """Handle statement provider errors that escaped local fallback."""
        logger.error(
            "statement_provider_error",
            request_id=get_request_id(),
            message=exc.message,
            status_code=exc.status_code,
        )
        return _error_response(503, exc.code, "Service temporarily unavailable. Please try again.")

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle generic domain exceptions."""
        logger.warning(
            "domain_exception",
            request_id=get_request_id(),
            code=exc.code,
            message=exc.message,
        )
        return _error_response(400, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unhandled_exception",
            request_id=get_request_id(),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred.")
