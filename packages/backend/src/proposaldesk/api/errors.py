"""Core error → HTTP response mapping.

Routes don't catch ProposalDeskError themselves; one exception handler
renders every kind as {"error", "detail", "retryable"} with the status
code below. Anything not listed is a 500. Request bodies that fail to
parse are reported as a ValidationError too, in the same shape.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from proposaldesk.errors import (
    DuplicateEmail,
    DuplicateTitle,
    Forbidden,
    InvalidCredential,
    NotFound,
    PrincipalNotFound,
    ProposalDeskError,
    Unavailable,
    ValidationError,
)

STATUS_CODES: dict[type[ProposalDeskError], int] = {
    InvalidCredential: 401,
    PrincipalNotFound: 401,
    Forbidden: 403,
    NotFound: 404,
    ValidationError: 422,
    DuplicateTitle: 409,
    DuplicateEmail: 409,
    Unavailable: 503,
}


def status_code_for(exc: ProposalDeskError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 500


async def proposaldesk_error_handler(
    request: Request, exc: ProposalDeskError
) -> JSONResponse:
    status_code = status_code_for(exc)
    headers = {}
    if status_code == 401:
        headers["WWW-Authenticate"] = "Bearer"
    if exc.retryable:
        headers["Retry-After"] = "1"
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "detail": exc.message, "retryable": exc.retryable},
        headers=headers,
    )


def _describe(exc: RequestValidationError) -> str:
    """First schema error as "<field>: <message>"."""
    errors = exc.errors()
    if not errors:
        return ValidationError.default_message
    first = errors[0]
    field = ".".join(
        str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")
    )
    return f"{field}: {first['msg']}" if field else first["msg"]


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return await proposaldesk_error_handler(request, ValidationError(_describe(exc)))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProposalDeskError, proposaldesk_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
