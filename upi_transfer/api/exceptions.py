from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.errors import ErrorKind, TransferError
from ..models import ErrorResponse


logger = logging.getLogger(__name__)

_STATUS_BY_KIND: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.INVALID_AMOUNT: (400, "Invalid Amount"),
    ErrorKind.INVALID_UPI: (400, "Invalid UPI"),
    ErrorKind.INVALID_REQUEST: (400, "Invalid Transfer"),
    ErrorKind.INSUFFICIENT_BALANCE: (400, "Insufficient Balance"),
    ErrorKind.ACCOUNT_NOT_FOUND: (404, "Account Not Found"),
    ErrorKind.TRANSACTION_NOT_FOUND: (404, "Transaction Not Found"),
    ErrorKind.DUPLICATE_ACCOUNT: (409, "Duplicate Account"),
    ErrorKind.ACCOUNT_INACTIVE: (422, "Account Inactive"),
    ErrorKind.PERSISTENCE: (503, "Service Unavailable"),
}


def _error_body(
    status_code: int,
    error: str,
    message: str,
    validation_errors: Optional[dict[str, str]] = None,
) -> dict:
    payload = ErrorResponse(
        timestamp=datetime.now(UTC),
        status=status_code,
        error=error,
        message=message,
        validation_errors=validation_errors,
    )
    return payload.model_dump(mode="json", exclude_none=True)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TransferError)
    async def transfer_error_handler(request: Request, exc: TransferError) -> JSONResponse:
        status_code, error = _STATUS_BY_KIND[exc.kind]
        if exc.kind is ErrorKind.PERSISTENCE:
            logger.error("request.failed", extra={"path": request.url.path, "reason": exc.message})
        return JSONResponse(
            status_code=status_code,
            content=_error_body(status_code, error, exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = {
            ".".join(str(part) for part in err["loc"] if part != "body"): err["msg"]
            for err in exc.errors()
        }
        logger.warning("request.invalid", extra={"path": request.url.path, "fields": len(errors)})
        return JSONResponse(
            status_code=400,
            content=_error_body(400, "Validation Error", "Invalid request parameters", errors),
        )
