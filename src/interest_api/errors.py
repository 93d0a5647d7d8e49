"""Exception handlers for the HTTP app."""

import logging

import pydantic
from fastapi import Request, status
from fastapi.responses import JSONResponse

from interest_api.operations import (
    DataError,
    IdentityConflictError,
    InvalidArgumentError,
    InvalidNameError,
    MissingArgumentError,
    NotFoundError,
    RecordOperationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    InvalidNameError: status.HTTP_400_BAD_REQUEST,
    InvalidArgumentError: status.HTTP_400_BAD_REQUEST,
    MissingArgumentError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    IdentityConflictError: status.HTTP_409_CONFLICT,
    DataError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def status_code_for(error: RecordOperationError) -> int:
    for error_class in type(error).__mro__:
        if error_class in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[error_class]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_record_operation_errors(request: Request, exc: RecordOperationError) -> JSONResponse:
    """Report an aborted operation with the status code of its error kind."""
    logger.warning(f"{type(exc).__name__} ({exc.code}) on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code_for(exc),
        content={
            "detail": exc.message,
            "error": type(exc).__name__,
            "code": exc.code,
        },
    )


async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": [
                {
                    "msg": error["msg"],
                    "input": error.get("input"),
                }
                for error in errors
            ]
        },
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates out of the route handlers."""
    try:
        return await call_next(request)
    except Exception as err:
        logger.exception(err)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )
