# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from aip_processor.exceptions.custom_errors import ErrorKind, ProtocolError

logger = logging.getLogger(__name__)

HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.RANGE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.MALFORMED_PAYLOAD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DUPLICATE_REQUEST: status.HTTP_409_CONFLICT,
    ErrorKind.TIMESTAMP_REGRESSION: status.HTTP_412_PRECONDITION_FAILED,
    ErrorKind.UNSUPPORTED_CAPABILITY: status.HTTP_501_NOT_IMPLEMENTED,
    ErrorKind.DEADLINE_EXCEEDED: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorKind.PROCESSOR_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def custom_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Centralized exception handler for FastAPI routes.
    Maps protocol errors to HTTP status codes and returns consistent error responses.

    Args:
        request: The incoming request object.
        exc: The exception object.

    Returns:
        JSONResponse with a `detail` message and, for protocol errors, the error `kind`.
    """
    if isinstance(exc, ProtocolError):
        status_code = HTTP_STATUS_BY_KIND[exc.kind]
        log = logger.error if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.debug
        log("%s %s raised %s: %s", request.method, request.url.path, type(exc).__name__, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc), "kind": exc.kind})

    if isinstance(exc, RequestValidationError):
        return _handle_validation_error(request, exc)

    logger.error(
        "Internal error for %s %s: %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
        exc_info=exc,
    )
    message = "An internal server error occurred. Please try again later or contact support for assistance."
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": message})


def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors with user-friendly messages.
    Returns 400 instead of 422 so that every malformed request maps to the same status.
    """
    logger.debug("Validation error for %s %s: %s", request.method, request.url.path, exc.errors())

    error_messages = []
    for error in exc.errors():
        field_path = " -> ".join(str(loc) for loc in error["loc"])
        if error["type"] == "missing":
            error_messages.append(f"Field '{field_path}' is required.")
        else:
            error_messages.append(f"Field '{field_path}': {error['msg']}")

    detail = " ".join(error_messages) if error_messages else "Invalid request data."
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": detail, "kind": ErrorKind.MALFORMED_PAYLOAD},
    )
