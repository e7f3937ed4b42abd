"""
Exception handlers that render application errors as JSON.

Application exceptions keep their own status code and error body;
pydantic validation failures raised while building commands become
422 responses; unexpected database errors become a generic 500.
"""

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from hostel_booking.core.exceptions import BaseAppException, ErrorCode

logger = logging.getLogger(__name__)


async def handle_application_exception(request: Request, exception: BaseAppException) -> JSONResponse:
    log = logger.error if exception.status_code >= 500 else logger.warning
    log(
        f"Application exception: {exception.error_code.value} - {exception.message}",
        extra={"path": request.url.path, "method": request.method},
    )
    body = exception.to_dict()
    body["error"]["timestamp"] = int(time.time())
    return JSONResponse(status_code=exception.status_code, content=body)


async def handle_validation_error(request: Request, exception: PydanticValidationError) -> JSONResponse:
    field_errors = {}
    for error in exception.errors():
        field_path = '.'.join(str(x) for x in error['loc'])
        field_errors[field_path] = {"message": error['msg'], "type": error['type']}

    logger.warning(
        f"Validation error: {len(field_errors)} field(s) failed validation",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": ErrorCode.VALIDATION_ERROR.value,
                "message": "Request validation failed",
                "details": {"field_errors": field_errors},
                "type": "ValidationError",
                "timestamp": int(time.time()),
            }
        },
    )


async def handle_database_error(request: Request, exception: SQLAlchemyError) -> JSONResponse:
    logger.error(
        f"Database error: {str(exception)}",
        exc_info=exception,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": ErrorCode.INTERNAL_ERROR.value,
                "message": "A database error occurred",
                "details": {},
                "type": "DatabaseError",
                "timestamp": int(time.time()),
            }
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAppException, handle_application_exception)
    app.add_exception_handler(PydanticValidationError, handle_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
