from typing import cast

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from app.core.exceptions import ConfigurationError, CooldownError, InsufficientResourceError
from app.schemas.common import APIResponse


def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    exc = cast(HTTPException, exc)
    data = None
    if isinstance(exc, InsufficientResourceError):
        data = {
            "resource": exc.resource.value,
            "required": exc.required,
            "available": exc.available,
            "shortfall": exc.shortfall,
        }
    elif isinstance(exc, CooldownError):
        data = {"retry_after": exc.retry_after}
    elif isinstance(exc, ConfigurationError):
        logger.error(f"Configuration error on {request.method} {request.url.path}: {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content=APIResponse(status="error", message=exc.detail, data=data).model_dump(),
    )


def validation_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    exc = cast(RequestValidationError, exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=APIResponse(
            status="error",
            message="Validation error",
            data=[
                {"loc": err["loc"], "msg": err["msg"], "type": err["type"]} for err in exc.errors()
            ],
        ).model_dump(),
    )


def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=APIResponse(status="error", message="Internal server error").model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    # Game errors subclass HTTPException and share its handler
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
