from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.contracts import ErrorCategory
from shared.logging import get_logger
from ticketing_api.core.errors import AppError

logger = get_logger(__name__)
_GENERIC_INTERNAL_ERROR_MESSAGE = "Internal server error"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(_: Request, exc: AppError) -> JSONResponse:
        logger.warning(
            "application_error",
            extra={"extra_fields": {"error_category": exc.category.value, "reason": exc.message}},
        )
        return JSONResponse(
            status_code=exc.http_status,
            content={"error": {"category": exc.category.value, "message": exc.message}},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unexpected_error",
            extra={"extra_fields": {"error_category": ErrorCategory.INTERNAL.value}},
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "category": ErrorCategory.INTERNAL.value,
                    "message": _GENERIC_INTERNAL_ERROR_MESSAGE,
                }
            },
        )
