from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


def error_envelope(code: str, message: str, *, trace_id: str | None = None, data: Any | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "ok": False,
        "error": {"code": code, "message": message},
    }
    if trace_id:
        payload["trace_id"] = trace_id
    if data is not None:
        payload["data"] = data
    return payload


class ApplicationError(RuntimeError):
    """Base error carrying a machine-readable code and an HTTP status."""

    code: str = "APPLICATION_ERROR"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    @property
    def message(self) -> str:
        return str(self)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApplicationError)
    async def _handle_application_error(_: Request, exc: ApplicationError) -> JSONResponse:
        trace_id = str(uuid.uuid4())
        logger.warning("application error (%s): %s", exc.code, exc, extra={"trace_id": trace_id})
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(code=exc.code, message=str(exc), trace_id=trace_id),
        )

    @app.exception_handler(HTTPException)
    async def _handle_http_error(_: Request, exc: HTTPException) -> JSONResponse:
        trace_id = str(uuid.uuid4())
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(code=f"HTTP_{exc.status_code}", message=message, trace_id=trace_id),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        trace_id = str(uuid.uuid4())
        logger.info("validation error: %s", exc.errors(), extra={"trace_id": trace_id})
        return JSONResponse(
            status_code=422,
            content=error_envelope(
                code="VALIDATION_ERROR",
                message="Request validation failed",
                trace_id=trace_id,
                data={"errors": jsonable_errors(exc)},
            ),
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        trace_id = str(uuid.uuid4())
        logger.exception("unexpected error", exc_info=exc, extra={"trace_id": trace_id})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(code="SERVER_ERROR", message="Internal server error", trace_id=trace_id),
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # ``ctx`` may hold exception instances that JSONResponse cannot encode.
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


__all__ = ["ApplicationError", "error_envelope", "register_exception_handlers"]
