"""
App-level exception handlers.

Routes built with with_middleware never let an exception escape; these
handlers give the same error envelope to everything else: FastAPI request
validation, routing errors (unknown path, wrong method) and typed failures
raised outside the pipeline.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.errors import HttpError
from .core.responses import error_response

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(HttpError)
    async def http_error_handler(request: Request, exc: HttpError):
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.error}")
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        details: dict[str, list[str]] = {}
        for err in exc.errors():
            key = ".".join(str(loc) for loc in err.get("loc", ())) or "_errors"
            details.setdefault(key, []).append(err["msg"])
        return JSONResponse(
            error_response("Invalid request", "Request parameters failed validation", details),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            error_response(str(exc.detail), str(exc.detail)),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all: never leaks internal details."""
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            error_response("Internal server error", "An unexpected error occurred"),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
