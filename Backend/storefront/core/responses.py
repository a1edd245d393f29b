"""
Standardized API Response Module

Provides consistent response formatting across all API endpoints.

RESPONSE FORMAT:
    All API responses follow this structure:

    Success:
        {
            "success": true,
            "data": <response data>,
            "meta": {...}  # Only for paginated results
        }

    Error:
        {
            "success": false,
            "error": "Product not found",
            "message": "Human-readable message",
            "details": {...}  # Only for validation failures
        }

Handlers build their responses with the Responses helpers. The error
normalization layer (storefront.middlewares.with_error_handler) re-wraps every JSON
success body into the envelope, so a handler may also return a bare value.
"""

from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

if TYPE_CHECKING:
    from .pagination import PaginatedResult

T = TypeVar("T")


class SuccessEnvelope(BaseModel, Generic[T]):
    """Success wrapper. `meta` is present only for paginated results."""
    success: bool = True
    data: T
    meta: Optional[dict[str, Any]] = None


class ErrorEnvelope(BaseModel):
    """Error wrapper. `details` accompanies validation failures only."""
    success: bool = False
    error: str
    message: str
    details: Optional[dict[str, Any]] = None


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def success_response(data: Any, meta: Optional[dict] = None) -> dict:
    """
    Create a standardized success response dict.

    `meta` is only included when given.
    """
    response = {"success": True, "data": data}
    if meta is not None:
        response["meta"] = meta
    return response


def error_response(
    error: str,
    message: str,
    details: Optional[dict] = None,
) -> dict:
    """Create a standardized error response dict."""
    response = {
        "success": False,
        "error": error,
        "message": message,
    }
    if details:
        response["details"] = details
    return response


class Responses:
    """JSON responses returned by route handlers."""

    @staticmethod
    def success(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
        return JSONResponse(jsonable_encoder(data), status_code=status_code)

    @staticmethod
    def created(data: Any) -> JSONResponse:
        return Responses.success(data, status_code=status.HTTP_201_CREATED)

    @staticmethod
    def paginated(result: "PaginatedResult") -> JSONResponse:
        """Body carries both `data` and `meta` so the envelope keeps them side by side."""
        return Responses.success({"data": result.items, "meta": result.meta.to_dict()})


# OpenAPI documentation for the error envelope on API routes
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorEnvelope, "description": "Bad request"},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorEnvelope, "description": "Unauthorized"},
    status.HTTP_404_NOT_FOUND: {"model": ErrorEnvelope, "description": "Not found"},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorEnvelope, "description": "Internal server error"},
}
