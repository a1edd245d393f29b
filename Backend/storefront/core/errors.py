"""
Typed HTTP failures.

Route handlers raise these to signal a domain error. The outermost layer of
the request pipeline catches them exactly once and turns them into the error
envelope with the mapped status:

    BadRequest          -> 400
    Unauthorized        -> 401
    NotFound            -> 404
    InternalServerError -> 500

Usage:
    from storefront.core.errors import NotFound

    if document is None:
        raise NotFound("Product not found")
"""

from typing import Any, Optional, Type

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from .responses import error_response


class HttpError(Exception):
    """Base class for failures that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        error: str,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.error = error
        self.message = message or self.default_message
        self.details = details
        super().__init__(error)

    def to_dict(self) -> dict:
        return error_response(self.error, self.message, self.details)

    def to_response(self) -> JSONResponse:
        return JSONResponse(self.to_dict(), status_code=self.status_code)


class BadRequest(HttpError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The request could not be processed"


class Unauthorized(HttpError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "You are not allowed to perform this action"


class NotFound(HttpError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "The requested resource was not found"


class InternalServerError(HttpError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def describe_fields(schema: Type[BaseModel]) -> str:
    """Human-readable list of the fields a schema accepts, e.g. "name (required), image (optional)"."""
    return ", ".join(
        f"{field.alias or name} ({'required' if field.is_required() else 'optional'})"
        for name, field in schema.model_fields.items()
    )


def format_validation_error(schema: Type[BaseModel], exc: ValidationError) -> dict[str, Any]:
    """
    Flatten a pydantic ValidationError into per-field message lists.

    Errors without a location (model-level validators) are collected under
    "_errors". The accepted fields are listed under "availableFields".
    """
    details: dict[str, Any] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        key = str(loc[0]) if loc else "_errors"
        details.setdefault(key, []).append(err["msg"])
    details["availableFields"] = describe_fields(schema)
    return details
