"""
Core module - configuration, database, request context, errors, pagination and response formatting.
"""
from .config import get_settings
from .db import Base, DatabaseConnection, db_connect, get_connection, set_connection
from .errors import (
    BadRequest,
    HttpError,
    InternalServerError,
    NotFound,
    Unauthorized,
    format_validation_error,
)
from .pagination import (
    PaginatedResult,
    PaginationMeta,
    PaginationOptions,
    build_search_filter,
    model_paginate,
    parse_pagination_params,
)
from .request_context import AuthContext, get_auth
from .responses import (
    ErrorEnvelope,
    Responses,
    SuccessEnvelope,
    error_response,
    success_response,
)

__all__ = [
    # Config
    "get_settings",
    # Database
    "Base",
    "DatabaseConnection",
    "db_connect",
    "get_connection",
    "set_connection",
    # Errors
    "HttpError",
    "BadRequest",
    "Unauthorized",
    "NotFound",
    "InternalServerError",
    "format_validation_error",
    # Pagination
    "PaginatedResult",
    "PaginationMeta",
    "PaginationOptions",
    "build_search_filter",
    "model_paginate",
    "parse_pagination_params",
    # Request Context
    "AuthContext",
    "get_auth",
    # Responses
    "ErrorEnvelope",
    "Responses",
    "SuccessEnvelope",
    "error_response",
    "success_response",
]
