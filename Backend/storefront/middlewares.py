"""
Request pipeline for API route handlers.

A handler is `async def handler(request, ctx) -> Response`. Cross-cutting
concerns are middlewares: functions that take a handler and return a new
one. They are composed with apply_middlewares, first one outermost:

    with_error_handler       success/error envelope normalization
    with_models_and_stripe   store connection, data-access handles, Stripe

with_middleware() is the fixed composition used by every route and turns the
result into a FastAPI endpoint. Authorization is opt-in and called from the
handler body with require_staff(request).

Usage:
    @router.get("/{id}")
    @with_middleware
    async def get_category(request: Request, ctx: HandlerContext) -> Response:
        categories = require_model(ctx, ModelName.CATEGORY)
        ...
"""

import json
import logging
from dataclasses import dataclass, field, replace
from functools import reduce
from typing import Any, Awaitable, Callable, Optional

from stripe import StripeClient
from fastapi import Request, Response
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.db import db_connect
from .core.errors import HttpError, InternalServerError, Unauthorized
from .core.request_context import get_auth
from .core.responses import success_response
from .payments import init_stripe
from .repository import ModelHandle, ModelName, build_model_handles

logger = logging.getLogger(__name__)

ModelDictionary = dict[ModelName, ModelHandle]


@dataclass
class HandlerContext:
    """Everything a handler gets besides the request."""
    params: dict[str, Any] = field(default_factory=dict)
    models: Optional[ModelDictionary] = None
    stripe: Optional[StripeClient] = None


ApiHandler = Callable[[Request, HandlerContext], Awaitable[Response]]
Middleware = Callable[[ApiHandler], ApiHandler]
Endpoint = Callable[[Request], Awaitable[Response]]

_ENTITY_HEADERS = (b"content-length", b"content-type")


# ────────────────────────────────────────────────────────────────
# Error normalization
# ────────────────────────────────────────────────────────────────

def _to_success_envelope(response: Response) -> Response:
    body = getattr(response, "body", None)
    if not body or "json" not in response.headers.get("content-type", ""):
        # Streams, files and other non-JSON payloads pass through untouched
        return response
    try:
        payload = json.loads(body)
    except ValueError:
        return response

    if isinstance(payload, dict) and payload.get("data") is not None and payload.get("meta") is not None:
        content = success_response(payload["data"], payload["meta"])
    else:
        content = success_response(payload)

    wrapped = JSONResponse(content, status_code=response.status_code)
    wrapped.raw_headers.extend(
        (key, value) for key, value in response.raw_headers if key.lower() not in _ENTITY_HEADERS
    )
    return wrapped


def with_error_handler(handler: ApiHandler) -> ApiHandler:
    """
    Normalize whatever the inner chain produces.

    2xx JSON responses are re-wrapped as the success envelope. Typed
    failures become their error envelope and status. Anything else raised is
    logged with its stack trace and reported as a generic 500.
    """
    async def wrapper(request: Request, ctx: HandlerContext) -> Response:
        try:
            response = await handler(request, ctx)
        except HttpError as e:
            logger.warning(f"{request.method} {request.url.path} -> {e.status_code}: {e.error}")
            return e.to_response()
        except Exception as e:
            logger.exception(f"Unhandled error in {request.method} {request.url.path}: {e}")
            return InternalServerError(
                "Internal server error", "An unexpected error occurred"
            ).to_response()

        if 200 <= response.status_code < 300:
            return _to_success_envelope(response)
        return response

    return wrapper


# ────────────────────────────────────────────────────────────────
# Capability injection
# ────────────────────────────────────────────────────────────────

async def load_models() -> ModelDictionary:
    """Connect on first use and return the shared handle dictionary."""
    session_factory = await db_connect()
    return build_model_handles(session_factory)


def with_models(handler: ApiHandler) -> ApiHandler:
    async def wrapper(request: Request, ctx: HandlerContext) -> Response:
        return await handler(request, replace(ctx, models=await load_models()))

    return wrapper


def with_stripe(handler: ApiHandler) -> ApiHandler:
    async def wrapper(request: Request, ctx: HandlerContext) -> Response:
        return await handler(request, replace(ctx, stripe=init_stripe()))

    return wrapper


def with_models_and_stripe(handler: ApiHandler) -> ApiHandler:
    async def wrapper(request: Request, ctx: HandlerContext) -> Response:
        models = await load_models()
        return await handler(request, replace(ctx, models=models, stripe=init_stripe()))

    return wrapper


# ────────────────────────────────────────────────────────────────
# Composition
# ────────────────────────────────────────────────────────────────

def apply_middlewares(handler: ApiHandler, *middlewares: Middleware) -> ApiHandler:
    """Wrap `handler` in `middlewares`, the first one ending up outermost."""
    return reduce(lambda acc, middleware: middleware(acc), reversed(middlewares), handler)


def as_endpoint(handler: ApiHandler, name: Optional[str] = None, doc: Optional[str] = None) -> Endpoint:
    """Adapt a handler to a FastAPI endpoint; route parameters come from the path."""
    async def endpoint(request: Request) -> Response:
        return await handler(request, HandlerContext(params=dict(request.path_params)))

    # Not functools.wraps: FastAPI would follow __wrapped__ and read the handler's signature
    endpoint.__name__ = name or getattr(handler, "__name__", "endpoint")
    endpoint.__doc__ = doc if doc is not None else handler.__doc__
    return endpoint


def with_middleware(handler: ApiHandler) -> Endpoint:
    """Error normalization around capability injection around `handler`."""
    composed = apply_middlewares(handler, with_error_handler, with_models_and_stripe)
    return as_endpoint(composed, name=handler.__name__, doc=handler.__doc__)


# ────────────────────────────────────────────────────────────────
# Handler helpers
# ────────────────────────────────────────────────────────────────

def require_staff(request: Request) -> bool:
    """
    Allow only members of the staff organization.

    Raises:
        Unauthorized: no authenticated identity, or its active organization
            is not CLERK_STAFF_ORG_ID
    """
    auth = get_auth(request)
    if not auth.org_id:
        raise Unauthorized("Unauthorized")

    staff_org_id = get_settings().clerk_staff_org_id
    if not staff_org_id:
        logger.warning("CLERK_STAFF_ORG_ID is not set; rejecting staff-only request")
        raise Unauthorized("Unauthorized")
    if auth.org_id != staff_org_id:
        logger.warning(f"User {auth.user_id} from org {auth.org_id} denied staff access")
        raise Unauthorized("Unauthorized")

    return True


def require_model(ctx: HandlerContext, name: ModelName) -> ModelHandle:
    handle = (ctx.models or {}).get(name)
    if handle is None:
        raise InternalServerError(f"{name.value} model not found")
    return handle
