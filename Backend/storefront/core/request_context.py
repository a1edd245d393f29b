"""
Request Context Resolution Module

Resolves who is calling from the Clerk bearer token on the request.

AUTH METHOD:
    - JWT Bearer token verified against Clerk's public keys
    - NO fallback to headers or dev-users

The result is cached on `request.state` so a handler can ask for it more
than once per request without re-verifying the token. A missing or invalid
token resolves to an anonymous context; deciding whether anonymous callers
are allowed is left to the caller (see storefront.middlewares.require_staff).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .errors import Unauthorized

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    """Identity of the caller as asserted by Clerk."""
    user_id: Optional[str] = None
    org_id: Optional[str] = None
    org_role: Optional[str] = None
    auth_method: str = "none"

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)


ANONYMOUS = AuthContext()


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def resolve_auth_context(request: Request) -> AuthContext:
    token = _bearer_token(request)
    if token is None:
        return ANONYMOUS

    # Deferred import to avoid circular dependency
    from ..clerk_auth import extract_org_id, verify_clerk_token

    try:
        claims = verify_clerk_token(token)
    except Unauthorized as e:
        logger.warning(f"JWT verification failed: {e.message}")
        return ANONYMOUS

    user_id = claims.get("sub")
    if not user_id:
        logger.warning("Token verified but missing 'sub' claim")
        return ANONYMOUS

    org = claims.get("o") if isinstance(claims.get("o"), dict) else {}
    ctx = AuthContext(
        user_id=user_id,
        org_id=extract_org_id(claims),
        org_role=claims.get("org_role") or org.get("rol"),
        auth_method="jwt",
    )
    logger.debug(f"Auth via Clerk JWT: {ctx.user_id} (org: {ctx.org_id})")
    return ctx


def get_auth(request: Request) -> AuthContext:
    """Auth context for this request, resolved once and cached on request.state."""
    ctx = getattr(request.state, "auth", None)
    if ctx is None:
        ctx = resolve_auth_context(request)
        request.state.auth = ctx
    return ctx
