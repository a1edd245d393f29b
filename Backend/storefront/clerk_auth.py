"""
Clerk Authentication Module - JWT Verification

This module provides JWT token verification using PyJWT with Clerk's JWKS.
It handles:
- Fetching public keys from Clerk's API
- Verifying JWT signatures using RS256
- Validating token expiration and issuer
- Extracting the user and active organization from verified tokens

Usage:
    from storefront.clerk_auth import verify_clerk_token, extract_org_id

    claims = verify_clerk_token(token)
    user_id = claims["sub"]
    org_id = extract_org_id(claims)
"""

import logging
from functools import lru_cache
from typing import Optional

import httpx
import jwt
from jwt import PyJWK

from .core.config import get_settings
from .core.errors import InternalServerError, Unauthorized

logger = logging.getLogger(__name__)

CLERK_JWKS_URL = "https://api.clerk.com/v1/jwks"


@lru_cache(maxsize=1)
def fetch_clerk_jwks() -> dict:
    """
    Fetch JWKS from Clerk's API with authentication.

    Clerk's JWKS endpoint at api.clerk.com requires the secret key.
    This is cached to avoid repeated requests; failures are not cached.

    Returns:
        dict: The JWKS response containing public keys
    """
    settings = get_settings()

    try:
        with httpx.Client(timeout=10.0) as client:
            response = client.get(
                CLERK_JWKS_URL,
                headers={
                    "Authorization": f"Bearer {settings.clerk_secret_key}",
                    "User-Agent": "Storefront-Backend/1.0",
                },
            )
            response.raise_for_status()
            jwks_data = response.json()
            logger.info("Successfully fetched JWKS from Clerk API")
            return jwks_data

    except httpx.HTTPStatusError as e:
        logger.error(f"HTTP {e.response.status_code} fetching JWKS: {e.response.text}")
        raise InternalServerError(
            "Unable to fetch Clerk JWKS",
            f"Identity provider returned HTTP {e.response.status_code}",
        ) from e
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch JWKS from Clerk: {e}")
        raise InternalServerError("Unable to fetch Clerk JWKS") from e


def _signing_key(kid: str):
    for key in fetch_clerk_jwks().get("keys", []):
        if key.get("kid") == kid:
            return PyJWK.from_dict(key).key
    return None


def verify_clerk_token(token: str) -> dict:
    """
    Verify a Clerk JWT token and return the decoded payload.

    This function:
    1. Fetches the signing keys from Clerk's JWKS endpoint (cached)
    2. Verifies the token signature using RS256
    3. Validates the issuer matches the Clerk frontend API, when configured
    4. Validates the token is not expired

    Raises:
        Unauthorized: token is malformed, expired, or signature doesn't match
        InternalServerError: the JWKS could not be fetched
    """
    settings = get_settings()

    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Token verification failed: {e}")
        raise Unauthorized("Invalid token") from e

    if not kid:
        raise Unauthorized("Invalid token", "Token header missing key ID (kid)")

    signing_key = _signing_key(kid)
    if signing_key is None:
        logger.warning(f"No matching JWKS key for kid: {kid}")
        raise Unauthorized("Invalid token", f"No matching key found for kid: {kid}")

    issuer = f"https://{settings.clerk_frontend_api}" if settings.clerk_frontend_api else None

    try:
        decoded = jwt.decode(
            token,
            signing_key,
            algorithms=["RS256"],
            issuer=issuer,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_iss": issuer is not None,
            },
        )
    except jwt.ExpiredSignatureError as e:
        logger.warning("Token verification failed: Token has expired")
        raise Unauthorized("Invalid token", "Token has expired") from e
    except jwt.InvalidTokenError as e:
        logger.warning(f"Token verification failed: {e} (expected issuer: {issuer})")
        raise Unauthorized("Invalid token") from e

    logger.debug(f"Token verified for user: {decoded.get('sub')}")
    return decoded


def extract_org_id(claims: dict) -> Optional[str]:
    """
    Active organization of a Clerk session token.

    Version 1 tokens carry `org_id`; version 2 tokens nest it as `o.id`.
    """
    org_id = claims.get("org_id")
    if org_id:
        return org_id
    org = claims.get("o")
    if isinstance(org, dict):
        return org.get("id")
    return None
