"""Stripe payment gateway client."""

import logging
from functools import lru_cache
from typing import Optional

import stripe

from .core.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def init_stripe() -> Optional[stripe.StripeClient]:
    """
    Build the shared Stripe client on first use.

    Returns None when STRIPE_SECRET_KEY is not configured so read-only
    deployments keep working without payments.
    """
    settings = get_settings()
    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY is not set; payment gateway client disabled")
        return None
    return stripe.StripeClient(settings.stripe_secret_key)
