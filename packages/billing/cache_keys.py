"""Cache key generators for billing package."""

PLANS_CACHE_PREFIX = "plans"


def active_plans_key() -> str:
    """Cache key for the public plan catalogue."""
    return f"{PLANS_CACHE_PREFIX}:active"
