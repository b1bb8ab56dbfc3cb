"""Global rate limiter instance for SlowAPI."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from common.core.config import settings

# Redis storage so limits hold across every API replica.
# All default limits must be satisfied; the first one hit applies.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=settings.rate_limit_default,
    storage_uri=settings.redis_connection_url,
)
