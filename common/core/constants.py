from enum import Enum


class Environment(str, Enum):
    """Environment profiles."""

    LOCAL = "local"
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class CacheProvider(str, Enum):
    """Cache backends."""

    REDIS = "redis"
    MEMORY = "memory"
    NONE = "none"
