import functools
import hashlib
import json
from typing import Callable, Optional, Type

from pydantic import BaseModel

from common.core.otel_axiom_exporter import get_logger
from .factory import get_cache_provider

logger = get_logger(__name__)


def _default_key(func: Callable, args: tuple, kwargs: dict) -> str:
    if args and hasattr(args[0], func.__name__):
        # Bound method: key on the class, skip self
        prefix = type(args[0]).__name__
        args = args[1:]
    else:
        prefix = func.__module__.split(".")[-1]

    if not args and not kwargs:
        return f"{prefix}:{func.__name__}"

    payload = json.dumps(
        {"args": args, "kwargs": dict(sorted(kwargs.items()))},
        sort_keys=True,
        default=str,
    )
    return f"{prefix}:{func.__name__}:{hashlib.md5(payload.encode()).hexdigest()[:8]}"


def _load(model_type: Type, cached):
    if not (isinstance(model_type, type) and issubclass(model_type, BaseModel)):
        return cached
    if isinstance(cached, list):
        return [model_type.model_validate(item) for item in cached]
    return model_type.model_validate(cached)


def _dump(result):
    if isinstance(result, list):
        return [
            item.model_dump() if isinstance(item, BaseModel) else item
            for item in result
        ]
    if isinstance(result, BaseModel):
        return result.model_dump()
    return result


def cache(model_type: Type, ttl: int = 3600, key_generator: Optional[Callable] = None):
    """
    Cache the result of an async function or method.

    Results are stored as JSON (pydantic models dumped, lists of models
    supported) and rebuilt as ``model_type`` on a hit. Cache failures are
    logged and fall through to the wrapped function.

    Args:
        model_type: Pydantic model the cached payload is validated into
        ttl: Time to live in seconds
        key_generator: Builds the key from the call arguments (without self)
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            cache_key = None
            try:
                if key_generator:
                    call_args = (
                        args[1:] if args and hasattr(args[0], func.__name__) else args
                    )
                    cache_key = key_generator(*call_args, **kwargs)
                else:
                    cache_key = _default_key(func, args, kwargs)

                cached = await get_cache_provider().get(cache_key)
                if cached is not None:
                    logger.debug(f"Cache hit for key: {cache_key}")
                    return _load(model_type, cached)
            except Exception as e:
                logger.warning(f"Cache lookup failed for {func.__name__}: {e}")

            result = await func(*args, **kwargs)

            if cache_key and result is not None:
                try:
                    await get_cache_provider().set(cache_key, _dump(result), ttl)
                except Exception as e:
                    logger.warning(f"Cache set failed for key {cache_key}: {e}")

            return result

        return wrapper

    return decorator
