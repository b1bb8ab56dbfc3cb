"""
Unit tests for the cache providers and the ``cache`` decorator.
"""

from typing import List
from unittest.mock import AsyncMock

import pytest
from pydantic import BaseModel

from common.core.config import settings
from common.core.constants import CacheProvider
from common.providers.caching import factory
from common.providers.caching.decorators import cache
from common.providers.caching.memory_cache import MemoryCache
from common.providers.caching.passthrough_cache import PassthroughCache
from packages.billing.services.plans_service import PlansService


class Item(BaseModel):
    id: int
    name: str


@pytest.mark.asyncio
class TestMemoryCache:
    async def test_set_get_delete(self):
        cache_provider = MemoryCache()

        await cache_provider.set("plans:active", [{"id": 1}])

        assert await cache_provider.get("plans:active") == [{"id": 1}]
        assert await cache_provider.delete("plans:active") is True
        assert await cache_provider.get("plans:active") is None
        assert await cache_provider.delete("plans:active") is False

    async def test_expired_entry_is_a_miss(self, monkeypatch):
        cache_provider = MemoryCache()
        await cache_provider.set("key", "value", ttl=10)

        monkeypatch.setattr(
            "common.providers.caching.memory_cache.time.time", lambda: 10**12
        )

        assert await cache_provider.get("key") is None

    async def test_delete_pattern(self):
        cache_provider = MemoryCache()
        await cache_provider.set("plans:active", 1)
        await cache_provider.set("plans:other", 2)
        await cache_provider.set("token:abc", 3)

        assert await cache_provider.delete_pattern("plans:*") == 2
        assert await cache_provider.get("token:abc") == 3


@pytest.mark.asyncio
async def test_passthrough_never_stores():
    cache_provider = PassthroughCache()

    assert await cache_provider.set("key", "value") is True
    assert await cache_provider.get("key") is None


@pytest.mark.parametrize(
    "provider,expected",
    [(CacheProvider.MEMORY, MemoryCache), (CacheProvider.NONE, PassthroughCache)],
)
def test_factory_follows_settings(monkeypatch, provider, expected):
    monkeypatch.setattr(factory, "_cache_provider", None)
    monkeypatch.setattr(settings, "cache_provider", provider)

    first = factory.get_cache_provider()

    assert isinstance(first, expected)
    assert factory.get_cache_provider() is first


@pytest.mark.asyncio
class TestCacheDecorator:
    async def test_second_call_is_served_from_cache(self, memory_cache):
        loader = AsyncMock(return_value=[Item(id=1, name="free")])

        @cache(model_type=Item, ttl=60, key_generator=lambda: "items:all")
        async def load_items() -> List[Item]:
            return await loader()

        first = await load_items()
        second = await load_items()

        assert loader.await_count == 1
        assert second == first
        assert isinstance(second[0], Item)
        assert await memory_cache.get("items:all") == [{"id": 1, "name": "free"}]

    async def test_none_is_not_cached(self, memory_cache):
        loader = AsyncMock(return_value=None)

        @cache(model_type=Item)
        async def find(item_id: int):
            return await loader(item_id)

        await find(1)
        await find(1)

        assert loader.await_count == 2

    async def test_broken_cache_falls_through(self, monkeypatch):
        broken = AsyncMock()
        broken.get.side_effect = ConnectionError("redis down")
        broken.set.side_effect = ConnectionError("redis down")
        monkeypatch.setattr(factory, "_cache_provider", broken)

        @cache(model_type=Item, key_generator=lambda: "items:one")
        async def load() -> Item:
            return Item(id=2, name="lite")

        assert await load() == Item(id=2, name="lite")

    async def test_plan_catalogue_is_cached(self, memory_cache):
        plans = await PlansService().get_active_plans()

        cached = await memory_cache.get("plans:active")
        assert [plan["name"] for plan in cached] == [plan.name for plan in plans]
        assert await PlansService().get_active_plans() == plans
