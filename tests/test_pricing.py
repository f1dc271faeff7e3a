"""
Plan price lookup and cache tests
"""

import json
from decimal import Decimal
from unittest.mock import MagicMock

import redis

from billing.config import FALLBACK_PLAN_PRICES
from billing.pricing import PLAN_PRICES_KEY, InMemoryPriceCache, PlanPriceService, RedisPriceCache

PRICES = {"starter": {"monthly": Decimal("9999.00"), "yearly": Decimal("99990.00")}}


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_in_memory_cache_expires():
    """Test TTL expiry of the in-memory cache"""
    clock = FakeClock()
    cache = InMemoryPriceCache(default_ttl=60, clock=clock)
    cache.set(PLAN_PRICES_KEY, PRICES)

    clock.now = 59
    assert cache.get(PLAN_PRICES_KEY) == PRICES
    clock.now = 60
    assert cache.get(PLAN_PRICES_KEY) is None


def test_in_memory_cache_invalidate():
    """Test explicit invalidation"""
    cache = InMemoryPriceCache()
    cache.set(PLAN_PRICES_KEY, PRICES)
    cache.invalidate(PLAN_PRICES_KEY)
    assert cache.get(PLAN_PRICES_KEY) is None
    cache.invalidate("missing")


def test_service_loads_once_while_cached():
    """Test that the loader is only called on a cache miss"""
    loader = MagicMock(return_value=PRICES)
    service = PlanPriceService(loader, cache=InMemoryPriceCache())

    assert service.get_plan_price("Starter", "monthly") == Decimal("9999.00")
    assert service.get_plan_price(" starter ", "yearly") == Decimal("99990.00")
    assert loader.call_count == 1

    service.clear()
    service.get_subscription_prices()
    assert loader.call_count == 2


def test_service_unknown_plan_is_zero():
    """Test that unknown plans and cycles price at zero"""
    service = PlanPriceService(lambda: PRICES)
    assert service.get_plan_price("enterprise", "monthly") == Decimal("0")
    assert service.get_plan_price("starter", "weekly") == Decimal("0")


def test_service_falls_back_without_caching():
    """Test fallback prices when no plans are active; database is retried next time"""
    loader = MagicMock(return_value={})
    service = PlanPriceService(loader, cache=InMemoryPriceCache())

    assert service.get_subscription_prices() == FALLBACK_PLAN_PRICES
    assert service.get_plan_price("growth", "monthly") == Decimal("29999")
    assert loader.call_count == 2


def test_redis_cache_round_trips_decimals():
    """Test that prices are stored as JSON strings and read back as Decimals"""
    client = MagicMock()
    cache = RedisPriceCache(redis_client=client, default_ttl=30)

    cache.set(PLAN_PRICES_KEY, PRICES)
    key, ttl, payload = client.setex.call_args[0]
    assert key == "pricing:v1:plan_prices"
    assert ttl == 30
    assert json.loads(payload) == {"starter": {"monthly": "9999.00", "yearly": "99990.00"}}

    client.get.return_value = payload
    assert cache.get(PLAN_PRICES_KEY) == PRICES


def test_redis_cache_errors_are_misses():
    """Test that Redis failures degrade to cache misses"""
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("down")
    client.setex.side_effect = redis.ConnectionError("down")
    client.delete.side_effect = redis.ConnectionError("down")
    cache = RedisPriceCache(redis_client=client)

    assert cache.get(PLAN_PRICES_KEY) is None
    cache.set(PLAN_PRICES_KEY, PRICES)
    cache.invalidate(PLAN_PRICES_KEY)

    loader = MagicMock(return_value=PRICES)
    assert PlanPriceService(loader, cache=cache).get_plan_price("starter", "monthly") == Decimal("9999.00")
