"""
Subscription plan prices.

The subscription_plans table is the source of truth. Prices change rarely, so
lookups go through an injected PriceCache rather than module-level state:
- InMemoryPriceCache: per-process dict with TTL (tests, single worker)
- RedisPriceCache: shared across workers, invalidated after admin edits
"""

import json
import logging
import os
import threading
import time
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Callable, Dict, Optional

import redis

from billing.config import FALLBACK_PLAN_PRICES, PRICE_CACHE_TTL

logger = logging.getLogger(__name__)

PlanPrices = Dict[str, Dict[str, Decimal]]

PLAN_PRICES_KEY = "plan_prices"


class PriceCache(ABC):
    """Cache for slowly-changing pricing reference data."""

    @abstractmethod
    def get(self, key: str) -> Optional[PlanPrices]:
        pass

    @abstractmethod
    def set(self, key: str, value: PlanPrices, ttl: Optional[int] = None) -> None:
        pass

    @abstractmethod
    def invalidate(self, key: str) -> None:
        pass


class InMemoryPriceCache(PriceCache):
    """Dict-backed cache with per-entry expiry."""

    def __init__(self, default_ttl: int = PRICE_CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self.clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[PlanPrices]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self.clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: PlanPrices, ttl: Optional[int] = None) -> None:
        with self._lock:
            self._entries[key] = (self.clock() + (ttl or self.default_ttl), value)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)


class RedisPriceCache(PriceCache):
    """Redis cache manager for plan prices"""

    def __init__(self, redis_url: str = None, redis_client=None, default_ttl: int = PRICE_CACHE_TTL):
        """
        Initialize Redis connection.

        Args:
            redis_url: Redis connection URL (defaults to env var REDIS_URL)
            redis_client: Pre-built client (tests)
            default_ttl: Seconds before cached prices expire
        """
        self.redis_url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
        self.redis_client = redis_client or redis.from_url(self.redis_url, decode_responses=True)
        self.default_ttl = default_ttl
        self.version = "v1"  # Cache version for invalidation

    def _make_key(self, key: str) -> str:
        return f"pricing:{self.version}:{key}"

    def get(self, key: str) -> Optional[PlanPrices]:
        try:
            cached = self.redis_client.get(self._make_key(key))
        except redis.RedisError as e:
            logger.error(f"Price cache read error: {e}")
            return None

        if not cached:
            return None
        raw = json.loads(cached)
        return {
            plan: {cycle: Decimal(price) for cycle, price in cycles.items()}
            for plan, cycles in raw.items()
        }

    def set(self, key: str, value: PlanPrices, ttl: Optional[int] = None) -> None:
        payload = {
            plan: {cycle: str(price) for cycle, price in cycles.items()}
            for plan, cycles in value.items()
        }
        try:
            self.redis_client.setex(self._make_key(key), ttl or self.default_ttl, json.dumps(payload))
        except redis.RedisError as e:
            logger.error(f"Price cache write error: {e}")

    def invalidate(self, key: str) -> None:
        try:
            self.redis_client.delete(self._make_key(key))
        except redis.RedisError as e:
            logger.error(f"Price cache invalidation error: {e}")


class PlanPriceService:
    """
    Plan price lookup through a cache.

    Args:
        loader: Callable returning {plan: {cycle: price}} from the database
        cache: PriceCache implementation
    """

    def __init__(self, loader: Callable[[], PlanPrices], cache: Optional[PriceCache] = None):
        self.loader = loader
        self.cache = cache or InMemoryPriceCache()

    def get_subscription_prices(self) -> PlanPrices:
        cached = self.cache.get(PLAN_PRICES_KEY)
        if cached is not None:
            return cached

        prices = self.loader()
        if not prices:
            logger.error("No active subscription plans found, using fallback prices")
            # Fallback is not cached so the next call retries the database
            return {plan: dict(cycles) for plan, cycles in FALLBACK_PLAN_PRICES.items()}

        self.cache.set(PLAN_PRICES_KEY, prices)
        return prices

    def get_plan_price(self, plan: str, billing_cycle: str) -> Decimal:
        """Price for a plan and cycle; Decimal('0') when unknown."""
        prices = self.get_subscription_prices()
        return prices.get(plan.strip().lower(), {}).get(billing_cycle, Decimal("0"))

    def clear(self) -> None:
        """Drop cached prices (call after an admin edits plan pricing)."""
        self.cache.invalidate(PLAN_PRICES_KEY)
