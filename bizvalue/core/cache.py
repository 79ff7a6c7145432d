from typing import Any
from cachetools import TTLCache
from .config import settings

# Rate buckets cover one minute; two keeps the previous bucket readable at the boundary.
RATE_BUCKET_TTL_SECONDS = 120

try:
    import redis  # Optional dependency
except ImportError:
    redis = None

class Cache:
    """
    Thin abstraction over Redis/in-memory so swapping is one flag away.
    Each instance owns its in-process store, so unrelated key families
    cannot evict each other.
    """
    def __init__(self, ttl: int | None = None, maxsize: int = 4096):
        self.ttl = ttl or settings.CACHE_TTL_SECONDS
        self._local = TTLCache(maxsize=maxsize, ttl=self.ttl)
        self.backend = None
        if settings.USE_REDIS and redis is not None:
            self.backend = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)

    def get(self, key: str) -> Any | None:
        if self.backend:
            return self.backend.get(key)
        return self._local.get(key)

    def set(self, key: str, value: str) -> None:
        if self.backend:
            self.backend.setex(key, self.ttl, value)
        else:
            self._local[key] = value

    def incr(self, key: str) -> int:
        """Count a hit and return the running total."""
        if self.backend:
            pipe = self.backend.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.ttl)
            count, _ = pipe.execute()
            return int(count)
        try:
            count = int(self._local.get(key) or 0) + 1
        except ValueError:
            count = 1
        self._local[key] = str(count)
        return count

    def delete(self, key: str) -> None:
        if self.backend:
            self.backend.delete(key)
        else:
            self._local.pop(key, None)

    def clear(self) -> None:
        """Drop in-process entries (tests and local resets). Redis is left alone."""
        self._local.clear()

    def __len__(self) -> int:
        return len(self._local)

# Valuation results and the wizard's local fallback copy
cache = Cache()
# Per-client minute buckets for the rate limiter
rate_cache = Cache(ttl=RATE_BUCKET_TTL_SECONDS, maxsize=8192)
