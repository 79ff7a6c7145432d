"""In-process cache instances and rate-limit buckets."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from bizvalue.core.cache import RATE_BUCKET_TTL_SECONDS, Cache, cache, rate_cache


def test_incr_counts_per_key() -> None:
    local = Cache(ttl=60, maxsize=16)
    assert local.incr("a") == 1
    assert local.incr("a") == 2
    assert local.incr("b") == 1
    assert local.get("a") == "2"


def test_incr_recovers_from_garbage() -> None:
    local = Cache(ttl=60, maxsize=16)
    local.set("a", "not-a-number")
    assert local.incr("a") == 1


def test_rate_buckets_do_not_evict_wizard_copies() -> None:
    cache.set("wizard:user-9", '{"input": {"track": "digital"}}')

    for i in range(5000):
        rate_cache.incr(f"rate:anon:10.0.{i // 256}.{i % 256}:202601011200")

    assert cache.get("wizard:user-9") == '{"input": {"track": "digital"}}'
    assert len(rate_cache) == 5000
    assert rate_cache.ttl == RATE_BUCKET_TTL_SECONDS


@pytest.mark.asyncio
async def test_requests_only_touch_the_rate_cache(client: AsyncClient) -> None:
    resp = await client.post("/v1/readiness", json={"track": "operational", "revenue": 1})
    assert resp.status_code == 200
    assert len(rate_cache) == 1
    assert len(cache) == 0
