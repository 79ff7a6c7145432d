import json
import logging
from dataclasses import asdict
from typing import Any, Mapping

from ..core.cache import cache
from ..core.metrics import READINESS, VALUATIONS
from ..core.utils import canonical_json, digest, weak_etag
from ..engine.models import DigitalInput, OperationalInput, Track
from ..engine.readiness import score_readiness
from ..engine.valuation import estimate_valuation

logger = logging.getLogger(__name__)

DISCLAIMER = "This valuation is an estimate based on rule-of-thumb multiples and not a financial appraisal."

def normalize_input(track: Track, data: Any) -> dict:
    """
    Engine view of a request body: known fields only, snake_case, so equal
    businesses hash to the same cache key however the client spelled them.
    """
    if isinstance(data, (OperationalInput, DigitalInput)):
        return asdict(data)
    if track == "digital":
        return asdict(DigitalInput.from_dict(data))
    return asdict(OperationalInput.from_dict(data))

class ValuationService:
    """
    Orchestrates:
      raw input → normalized engine input → valuation + readiness
    Handles caching and ETag generation so repeat submissions are cheap.
    """
    def readiness(self, track: Track, data: Mapping[str, Any]) -> dict:
        result = score_readiness(track, normalize_input(track, data))
        READINESS.labels(track=track, tier=result.tier).inc()
        return {"track": track, "readiness": asdict(result)}

    async def estimate(self, track: Track, data: Mapping[str, Any]) -> tuple[dict, bool, str]:
        normalized = normalize_input(track, data)
        cache_key = f"valuation:{track}:{digest(normalized)}"
        cached = cache.get(cache_key)
        if cached:
            payload = json.loads(cached)
            etag = weak_etag(canonical_json(payload).encode("utf-8"))
            logger.debug("valuation cache hit %s", cache_key)
            return payload, True, etag

        valuation = estimate_valuation(track, normalized)
        readiness = score_readiness(track, normalized)
        VALUATIONS.labels(track=track, confidence=valuation.confidence).inc()
        READINESS.labels(track=track, tier=readiness.tier).inc()
        logger.info(
            "valuation computed track=%s base=%s confidence=%s readiness=%s",
            track, valuation.base, valuation.confidence, readiness.score,
        )

        payload = {
            "track": track,
            "valuation": asdict(valuation),
            "readiness": asdict(readiness),
            "disclaimer": DISCLAIMER,
        }

        # Cache+etag for repeat submissions
        body = canonical_json(payload)
        cache.set(cache_key, body)
        return payload, False, weak_etag(body.encode("utf-8"))
