from fastapi import Header, HTTPException, Request
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_429_TOO_MANY_REQUESTS
from datetime import datetime, timezone
from .config import settings
from .cache import rate_cache

def require_api_key(x_api_key: str | None = Header(default=None, alias="x-api-key")):
    """
    Simple header-based API key check.
    Session auth lives in the marketplace front-end; this only guards service-to-service calls.
    """
    if not settings.API_KEY:
        # If unset, we allow requests (dev convenience).
        return
    if x_api_key != settings.API_KEY:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid API key")

def rate_limit(request: Request):
    """
    Basic RPM limiter.
    Uses Redis if available else in-process, in its own short-lived cache
    so bursts of buckets never push out cached valuations or wizard copies.
    Keyed by API key (if present) or client IP to discourage abuse.
    """
    rpm = max(1, settings.RATE_LIMIT_RPM)
    client_ip = request.client.host if request.client else "unknown"
    api_key = request.headers.get("x-api-key") or "anon"
    minute_bucket = datetime.now(timezone.utc).strftime("%Y%m%d%H%M")
    key = f"rate:{api_key}:{client_ip}:{minute_bucket}"

    # Redis path: INCR + EXPIRE in one pipeline. In-memory is best-effort.
    if rate_cache.incr(key) > rpm:
        raise HTTPException(status_code=HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded")
