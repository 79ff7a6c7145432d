from fastapi import APIRouter, Depends, Header, Response
from ..schemas import ReadinessResponse, ValuationRequest, ValuationResponse
from ..services.valuation_service import ValuationService
from ..core.security import require_api_key, rate_limit

router = APIRouter()

def service_dep() -> ValuationService:
    # Stateless; the cache lives at module level
    return ValuationService()

@router.post("/valuation", response_model=ValuationResponse)
async def post_valuation(
    body: ValuationRequest,
    response: Response,
    if_none_match: str | None = Header(default=None, alias="if-none-match"),
    _auth = Depends(require_api_key),     # API key guard
    _lim  = Depends(rate_limit),          # Rate limiting
    svc: ValuationService = Depends(service_dep),
):
    business = body.root
    payload, from_cache, etag = await svc.estimate(business.track, business.model_dump())
    if if_none_match and if_none_match == etag:
        return Response(status_code=304, headers={"ETag": etag})
    payload["cached"] = from_cache
    payload["etag"] = etag
    response.headers["ETag"] = etag
    return payload

@router.post("/readiness", response_model=ReadinessResponse)
async def post_readiness(
    body: ValuationRequest,
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    svc: ValuationService = Depends(service_dep),
):
    business = body.root
    return svc.readiness(business.track, business.model_dump())
