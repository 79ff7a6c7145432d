from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from ..schemas import (
    ConfidenceResponse, FunnelResponse, ReportResponse, StrategyRequest,
    StrategyResponse, TrackFilter,
)
from ..services.founder_service import FounderService
from ..core.security import require_api_key, rate_limit
from ..engine.funnel import low_volume_warnings
from ..engine.models import StrategyBaseline, StrategyInputs

router = APIRouter()

def service_dep() -> FounderService:
    return FounderService()

@router.get("/funnel", response_model=FunnelResponse)
async def get_funnel(
    period: str = Query(default="30d", pattern="^(7d|30d)$"),
    track: TrackFilter = Query(default="all"),
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    svc: FounderService = Depends(service_dep),
):
    funnel = await svc.funnel(period, track)
    return {**asdict(funnel), "track": track, "low_volume_warnings": low_volume_warnings(funnel)}

@router.get("/confidence", response_model=ConfidenceResponse)
async def get_confidence(
    track: TrackFilter = Query(default="all"),
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    svc: FounderService = Depends(service_dep),
):
    return asdict(await svc.confidence(track))

@router.get("/report", response_model=ReportResponse)
async def get_report(
    track: TrackFilter = Query(default="all"),
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    svc: FounderService = Depends(service_dep),
):
    report = await svc.report(track)
    funnel = report["funnel"]
    funnel["track"] = track
    funnel["low_volume_warnings"] = report["confidence"]["low_volume_warnings"]
    return report

@router.post("/strategy", response_model=StrategyResponse)
async def post_strategy(
    body: StrategyRequest,
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    svc: FounderService = Depends(service_dep),
):
    inputs = StrategyInputs(**body.model_dump(exclude={"baseline"}))
    baseline = StrategyBaseline(**body.baseline.model_dump()) if body.baseline else None
    return asdict(await svc.strategy(inputs, baseline))
