from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Path
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_409_CONFLICT
from ..schemas import (
    StepRequest, StepUpdate, TrackRequest, WizardPayload, WizardScoreResponse, WizardState,
)
from ..services.wizard import UnknownStepError, ValuationWizard, WizardError, get_wizard
from ..core.security import require_api_key, rate_limit
from ..engine.readiness import score_readiness
from ..engine.valuation import estimate_valuation

router = APIRouter()

async def wizard_dep(session: str = Path(min_length=1, max_length=128)) -> ValuationWizard:
    return await get_wizard(session)

def _rejected(exc: WizardError) -> HTTPException:
    code = HTTP_400_BAD_REQUEST if isinstance(exc, UnknownStepError) else HTTP_409_CONFLICT
    return HTTPException(status_code=code, detail=str(exc))

@router.get("/{session}", response_model=WizardState)
async def get_state(
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    wizard: ValuationWizard = Depends(wizard_dep),
):
    return wizard.snapshot()

@router.post("/{session}/track", response_model=WizardState)
async def set_track(
    body: TrackRequest,
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    wizard: ValuationWizard = Depends(wizard_dep),
):
    try:
        await wizard.set_track(body.track)
    except WizardError as exc:
        raise _rejected(exc)
    return wizard.snapshot()

@router.patch("/{session}/steps", response_model=WizardState)
async def update_step(
    body: StepUpdate,
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    wizard: ValuationWizard = Depends(wizard_dep),
):
    try:
        wizard.update_step(body.root)
    except WizardError as exc:
        raise _rejected(exc)
    return wizard.snapshot()

@router.post("/{session}/step", response_model=WizardState)
async def set_step(
    body: StepRequest,
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    wizard: ValuationWizard = Depends(wizard_dep),
):
    try:
        await wizard.set_step(body.step)
    except WizardError as exc:
        raise _rejected(exc)
    return wizard.snapshot()

@router.post("/{session}/next", response_model=WizardState)
async def go_next(
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    wizard: ValuationWizard = Depends(wizard_dep),
):
    try:
        await wizard.next()
    except WizardError as exc:
        raise _rejected(exc)
    return wizard.snapshot()

@router.post("/{session}/back", response_model=WizardState)
async def go_back(
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    wizard: ValuationWizard = Depends(wizard_dep),
):
    await wizard.back()
    return wizard.snapshot()

@router.post("/{session}/reset", response_model=WizardState)
async def reset(
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    wizard: ValuationWizard = Depends(wizard_dep),
):
    await wizard.reset()
    return wizard.snapshot()

@router.post("/{session}/flush", response_model=WizardState)
async def flush(
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    wizard: ValuationWizard = Depends(wizard_dep),
):
    await wizard.flush()
    return wizard.snapshot()

@router.get("/{session}/payload", response_model=WizardPayload)
async def payload(
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    wizard: ValuationWizard = Depends(wizard_dep),
):
    return wizard.payload()

@router.post("/{session}/readiness", response_model=WizardScoreResponse)
async def score(
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    wizard: ValuationWizard = Depends(wizard_dep),
):
    """Value the wizard's business, then store its pillar readiness score on the row."""
    try:
        data = wizard.valuation_input()
    except WizardError as exc:
        raise _rejected(exc)
    track = wizard.state.track
    valuation = estimate_valuation(track, data)
    readiness = score_readiness(track, data)
    pillars = wizard.pillar_readiness()
    await wizard.record_readiness(pillars.score)
    return {
        "track": track,
        "valuation": asdict(valuation),
        "readiness": asdict(readiness),
        "pillars": asdict(pillars),
        "state": wizard.snapshot(),
    }
