"""
Valuation wizard: the seller's multi-step flow as an explicit state object.

Step and track changes are saved right away; field edits only mark the
wizard dirty until `flush()`. Every save writes the store first and then a
local cache copy, and a store failure only flips `save_status` to "error",
so the seller never loses input because the database was unreachable.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from cachetools import TTLCache

from ..core.cache import Cache, cache
from ..core.config import settings
from ..core.metrics import WIZARD_SAVES
from ..data.base import ProgressRecord, ProgressStore
from ..data.progress_store import progress_store
from ..engine.models import DigitalInput, OperationalInput, PillarReadiness, Track
from ..engine.readiness import score_pillars
from ..schemas import StepData

logger = logging.getLogger(__name__)

VALUATION_STEPS: list[tuple[str, str]] = [
    ("intent", "Selling Intent"),
    ("track", "Asset Type"),
    ("profile", "Business Profile"),
    ("financials", "Financial Overview"),
    ("risk", "Risk Assessment"),
    ("valuation_preview", "Valuation Preview"),
    ("readiness", "Readiness Check"),
    ("next_actions", "Next Steps"),
]
STEP_IDS = [step_id for step_id, _ in VALUATION_STEPS]
DEFAULT_STEP = "intent"
# Steps whose forms differ per track
TRACK_STEPS = {"profile", "financials", "risk", "valuation_preview", "readiness"}

SaveStatus = Literal["idle", "saving", "saved", "error"]

class WizardError(Exception):
    """Transition not allowed in the current state."""

class UnknownStepError(WizardError):
    pass

def step_index(step_id: str) -> int:
    return STEP_IDS.index(step_id) if step_id in STEP_IDS else -1

def next_step_id(step_id: str) -> Optional[str]:
    i = step_index(step_id)
    if i == -1 or i == len(STEP_IDS) - 1:
        return None
    return STEP_IDS[i + 1]

def previous_step_id(step_id: str) -> Optional[str]:
    i = step_index(step_id)
    if i <= 0:
        return None
    return STEP_IDS[i - 1]

@dataclass
class WizardSnapshot:
    current_step: str = DEFAULT_STEP
    track: Optional[Track] = None
    step_data: dict[str, Any] = field(default_factory=dict)
    track_locked: bool = False
    save_status: SaveStatus = "idle"
    valuation_id: Optional[str] = None
    readiness_score: Optional[int] = None
    dirty: bool = False

class ValuationWizard:
    def __init__(self, session_key: str, store: ProgressStore, fallback_cache: Cache = cache):
        self.session_key = session_key
        self.store = store
        self.fallback_cache = fallback_cache
        self.state = WizardSnapshot()

    @property
    def cache_key(self) -> str:
        return f"wizard:{self.session_key}"

    # ----- persistence -----

    def _record(self) -> ProgressRecord:
        s = self.state
        data: dict[str, Any] = {
            "step_index": max(0, step_index(s.current_step)),
            "step_id": s.current_step,
            **s.step_data,
        }
        if s.track:
            data["track"] = s.track
        result = {"readiness_score": s.readiness_score} if s.readiness_score is not None else {}
        return ProgressRecord(input=data, result=result, valuation_id=s.valuation_id)

    def _apply(self, record: ProgressRecord) -> None:
        data = dict(record.input or {})
        idx = data.pop("step_index", None)
        step_id = data.pop("step_id", None)
        if isinstance(idx, int) and 0 <= idx < len(STEP_IDS):
            current = STEP_IDS[idx]
        elif step_id in STEP_IDS:
            current = step_id
        else:
            current = DEFAULT_STEP

        track = data.pop("track", None)
        if track not in ("operational", "digital"):
            track = None

        score = (record.result or {}).get("readiness_score", data.get("readiness_score"))
        data.pop("readiness_score", None)

        self.state = WizardSnapshot(
            current_step=current,
            track=track,
            step_data=data,
            # A saved track stays locked until an explicit reset
            track_locked=track is not None,
            valuation_id=record.valuation_id,
            readiness_score=score if isinstance(score, int) else None,
        )

    def _cached_record(self) -> Optional[ProgressRecord]:
        raw = self.fallback_cache.get(self.cache_key)
        if not raw:
            return None
        try:
            blob = json.loads(raw)
        except ValueError:
            logger.warning("discarding unreadable wizard cache for %s", self.session_key)
            return None
        return ProgressRecord(
            input=blob.get("input") or {},
            result=blob.get("result") or {},
            valuation_id=blob.get("valuation_id"),
        )

    async def load(self) -> WizardSnapshot:
        try:
            record = await self.store.load(self.session_key)
        except Exception:
            logger.warning("progress store load failed for %s, using local copy", self.session_key, exc_info=True)
            record = self._cached_record()
        if record is not None:
            self._apply(record)
        return self.state

    async def _save(self) -> SaveStatus:
        record = self._record()
        self.state.save_status = "saving"
        try:
            saved = await self.store.save(self.session_key, record)
            self.state.valuation_id = saved.valuation_id or self.state.valuation_id
            self.state.save_status = "saved"
        except Exception:
            logger.warning("progress store save failed for %s, kept local copy", self.session_key, exc_info=True)
            self.state.save_status = "error"
        WIZARD_SAVES.labels(outcome=self.state.save_status).inc()

        self.fallback_cache.set(self.cache_key, json.dumps({
            "input": record.input,
            "result": record.result,
            "valuation_id": self.state.valuation_id,
        }))
        self.state.dirty = False
        return self.state.save_status

    async def flush(self) -> SaveStatus:
        return await self._save()

    # ----- transitions -----

    async def set_step(self, step_id: str) -> str:
        if step_id not in STEP_IDS:
            raise UnknownStepError(f"Invalid step ID: {step_id}")
        if step_id in TRACK_STEPS and self.state.track is None:
            raise WizardError("Select a track first")
        self.state.current_step = step_id
        await self._save()
        return step_id

    async def set_track(self, track: Track) -> Track:
        s = self.state
        if s.track_locked and s.track is not None and s.track != track:
            raise WizardError("Track is locked; reset the valuation to change track")
        s.track = track
        s.track_locked = True
        await self._save()
        return track

    def update_step(self, data: StepData) -> dict[str, Any]:
        """Merge one step's fields into the wizard; saved on the next flush."""
        kind = data.kind
        if kind == "intent":
            self.state.step_data["intent"] = data.intent
        else:
            if self.state.track is None:
                raise WizardError("Select a track first")
            fields = data.model_dump(exclude={"kind"}, exclude_unset=True)
            current = self.state.step_data.get(kind)
            merged = dict(current) if isinstance(current, dict) else {}
            merged.update(fields)
            self.state.step_data[kind] = merged
        self.state.dirty = True
        return self.state.step_data

    async def next(self) -> Optional[str]:
        s = self.state
        if s.current_step == "track" and s.track is None:
            raise WizardError("Select a track first")
        nxt = next_step_id(s.current_step)
        if nxt:
            await self.set_step(nxt)
        return nxt

    async def back(self) -> Optional[str]:
        prev = previous_step_id(self.state.current_step)
        if prev:
            await self.set_step(prev)
        return prev

    async def reset(self) -> WizardSnapshot:
        """Start over on the track step; only the selling intent survives."""
        s = self.state
        intent = s.step_data.get("intent")
        s.track = None
        s.track_locked = False
        s.step_data = {"intent": intent} if isinstance(intent, str) else {}
        s.current_step = "track"
        await self._save()
        return s

    # ----- read side -----

    def payload(self) -> dict[str, Any]:
        d = self.state.step_data
        intent = d.get("intent")
        return {
            "track": self.state.track,
            "intent": intent if isinstance(intent, str) else None,
            "profile": d.get("profile") or {},
            "financials": d.get("financials") or {},
            "risk": d.get("risk") or {},
            "current_step": self.state.current_step,
            "completed_at": datetime.now(timezone.utc).isoformat(),
        }

    def valuation_input(self) -> OperationalInput | DigitalInput:
        if self.state.track is None:
            raise WizardError("Select a track first")
        merged: dict[str, Any] = {}
        for kind in ("profile", "financials", "risk"):
            part = self.state.step_data.get(kind)
            if isinstance(part, dict):
                merged.update(part)
        if self.state.track == "digital":
            return DigitalInput.from_dict(merged)
        return OperationalInput.from_dict(merged)

    def pillar_readiness(self) -> PillarReadiness:
        return score_pillars(self.state.track, self.state.step_data)

    async def record_readiness(self, score: int) -> SaveStatus:
        self.state.readiness_score = int(score)
        return await self._save()

    def snapshot(self) -> dict[str, Any]:
        s = self.state
        return {
            "session": self.session_key,
            "current_step": s.current_step,
            "track": s.track,
            "track_locked": s.track_locked,
            "save_status": s.save_status,
            "valuation_id": s.valuation_id,
            "readiness_score": s.readiness_score,
            "pending_changes": s.dirty,
            "step_data": s.step_data,
        }

# Live wizards by session, so unflushed edits survive between requests
_SESSIONS: TTLCache = TTLCache(maxsize=4096, ttl=settings.CACHE_TTL_SECONDS)

async def get_wizard(session_key: str) -> ValuationWizard:
    wizard = _SESSIONS.get(session_key)
    if wizard is None:
        wizard = ValuationWizard(session_key, progress_store(), cache)
        await wizard.load()
        _SESSIONS[session_key] = wizard
    return wizard

def drop_sessions() -> None:
    _SESSIONS.clear()
