from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping, Sequence

from ..core.utils import js_round, to_count
from .models import EventCoverage, FunnelData, FunnelStep, Period

# Canonical buyer journey, in order
FUNNEL_STEPS: list[tuple[str, str]] = [
    ("visitor", "Visitor"),
    ("registered", "Registered"),
    ("listing_viewed", "Listing Viewed"),
    ("nda_requested", "NDA Requested"),
    ("nda_signed", "NDA Signed"),
    ("enquiry_sent", "Enquiry Sent"),
    ("deal_room_created", "Deal Room Created"),
    ("message_sent", "Message Sent"),
]
STEP_NAMES = [name for name, _ in FUNNEL_STEPS]
LOW_VOLUME_THRESHOLD = 20

def _counts_by_step(raw_counts: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> dict[str, int]:
    if isinstance(raw_counts, Mapping):
        return {k: to_count(v) for k, v in raw_counts.items()}
    out: dict[str, int] = {}
    for row in raw_counts or []:
        if isinstance(row, Mapping) and row.get("step") in STEP_NAMES:
            out[row["step"]] = to_count(row.get("count"))
    return out

def build_funnel(
    raw_counts: Mapping[str, Any] | Sequence[Mapping[str, Any]],
    period: Period = "30d",
    is_estimated: bool = False,
    low_volume_threshold: int = LOW_VOLUME_THRESHOLD,
) -> FunnelData:
    """
    Turn per-step counts into conversion and drop-off rates.

    Rates are relative to the previous step and rounded to whole percent;
    a step whose denominator is below `low_volume_threshold` is flagged so
    report language can soften around it.
    """
    counts = _counts_by_step(raw_counts)
    steps: list[FunnelStep] = []
    previous = None
    for index, (name, label) in enumerate(FUNNEL_STEPS):
        count = counts.get(name, 0)
        sample = count if previous is None else previous
        if index == 0:
            conversion, drop_off, drop_off_rate = 100, 0, 0
        else:
            drop_off = sample - count
            conversion = js_round(count / sample * 100) if sample > 0 else 0
            drop_off_rate = js_round(drop_off / sample * 100) if sample > 0 else 0
        steps.append(FunnelStep(
            step=name,
            label=label,
            count=count,
            conversion_rate=conversion,
            drop_off=drop_off,
            drop_off_rate=drop_off_rate,
            sample_size=sample,
            is_low_volume=sample < low_volume_threshold,
        ))
        previous = count
    return FunnelData(steps=steps, period=period, is_estimated=is_estimated)

def low_volume_warnings(funnel: FunnelData) -> int:
    return sum(1 for s in funnel.steps if s.is_low_volume)

def _parse_ts(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str) and value:
        try:
            ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)

def summarize_events(rows: Iterable[Mapping[str, Any]], now: datetime | None = None, days: int = 30) -> EventCoverage:
    """
    Coverage over raw event rows: distinct UTC days with any event,
    distinct session ids, and total events in the trailing window.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start = now - timedelta(days=days)

    dates: set = set()
    sessions: set = set()
    events = 0
    for row in rows:
        ts = _parse_ts(row.get("created_at"))
        if ts is None or ts < start or ts > now:
            continue
        events += 1
        dates.add(ts.date())
        sid = row.get("session_id")
        if sid:
            sessions.add(sid)
    return EventCoverage(coverage_days=len(dates), sessions=len(sessions), events=events)
