from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping

import httpx

from .base import AnalyticsClient
from ..core.config import settings
from ..core.utils import fnv1a_32, seeded_rand, to_count
from ..engine.funnel import STEP_NAMES, summarize_events
from ..engine.kpis import estimate_mrr, kpi
from ..engine.models import EventCoverage, FounderMetrics, Period, TrackFilter

KPI_KEYS = ("visitors", "registrations", "paid_users", "nda_signed", "enquiries", "deal_rooms_active")

def metrics_from_counts(counts: Mapping[str, Mapping[str, Any]], mrr_per_user: float,
                        visitors_estimated: bool = False) -> FounderMetrics:
    """
    Build KPI cards from raw windowed counts:
    {"visitors": {"7d": n, "30d": n, "prev_30d": n}, ...}.
    MRR is derived from paid users until subscription amounts are tracked.
    """
    def window(key: str) -> tuple[int, int, int]:
        c = counts.get(key) or {}
        return to_count(c.get("7d")), to_count(c.get("30d")), to_count(c.get("prev_30d"))

    v7, v30, vp = window("visitors")
    r7, r30, rp = window("registrations")
    p7, p30, pp = window("paid_users")
    n7, n30, np_ = window("nda_signed")
    e7, e30, ep = window("enquiries")
    d7, d30, dp = window("deal_rooms_active")
    return FounderMetrics(
        visitors=kpi("Visitors", v7, v30, vp, is_estimated=visitors_estimated),
        registrations=kpi("Registrations", r7, r30, rp),
        paid_users=kpi("Paid Users", p7, p30, pp),
        mrr=kpi("MRR", estimate_mrr(p7, mrr_per_user), estimate_mrr(p30, mrr_per_user),
                estimate_mrr(pp, mrr_per_user), is_estimated=True),
        nda_signed=kpi("NDAs Signed", n7, n30, np_),
        enquiries=kpi("Enquiries", e7, e30, ep),
        deal_rooms_active=kpi("Active Deal Rooms", d7, d30, dp),
    )

class MockAnalytics(AnalyticsClient):
    """
    Synthetic marketplace activity. Deterministic per track/period so reports
    are stable between calls, and shaped like a real buyer funnel.
    """
    # (low, high) ratio of each step to the previous one
    _STEP_RATIOS = [
        (0.03, 0.08),   # registered / visitor
        (1.5, 3.0),     # listing views / registered
        (0.10, 0.25),   # nda requested / listing views
        (0.50, 0.80),   # nda signed / nda requested
        (0.30, 0.60),   # enquiries / nda signed
        (0.20, 0.50),   # deal rooms / enquiries
        (1.5, 3.0),     # messages / deal rooms
    ]

    async def funnel_counts(self, period: Period, track: TrackFilter) -> Dict[str, int]:
        seed = fnv1a_32(f"funnel:{track}:{period}")
        visitors = 400 + int(seeded_rand(seed, 1)[0] * 2600)
        if period == "7d":
            visitors //= 4
        counts = {STEP_NAMES[0]: visitors}
        current = float(visitors)
        for i, (lo, hi) in enumerate(self._STEP_RATIOS, start=1):
            current *= lo + seeded_rand(seed + i, 1)[0] * (hi - lo)
            counts[STEP_NAMES[i]] = int(current)
        return counts

    async def event_coverage(self, days: int = 30) -> EventCoverage:
        now = datetime.now(timezone.utc)
        seed = fnv1a_32(f"events:{now.date().isoformat()}")
        rows: List[Dict[str, Any]] = []
        for d in range(days):
            # Roughly four days in five see traffic
            if seeded_rand(seed + d, 1)[0] < 0.2:
                continue
            day = now - timedelta(days=d, hours=1)
            sessions = 5 + int(seeded_rand(seed + 97 * d, 1)[0] * 25)
            for s in range(sessions):
                rows.append({"created_at": day.isoformat(), "session_id": f"s-{d}-{s}"})
        return summarize_events(rows, now=now, days=days)

    async def founder_metrics(self, track: TrackFilter) -> FounderMetrics:
        seed = fnv1a_32(f"kpis:{track}")
        funnel = await self.funnel_counts("30d", track)
        counts: Dict[str, Dict[str, int]] = {}
        base = {
            "visitors": funnel["visitor"],
            "registrations": funnel["registered"],
            "paid_users": max(0, funnel["registered"] // 20),
            "nda_signed": funnel["nda_signed"],
            "enquiries": funnel["enquiry_sent"],
            "deal_rooms_active": funnel["deal_room_created"],
        }
        for i, key in enumerate(KPI_KEYS):
            v30 = base[key]
            drift = 0.7 + seeded_rand(seed + i, 1)[0] * 0.6  # previous window within +/-30%
            counts[key] = {"7d": v30 // 4, "30d": v30, "prev_30d": int(v30 * drift)}
        return metrics_from_counts(counts, settings.MRR_PER_PAID_USER)

class HttpAnalytics(AnalyticsClient):
    """
    Client for the analytics read API that fronts the events table.
    """
    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    async def funnel_counts(self, period: Period, track: TrackFilter) -> Dict[str, int]:
        async with httpx.AsyncClient(timeout=15) as client:
            r = await client.get(f"{self.base_url}/funnel", params={"period": period, "track": track})
            r.raise_for_status()
            j = r.json()
            counts = j.get("counts", j) if isinstance(j, dict) else {}
            return {k: to_count(v) for k, v in counts.items() if k in STEP_NAMES}

    async def event_coverage(self, days: int = 30) -> EventCoverage:
        now = datetime.now(timezone.utc)
        since = (now - timedelta(days=days)).isoformat()
        async with httpx.AsyncClient(timeout=15) as client:
            r = await client.get(f"{self.base_url}/events",
                                 params={"since": since, "select": "created_at,session_id"})
            r.raise_for_status()
            rows = r.json()
        return summarize_events(rows if isinstance(rows, list) else [], now=now, days=days)

    async def founder_metrics(self, track: TrackFilter) -> FounderMetrics:
        async with httpx.AsyncClient(timeout=15) as client:
            r = await client.get(f"{self.base_url}/kpis", params={"track": track})
            r.raise_for_status()
            j = r.json()
        return metrics_from_counts(j.get("counts", {}), settings.MRR_PER_PAID_USER,
                                   visitors_estimated=bool(j.get("visitors_estimated")))

def analytics_client() -> AnalyticsClient:
    if settings.ANALYTICS_PROVIDER == "http" and settings.ANALYTICS_BASE_URL:
        return HttpAnalytics(settings.ANALYTICS_BASE_URL)
    return MockAnalytics()
