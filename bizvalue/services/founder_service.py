import logging
from dataclasses import asdict
from typing import Optional

from ..core.config import settings
from ..data.analytics_client import analytics_client
from ..data.base import AnalyticsClient
from ..engine.confidence import compute_confidence
from ..engine.funnel import build_funnel, low_volume_warnings
from ..engine.kpis import count_estimated_metrics, track_momentum
from ..engine.models import (
    ConfidenceSummary, EventCoverage, FounderMetrics, FunnelData, KpiMetric,
    Period, StrategyBaseline, StrategyInputs, StrategyOutputs, TrackFilter,
)
from ..engine.narrative import NarrativeThresholds, build_narrative, identify_funnel_leaks
from ..engine.strategy import simulate_strategy

logger = logging.getLogger(__name__)

def thresholds_from_settings() -> NarrativeThresholds:
    return NarrativeThresholds(
        leak_low=settings.LEAK_THRESHOLD_LOW,
        leak_medium=settings.LEAK_THRESHOLD_MEDIUM,
        leak_high=settings.LEAK_THRESHOLD_HIGH,
        severe_drop_off=settings.SEVERE_DROP_OFF_PCT,
    )

def unknown_metrics() -> FounderMetrics:
    def blank(label: str) -> KpiMetric:
        return KpiMetric(label=label, value_7d=None, value_30d=None)
    return FounderMetrics(
        visitors=blank("Visitors"),
        registrations=blank("Registrations"),
        paid_users=blank("Paid Users"),
        mrr=blank("MRR"),
        nda_signed=blank("NDAs Signed"),
        enquiries=blank("Enquiries"),
        deal_rooms_active=blank("Active Deal Rooms"),
    )

class FounderService:
    """
    Founder-facing analytics:
      event source → funnel + coverage + KPIs → confidence → report language
    Source outages degrade to empty, estimated numbers instead of errors so
    the dashboard still renders (with a low confidence score).
    """
    def __init__(self, analytics: Optional[AnalyticsClient] = None,
                 thresholds: Optional[NarrativeThresholds] = None):
        self.analytics = analytics or analytics_client()
        self.thresholds = thresholds or thresholds_from_settings()

    async def funnel(self, period: Period = "30d", track: TrackFilter = "all") -> FunnelData:
        try:
            counts = await self.analytics.funnel_counts(period, track)
            estimated = False
        except Exception:
            logger.warning("funnel counts unavailable period=%s track=%s", period, track, exc_info=True)
            counts, estimated = {}, True
        return build_funnel(counts, period=period, is_estimated=estimated,
                            low_volume_threshold=settings.LOW_VOLUME_THRESHOLD)

    async def coverage(self) -> EventCoverage:
        try:
            return await self.analytics.event_coverage(days=30)
        except Exception:
            logger.warning("event coverage unavailable", exc_info=True)
            return EventCoverage()

    async def metrics(self, track: TrackFilter = "all") -> FounderMetrics:
        try:
            return await self.analytics.founder_metrics(track)
        except Exception:
            logger.warning("founder metrics unavailable track=%s", track, exc_info=True)
            return unknown_metrics()

    async def confidence(self, track: TrackFilter = "all",
                         funnel: Optional[FunnelData] = None,
                         metrics: Optional[FounderMetrics] = None) -> ConfidenceSummary:
        funnel = funnel or await self.funnel("30d", track)
        metrics = metrics or await self.metrics(track)
        cov = await self.coverage()
        return compute_confidence(
            coverage_days=cov.coverage_days,
            sessions_30d=cov.sessions,
            estimated_metrics=count_estimated_metrics(metrics),
            low_volume_warnings=low_volume_warnings(funnel),
            events_30d=cov.events,
        )

    async def report(self, track: TrackFilter = "all") -> dict:
        funnel = await self.funnel("30d", track)
        metrics = await self.metrics(track)
        conf = await self.confidence(track, funnel=funnel, metrics=metrics)

        leaks = identify_funnel_leaks(funnel, conf.level, track, self.thresholds)
        narrative = build_narrative(funnel, conf.level, metrics, self.thresholds)
        logger.info("founder report track=%s confidence=%s leaks=%d", track, conf.level, len(leaks))
        return {
            "track": track,
            "funnel": asdict(funnel),
            "confidence": asdict(conf),
            "metrics": asdict(metrics),
            "momentum": {
                "nda_signed": track_momentum(metrics.nda_signed),
                "enquiries": track_momentum(metrics.enquiries),
                "paid_users": track_momentum(metrics.paid_users),
            },
            "leaks": [asdict(leak) for leak in leaks],
            "narrative": asdict(narrative),
        }

    async def baseline(self, track: TrackFilter = "all") -> StrategyBaseline:
        """Last-30-day counts the simulator projects from."""
        funnel = await self.funnel("30d", track)
        metrics = await self.metrics(track)
        views = funnel.step("listing_viewed")
        return StrategyBaseline(
            listing_views=views.count if views else 0,
            registrations=metrics.registrations.value_30d or 0,
            nda_signed=metrics.nda_signed.value_30d or 0,
            enquiries=metrics.enquiries.value_30d or 0,
            deal_rooms=metrics.deal_rooms_active.value_30d or 0,
            paid_users=metrics.paid_users.value_30d or 0,
            # Zero MRR is treated as unknown
            mrr=metrics.mrr.value_30d or None,
        )

    async def strategy(self, inputs: StrategyInputs,
                       baseline: Optional[StrategyBaseline] = None) -> StrategyOutputs:
        baseline = baseline or await self.baseline(inputs.track)
        return simulate_strategy(inputs, baseline)
