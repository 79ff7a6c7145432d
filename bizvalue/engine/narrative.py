"""
Confidence-aware report language.

The same drop-off percentage is worded differently depending on how much the
data can be trusted: low confidence (or a low-volume step) reads as an early
signal to verify, medium as an emerging pattern, and only high confidence gets
a definitive "critical" statement.
"""
from dataclasses import dataclass
from typing import Optional

from .models import FounderMetrics, FunnelData, FunnelLeak, FunnelStep, KpiMetric, Narrative

@dataclass
class NarrativeThresholds:
    # Provisional cut-offs; tune through settings, not code
    leak_low: int = 50
    leak_medium: int = 40
    leak_high: int = 30
    severe_drop_off: int = 70
    constraint_min: int = 30
    next_action_min: int = 50

    def leak_threshold(self, level: str) -> int:
        if level == "low":
            return self.leak_low
        if level == "medium":
            return self.leak_medium
        return self.leak_high

DEFAULT_THRESHOLDS = NarrativeThresholds()

_STEP_CAUSES: dict[str, list[str]] = {
    "registered": [
        "Signup friction (form length, required fields)",
        "Trust signals missing (testimonials, security badges)",
    ],
    "listing_viewed": [
        "Low listing quality (incomplete data, poor images)",
        "Search/discovery issues",
    ],
    "nda_requested": ["NDA process complexity", "Legal concerns or trust issues"],
    "nda_signed": ["NDA process complexity", "Legal concerns or trust issues"],
    "enquiry_sent": [
        "Listing information gaps",
        "Buyer hesitation (pricing, terms unclear)",
    ],
    "deal_room_created": ["Deal room onboarding friction", "Technical barriers"],
}

def severity_line(level: str, is_low_volume: bool) -> str:
    if is_low_volume or level == "low":
        return "Early signal: No conversions observed yet (low volume)"
    if level == "medium":
        return "Emerging pattern: Significant drop-off observed"
    return "Critical UX issue requiring immediate attention"

def likely_causes(
    step: str,
    drop_pct: int,
    is_low_volume: bool,
    level: str,
    thresholds: NarrativeThresholds = DEFAULT_THRESHOLDS,
) -> list[str]:
    causes = list(_STEP_CAUSES.get(step, []))
    if drop_pct >= thresholds.severe_drop_off:
        causes.append(severity_line(level, is_low_volume))
    return causes

def identify_funnel_leaks(
    funnel: FunnelData,
    level: str,
    track: str = "all",
    thresholds: NarrativeThresholds = DEFAULT_THRESHOLDS,
) -> list[FunnelLeak]:
    """Top three steps whose drop-off clears the confidence-dependent threshold."""
    threshold = thresholds.leak_threshold(level)
    leaks = [
        FunnelLeak(
            track=track,
            step=s.label,
            drop_pct=s.drop_off_rate,
            likely_causes=likely_causes(s.step, s.drop_off_rate, s.is_low_volume, level, thresholds),
            is_low_volume=s.is_low_volume,
        )
        for s in funnel.steps[1:]
        if s.drop_off_rate >= threshold
    ]
    leaks.sort(key=lambda leak: leak.drop_pct, reverse=True)
    return leaks[:3]

def worst_step(funnel: FunnelData) -> Optional[FunnelStep]:
    worst = None
    for s in funnel.steps:
        if s.step == "visitor":
            continue
        if worst is None or s.drop_off_rate > worst.drop_off_rate:
            worst = s
    return worst

def _value(metric: Optional[KpiMetric]) -> Optional[float]:
    return None if metric is None else metric.value_30d

def describe_constraint(
    funnel: FunnelData,
    level: str,
    metrics: Optional[FounderMetrics] = None,
    thresholds: NarrativeThresholds = DEFAULT_THRESHOLDS,
) -> str:
    if not funnel.steps:
        return "Insufficient data to identify constraints"
    worst = worst_step(funnel)
    if worst is not None and worst.drop_off_rate >= thresholds.constraint_min:
        if level == "low":
            return f"Early signal: {worst.label} shows {worst.drop_off_rate}% drop-off (low volume, verify)"
        return f"{worst.label} is the primary constraint ({worst.drop_off_rate}% drop-off)"
    if metrics is None:
        return "Insufficient data to identify constraints"
    if _value(metrics.registrations) == 0:
        return "Zero registrations - signup funnel needs immediate attention"
    if not _value(metrics.mrr):
        return "Revenue conversion not yet established"
    return "Insufficient data to identify constraints"

def recommend_next_action(
    funnel: FunnelData,
    metrics: Optional[FounderMetrics] = None,
    thresholds: NarrativeThresholds = DEFAULT_THRESHOLDS,
) -> str:
    if not funnel.steps:
        return "Insufficient data to recommend actions"
    worst = worst_step(funnel)
    if worst is not None and worst.drop_off_rate >= thresholds.next_action_min:
        return f"Address {worst.label} funnel leak ({worst.drop_off_rate}% drop-off)"
    if metrics is None:
        return "Insufficient data to recommend actions"

    registrations = _value(metrics.registrations)
    ndas = _value(metrics.nda_signed)
    visitors = _value(metrics.visitors)
    if registrations is not None and registrations > 0 and _value(metrics.paid_users) == 0:
        return "Activate paid conversion funnel (0 paid users from registrations)"
    if ndas is not None and ndas > 0 and _value(metrics.enquiries) == 0:
        return "Improve NDA-to-enquiry conversion (0 enquiries from signed NDAs)"
    if visitors is not None and visitors > 0 and registrations == 0:
        return "Fix registration funnel (0 registrations from visitors)"
    return "Insufficient data to recommend actions"

def describe_momentum(metrics: Optional[FounderMetrics]) -> str:
    """NDA signings lead; registrations speak only when NDA data is missing."""
    if metrics is None:
        return "Insufficient data to assess momentum"
    nda, reg = metrics.nda_signed, metrics.registrations
    if nda.value_30d is not None and nda.delta_percent is not None:
        value = int(nda.value_30d)
        if nda.delta_percent > 10:
            return f"NDA signings growing {nda.delta_percent}% ({value} in 30d)"
        if nda.delta_percent < -10:
            return f"NDA signings declining {abs(nda.delta_percent)}% ({value} in 30d)"
        if value > 0:
            return f"NDA signings stable at {value} (30d)"
    elif reg.value_30d is not None and reg.delta_percent is not None:
        value = int(reg.value_30d)
        if reg.delta_percent > 10:
            return f"Registrations growing {reg.delta_percent}% ({value} in 30d)"
        if value > 0:
            return f"{value} registrations (30d)"
    return "Insufficient data to assess momentum"

def build_narrative(
    funnel: FunnelData,
    level: str,
    metrics: Optional[FounderMetrics] = None,
    thresholds: NarrativeThresholds = DEFAULT_THRESHOLDS,
) -> Narrative:
    return Narrative(
        momentum=describe_momentum(metrics),
        constraint=describe_constraint(funnel, level, metrics, thresholds),
        next_action=recommend_next_action(funnel, metrics, thresholds),
    )
