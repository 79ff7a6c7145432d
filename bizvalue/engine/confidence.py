from ..core.utils import clamp
from .models import ConfidenceSummary

NOT_CONFIGURED_NOTE = "Event tracking not configured yet"

def confidence_level(score: int) -> str:
    if score >= 75:
        return "high"
    if score >= 45:
        return "medium"
    return "low"

def compute_confidence(
    coverage_days: int,
    sessions_30d: int,
    estimated_metrics: int,
    low_volume_warnings: int,
    events_30d: int,
) -> ConfidenceSummary:
    """
    How much the founder reports can be trusted, 0-100.

    Penalties accumulate for thin tracking coverage, low session volume,
    estimated metrics and low-volume funnel steps. With no events at all the
    score is 0 regardless of the other inputs.
    """
    if events_30d == 0 and coverage_days == 0 and sessions_30d == 0:
        return ConfidenceSummary(
            level="low",
            score=0,
            coverage_days=0,
            sessions_30d=0,
            events_30d=0,
            estimated_metrics=estimated_metrics,
            low_volume_warnings=low_volume_warnings,
            notes=[NOT_CONFIGURED_NOTE],
        )

    score = 100
    if coverage_days < 14:
        score -= 20
    if coverage_days < 7:
        score -= 20
    if sessions_30d < 300:
        score -= 20
    if sessions_30d < 100:
        score -= 20
    if estimated_metrics >= 3:
        score -= 15
    if estimated_metrics >= 6:
        score -= 15
    if low_volume_warnings >= 2:
        score -= 10
    if low_volume_warnings >= 4:
        score -= 10
    score = int(clamp(score, 0, 100))

    notes = [
        f"Coverage: {coverage_days}/30 days",
        f"Sessions (30d): {sessions_30d:,}",
    ]
    if estimated_metrics > 0:
        notes.append(f"Estimated metrics: {estimated_metrics}")
    if low_volume_warnings > 0:
        notes.append(f"Low-volume funnel warnings: {low_volume_warnings}")
    if events_30d > 0:
        notes.append(f"Total events (30d): {events_30d:,}")

    return ConfidenceSummary(
        level=confidence_level(score),
        score=score,
        coverage_days=coverage_days,
        sessions_30d=sessions_30d,
        events_30d=events_30d,
        estimated_metrics=estimated_metrics,
        low_volume_warnings=low_volume_warnings,
        notes=notes[:5],
    )
