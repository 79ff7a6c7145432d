from typing import Optional

from ..core.utils import js_round
from .models import FounderMetrics, KpiMetric

def calculate_delta(current: float, previous: float) -> tuple[float, int]:
    """Absolute and percent change; percent is 100 when growing from nothing."""
    delta = current - previous
    if previous > 0:
        pct = js_round(delta / previous * 100)
    else:
        pct = 100 if current > 0 else 0
    return delta, pct

def kpi(label: str, value_7d: float, value_30d: float, previous_30d: float, is_estimated: bool = False) -> KpiMetric:
    delta, pct = calculate_delta(value_30d, previous_30d)
    return KpiMetric(
        label=label,
        value_7d=value_7d,
        value_30d=value_30d,
        delta=delta,
        delta_percent=pct,
        is_estimated=is_estimated,
    )

def estimate_mrr(paid_users: float, per_user: float) -> float:
    # Placeholder until subscription amounts are tracked: paid users x flat price
    return paid_users * per_user

def count_estimated_metrics(m: FounderMetrics) -> int:
    n = 0
    if m.visitors.value_30d is None or m.visitors.is_estimated:
        n += 1
    if m.registrations.value_30d is None:
        n += 1
    if m.paid_users.value_30d is None:
        n += 1
    if m.mrr.value_30d is None or m.mrr.is_estimated:
        n += 1
    if m.nda_signed.value_30d is None:
        n += 1
    if m.enquiries.value_30d is None:
        n += 1
    if m.deal_rooms_active.value_30d is None:
        n += 1
    return n

def track_momentum(metric: Optional[KpiMetric]) -> str:
    if metric is None or metric.delta_percent is None:
        return "insufficient_data"
    if metric.delta_percent > 10:
        return "growing"
    if metric.delta_percent < -10:
        return "declining"
    return "stable"
