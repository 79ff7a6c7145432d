"""Data confidence score and KPI helpers."""

from __future__ import annotations

import pytest

from bizvalue.engine.confidence import NOT_CONFIGURED_NOTE, compute_confidence, confidence_level
from bizvalue.engine.kpis import calculate_delta, count_estimated_metrics, estimate_mrr, kpi, track_momentum
from bizvalue.engine.models import KpiMetric
from bizvalue.services.founder_service import unknown_metrics


def test_no_events_means_zero_confidence() -> None:
    summary = compute_confidence(0, 0, estimated_metrics=2, low_volume_warnings=8, events_30d=0)

    assert summary.score == 0
    assert summary.level == "low"
    assert summary.notes == [NOT_CONFIGURED_NOTE]


def test_full_coverage_is_high() -> None:
    summary = compute_confidence(30, 500, 0, 0, 5000)

    assert summary.score == 100
    assert summary.level == "high"
    assert summary.notes == ["Coverage: 30/30 days", "Sessions (30d): 500", "Total events (30d): 5,000"]


def test_penalties_stack_and_clamp() -> None:
    summary = compute_confidence(5, 50, 6, 4, 120)

    assert summary.score == 0
    assert summary.level == "low"
    assert summary.notes == [
        "Coverage: 5/30 days",
        "Sessions (30d): 50",
        "Estimated metrics: 6",
        "Low-volume funnel warnings: 4",
        "Total events (30d): 120",
    ]


def test_thin_coverage_is_medium() -> None:
    summary = compute_confidence(10, 200, 0, 0, 900)
    assert summary.score == 60
    assert summary.level == "medium"


def test_level_boundary_at_seventy_five() -> None:
    summary = compute_confidence(30, 1200, 3, 2, 4000)
    assert summary.score == 75
    assert summary.level == "high"
    assert "Sessions (30d): 1,200" in summary.notes


@pytest.mark.parametrize(("score", "level"), [(100, "high"), (75, "high"), (74, "medium"), (45, "medium"), (44, "low"), (0, "low")])
def test_confidence_level(score: int, level: str) -> None:
    assert confidence_level(score) == level


# ---------------------------------------------------------------------------
# KPIs
# ---------------------------------------------------------------------------

def test_calculate_delta() -> None:
    assert calculate_delta(120, 100) == (20, 20)
    assert calculate_delta(80, 100) == (-20, -20)
    assert calculate_delta(5, 0) == (5, 100)
    assert calculate_delta(0, 0) == (0, 0)


def test_estimate_mrr_uses_flat_price() -> None:
    assert estimate_mrr(12, 50) == 600


def test_unknown_metrics_all_count_as_estimated() -> None:
    assert count_estimated_metrics(unknown_metrics()) == 7


def test_estimated_flags_are_counted() -> None:
    metrics = unknown_metrics()
    for name in ("registrations", "paid_users", "nda_signed", "enquiries", "deal_rooms_active"):
        setattr(metrics, name, kpi(name, 1, 4, 2))
    metrics.visitors = kpi("Visitors", 10, 40, 20, is_estimated=True)
    metrics.mrr = kpi("MRR", 50, 200, 100, is_estimated=True)

    assert count_estimated_metrics(metrics) == 2


def test_track_momentum() -> None:
    assert track_momentum(kpi("x", 0, 12, 10)) == "growing"
    assert track_momentum(kpi("x", 0, 8, 10)) == "declining"
    assert track_momentum(kpi("x", 0, 10, 10)) == "stable"
    assert track_momentum(KpiMetric(label="x", delta_percent=None)) == "insufficient_data"
    assert track_momentum(None) == "insufficient_data"
