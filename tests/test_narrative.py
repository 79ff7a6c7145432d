"""Report language follows data confidence."""

from __future__ import annotations

import pytest

from bizvalue.engine.funnel import build_funnel
from bizvalue.engine.kpis import kpi
from bizvalue.engine.models import FounderMetrics, KpiMetric
from bizvalue.engine.narrative import (
    NarrativeThresholds,
    build_narrative,
    describe_constraint,
    describe_momentum,
    identify_funnel_leaks,
    recommend_next_action,
)

CRITICAL = "Critical UX issue requiring immediate attention"
EARLY = "Early signal: No conversions observed yet (low volume)"
EMERGING = "Emerging pattern: Significant drop-off observed"


def founder_metrics(**overrides: KpiMetric) -> FounderMetrics:
    """Healthy 30d numbers; override single KPIs per test."""
    values = {
        "visitors": kpi("Visitors", 300, 1000, 900),
        "registrations": kpi("Registrations", 20, 80, 70),
        "paid_users": kpi("Paid Users", 1, 4, 3),
        "mrr": kpi("MRR", 50, 200, 150, is_estimated=True),
        "nda_signed": kpi("NDAs Signed", 5, 20, 19),
        "enquiries": kpi("Enquiries", 2, 8, 8),
        "deal_rooms_active": kpi("Active Deal Rooms", 1, 3, 3),
    }
    values.update(overrides)
    return FounderMetrics(**values)


def unknown(label: str) -> KpiMetric:
    return KpiMetric(label=label, value_7d=None, value_30d=None)


@pytest.fixture
def leaky_funnel():
    return build_funnel({
        "visitor": 1000,
        "registered": 50,           # 95% drop
        "listing_viewed": 100,
        "nda_requested": 20,        # 80% drop
        "nda_signed": 15,           # 25% drop
        "enquiry_sent": 5,          # 67% drop
        "deal_room_created": 1,     # 80% drop, low volume
        "message_sent": 1,
    })


def test_top_three_leaks_at_high_confidence(leaky_funnel) -> None:
    leaks = identify_funnel_leaks(leaky_funnel, "high", track="digital")

    assert [(leak.step, leak.drop_pct) for leak in leaks] == [
        ("Registered", 95),
        ("NDA Requested", 80),
        ("Deal Room Created", 80),
    ]
    assert all(leak.track == "digital" for leak in leaks)
    assert leaks[0].likely_causes[-1] == CRITICAL
    # Low-volume step never gets the definitive wording
    assert leaks[2].is_low_volume is True
    assert leaks[2].likely_causes[-1] == EARLY


def test_low_confidence_softens_every_leak(leaky_funnel) -> None:
    leaks = identify_funnel_leaks(leaky_funnel, "low")

    assert all(CRITICAL not in leak.likely_causes for leak in leaks)
    assert leaks[0].likely_causes[-1] == EARLY


def test_medium_confidence_wording(leaky_funnel) -> None:
    leaks = identify_funnel_leaks(leaky_funnel, "medium")
    assert leaks[0].likely_causes == [
        "Signup friction (form length, required fields)",
        "Trust signals missing (testimonials, security badges)",
        EMERGING,
    ]


def test_threshold_depends_on_confidence() -> None:
    funnel = build_funnel({
        "visitor": 1000, "registered": 550, "listing_viewed": 500, "nda_requested": 450,
        "nda_signed": 400, "enquiry_sent": 350, "deal_room_created": 300, "message_sent": 250,
    })  # only registered drops 45%

    assert [leak.step for leak in identify_funnel_leaks(funnel, "high")] == ["Registered"]
    assert [leak.step for leak in identify_funnel_leaks(funnel, "medium")] == ["Registered"]
    assert identify_funnel_leaks(funnel, "low") == []


def test_thresholds_are_tunable(leaky_funnel) -> None:
    strict = NarrativeThresholds(leak_high=90)
    assert [leak.step for leak in identify_funnel_leaks(leaky_funnel, "high", thresholds=strict)] == ["Registered"]


def test_constraint_and_next_action(leaky_funnel) -> None:
    assert describe_constraint(leaky_funnel, "high") == "Registered is the primary constraint (95% drop-off)"
    assert describe_constraint(leaky_funnel, "low") == "Early signal: Registered shows 95% drop-off (low volume, verify)"
    assert recommend_next_action(leaky_funnel) == "Address Registered funnel leak (95% drop-off)"


def test_empty_funnel_has_no_claims() -> None:
    funnel = build_funnel({})

    assert identify_funnel_leaks(funnel, "high") == []
    assert describe_constraint(funnel, "high") == "Insufficient data to identify constraints"
    assert recommend_next_action(funnel) == "Insufficient data to recommend actions"


@pytest.fixture
def flat_funnel():
    # Worst step drops 20%, under every constraint and next-action cut-off
    return build_funnel({
        "visitor": 1000, "registered": 800, "listing_viewed": 700, "nda_requested": 600,
        "nda_signed": 500, "enquiry_sent": 400, "deal_room_created": 320, "message_sent": 300,
    })


# ---------------------------------------------------------------------------
# Momentum
# ---------------------------------------------------------------------------

def test_nda_momentum_sentences() -> None:
    def say(nda: KpiMetric) -> str:
        return describe_momentum(founder_metrics(nda_signed=nda))

    assert say(kpi("NDAs Signed", 5, 30, 20)) == "NDA signings growing 50% (30 in 30d)"
    assert say(kpi("NDAs Signed", 2, 10, 20)) == "NDA signings declining 50% (10 in 30d)"
    assert say(kpi("NDAs Signed", 5, 20, 19)) == "NDA signings stable at 20 (30d)"
    assert say(kpi("NDAs Signed", 0, 0, 0)) == "Insufficient data to assess momentum"
    assert describe_momentum(None) == "Insufficient data to assess momentum"


def test_registration_momentum_when_ndas_unknown() -> None:
    growing = founder_metrics(nda_signed=unknown("NDAs Signed"), registrations=kpi("Registrations", 20, 80, 50))
    flat = founder_metrics(nda_signed=unknown("NDAs Signed"), registrations=kpi("Registrations", 20, 80, 78))
    none = founder_metrics(nda_signed=unknown("NDAs Signed"), registrations=kpi("Registrations", 0, 0, 0))

    assert describe_momentum(growing) == "Registrations growing 60% (80 in 30d)"
    assert describe_momentum(flat) == "80 registrations (30d)"
    assert describe_momentum(none) == "Insufficient data to assess momentum"


def test_known_but_quiet_ndas_do_not_fall_back_to_registrations() -> None:
    metrics = founder_metrics(nda_signed=kpi("NDAs Signed", 0, 0, 0), registrations=kpi("Registrations", 20, 80, 50))
    assert describe_momentum(metrics) == "Insufficient data to assess momentum"


# ---------------------------------------------------------------------------
# Constraint / next action fallbacks
# ---------------------------------------------------------------------------

def test_zero_registrations_constraint(flat_funnel) -> None:
    metrics = founder_metrics(registrations=kpi("Registrations", 0, 0, 10))
    assert describe_constraint(flat_funnel, "high", metrics) == "Zero registrations - signup funnel needs immediate attention"


def test_no_revenue_constraint(flat_funnel) -> None:
    assert describe_constraint(flat_funnel, "high", founder_metrics(mrr=kpi("MRR", 0, 0, 0))) == \
        "Revenue conversion not yet established"
    assert describe_constraint(flat_funnel, "high", founder_metrics(mrr=unknown("MRR"))) == \
        "Revenue conversion not yet established"
    assert describe_constraint(flat_funnel, "high", founder_metrics()) == "Insufficient data to identify constraints"


def test_paid_conversion_next_action(flat_funnel) -> None:
    metrics = founder_metrics(paid_users=kpi("Paid Users", 0, 0, 0))
    assert recommend_next_action(flat_funnel, metrics) == "Activate paid conversion funnel (0 paid users from registrations)"


def test_nda_to_enquiry_next_action(flat_funnel) -> None:
    metrics = founder_metrics(enquiries=kpi("Enquiries", 0, 0, 3))
    assert recommend_next_action(flat_funnel, metrics) == "Improve NDA-to-enquiry conversion (0 enquiries from signed NDAs)"


def test_registration_next_action(flat_funnel) -> None:
    metrics = founder_metrics(registrations=kpi("Registrations", 0, 0, 0), nda_signed=kpi("NDAs Signed", 0, 0, 0))
    assert recommend_next_action(flat_funnel, metrics) == "Fix registration funnel (0 registrations from visitors)"


def test_leak_outranks_metric_fallbacks(leaky_funnel) -> None:
    metrics = founder_metrics(registrations=kpi("Registrations", 0, 0, 0), paid_users=kpi("Paid Users", 0, 0, 0))
    assert describe_constraint(leaky_funnel, "high", metrics) == "Registered is the primary constraint (95% drop-off)"
    assert recommend_next_action(leaky_funnel, metrics) == "Address Registered funnel leak (95% drop-off)"


def test_healthy_metrics_leave_no_action(flat_funnel) -> None:
    assert recommend_next_action(flat_funnel, founder_metrics()) == "Insufficient data to recommend actions"


def test_build_narrative(leaky_funnel) -> None:
    narrative = build_narrative(leaky_funnel, "medium", founder_metrics(nda_signed=kpi("NDAs Signed", 5, 30, 20)))

    assert narrative.momentum.startswith("NDA signings growing")
    assert narrative.constraint == "Registered is the primary constraint (95% drop-off)"
    assert narrative.next_action == "Address Registered funnel leak (95% drop-off)"
