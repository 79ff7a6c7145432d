"""Strategy simulator projections."""

from __future__ import annotations

import sys

import pytest

from bizvalue.engine.models import StrategyBaseline, StrategyInputs
from bizvalue.engine.strategy import simulate_strategy


@pytest.fixture
def baseline() -> StrategyBaseline:
    return StrategyBaseline(
        listing_views=1000,
        registrations=200,
        nda_signed=100,
        enquiries=50,
        deal_rooms=10,
        paid_users=20,
        mrr=1000,
    )


def test_no_levers_projects_nothing(baseline: StrategyBaseline) -> None:
    out = simulate_strategy(StrategyInputs(), baseline)

    assert (out.additional_nda_signed.low, out.additional_nda_signed.base, out.additional_nda_signed.high) == (0, 0, 0)
    assert out.additional_paid_users.base == 0
    assert out.recommended_focus == ["Adjust strategy inputs to see impact projections"]


def test_nda_uplift(baseline: StrategyBaseline) -> None:
    out = simulate_strategy(StrategyInputs(nda_conversion_uplift_pts=5), baseline)

    nda = out.additional_nda_signed
    assert (nda.low, nda.base, nda.high) == (40, 50, 60)
    # enquiries follow at the 50% NDA -> enquiry rate, deal rooms at 20%
    assert out.additional_enquiries.base == 25
    assert out.additional_deal_rooms.base == 5
    assert out.recommended_focus == [
        "Focus: Improve NDA conversion (+5 percentage points)",
        "Expected impact: +50 NDAs signed",
    ]


def test_paid_uplift_with_revenue(baseline: StrategyBaseline) -> None:
    out = simulate_strategy(StrategyInputs(paid_conversion_uplift_pts=5), baseline)

    paid = out.additional_paid_users
    assert (paid.low, paid.base, paid.high) == (8, 10, 12)
    assert out.revenue_impact.base == pytest.approx(500)
    assert out.revenue_impact.low == pytest.approx(400)
    assert out.revenue_impact.note is None
    assert out.recommended_focus == [
        "Focus: Increase paid conversion (+5 percentage points)",
        "Expected impact: +10 paid users",
        "Revenue impact: $500/month",
    ]


def test_unknown_mrr_has_note(baseline: StrategyBaseline) -> None:
    baseline.mrr = None
    out = simulate_strategy(StrategyInputs(paid_conversion_uplift_pts=5), baseline)

    assert out.revenue_impact.base is None
    assert out.revenue_impact.note == "Insufficient data for MRR calculation"
    assert len(out.recommended_focus) == 2


def test_secondary_lever_listed(baseline: StrategyBaseline) -> None:
    out = simulate_strategy(StrategyInputs(track="digital", listings_increase_pct=50, partner_lead_increase_pct=20), baseline)

    # 1000 * 50% * 0.4 = 200 extra views at a 10% NDA rate
    assert out.additional_nda_signed.base == 20
    assert out.recommended_focus[0] == "Focus: Increase digital supply (50% increase)"
    assert out.recommended_focus[-1].startswith("Secondary: Increase partner leads")


def test_empty_baseline_never_goes_negative() -> None:
    out = simulate_strategy(
        StrategyInputs(listings_increase_pct=10, nda_conversion_uplift_pts=2,
                       paid_conversion_uplift_pts=3, partner_lead_increase_pct=10),
        StrategyBaseline(),
    )
    for band in (out.additional_nda_signed, out.additional_enquiries,
                 out.additional_deal_rooms, out.additional_paid_users):
        assert band.low >= 0 and band.base >= 0 and band.high >= 0


def test_revenue_impact_keeps_cents(baseline: StrategyBaseline) -> None:
    baseline.mrr = 1001
    out = simulate_strategy(StrategyInputs(paid_conversion_uplift_pts=5), baseline)

    # 10 extra paid users at $50.05 each
    assert out.recommended_focus[-1] == "Revenue impact: $500.5/month"


def test_overflowing_baseline_saturates() -> None:
    huge = StrategyBaseline(listing_views=1e308, registrations=1e308, nda_signed=0,
                            enquiries=1e308, deal_rooms=1e308, paid_users=1, mrr=1e308)
    out = simulate_strategy(
        StrategyInputs(listings_increase_pct=1e6, nda_conversion_uplift_pts=5,
                       paid_conversion_uplift_pts=50, partner_lead_increase_pct=1e6),
        huge,
    )

    for band in (out.additional_nda_signed, out.additional_enquiries,
                 out.additional_deal_rooms, out.additional_paid_users):
        assert 0 <= band.low <= band.base <= band.high
    assert out.additional_nda_signed.base == int(sys.float_info.max)
    assert out.revenue_impact.high <= sys.float_info.max
    assert out.recommended_focus[0].startswith("Focus: ")
