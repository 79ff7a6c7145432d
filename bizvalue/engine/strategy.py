"""
What-if calculator for founder growth levers.

Explicit arithmetic over last-30-day baseline counts: every projection is a
rate between adjacent funnel stages times an uplift, reported as a low/base/high
band. No fitting, no calibration.
"""
from .models import Band, RevenueImpact, StrategyBaseline, StrategyInputs, StrategyOutputs
from ..core.utils import finite, js_round

# Share of newly added listings that attract views
NEW_LISTING_VIEW_SHARE = 0.4
# Share of extra partner leads that turn into enquiries
PARTNER_LEAD_ENQUIRY_SHARE = 0.3

LEVER_NAMES = {
    "listings": "Increase listings supply",
    "nda_conversion": "Improve NDA conversion",
    "paid_conversion": "Increase paid conversion",
    "partner_leads": "Increase partner leads",
}

def _rate(numerator: float, denominator: float) -> float:
    return numerator / denominator * 100 if denominator > 0 else 0.0

def _band(value: float, spread_low: float, spread_high: float) -> Band:
    return Band(
        low=max(0, js_round(value * spread_low)),
        base=max(0, js_round(value)),
        high=max(0, js_round(value * spread_high)),
    )

def _fmt(n: float) -> str:
    return f"{n:g}"

def _money(n: float) -> str:
    # Grouped, up to three decimals, no trailing zeros ("1,234.5")
    return f"{n:,.3f}".rstrip("0").rstrip(".")

def simulate_strategy(inputs: StrategyInputs, baseline: StrategyBaseline) -> StrategyOutputs:
    nda_rate = _rate(baseline.nda_signed, baseline.listing_views)
    enquiry_rate = _rate(baseline.enquiries, baseline.nda_signed)
    paid_rate = _rate(baseline.paid_users, baseline.registrations)
    deal_room_rate = _rate(baseline.deal_rooms, baseline.enquiries)

    extra_views = baseline.listing_views * (inputs.listings_increase_pct / 100) * NEW_LISTING_VIEW_SHARE

    nda_from_views = extra_views * (nda_rate + inputs.nda_conversion_uplift_pts) / 100
    nda_from_uplift = baseline.listing_views * (inputs.nda_conversion_uplift_pts / 100)
    extra_nda = _band(nda_from_views + nda_from_uplift, 0.8, 1.2)

    enquiries_from_nda = extra_nda.base * enquiry_rate / 100
    partner_boost = baseline.enquiries * (inputs.partner_lead_increase_pct / 100) * PARTNER_LEAD_ENQUIRY_SHARE
    extra_enquiries = _band(enquiries_from_nda + partner_boost, 0.7, 1.3)

    extra_deal_rooms = _band(extra_enquiries.base * deal_room_rate / 100, 0.8, 1.2)

    new_paid_rate = paid_rate + inputs.paid_conversion_uplift_pts
    extra_paid = _band(baseline.registrations * new_paid_rate / 100 - baseline.paid_users, 0.8, 1.2)

    if baseline.mrr is not None and baseline.paid_users > 0:
        per_user = baseline.mrr / baseline.paid_users
        revenue = RevenueImpact(
            low=finite(extra_paid.low * per_user),
            base=finite(extra_paid.base * per_user),
            high=finite(extra_paid.high * per_user),
        )
    else:
        revenue = RevenueImpact(note="Insufficient data for MRR calculation")

    return StrategyOutputs(
        additional_nda_signed=extra_nda,
        additional_enquiries=extra_enquiries,
        additional_deal_rooms=extra_deal_rooms,
        additional_paid_users=extra_paid,
        revenue_impact=revenue,
        recommended_focus=recommended_focus(inputs, extra_nda.base, extra_enquiries.base,
                                            extra_paid.base, revenue.base),
    )

def recommended_focus(
    inputs: StrategyInputs,
    additional_nda: int,
    additional_enquiries: int,
    additional_paid: int,
    revenue_impact: float | None,
) -> list[str]:
    levers = [
        ("listings", inputs.listings_increase_pct, additional_nda),
        ("nda_conversion", inputs.nda_conversion_uplift_pts, additional_nda),
        ("paid_conversion", inputs.paid_conversion_uplift_pts, additional_paid),
        ("partner_leads", inputs.partner_lead_increase_pct, additional_enquiries),
    ]
    active = [lv for lv in levers if lv[1] > 0]
    if not active:
        return ["Adjust strategy inputs to see impact projections"]

    # Stable sort keeps declaration order among ties
    active.sort(key=lambda lv: lv[2], reverse=True)
    top = active[0][0]
    focus: list[str] = []
    if top == "listings":
        supply = "listings" if inputs.track == "all" else inputs.track
        focus.append(f"Focus: Increase {supply} supply ({_fmt(inputs.listings_increase_pct)}% increase)")
        focus.append(f"Expected impact: +{additional_nda} NDAs, +{additional_enquiries} enquiries")
    elif top == "nda_conversion":
        focus.append(f"Focus: Improve NDA conversion (+{_fmt(inputs.nda_conversion_uplift_pts)} percentage points)")
        focus.append(f"Expected impact: +{additional_nda} NDAs signed")
    elif top == "paid_conversion":
        focus.append(f"Focus: Increase paid conversion (+{_fmt(inputs.paid_conversion_uplift_pts)} percentage points)")
        focus.append(f"Expected impact: +{additional_paid} paid users")
        if revenue_impact is not None:
            focus.append(f"Revenue impact: ${_money(revenue_impact)}/month")
    else:
        focus.append(f"Focus: Increase partner lead volume ({_fmt(inputs.partner_lead_increase_pct)}% increase)")
        focus.append(f"Expected impact: +{additional_enquiries} enquiries")

    if len(active) > 1:
        lever, _, impact = active[1]
        if impact > 0:
            focus.append(f"Secondary: {LEVER_NAMES[lever]} (+{impact} impact)")
    return focus
