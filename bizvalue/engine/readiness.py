"""
Listing readiness: how complete and low-risk a seller's inputs are, 0-100.

Starts at 100 and subtracts fixed penalties. Independent of the valuation
figures; only the order of checks decides the order of the missing/strength
lists, never the score.
"""
from typing import Any, Mapping, Optional

from ..core.utils import clamp, flag_on, is_missing, is_unset, js_round, parse_num, same_choice
from .models import DigitalInput, OperationalInput, PillarReadiness, ReadinessResult, Track

DEAL_READY_AT = 80
NEARLY_READY_AT = 55

def readiness_tier(score: int) -> str:
    if score >= DEAL_READY_AT:
        return "deal_ready"
    if score >= NEARLY_READY_AT:
        return "nearly_ready"
    return "not_ready"

def risk_flag_penalty(count: int) -> int:
    penalty = min(25, count * 5)
    if count > 2:
        penalty += 10
    return penalty

class _Tally:
    def __init__(self):
        self.score = 100
        self.missing: list[str] = []
        self.strengths: list[str] = []

    def penalize(self, points: int, message: str) -> None:
        self.score -= points
        self.missing.append(message)

    def result(self) -> ReadinessResult:
        score = int(clamp(self.score, 0, 100))
        return ReadinessResult(
            score=score,
            tier=readiness_tier(score),
            missing=self.missing[:5],
            strengths=self.strengths[:3],
        )

def operational_readiness(o: OperationalInput) -> ReadinessResult:
    t = _Tally()

    if is_missing(o.revenue):
        t.penalize(25, "Add trailing-12-month revenue.")
    else:
        t.strengths.append("Revenue provided.")

    if is_missing(o.gross_margin):
        t.penalize(10, "Add gross margin %.")
    else:
        t.strengths.append("Gross margin provided.")

    if is_missing(o.opex):
        t.penalize(10, "Provide operating expenses.")
    else:
        t.strengths.append("Operating expenses provided.")

    if is_unset(o.addbacks):
        t.penalize(5, "Add owner add-backs.")

    if is_missing(o.location):
        t.penalize(5, "Add business location.")

    if flag_on(o.real_estate_included) and is_missing(o.real_estate_noi):
        t.penalize(15, "Add NOI for real estate valuation.")

    if flag_on(o.inventory_included) and is_missing(o.inventory_amount):
        t.penalize(10, "Add inventory value.")

    if o.risk_flags:
        t.penalize(risk_flag_penalty(len(o.risk_flags)),
                   "Reduce key risks (lease expiry, concentration, regulatory).")
    else:
        t.strengths.append("Low risk profile.")

    # Stacks with the individual field penalties above
    if is_missing(o.gross_margin) or is_missing(o.opex) or is_unset(o.addbacks):
        t.penalize(25, "Provide gross margin, opex, and add-backs to normalize SDE.")
    else:
        t.strengths.append("Complete financial inputs provided.")

    return t.result()

def digital_readiness(d: DigitalInput) -> ReadinessResult:
    t = _Tally()

    if is_missing(d.revenue):
        t.penalize(25, "Add trailing-12-month revenue.")
    else:
        t.strengths.append("Revenue provided.")

    if is_missing(d.profit):
        t.penalize(25, "Add profit/SDE.")
    else:
        t.strengths.append("Profit/SDE provided.")

    if is_missing(d.revenue_trend):
        t.penalize(5, "Add revenue trend.")

    if same_choice(d.model, "SaaS") and is_missing(d.recurring):
        t.penalize(10, "Add recurring revenue %.")

    if is_missing(d.concentration):
        t.penalize(10, "Add customer concentration.")

    if same_choice(d.platform_risk, "High"):
        t.penalize(10, "Reduce platform risk.")

    if d.risk_flags:
        t.penalize(risk_flag_penalty(len(d.risk_flags)),
                   "Reduce key risks (platform dependency, churn, concentration).")
    else:
        t.strengths.append("Low risk profile.")

    if not is_missing(d.recurring) and parse_num(d.recurring) > 60:
        t.strengths.append("Recurring revenue is strong.")
    if not is_missing(d.concentration) and parse_num(d.concentration) < 30:
        t.strengths.append("Low customer concentration.")
    if same_choice(d.traffic, "Organic"):
        t.strengths.append("Organic traffic.")
    if same_choice(d.platform_risk, "Low"):
        t.strengths.append("Low platform risk.")
    if same_choice(d.revenue_trend, "Growing"):
        t.strengths.append("Growing revenue.")
    if parse_num(d.profit) > 100_000:
        t.strengths.append("Strong profit.")
    if not is_missing(d.revenue) and not is_missing(d.profit):
        t.strengths.append("Complete financial inputs provided.")

    return t.result()

def score_readiness(track: Track, data: Any) -> ReadinessResult:
    if track == "digital":
        if not isinstance(data, DigitalInput):
            data = DigitalInput.from_dict(data)
        return digital_readiness(data)
    if not isinstance(data, OperationalInput):
        data = OperationalInput.from_dict(data)
    return operational_readiness(data)

# --- Wizard pillars ---
#
# A second, completeness-only view used by the wizard's readiness step:
# profile (25), financial clarity (30), risk answers (25) and intent (20).
# Range answers and the matching exact figures count the same.

PROFILE_MAX = 25
FINANCIAL_MAX = 30
RISK_MAX = 25
INTENT_MAX = 20

OPERATIONAL_PROFILE_FIELDS = [
    ("category",),
    ("city", "location"),
    ("country",),
    ("years_in_operation",),
    ("ownership_structure",),
]
DIGITAL_PROFILE_FIELDS = [
    ("business_model", "model"),
    ("primary_market",),
    ("years_live",),
    ("owner_involvement",),
]
OPERATIONAL_RISK_FIELDS = [
    ("property_type",),
    ("lease_status",),
    ("customer_concentration",),
    ("key_person_dependency",),
    ("regulatory_exposure",),
]
DIGITAL_RISK_FIELDS = [
    ("platform_dependency", "platform_risk"),
    ("traffic_concentration",),
    ("churn_awareness",),
    ("operational_maturity",),
]

def _part(step_data: Mapping[str, Any], kind: str) -> Mapping[str, Any]:
    part = step_data.get(kind)
    return part if isinstance(part, Mapping) else {}

def _answered(part: Mapping[str, Any], *keys: str) -> bool:
    return any(not is_missing(part.get(k)) for k in keys)

def _percent(points: int, maximum: int) -> int:
    return js_round(points / maximum * 100)

def readiness_message(score: int) -> str:
    if score >= 80:
        return "Excellent! Your business profile is well-prepared for listing."
    if score >= 60:
        return "Good progress! A few more details will strengthen your listing."
    if score >= 40:
        return "You're on the right track. Consider adding more information to improve visibility."
    return "Getting started! Complete more sections to build a stronger listing profile."

def profile_points(track: Optional[str], profile: Mapping[str, Any]) -> int:
    if track == "operational":
        return 5 * sum(_answered(profile, *keys) for keys in OPERATIONAL_PROFILE_FIELDS)
    if track == "digital":
        points = 5 * sum(_answered(profile, *keys) for keys in DIGITAL_PROFILE_FIELDS)
        # Any three answers at all earn the last five points
        if len(profile) >= 3:
            points += 5
        return points
    return 0

def financial_points(track: Optional[str], fin: Mapping[str, Any]) -> int:
    points = 0
    if _answered(fin, "revenue_range", "revenue"):
        points += 10
    # An earnings answer marked unknown is simply not counted
    if track == "operational" and not flag_on(fin.get("ebitda_unknown")):
        if _answered(fin, "ebitda_range") or (_answered(fin, "gross_margin") and _answered(fin, "opex")):
            points += 10
    if track == "digital" and not flag_on(fin.get("gross_margin_unknown")):
        if _answered(fin, "gross_margin_range", "profit"):
            points += 10
    if _answered(fin, "revenue_trend", "revenue_consistency"):
        points += 5
    if track == "operational" and _answered(fin, "cost_drivers"):
        points += 5
    if track == "digital" and _answered(fin, "growth_rate_range"):
        points += 5
    return points

def risk_points(track: Optional[str], risk: Mapping[str, Any]) -> int:
    if track == "operational":
        fields = OPERATIONAL_RISK_FIELDS
    elif track == "digital":
        fields = DIGITAL_RISK_FIELDS
    else:
        return 0
    return 5 * sum(_answered(risk, *keys) for keys in fields)

def score_pillars(track: Optional[str], step_data: Any) -> PillarReadiness:
    """
    Wizard readiness from how much of each step the seller answered.

    Never raises: a missing or malformed `step_data` scores 0 on every
    pillar, and without a track only the intent pillar can score.
    """
    data = step_data if isinstance(step_data, Mapping) else {}
    profile = profile_points(track, _part(data, "profile"))
    financial = financial_points(track, _part(data, "financials"))
    risk = risk_points(track, _part(data, "risk"))

    intent = 0
    if isinstance(data.get("intent"), str) and data["intent"]:
        intent += 10
    if track in ("operational", "digital"):
        intent += 10

    total = profile + financial + risk + intent
    score = _percent(total, PROFILE_MAX + FINANCIAL_MAX + RISK_MAX + INTENT_MAX)
    return PillarReadiness(
        score=score,
        profile=_percent(profile, PROFILE_MAX),
        financial=_percent(financial, FINANCIAL_MAX),
        risk=_percent(risk, RISK_MAX),
        intent=_percent(intent, INTENT_MAX),
        message=readiness_message(score),
    )
