from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional

Track = Literal["operational", "digital"]
TrackFilter = Literal["all", "operational", "digital"]
ConfidenceLabel = Literal["Low", "Medium", "High"]
ConfidenceLevel = Literal["high", "medium", "low"]
ReadinessTier = Literal["not_ready", "nearly_ready", "deal_ready"]
Period = Literal["7d", "30d"]

# ----- Inputs (raw values; the engine coerces) -----

def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    # Front-end payloads use camelCase, API payloads snake_case
    for k in keys:
        if k in data:
            return data[k]
    return default

def _flags(value: Any) -> list[str]:
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return []

@dataclass
class OperationalInput:
    category: Optional[str] = None
    location: Optional[str] = None
    revenue: Any = None
    gross_margin: Any = None      # percent, 0-100
    opex: Any = None
    addbacks: Any = None
    inventory_included: Any = False
    inventory_amount: Any = None
    real_estate_included: Any = False
    real_estate_noi: Any = None
    real_estate_cap_rate: Any = None  # percent
    risk_flags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "OperationalInput":
        d = data if isinstance(data, Mapping) else {}
        return cls(
            category=_pick(d, "category"),
            location=_pick(d, "location", "city"),
            revenue=_pick(d, "revenue"),
            gross_margin=_pick(d, "gross_margin", "grossMargin", "gross_margin_pct"),
            opex=_pick(d, "opex"),
            addbacks=_pick(d, "addbacks"),
            inventory_included=_pick(d, "inventory_included", "inventoryIncluded", default=False),
            inventory_amount=_pick(d, "inventory_amount", "inventoryAmount"),
            real_estate_included=_pick(d, "real_estate_included", "realEstateIncluded", default=False),
            real_estate_noi=_pick(d, "real_estate_noi", "realEstateNOI", "noi"),
            real_estate_cap_rate=_pick(d, "real_estate_cap_rate", "realEstateCap", "cap_rate_pct"),
            risk_flags=_flags(_pick(d, "risk_flags", "riskFlags")),
        )

@dataclass
class DigitalInput:
    model: Optional[str] = None
    revenue: Any = None
    profit: Any = None
    revenue_trend: Optional[str] = None
    recurring: Any = None         # percent of revenue
    concentration: Any = None     # percent from top customer(s)
    traffic: Optional[str] = None
    platform_risk: Optional[str] = None
    risk_flags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "DigitalInput":
        d = data if isinstance(data, Mapping) else {}
        return cls(
            model=_pick(d, "model", "business_model", "businessModel"),
            revenue=_pick(d, "revenue"),
            profit=_pick(d, "profit"),
            revenue_trend=_pick(d, "revenue_trend", "revenueTrend"),
            recurring=_pick(d, "recurring", "recurring_pct", "recurringPct"),
            concentration=_pick(d, "concentration", "concentration_pct", "concentrationPct"),
            traffic=_pick(d, "traffic"),
            platform_risk=_pick(d, "platform_risk", "platformRisk"),
            risk_flags=_flags(_pick(d, "risk_flags", "riskFlags")),
        )

# ----- Scoring results -----

@dataclass
class ValuationResult:
    low: int
    base: int
    high: int
    multiple_low: float
    multiple_high: float
    confidence: ConfidenceLabel
    drivers: list[str]
    risks: list[str]

@dataclass
class ReadinessResult:
    score: int
    tier: ReadinessTier
    missing: list[str]
    strengths: list[str]

@dataclass
class PillarReadiness:
    score: int                # 0-100 over all four pillars
    profile: int              # each pillar as % of its own maximum
    financial: int
    risk: int
    intent: int
    message: str

# ----- Funnel / confidence -----

@dataclass
class FunnelStep:
    step: str
    label: str
    count: int
    conversion_rate: int      # % of previous step
    drop_off: int
    drop_off_rate: int
    sample_size: int          # denominator (previous step count)
    is_low_volume: bool

@dataclass
class FunnelData:
    steps: list[FunnelStep]
    period: Period = "30d"
    is_estimated: bool = False

    def step(self, name: str) -> Optional[FunnelStep]:
        return next((s for s in self.steps if s.step == name), None)

@dataclass
class EventCoverage:
    coverage_days: int = 0
    sessions: int = 0
    events: int = 0

@dataclass
class ConfidenceSummary:
    level: ConfidenceLevel
    score: int
    coverage_days: int
    sessions_30d: int
    events_30d: int
    estimated_metrics: int
    low_volume_warnings: int
    notes: list[str]

# ----- KPIs -----

@dataclass
class KpiMetric:
    label: str
    value_7d: Optional[float] = 0
    value_30d: Optional[float] = 0
    delta: Optional[float] = None
    delta_percent: Optional[int] = None
    is_estimated: bool = False

@dataclass
class FounderMetrics:
    visitors: KpiMetric
    registrations: KpiMetric
    paid_users: KpiMetric
    mrr: KpiMetric
    nda_signed: KpiMetric
    enquiries: KpiMetric
    deal_rooms_active: KpiMetric

# ----- Report narrative -----

@dataclass
class FunnelLeak:
    track: TrackFilter
    step: str
    drop_pct: int
    likely_causes: list[str]
    is_low_volume: bool

@dataclass
class Narrative:
    momentum: str
    constraint: str
    next_action: str

# ----- Strategy simulator -----

@dataclass
class StrategyInputs:
    track: TrackFilter = "all"
    listings_increase_pct: float = 0
    nda_conversion_uplift_pts: float = 0
    paid_conversion_uplift_pts: float = 0
    partner_lead_increase_pct: float = 0

@dataclass
class StrategyBaseline:
    listing_views: float = 0
    registrations: float = 0
    nda_signed: float = 0
    enquiries: float = 0
    deal_rooms: float = 0
    paid_users: float = 0
    mrr: Optional[float] = None

@dataclass
class Band:
    low: int
    base: int
    high: int

@dataclass
class RevenueImpact:
    low: Optional[float] = None
    base: Optional[float] = None
    high: Optional[float] = None
    note: Optional[str] = None

@dataclass
class StrategyOutputs:
    additional_nda_signed: Band
    additional_enquiries: Band
    additional_deal_rooms: Band
    additional_paid_users: Band
    revenue_impact: RevenueImpact
    recommended_focus: list[str]
