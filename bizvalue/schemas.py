from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, RootModel

# Raw numeric fields: numbers, "1,200" style strings or blanks; the engine coerces
Num = Union[float, str, None]
YesNo = Union[bool, str]

Track = Literal["operational", "digital"]
TrackFilter = Literal["all", "operational", "digital"]

# ----- Valuation / readiness -----

class OperationalBusiness(BaseModel):
    track: Literal["operational"]
    category: Optional[str] = None
    location: Optional[str] = None
    revenue: Num = None
    gross_margin: Num = Field(default=None, description="Gross margin, percent 0-100")
    opex: Num = None
    addbacks: Num = None
    inventory_included: YesNo = False
    inventory_amount: Num = None
    real_estate_included: YesNo = False
    real_estate_noi: Num = None
    real_estate_cap_rate: Num = Field(default=None, description="Cap rate, percent")
    risk_flags: list[str] = Field(default_factory=list)

class DigitalBusiness(BaseModel):
    track: Literal["digital"]
    model: Optional[str] = None
    revenue: Num = None
    profit: Num = None
    revenue_trend: Optional[str] = None
    recurring: Num = Field(default=None, description="Recurring share of revenue, percent")
    concentration: Num = Field(default=None, description="Revenue share of top customers, percent")
    traffic: Optional[str] = None
    platform_risk: Optional[str] = None
    risk_flags: list[str] = Field(default_factory=list)

class ValuationRequest(RootModel[Annotated[Union[OperationalBusiness, DigitalBusiness], Field(discriminator="track")]]):
    """Body of /valuation and /readiness: one business, picked by `track`."""

class ValuationOut(BaseModel):
    low: int = Field(ge=0)
    base: int = Field(ge=0)
    high: int = Field(ge=0)
    multiple_low: float
    multiple_high: float
    confidence: Literal["Low", "Medium", "High"]
    drivers: list[str]
    risks: list[str]

class ReadinessOut(BaseModel):
    score: int = Field(ge=0, le=100)
    tier: Literal["not_ready", "nearly_ready", "deal_ready"]
    missing: list[str]
    strengths: list[str]

class ValuationResponse(BaseModel):
    track: Track
    valuation: ValuationOut
    readiness: ReadinessOut
    disclaimer: str
    cached: bool = False
    etag: str | None = None

class ReadinessResponse(BaseModel):
    track: Track
    readiness: ReadinessOut

# ----- Founder analytics -----

class FunnelStepOut(BaseModel):
    step: str
    label: str
    count: int
    conversion_rate: int
    drop_off: int
    drop_off_rate: int
    sample_size: int
    is_low_volume: bool

class FunnelResponse(BaseModel):
    track: TrackFilter = "all"
    period: Literal["7d", "30d"]
    is_estimated: bool
    low_volume_warnings: int = 0
    steps: list[FunnelStepOut]

class ConfidenceResponse(BaseModel):
    level: Literal["high", "medium", "low"]
    score: int = Field(ge=0, le=100)
    coverage_days: int
    sessions_30d: int
    events_30d: int
    estimated_metrics: int
    low_volume_warnings: int
    notes: list[str]

class KpiOut(BaseModel):
    label: str
    value_7d: float | None = None
    value_30d: float | None = None
    delta: float | None = None
    delta_percent: int | None = None
    is_estimated: bool = False

class FounderMetricsOut(BaseModel):
    visitors: KpiOut
    registrations: KpiOut
    paid_users: KpiOut
    mrr: KpiOut
    nda_signed: KpiOut
    enquiries: KpiOut
    deal_rooms_active: KpiOut

class LeakOut(BaseModel):
    track: TrackFilter
    step: str
    drop_pct: int
    likely_causes: list[str]
    is_low_volume: bool

class NarrativeOut(BaseModel):
    momentum: str
    constraint: str
    next_action: str

class ReportResponse(BaseModel):
    track: TrackFilter
    funnel: FunnelResponse
    confidence: ConfidenceResponse
    metrics: FounderMetricsOut
    momentum: dict[str, Literal["growing", "declining", "stable", "insufficient_data"]]
    leaks: list[LeakOut]
    narrative: NarrativeOut

class BaselineIn(BaseModel):
    listing_views: float = Field(default=0, ge=0)
    registrations: float = Field(default=0, ge=0)
    nda_signed: float = Field(default=0, ge=0)
    enquiries: float = Field(default=0, ge=0)
    deal_rooms: float = Field(default=0, ge=0)
    paid_users: float = Field(default=0, ge=0)
    mrr: float | None = Field(default=None, ge=0)

class StrategyRequest(BaseModel):
    track: TrackFilter = "all"
    listings_increase_pct: float = Field(default=0, ge=0)
    nda_conversion_uplift_pts: float = Field(default=0, ge=0)
    paid_conversion_uplift_pts: float = Field(default=0, ge=0)
    partner_lead_increase_pct: float = Field(default=0, ge=0)
    # Omit to project from the live analytics source
    baseline: BaselineIn | None = None

class BandOut(BaseModel):
    low: int
    base: int
    high: int

class RevenueImpactOut(BaseModel):
    low: float | None = None
    base: float | None = None
    high: float | None = None
    note: str | None = None

class StrategyResponse(BaseModel):
    additional_nda_signed: BandOut
    additional_enquiries: BandOut
    additional_deal_rooms: BandOut
    additional_paid_users: BandOut
    revenue_impact: RevenueImpactOut
    recommended_focus: list[str]

# ----- Valuation wizard -----

Intent = Literal["understand_value", "prepare_sale", "strategic_options", "benchmark"]

class IntentData(BaseModel):
    kind: Literal["intent"]
    intent: Intent

class ProfileData(BaseModel):
    kind: Literal["profile"]
    # operational
    category: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    years_in_operation: Optional[str] = None
    ownership_structure: Optional[str] = None
    # digital
    model: Optional[str] = None
    traffic: Optional[str] = None
    primary_market: Optional[str] = None
    years_live: Optional[str] = None
    owner_involvement: Optional[str] = None

class FinancialsData(BaseModel):
    kind: Literal["financials"]
    revenue: Num = None
    revenue_range: Optional[str] = None
    revenue_consistency: Optional[str] = None
    # operational
    gross_margin: Num = None
    opex: Num = None
    addbacks: Num = None
    inventory_included: Optional[YesNo] = None
    inventory_amount: Num = None
    real_estate_included: Optional[YesNo] = None
    real_estate_noi: Num = None
    real_estate_cap_rate: Num = None
    ebitda_range: Optional[str] = None
    ebitda_unknown: bool = False
    cost_drivers: list[str] = Field(default_factory=list)
    # digital
    profit: Num = None
    revenue_trend: Optional[str] = None
    recurring: Num = None
    concentration: Num = None
    gross_margin_range: Optional[str] = None
    gross_margin_unknown: bool = False
    growth_rate_range: Optional[str] = None

class RiskData(BaseModel):
    kind: Literal["risk"]
    risk_flags: list[str] = Field(default_factory=list)
    platform_risk: Optional[str] = None
    # operational
    property_type: Optional[str] = None
    lease_status: Optional[str] = None
    customer_concentration: Optional[str] = None
    key_person_dependency: Optional[str] = None
    regulatory_exposure: Optional[str] = None
    # digital
    platform_dependency: Optional[str] = None
    traffic_concentration: Optional[str] = None
    churn_awareness: Optional[str] = None
    operational_maturity: Optional[str] = None

StepData = Annotated[Union[IntentData, ProfileData, FinancialsData, RiskData], Field(discriminator="kind")]

class StepUpdate(RootModel[StepData]):
    """PATCH body: one step's fields, tagged by `kind`."""

class TrackRequest(BaseModel):
    track: Track

class StepRequest(BaseModel):
    step: str = Field(min_length=1)

class WizardState(BaseModel):
    session: str
    current_step: str
    track: Track | None = None
    track_locked: bool = False
    save_status: Literal["idle", "saving", "saved", "error"] = "idle"
    valuation_id: str | None = None
    readiness_score: int | None = None
    pending_changes: bool = False
    step_data: dict = Field(default_factory=dict)

class WizardPayload(BaseModel):
    track: Track | None = None
    intent: str | None = None
    profile: dict = Field(default_factory=dict)
    financials: dict = Field(default_factory=dict)
    risk: dict = Field(default_factory=dict)
    current_step: str
    completed_at: str

class PillarReadinessOut(BaseModel):
    score: int = Field(ge=0, le=100)
    profile: int = Field(ge=0, le=100)
    financial: int = Field(ge=0, le=100)
    risk: int = Field(ge=0, le=100)
    intent: int = Field(ge=0, le=100)
    message: str

class WizardScoreResponse(BaseModel):
    track: Track
    valuation: ValuationOut
    readiness: ReadinessOut
    pillars: PillarReadinessOut
    state: WizardState
