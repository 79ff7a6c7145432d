from typing import Any, Dict, Optional, Protocol
from dataclasses import dataclass, field

from ..engine.models import EventCoverage, FounderMetrics, Period, TrackFilter

# ----- Data shapes (thin & explicit) -----

@dataclass
class ProgressRecord:
    """One wizard row per user/session: wizard state in `input`, scores in `result`."""
    input: Dict[str, Any] = field(default_factory=dict)
    result: Dict[str, Any] = field(default_factory=dict)
    valuation_id: Optional[str] = None

# ----- Protocols (interfaces) -----

class ProgressStore(Protocol):
    async def load(self, key: str) -> Optional[ProgressRecord]: ...
    async def save(self, key: str, record: ProgressRecord) -> ProgressRecord: ...

class AnalyticsClient(Protocol):
    async def funnel_counts(self, period: Period, track: TrackFilter) -> Dict[str, int]: ...
    async def event_coverage(self, days: int = 30) -> EventCoverage: ...
    async def founder_metrics(self, track: TrackFilter) -> FounderMetrics: ...

class StoreError(RuntimeError):
    """Row store unreachable or rejected the write."""
