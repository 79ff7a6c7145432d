"""
Rule-table valuation for marketplace listings.

Both tracks apply an earnings multiple band looked up by category (operational)
or business model (digital), shifted by a risk adjustment. Everything here is a
pure function of its input: no I/O, no randomness, and malformed numbers
degrade to 0 instead of raising.
"""
from typing import Any

from ..core.utils import finite, flag_on, js_round, parse_num, same_choice
from .models import DigitalInput, OperationalInput, Track, ValuationResult

# Baseline multiple ranges (low, high)
OPERATIONAL_MULTIPLES: dict[str, tuple[float, float]] = {
    "Gas Station": (2.0, 3.5),
    "Car Wash": (3.0, 5.0),
    "QSR/Franchise": (2.5, 4.0),
    "Convenience Retail": (2.0, 3.5),
    "Logistics": (2.5, 4.0),
    "Other": (2.0, 3.5),
}
DIGITAL_MULTIPLES: dict[str, tuple[float, float]] = {
    "SaaS": (3.0, 6.0),
    "Ecom": (2.0, 4.0),
    "Agency": (2.0, 3.5),
    "Content": (2.0, 4.0),
    "Other": (2.0, 3.0),
}
DEFAULT_OPERATIONAL_MULTIPLE = (2.0, 3.5)
DEFAULT_DIGITAL_MULTIPLE = (2.0, 3.0)

NO_RISKS = "No major risks flagged"
FALLBACK_DRIVER = "Solid fundamentals"

def multiple_range(table: dict[str, tuple[float, float]], choice: Any, default: tuple[float, float]) -> tuple[float, float]:
    """Table lookup that ignores case and surrounding whitespace; anything else gets the default band."""
    if not isinstance(choice, str):
        return default
    key = choice.strip().lower()
    return next((band for name, band in table.items() if name.lower() == key), default)

def _band(earnings: float, low: float, high: float, risk_adj: float) -> tuple[float, float, int, int, int]:
    adj_low = max(1.0, low + risk_adj)
    adj_high = max(adj_low, high + risk_adj)
    # Non-positive earnings collapse to a zero range rather than an inverted one
    return (
        adj_low,
        adj_high,
        max(0, js_round(earnings * adj_low)),
        max(0, js_round(earnings * ((adj_low + adj_high) / 2))),
        max(0, js_round(earnings * adj_high)),
    )

def _confidence(earnings: float, risk_adj: float) -> str:
    if earnings <= 0:
        return "Low"
    return "High" if risk_adj > -0.5 else "Medium"

def _risks(flags: list[str]) -> list[str]:
    return list(flags[:3]) if flags else [NO_RISKS]

# --- Operational ---

def seller_discretionary_earnings(data: OperationalInput) -> float:
    """SDE = revenue * GM% - opex + addbacks, plus inventory and capitalized real estate."""
    revenue = parse_num(data.revenue)
    gross_margin = parse_num(data.gross_margin) / 100
    sde = revenue * gross_margin - parse_num(data.opex) + parse_num(data.addbacks)

    if flag_on(data.inventory_included):
        sde += parse_num(data.inventory_amount)

    if flag_on(data.real_estate_included):
        noi = parse_num(data.real_estate_noi)
        cap = parse_num(data.real_estate_cap_rate)
        if noi and cap:
            sde += noi / (cap / 100)
    return finite(sde)

def operational_drivers(data: OperationalInput, sde: float) -> list[str]:
    out: list[str] = []
    if parse_num(data.gross_margin) > 40:
        out.append("Strong gross margin")
    if parse_num(data.addbacks) > 0:
        out.append("Owner add-backs included")
    if flag_on(data.inventory_included):
        out.append("Inventory included")
    if flag_on(data.real_estate_included):
        out.append("Real estate included")
    if sde > 250_000:
        out.append("High SDE")
    if not out:
        out.append(FALLBACK_DRIVER)
    return out[:3]

def operational_valuation(data: OperationalInput) -> ValuationResult:
    low, high = multiple_range(OPERATIONAL_MULTIPLES, data.category, DEFAULT_OPERATIONAL_MULTIPLE)
    sde = seller_discretionary_earnings(data)

    risk_adj = 0.0
    risk_adj -= len(data.risk_flags) * 0.2
    # Documented add-backs read as a cleaner book
    if parse_num(data.addbacks) > 0:
        risk_adj += 0.1

    adj_low, adj_high, v_low, v_base, v_high = _band(sde, low, high, risk_adj)
    return ValuationResult(
        low=v_low,
        base=v_base,
        high=v_high,
        multiple_low=adj_low,
        multiple_high=adj_high,
        confidence=_confidence(sde, risk_adj),
        drivers=operational_drivers(data, sde),
        risks=_risks(data.risk_flags),
    )

# --- Digital ---

def _low_concentration(data: DigitalInput) -> bool:
    present = data.concentration is not None and data.concentration != ""
    return present and parse_num(data.concentration) < 30

def digital_drivers(data: DigitalInput, profit: float) -> list[str]:
    out: list[str] = []
    if parse_num(data.recurring) > 60:
        out.append("High recurring revenue")
    if _low_concentration(data):
        out.append("Low customer concentration")
    if same_choice(data.traffic, "Organic"):
        out.append("Organic traffic")
    if same_choice(data.platform_risk, "Low"):
        out.append("Low platform risk")
    if same_choice(data.revenue_trend, "Growing"):
        out.append("Growing revenue")
    if profit > 100_000:
        out.append("Strong profit")
    if not out:
        out.append(FALLBACK_DRIVER)
    return out[:3]

def digital_valuation(data: DigitalInput) -> ValuationResult:
    low, high = multiple_range(DIGITAL_MULTIPLES, data.model, DEFAULT_DIGITAL_MULTIPLE)
    profit = parse_num(data.profit)

    risk_adj = 0.0
    risk_adj -= len(data.risk_flags) * 0.2
    if parse_num(data.recurring) > 60:
        risk_adj += 0.1
    if _low_concentration(data):
        risk_adj += 0.1
    if same_choice(data.traffic, "Organic"):
        risk_adj += 0.1
    if same_choice(data.platform_risk, "Low"):
        risk_adj += 0.1
    if same_choice(data.platform_risk, "High"):
        risk_adj -= 0.2
    if same_choice(data.revenue_trend, "Growing"):
        risk_adj += 0.1
    if same_choice(data.revenue_trend, "Declining"):
        risk_adj -= 0.2

    adj_low, adj_high, v_low, v_base, v_high = _band(profit, low, high, risk_adj)
    return ValuationResult(
        low=v_low,
        base=v_base,
        high=v_high,
        multiple_low=adj_low,
        multiple_high=adj_high,
        confidence=_confidence(profit, risk_adj),
        drivers=digital_drivers(data, profit),
        risks=_risks(data.risk_flags),
    )

def estimate_valuation(track: Track, data: Any) -> ValuationResult:
    """
    Dispatch on track. `data` may be the track's input dataclass or a raw
    mapping from the wizard / API payload.
    """
    if track == "digital":
        if not isinstance(data, DigitalInput):
            data = DigitalInput.from_dict(data)
        return digital_valuation(data)
    if not isinstance(data, OperationalInput):
        data = OperationalInput.from_dict(data)
    return operational_valuation(data)
