import hashlib
import json
import math
import re
import sys
from typing import Any

_NUMBER_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

def parse_num(val: Any) -> float:
    """
    Permissive numeric coercion for user-entered fields.
    Numbers pass through; strings drop thousands separators and parse the
    leading decimal ("1,200.50 USD" -> 1200.5); everything else is 0.
    """
    if isinstance(val, bool):
        return 0.0
    if isinstance(val, (int, float)):
        try:
            n = float(val)
        except OverflowError:
            return 0.0
    elif isinstance(val, str):
        m = _NUMBER_PREFIX.match(val.replace(",", ""))
        if not m:
            return 0.0
        n = float(m.group(0))
    else:
        return 0.0
    return n if math.isfinite(n) else 0.0

def to_count(val: Any) -> int:
    """Row-count coercion: ints, floats and numeric strings; anything else is 0."""
    if isinstance(val, bool):
        return 0
    if isinstance(val, int):
        return val
    if isinstance(val, float):
        return int(val) if math.isfinite(val) else 0
    if isinstance(val, str) and val.strip():
        try:
            n = float(val)
        except ValueError:
            return 0
        return int(n) if math.isfinite(n) else 0
    return 0

def finite(x: float) -> float:
    """NaN becomes 0; overflowed results saturate at the largest float."""
    if isinstance(x, float) and math.isnan(x):
        return 0.0
    return clamp(x, -sys.float_info.max, sys.float_info.max)

def js_round(x: float) -> int:
    """Round half up (2.5 -> 3, -2.5 -> -2) instead of Python's half-to-even."""
    return int(math.floor(finite(x) + 0.5))

def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))

def is_missing(val: Any) -> bool:
    """Blank for scoring purposes: None, empty/whitespace string, False or numeric zero."""
    if val is None or val is False:
        return True
    if isinstance(val, str):
        return not val.strip()
    if isinstance(val, (int, float)):
        return val == 0 or (isinstance(val, float) and math.isnan(val))
    if isinstance(val, (list, tuple, set, dict)):
        return not val
    return False

def is_unset(val: Any) -> bool:
    """Unset means never entered; an explicit 0 counts as set."""
    return val is None or (isinstance(val, str) and not val.strip())

def flag_on(val: Any) -> bool:
    """Wizard yes/no switches arrive as bools or "yes"/"no" strings."""
    if isinstance(val, bool):
        return val
    if isinstance(val, str):
        return val.strip().lower() in ("yes", "true", "y", "1")
    return False

def same_choice(val: Any, choice: str) -> bool:
    """Case-insensitive enum comparison ("growing" == "Growing")."""
    return isinstance(val, str) and val.strip().lower() == choice.lower()

def fnv1a_32(s: str) -> int:
    """Deterministic, fast hash for seed generation."""
    h = 0x811c9dc5
    for c in s.encode("utf-8"):
        h ^= c
        h = (h * 0x01000193) & 0xFFFFFFFF
    return h

def seeded_rand(seed: int, n: int = 1) -> list[float]:
    """
    Stateless pseudo-random generator (Mulberry32-like) so
    same seed → same outputs without storing PRNG state.
    """
    out = []
    t = (seed + 0x6D2B79F5) & 0xFFFFFFFF
    for _ in range(n):
        t = (t ^ (t >> 15)) * (t | 1) & 0xFFFFFFFF
        t ^= t + ((t ^ (t >> 7)) * (t | 61) & 0xFFFFFFFF)
        r = ((t ^ (t >> 14)) & 0xFFFFFFFF) / 4294967296.0
        out.append(r)
    return out

def canonical_json(payload: Any) -> str:
    """Key-sorted compact JSON so equal payloads serialize identically."""
    return json.dumps(payload, separators=(',',':'), sort_keys=True, default=str)

def digest(payload: Any) -> str:
    """Short stable hash of a JSON-able payload, used for cache keys."""
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()[:32]

def weak_etag(payload_bytes: bytes) -> str:
    """Weak ETag for client-side conditional requests."""
    h = hashlib.sha256(payload_bytes).hexdigest()[:24]
    return f'W/"{h}"'
