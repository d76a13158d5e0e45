"""Input coercion helpers shared by the finance engine and the loader."""
import math
from typing import Any, Dict, Iterable, Optional


def get_nested(d: Dict[str, Any], path: Iterable[str], default: Any = None) -> Any:
    """Safely get nested dict value by a sequence of keys."""
    result = d
    for key in path:
        if not isinstance(result, dict):
            return default
        result = result.get(key, default)
        if result is default:
            return default
    return result


def as_float(v: Any, default: Optional[float] = None) -> Optional[float]:
    """Safely convert value to float with fallback."""
    if v is None:
        return default
    try:
        return float(v)
    except (ValueError, TypeError):
        return default


def as_int(v: Any, default: Optional[int] = None) -> Optional[int]:
    """Safely convert value to int with fallback; floats are truncated."""
    if v is None:
        return default
    try:
        return int(v)
    except (ValueError, TypeError, OverflowError):
        return default


def money(v: Any) -> float:
    """Monetary input as a finite float; NaN, inf and garbage become 0.0."""
    out = as_float(v, 0.0)
    if out is None or not math.isfinite(out):
        return 0.0
    return out


def months(v: Any) -> int:
    """Month count as int; non-numeric or non-finite values become 0."""
    f = money(v)
    return int(f)


def clamp(value: float, lo: float, hi: float) -> float:
    """Bound ``value`` to [lo, hi]."""
    return max(lo, min(hi, value))
