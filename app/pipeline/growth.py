import math

GROWTH_FRACTION_DIGITS = 8

def _to_float(value) -> float:
    if value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan

def as_decimal_string(value: float, fraction_digits: int = GROWTH_FRACTION_DIGITS) -> str:
    if not math.isfinite(value):
        return "0"
    return f"{value:.{fraction_digits}f}"

def compute_growth_pct(current_total_assets, baseline_total_assets=None) -> str:
    """Percent change of total assets against the earliest stored snapshot.

    A missing baseline means this is the first sample for the pair, which is
    then its own baseline.
    """
    current = _to_float(current_total_assets)
    baseline = current if baseline_total_assets is None else _to_float(baseline_total_assets)
    growth = ((current - baseline) / baseline) * 100 if baseline > 0 else 0.0
    return as_decimal_string(growth)

def parse_growth_pct(value) -> float:
    num = _to_float(value)
    return num if math.isfinite(num) else 0.0
