"""Display formatting for dollar amounts"""

import math


def round_half_up(value: float) -> float:
    """Round to a whole number with halves away from zero; NaN and inf pass through"""
    if not math.isfinite(value):
        return value
    rounded = math.floor(abs(value) + 0.5)
    return float(-rounded if value < 0 else rounded)


def format_currency(amount: float) -> str:
    """Whole-dollar currency string, e.g. 1234.56 -> '$1,235', 450.5 -> '$451'"""
    if amount != amount:  # NaN
        return "$NaN"
    sign = "-" if amount < 0 else ""
    return f"{sign}${round_half_up(abs(amount)):,.0f}"


def format_compact_currency(amount: float) -> str:
    """Abbreviated currency string, e.g. 2_500_000 -> '$2.5M'"""
    if amount >= 1_000_000_000:
        return f"${amount / 1_000_000_000:.1f}B"
    if amount >= 1_000_000:
        return f"${amount / 1_000_000:.1f}M"
    if amount >= 1_000:
        return f"${amount / 1_000:.0f}K"
    return f"${amount:.0f}"
