"""Shared formatting functions for amounts and dates.

Amounts are always passed in kopiykas (minor units); 100 kopiykas make one
hryvnia.
"""

from datetime import date

CURRENCY = "₴"


def to_major(amount: int) -> float:
    """Convert kopiykas to hryvnias."""
    return amount / 100


def format_amount_label(amount: int) -> str:
    """Abbreviated amount for chart labels.

    1,000,000+ hryvnias render as "1.2M", 1,000+ as "15K" or "15.5K",
    anything smaller as a rounded whole number.
    """
    if amount < 0:
        return "-" + format_amount_label(-amount)

    uah = to_major(amount)
    if uah >= 1_000_000:
        return f"{uah / 1_000_000:.1f}M"
    if uah >= 1_000:
        k = uah / 1_000
        if k == int(k):
            return f"{k:.0f}K"
        return f"{k:.1f}K"
    return f"{uah:.0f}"


def format_amount(amount: int) -> str:
    """Whole hryvnias with space-grouped thousands, e.g. "12 345 ₴"."""
    grouped = f"{to_major(amount):,.0f}".replace(",", " ")
    return f"{grouped} {CURRENCY}"


def format_change(amount: int) -> str:
    """Signed day-over-day change: "+500 ₴", "-20 ₴" or "±0 ₴"."""
    if amount > 0:
        return f"+{format_amount(amount)}"
    if amount < 0:
        return format_amount(amount)
    return f"±0 {CURRENCY}"


def format_delta_label(amount: int) -> str:
    """Signed abbreviated change for chart labels."""
    if amount > 0:
        return f"+{format_amount_label(amount)}"
    if amount < 0:
        return format_amount_label(amount)
    return "±0"


def format_date_label(d: date) -> str:
    """Short day.month label for chart axes."""
    return d.strftime("%d.%m")


def progress_bar(percent: float, cells: int = 10) -> str:
    """Text progress bar with one filled cell per 10%."""
    filled = max(0, min(cells, int(percent / (100 / cells))))
    return "▓" * filled + "░" * (cells - filled)
