"""Display helpers used by API responses and chat output."""

from __future__ import annotations

from typing import Optional


def format_portfolio_percentage(value: float, total: float) -> str:
    if total == 0:
        return "0.00%"
    return f"{value / total * 100:.2f}%"


def format_currency(value: Optional[float], decimals: int = 2, max_decimals: int = 8) -> str:
    """Thousands-separated amount; tiny positive values get more precision."""

    if value is None:
        return "0.00"
    places = decimals
    if 0 < value < 0.0001:
        places = min(max_decimals, 8)
    elif 0 < value < 0.01:
        places = min(6, max_decimals)
    return f"{value:,.{places}f}"


def format_percentage(value: Optional[float], include_symbol: bool = False) -> str:
    formatted = "0.0" if value is None else f"{value:,.1f}"
    return f"{formatted}%" if include_symbol else formatted


def truncate_address(address: str, start_chars: int = 6, end_chars: int = 4) -> str:
    if not address:
        return ""
    if len(address) <= start_chars + end_chars:
        return address
    return f"{address[:start_chars]}...{address[-end_chars:]}"


__all__ = [
    "format_currency",
    "format_percentage",
    "format_portfolio_percentage",
    "truncate_address",
]
