"""
Display formatting helpers for prices, intervals, gas and addresses.
"""

from datetime import datetime, timezone
from typing import Optional, Union

from .models import to_datetime


def format_time(value: Union[datetime, str, int, float, None], fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """Format a timestamp in UTC; 'N/A' when missing."""
    dt = to_datetime(value)
    if dt is None:
        return "N/A"
    return dt.astimezone(timezone.utc).strftime(fmt) + " UTC"


def format_price(price: Optional[float]) -> str:
    if price is None:
        return "N/A"
    if price >= 1000:
        return f"${price:,.2f}"
    if price >= 1:
        return f"${price:.4f}"
    return f"${price:.6f}"


def format_interval(ms: float) -> str:
    """Format an update interval given in milliseconds."""
    if ms < 1000:
        return f"{ms:.0f}ms"
    if ms < 60_000:
        return f"{ms / 1000:.1f}s"
    if ms < 3_600_000:
        return f"{ms / 60_000:.1f}m"
    return f"{ms / 3_600_000:.1f}h"


def format_duration(seconds: int) -> str:
    """Format elapsed seconds as '45s', '5m 3s' or '2h 10m'."""
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        minutes, remaining = divmod(seconds, 60)
        return f"{minutes}m {remaining}s" if remaining else f"{minutes}m"
    hours = seconds // 3600
    remaining_minutes = (seconds % 3600) // 60
    return f"{hours}h {remaining_minutes}m" if remaining_minutes else f"{hours}h"


def format_response_time(ms: float) -> str:
    if ms < 1000:
        return f"{ms:.0f}ms"
    return f"{ms / 1000:.1f}s"


def format_gas(gas: float) -> str:
    if gas >= 1_000_000_000:
        return f"{gas / 1_000_000_000:.2f}B"
    if gas >= 1_000_000:
        return f"{gas / 1_000_000:.2f}M"
    if gas >= 1000:
        return f"{gas / 1000:.0f}K"
    return f"{gas:.0f}"


def format_eth(eth: float) -> str:
    if eth >= 1:
        return f"{eth:.4f} ETH"
    if eth >= 0.001:
        return f"{eth * 1000:.2f} mETH"
    return f"{eth * 1_000_000_000:.0f} gwei"


def format_usd(usd: float) -> str:
    if usd >= 1_000_000:
        return f"${usd / 1_000_000:.2f}M"
    if usd >= 1000:
        return f"${usd / 1000:.2f}K"
    return f"${usd:.2f}"


def format_address(address: str) -> str:
    """Shorten a hex address to 0x1234...abcd."""
    if len(address) <= 12:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_percentage(value: Optional[float], decimals: int = 2) -> str:
    if value is None:
        return "N/A"
    return f"{value:.{decimals}f}%"
