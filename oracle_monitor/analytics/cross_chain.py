"""
Cross-chain comparison of the same dAPI or feed.
"""

from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd

from ..models import CrossChainDapiData, to_datetime

# metric attribute -> True when lower is better
BEST_CHAIN_METRICS = {
    "last_price": True,
    "avg_update_interval_ms": True,
    "avg_latency_ms": True,
    "gas_cost_usd": True,
    "uptime_percentage": False,
}


def compare_chains(data: List[CrossChainDapiData]) -> Dict[str, Any]:
    """
    Compare one dAPI deployed on several chains.

    Returns:
        dict with best_chain per metric, price_spread (absolute, percent of
        mean) and per-chain deviation_from_median_pct
    """
    if not data:
        raise ValueError("No cross-chain data to compare")

    best_chain = {}
    for metric, lower_is_better in BEST_CHAIN_METRICS.items():
        pick = min if lower_is_better else max
        best_chain[metric] = pick(data, key=lambda d: getattr(d, metric)).chain

    prices = np.array([d.last_price for d in data], dtype=float)
    mean_price = prices.mean()
    median_price = float(np.median(prices))
    spread = float(prices.max() - prices.min())

    return {
        "chain_count": len(data),
        "best_chain": best_chain,
        "price_spread": {
            "absolute": spread,
            "percent": spread / mean_price * 100 if mean_price > 0 else 0.0,
            "min_chain": data[int(prices.argmin())].chain,
            "max_chain": data[int(prices.argmax())].chain,
        },
        "median_price": median_price,
        "deviation_from_median_pct": {
            d.chain: (d.last_price - median_price) / median_price * 100 if median_price > 0 else 0.0
            for d in data
        },
    }


def calculate_cross_chain_lag(update_times: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Lag between the most and least recently updated chain.

    Args:
        update_times: List of dicts with keys: chain, updated_at

    Returns:
        dict with lag_seconds, lag_minutes, newest_chain, oldest_chain;
        None with fewer than two chains
    """
    if len(update_times) < 2:
        return None

    sorted_times = sorted(
        update_times, key=lambda x: to_datetime(x["updated_at"]), reverse=True
    )
    newest = sorted_times[0]
    oldest = sorted_times[-1]

    lag_seconds = (
        to_datetime(newest["updated_at"]) - to_datetime(oldest["updated_at"])
    ).total_seconds()

    return {
        "lag_seconds": lag_seconds,
        "lag_minutes": lag_seconds / 60,
        "newest_chain": newest["chain"],
        "oldest_chain": oldest["chain"],
    }


def price_history_divergence(history: Union[pd.DataFrame, List[Dict[str, Any]]]) -> pd.DataFrame:
    """
    Per-timestamp price spread across chains.

    Args:
        history: Wide frame indexed by timestamp with one price column per
            chain, or records with a 'timestamp' key plus one key per chain

    Returns:
        DataFrame with min, max, mean, spread and spread_pct columns
    """
    if isinstance(history, pd.DataFrame):
        frame = history.copy()
    else:
        frame = pd.DataFrame(history)
        if frame.empty:
            return pd.DataFrame(columns=["min", "max", "mean", "spread", "spread_pct"])
        frame["timestamp"] = pd.to_datetime(frame["timestamp"], utc=True)
        frame = frame.set_index("timestamp")

    frame = frame.sort_index()
    prices = frame.apply(pd.to_numeric, errors="coerce")

    result = pd.DataFrame({
        "min": prices.min(axis=1),
        "max": prices.max(axis=1),
        "mean": prices.mean(axis=1),
    })
    result["spread"] = result["max"] - result["min"]
    result["spread_pct"] = (result["spread"] / result["mean"] * 100).where(result["mean"] > 0, 0.0)
    return result
