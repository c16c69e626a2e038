"""
Gas cost analysis for oracle update transactions.

Aggregates update transactions per feed, per chain and over time so the
cost of keeping feeds fresh can be compared across chains.
"""

from typing import Any, Dict, List, Optional

import pandas as pd

from ..models import GasCostTrendPoint, UpdateTransaction

GWEI = 1e-9


def calculate_cost(tx: UpdateTransaction) -> Dict[str, float]:
    """Cost of one update in native units and USD."""
    if tx.gas_used < 0 or tx.gas_price_gwei < 0:
        raise ValueError(f"Negative gas values on {tx.feed_name} update")

    cost_native = tx.gas_used * tx.gas_price_gwei * GWEI
    return {
        "cost_native": cost_native,
        "cost_usd": cost_native * tx.native_price_usd,
    }


def _empty_analysis() -> Dict[str, Any]:
    return {
        "by_feed": [],
        "by_chain": [],
        "total_gas_used": 0,
        "total_cost_native": 0.0,
        "total_cost_usd": 0.0,
        "total_transactions": 0,
        "trend": [],
    }


def _transactions_frame(transactions: List[UpdateTransaction]) -> pd.DataFrame:
    rows = []
    for tx in transactions:
        cost = calculate_cost(tx)
        rows.append({
            "feed_name": tx.feed_name,
            "chain": tx.chain,
            "timestamp": tx.timestamp,
            "gas_used": tx.gas_used,
            "cost_native": cost["cost_native"],
            "cost_usd": cost["cost_usd"],
        })
    df = pd.DataFrame(rows)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    return df


def analyze_gas_costs(
    transactions: List[UpdateTransaction],
    chain: Optional[str] = None,
    dapi: Optional[str] = None,
    bucket: str = "1h"
) -> Dict[str, Any]:
    """
    Aggregate gas spend across update transactions.

    Args:
        transactions: Feed update transactions
        chain: Only include this chain (case-insensitive)
        dapi: Only include feeds whose name contains this text (case-insensitive)
        bucket: pandas offset alias for the trend buckets

    Returns:
        dict with by_feed, by_chain, grand totals and trend
        (list of GasCostTrendPoint). Totals reflect the filters.
    """
    if not transactions:
        return _empty_analysis()

    df = _transactions_frame(transactions)

    if chain:
        df = df[df["chain"].str.lower() == chain.lower()]
    if dapi:
        df = df[df["feed_name"].str.lower().str.contains(dapi.lower(), regex=False)]

    if df.empty:
        return _empty_analysis()

    by_feed = (
        df.groupby(["feed_name", "chain"])
        .agg(
            total_gas_used=("gas_used", "sum"),
            total_cost_native=("cost_native", "sum"),
            total_cost_usd=("cost_usd", "sum"),
            transaction_count=("gas_used", "size"),
        )
        .reset_index()
    )
    by_feed["avg_gas_per_tx"] = by_feed["total_gas_used"] / by_feed["transaction_count"]
    by_feed = by_feed.sort_values("total_cost_usd", ascending=False)

    by_chain = (
        by_feed.groupby("chain")
        .agg(
            total_gas_used=("total_gas_used", "sum"),
            total_cost_native=("total_cost_native", "sum"),
            total_cost_usd=("total_cost_usd", "sum"),
            transaction_count=("transaction_count", "sum"),
            feed_count=("feed_name", "nunique"),
        )
        .reset_index()
        .sort_values("total_cost_usd", ascending=False)
    )

    buckets = (
        df.set_index("timestamp")
        .resample(bucket)
        .agg({"gas_used": "sum", "cost_usd": "sum", "feed_name": "size"})
    )
    buckets = buckets[buckets["feed_name"] > 0]
    trend = [
        GasCostTrendPoint(
            timestamp=timestamp.to_pydatetime(),
            gas_used=int(row["gas_used"]),
            cost_usd=float(row["cost_usd"]),
            transaction_count=int(row["feed_name"]),
        )
        for timestamp, row in buckets.iterrows()
    ]

    return {
        "by_feed": _records(by_feed),
        "by_chain": _records(by_chain),
        "total_gas_used": int(df["gas_used"].sum()),
        "total_cost_native": float(df["cost_native"].sum()),
        "total_cost_usd": float(df["cost_usd"].sum()),
        "total_transactions": int(len(df)),
        "trend": trend,
    }


def _records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame rows as plain-Python dicts."""
    records = []
    for row in frame.to_dict(orient="records"):
        records.append({
            key: value.item() if hasattr(value, "item") else value
            for key, value in row.items()
        })
    return records
