"""
Price Deviation Analytics.

Two views of deviation:
- Single feed: how far a new price is from the last on-chain answer, and
  which updates were triggered by the deviation threshold vs the heartbeat.
- Cross-protocol: how far protocols disagree on the same symbol over time,
  with trend, volatility and anomaly scoring per symbol.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple

import numpy as np

from ..models import ChainlinkFeed, DeviationStatus, TrendDirection, to_datetime
from .thresholds import (
    CROSS_PROTOCOL_OUTLIER_PCT,
    DEVIATION_ANALYTICS,
    DEVIATION_STATUS_RATIOS,
)

logger = logging.getLogger(__name__)


def calculate_deviation_pct(price: float, reference: float) -> float:
    """Absolute percent change of price relative to reference."""
    if reference <= 0:
        raise ValueError(f"Reference price must be positive, got {reference}")
    return abs(price - reference) / reference * 100


def classify_deviation(price: float, reference: float, threshold_pct: float) -> DeviationStatus:
    """
    Classify a price move against a feed's deviation threshold.

    CRITICAL means the move has reached the threshold and an on-chain
    update is due.
    """
    if threshold_pct <= 0:
        raise ValueError(f"Deviation threshold must be positive, got {threshold_pct}")

    ratio = calculate_deviation_pct(price, reference) / threshold_pct

    if ratio < DEVIATION_STATUS_RATIOS["warning"]:
        return DeviationStatus.NORMAL
    if ratio < DEVIATION_STATUS_RATIOS["critical"]:
        return DeviationStatus.WARNING
    return DeviationStatus.CRITICAL


def compute_deviation_triggers(
    feed: ChainlinkFeed,
    updates: List[Tuple[Any, float]]
) -> Dict[str, Any]:
    """
    Split a feed's on-chain updates into deviation and heartbeat triggers.

    An update is deviation-triggered when its price moved by at least the
    feed's deviation threshold from the previous update; anything else was
    forced by the heartbeat.

    Args:
        feed: Feed definition (threshold and heartbeat)
        updates: (timestamp, price) pairs in any order

    Returns:
        dict with trigger_count, heartbeat_update_count, heartbeat,
        avg_interval_seconds and last_trigger_time
    """
    ordered = sorted(
        ((to_datetime(ts), float(price)) for ts, price in updates),
        key=lambda item: item[0],
    )

    trigger_count = 0
    heartbeat_updates = 0
    last_trigger_time = None

    for (_, previous_price), (timestamp, price) in zip(ordered, ordered[1:]):
        if previous_price > 0 and calculate_deviation_pct(price, previous_price) >= feed.deviation_threshold_pct:
            trigger_count += 1
            last_trigger_time = timestamp
        else:
            heartbeat_updates += 1

    if len(ordered) >= 2:
        intervals = [
            (later[0] - earlier[0]).total_seconds()
            for earlier, later in zip(ordered, ordered[1:])
        ]
        avg_interval = float(np.mean(intervals))
    else:
        avg_interval = 0.0

    return {
        "symbol": feed.symbol,
        "chain": feed.chain,
        "deviation_threshold_pct": feed.deviation_threshold_pct,
        "heartbeat": feed.heartbeat_seconds,
        "trigger_count": trigger_count,
        "heartbeat_update_count": heartbeat_updates,
        "avg_interval_seconds": avg_interval,
        "last_trigger_time": last_trigger_time,
    }


def summarize_deviation_triggers(triggers: List[Dict[str, Any]], now: datetime = None) -> Dict[str, Any]:
    """Aggregate per-feed trigger stats; most_active_feeds holds the top 5."""
    now = now or datetime.now(timezone.utc)
    most_active = sorted(triggers, key=lambda t: t["trigger_count"], reverse=True)

    return {
        "total_triggers": sum(t["trigger_count"] for t in triggers),
        "active_feeds": sum(1 for t in triggers if t["trigger_count"] > 0),
        "most_active_feeds": most_active[:5],
        "generated_at": now,
    }


def build_deviation_point(
    timestamp: Any,
    symbol: str,
    prices: Dict[str, float],
    outlier_threshold_pct: float = CROSS_PROTOCOL_OUTLIER_PCT
) -> Dict[str, Any]:
    """
    Build one cross-protocol comparison point for a symbol.

    Deviations are measured from the median price. A protocol whose price
    deviates from the median by more than outlier_threshold_pct is an
    outlier.
    """
    valid = {protocol: float(p) for protocol, p in prices.items() if p is not None and p > 0}
    if not valid:
        raise ValueError(f"No valid protocol prices for {symbol}")

    values = np.array(list(valid.values()))
    median_price = float(np.median(values))
    deviations = {
        protocol: calculate_deviation_pct(price, median_price)
        for protocol, price in valid.items()
    }
    max_abs_deviation = float(np.max(np.abs(values - median_price)))

    return {
        "timestamp": to_datetime(timestamp),
        "symbol": symbol,
        "protocols": list(valid),
        "prices": valid,
        "avg_price": float(values.mean()),
        "median_price": median_price,
        "min_price": float(values.min()),
        "max_price": float(values.max()),
        "max_deviation": max_abs_deviation,
        "max_deviation_percent": max(deviations.values()),
        "outlier_protocols": [p for p, dev in deviations.items() if dev > outlier_threshold_pct],
    }


class PriceDeviationAnalytics:
    """
    Trend and anomaly analysis over cross-protocol deviation history.

    Points are dicts shaped like build_deviation_point output; only
    timestamp, max_deviation_percent and outlier_protocols are read.
    deviation_threshold is a fraction (0.01 = 1%).
    """

    def __init__(
        self,
        analysis_window_hours: int = None,
        deviation_threshold: float = None,
        min_data_points: int = None
    ):
        self.config = {
            key: DEVIATION_ANALYTICS[key]
            for key in ("analysis_window_hours", "deviation_threshold", "min_data_points")
        }
        self.update_config(**{
            key: value for key, value in (
                ("analysis_window_hours", analysis_window_hours),
                ("deviation_threshold", deviation_threshold),
                ("min_data_points", min_data_points),
            ) if value is not None
        })

    def update_config(self, **changes):
        unknown = set(changes) - set(self.config)
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")
        for key, value in changes.items():
            if value is None or value <= 0:
                raise ValueError(f"{key} must be positive, got {value}")
        self.config.update(changes)

    def get_config(self) -> Dict[str, Any]:
        return dict(self.config)

    @property
    def threshold_pct(self) -> float:
        return self.config["deviation_threshold"] * 100

    def analyze_trend(self, symbol: str, points: List[Dict[str, Any]]) -> Dict[str, Any]:
        if len(points) < self.config["min_data_points"]:
            return {
                "symbol": symbol,
                "trend_direction": TrendDirection.STABLE,
                "trend_strength": 0.0,
                "avg_deviation": 0.0,
                "max_deviation": 0.0,
                "volatility": 0.0,
                "anomaly_score": 0.0,
                "recommendation": "Insufficient data for analysis",
            }

        ordered = sorted(points, key=lambda p: to_datetime(p["timestamp"]))
        deviations = np.array([p["max_deviation_percent"] for p in ordered], dtype=float)

        avg_deviation = float(deviations.mean())
        trend_direction = self._trend_direction(deviations)
        trend_strength = self._trend_strength(deviations)
        anomaly_score = self._anomaly_score(ordered)

        return {
            "symbol": symbol,
            "trend_direction": trend_direction,
            "trend_strength": trend_strength,
            "avg_deviation": avg_deviation,
            "max_deviation": float(deviations.max()),
            "volatility": float(deviations.std()),
            "anomaly_score": anomaly_score,
            "recommendation": self._recommendation(
                trend_direction, trend_strength, avg_deviation, anomaly_score
            ),
        }

    def detect_anomalies(self, points: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Points above mean + 2 sigma or above the deviation threshold, newest first."""
        if not points:
            return []

        deviations = np.array([p["max_deviation_percent"] for p in points], dtype=float)
        sigma_limit = deviations.mean() + DEVIATION_ANALYTICS["anomaly_sigma"] * deviations.std()

        anomalies = [
            point for point in points
            if point["max_deviation_percent"] > sigma_limit
            or point["max_deviation_percent"] > self.threshold_pct
        ]
        return sorted(anomalies, key=lambda p: to_datetime(p["timestamp"]), reverse=True)

    def generate_report(
        self,
        histories: Dict[str, List[Dict[str, Any]]],
        now: datetime = None
    ) -> Dict[str, Any]:
        """
        Build a deviation report across symbols.

        Only points inside the analysis window ending at now are used.
        """
        end = now or datetime.now(timezone.utc)
        start = end - timedelta(hours=self.config["analysis_window_hours"])

        trends = []
        anomalies = []
        high_deviation_count = 0
        most_volatile_symbol = ""
        max_volatility = 0.0

        for symbol, points in histories.items():
            window = [p for p in points if start < to_datetime(p["timestamp"]) <= end]
            trend = self.analyze_trend(symbol, window)
            trends.append(trend)

            if trend["avg_deviation"] > self.threshold_pct:
                high_deviation_count += 1
            if trend["volatility"] > max_volatility:
                max_volatility = trend["volatility"]
                most_volatile_symbol = symbol

            anomalies.extend(self.detect_anomalies(window))

        avg_across_all = (
            sum(t["avg_deviation"] for t in trends) / len(trends) if trends else 0.0
        )

        logger.info(
            f"Deviation report: {len(trends)} symbols, {len(anomalies)} anomalies, "
            f"window {self.config['analysis_window_hours']}h"
        )

        return {
            "generated_at": end,
            "period": {"start": start, "end": end},
            "summary": {
                "total_symbols": len(histories),
                "symbols_with_high_deviation": high_deviation_count,
                "avg_deviation_across_all": avg_across_all,
                "most_volatile_symbol": most_volatile_symbol,
            },
            "trends": trends,
            "anomalies": anomalies[:DEVIATION_ANALYTICS["max_report_anomalies"]],
        }

    def compare_symbols(self, histories: Dict[str, List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
        """Rank symbols by average deviation, lowest first."""
        comparisons = []
        for symbol, points in histories.items():
            trend = self.analyze_trend(symbol, points)
            comparisons.append({
                "symbol": symbol,
                "avg_deviation": trend["avg_deviation"],
                "stability": 1 / (1 + trend["volatility"]),
            })

        comparisons.sort(key=lambda c: c["avg_deviation"])
        for rank, item in enumerate(comparisons, start=1):
            item["rank"] = rank
        return comparisons

    # -------------------------------------------------------------------------
    # statistics
    # -------------------------------------------------------------------------

    @staticmethod
    def _trend_direction(values: np.ndarray) -> TrendDirection:
        if len(values) < 2:
            return TrendDirection.STABLE

        half = len(values) // 2
        first_avg = values[:half].mean()
        second_avg = values[half:].mean()

        if first_avg == 0:
            return TrendDirection.INCREASING if second_avg > 0 else TrendDirection.STABLE

        change = (second_avg - first_avg) / first_avg
        if change > DEVIATION_ANALYTICS["trend_change"]:
            return TrendDirection.INCREASING
        if change < -DEVIATION_ANALYTICS["trend_change"]:
            return TrendDirection.DECREASING
        return TrendDirection.STABLE

    @staticmethod
    def _trend_strength(values: np.ndarray) -> float:
        """Regression slope normalized by 10% of the mean, capped at 1."""
        if len(values) < 2:
            return 0.0

        x = np.arange(len(values))
        avg_y = values.mean()
        denominator = ((x - x.mean()) ** 2).sum()
        if denominator == 0 or avg_y == 0:
            return 0.0

        slope = ((x - x.mean()) * (values - avg_y)).sum() / denominator
        return float(min(abs(slope) / (avg_y * 0.1), 1.0))

    def _anomaly_score(self, points: List[Dict[str, Any]]) -> float:
        if not points:
            return 0.0
        total = len(points)
        outlier_ratio = sum(1 for p in points if p.get("outlier_protocols")) / total
        high_ratio = sum(1 for p in points if p["max_deviation_percent"] > self.threshold_pct) / total
        return min((outlier_ratio + high_ratio) / 2, 1.0)

    @staticmethod
    def _recommendation(
        trend_direction: TrendDirection,
        trend_strength: float,
        avg_deviation: float,
        anomaly_score: float
    ) -> str:
        parts = []

        if anomaly_score > 0.7:
            parts.append("High anomaly detected. Investigate data sources immediately.")
        elif anomaly_score > 0.4:
            parts.append("Moderate anomalies observed. Monitor closely.")

        if trend_direction == TrendDirection.INCREASING and trend_strength > 0.5:
            parts.append("Deviation trend is increasing significantly.")

        if avg_deviation > 5:
            parts.append("Average deviation is very high (>5%).")
        elif avg_deviation > 1:
            parts.append("Average deviation is elevated (>1%).")

        if not parts:
            return "Price deviation is within normal ranges."
        return " ".join(parts)
