"""
dAPI Update Frequency Analysis.

Turns a series of on-chain update timestamps into interval statistics and
flags gaps that are far longer than the feed's normal cadence.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..models import (
    DelayStatus,
    PriceUpdateEvent,
    UpdateFrequencyStats,
    UpdateIntervalPoint,
    to_datetime,
)
from .thresholds import UPDATE_DELAY_THRESHOLDS_MS, UPDATE_FREQUENCY

logger = logging.getLogger(__name__)


def detect_update_frequency_anomalies(
    timestamps: list,
    dapi_name: str,
    chain: str,
    expected_interval_ms: Optional[float] = None,
    multiplier: float = UPDATE_FREQUENCY["anomaly_multiplier"]
) -> Tuple[UpdateFrequencyStats, List[UpdateIntervalPoint]]:
    """
    Compute update interval statistics and flag anomalous gaps.

    An interval is anomalous when it exceeds multiplier x baseline, where
    the baseline is expected_interval_ms if given, else the median interval.

    Args:
        timestamps: Update times (datetimes, unix seconds/ms or ISO strings)
        dapi_name: dAPI name for the stats record
        chain: Chain name for the stats record
        expected_interval_ms: Known heartbeat cadence, if any
        multiplier: Baseline multiple above which a gap is anomalous

    Returns:
        Tuple of (UpdateFrequencyStats, interval points in time order)
    """
    if multiplier <= 0:
        raise ValueError("multiplier must be positive")

    times = sorted(to_datetime(ts) for ts in timestamps if ts is not None)

    if len(times) < 2:
        return (
            UpdateFrequencyStats(
                dapi_name=dapi_name,
                chain=chain,
                avg_update_interval_ms=0,
                min_update_interval_ms=0,
                max_update_interval_ms=0,
                update_count=len(times),
                last_update_time=times[-1] if times else None,
                anomaly_detected=False,
            ),
            [],
        )

    intervals = np.array([
        (later - earlier).total_seconds() * 1000
        for earlier, later in zip(times, times[1:])
    ])

    baseline = expected_interval_ms if expected_interval_ms else float(np.median(intervals))
    limit = baseline * multiplier
    # A zero median (several updates in one block) flags every real gap
    anomalies = intervals > limit

    points = [
        UpdateIntervalPoint(
            timestamp=timestamp,
            interval_ms=int(round(interval)),
            is_anomaly=bool(flag),
        )
        for timestamp, interval, flag in zip(times[1:], intervals, anomalies)
    ]

    anomaly_count = int(anomalies.sum())
    if anomaly_count:
        logger.info(f"{dapi_name} on {chain}: {anomaly_count} update gaps above {limit:.0f}ms")

    stats = UpdateFrequencyStats(
        dapi_name=dapi_name,
        chain=chain,
        avg_update_interval_ms=int(round(intervals.mean())),
        min_update_interval_ms=int(round(intervals.min())),
        max_update_interval_ms=int(round(intervals.max())),
        update_count=len(times),
        last_update_time=times[-1],
        anomaly_detected=anomaly_count > 0,
        anomaly_count=anomaly_count,
        anomaly_reason=f"{anomaly_count} anomalies detected" if anomaly_count else None,
    )
    return stats, points


def classify_update_delay(delay_ms: float) -> DelayStatus:
    """Classify the lag between a source price change and its on-chain update."""
    if delay_ms < 0:
        raise ValueError("delay_ms must be non-negative")
    if delay_ms <= UPDATE_DELAY_THRESHOLDS_MS["warning"]:
        return DelayStatus.NORMAL
    if delay_ms <= UPDATE_DELAY_THRESHOLDS_MS["critical"]:
        return DelayStatus.WARNING
    return DelayStatus.CRITICAL


def summarize_update_events(events: List[PriceUpdateEvent]) -> Dict:
    """
    Summarize a stream of price update events.

    Status is re-derived from update_delay_ms so stale API labels do not
    skew the counts.
    """
    if not events:
        return {
            "total_events": 0,
            "avg_delay_ms": 0.0,
            "max_delay_ms": 0.0,
            "warning_count": 0,
            "critical_count": 0,
        }

    delays = np.array([event.update_delay_ms for event in events], dtype=float)
    statuses = [classify_update_delay(delay) for delay in delays]

    return {
        "total_events": len(events),
        "avg_delay_ms": float(delays.mean()),
        "max_delay_ms": float(delays.max()),
        "warning_count": statuses.count(DelayStatus.WARNING),
        "critical_count": statuses.count(DelayStatus.CRITICAL),
    }
