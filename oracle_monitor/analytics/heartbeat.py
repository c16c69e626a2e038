"""
Feed heartbeat monitoring.

A feed must post an update at least once per heartbeat even when the price
is flat. Past one heartbeat it is in timeout; past the critical multiple it
is considered down.
"""

from datetime import datetime, timezone
from typing import Dict, List

from ..models import ChainlinkFeed, HeartbeatAlert, HeartbeatStatus, to_datetime
from .thresholds import HEARTBEAT_CRITICAL_MULTIPLIER

SEVERITY_ORDER = {
    HeartbeatStatus.CRITICAL: 0,
    HeartbeatStatus.TIMEOUT: 1,
    HeartbeatStatus.ACTIVE: 2,
}


def _elapsed(last_update, now: datetime = None) -> float:
    now = to_datetime(now) if now is not None else datetime.now(timezone.utc)
    return max(0.0, (now - to_datetime(last_update)).total_seconds())


def elapsed_seconds(last_update, now: datetime = None) -> int:
    """Whole seconds since last_update, for display."""
    return int(_elapsed(last_update, now))


def heartbeat_status(heartbeat_seconds: int, last_update, now: datetime = None) -> HeartbeatStatus:
    if heartbeat_seconds <= 0:
        raise ValueError(f"heartbeat_seconds must be positive, got {heartbeat_seconds}")

    elapsed = _elapsed(last_update, now)

    if elapsed <= heartbeat_seconds:
        return HeartbeatStatus.ACTIVE
    if elapsed <= heartbeat_seconds * HEARTBEAT_CRITICAL_MULTIPLIER:
        return HeartbeatStatus.TIMEOUT
    return HeartbeatStatus.CRITICAL


def build_heartbeat_alerts(feeds: List[ChainlinkFeed], now: datetime = None) -> List[HeartbeatAlert]:
    """One alert record per feed with a known last update; others are skipped."""
    now = to_datetime(now) if now is not None else datetime.now(timezone.utc)
    alerts = []

    for feed in feeds:
        if feed.last_updated_at is None:
            continue
        alerts.append(HeartbeatAlert(
            symbol=feed.symbol,
            chain=feed.chain,
            heartbeat=feed.heartbeat_seconds,
            last_update=feed.last_updated_at,
            status=heartbeat_status(feed.heartbeat_seconds, feed.last_updated_at, now),
            elapsed_seconds=elapsed_seconds(feed.last_updated_at, now),
        ))

    return sort_alerts_by_severity(alerts)


def sort_alerts_by_severity(alerts: List[HeartbeatAlert]) -> List[HeartbeatAlert]:
    """Critical first, then timeout, then active; longest elapsed first within a status."""
    return sorted(alerts, key=lambda a: (SEVERITY_ORDER[a.status], -a.elapsed_seconds))


def summarize_heartbeats(alerts: List[HeartbeatAlert]) -> Dict[str, int]:
    summary = {"total": len(alerts)}
    for status in HeartbeatStatus:
        summary[status.value] = sum(1 for a in alerts if a.status == status)
    return summary
