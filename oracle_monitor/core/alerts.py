"""
Alert System - Check metrics against thresholds and log breaches.

Only breaches are logged; passing metrics leave no trace in alerts_log.
Thresholds are global (feed_id NULL) or feed-specific.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

import psycopg2

from .db import execute_query, get_connection, table_name

logger = logging.getLogger(__name__)


# Operator mapping for threshold comparisons
OPERATORS = {
    '<': lambda v, t: v < t,
    '>': lambda v, t: v > t,
    '<=': lambda v, t: v <= t,
    '>=': lambda v, t: v >= t,
    '=': lambda v, t: v == t,
}

SEVERITY_RANK = {"critical": 0, "warning": 1, "info": 2}

# Global thresholds seeded by seed_default_thresholds()
DEFAULT_THRESHOLDS = [
    {
        "metric_name": "heartbeat_ratio",
        "operator": ">",
        "threshold_value": 1.0,
        "severity": "warning",
        "justification": "No update within one heartbeat: the feed has missed its forced update."
    },
    {
        "metric_name": "heartbeat_ratio",
        "operator": ">",
        "threshold_value": 2.0,
        "severity": "critical",
        "justification": "Two heartbeats without an update: consumers are reading a stale price."
    },
    {
        "metric_name": "oracle_price",
        "operator": "<=",
        "threshold_value": 0,
        "severity": "critical",
        "justification": "A zero or negative answer is never a valid price."
    },
    {
        "metric_name": "price_change_pct",
        "operator": ">=",
        "threshold_value": 5.0,
        "severity": "warning",
        "justification": "A 5% move in one round is far above typical 0.5-1% deviation thresholds."
    },
    {
        "metric_name": "price_change_pct",
        "operator": ">=",
        "threshold_value": 10.0,
        "severity": "critical",
        "justification": "A 10% jump in one round suggests a manipulated or broken source."
    },
    {
        "metric_name": "ocr_round_duration_seconds",
        "operator": ">",
        "threshold_value": 60,
        "severity": "warning",
        "justification": "OCR rounds normally settle within seconds; a minute means slow observers."
    },
    {
        "metric_name": "ocr_stale_rounds",
        "operator": ">",
        "threshold_value": 0,
        "severity": "warning",
        "justification": "answeredInRound < roundId means a round carried a previous answer."
    },
]


def check_threshold(value: float, operator: str, threshold: float) -> bool:
    """
    Check if a value breaches a threshold.

    Unknown operators never breach.
    """
    if operator not in OPERATORS:
        logger.warning(f"Unknown threshold operator: {operator!r}")
        return False
    return OPERATORS[operator](value, threshold)


def evaluate_thresholds(value: float, thresholds: List[Dict]) -> List[Dict]:
    """Thresholds breached by value, most severe first."""
    breached = [
        t for t in thresholds
        if check_threshold(value, t["operator"], float(t["threshold_value"]))
    ]
    return sorted(breached, key=lambda t: SEVERITY_RANK.get(t["severity"], len(SEVERITY_RANK)))


def get_thresholds_for_metric(metric_name: str, feed_id: str = None) -> List[Dict]:
    query = f"""
        SELECT id, feed_id, metric_name, operator, threshold_value, severity
        FROM {table_name('alert_thresholds')}
        WHERE enabled = true
          AND metric_name = %s
          AND (feed_id IS NULL OR feed_id = %s)
    """
    return execute_query(query, (metric_name, feed_id))


def build_alert_message(feed_id: str, metric_name: str, value: float,
                        operator: str, threshold_value: float, severity: str,
                        chain: str = None) -> str:
    message = f"{feed_id} {metric_name}"
    if chain:
        message += f" ({chain})"
    return message + f": {value:.4f} {operator} {threshold_value} [{severity}]"


def log_alert(
    feed_id: str,
    metric_name: str,
    value: float,
    threshold_value: float,
    operator: str,
    severity: str,
    message: str = None,
    chain: str = None
) -> int:
    """Insert a breach into alerts_log and return its ID."""
    query = f"""
        INSERT INTO {table_name('alerts_log')}
        (feed_id, metric_name, value, threshold_value, operator, severity, message, chain)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING id
    """

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(query, (
                feed_id, metric_name, value,
                threshold_value, operator, severity, message, chain
            ))
            alert_id = cur.fetchone()[0]
            conn.commit()
            return alert_id


def check_metric_against_thresholds(
    feed_id: str,
    metric_name: str,
    value: float,
    chain: str = None
) -> List[Dict]:
    """
    Check a single metric against all applicable thresholds.

    Returns:
        List of triggered alerts (empty if none)
    """
    triggered_alerts = []

    thresholds = get_thresholds_for_metric(metric_name, feed_id)

    for threshold in evaluate_thresholds(value, thresholds):
        operator = threshold["operator"]
        threshold_value = float(threshold["threshold_value"])
        severity = threshold["severity"]
        message = build_alert_message(
            feed_id, metric_name, value, operator, threshold_value, severity, chain
        )

        alert_id = log_alert(
            feed_id=feed_id,
            metric_name=metric_name,
            value=value,
            threshold_value=threshold_value,
            operator=operator,
            severity=severity,
            message=message,
            chain=chain
        )

        triggered_alerts.append({
            "id": alert_id,
            "feed_id": feed_id,
            "metric_name": metric_name,
            "value": value,
            "threshold_value": threshold_value,
            "operator": operator,
            "severity": severity,
            "message": message,
            "chain": chain,
            "triggered_at": datetime.now(timezone.utc).isoformat()
        })

    return triggered_alerts


def check_alerts_for_metrics(metrics: List[Dict]) -> List[Dict]:
    """
    Check a batch of metrics against thresholds.

    A failure on one metric is logged and does not stop the batch.
    """
    all_alerts = []

    for metric in metrics:
        feed_id = metric.get("feed_id", "UNKNOWN")
        metric_name = metric.get("metric_name")
        value = metric.get("value")

        if metric_name is None or value is None:
            continue

        try:
            all_alerts.extend(check_metric_against_thresholds(
                feed_id=feed_id,
                metric_name=metric_name,
                value=float(value),
                chain=metric.get("chain")
            ))
        except (psycopg2.Error, ValueError) as e:
            logger.error(f"Alert check error for {feed_id}/{metric_name}: {e}")

    return all_alerts


def get_recent_alerts(hours: int = 24, severity: str = None) -> List[Dict]:
    query = f"""
        SELECT *
        FROM {table_name('alerts_log')}
        WHERE triggered_at > NOW() - %s * INTERVAL '1 hour'
    """
    params = [hours]

    if severity:
        query += " AND severity = %s"
        params.append(severity)

    query += " ORDER BY triggered_at DESC"
    return execute_query(query, tuple(params))


def get_unnotified_alerts() -> List[Dict]:
    """Alerts not yet sent anywhere, critical first, oldest first."""
    query = f"""
        SELECT *
        FROM {table_name('alerts_log')}
        WHERE notified = false
        ORDER BY
            CASE severity
                WHEN 'critical' THEN 1
                WHEN 'warning' THEN 2
                ELSE 3
            END,
            triggered_at ASC
    """
    return execute_query(query)


def mark_alerts_notified(alert_ids: List[int], channel: str = "slack") -> int:
    if not alert_ids:
        return 0

    placeholders = ",".join(["%s"] * len(alert_ids))
    query = f"""
        UPDATE {table_name('alerts_log')}
        SET notified = true, notification_channel = %s
        WHERE id IN ({placeholders})
    """

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(query, (channel, *alert_ids))
            conn.commit()
            return cur.rowcount


def add_custom_threshold(
    metric_name: str,
    operator: str,
    threshold_value: float,
    severity: str,
    feed_id: str = None
) -> Optional[int]:
    """
    Add an alert threshold; global when feed_id is None.

    Returns:
        Inserted threshold ID, or None if an identical threshold exists
    """
    if operator not in OPERATORS:
        raise ValueError(f"Unknown operator {operator!r}, expected one of {list(OPERATORS)}")
    if severity not in SEVERITY_RANK:
        raise ValueError(f"Unknown severity {severity!r}")

    query = f"""
        INSERT INTO {table_name('alert_thresholds')}
        (feed_id, metric_name, operator, threshold_value, severity)
        VALUES (%s, %s, %s, %s, %s)
        ON CONFLICT DO NOTHING
        RETURNING id
    """

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(query, (feed_id, metric_name, operator, threshold_value, severity))
            result = cur.fetchone()
            conn.commit()
            return result[0] if result else None


def seed_default_thresholds() -> int:
    """Insert DEFAULT_THRESHOLDS; returns how many were new."""
    added = 0
    for threshold in DEFAULT_THRESHOLDS:
        threshold_id = add_custom_threshold(
            metric_name=threshold["metric_name"],
            operator=threshold["operator"],
            threshold_value=threshold["threshold_value"],
            severity=threshold["severity"],
        )
        if threshold_id is not None:
            added += 1
    return added
