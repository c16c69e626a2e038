"""
Database connection and utilities for oracle monitoring.

PostgreSQL stores metric history, the alert log, alert thresholds and the
feed registry. All tables live in SCHEMA_NAME with the TABLE_PREFIX prefix.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2.extras import RealDictCursor, execute_values

from ..config import DB_CONFIG, SCHEMA_NAME, TABLE_PREFIX

logger = logging.getLogger(__name__)


def table_name(name: str) -> str:
    """Get full table name with schema and prefix."""
    return f"{SCHEMA_NAME}.{TABLE_PREFIX}{name}"


@contextmanager
def get_connection():
    """
    Get a database connection as a context manager.

    Usage:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
    """
    conn = None
    try:
        conn = psycopg2.connect(**DB_CONFIG)
        yield conn
    finally:
        if conn:
            conn.close()


def execute_query(query: str, params: tuple = None, fetch: bool = True) -> Optional[List[Dict]]:
    """
    Execute a query and optionally fetch results.

    Returns:
        List of dicts if fetch=True, else None
    """
    with get_connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(query, params)
            if fetch:
                return [dict(row) for row in cur.fetchall()]
            conn.commit()
            return None


def _metadata_json(metadata: Optional[dict]) -> Optional[str]:
    return json.dumps(metadata, default=str) if metadata else None


def insert_metric(feed_id: str, metric_name: str, value: float,
                  chain: str = None, metadata: dict = None) -> int:
    """
    Insert a single metric record.

    Args:
        feed_id: Feed identifier from the registry (e.g., 'eth-usd-arbitrum')
        metric_name: Metric name (e.g., 'heartbeat_ratio')
        value: Metric value
        chain: Optional chain name
        metadata: Optional extra context, stored as JSONB

    Returns:
        Inserted row ID
    """
    query = f"""
        INSERT INTO {table_name('metrics_history')}
        (feed_id, metric_name, value, chain, metadata)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING id
    """

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(query, (feed_id, metric_name, value, chain, _metadata_json(metadata)))
            row_id = cur.fetchone()[0]
            conn.commit()
            return row_id


def insert_metrics_batch(metrics: List[Dict]) -> int:
    """
    Insert multiple metrics in a single transaction.

    Args:
        metrics: List of dicts with keys: feed_id, metric_name, value, chain, metadata

    Returns:
        Number of rows inserted
    """
    if not metrics:
        return 0

    query = f"""
        INSERT INTO {table_name('metrics_history')}
        (feed_id, metric_name, value, chain, metadata)
        VALUES %s
    """

    data = [
        (
            m["feed_id"],
            m["metric_name"],
            m["value"],
            m.get("chain"),
            _metadata_json(m.get("metadata"))
        )
        for m in metrics
    ]

    with get_connection() as conn:
        with conn.cursor() as cur:
            execute_values(cur, query, data)
            conn.commit()
            return len(data)


def get_latest_metric(feed_id: str, metric_name: str) -> Optional[Dict]:
    query = f"""
        SELECT * FROM {table_name('metrics_history')}
        WHERE feed_id = %s AND metric_name = %s
        ORDER BY recorded_at DESC
        LIMIT 1
    """
    results = execute_query(query, (feed_id, metric_name))
    return results[0] if results else None


def get_metric_history(feed_id: str, metric_name: str, limit: int = 100) -> List[Dict]:
    """Historical values for a metric, newest first."""
    query = f"""
        SELECT * FROM {table_name('metrics_history')}
        WHERE feed_id = %s AND metric_name = %s
        ORDER BY recorded_at DESC
        LIMIT %s
    """
    return execute_query(query, (feed_id, metric_name, limit))


def schema_statements() -> List[str]:
    """DDL for every monitoring table, safe to re-run."""
    return [
        f"""
        CREATE TABLE IF NOT EXISTS {table_name('feed_registry')} (
            id SERIAL PRIMARY KEY,
            feed_id VARCHAR(100) UNIQUE NOT NULL,
            protocol VARCHAR(20) NOT NULL,
            symbol VARCHAR(50) NOT NULL,
            chain VARCHAR(50) NOT NULL,
            config JSONB NOT NULL,
            enabled BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {table_name('metrics_history')} (
            id BIGSERIAL PRIMARY KEY,
            feed_id VARCHAR(100) NOT NULL,
            metric_name VARCHAR(100) NOT NULL,
            value NUMERIC NOT NULL,
            chain VARCHAR(50),
            metadata JSONB,
            recorded_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """,
        f"""
        CREATE INDEX IF NOT EXISTS {TABLE_PREFIX}metrics_feed_metric_idx
        ON {table_name('metrics_history')} (feed_id, metric_name, recorded_at DESC)
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {table_name('alert_thresholds')} (
            id SERIAL PRIMARY KEY,
            feed_id VARCHAR(100),
            metric_name VARCHAR(100) NOT NULL,
            operator VARCHAR(2) NOT NULL,
            threshold_value NUMERIC NOT NULL,
            severity VARCHAR(20) NOT NULL,
            enabled BOOLEAN NOT NULL DEFAULT true,
            UNIQUE (feed_id, metric_name, operator, threshold_value)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {table_name('alerts_log')} (
            id BIGSERIAL PRIMARY KEY,
            feed_id VARCHAR(100) NOT NULL,
            metric_name VARCHAR(100) NOT NULL,
            value NUMERIC NOT NULL,
            threshold_value NUMERIC NOT NULL,
            operator VARCHAR(2) NOT NULL,
            severity VARCHAR(20) NOT NULL,
            message TEXT,
            chain VARCHAR(50),
            notified BOOLEAN NOT NULL DEFAULT false,
            notification_channel VARCHAR(20),
            triggered_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """,
    ]


def init_schema() -> int:
    """
    Create the monitoring tables if they do not exist.

    Returns:
        Number of statements executed
    """
    statements = schema_statements()
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA_NAME}")
            for statement in statements:
                cur.execute(statement)
            conn.commit()

    logger.info(f"Initialized {len(statements)} schema objects in {SCHEMA_NAME}")
    return len(statements)


def check_connection() -> bool:
    """True if the monitoring database accepts a trivial query."""
    try:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                return True
    except psycopg2.Error as e:
        logger.error(f"Database connection failed: {e}")
        return False
