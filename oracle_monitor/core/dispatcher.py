"""
Metric Dispatcher - Routes feeds to protocol fetchers by frequency category.

Frequency Categories:
- Critical (5 min): oracle freshness, heartbeat ratio, price change
- High (30 min): OCR round duration, stale rounds
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from ..config import FREQUENCY_CONFIG
from ..fetchers.api3 import fetch_api3_metrics
from ..fetchers.chainlink import fetch_chainlink_metrics, fetch_ocr_round_metrics
from .alerts import check_alerts_for_metrics
from .db import insert_metrics_batch
from .registry import FeedRegistry

logger = logging.getLogger(__name__)

# frequency -> protocol -> fetcher
FETCHERS: Dict[str, Dict[str, Callable[[Dict], Dict]]] = {
    "critical": {
        "chainlink": fetch_chainlink_metrics,
        "api3": fetch_api3_metrics,
    },
    "high": {
        "chainlink": fetch_ocr_round_metrics,
    },
}


def _new_result(frequency: str) -> Dict[str, Any]:
    return {
        "frequency": frequency,
        "interval_minutes": FREQUENCY_CONFIG.get(frequency),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "feeds_processed": 0,
        "metrics_collected": 0,
        "alerts_triggered": 0,
        "errors": []
    }


def _run_dispatch(frequency: str, feed_configs: List[Dict] = None) -> Dict[str, Any]:
    """
    Fetch, store and alert on every feed for one frequency.

    Per-feed failures are recorded in result["errors"] and never raised.
    """
    result = _new_result(frequency)
    fetchers = FETCHERS[frequency]

    if feed_configs is None:
        feeds = FeedRegistry.get_all_feeds(enabled_only=True)
        feed_configs = [f["config"] for f in feeds]

    all_metrics = []

    for config in feed_configs:
        feed_id = config.get("feed_id", "UNKNOWN")
        fetcher = fetchers.get(config.get("protocol"))
        if fetcher is None:
            continue

        result["feeds_processed"] += 1

        try:
            fetch_result = fetcher(config)
        except Exception as e:
            logger.exception(f"{frequency} dispatch failed for {feed_id}")
            result["errors"].append(f"{feed_id}: {e}")
            continue

        if fetch_result.get("status") in ("success", "partial"):
            all_metrics.extend(fetch_result.get("metrics", []))
        if fetch_result.get("error"):
            result["errors"].append(f"{feed_id}: {fetch_result['error']}")

    if all_metrics:
        try:
            result["metrics_collected"] = insert_metrics_batch(all_metrics)
            alerts = check_alerts_for_metrics(all_metrics)
            result["alerts_triggered"] = len(alerts)
        except Exception as e:
            logger.exception("Failed to store metrics")
            result["errors"].append(f"DB insert error: {e}")

    logger.info(
        f"{frequency}: {result['feeds_processed']} feeds, "
        f"{result['metrics_collected']} metrics, {result['alerts_triggered']} alerts, "
        f"{len(result['errors'])} errors"
    )
    return result


def dispatch_critical(feed_configs: List[Dict] = None) -> Dict[str, Any]:
    """
    Dispatch critical frequency metrics (5 min interval).

    Metrics: oracle freshness, heartbeat ratio, oracle price, price change

    Args:
        feed_configs: Optional list of feed configs. If None, reads the registry.
    """
    return _run_dispatch("critical", feed_configs)


def dispatch_high(feed_configs: List[Dict] = None) -> Dict[str, Any]:
    """
    Dispatch high frequency metrics (30 min interval).

    Metrics: OCR round duration, stale rounds, max answer change
    """
    return _run_dispatch("high", feed_configs)


DISPATCHERS = {
    "critical": dispatch_critical,
    "high": dispatch_high,
}


def dispatch_all(feed_configs: List[Dict] = None) -> Dict[str, Any]:
    """Run every dispatcher once; useful for manual runs."""
    results = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "frequencies": {}
    }

    for name, dispatcher in DISPATCHERS.items():
        try:
            results["frequencies"][name] = dispatcher(feed_configs)
        except Exception as e:
            logger.exception(f"{name} dispatcher failed")
            results["frequencies"][name] = {"error": str(e)}

    return results
