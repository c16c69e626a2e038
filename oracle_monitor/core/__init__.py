"""Core monitoring components."""

from .db import (
    get_connection,
    execute_query,
    insert_metric,
    insert_metrics_batch,
    get_latest_metric,
    get_metric_history,
    init_schema,
    table_name
)

from .registry import FeedRegistry, load_all_configs_from_directory

from .dispatcher import (
    dispatch_critical,
    dispatch_high,
    dispatch_all
)

from .alerts import (
    DEFAULT_THRESHOLDS,
    check_threshold,
    check_alerts_for_metrics,
    check_metric_against_thresholds,
    get_recent_alerts,
    get_unnotified_alerts,
    mark_alerts_notified,
    add_custom_threshold,
    seed_default_thresholds
)

__all__ = [
    # Database
    "get_connection",
    "execute_query",
    "insert_metric",
    "insert_metrics_batch",
    "get_latest_metric",
    "get_metric_history",
    "init_schema",
    "table_name",
    # Registry
    "FeedRegistry",
    "load_all_configs_from_directory",
    # Dispatcher
    "dispatch_critical",
    "dispatch_high",
    "dispatch_all",
    # Alerts
    "DEFAULT_THRESHOLDS",
    "check_threshold",
    "check_alerts_for_metrics",
    "check_metric_against_thresholds",
    "get_recent_alerts",
    "get_unnotified_alerts",
    "mark_alerts_notified",
    "add_custom_threshold",
    "seed_default_thresholds",
]
