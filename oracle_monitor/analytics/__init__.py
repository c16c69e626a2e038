"""
Oracle analytics: scoring, anomaly detection and comparisons over fetched data.
"""

from .reliability import (
    calculate_reliability_score,
    score_operators,
    rank_operators,
    get_score_level,
    get_score_color,
    calculate_protocol_reliability,
)
from .frequency import (
    detect_update_frequency_anomalies,
    classify_update_delay,
    summarize_update_events,
)
from .deviation import (
    calculate_deviation_pct,
    classify_deviation,
    compute_deviation_triggers,
    summarize_deviation_triggers,
    build_deviation_point,
    PriceDeviationAnalytics,
)
from .heartbeat import (
    heartbeat_status,
    build_heartbeat_alerts,
    sort_alerts_by_severity,
    summarize_heartbeats,
)
from .gas import calculate_cost, analyze_gas_costs
from .cross_chain import compare_chains, calculate_cross_chain_lag, price_history_divergence
from .ocr import analyze_ocr_rounds
from .api3 import filter_dapis, is_beacon_set, airnode_online, summarize_airnode

__all__ = [
    "calculate_reliability_score",
    "score_operators",
    "rank_operators",
    "get_score_level",
    "get_score_color",
    "calculate_protocol_reliability",
    "detect_update_frequency_anomalies",
    "classify_update_delay",
    "summarize_update_events",
    "calculate_deviation_pct",
    "classify_deviation",
    "compute_deviation_triggers",
    "summarize_deviation_triggers",
    "build_deviation_point",
    "PriceDeviationAnalytics",
    "heartbeat_status",
    "build_heartbeat_alerts",
    "sort_alerts_by_severity",
    "summarize_heartbeats",
    "calculate_cost",
    "analyze_gas_costs",
    "compare_chains",
    "calculate_cross_chain_lag",
    "price_history_divergence",
    "analyze_ocr_rounds",
    "filter_dapis",
    "is_beacon_set",
    "airnode_online",
    "summarize_airnode",
]
