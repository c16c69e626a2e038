"""
Oracle Monitoring Thresholds and Justifications.

Every constant the analytics modules score or classify against lives here,
so changing a policy means editing one dict.

Each entry includes:
- value / weight: The numeric threshold or weight
- justification: Why this value was chosen
"""

# =============================================================================
# RELIABILITY SCORING
# =============================================================================

RELIABILITY_WEIGHTS = {
    "uptime": {
        "weight": 0.50,
        "justification": "An operator that is not online cannot report. Uptime dominates "
                        "because missed rounds directly delay feed updates."
    },
    "response_time": {
        "weight": 0.30,
        "justification": "Slow responders join OCR rounds late or not at all, which raises "
                        "round duration and the chance of a stale answer."
    },
    "feed_support": {
        "weight": 0.20,
        "justification": "Operators serving more feeds contribute to more aggregations. Lower "
                        "weight because breadth does not imply quality."
    },
}

# Response time (ms) -> component score, linearly interpolated between points
RESPONSE_TIME_THRESHOLDS = [
    {"response_time_ms": 0, "score": 100, "justification": "Instant response."},
    {"response_time_ms": 500, "score": 100, "justification": "Sub-500ms is healthy for node RPC round trips."},
    {"response_time_ms": 2000, "score": 60, "justification": "Up to 2s is degraded but still within OCR round deadlines."},
    {"response_time_ms": 5000, "score": 0, "justification": "5s+ misses typical OCR observation windows."},
]

RESPONSE_TIME_LEVELS = {
    "success": 500,
    "warning": 2000,
}

# Overall score changes smaller than this are reported as a stable trend
TREND_DEAD_BAND = 2.0

SCORE_LEVELS = {
    "excellent": {"min": 90, "color": "#22c55e"},
    "good": {"min": 70, "color": "#eab308"},
    "fair": {"min": 50, "color": "#f97316"},
    "poor": {"min": 0, "color": "#ef4444"},
}

PROTOCOL_RELIABILITY = {
    "freshness_weight": 0.5,
    "accuracy_weight": 0.5,
    # Each 1% average deviation from the cross-protocol median costs 10 points
    "deviation_penalty_per_pct": 10,
}

# =============================================================================
# UPDATE FREQUENCY
# =============================================================================

UPDATE_FREQUENCY = {
    "anomaly_multiplier": 3.0,
    "justification": "Healthy dAPIs update within roughly +/-20% of their baseline interval. "
                    "An interval three times the baseline means at least two expected updates "
                    "were missed.",
}

UPDATE_DELAY_THRESHOLDS_MS = {
    "warning": 2000,
    "critical": 3000,
}

# =============================================================================
# DEVIATION
# =============================================================================

DEVIATION_STATUS_RATIOS = {
    # fraction of the feed's deviation threshold already consumed
    "warning": 0.5,
    "critical": 1.0,
}

DEVIATION_ANALYTICS = {
    "analysis_window_hours": 24,
    "deviation_threshold": 0.01,  # fraction, 1%
    "min_data_points": 10,
    "anomaly_sigma": 2.0,
    "trend_change": 0.1,
    "max_report_anomalies": 50,
}

CROSS_PROTOCOL_OUTLIER_PCT = 1.0

# =============================================================================
# HEARTBEAT
# =============================================================================

HEARTBEAT_CRITICAL_MULTIPLIER = 2.0

# =============================================================================
# AIRNODE
# =============================================================================

AIRNODE_OFFLINE_AFTER_SECONDS = 600

# =============================================================================
# FEED HEALTH
# =============================================================================

DEFAULT_STALENESS_SECONDS = 3600
