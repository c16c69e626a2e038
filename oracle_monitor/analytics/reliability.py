"""
Operator and Protocol Reliability Scoring.

Blends uptime, response time and feed support into a 0-100 reliability
score for node operators, and freshness/accuracy into a 0-100 score for a
whole oracle protocol.
"""

from typing import Dict, List, Optional, Tuple

from ..models import Operator, ReliabilityScore, Trend
from .thresholds import (
    PROTOCOL_RELIABILITY,
    RELIABILITY_WEIGHTS,
    RESPONSE_TIME_LEVELS,
    RESPONSE_TIME_THRESHOLDS,
    SCORE_LEVELS,
    TREND_DEAD_BAND,
)


def _clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    return max(lower, min(upper, value))


def interpolate_score(value: float, thresholds: list, value_key: str) -> Tuple[float, str]:
    """
    Interpolate a score between thresholds.

    Args:
        value: The metric value
        thresholds: List of threshold dicts with value_key and 'score'
        value_key: Key name for the threshold value (e.g., 'response_time_ms')

    Returns:
        Tuple of (score, justification)
    """
    sorted_thresholds = sorted(thresholds, key=lambda x: x[value_key])

    if value <= sorted_thresholds[0][value_key]:
        t = sorted_thresholds[0]
        return (t["score"], t.get("justification", ""))

    if value >= sorted_thresholds[-1][value_key]:
        t = sorted_thresholds[-1]
        return (t["score"], t.get("justification", ""))

    for lower, upper in zip(sorted_thresholds, sorted_thresholds[1:]):
        if lower[value_key] <= value <= upper[value_key]:
            range_val = upper[value_key] - lower[value_key]
            if range_val == 0:
                return (lower["score"], lower.get("justification", ""))
            ratio = (value - lower[value_key]) / range_val
            score = lower["score"] + ratio * (upper["score"] - lower["score"])
            justification = (
                f"Value {value:.2f} between thresholds {lower[value_key]} (score {lower['score']}) "
                f"and {upper[value_key]} (score {upper['score']})"
            )
            return (score, justification)

    raise ValueError(f"Unable to interpolate {value} against {value_key} thresholds")


def response_time_score(response_time_ms: float) -> float:
    score, _ = interpolate_score(response_time_ms, RESPONSE_TIME_THRESHOLDS, "response_time_ms")
    return _clamp(score)


def response_time_level(response_time_ms: float) -> str:
    """'success', 'warning' or 'danger' for a response time."""
    if response_time_ms <= RESPONSE_TIME_LEVELS["success"]:
        return "success"
    if response_time_ms <= RESPONSE_TIME_LEVELS["warning"]:
        return "warning"
    return "danger"


def feed_support_score(supported_feeds: int, total_feeds: int) -> float:
    if total_feeds <= 0:
        return 0.0
    return _clamp(supported_feeds / total_feeds * 100)


def score_trend(overall: float, previous_overall: Optional[float]) -> Trend:
    if previous_overall is None:
        return Trend.STABLE
    change = overall - previous_overall
    if change > TREND_DEAD_BAND:
        return Trend.UP
    if change < -TREND_DEAD_BAND:
        return Trend.DOWN
    return Trend.STABLE


def calculate_reliability_score(
    uptime: float,
    response_time_ms: float,
    supported_feeds: int,
    total_feeds: int,
    previous_overall: Optional[float] = None
) -> ReliabilityScore:
    """
    Calculate an operator's reliability score.

    Formula:
        overall = 0.5 * uptime + 0.3 * response_time_score + 0.2 * feed_support

    Args:
        uptime: Uptime percentage (0-100)
        response_time_ms: Average response time in milliseconds
        supported_feeds: Number of feeds the operator serves
        total_feeds: Number of feeds in the network
        previous_overall: Last overall score, used for the trend

    Returns:
        ReliabilityScore with rounded component scores
    """
    if response_time_ms < 0:
        raise ValueError("response_time_ms must be non-negative")
    if supported_feeds < 0:
        raise ValueError("supported_feeds must be non-negative")

    components = {
        "uptime": _clamp(uptime),
        "response_time": response_time_score(response_time_ms),
        "feed_support": feed_support_score(supported_feeds, total_feeds),
    }

    overall = sum(
        components[name] * RELIABILITY_WEIGHTS[name]["weight"]
        for name in components
    )
    overall = round(_clamp(overall))

    return ReliabilityScore(
        overall=overall,
        uptime=round(components["uptime"], 1),
        response_time=round(components["response_time"], 1),
        feed_support=round(components["feed_support"], 1),
        trend=score_trend(overall, previous_overall),
    )


def score_operators(
    operators: List[Operator],
    previous_scores: Dict[str, float] = None
) -> List[Operator]:
    """
    Attach a reliability score to each operator.

    The network feed total is the largest supported-feed count seen, so the
    broadest operator gets a full feed-support component.
    """
    previous_scores = previous_scores or {}
    total_feeds = max((len(op.supported_feeds) for op in operators), default=0)

    for operator in operators:
        operator.reliability_score = calculate_reliability_score(
            uptime=operator.uptime,
            response_time_ms=operator.response_time_ms,
            supported_feeds=len(operator.supported_feeds),
            total_feeds=total_feeds,
            previous_overall=previous_scores.get(operator.name),
        )
    return operators


def rank_operators(operators: List[Operator]) -> List[Operator]:
    """Online operators first, then by overall reliability descending."""
    def sort_key(op: Operator):
        overall = op.reliability_score.overall if op.reliability_score else -1
        return (not op.online, -overall, op.name)

    return sorted(operators, key=sort_key)


def get_score_level(score: float) -> str:
    for level, config in SCORE_LEVELS.items():
        if score >= config["min"]:
            return level
    return "poor"


def get_score_color(score: float) -> str:
    return SCORE_LEVELS[get_score_level(score)]["color"]


def calculate_protocol_reliability(
    total_updates: int,
    stale_updates: int,
    avg_deviation_pct: float
) -> Dict[str, float]:
    """
    Score an oracle protocol on freshness and accuracy.

    freshness = share of non-stale updates
    accuracy = 100 - 10 * average deviation from the cross-protocol median (%)

    Returns:
        dict with freshness_score, accuracy_score and reliability_score (0-100)
    """
    if stale_updates > total_updates:
        raise ValueError("stale_updates cannot exceed total_updates")

    freshness = (total_updates - stale_updates) / total_updates * 100 if total_updates > 0 else 0.0
    accuracy = max(0.0, 100 - abs(avg_deviation_pct) * PROTOCOL_RELIABILITY["deviation_penalty_per_pct"])
    reliability = (
        freshness * PROTOCOL_RELIABILITY["freshness_weight"]
        + accuracy * PROTOCOL_RELIABILITY["accuracy_weight"]
    )

    return {
        "freshness_score": freshness,
        "accuracy_score": accuracy,
        "reliability_score": round(_clamp(reliability)),
    }
