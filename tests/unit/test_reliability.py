"""
Unit tests for operator and protocol reliability scoring.
"""

import pytest

from oracle_monitor.analytics.reliability import (
    calculate_protocol_reliability,
    calculate_reliability_score,
    feed_support_score,
    get_score_color,
    get_score_level,
    interpolate_score,
    rank_operators,
    response_time_level,
    response_time_score,
    score_operators,
)
from oracle_monitor.analytics.thresholds import RESPONSE_TIME_THRESHOLDS
from oracle_monitor.models import Trend


class TestInterpolateScore:

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_below_first_point_uses_first_score(self):
        score, justification = interpolate_score(-10, RESPONSE_TIME_THRESHOLDS, "response_time_ms")
        assert score == 100
        assert justification == "Instant response."

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_midpoint_is_linear(self):
        score, justification = interpolate_score(1250, RESPONSE_TIME_THRESHOLDS, "response_time_ms")
        assert score == pytest.approx(80.0)
        assert "between thresholds 500" in justification

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_unsorted_thresholds_are_sorted(self):
        thresholds = [{"x": 10, "score": 0}, {"x": 0, "score": 100}]
        score, _ = interpolate_score(5, thresholds, "x")
        assert score == pytest.approx(50.0)


class TestResponseTime:

    @pytest.mark.unit
    @pytest.mark.scoring
    @pytest.mark.parametrize("response_time_ms,expected", [
        (0, 100.0),
        (500, 100.0),
        (2000, 60.0),
        (3500, 30.0),
        (5000, 0.0),
        (10000, 0.0),
    ])
    def test_response_time_score(self, response_time_ms, expected):
        assert response_time_score(response_time_ms) == pytest.approx(expected)

    @pytest.mark.unit
    @pytest.mark.parametrize("response_time_ms,expected", [
        (200, "success"),
        (500, "success"),
        (1500, "warning"),
        (2500, "danger"),
    ])
    def test_response_time_level(self, response_time_ms, expected):
        assert response_time_level(response_time_ms) == expected


class TestCalculateReliabilityScore:

    @pytest.mark.unit
    @pytest.mark.scoring
    @pytest.mark.smoke
    def test_perfect_operator(self):
        score = calculate_reliability_score(100, 300, 10, 10)
        assert score.overall == 100
        assert score.trend == Trend.STABLE

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_weighted_blend(self):
        # 0.5 * 90 + 0.3 * 60 + 0.2 * 50
        score = calculate_reliability_score(90, 2000, 5, 10)
        assert score.overall == 73
        assert score.uptime == 90.0
        assert score.response_time == pytest.approx(60.0)
        assert score.feed_support == 50.0

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_overall_is_integer_and_bounded(self):
        score = calculate_reliability_score(150, 0, 20, 10)
        assert isinstance(score.overall, int)
        assert score.overall == 100
        assert score.uptime == 100.0
        assert score.feed_support == 100.0

    @pytest.mark.unit
    @pytest.mark.scoring
    @pytest.mark.parametrize("previous,expected", [
        (None, Trend.STABLE),
        (70, Trend.UP),
        (72, Trend.STABLE),
        (80, Trend.DOWN),
    ])
    def test_trend_against_previous_score(self, previous, expected):
        score = calculate_reliability_score(90, 2000, 5, 10, previous_overall=previous)
        assert score.trend == expected

    @pytest.mark.unit
    def test_negative_response_time_rejected(self):
        with pytest.raises(ValueError):
            calculate_reliability_score(99, -1, 5, 10)

    @pytest.mark.unit
    def test_negative_feed_count_rejected(self):
        with pytest.raises(ValueError):
            calculate_reliability_score(99, 100, -1, 10)

    @pytest.mark.unit
    def test_no_feeds_in_network(self):
        assert feed_support_score(3, 0) == 0.0


class TestOperators:

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_score_operators_attaches_scores(self, operators):
        scored = score_operators(operators)

        by_name = {op.name: op.reliability_score for op in scored}
        assert by_name["Alpha Nodes"].overall == 100
        assert 75 <= by_name["Beta Oracle"].overall <= 76
        assert by_name["Gamma Labs"].overall == 70
        # broadest operator defines the network total
        assert by_name["Gamma Labs"].feed_support == 100.0
        assert by_name["Beta Oracle"].feed_support == 50.0

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_previous_scores_drive_trend(self, operators):
        scored = score_operators(operators, previous_scores={"Gamma Labs": 90})
        gamma = next(op for op in scored if op.name == "Gamma Labs")
        assert gamma.reliability_score.trend == Trend.DOWN

    @pytest.mark.unit
    def test_rank_puts_offline_last(self, operators):
        ranked = rank_operators(score_operators(operators))
        assert [op.name for op in ranked] == ["Alpha Nodes", "Beta Oracle", "Gamma Labs"]

    @pytest.mark.unit
    def test_rank_handles_unscored(self, operators):
        ranked = rank_operators(operators)
        assert ranked[-1].name == "Gamma Labs"


class TestScoreLevels:

    @pytest.mark.unit
    @pytest.mark.parametrize("score,level", [
        (95, "excellent"),
        (90, "excellent"),
        (70, "good"),
        (69, "fair"),
        (50, "fair"),
        (10, "poor"),
    ])
    def test_get_score_level(self, score, level):
        assert get_score_level(score) == level

    @pytest.mark.unit
    def test_get_score_color(self):
        assert get_score_color(95) == "#22c55e"
        assert get_score_color(0) == "#ef4444"


class TestProtocolReliability:

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_freshness_and_accuracy(self):
        result = calculate_protocol_reliability(100, 10, 1.0)
        assert result["freshness_score"] == pytest.approx(90.0)
        assert result["accuracy_score"] == pytest.approx(90.0)
        assert result["reliability_score"] == 90

    @pytest.mark.unit
    def test_large_deviation_floors_accuracy(self):
        result = calculate_protocol_reliability(10, 0, 25.0)
        assert result["accuracy_score"] == 0.0
        assert result["reliability_score"] == 50

    @pytest.mark.unit
    def test_no_updates(self):
        assert calculate_protocol_reliability(0, 0, 0)["freshness_score"] == 0.0

    @pytest.mark.unit
    def test_stale_above_total_rejected(self):
        with pytest.raises(ValueError):
            calculate_protocol_reliability(5, 6, 0)
