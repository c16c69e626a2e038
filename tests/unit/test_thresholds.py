"""
Unit tests for the analytics threshold definitions.

Validates that weights sum to 1.0 and that every ladder is ordered so the
scoring and classification code can rely on it.
"""

import pytest

from oracle_monitor.analytics.thresholds import (
    DEVIATION_ANALYTICS,
    DEVIATION_STATUS_RATIOS,
    PROTOCOL_RELIABILITY,
    RELIABILITY_WEIGHTS,
    RESPONSE_TIME_LEVELS,
    RESPONSE_TIME_THRESHOLDS,
    SCORE_LEVELS,
    UPDATE_DELAY_THRESHOLDS_MS,
    UPDATE_FREQUENCY,
)


class TestReliabilityWeights:
    """Tests for the operator reliability weights."""

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_weights_sum_to_one(self):
        total = sum(config["weight"] for config in RELIABILITY_WEIGHTS.values())
        assert total == pytest.approx(1.0)

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_every_weight_has_justification(self):
        for name, config in RELIABILITY_WEIGHTS.items():
            assert config.get("justification"), f"{name} missing justification"

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_protocol_weights_sum_to_one(self):
        assert PROTOCOL_RELIABILITY["freshness_weight"] + PROTOCOL_RELIABILITY["accuracy_weight"] == pytest.approx(1.0)


class TestResponseTimeThresholds:
    """Tests for the response time interpolation points."""

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_points_are_sorted_by_response_time(self):
        values = [t["response_time_ms"] for t in RESPONSE_TIME_THRESHOLDS]
        assert values == sorted(values)

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_scores_never_increase_with_latency(self):
        scores = [t["score"] for t in RESPONSE_TIME_THRESHOLDS]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == 100
        assert scores[-1] == 0

    @pytest.mark.unit
    def test_levels_ordered(self):
        assert RESPONSE_TIME_LEVELS["success"] < RESPONSE_TIME_LEVELS["warning"]


class TestScoreLevels:
    """Tests for the score level ladder."""

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_levels_descend(self):
        mins = [config["min"] for config in SCORE_LEVELS.values()]
        assert mins == sorted(mins, reverse=True)
        assert mins[-1] == 0

    @pytest.mark.unit
    def test_levels_have_colors(self):
        for level, config in SCORE_LEVELS.items():
            assert config["color"].startswith("#"), level


class TestClassificationThresholds:
    """Tests for delay, deviation and frequency thresholds."""

    @pytest.mark.unit
    def test_delay_warning_below_critical(self):
        assert UPDATE_DELAY_THRESHOLDS_MS["warning"] < UPDATE_DELAY_THRESHOLDS_MS["critical"]

    @pytest.mark.unit
    def test_deviation_ratios_ordered(self):
        assert 0 < DEVIATION_STATUS_RATIOS["warning"] < DEVIATION_STATUS_RATIOS["critical"]

    @pytest.mark.unit
    def test_deviation_threshold_is_fraction(self):
        assert 0 < DEVIATION_ANALYTICS["deviation_threshold"] < 1

    @pytest.mark.unit
    def test_anomaly_multiplier_above_one(self):
        assert UPDATE_FREQUENCY["anomaly_multiplier"] > 1
