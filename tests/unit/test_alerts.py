"""
Unit tests for alert threshold evaluation.

Only the pure parts of the alert system are exercised here; database
writes are covered by the dispatcher integration tests.
"""

import pytest
from unittest.mock import patch

from oracle_monitor.core.alerts import (
    DEFAULT_THRESHOLDS,
    OPERATORS,
    SEVERITY_RANK,
    add_custom_threshold,
    build_alert_message,
    check_alerts_for_metrics,
    check_threshold,
    evaluate_thresholds,
)


def _defaults_for(metric_name):
    return [t for t in DEFAULT_THRESHOLDS if t["metric_name"] == metric_name]


class TestCheckThreshold:

    @pytest.mark.unit
    @pytest.mark.parametrize("value,operator,threshold,expected", [
        (5, ">", 3, True),
        (3, ">", 3, False),
        (3, ">=", 3, True),
        (2, "<", 3, True),
        (3, "<=", 3, True),
        (3, "=", 3, True),
        (4, "=", 3, False),
    ])
    def test_operators(self, value, operator, threshold, expected):
        assert check_threshold(value, operator, threshold) is expected

    @pytest.mark.unit
    def test_unknown_operator_never_breaches(self):
        assert check_threshold(100, "!=", 0) is False


class TestEvaluateThresholds:

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_critical_listed_first(self):
        breached = evaluate_thresholds(2.5, _defaults_for("heartbeat_ratio"))
        assert [t["severity"] for t in breached] == ["critical", "warning"]

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_warning_only(self):
        breached = evaluate_thresholds(1.5, _defaults_for("heartbeat_ratio"))
        assert [t["severity"] for t in breached] == ["warning"]

    @pytest.mark.unit
    def test_no_breach(self):
        assert evaluate_thresholds(0.5, _defaults_for("heartbeat_ratio")) == []

    @pytest.mark.unit
    def test_zero_price_is_critical(self):
        breached = evaluate_thresholds(0, _defaults_for("oracle_price"))
        assert breached[0]["severity"] == "critical"

    @pytest.mark.unit
    def test_string_threshold_values(self):
        breached = evaluate_thresholds(12, [
            {"operator": ">=", "threshold_value": "10", "severity": "critical"},
        ])
        assert len(breached) == 1


class TestDefaultThresholds:

    @pytest.mark.unit
    def test_defaults_are_well_formed(self):
        for threshold in DEFAULT_THRESHOLDS:
            assert threshold["operator"] in OPERATORS
            assert threshold["severity"] in SEVERITY_RANK
            assert threshold.get("justification")

    @pytest.mark.unit
    def test_collected_metrics_have_thresholds(self):
        covered = {t["metric_name"] for t in DEFAULT_THRESHOLDS}
        for metric_name in ("heartbeat_ratio", "oracle_price", "price_change_pct",
                            "ocr_round_duration_seconds", "ocr_stale_rounds"):
            assert metric_name in covered


class TestAlertHelpers:

    @pytest.mark.unit
    def test_message_includes_chain(self):
        message = build_alert_message("eth-usd", "heartbeat_ratio", 2.5, ">", 2.0, "critical", "ethereum")
        assert message == "eth-usd heartbeat_ratio (ethereum): 2.5000 > 2.0 [critical]"

    @pytest.mark.unit
    def test_invalid_operator_rejected_before_insert(self):
        with pytest.raises(ValueError):
            add_custom_threshold("heartbeat_ratio", "!=", 1.0, "warning")

    @pytest.mark.unit
    def test_invalid_severity_rejected(self):
        with pytest.raises(ValueError):
            add_custom_threshold("heartbeat_ratio", ">", 1.0, "urgent")

    @pytest.mark.unit
    def test_batch_skips_incomplete_metrics(self):
        with patch("oracle_monitor.core.alerts.check_metric_against_thresholds") as mock_check:
            mock_check.return_value = [{"id": 1}]
            alerts = check_alerts_for_metrics([
                {"feed_id": "a", "metric_name": "heartbeat_ratio", "value": 3, "chain": "base"},
                {"feed_id": "b", "metric_name": None, "value": 1},
                {"feed_id": "c", "metric_name": "oracle_price", "value": None},
            ])

        assert alerts == [{"id": 1}]
        mock_check.assert_called_once_with(
            feed_id="a", metric_name="heartbeat_ratio", value=3.0, chain="base"
        )

    @pytest.mark.unit
    def test_batch_continues_after_error(self):
        with patch("oracle_monitor.core.alerts.check_metric_against_thresholds") as mock_check:
            mock_check.side_effect = [ValueError("bad"), [{"id": 2}]]
            alerts = check_alerts_for_metrics([
                {"feed_id": "a", "metric_name": "heartbeat_ratio", "value": 3},
                {"feed_id": "b", "metric_name": "heartbeat_ratio", "value": 3},
            ])

        assert alerts == [{"id": 2}]
