"""
Integration tests for Slack notifications.
"""

import pytest
import requests
from unittest.mock import MagicMock, patch

from oracle_monitor.notifications.slack import (
    MAX_DIGEST_ALERTS,
    SEVERITY_COLORS,
    format_batch_digest,
    format_single_alert,
    process_pending_alerts,
    send_slack_batch,
    send_slack_message,
)

WEBHOOK = "https://hooks.slack.example/T000/B000/XXX"


def _alert(alert_id, severity="warning", chain="ethereum"):
    return {
        "id": alert_id,
        "feed_id": "eth-usd-ethereum",
        "metric_name": "heartbeat_ratio",
        "value": 1.5,
        "threshold_value": 1.0,
        "operator": ">",
        "severity": severity,
        "message": "eth-usd-ethereum heartbeat_ratio: 1.5000 > 1.0 [warning]",
        "chain": chain,
    }


class TestFormatting:

    @pytest.mark.integration
    def test_single_alert_attachment(self):
        attachment = format_single_alert(_alert(1, severity="critical"))

        assert attachment["color"] == SEVERITY_COLORS["critical"]
        assert "CRITICAL" in attachment["title"]
        fields = {f["title"]: f["value"] for f in attachment["fields"]}
        assert fields["Value"] == "1.5000"
        assert fields["Threshold"] == "> 1.0"
        assert fields["Chain"] == "ethereum"

    @pytest.mark.integration
    def test_single_alert_without_chain(self):
        attachment = format_single_alert(_alert(1, chain=None))
        assert "Chain" not in [f["title"] for f in attachment["fields"]]

    @pytest.mark.integration
    def test_digest_truncates(self):
        alerts = [_alert(i) for i in range(MAX_DIGEST_ALERTS + 2)]
        blocks = format_batch_digest(alerts)["blocks"]

        assert "12 alerts" in blocks[0]["text"]["text"]
        assert blocks[-1]["type"] == "context"
        assert "2 more alerts" in blocks[-1]["elements"][0]["text"]
        assert sum(1 for b in blocks if b["type"] == "section") == MAX_DIGEST_ALERTS + 1


class TestSending:

    @pytest.mark.integration
    def test_no_webhook_configured(self):
        with patch.dict("oracle_monitor.notifications.slack.ALERT_CONFIG", {"slack_webhook": None}), \
             patch("oracle_monitor.notifications.slack.requests.post") as mock_post:
            assert send_slack_message({"text": "hi"}) is False
        mock_post.assert_not_called()

    @pytest.mark.integration
    def test_posts_payload(self):
        with patch("oracle_monitor.notifications.slack.requests.post") as mock_post:
            mock_post.return_value = MagicMock()
            assert send_slack_message({"text": "hi"}, webhook_url=WEBHOOK) is True

        assert mock_post.call_args.args[0] == WEBHOOK
        assert mock_post.call_args.kwargs["json"] == {"text": "hi"}

    @pytest.mark.integration
    def test_http_error_returns_false(self):
        with patch("oracle_monitor.notifications.slack.requests.post") as mock_post:
            mock_post.return_value.raise_for_status.side_effect = requests.HTTPError("500")
            assert send_slack_message({"text": "hi"}, webhook_url=WEBHOOK) is False

    @pytest.mark.integration
    def test_empty_batch_is_noop(self):
        assert send_slack_batch([]) is True


class TestProcessPendingAlerts:

    @pytest.mark.integration
    @pytest.mark.smoke
    def test_critical_individually_rest_batched(self):
        alerts = [_alert(1, "critical"), _alert(2), _alert(3, "info")]

        with patch("oracle_monitor.notifications.slack.get_unnotified_alerts", return_value=alerts), \
             patch("oracle_monitor.notifications.slack.mark_alerts_notified") as mock_mark, \
             patch("oracle_monitor.notifications.slack.send_slack_alert", return_value=True) as mock_alert, \
             patch("oracle_monitor.notifications.slack.send_slack_batch", return_value=True) as mock_batch:
            result = process_pending_alerts()

        assert result == {"total_processed": 3, "critical_sent": 1, "batch_sent": 2, "errors": []}
        mock_alert.assert_called_once_with(alerts[0])
        mock_batch.assert_called_once_with(alerts[1:])
        mock_mark.assert_any_call([1], channel="slack")
        mock_mark.assert_any_call([2, 3], channel="slack")

    @pytest.mark.integration
    def test_undelivered_alerts_stay_pending(self):
        alerts = [_alert(1, "critical"), _alert(2)]

        with patch("oracle_monitor.notifications.slack.get_unnotified_alerts", return_value=alerts), \
             patch("oracle_monitor.notifications.slack.mark_alerts_notified") as mock_mark, \
             patch("oracle_monitor.notifications.slack.send_slack_alert", return_value=False), \
             patch("oracle_monitor.notifications.slack.send_slack_batch", return_value=False):
            result = process_pending_alerts()

        mock_mark.assert_not_called()
        assert len(result["errors"]) == 2

    @pytest.mark.integration
    def test_nothing_pending(self):
        with patch("oracle_monitor.notifications.slack.get_unnotified_alerts", return_value=[]):
            assert process_pending_alerts()["total_processed"] == 0
