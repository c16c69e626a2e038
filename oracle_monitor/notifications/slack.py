"""
Slack Notification Module - Send oracle alerts to Slack.

- Critical alerts are sent one by one as attachments
- Warning/info alerts are batched into a single digest
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

import requests

from ..config import ALERT_CONFIG
from ..core.alerts import get_unnotified_alerts, mark_alerts_notified

logger = logging.getLogger(__name__)

SEVERITY_COLORS = {
    "critical": "#FF0000",
    "warning": "#FFA500",
    "info": "#0000FF"
}

SEVERITY_EMOJIS = {
    "critical": ":rotating_light:",
    "warning": ":warning:",
    "info": ":information_source:"
}

# Slack rejects oversized messages; the digest lists at most this many alerts
MAX_DIGEST_ALERTS = 10


def format_single_alert(alert: Dict) -> Dict:
    """
    Format a single alert as a Slack attachment.

    Args:
        alert: Alert dict (alerts_log row or check_metric_against_thresholds output)

    Returns:
        Slack attachment dict
    """
    severity = alert.get("severity", "info")
    color = SEVERITY_COLORS.get(severity, "#808080")
    emoji = SEVERITY_EMOJIS.get(severity, ":bell:")

    fields = [
        {"title": "Feed", "value": alert.get("feed_id", "Unknown"), "short": True},
        {"title": "Metric", "value": alert.get("metric_name", "Unknown"), "short": True},
        {"title": "Value", "value": f"{float(alert.get('value', 0)):.4f}", "short": True},
        {
            "title": "Threshold",
            "value": f"{alert.get('operator', '')} {alert.get('threshold_value', 0)}",
            "short": True
        },
    ]

    if alert.get("chain"):
        fields.append({"title": "Chain", "value": alert["chain"], "short": True})

    return {
        "color": color,
        "title": f"{emoji} {severity.upper()} Oracle Alert",
        "text": alert.get("message", "Alert triggered"),
        "fields": fields,
        "footer": "Oracle Monitor",
        "ts": int(datetime.now(timezone.utc).timestamp())
    }


def format_batch_digest(alerts: List[Dict]) -> Dict:
    """Format multiple alerts as one Block Kit digest message."""
    counts = {severity: 0 for severity in SEVERITY_EMOJIS}
    for alert in alerts:
        severity = alert.get("severity", "info")
        if severity in counts:
            counts[severity] += 1

    summary = " | ".join(
        f"{SEVERITY_EMOJIS[severity]} {count} {severity.capitalize()}"
        for severity, count in counts.items() if count
    )

    blocks = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f"Oracle Alert Digest ({len(alerts)} alerts)",
                "emoji": True
            }
        },
        {"type": "section", "text": {"type": "mrkdwn", "text": summary}},
        {"type": "divider"}
    ]

    for alert in alerts[:MAX_DIGEST_ALERTS]:
        emoji = SEVERITY_EMOJIS.get(alert.get("severity", "info"), ":bell:")
        chain = f" ({alert['chain']})" if alert.get("chain") else ""
        blocks.append({
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": (
                    f"{emoji} *{alert.get('feed_id')}*{chain} - {alert.get('metric_name')}\n"
                    f"Value: `{float(alert.get('value', 0)):.4f}` "
                    f"(threshold: {alert.get('operator')} {alert.get('threshold_value')})"
                )
            }
        })

    if len(alerts) > MAX_DIGEST_ALERTS:
        blocks.append({
            "type": "context",
            "elements": [
                {"type": "mrkdwn", "text": f"_...and {len(alerts) - MAX_DIGEST_ALERTS} more alerts_"}
            ]
        })

    return {"blocks": blocks}


def send_slack_message(payload: Dict, webhook_url: str = None) -> bool:
    """Post a payload to the Slack webhook; False when unset or on failure."""
    webhook_url = webhook_url or ALERT_CONFIG.get("slack_webhook")
    if not webhook_url:
        logger.warning("SLACK_WEBHOOK_URL not configured")
        return False

    try:
        response = requests.post(
            webhook_url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=10
        )
        response.raise_for_status()
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"Slack send error: {e}")
        return False


def send_slack_alert(alert: Dict) -> bool:
    return send_slack_message({"attachments": [format_single_alert(alert)]})


def send_slack_batch(alerts: List[Dict]) -> bool:
    if not alerts:
        return True
    if len(alerts) == 1:
        return send_slack_alert(alerts[0])
    return send_slack_message(format_batch_digest(alerts))


def process_pending_alerts() -> Dict[str, Any]:
    """
    Send all unnotified alerts and mark the delivered ones.

    Returns:
        Dict with total_processed, critical_sent, batch_sent and errors
    """
    result = {
        "total_processed": 0,
        "critical_sent": 0,
        "batch_sent": 0,
        "errors": []
    }

    alerts = get_unnotified_alerts()
    if not alerts:
        return result

    result["total_processed"] = len(alerts)

    critical_alerts = [a for a in alerts if a.get("severity") == "critical"]
    other_alerts = [a for a in alerts if a.get("severity") != "critical"]

    critical_ids = []
    for alert in critical_alerts:
        if send_slack_alert(alert):
            critical_ids.append(alert["id"])
            result["critical_sent"] += 1
        else:
            result["errors"].append(f"Critical alert {alert['id']} not delivered")

    if critical_ids:
        mark_alerts_notified(critical_ids, channel="slack")

    if other_alerts:
        if send_slack_batch(other_alerts):
            mark_alerts_notified([a["id"] for a in other_alerts], channel="slack")
            result["batch_sent"] = len(other_alerts)
        else:
            result["errors"].append(f"Digest of {len(other_alerts)} alerts not delivered")

    return result
