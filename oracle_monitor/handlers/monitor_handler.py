"""
Scheduled Monitoring Lambda Handler.

One entry point for every frequency; the CloudWatch Events rule passes
{"frequency": "critical"} (every 5 min) or {"frequency": "high"} (every 30 min).
Pending alerts are sent on every run, including ones an earlier run failed
to deliver.
"""

import logging
from datetime import datetime, timezone

from ..config import LOG_LEVEL
from ..core.dispatcher import DISPATCHERS
from ..notifications import process_pending_alerts

logger = logging.getLogger(__name__)
logging.getLogger().setLevel(LOG_LEVEL)


def handler(event, context):
    """
    AWS Lambda handler for scheduled metric collection.

    Args:
        event: Lambda event; "frequency" selects the dispatcher (default critical)
        context: Lambda context

    Returns:
        Dict with statusCode and body
    """
    start_time = datetime.now(timezone.utc)
    frequency = (event or {}).get("frequency", "critical")

    response = {
        "statusCode": 200,
        "body": {
            "handler": "monitor",
            "frequency": frequency,
            "timestamp": start_time.isoformat(),
            "status": "success",
            "dispatch_result": None,
            "notification_result": None,
            "error": None
        }
    }

    dispatcher = DISPATCHERS.get(frequency)
    if dispatcher is None:
        response["statusCode"] = 400
        response["body"]["status"] = "error"
        response["body"]["error"] = f"Unknown frequency: {frequency}"
        return response

    try:
        logger.info(f"Starting {frequency} metrics dispatch")
        dispatch_result = dispatcher()

        response["body"]["dispatch_result"] = {
            "feeds_processed": dispatch_result.get("feeds_processed", 0),
            "metrics_collected": dispatch_result.get("metrics_collected", 0),
            "alerts_triggered": dispatch_result.get("alerts_triggered", 0),
            "errors": dispatch_result.get("errors", [])
        }

        if dispatch_result.get("errors"):
            response["body"]["status"] = "partial"

    except Exception as e:
        logger.exception(f"{frequency} handler failed")
        response["statusCode"] = 500
        response["body"]["status"] = "error"
        response["body"]["error"] = str(e)

    # Alerts left pending by an earlier failed delivery are retried on every run
    try:
        notification_result = process_pending_alerts()
        response["body"]["notification_result"] = notification_result
        logger.info(
            f"Notifications sent: {notification_result.get('critical_sent', 0)} critical, "
            f"{notification_result.get('batch_sent', 0)} batch"
        )
        if notification_result.get("errors") and response["body"]["status"] == "success":
            response["body"]["status"] = "partial"
    except Exception as e:
        logger.exception("Pending alert notification failed")
        response["body"]["notification_result"] = {"error": str(e)}
        if response["body"]["status"] == "success":
            response["body"]["status"] = "partial"

    duration_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
    response["body"]["duration_ms"] = duration_ms
    logger.info(f"{frequency} handler finished in {duration_ms:.0f}ms")

    return response
