"""
Chainlink Fetcher - AggregatorV3 reads.

Latest answer, historical rounds and feed health straight from the
aggregator contract, plus the per-feed monitoring metrics built on them.
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from web3 import Web3

from ..analytics.deviation import calculate_deviation_pct
from ..analytics.ocr import PHASE_OFFSET, analyze_ocr_rounds
from ..analytics.thresholds import DEFAULT_STALENESS_SECONDS
from ..config import get_chain_config
from ..models import OcrRound

logger = logging.getLogger(__name__)

# Chainlink AggregatorV3 ABI (minimal)
AGGREGATOR_V3_ABI = json.loads('''[
    {
        "inputs": [],
        "name": "latestRoundData",
        "outputs": [
            {"name": "roundId", "type": "uint80"},
            {"name": "answer", "type": "int256"},
            {"name": "startedAt", "type": "uint256"},
            {"name": "updatedAt", "type": "uint256"},
            {"name": "answeredInRound", "type": "uint80"}
        ],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [{"name": "_roundId", "type": "uint80"}],
        "name": "getRoundData",
        "outputs": [
            {"name": "roundId", "type": "uint80"},
            {"name": "answer", "type": "int256"},
            {"name": "startedAt", "type": "uint256"},
            {"name": "updatedAt", "type": "uint256"},
            {"name": "answeredInRound", "type": "uint80"}
        ],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "description",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function"
    }
]''')


def get_aggregator(rpc_url: str, address: str):
    """Connect to rpc_url and return the aggregator contract."""
    w3 = Web3(Web3.HTTPProvider(rpc_url))
    if not w3.is_connected():
        raise ConnectionError(f"Failed to connect to {rpc_url}")
    return w3.eth.contract(address=Web3.to_checksum_address(address), abi=AGGREGATOR_V3_ABI)


def _round_dict(round_data, decimals: int) -> Dict[str, Any]:
    round_id, answer, started_at, updated_at, answered_in_round = round_data
    return {
        "round_id": round_id,
        "answer": answer,
        "price": answer / 10**decimals,
        "decimals": decimals,
        "started_at": started_at,
        "updated_at": updated_at,
        "answered_in_round": answered_in_round,
        "timestamp": datetime.fromtimestamp(updated_at, tz=timezone.utc),
    }


def get_feed_data(rpc_url: str, address: str) -> Optional[Dict[str, Any]]:
    """Latest round of a feed with the price scaled by decimals; None on failure."""
    try:
        contract = get_aggregator(rpc_url, address)
        decimals = contract.functions.decimals().call()
        round_data = contract.functions.latestRoundData().call()
        return _round_dict(round_data, decimals)
    except Exception as e:
        logger.warning(f"Failed to read feed {address}: {e}")
        return None


def get_round_data(contract, round_id: int, decimals: int = 8) -> Optional[OcrRound]:
    """One historical round; None when the round does not exist."""
    try:
        round_data = contract.functions.getRoundData(round_id).call()
    except Exception as e:
        logger.debug(f"Round {round_id} unavailable: {e}")
        return None

    data = _round_dict(round_data, decimals)
    if data["updated_at"] == 0:
        return None

    return OcrRound(
        round_id=data["round_id"],
        answer=data["price"],
        started_at=datetime.fromtimestamp(data["started_at"], tz=timezone.utc),
        updated_at=data["timestamp"],
        answered_in_round=data["answered_in_round"],
    )


def fetch_recent_rounds(rpc_url: str, address: str, count: int = 10) -> List[OcrRound]:
    """
    Walk back from the latest round, oldest first in the result.

    Stops at the start of the current phase or at the first missing round.
    """
    if count <= 0:
        return []

    contract = get_aggregator(rpc_url, address)
    decimals = contract.functions.decimals().call()
    latest_round_id = contract.functions.latestRoundData().call()[0]

    phase_start = (latest_round_id >> PHASE_OFFSET) << PHASE_OFFSET
    rounds = []
    round_id = latest_round_id

    while len(rounds) < count and round_id > phase_start:
        ocr_round = get_round_data(contract, round_id, decimals)
        if ocr_round is None:
            break
        rounds.append(ocr_round)
        round_id -= 1

    return list(reversed(rounds))


def check_feed_health(
    rpc_url: str,
    address: str,
    staleness_threshold: int = DEFAULT_STALENESS_SECONDS
) -> Dict[str, Any]:
    """
    Classify a feed as healthy, degraded or unhealthy.

    degraded: the last update is older than staleness_threshold or the
    answer is zero. unhealthy: the contract could not be read.
    """
    start = time.time()
    data = get_feed_data(rpc_url, address)
    latency_ms = (time.time() - start) * 1000

    if data is None:
        return {
            "address": address,
            "status": "unhealthy",
            "latency_ms": latency_ms,
            "error": "Failed to read latestRoundData",
        }

    age_seconds = time.time() - data["updated_at"]
    issues = []
    if age_seconds > staleness_threshold:
        issues.append(f"Stale: last update {age_seconds:.0f}s ago")
    if data["answer"] == 0:
        issues.append("Zero price")

    return {
        "address": address,
        "status": "degraded" if issues else "healthy",
        "latency_ms": latency_ms,
        "price": data["price"],
        "round_id": data["round_id"],
        "updated_at": data["timestamp"],
        "age_seconds": age_seconds,
        "issues": issues,
    }


def _rpc_for(feed_config: Dict[str, Any]) -> Optional[str]:
    chain_config = get_chain_config(feed_config.get("chain", "ethereum"), feed_config.get("rpc_url"))
    return chain_config["rpc"] if chain_config else None


def fetch_chainlink_metrics(feed_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Freshness, heartbeat and price-change metrics for a Chainlink feed.

    Args:
        feed_config: Feed configuration (feed_id, chain, address, heartbeat_seconds)

    Returns:
        Dict with status and fetched metrics
    """
    result = {
        "status": "error",
        "metrics": [],
        "error": None
    }

    feed_id = feed_config.get("feed_id", "UNKNOWN")
    chain = feed_config.get("chain", "ethereum")
    address = feed_config.get("address")
    heartbeat = feed_config.get("heartbeat_seconds", 3600)

    if not address:
        result["error"] = "No aggregator address configured"
        return result

    rpc_url = _rpc_for(feed_config)
    if not rpc_url:
        result["error"] = f"Unknown chain: {chain}"
        return result

    data = get_feed_data(rpc_url, address)
    if data is None:
        result["error"] = f"Failed to read feed {address}"
        return result

    seconds_since_update = max(0.0, time.time() - data["updated_at"])
    metadata = {"address": address, "round_id": data["round_id"]}

    metrics = [
        {
            "feed_id": feed_id,
            "metric_name": "oracle_freshness_minutes",
            "value": seconds_since_update / 60,
            "chain": chain,
            "metadata": metadata
        },
        {
            "feed_id": feed_id,
            "metric_name": "heartbeat_ratio",
            "value": seconds_since_update / heartbeat,
            "chain": chain,
            "metadata": {**metadata, "heartbeat_seconds": heartbeat}
        },
        {
            "feed_id": feed_id,
            "metric_name": "oracle_price",
            "value": data["price"],
            "chain": chain,
            "metadata": metadata
        },
    ]

    if data["answer"] == 0:
        result["status"] = "partial"
        result["error"] = "Feed reports a zero answer"
        result["metrics"] = metrics
        return result

    try:
        contract = get_aggregator(rpc_url, address)
        previous = get_round_data(contract, data["round_id"] - 1, data["decimals"])
    except Exception as e:
        logger.warning(f"{feed_id}: previous round unavailable: {e}")
        previous = None

    if previous is not None and previous.answer > 0:
        metrics.append({
            "feed_id": feed_id,
            "metric_name": "price_change_pct",
            "value": calculate_deviation_pct(data["price"], previous.answer),
            "chain": chain,
            "metadata": {**metadata, "previous_price": previous.answer}
        })

    result["status"] = "success"
    result["metrics"] = metrics
    return result


def fetch_ocr_round_metrics(feed_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    OCR round duration and stale-round metrics over the last round_count rounds.
    """
    result = {
        "status": "error",
        "metrics": [],
        "error": None
    }

    feed_id = feed_config.get("feed_id", "UNKNOWN")
    chain = feed_config.get("chain", "ethereum")
    address = feed_config.get("address")

    rpc_url = _rpc_for(feed_config)
    if not address or not rpc_url:
        result["error"] = "Feed needs an aggregator address and a known chain"
        return result

    try:
        rounds = fetch_recent_rounds(rpc_url, address, feed_config.get("round_count", 10))
    except Exception as e:
        logger.error(f"{feed_id}: failed to fetch rounds: {e}")
        result["error"] = f"Failed to fetch rounds: {e}"
        return result

    if not rounds:
        result["error"] = "No rounds retrieved"
        return result

    analysis = analyze_ocr_rounds(rounds)
    metadata = {
        "address": address,
        "first_round_id": analysis["first_round_id"],
        "latest_round_id": analysis["latest_round_id"],
    }

    result["metrics"] = [
        {
            "feed_id": feed_id,
            "metric_name": "ocr_round_duration_seconds",
            "value": analysis["duration"]["avg_seconds"],
            "chain": chain,
            "metadata": {**metadata, "max_seconds": analysis["duration"]["max_seconds"]}
        },
        {
            "feed_id": feed_id,
            "metric_name": "ocr_stale_rounds",
            "value": len(analysis["stale_rounds"]),
            "chain": chain,
            "metadata": {**metadata, "stale_rounds": analysis["stale_rounds"]}
        },
        {
            "feed_id": feed_id,
            "metric_name": "ocr_max_answer_change_pct",
            "value": analysis["max_answer_change_pct"],
            "chain": chain,
            "metadata": metadata
        },
    ]
    result["status"] = "success"
    return result
