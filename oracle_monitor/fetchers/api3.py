"""
API3 Fetcher - Api3ServerV1 dAPI reads.
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from web3 import Web3

from ..config import API3_SERVER_ADDRESS, get_chain_config

logger = logging.getLogger(__name__)

API3_SERVER_ABI = json.loads('''[
    {
        "inputs": [{"name": "dapiNameHash", "type": "bytes32"}],
        "name": "readDataFeedWithDapiNameHash",
        "outputs": [
            {"name": "value", "type": "int224"},
            {"name": "timestamp", "type": "uint32"}
        ],
        "stateMutability": "view",
        "type": "function"
    }
]''')

# dAPI values are always 18-decimal fixed point
DAPI_DECIMALS = 18


def encode_dapi_name(dapi_name: str) -> bytes:
    """dAPI name as a right-zero-padded bytes32."""
    encoded = dapi_name.encode("utf-8")
    if not encoded or len(encoded) > 32:
        raise ValueError(f"dAPI name must be 1-32 bytes, got {len(encoded)}: {dapi_name!r}")
    return encoded.ljust(32, b"\x00")


def dapi_name_hash(dapi_name: str) -> bytes:
    return bytes(Web3.keccak(encode_dapi_name(dapi_name)))


def read_dapi(
    rpc_url: str,
    server_address: str,
    dapi_name: str
) -> Optional[Dict[str, Any]]:
    """Latest value of a dAPI; None on failure."""
    try:
        w3 = Web3(Web3.HTTPProvider(rpc_url))
        if not w3.is_connected():
            raise ConnectionError(f"Failed to connect to {rpc_url}")

        server = w3.eth.contract(
            address=Web3.to_checksum_address(server_address),
            abi=API3_SERVER_ABI
        )
        value, timestamp = server.functions.readDataFeedWithDapiNameHash(
            dapi_name_hash(dapi_name)
        ).call()
    except Exception as e:
        logger.warning(f"Failed to read dAPI {dapi_name}: {e}")
        return None

    return {
        "dapi_name": dapi_name,
        "value": value,
        "price": value / 10**DAPI_DECIMALS,
        "updated_at": timestamp,
        "timestamp": datetime.fromtimestamp(timestamp, tz=timezone.utc),
    }


def fetch_api3_metrics(feed_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Freshness, heartbeat and price metrics for an API3 dAPI.

    Args:
        feed_config: Feed configuration (feed_id, chain, dapi_name, heartbeat_seconds)

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
    dapi_name = feed_config.get("dapi_name")
    heartbeat = feed_config.get("heartbeat_seconds", 86400)

    if not dapi_name:
        result["error"] = "No dapi_name configured"
        return result

    chain_config = get_chain_config(chain, feed_config.get("rpc_url"))
    if not chain_config:
        result["error"] = f"Unknown chain: {chain}"
        return result

    server_address = feed_config.get("server_address", API3_SERVER_ADDRESS)
    data = read_dapi(chain_config["rpc"], server_address, dapi_name)
    if data is None:
        result["error"] = f"Failed to read dAPI {dapi_name}"
        return result

    if data["updated_at"] == 0:
        result["error"] = f"dAPI {dapi_name} is not initialized on {chain}"
        return result

    seconds_since_update = max(0.0, time.time() - data["updated_at"])
    metadata = {"dapi_name": dapi_name, "server_address": server_address}

    result["metrics"] = [
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
    result["status"] = "success"
    return result
