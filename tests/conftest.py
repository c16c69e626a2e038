"""
Pytest configuration and fixtures for the oracle monitor.

This file contains shared fixtures used across all test modules.
"""

import pytest
import json
import sys
from pathlib import Path
from typing import Dict, Any, List
from unittest.mock import MagicMock, patch
from datetime import datetime, timedelta, timezone

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from oracle_monitor.models import (
    ChainlinkFeed,
    CrossChainDapiData,
    FeedStatus,
    OcrRound,
    Operator,
    UpdateTransaction,
)


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# PATH FIXTURES
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the directory containing example feed configs."""
    return project_root / "configs"


@pytest.fixture
def now() -> datetime:
    """Fixed reference time so age-based checks are deterministic."""
    return NOW


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def chainlink_feed_config(config_dir: Path) -> Dict[str, Any]:
    """Load the ETH/USD Chainlink example configuration."""
    with open(config_dir / "eth_usd_chainlink.json", "r") as f:
        return json.load(f)


@pytest.fixture
def api3_feed_config(config_dir: Path) -> Dict[str, Any]:
    """Load the ETH/USD API3 example configuration."""
    with open(config_dir / "eth_usd_api3.json", "r") as f:
        return json.load(f)


@pytest.fixture
def feed_config_factory():
    """
    Factory fixture for feed configs.

    Usage:
        def test_something(feed_config_factory):
            config = feed_config_factory(protocol="api3", dapi_name="BTC/USD")
    """
    def _create_config(**overrides) -> Dict[str, Any]:
        base = {
            "feed_id": "test-feed",
            "protocol": "chainlink",
            "symbol": "TEST/USD",
            "chain": "ethereum",
            "address": "0x" + "a" * 40,
            "heartbeat_seconds": 3600,
        }
        base.update(overrides)
        return base

    return _create_config


# =============================================================================
# DOMAIN FIXTURES
# =============================================================================

@pytest.fixture
def operators() -> List[Operator]:
    """Three operators with different uptime, latency and feed coverage."""
    return [
        Operator(
            name="Alpha Nodes",
            online=True,
            response_time_ms=200,
            uptime=99.9,
            supported_feeds=["ETH/USD", "BTC/USD", "LINK/USD", "USDC/USD"],
        ),
        Operator(
            name="Beta Oracle",
            online=True,
            response_time_ms=2000,
            uptime=95.0,
            supported_feeds=["ETH/USD", "BTC/USD"],
        ),
        Operator(
            name="Gamma Labs",
            online=False,
            response_time_ms=6000,
            uptime=100.0,
            supported_feeds=["ETH/USD", "BTC/USD", "LINK/USD", "USDC/USD"],
        ),
    ]


@pytest.fixture
def ocr_rounds() -> List[OcrRound]:
    """Five consecutive rounds with one stale round and one missing id."""
    def _round(round_id, answer, duration, answered_in_round=None, observers=None, transmitter=None):
        updated_at = NOW - timedelta(minutes=(110 - round_id) * 10)
        return OcrRound(
            round_id=round_id,
            answer=answer,
            started_at=updated_at - timedelta(seconds=duration),
            updated_at=updated_at,
            answered_in_round=answered_in_round if answered_in_round is not None else round_id,
            transmitter=transmitter,
            observers=observers or ["alpha", "beta"],
        )

    return [
        _round(100, 2000.0, 5, transmitter="alpha"),
        _round(101, 2010.0, 10, transmitter="beta"),
        _round(102, 2010.0, 90, answered_in_round=101, observers=["alpha"], transmitter="alpha"),
        # 103 missing
        _round(104, 2100.0, 15, observers=["alpha", "beta", "gamma"], transmitter="alpha"),
    ]


@pytest.fixture
def update_transactions() -> List[UpdateTransaction]:
    """Update transactions for two feeds on two chains within two hours."""
    return [
        UpdateTransaction("ETH/USD", "ethereum", NOW - timedelta(minutes=90), 100_000, 20.0, 3000.0),
        UpdateTransaction("ETH/USD", "ethereum", NOW - timedelta(minutes=80), 100_000, 30.0, 3000.0),
        UpdateTransaction("BTC/USD", "ethereum", NOW - timedelta(minutes=20), 50_000, 10.0, 3000.0),
        UpdateTransaction("ETH/USD", "arbitrum", NOW - timedelta(minutes=10), 500_000, 0.1, 3000.0),
    ]


@pytest.fixture
def cross_chain_data() -> List[CrossChainDapiData]:
    return [
        CrossChainDapiData(
            chain="ethereum", last_price=3000.0, avg_update_interval_ms=60_000,
            avg_latency_ms=1200, gas_cost_usd=12.0, uptime_percentage=99.9,
            status=FeedStatus.ACTIVE,
        ),
        CrossChainDapiData(
            chain="arbitrum", last_price=3003.0, avg_update_interval_ms=20_000,
            avg_latency_ms=300, gas_cost_usd=0.05, uptime_percentage=99.5,
            status=FeedStatus.ACTIVE,
        ),
        CrossChainDapiData(
            chain="base", last_price=2997.0, avg_update_interval_ms=30_000,
            avg_latency_ms=400, gas_cost_usd=0.02, uptime_percentage=99.95,
            status=FeedStatus.ACTIVE,
        ),
    ]


@pytest.fixture
def chainlink_feeds() -> List[ChainlinkFeed]:
    """Feeds in each heartbeat state relative to NOW, plus one never updated."""
    return [
        ChainlinkFeed("ETH/USD", "ethereum", "0x" + "1" * 40, heartbeat_seconds=3600,
                      last_updated_at=NOW - timedelta(minutes=30)),
        ChainlinkFeed("BTC/USD", "ethereum", "0x" + "2" * 40, heartbeat_seconds=3600,
                      last_updated_at=NOW - timedelta(minutes=90)),
        ChainlinkFeed("LINK/USD", "arbitrum", "0x" + "3" * 40, heartbeat_seconds=3600,
                      last_updated_at=NOW - timedelta(hours=5)),
        ChainlinkFeed("USDC/USD", "base", "0x" + "4" * 40, heartbeat_seconds=86400),
    ]


@pytest.fixture
def deviation_point_factory():
    """
    Factory for cross-protocol deviation points, as analyzed by
    PriceDeviationAnalytics.
    """
    def _create_point(minutes_ago: int, deviation_pct: float, outliers=None) -> Dict[str, Any]:
        return {
            "timestamp": NOW - timedelta(minutes=minutes_ago),
            "symbol": "ETH/USD",
            "max_deviation_percent": deviation_pct,
            "outlier_protocols": outliers or [],
        }

    return _create_point


# =============================================================================
# MOCK FIXTURES FOR EXTERNAL APIS
# =============================================================================

@pytest.fixture
def mock_aggregator_contract():
    """
    Mock AggregatorV3 contract.

    latestRoundData reports round 105 at 2500.00 (8 decimals) updated 10
    minutes before the wall clock; getRoundData(n) answers 2450.00.
    """
    updated_at = int(datetime.now(timezone.utc).timestamp()) - 600

    contract = MagicMock()
    contract.functions.decimals.return_value.call.return_value = 8
    contract.functions.latestRoundData.return_value.call.return_value = (
        105, 250_000_000_000, updated_at - 5, updated_at, 105
    )

    def _round_data(round_id):
        call = MagicMock()
        call.call.return_value = (
            round_id, 245_000_000_000, updated_at - 3600 - 5, updated_at - 3600, round_id
        )
        return call

    contract.functions.getRoundData.side_effect = _round_data
    return contract


@pytest.fixture
def mock_web3(mock_aggregator_contract):
    """Mock Web3 instance for testing without blockchain connection."""
    mock = MagicMock()
    mock.eth.contract.return_value = mock_aggregator_contract
    mock.is_connected.return_value = True
    return mock


@pytest.fixture
def patched_chainlink_web3(mock_web3):
    """Patch Web3 in the Chainlink fetcher; checksum addresses pass through."""
    with patch("oracle_monitor.fetchers.chainlink.Web3") as MockWeb3:
        MockWeb3.return_value = mock_web3
        MockWeb3.to_checksum_address.side_effect = lambda address: address
        yield MockWeb3


def _make_response(payload: Any = None, status_code: int = 200, json_error: bool = False) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if json_error:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def mock_requests_get():
    """
    Mock requests.get for oracle API testing.

    Usage:
        def test_fetching(mock_requests_get):
            mock_requests_get.return_value = response_factory({"data": [...]})
    """
    with patch("oracle_monitor.fetchers.api.requests.get") as mock_get:
        mock_get.return_value = _make_response({"data": []})
        yield mock_get


@pytest.fixture
def response_factory():
    """Factory for requests.Response stand-ins."""
    return _make_response
