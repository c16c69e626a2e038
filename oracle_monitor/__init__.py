"""
Oracle Monitor - Monitoring and analytics for API3 and Chainlink oracle networks.

Quick start:
    from oracle_monitor.fetchers import get_feed_data, fetch_operators
    from oracle_monitor.analytics import score_operators, rank_operators

    data = get_feed_data(rpc_url, "0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419")
    ranked = rank_operators(score_operators(fetch_operators()))

Scheduled collection runs through oracle_monitor.handlers.handler or the
`oracle-monitor dispatch` command.
"""

__version__ = "1.0.0"

from .models import (
    FeedStatus,
    DeviationStatus,
    DelayStatus,
    HeartbeatStatus,
    Trend,
    TrendDirection,
    ReliabilityScore,
    Airnode,
    Dapi,
    ChainlinkFeed,
    OcrRound,
    Operator,
    UpdateTransaction,
    PriceUpdateEvent,
    HeartbeatAlert,
    CrossChainDapiData,
)

__all__ = [
    "__version__",
    "FeedStatus",
    "DeviationStatus",
    "DelayStatus",
    "HeartbeatStatus",
    "Trend",
    "TrendDirection",
    "ReliabilityScore",
    "Airnode",
    "Dapi",
    "ChainlinkFeed",
    "OcrRound",
    "Operator",
    "UpdateTransaction",
    "PriceUpdateEvent",
    "HeartbeatAlert",
    "CrossChainDapiData",
]
