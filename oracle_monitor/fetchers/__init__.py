"""
Data fetchers.

- api: oracle dashboard JSON API (operators, dAPIs, airnodes, update events)
- chainlink: AggregatorV3 reads, round history, feed health
- api3: Api3ServerV1 dAPI reads

Each on-chain fetcher module provides fetch_X_metrics(feed_config), which
returns a result dict with status, metrics and error.
"""

from .api import (
    OracleApiError,
    fetch_api_data,
    fetch_operators,
    fetch_dapis,
    fetch_airnode,
    fetch_price_update_events,
)

from .chainlink import (
    get_feed_data,
    get_round_data,
    fetch_recent_rounds,
    check_feed_health,
    fetch_chainlink_metrics,
    fetch_ocr_round_metrics,
)

from .api3 import (
    encode_dapi_name,
    dapi_name_hash,
    read_dapi,
    fetch_api3_metrics,
)

__all__ = [
    # API
    "OracleApiError",
    "fetch_api_data",
    "fetch_operators",
    "fetch_dapis",
    "fetch_airnode",
    "fetch_price_update_events",
    # Chainlink
    "get_feed_data",
    "get_round_data",
    "fetch_recent_rounds",
    "check_feed_health",
    "fetch_chainlink_metrics",
    "fetch_ocr_round_metrics",
    # API3
    "encode_dapi_name",
    "dapi_name_hash",
    "read_dapi",
    "fetch_api3_metrics",
]
