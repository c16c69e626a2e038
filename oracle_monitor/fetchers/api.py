"""
Oracle dashboard JSON API client.

GETs endpoints under ORACLE_API_BASE_URL, unwraps the {data: ...} envelope
and turns the payloads into model records.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..config import API_TIMEOUT_SECONDS, ORACLE_API_BASE_URL
from ..models import Airnode, Dapi, Operator, PriceUpdateEvent

logger = logging.getLogger(__name__)


class OracleApiError(Exception):
    """Raised when the oracle API returns an error or an unusable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None, path: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.path = path


def fetch_api_data(path: str, params: Optional[Dict[str, Any]] = None, base_url: str = None) -> Any:
    """
    GET a JSON endpoint and return its payload.

    Args:
        path: Endpoint path, e.g. '/api/oracle/api3/dapis'
        params: Query parameters; None values are dropped
        base_url: Overrides ORACLE_API_BASE_URL

    Returns:
        The 'data' member of an envelope response, else the whole JSON body

    Raises:
        OracleApiError: transport failure, non-2xx status, invalid JSON,
            or a body with ok=false or an 'error' key
    """
    url = f"{(base_url or ORACLE_API_BASE_URL).rstrip('/')}/{path.lstrip('/')}"
    query = {k: v for k, v in (params or {}).items() if v is not None}

    try:
        response = requests.get(url, params=query, timeout=API_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        logger.error(f"Request to {url} failed: {e}")
        raise OracleApiError(f"Request failed: {e}", path=path) from e

    if not response.ok:
        raise OracleApiError(
            f"HTTP {response.status_code} from {path}",
            status_code=response.status_code,
            path=path,
        )

    try:
        body = response.json()
    except ValueError as e:
        raise OracleApiError(f"Invalid JSON from {path}", status_code=response.status_code, path=path) from e

    if isinstance(body, dict):
        if body.get("ok") is False or body.get("error"):
            error = body.get("error") or "Request failed"
            if isinstance(error, dict):
                error = error.get("message") or error.get("code") or str(error)
            raise OracleApiError(str(error), status_code=response.status_code, path=path)
        if "data" in body:
            return body["data"]

    return body


def _items(payload: Any, key: str) -> List[Dict[str, Any]]:
    """Accept either a bare list or a dict holding the list under key."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get(key), list):
        return payload[key]
    raise OracleApiError(f"Expected a list of {key} in response")


def fetch_operators(network: Optional[str] = None) -> List[Operator]:
    payload = fetch_api_data("/api/oracle/chainlink/operators", {"network": network})
    return [Operator.from_dict(item) for item in _items(payload, "operators")]


def fetch_dapis(chain: Optional[str] = None, symbol: Optional[str] = None) -> List[Dapi]:
    payload = fetch_api_data("/api/oracle/api3/dapis", {"chain": chain, "symbol": symbol})
    return [Dapi.from_dict(item) for item in _items(payload, "dapis")]


def fetch_airnode(address: str) -> Dict[str, Any]:
    """
    Fetch one Airnode with its dAPIs.

    Returns:
        dict with 'airnode' (Airnode), 'dapis' (list of Dapi) and
        'update_history' (raw update records)
    """
    payload = fetch_api_data(f"/api/oracle/api3/airnode/{address}")
    if not isinstance(payload, dict) or "airnode" not in payload:
        raise OracleApiError(f"Missing airnode in response for {address}")

    return {
        "airnode": Airnode.from_dict(payload["airnode"]),
        "dapis": [Dapi.from_dict(d) for d in payload.get("dapis", [])],
        "update_history": payload.get("updateHistory", payload.get("update_history", [])),
    }


def fetch_price_update_events(
    dapi_name: Optional[str] = None,
    chain: Optional[str] = None,
    limit: int = 100
) -> List[PriceUpdateEvent]:
    payload = fetch_api_data(
        "/api/oracle/api3/price-updates",
        {"dapi": dapi_name, "chain": chain, "limit": limit},
    )
    return [PriceUpdateEvent.from_dict(item) for item in _items(payload, "events")]
