"""
API3 dAPI and Airnode summaries.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..models import Airnode, Dapi, FeedStatus, to_datetime
from .thresholds import AIRNODE_OFFLINE_AFTER_SECONDS


def filter_dapis(
    dapis: List[Dapi],
    chain: Optional[str] = None,
    symbol: Optional[str] = None,
    query: Optional[str] = None
) -> List[Dapi]:
    """
    Filter dAPIs, case-insensitively.

    chain and symbol must match exactly; query is a substring match against
    dAPI name, symbol and chain.
    """
    result = list(dapis)

    if chain:
        result = [d for d in result if d.chain.lower() == chain.lower()]
    if symbol:
        result = [d for d in result if d.symbol.lower() == symbol.lower()]
    if query:
        needle = query.lower()
        result = [
            d for d in result
            if needle in d.dapi_name.lower()
            or needle in d.symbol.lower()
            or needle in d.chain.lower()
        ]
    return result


def is_beacon_set(dapi: Dapi) -> bool:
    return dapi.source_type == "beacon_set" or dapi.beacon_count > 1


def airnode_online(last_heartbeat, now: datetime = None) -> bool:
    if last_heartbeat is None:
        return False
    now = to_datetime(now) if now is not None else datetime.now(timezone.utc)
    age = (now - to_datetime(last_heartbeat)).total_seconds()
    return age <= AIRNODE_OFFLINE_AFTER_SECONDS


def summarize_airnode(
    airnode: Airnode,
    dapis: List[Dapi],
    updates: List[Any] = None,
    now: datetime = None
) -> Dict[str, Any]:
    """
    Detail summary for one Airnode.

    Online status is recomputed from heartbeat age rather than trusting
    the reported flag.
    """
    updates = updates or []
    now = to_datetime(now) if now is not None else datetime.now(timezone.utc)

    return {
        "address": airnode.address,
        "chain": airnode.chain,
        "online": airnode_online(airnode.last_heartbeat, now),
        "last_heartbeat": airnode.last_heartbeat,
        "response_time_ms": airnode.response_time_ms,
        "uptime": airnode.uptime,
        "total_dapis": len(dapis),
        "active_dapis": sum(1 for d in dapis if d.status == FeedStatus.ACTIVE),
        "beacon_sets": sum(1 for d in dapis if is_beacon_set(d)),
        "total_updates": len(updates),
        "fetched_at": now,
    }
