"""
Oracle network data model.

Flat records for everything the monitor fetches: airnodes, dAPIs, Chainlink
feeds, OCR rounds, node operators, gas-cost points and update events.

Records accept both the camelCase JSON returned by the dashboard API and
snake_case keys, and serialize back to snake_case dicts.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class FeedStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"


class DeviationStatus(Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class DelayStatus(Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class HeartbeatStatus(Enum):
    ACTIVE = "active"
    TIMEOUT = "timeout"
    CRITICAL = "critical"


class Trend(Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class TrendDirection(Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Normalize a timestamp to an aware UTC datetime.

    Accepts datetimes (naive ones are taken as UTC), unix seconds,
    unix milliseconds and ISO-8601 strings with or without a trailing 'Z'.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e12 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"Unsupported timestamp value: {value!r}")


def _pick(data: Dict[str, Any], *keys, default=None):
    """Return the first key present in data."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


class Record:
    """Mixin giving dataclasses a JSON-friendly to_dict."""

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))


@dataclass
class ReliabilityScore(Record):
    """Operator reliability breakdown, all components on a 0-100 scale."""
    overall: int
    uptime: float
    response_time: float
    feed_support: float
    trend: Trend = Trend.STABLE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReliabilityScore":
        return cls(
            overall=int(_pick(data, "overall", default=0)),
            uptime=float(_pick(data, "uptime", default=0)),
            response_time=float(_pick(data, "responseTime", "response_time", default=0)),
            feed_support=float(_pick(data, "feedSupport", "feed_support", default=0)),
            trend=Trend(_pick(data, "trend", default="stable")),
        )


@dataclass
class Airnode(Record):
    address: str
    chain: str
    online: bool = False
    last_heartbeat: Optional[datetime] = None
    response_time_ms: float = 0.0
    uptime: float = 0.0
    xpub: Optional[str] = None
    ipfs_endpoint: Optional[str] = None
    oev_endpoint: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Airnode":
        return cls(
            address=data["address"],
            chain=_pick(data, "chain", default="ethereum"),
            online=bool(_pick(data, "online", default=False)),
            last_heartbeat=to_datetime(_pick(data, "lastHeartbeat", "last_heartbeat")),
            response_time_ms=float(_pick(data, "responseTime", "response_time_ms", default=0)),
            uptime=float(_pick(data, "uptime", default=0)),
            xpub=_pick(data, "xpub"),
            ipfs_endpoint=_pick(data, "ipfsEndpoint", "ipfs_endpoint"),
            oev_endpoint=_pick(data, "oevEndpoint", "oev_endpoint"),
        )


@dataclass
class Dapi(Record):
    dapi_name: str
    chain: str
    data_feed_id: str = ""
    symbol: str = ""
    source_type: str = "beacon"
    beacon_count: int = 1
    provider: Optional[str] = None
    proxy_address: Optional[str] = None
    price: Optional[float] = None
    last_updated_at: Optional[datetime] = None
    status: FeedStatus = FeedStatus.UNKNOWN
    deviation_threshold_pct: Optional[float] = None
    heartbeat_seconds: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dapi":
        dapi_name = _pick(data, "dapiName", "dapi_name", "name")
        source_type = _pick(data, "sourceType", "source_type", default="beacon")
        return cls(
            dapi_name=dapi_name,
            chain=_pick(data, "chain", default="ethereum"),
            data_feed_id=_pick(data, "dataFeedId", "data_feed_id", default=""),
            symbol=_pick(data, "symbol", default=dapi_name),
            source_type=source_type.replace("Set", "_set").lower(),
            beacon_count=int(_pick(data, "beaconCount", "beacon_count", default=1)),
            provider=_pick(data, "provider", "providerName"),
            proxy_address=_pick(data, "proxyAddress", "proxy_address"),
            price=_optional_float(_pick(data, "price", "value")),
            last_updated_at=to_datetime(_pick(data, "lastUpdatedAt", "last_updated_at", "lastUpdate")),
            status=FeedStatus(_pick(data, "status", default="unknown")),
            deviation_threshold_pct=_optional_float(_pick(data, "deviationThreshold", "deviation_threshold_pct")),
            heartbeat_seconds=_optional_int(_pick(data, "heartbeat", "heartbeat_seconds")),
        )


@dataclass
class ChainlinkFeed(Record):
    symbol: str
    chain: str
    address: str
    decimals: int = 8
    heartbeat_seconds: int = 3600
    deviation_threshold_pct: float = 0.5
    price: Optional[float] = None
    last_updated_at: Optional[datetime] = None
    round_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainlinkFeed":
        return cls(
            symbol=_pick(data, "symbol", "name", "pair"),
            chain=_pick(data, "chain", default="ethereum"),
            address=_pick(data, "address", "feedAddress", default=""),
            decimals=int(_pick(data, "decimals", default=8)),
            heartbeat_seconds=int(_pick(data, "heartbeat", "heartbeat_seconds", default=3600)),
            deviation_threshold_pct=float(_pick(data, "deviationThreshold", "deviation_threshold_pct", default=0.5)),
            price=_optional_float(_pick(data, "price", "latestPrice")),
            last_updated_at=to_datetime(_pick(data, "lastUpdate", "lastUpdatedAt", "last_updated_at")),
            round_id=_optional_int(_pick(data, "roundId", "round_id")),
        )


@dataclass
class OcrRound(Record):
    """One Chainlink OCR aggregation round as reported by the aggregator."""
    round_id: int
    answer: float
    started_at: datetime
    updated_at: datetime
    answered_in_round: int
    transmitter: Optional[str] = None
    observers: List[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        return (self.updated_at - self.started_at).total_seconds()

    @property
    def is_stale(self) -> bool:
        return self.answered_in_round < self.round_id

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OcrRound":
        round_id = int(_pick(data, "roundId", "round_id"))
        return cls(
            round_id=round_id,
            answer=float(_pick(data, "answer", "price", default=0)),
            started_at=to_datetime(_pick(data, "startedAt", "started_at")),
            updated_at=to_datetime(_pick(data, "updatedAt", "updated_at")),
            answered_in_round=int(_pick(data, "answeredInRound", "answered_in_round", default=round_id)),
            transmitter=_pick(data, "transmitter"),
            observers=list(_pick(data, "observers", "participants", default=[])),
        )


@dataclass
class Operator(Record):
    name: str
    online: bool = False
    response_time_ms: float = 0.0
    uptime: float = 0.0
    supported_feeds: List[str] = field(default_factory=list)
    last_heartbeat: Optional[datetime] = None
    reliability_score: Optional[ReliabilityScore] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Operator":
        score = _pick(data, "reliabilityScore", "reliability_score")
        return cls(
            name=data["name"],
            online=bool(_pick(data, "online", default=False)),
            response_time_ms=float(_pick(data, "responseTime", "response_time_ms", default=0)),
            uptime=float(_pick(data, "uptime", default=0)),
            supported_feeds=list(_pick(data, "supportedFeeds", "supported_feeds", default=[])),
            last_heartbeat=to_datetime(_pick(data, "lastHeartbeat", "last_heartbeat")),
            reliability_score=ReliabilityScore.from_dict(score) if isinstance(score, dict) else None,
        )


@dataclass
class GasCostTrendPoint(Record):
    timestamp: datetime
    gas_used: int
    cost_usd: float
    transaction_count: int


@dataclass
class UpdateTransaction(Record):
    """An on-chain feed update transaction, the unit of gas-cost analysis."""
    feed_name: str
    chain: str
    timestamp: datetime
    gas_used: int
    gas_price_gwei: float
    native_price_usd: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdateTransaction":
        return cls(
            feed_name=_pick(data, "dapiName", "feedName", "feed_name", "symbol"),
            chain=_pick(data, "chain", default="ethereum"),
            timestamp=to_datetime(_pick(data, "timestamp")),
            gas_used=int(_pick(data, "gasUsed", "gas_used", default=0)),
            gas_price_gwei=float(_pick(data, "gasPriceGwei", "gas_price_gwei", default=0)),
            native_price_usd=float(_pick(data, "nativePriceUsd", "native_price_usd", default=0)),
        )


@dataclass
class PriceUpdateEvent(Record):
    id: str
    dapi_name: str
    chain: str
    price: float
    timestamp: datetime
    update_delay_ms: float
    status: DelayStatus = DelayStatus.NORMAL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceUpdateEvent":
        return cls(
            id=str(_pick(data, "id", default="")),
            dapi_name=_pick(data, "dapiName", "dapi_name"),
            chain=_pick(data, "chain", default="ethereum"),
            price=float(_pick(data, "price", default=0)),
            timestamp=to_datetime(_pick(data, "timestamp")),
            update_delay_ms=float(_pick(data, "updateDelayMs", "update_delay_ms", default=0)),
            status=DelayStatus(_pick(data, "status", default="normal")),
        )


@dataclass
class UpdateIntervalPoint(Record):
    timestamp: datetime
    interval_ms: int
    is_anomaly: bool


@dataclass
class UpdateFrequencyStats(Record):
    dapi_name: str
    chain: str
    avg_update_interval_ms: int
    min_update_interval_ms: int
    max_update_interval_ms: int
    update_count: int
    last_update_time: Optional[datetime]
    anomaly_detected: bool
    anomaly_count: int = 0
    anomaly_reason: Optional[str] = None


@dataclass
class HeartbeatAlert(Record):
    symbol: str
    chain: str
    heartbeat: int
    last_update: datetime
    status: HeartbeatStatus
    elapsed_seconds: int


@dataclass
class CrossChainDapiData(Record):
    chain: str
    last_price: float
    last_updated_at: Optional[datetime] = None
    avg_update_interval_ms: float = 0.0
    avg_latency_ms: float = 0.0
    gas_cost_usd: float = 0.0
    uptime_percentage: float = 0.0
    status: FeedStatus = FeedStatus.UNKNOWN
    update_count_24h: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrossChainDapiData":
        return cls(
            chain=data["chain"],
            last_price=float(_pick(data, "lastPrice", "last_price")),
            last_updated_at=to_datetime(_pick(data, "lastUpdatedAt", "last_updated_at")),
            avg_update_interval_ms=float(_pick(data, "avgUpdateIntervalMs", "avg_update_interval_ms", default=0)),
            avg_latency_ms=float(_pick(data, "avgLatencyMs", "avg_latency_ms", default=0)),
            gas_cost_usd=float(_pick(data, "gasCostUsd", "gas_cost_usd", default=0)),
            uptime_percentage=float(_pick(data, "uptimePercentage", "uptime_percentage", default=0)),
            status=FeedStatus(_pick(data, "status", default="unknown")),
            update_count_24h=int(_pick(data, "updateCount24h", "update_count_24h", default=0)),
        )


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)


def _optional_int(value) -> Optional[int]:
    return None if value is None else int(value)
