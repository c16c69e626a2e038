"""
Feed Registry - Manages monitored oracle feeds and their configurations.

A feed config is a JSON object such as:

    {
        "feed_id": "eth-usd-ethereum",
        "protocol": "chainlink",
        "symbol": "ETH/USD",
        "chain": "ethereum",
        "address": "0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419",
        "heartbeat_seconds": 3600,
        "deviation_threshold_pct": 0.5,
        "round_count": 10
    }

API3 feeds carry "dapi_name" (and optionally "server_address") instead of
"address".
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .db import execute_query, get_connection, table_name

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOLS = ("chainlink", "api3")


def validate_feed_config(config: dict) -> List[str]:
    """Return a list of problems with a feed config (empty when valid)."""
    errors = []

    for key in ("feed_id", "protocol", "symbol", "chain"):
        if not config.get(key):
            errors.append(f"Missing required field: {key}")

    protocol = config.get("protocol")
    if protocol and protocol not in SUPPORTED_PROTOCOLS:
        errors.append(f"Unsupported protocol: {protocol}")
    if protocol == "chainlink" and not config.get("address"):
        errors.append("Chainlink feeds need an aggregator address")
    if protocol == "api3" and not config.get("dapi_name"):
        errors.append("API3 feeds need a dapi_name")

    heartbeat = config.get("heartbeat_seconds")
    if heartbeat is not None and (not isinstance(heartbeat, (int, float)) or heartbeat <= 0):
        errors.append("heartbeat_seconds must be a positive number")

    return errors


def _parse(row: Dict) -> Dict:
    if isinstance(row.get("config"), str):
        row["config"] = json.loads(row["config"])
    return row


class FeedRegistry:
    """
    Manages the feed registry for monitoring.

    Feeds are stored in the database with their full JSON configuration,
    which the dispatchers hand to the protocol fetchers.
    """

    @staticmethod
    def add_feed(config: dict, enabled: bool = True) -> int:
        """
        Add or replace a feed in the registry.

        Raises:
            ValueError: if the config is invalid

        Returns:
            Inserted feed row ID
        """
        errors = validate_feed_config(config)
        if errors:
            raise ValueError(f"Invalid feed config: {'; '.join(errors)}")

        query = f"""
            INSERT INTO {table_name('feed_registry')} (feed_id, protocol, symbol, chain, config, enabled)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (feed_id) DO UPDATE SET
                protocol = EXCLUDED.protocol,
                symbol = EXCLUDED.symbol,
                chain = EXCLUDED.chain,
                config = EXCLUDED.config,
                enabled = EXCLUDED.enabled,
                updated_at = NOW()
            RETURNING id
        """

        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (
                    config["feed_id"], config["protocol"], config["symbol"],
                    config["chain"], json.dumps(config), enabled
                ))
                row_id = cur.fetchone()[0]
                conn.commit()
                return row_id

    @staticmethod
    def add_feed_from_file(file_path: str, enabled: bool = True) -> int:
        """Add a feed from a JSON config file; feed_id defaults to the file stem."""
        with open(file_path, "r") as f:
            config = json.load(f)

        config.setdefault("feed_id", Path(file_path).stem)
        return FeedRegistry.add_feed(config, enabled)

    @staticmethod
    def get_feed(feed_id: str) -> Optional[Dict]:
        query = f"""
            SELECT id, feed_id, protocol, symbol, chain, config, enabled, created_at, updated_at
            FROM {table_name('feed_registry')}
            WHERE feed_id = %s
        """
        results = execute_query(query, (feed_id,))
        return _parse(results[0]) if results else None

    @staticmethod
    def get_all_feeds(enabled_only: bool = True, protocol: str = None) -> List[Dict]:
        """
        Get registered feeds.

        Args:
            enabled_only: If True, only return enabled feeds
            protocol: Optional protocol filter ('chainlink' or 'api3')
        """
        query = f"""
            SELECT id, feed_id, protocol, symbol, chain, config, enabled, created_at, updated_at
            FROM {table_name('feed_registry')}
        """
        conditions = []
        params = []
        if enabled_only:
            conditions.append("enabled = true")
        if protocol:
            conditions.append("protocol = %s")
            params.append(protocol)
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY feed_id"

        results = execute_query(query, tuple(params) if params else None)
        return [_parse(row) for row in results]

    @staticmethod
    def update_feed(feed_id: str, config: dict = None, enabled: bool = None) -> bool:
        """Update a feed's configuration or enabled status; True if a row changed."""
        updates = []
        params = []

        if config is not None:
            errors = validate_feed_config({**config, "feed_id": feed_id})
            if errors:
                raise ValueError(f"Invalid feed config: {'; '.join(errors)}")
            updates.extend(["protocol = %s", "symbol = %s", "chain = %s", "config = %s"])
            params.extend([config["protocol"], config["symbol"], config["chain"], json.dumps(config)])

        if enabled is not None:
            updates.append("enabled = %s")
            params.append(enabled)

        if not updates:
            return False

        updates.append("updated_at = NOW()")
        params.append(feed_id)

        query = f"""
            UPDATE {table_name('feed_registry')}
            SET {', '.join(updates)}
            WHERE feed_id = %s
        """

        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, tuple(params))
                conn.commit()
                return cur.rowcount > 0

    @staticmethod
    def disable_feed(feed_id: str) -> bool:
        return FeedRegistry.update_feed(feed_id, enabled=False)

    @staticmethod
    def enable_feed(feed_id: str) -> bool:
        return FeedRegistry.update_feed(feed_id, enabled=True)

    @staticmethod
    def delete_feed(feed_id: str) -> bool:
        query = f"DELETE FROM {table_name('feed_registry')} WHERE feed_id = %s"

        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (feed_id,))
                conn.commit()
                return cur.rowcount > 0


def load_all_configs_from_directory(directory: str) -> int:
    """
    Load all JSON feed configs from a directory into the registry.

    A file holding a JSON list registers every entry. Invalid files are
    logged and skipped.

    Returns:
        Number of feeds loaded
    """
    loaded = 0

    for json_file in sorted(Path(directory).glob("*.json")):
        try:
            with open(json_file, "r") as f:
                content = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read {json_file.name}: {e}")
            continue

        configs = content if isinstance(content, list) else [content]
        for config in configs:
            if len(configs) == 1:
                config.setdefault("feed_id", json_file.stem)
            try:
                FeedRegistry.add_feed(config)
                loaded += 1
                logger.info(f"Loaded {config.get('feed_id')} from {json_file.name}")
            except (ValueError, KeyError) as e:
                logger.error(f"Skipped entry in {json_file.name}: {e}")

    return loaded
