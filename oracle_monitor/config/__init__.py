"""Configuration for the oracle monitor."""

from .settings import (
    DB_CONFIG,
    SCHEMA_NAME,
    TABLE_PREFIX,
    ORACLE_API_BASE_URL,
    API_TIMEOUT_SECONDS,
    ALERT_CONFIG,
    FREQUENCY_CONFIG,
    LOG_LEVEL,
    KNOWN_CHAINS,
    API3_SERVER_ADDRESS,
    get_chain_config,
)

__all__ = [
    "DB_CONFIG",
    "SCHEMA_NAME",
    "TABLE_PREFIX",
    "ORACLE_API_BASE_URL",
    "API_TIMEOUT_SECONDS",
    "ALERT_CONFIG",
    "FREQUENCY_CONFIG",
    "LOG_LEVEL",
    "KNOWN_CHAINS",
    "API3_SERVER_ADDRESS",
    "get_chain_config",
]
