"""
Monitoring system configuration.

Database connection, data sources, RPC endpoints and scheduling settings.
Every value can be overridden through environment variables.
"""

import os

# Database configuration - metrics history and alert log
DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "database": os.getenv("DB_NAME", "oracle_monitor"),
    "user": os.getenv("DB_USER", "oracle_monitor"),
    "password": os.getenv("DB_PASSWORD", ""),
    "port": int(os.getenv("DB_PORT", 5432))
}

# All tables prefixed with 'om_' to share a schema with other services
SCHEMA_NAME = os.getenv("DB_SCHEMA", "public")
TABLE_PREFIX = "om_"

# Oracle dashboard JSON API
ORACLE_API_BASE_URL = os.getenv("ORACLE_API_BASE_URL", "http://localhost:3000")
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", 15))

# Alert notification settings
ALERT_CONFIG = {
    "slack_webhook": os.getenv("SLACK_WEBHOOK_URL"),
}

# Metric frequency categories (in minutes)
FREQUENCY_CONFIG = {
    "critical": 5,      # oracle freshness, heartbeat, deviation
    "high": 30,         # OCR rounds, update frequency
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Predefined chains with public RPC endpoints; <CHAIN>_RPC_URL overrides
KNOWN_CHAINS = {
    "ethereum": {
        "name": "Ethereum",
        "rpc": os.getenv("ETHEREUM_RPC_URL", "https://eth.llamarpc.com"),
        "chain_id": 1
    },
    "polygon": {
        "name": "Polygon",
        "rpc": os.getenv("POLYGON_RPC_URL", "https://polygon-rpc.com"),
        "chain_id": 137
    },
    "arbitrum": {
        "name": "Arbitrum",
        "rpc": os.getenv("ARBITRUM_RPC_URL", "https://arb1.arbitrum.io/rpc"),
        "chain_id": 42161
    },
    "optimism": {
        "name": "Optimism",
        "rpc": os.getenv("OPTIMISM_RPC_URL", "https://mainnet.optimism.io"),
        "chain_id": 10
    },
    "avalanche": {
        "name": "Avalanche",
        "rpc": os.getenv("AVALANCHE_RPC_URL", "https://api.avax.network/ext/bc/C/rpc"),
        "chain_id": 43114
    },
    "bsc": {
        "name": "BSC",
        "rpc": os.getenv("BSC_RPC_URL", "https://bsc-dataseed.binance.org"),
        "chain_id": 56
    },
    "base": {
        "name": "Base",
        "rpc": os.getenv("BASE_RPC_URL", "https://mainnet.base.org"),
        "chain_id": 8453
    },
    "gnosis": {
        "name": "Gnosis",
        "rpc": os.getenv("GNOSIS_RPC_URL", "https://rpc.gnosischain.com"),
        "chain_id": 100
    }
}

# Api3ServerV1 is deployed at the same address on every supported chain
API3_SERVER_ADDRESS = os.getenv("API3_SERVER_ADDRESS", "0x709944a48cAf83535e43471680fDA4905FB3920a")


def get_chain_config(chain_name: str, custom_rpc: str = None):
    """
    Resolve a chain name to its configuration.

    Unknown chains need a custom RPC endpoint; returns None otherwise.
    """
    chain_lower = chain_name.lower()

    if chain_lower in KNOWN_CHAINS:
        config = KNOWN_CHAINS[chain_lower].copy()
        if custom_rpc:
            config["rpc"] = custom_rpc
        return config

    if not custom_rpc:
        return None

    return {
        "name": chain_name,
        "rpc": custom_rpc,
        "chain_id": None
    }
