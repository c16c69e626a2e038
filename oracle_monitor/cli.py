#!/usr/bin/env python3
"""
Oracle Monitor CLI - ad-hoc checks against live oracle feeds.

Examples:
  oracle-monitor list-chains
  oracle-monitor feed --chain ethereum --address 0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419
  oracle-monitor rounds --chain arbitrum --address 0x639Fe6ab55C921f74e7fac1ee960C0B6293ba612 --count 20
  oracle-monitor dapi --chain base --name ETH/USD
  oracle-monitor lag --feed ethereum:0x5f4e... --feed arbitrum:0x639F...
  oracle-monitor dispatch --frequency critical --feeds-file feeds.json
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone

from .analytics import (
    analyze_ocr_rounds,
    build_heartbeat_alerts,
    calculate_cross_chain_lag,
    get_score_level,
    rank_operators,
    score_operators,
    summarize_heartbeats,
)
from .config import API3_SERVER_ADDRESS, KNOWN_CHAINS, LOG_LEVEL, get_chain_config
from .formatting import (
    format_address,
    format_duration,
    format_percentage,
    format_price,
    format_response_time,
    format_time,
)
from .models import ChainlinkFeed

RULER = "=" * 60
THIN_RULER = "─" * 60

logger = logging.getLogger(__name__)


def list_available_chains():
    print("\nAvailable chains:")
    print("-" * 60)
    for key, chain in KNOWN_CHAINS.items():
        print(f"  {key:15} - {chain['name']} (Chain ID: {chain['chain_id']})")
    print("-" * 60)


def _resolve_rpc(chain: str, custom_rpc: str = None):
    chain_config = get_chain_config(chain, custom_rpc)
    if not chain_config:
        print(f"\nError: Unknown chain '{chain}'. Pass --rpc or choose a known chain:")
        list_available_chains()
        return None
    return chain_config


def _load_feed_configs(path: str) -> list:
    with open(path, "r") as f:
        content = json.load(f)
    return content if isinstance(content, list) else [content]


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_list_chains(args) -> int:
    list_available_chains()
    return 0


def cmd_feed(args) -> int:
    from .fetchers.chainlink import check_feed_health

    chain_config = _resolve_rpc(args.chain, args.rpc)
    if not chain_config:
        return 1

    health = check_feed_health(chain_config["rpc"], args.address, args.staleness)

    print(f"\n{RULER}")
    print(f"FEED HEALTH - {chain_config['name']}")
    print(RULER)
    print(f"  Feed: {format_address(args.address)}")
    print(f"  Status: {health['status'].upper()}")
    print(f"  RPC latency: {format_response_time(health['latency_ms'])}")

    if health["status"] == "unhealthy":
        print(f"  Error: {health['error']}")
        print(RULER)
        return 1

    print(f"  Price: {format_price(health['price'])}")
    print(f"  Round ID: {health['round_id']}")
    print(f"  Last Update: {format_time(health['updated_at'])} ({format_duration(health['age_seconds'])} ago)")
    for issue in health["issues"]:
        print(f"  ⚠️  {issue}")
    print(RULER)
    return 0


def cmd_heartbeat(args) -> int:
    from .fetchers.chainlink import get_feed_data

    feeds = []
    for config in _load_feed_configs(args.feeds_file):
        if config.get("protocol", "chainlink") != "chainlink":
            continue
        chain_config = _resolve_rpc(config.get("chain", "ethereum"), config.get("rpc_url"))
        if not chain_config:
            continue

        data = get_feed_data(chain_config["rpc"], config["address"])
        feed = ChainlinkFeed.from_dict(config)
        if data:
            feed.price = data["price"]
            feed.last_updated_at = data["timestamp"]
            feed.round_id = data["round_id"]
        else:
            print(f"  ⚠️  Failed to read {feed.symbol} on {feed.chain}")
        feeds.append(feed)

    alerts = build_heartbeat_alerts(feeds, datetime.now(timezone.utc))
    summary = summarize_heartbeats(alerts)

    print(f"\n{RULER}")
    print("HEARTBEAT MONITOR")
    print(RULER)
    for alert in alerts:
        print(
            f"  [{alert.status.value.upper():8}] {alert.symbol:12} {alert.chain:10} "
            f"{format_duration(alert.elapsed_seconds)} / {format_duration(alert.heartbeat)}"
        )
    print(THIN_RULER)
    print(
        f"  Total: {summary['total']}  Active: {summary['active']}  "
        f"Timeout: {summary['timeout']}  Critical: {summary['critical']}"
    )
    print(RULER)
    return 1 if summary["critical"] else 0


def cmd_rounds(args) -> int:
    from .fetchers.chainlink import fetch_recent_rounds

    chain_config = _resolve_rpc(args.chain, args.rpc)
    if not chain_config:
        return 1

    rounds = fetch_recent_rounds(chain_config["rpc"], args.address, args.count)
    if not rounds:
        print("\n⚠️  No rounds retrieved")
        return 1

    analysis = analyze_ocr_rounds(rounds)

    print(f"\n{RULER}")
    print(f"OCR ROUNDS - {format_address(args.address)} on {chain_config['name']}")
    print(RULER)
    for ocr_round in rounds:
        marker = " (stale)" if ocr_round.is_stale else ""
        print(
            f"  {ocr_round.round_id}  {format_price(ocr_round.answer):>16}  "
            f"{format_time(ocr_round.updated_at)}{marker}"
        )
    print(THIN_RULER)
    print(f"  Rounds: {analysis['round_count']}")
    print(f"  Avg duration: {analysis['duration']['avg_seconds']:.1f}s (max {analysis['duration']['max_seconds']:.1f}s)")
    print(f"  Stale rounds: {len(analysis['stale_rounds'])}")
    print(f"  Max answer change: {format_percentage(analysis['max_answer_change_pct'], 4)}")
    print(RULER)
    return 0


def cmd_dapi(args) -> int:
    from .fetchers.api3 import read_dapi

    chain_config = _resolve_rpc(args.chain, args.rpc)
    if not chain_config:
        return 1

    data = read_dapi(chain_config["rpc"], args.server, args.name)

    print(f"\n{RULER}")
    print(f"DAPI {args.name} - {chain_config['name']}")
    print(RULER)
    if data is None:
        print("  ⚠️  Failed to read dAPI")
        print(RULER)
        return 1

    print(f"  Value: {format_price(data['price'])}")
    print(f"  Last Update: {format_time(data['timestamp'])}")
    print(RULER)
    return 0


def cmd_operators(args) -> int:
    from .fetchers.api import OracleApiError, fetch_operators

    try:
        operators = fetch_operators(args.network)
    except OracleApiError as e:
        print(f"\nError: {e}")
        return 1

    ranked = rank_operators(score_operators(operators))

    print(f"\n{RULER}")
    print("NODE OPERATORS")
    print(RULER)
    for op in ranked:
        score = op.reliability_score
        state = "online" if op.online else "OFFLINE"
        print(
            f"  {op.name:24} {state:8} score {score.overall:3d} ({get_score_level(score.overall)})  "
            f"uptime {format_percentage(op.uptime, 1)}  rt {format_response_time(op.response_time_ms)}  "
            f"feeds {len(op.supported_feeds)}"
        )
    print(RULER)
    return 0


def cmd_lag(args) -> int:
    from .fetchers.chainlink import get_feed_data

    update_times = []
    for feed_arg in args.feed:
        chain, _, address = feed_arg.partition(":")
        chain_config = _resolve_rpc(chain)
        if not chain_config or not address:
            print(f"  ⚠️  Skipping '{feed_arg}', expected chain:address")
            continue
        data = get_feed_data(chain_config["rpc"], address)
        if data is None:
            print(f"  ⚠️  Failed to fetch data from {chain_config['name']}")
            continue
        update_times.append({"chain": chain_config["name"], "updated_at": data["updated_at"]})
        print(f"  {chain_config['name']}: {format_price(data['price'])} at {format_time(data['timestamp'])}")

    lag = calculate_cross_chain_lag(update_times)
    if lag is None:
        print("\n⚠️  Need data from at least two chains to calculate lag")
        return 1

    print(f"\n{RULER}")
    print(f"CROSS-CHAIN LAG: {lag['lag_seconds']:.0f} seconds ({lag['lag_minutes']:.2f} minutes)")
    print(f"  Newest: {lag['newest_chain']}")
    print(f"  Oldest: {lag['oldest_chain']}")
    print(RULER)
    return 0


def cmd_dispatch(args) -> int:
    from .core.dispatcher import DISPATCHERS, dispatch_all

    feed_configs = _load_feed_configs(args.feeds_file) if args.feeds_file else None

    if args.frequency == "all":
        results = dispatch_all(feed_configs)["frequencies"]
    else:
        results = {args.frequency: DISPATCHERS[args.frequency](feed_configs)}

    failed = False
    for name, result in results.items():
        print(f"\n{RULER}")
        print(f"DISPATCH {name.upper()}")
        print(RULER)
        if "error" in result:
            print(f"  Error: {result['error']}")
            failed = True
            continue
        print(f"  Feeds: {result['feeds_processed']}")
        print(f"  Metrics: {result['metrics_collected']}")
        print(f"  Alerts: {result['alerts_triggered']}")
        for error in result["errors"]:
            print(f"  ⚠️  {error}")
    print(RULER)
    return 1 if failed else 0


def cmd_init_db(args) -> int:
    from .core.alerts import seed_default_thresholds
    from .core.db import check_connection, init_schema

    if not check_connection():
        print("❌ Cannot connect to the monitoring database")
        return 1

    count = init_schema()
    print(f"Created or verified {count} schema objects")
    if args.seed_thresholds:
        print(f"Seeded {seed_default_thresholds()} default thresholds")
    return 0


def cmd_load_feeds(args) -> int:
    from .core.registry import load_all_configs_from_directory

    loaded = load_all_configs_from_directory(args.directory)
    print(f"Loaded {loaded} feeds from {args.directory}")
    return 0 if loaded else 1


# =============================================================================
# ARGUMENTS
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oracle-monitor",
        description="Monitor Chainlink and API3 oracle feeds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("--log-level", default=LOG_LEVEL,
                        help="Logging level (default from LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list-chains", help="List all predefined chains")
    p.set_defaults(func=cmd_list_chains)

    p = sub.add_parser("feed", help="Check health of a Chainlink feed")
    p.add_argument("--chain", required=True, help="Chain name (e.g., ethereum, arbitrum)")
    p.add_argument("--address", required=True, help="Aggregator proxy address")
    p.add_argument("--rpc", help="Custom RPC endpoint")
    p.add_argument("--staleness", type=int, default=3600,
                   help="Seconds after which the feed counts as stale")
    p.set_defaults(func=cmd_feed)

    p = sub.add_parser("heartbeat", help="Heartbeat status for feeds in a JSON file")
    p.add_argument("--feeds-file", required=True, help="JSON feed config or list of configs")
    p.set_defaults(func=cmd_heartbeat)

    p = sub.add_parser("rounds", help="Analyze recent OCR rounds of a Chainlink feed")
    p.add_argument("--chain", required=True)
    p.add_argument("--address", required=True)
    p.add_argument("--rpc")
    p.add_argument("--count", type=int, default=10, help="Number of rounds to read")
    p.set_defaults(func=cmd_rounds)

    p = sub.add_parser("dapi", help="Read an API3 dAPI")
    p.add_argument("--chain", required=True)
    p.add_argument("--name", required=True, help="dAPI name, e.g. ETH/USD")
    p.add_argument("--rpc")
    p.add_argument("--server", default=API3_SERVER_ADDRESS, help="Api3ServerV1 address")
    p.set_defaults(func=cmd_dapi)

    p = sub.add_parser("operators", help="Score and rank node operators")
    p.add_argument("--network", help="Network filter passed to the API")
    p.set_defaults(func=cmd_operators)

    p = sub.add_parser("lag", help="Cross-chain update lag between Chainlink feeds")
    p.add_argument("--feed", action="append", required=True,
                   help="chain:address, repeat for each chain")
    p.set_defaults(func=cmd_lag)

    p = sub.add_parser("dispatch", help="Collect metrics, store them and raise alerts")
    p.add_argument("--frequency", choices=["critical", "high", "all"], default="critical")
    p.add_argument("--feeds-file", help="Use feed configs from a JSON file instead of the registry")
    p.set_defaults(func=cmd_dispatch)

    p = sub.add_parser("init-db", help="Create monitoring tables")
    p.add_argument("--seed-thresholds", action="store_true",
                   help="Also insert the default alert thresholds")
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser("load-feeds", help="Register every JSON feed config in a directory")
    p.add_argument("directory")
    p.set_defaults(func=cmd_load_feeds)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
