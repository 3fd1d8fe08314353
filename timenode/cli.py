"""
Command line entry point.
"""
import argparse
import asyncio
import logging
import sys

from .config import LOG_LEVEL, get_timenode_config, load_config_file
from .errors import ConfigError
from .keeper import build_keeper
from .log import setup_logging

logger = logging.getLogger("timenode")

STATS_INTERVAL_SECONDS = 60


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scheduled transaction request scanner")
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument("--rpc-url", help="JSON-RPC endpoint")
    parser.add_argument("--tracker", help="Request tracker address")
    parser.add_argument("--factory", help="Request factory address")
    parser.add_argument("--spread", type=int, help="Half-width of the block window")
    parser.add_argument("--interval", type=float, help="Seconds between scan ticks")
    parser.add_argument("--cache-file", help="Persist discovered requests to this JSON file")
    parser.add_argument("--log-level", help=f"Logging level (default {LOG_LEVEL})")
    parser.add_argument("--no-color", action="store_true", help="Plain log output")
    parser.add_argument("--once", action="store_true",
                        help="Run one scan and one dispatch tick, then exit")
    return parser


def settings_from_args(args) -> dict:
    base = load_config_file(args.config) if args.config else get_timenode_config()
    overrides = {
        'rpc_url': args.rpc_url,
        'tracker': args.tracker,
        'factory': args.factory,
        'scan_spread': args.spread,
        'interval_seconds': args.interval,
        'cache_file': args.cache_file,
        'log_level': args.log_level,
    }
    if args.no_color:
        overrides['log_color'] = False
    base.update({k: v for k, v in overrides.items() if v is not None})
    return base


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = settings_from_args(args)
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2

    setup_logging(settings['log_level'], settings['log_color'])

    try:
        keeper = build_keeper(settings)
    except ConfigError as e:
        logger.error(str(e))
        return 2

    if args.once:
        await keeper.run_once()
        logger.info(f"Stats: {keeper.get_stats()}")
        return 0

    keeper.start()
    try:
        while True:
            await asyncio.sleep(STATS_INTERVAL_SECONDS)
            stats = keeper.get_stats()
            logger.info(
                f"Cached: {stats['cache']['size']} | "
                f"scan ticks: {stats['scheduler']['ticks']['scan']} | "
                f"dispatch ticks: {stats['scheduler']['ticks']['dispatch']} | "
                f"failures: {stats['scheduler']['failures']}"
            )
    finally:
        keeper.stop()


def run():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
