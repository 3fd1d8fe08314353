"""
Timenode configuration.

Defaults come from the environment (a .env file is honoured), a YAML file
can override them, and CLI flags override both.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from dotenv import load_dotenv
from web3 import Web3

from .base import ChainClient, OrderedIndex, RequestLibrary
from .cache import DiscoveryCache
from .errors import ConfigError
from .scanner import DESCENDING_EXIT_FLOOR
from .scheduler import DISPATCH_OFFSET_SECONDS
from .window import AVG_BLOCK_TIME_LITERAL, AVG_BLOCK_TIME_MODES

load_dotenv()

RPC_URL = os.getenv("TIMENODE_RPC_URL", "http://localhost:8545")
TRACKER_ADDRESS = os.getenv("TIMENODE_TRACKER_ADDRESS", "")
FACTORY_ADDRESS = os.getenv("TIMENODE_FACTORY_ADDRESS", "")
SCAN_SPREAD = int(os.getenv("TIMENODE_SCAN_SPREAD", "50"))
INTERVAL_SECONDS = float(os.getenv("TIMENODE_INTERVAL_SECONDS", "5"))
CACHE_FILE = os.getenv("TIMENODE_CACHE_FILE", "")
LOG_LEVEL = os.getenv("TIMENODE_LOG_LEVEL", "INFO")

TIMENODE_CONFIG = {
    # ============================================
    # CHAIN
    # ============================================
    'rpc_url': RPC_URL,
    'rpc_timeout': 10.0,
    'tracker': TRACKER_ADDRESS,
    'factory': FACTORY_ADDRESS,

    # ============================================
    # SCANNING
    # ============================================
    # Half-width of the block window around the head
    'scan_spread': SCAN_SPREAD,
    'interval_seconds': INTERVAL_SECONDS,
    'dispatch_offset_seconds': DISPATCH_OFFSET_SECONDS,
    # 'literal' reproduces the deployed formula, 'delta' is the corrected one
    'avg_block_time_mode': AVG_BLOCK_TIME_LITERAL,
    'descending_exit_floor': DESCENDING_EXIT_FLOOR,

    # ============================================
    # DISPATCH
    # ============================================
    # 0 = no cap on simultaneous fetch/refresh/route chains
    'max_dispatch_concurrency': 0,

    # ============================================
    # CACHE
    # ============================================
    # Empty = in-memory only
    'cache_file': CACHE_FILE,
    # None = keep entries forever
    'cache_ttl_seconds': None,

    # ============================================
    # LOGGING
    # ============================================
    'log_level': LOG_LEVEL,
    'log_color': True,
}


def get_timenode_config(overrides: Dict = None) -> Dict:
    """Defaults merged with ``overrides``; None values in overrides are ignored."""
    config = dict(TIMENODE_CONFIG)
    for key, value in (overrides or {}).items():
        if key not in TIMENODE_CONFIG:
            raise ConfigError(f"Unknown setting: {key}")
        if value is not None:
            config[key] = value
    return config


def load_config_file(path) -> Dict:
    """Read settings from a YAML file"""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return get_timenode_config(data)


def validate_config(config: Dict) -> Dict:
    """
    Check a settings dict.

    Raises:
        ConfigError: first problem found
    """
    try:
        spread = int(config['scan_spread'])
        interval = float(config['interval_seconds'])
        concurrency = int(config['max_dispatch_concurrency'])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    if spread <= 0:
        raise ConfigError("scan_spread must be a positive integer")
    if interval <= 0:
        raise ConfigError("interval_seconds must be positive")
    if concurrency < 0:
        raise ConfigError("max_dispatch_concurrency must be >= 0")
    if config['avg_block_time_mode'] not in AVG_BLOCK_TIME_MODES:
        raise ConfigError(
            f"avg_block_time_mode must be one of {AVG_BLOCK_TIME_MODES}, "
            f"got {config['avg_block_time_mode']!r}"
        )
    for key in ('tracker', 'factory'):
        if not config.get(key):
            raise ConfigError(f"{key} address is required")
        if not Web3.is_address(config[key]):
            raise ConfigError(f"{key} is not a valid address: {config[key]}")
    return config


@dataclass
class KeeperConfig:
    """
    Validated settings plus the collaborators built from them.

    Routers receive this object as their ``config`` argument.
    """
    scan_spread: int
    interval_seconds: float
    factory_address: str
    chain: ChainClient
    tracker: OrderedIndex
    requests: RequestLibrary
    cache: DiscoveryCache
    router: Callable[[Any, Any], Any]
    dispatch_offset_seconds: float = DISPATCH_OFFSET_SECONDS
    avg_block_time_mode: str = AVG_BLOCK_TIME_LITERAL
    descending_exit_floor: int = DESCENDING_EXIT_FLOOR
    max_dispatch_concurrency: int = 0
    settings: Optional[Dict] = None
