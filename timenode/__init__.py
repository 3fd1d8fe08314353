"""
TIMENODE REQUEST SCANNER

Discovers scheduled transaction requests before their execution window
opens and hands each one to a router.

Architecture:
  PollingScheduler
     |-- scan timer ----> DualScanner
     |                      |-- WindowEstimator (block + timestamp window)
     |                      |-- LinkTraversal x2 (descending by block,
     |                      |                     ascending by timestamp)
     |                      |      |-- ValidationGate
     |                      |      `-- DiscoveryCache
     `-- dispatch timer -> Dispatcher --> router(config, request)
                              `-- DiscoveryCache

SAFETY: READ-ONLY. Nothing here signs or submits transactions.
"""

from .base import NULL_ADDRESS, Block, is_null_address
from .cache import DiscoveryCache, JsonFileBackend, MemoryBackend
from .config import KeeperConfig, get_timenode_config, load_config_file, validate_config
from .dispatcher import DispatchResult, Dispatcher
from .errors import (
    ConfigError,
    DispatchError,
    InvalidAddressError,
    RemoteFetchError,
    TimenodeError,
    WindowMismatchError,
)
from .keeper import Keeper, build_keeper
from .scanner import DESCENDING_EXIT_FLOOR, DualScanner
from .scheduler import DISPATCH_OFFSET_SECONDS, PollingScheduler
from .traversal import LinkTraversal
from .validation import ValidationGate
from .window import ScanWindow, WindowEstimator

__all__ = [
    # Types
    'NULL_ADDRESS',
    'Block',
    'ScanWindow',
    'is_null_address',
    # Core
    'WindowEstimator',
    'ValidationGate',
    'LinkTraversal',
    'DualScanner',
    'DiscoveryCache',
    'MemoryBackend',
    'JsonFileBackend',
    'Dispatcher',
    'DispatchResult',
    'PollingScheduler',
    'Keeper',
    'build_keeper',
    'DESCENDING_EXIT_FLOOR',
    'DISPATCH_OFFSET_SECONDS',
    # Config
    'KeeperConfig',
    'get_timenode_config',
    'load_config_file',
    'validate_config',
    # Errors
    'TimenodeError',
    'ConfigError',
    'InvalidAddressError',
    'WindowMismatchError',
    'RemoteFetchError',
    'DispatchError',
]
