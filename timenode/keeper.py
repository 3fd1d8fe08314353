"""
Wires the scanner, dispatcher and scheduler together.

The only public controls are ``start()`` and ``stop()``.
"""
import logging
from typing import Dict

from .cache import DiscoveryCache, JsonFileBackend, MemoryBackend
from .chain import Web3ChainClient, make_web3
from .config import KeeperConfig, validate_config
from .dispatcher import Dispatcher
from .request import Web3RequestLibrary
from .routing import log_route
from .scanner import DualScanner
from .scheduler import PollingScheduler
from .tracker import RequestTracker
from .validation import ValidationGate

logger = logging.getLogger(__name__)


class Keeper:
    def __init__(self, config: KeeperConfig):
        self.config = config
        self.cache = config.cache

        tracker = config.tracker
        tracker.set_factory(config.factory_address)

        self.gate = ValidationGate(tracker, config.requests)
        self.scanner = DualScanner(
            config.chain,
            tracker,
            self.gate,
            self.cache,
            config.scan_spread,
            avg_block_time_mode=config.avg_block_time_mode,
            descending_exit_floor=config.descending_exit_floor,
        )
        self.dispatcher = Dispatcher(
            self.cache,
            config.requests,
            config.router,
            config=config,
            max_concurrency=config.max_dispatch_concurrency,
        )
        self.scheduler = PollingScheduler(
            self.scanner.scan_blockchain,
            self.dispatcher.scan_cache,
            config.interval_seconds,
            dispatch_offset=config.dispatch_offset_seconds,
        )

        logger.info(f"Scanning request tracker at {getattr(tracker, 'address', tracker)}")
        logger.info(f"Validating results with factory at {config.factory_address}")
        logger.info(f"Scanning every {config.interval_seconds} seconds.")

    @property
    def started(self) -> bool:
        return self.scheduler.started

    def start(self):
        self.scheduler.start()

    def stop(self):
        self.scheduler.stop()
        self.cache.flush()

    async def run_once(self):
        """One scan tick and one dispatch tick, without the timers"""
        await self.scheduler.run_once()

    def get_stats(self) -> Dict:
        return {
            'scanner': self.scanner.get_stats(),
            'dispatcher': self.dispatcher.get_stats(),
            'scheduler': self.scheduler.get_stats(),
            'cache': self.cache.get_stats(),
        }


def build_keeper(settings: Dict, router=log_route) -> Keeper:
    """
    Build a keeper talking to a real node from a settings dict.

    Raises:
        ConfigError: invalid settings
    """
    settings = validate_config(settings)
    w3 = make_web3(settings['rpc_url'], settings['rpc_timeout'])

    chain = Web3ChainClient(w3, settings['rpc_timeout'])
    if not chain.connect():
        logger.warning(f"RPC at {settings['rpc_url']} is not reachable yet, ticks will fail until it is")

    if settings['cache_file']:
        backend = JsonFileBackend(settings['cache_file'])
    else:
        backend = MemoryBackend()

    config = KeeperConfig(
        scan_spread=int(settings['scan_spread']),
        interval_seconds=float(settings['interval_seconds']),
        factory_address=settings['factory'],
        chain=chain,
        tracker=RequestTracker(w3, settings['tracker'], settings['rpc_timeout']),
        requests=Web3RequestLibrary(w3, settings['rpc_timeout']),
        cache=DiscoveryCache(backend, settings['cache_ttl_seconds']),
        router=router,
        dispatch_offset_seconds=float(settings['dispatch_offset_seconds']),
        avg_block_time_mode=settings['avg_block_time_mode'],
        descending_exit_floor=int(settings['descending_exit_floor']),
        max_dispatch_concurrency=int(settings['max_dispatch_concurrency']),
        settings=settings,
    )
    return Keeper(config)
