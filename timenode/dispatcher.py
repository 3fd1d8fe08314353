"""
Hands every cached request to the router.

Each cached address gets its own fetch -> refresh -> route chain. Chains run
concurrently, optionally capped by a semaphore, and are joined so every
failure is reported per address instead of disappearing.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .base import RequestLibrary
from .cache import DiscoveryCache
from .errors import DispatchError

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    address: str
    ok: bool
    error: Optional[DispatchError] = None


class Dispatcher:
    """
    Args:
        cache: candidate set
        requests: builds request handles
        router: ``router(config, request)``, sync or async, result ignored
        config: passed through to the router untouched
        max_concurrency: cap on simultaneous chains, 0 for no cap
    """

    def __init__(
        self,
        cache: DiscoveryCache,
        requests: RequestLibrary,
        router: Callable[[Any, Any], Any],
        config: Any = None,
        max_concurrency: int = 0,
    ):
        self.cache = cache
        self.requests = requests
        self.router = router
        self.config = config
        self.max_concurrency = max_concurrency

        # Stats
        self.ticks = 0
        self.routed = 0
        self.failed = 0

    async def scan_cache(self) -> List[DispatchResult]:
        """Run one dispatch tick. An empty cache costs no remote calls."""
        if self.cache.len() == 0:
            return []

        addresses = self.cache.stored()
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency > 0 else None

        async def dispatch_with_limit(address):
            if semaphore is None:
                return await self._dispatch(address)
            async with semaphore:
                return await self._dispatch(address)

        results = await asyncio.gather(*(dispatch_with_limit(a) for a in addresses))

        self.ticks += 1
        failed = sum(1 for r in results if not r.ok)
        self.routed += len(results) - failed
        self.failed += failed
        if failed:
            logger.warning(f"Dispatch tick finished with {failed}/{len(results)} failures")
        return results

    async def _dispatch(self, address: str) -> DispatchResult:
        try:
            request = await self.requests.transaction_request(address)
            await request.refresh_data()
            outcome = self.router(self.config, request)
            if asyncio.iscoroutine(outcome):
                await outcome
        except Exception as e:
            error = DispatchError(address, e)
            logger.error(str(error))
            return DispatchResult(address, False, error)
        return DispatchResult(address, True)

    def get_stats(self) -> Dict:
        return {
            'ticks': self.ticks,
            'routed': self.routed,
            'failed': self.failed,
            'max_concurrency': self.max_concurrency or None,
        }
