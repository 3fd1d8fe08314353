"""
REQUEST SCANNER

Finds scheduled requests around the chain head with two walks per cycle:

  previousFromRight(rightBlock)          nextFromLeft(leftTimestamp)
          |                                       |
          v  previousRequest                      v  nextRequest
  ... <- R3 <- R2 <- R1                   Q1 -> Q2 -> Q3 -> ...
  (block scheduled, descending)           (timestamp scheduled, ascending)

Each walk stores what falls inside its window and stops early once it meets
a cached request beyond the window's far edge.
"""
import logging
from typing import Dict

from .base import ChainClient, OrderedIndex
from .cache import DiscoveryCache
from .traversal import LinkTraversal
from .validation import ValidationGate
from .window import AVG_BLOCK_TIME_LITERAL, ScanWindow, WindowEstimator

logger = logging.getLogger(__name__)

# Lower guard on the descending exit condition, carried over from the
# deployed keepers. It is not window relative and is most likely a bug;
# override via the ``descending_exit_floor`` setting rather than editing it.
DESCENDING_EXIT_FLOOR = 105


class DualScanner:
    def __init__(
        self,
        chain: ChainClient,
        tracker: OrderedIndex,
        gate: ValidationGate,
        cache: DiscoveryCache,
        scan_spread: int,
        avg_block_time_mode: str = AVG_BLOCK_TIME_LITERAL,
        descending_exit_floor: int = DESCENDING_EXIT_FLOOR,
    ):
        self.tracker = tracker
        self.gate = gate
        self.cache = cache
        self.estimator = WindowEstimator(chain, scan_spread, avg_block_time_mode)
        self.descending_exit_floor = descending_exit_floor

        # Stats
        self.cycles = 0
        self.stored = 0
        self.last_window = None

    async def scan_blockchain(self) -> ScanWindow:
        """
        Run one scan cycle.

        Both walks run every cycle, whatever happens to the other one. The
        first walk error is raised once both have finished; requests stored
        before a failure stay cached.
        """
        window = await self.estimator.estimate()
        self.last_window = window

        errors = []
        passes = (
            ('blocks', self.scan_blocks, window.left_block, window.right_block),
            ('timestamps', self.scan_timestamps, window.left_timestamp, window.right_timestamp),
        )
        try:
            for name, scan, left, right in passes:
                try:
                    await scan(left, right)
                except Exception as e:
                    logger.warning(f"Scan of {name} [{left}, {right}] failed: {e}")
                    errors.append(e)
        finally:
            self.cache.flush()

        if errors:
            raise errors[0]

        self.cycles += 1
        return window

    async def scan_blocks(self, left: int, right: int) -> int:
        """Descending walk over block scheduled requests."""
        first_address = await self.tracker.previous_from_right(right)

        def should_store(window_start: int) -> bool:
            return window_start >= left

        def at_bound(window_start: int) -> bool:
            if window_start < left and window_start > self.descending_exit_floor:
                logger.debug(
                    f"Scan exit condition hit! Previous window start precedes left bound. "
                    f"WindowStart: {window_start} | left: {left}"
                )
                return True
            return False

        return await self._scan(left, right, first_address, should_store, at_bound,
                                self.tracker.previous_request)

    async def scan_timestamps(self, left: int, right: int) -> int:
        """Ascending walk over timestamp scheduled requests."""
        first_address = await self.tracker.next_from_left(left)

        def should_store(window_start: int) -> bool:
            return window_start <= right

        def at_bound(window_start: int) -> bool:
            if window_start > right:
                logger.debug(
                    f"Scan exit condition hit! Next window start exceeds right bound. "
                    f"WindowStart: {window_start} | right: {right}"
                )
                return True
            return False

        return await self._scan(left, right, first_address, should_store, at_bound,
                                self.tracker.next_request)

    async def _scan(self, left, right, first_address, should_store, at_bound, step) -> int:
        traversal = LinkTraversal(
            self.gate,
            self.cache,
            left,
            right,
            first_address,
            should_store,
            at_bound,
            step,
        )
        stored = await traversal.run()
        self.stored += stored
        return stored

    def get_stats(self) -> Dict:
        window = self.last_window
        return {
            'cycles': self.cycles,
            'stored': self.stored,
            'mismatches': self.gate.mismatches,
            'cached': self.cache.len(),
            'last_window': {
                'blocks': (window.left_block, window.right_block),
                'timestamps': (window.left_timestamp, window.right_timestamp),
            } if window else None,
        }
