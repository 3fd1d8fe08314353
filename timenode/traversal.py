"""
Walks over the tracker's linked list of requests.

One traversal is a single pass in one direction, starting from an entry
point and following ``step`` until the null address or until a cached
request reports that the walk has crossed its bound.
"""
import logging
from contextlib import aclosing
from typing import AsyncIterator, Awaitable, Callable

from .base import is_null_address
from .cache import DiscoveryCache
from .validation import ValidationGate

logger = logging.getLogger(__name__)


class LinkTraversal:
    """
    A restartable walk over the tracker.

    Args:
        gate: validates addresses and loads requests
        cache: discovered requests, shared with the other direction
        left, right: bounds of the window being scanned
        first_address: entry point returned by the tracker
        should_store: whether a freshly loaded window start is in the window
        at_bound: whether a cached window start ends the walk
        step: fetches the neighbour of an address in the walk direction
    """

    def __init__(
        self,
        gate: ValidationGate,
        cache: DiscoveryCache,
        left: int,
        right: int,
        first_address: str,
        should_store: Callable[[int], bool],
        at_bound: Callable[[int], bool],
        step: Callable[[str], Awaitable[str]],
    ):
        self.gate = gate
        self.cache = cache
        self.left = left
        self.right = right
        self.first_address = first_address
        self.should_store = should_store
        self.at_bound = at_bound
        self.step = step

    async def walk(self) -> AsyncIterator[str]:
        """
        Yield addresses one network round trip at a time.

        ``step`` is only awaited when the consumer asks for the next address,
        so breaking out of the iteration issues no further fetch.

        Raises:
            InvalidAddressError: the tracker handed out a malformed address
        """
        address = self.first_address
        while self.gate.is_correct(address):
            yield address
            address = await self.step(address)
            # Heartbeat
            if is_null_address(address):
                logger.debug("No new requests discovered.")

    async def run(self) -> int:
        """
        Walk until the end of the list or an exit condition.

        Returns:
            Number of requests stored during this walk
        """
        stored = 0
        async with aclosing(self.walk()) as addresses:
            async for address in addresses:
                logger.debug(f"[{address}] Discovered.")
                cached_window_start = self.cache.get(address)
                if cached_window_start is None:
                    request = await self.gate.fill(address)
                    if request is not None and self.should_store(request.window_start):
                        logger.info(f"[{address}] Storing.")
                        self.cache.set(address, request.window_start)
                        stored += 1
                elif self.at_bound(cached_window_start):
                    # window start won't change after schedule
                    break
        return stored
