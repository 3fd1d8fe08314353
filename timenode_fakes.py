"""
In-memory collaborators for the timenode tests.
"""
import asyncio
from typing import Dict, List, Tuple

from timenode.base import (
    NULL_ADDRESS,
    Block,
    ChainClient,
    OrderedIndex,
    RequestHandle,
    RequestLibrary,
)
from timenode.errors import RemoteFetchError


def addr(n: int) -> str:
    return "0x" + format(n, "040x")


class FakeChain(ChainClient):
    def __init__(self, head: Block, timestamps: Dict[int, int] = None):
        self.head = head
        self.timestamps = timestamps or {}
        self.calls = []
        self.fail = False

    async def get_block(self, block_identifier="latest") -> Block:
        self.calls.append(block_identifier)
        if self.fail:
            raise RemoteFetchError("eth_getBlockByNumber", ConnectionError("node down"))
        if block_identifier == "latest":
            return self.head
        return Block(block_identifier, self.timestamps[block_identifier])


class FakeTracker(OrderedIndex):
    """
    Sorted linked list of (address, window_start).

    ``links`` overrides the neighbour returned for an address, to simulate
    malformed tracker responses.
    """

    def __init__(self, entries: List[Tuple[str, int]]):
        self.entries = sorted(entries, key=lambda e: e[1])
        self.window_starts = dict(self.entries)
        self.links: Dict[Tuple[str, str], str] = {}
        self.factory = None
        self.calls = []

    def _order(self):
        return [a for a, _ in self.entries]

    def set_factory(self, factory_address):
        self.factory = factory_address

    async def window_start_for(self, address):
        self.calls.append(('window_start_for', address))
        return self.window_starts[address]

    async def previous_from_right(self, bound):
        self.calls.append(('previous_from_right', bound))
        found = NULL_ADDRESS
        for address, window_start in self.entries:
            if window_start <= bound:
                found = address
        return found

    async def next_from_left(self, bound):
        self.calls.append(('next_from_left', bound))
        for address, window_start in self.entries:
            if window_start >= bound:
                return address
        return NULL_ADDRESS

    async def previous_request(self, address):
        self.calls.append(('previous_request', address))
        if ('previous', address) in self.links:
            return self.links[('previous', address)]
        order = self._order()
        index = order.index(address)
        return order[index - 1] if index > 0 else NULL_ADDRESS

    async def next_request(self, address):
        self.calls.append(('next_request', address))
        if ('next', address) in self.links:
            return self.links[('next', address)]
        order = self._order()
        index = order.index(address)
        return order[index + 1] if index + 1 < len(order) else NULL_ADDRESS

    def stepped_from(self, name):
        return [a for call, a in self.calls if call == name]


class FakeRequest(RequestHandle):
    def __init__(self, library, address, window_start):
        self.library = library
        self.address = address
        self._source_window_start = window_start
        self._window_start = None
        self.fills = 0
        self.refreshes = 0

    @property
    def window_start(self):
        return self._window_start

    async def fill_data(self):
        self.fills += 1
        self._window_start = self._source_window_start

    async def refresh_data(self):
        self.refreshes += 1
        if self.address in self.library.fail_refresh:
            raise RemoteFetchError(f"[{self.address}] requestData", ConnectionError("reset"))
        if self.library.refresh_delay:
            self.library.active += 1
            self.library.max_active = max(self.library.max_active, self.library.active)
            await asyncio.sleep(self.library.refresh_delay)
            self.library.active -= 1
        self._window_start = self._source_window_start


class FakeRequestLibrary(RequestLibrary):
    def __init__(self, window_starts: Dict[str, int]):
        self.window_starts = dict(window_starts)
        self.fail_refresh = set()
        self.refresh_delay = 0
        self.active = 0
        self.max_active = 0
        self.requested = []
        self.handles = []

    async def transaction_request(self, address):
        self.requested.append(address)
        handle = FakeRequest(self, address, self.window_starts[address])
        self.handles.append(handle)
        return handle


class RecordingRouter:
    def __init__(self):
        self.routed = []

    def __call__(self, config, request):
        self.routed.append((config, request))
