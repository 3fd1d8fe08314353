"""
On-chain request tracker.

The tracker keeps one sorted linked list of requests per factory, so every
call is made on behalf of the factory bound with ``set_factory``.
"""
import logging

from web3 import Web3

from .base import OrderedIndex
from .chain import DEFAULT_RPC_TIMEOUT, run_with_timeout
from .contracts import OPERATOR_AT_OR_AFTER, OPERATOR_AT_OR_BEFORE, REQUEST_TRACKER_ABI
from .errors import TimenodeError

logger = logging.getLogger(__name__)


class RequestTracker(OrderedIndex):
    def __init__(self, w3: Web3, address: str, timeout: float = DEFAULT_RPC_TIMEOUT):
        self.address = Web3.to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=REQUEST_TRACKER_ABI)
        self.timeout = timeout
        self.factory = None

    def set_factory(self, factory_address: str):
        self.factory = Web3.to_checksum_address(factory_address)
        logger.debug(f"Tracker {self.address} bound to factory {self.factory}")

    async def window_start_for(self, address: str) -> int:
        return int(await self._call('getWindowStart', Web3.to_checksum_address(address)))

    async def previous_from_right(self, bound: int) -> str:
        return await self._call('query', OPERATOR_AT_OR_BEFORE, int(bound))

    async def next_from_left(self, bound: int) -> str:
        return await self._call('query', OPERATOR_AT_OR_AFTER, int(bound))

    async def previous_request(self, address: str) -> str:
        return await self._call('getPreviousRequest', Web3.to_checksum_address(address))

    async def next_request(self, address: str) -> str:
        return await self._call('getNextRequest', Web3.to_checksum_address(address))

    async def _call(self, name: str, *args):
        if self.factory is None:
            raise TimenodeError("Request tracker used before set_factory()")
        function = getattr(self.contract.functions, name)(self.factory, *args)
        return await run_with_timeout(f"RequestTracker.{name}", function.call, timeout=self.timeout)
