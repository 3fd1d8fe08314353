"""
Transaction request handles backed by the request contract's requestData().
"""
import logging
from typing import Dict, Optional

from web3 import Web3

from .base import RequestHandle, RequestLibrary
from .chain import DEFAULT_RPC_TIMEOUT, run_with_timeout
from .contracts import (
    REQUEST_ADDRESS_FIELDS,
    REQUEST_BOOL_FIELDS,
    REQUEST_UINT8_FIELDS,
    REQUEST_UINT_FIELDS,
    TEMPORAL_UNIT_BLOCKS,
    TEMPORAL_UNIT_TIMESTAMP,
    TRANSACTION_REQUEST_ABI,
)

logger = logging.getLogger(__name__)


def decode_request_data(raw) -> Dict:
    """Map the four arrays returned by requestData() onto field names."""
    address_values, bool_values, uint_values, uint8_values = raw
    data = {}
    data.update(zip(REQUEST_ADDRESS_FIELDS, address_values))
    data.update(zip(REQUEST_BOOL_FIELDS, (bool(v) for v in bool_values)))
    data.update(zip(REQUEST_UINT_FIELDS, (int(v) for v in uint_values)))
    data.update(zip(REQUEST_UINT8_FIELDS, (int(v) for v in uint8_values)))
    return data


class TransactionRequest(RequestHandle):
    def __init__(self, w3: Web3, address: str, timeout: float = DEFAULT_RPC_TIMEOUT):
        self.address = Web3.to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=TRANSACTION_REQUEST_ABI)
        self.timeout = timeout
        self.data: Optional[Dict] = None

    @property
    def window_start(self) -> Optional[int]:
        return self.data['window_start'] if self.data else None

    @property
    def window_size(self) -> Optional[int]:
        return self.data['window_size'] if self.data else None

    @property
    def temporal_unit(self) -> Optional[int]:
        return self.data['temporal_unit'] if self.data else None

    @property
    def is_block_scheduled(self) -> bool:
        return self.temporal_unit == TEMPORAL_UNIT_BLOCKS

    @property
    def is_timestamp_scheduled(self) -> bool:
        return self.temporal_unit == TEMPORAL_UNIT_TIMESTAMP

    @property
    def is_cancelled(self) -> bool:
        return bool(self.data and self.data['is_cancelled'])

    @property
    def was_called(self) -> bool:
        return bool(self.data and self.data['was_called'])

    async def fill_data(self):
        """Load request data unless it is already loaded"""
        if self.data is None:
            await self.refresh_data()

    async def refresh_data(self):
        raw = await run_with_timeout(
            f"[{self.address}] requestData",
            self.contract.functions.requestData().call,
            timeout=self.timeout,
        )
        self.data = decode_request_data(raw)

    def __repr__(self):
        return f"TransactionRequest({self.address}, window_start={self.window_start})"


class Web3RequestLibrary(RequestLibrary):
    def __init__(self, w3: Web3, timeout: float = DEFAULT_RPC_TIMEOUT):
        self.w3 = w3
        self.timeout = timeout

    async def transaction_request(self, address: str) -> TransactionRequest:
        return TransactionRequest(self.w3, address, self.timeout)
