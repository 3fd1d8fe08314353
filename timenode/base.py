"""
Collaborator interfaces consumed by the scanner and the dispatcher.

Concrete web3 implementations live in chain.py, tracker.py and request.py;
tests provide in-memory versions.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union


NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

BlockIdentifier = Union[int, str]


def is_null_address(address: Optional[str]) -> bool:
    """Tracker contracts return the zero address when a walk runs off the end."""
    return address is None or address.lower() == NULL_ADDRESS


@dataclass(frozen=True)
class Block:
    number: int
    timestamp: int


class ChainClient(ABC):
    """Read access to chain blocks"""

    @abstractmethod
    async def get_block(self, block_identifier: BlockIdentifier = "latest") -> Block:
        """
        Fetch a block by number or tag.

        Raises:
            RemoteFetchError: the RPC call failed
        """
        pass


class OrderedIndex(ABC):
    """
    The request tracker: a doubly linked list of request addresses kept
    sorted by window start, terminated by NULL_ADDRESS at both ends.
    """

    @abstractmethod
    def set_factory(self, factory_address: str):
        """Bind the factory whose requests the tracker is queried for"""
        pass

    @abstractmethod
    async def window_start_for(self, address: str) -> int:
        pass

    @abstractmethod
    async def previous_from_right(self, bound: int) -> str:
        """Nearest request with window start at or before ``bound``"""
        pass

    @abstractmethod
    async def next_from_left(self, bound: int) -> str:
        """Nearest request with window start at or after ``bound``"""
        pass

    @abstractmethod
    async def previous_request(self, address: str) -> str:
        pass

    @abstractmethod
    async def next_request(self, address: str) -> str:
        pass


class RequestHandle(ABC):
    """A scheduled transaction request whose data is loaded lazily"""

    address: str

    @property
    @abstractmethod
    def window_start(self) -> Optional[int]:
        """Window start as loaded by the last fill/refresh, None before that"""
        pass

    @abstractmethod
    async def fill_data(self):
        pass

    @abstractmethod
    async def refresh_data(self):
        pass


class RequestLibrary(ABC):
    """Builds request handles from addresses"""

    @abstractmethod
    async def transaction_request(self, address: str) -> RequestHandle:
        pass


class CacheBackend(ABC):
    """
    Key/value store behind DiscoveryCache.

    Values are stored as text; readers parse them back.
    """

    @abstractmethod
    def has(self, key: str) -> bool:
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str):
        pass

    @abstractmethod
    def delete(self, key: str):
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    def flush(self):
        """Persist pending writes. Nothing to do for volatile backends."""
