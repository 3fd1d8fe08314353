"""
Web3 backed chain client.

web3's HTTP provider is synchronous, so every call runs on a worker thread
with a timeout. Unlike the scanners' best-effort fetches, failures are
raised: a scan tick cannot continue without the block it asked for.
"""
import asyncio
import logging
from typing import Callable

from web3 import Web3

from .base import Block, BlockIdentifier, ChainClient
from .errors import RemoteFetchError

logger = logging.getLogger(__name__)

DEFAULT_RPC_TIMEOUT = 10.0


async def run_with_timeout(operation: str, func: Callable, *args, timeout: float = DEFAULT_RPC_TIMEOUT):
    """
    Run a blocking web3 call in a thread.

    Raises:
        RemoteFetchError: the call raised or did not finish within ``timeout``
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise RemoteFetchError(f"{operation} (timeout {timeout}s)", e) from e
    except Exception as e:
        raise RemoteFetchError(operation, e) from e


def make_web3(rpc_url: str, timeout: float = DEFAULT_RPC_TIMEOUT) -> Web3:
    return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={'timeout': timeout}))


class Web3ChainClient(ChainClient):
    def __init__(self, w3: Web3, timeout: float = DEFAULT_RPC_TIMEOUT):
        self.w3 = w3
        self.timeout = timeout
        self.last_block = 0

    def connect(self) -> bool:
        """Verify connectivity and record the current head"""
        try:
            if not self.w3.is_connected():
                logger.error("Could not connect to RPC")
                return False
            self.last_block = self.w3.eth.block_number
        except Exception as e:
            logger.error(f"Connection error: {e}")
            return False

        logger.info(f"Connected! Block: {self.last_block}")
        return True

    async def get_block(self, block_identifier: BlockIdentifier = "latest") -> Block:
        block = await run_with_timeout(
            f"eth_getBlockByNumber({block_identifier})",
            self.w3.eth.get_block,
            block_identifier,
            timeout=self.timeout,
        )
        result = Block(number=int(block['number']), timestamp=int(block['timestamp']))
        if block_identifier == 'latest':
            self.last_block = result.number
        return result
