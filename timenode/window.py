"""
Scan window estimation.

The block window is centred on the chain head; the timestamp window starts
at the left edge block's timestamp and is stretched by an average block
time.
"""
import logging
import math
from dataclasses import dataclass

from .base import ChainClient

logger = logging.getLogger(__name__)

# Reproduces the deployed keepers: only left_timestamp is divided by spread.
AVG_BLOCK_TIME_LITERAL = 'literal'
# (head.timestamp - left_timestamp) / spread
AVG_BLOCK_TIME_DELTA = 'delta'

AVG_BLOCK_TIME_MODES = (AVG_BLOCK_TIME_LITERAL, AVG_BLOCK_TIME_DELTA)


@dataclass(frozen=True)
class ScanWindow:
    left_block: int
    right_block: int
    left_timestamp: int
    right_timestamp: int


def average_block_time(head_timestamp: int, left_timestamp: int, spread: int,
                       mode: str = AVG_BLOCK_TIME_LITERAL) -> int:
    if mode == AVG_BLOCK_TIME_LITERAL:
        # FIXME: almost certainly meant (head - left) / spread; kept until the
        # delta mode is signed off for production
        return math.floor(head_timestamp - left_timestamp / spread)
    if mode == AVG_BLOCK_TIME_DELTA:
        return (head_timestamp - left_timestamp) // spread
    raise ValueError(f"Unknown average block time mode: {mode}")


class WindowEstimator:
    def __init__(self, chain: ChainClient, spread: int, mode: str = AVG_BLOCK_TIME_LITERAL):
        if spread <= 0:
            raise ValueError("scan spread must be positive")
        if mode not in AVG_BLOCK_TIME_MODES:
            raise ValueError(f"Unknown average block time mode: {mode}")
        self.chain = chain
        self.spread = spread
        self.mode = mode

    async def estimate(self) -> ScanWindow:
        """
        Fetch the head and the left edge block and derive both windows.

        Raises:
            RemoteFetchError: either block fetch failed
        """
        head = await self.chain.get_block('latest')
        left_block = head.number - self.spread
        right_block = left_block + self.spread * 2

        left_timestamp = (await self.chain.get_block(left_block)).timestamp
        avg_block_time = average_block_time(head.timestamp, left_timestamp, self.spread, self.mode)
        right_timestamp = math.floor(left_timestamp + avg_block_time * self.spread * 2)

        window = ScanWindow(left_block, right_block, left_timestamp, right_timestamp)
        logger.debug(
            f"Scanning bounds from | blocks: {left_block} to {right_block} "
            f"| timestamps: {left_timestamp} to {right_timestamp}"
        )
        return window
