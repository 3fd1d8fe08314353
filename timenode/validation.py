"""
Candidate validation.

An address handed out by the tracker is only trusted once it is well formed
and the request contract agrees with the tracker about its window start.
"""
import logging
from typing import Optional

from web3 import Web3

from .base import OrderedIndex, RequestHandle, RequestLibrary, is_null_address
from .errors import InvalidAddressError, WindowMismatchError

logger = logging.getLogger(__name__)


class ValidationGate:
    def __init__(self, tracker: OrderedIndex, requests: RequestLibrary):
        self.tracker = tracker
        self.requests = requests
        self.mismatches = 0

    def is_correct(self, address: str) -> bool:
        """
        Check an address returned by the tracker.

        Returns:
            False for the null address, True for a well formed one

        Raises:
            InvalidAddressError: anything else
        """
        if is_null_address(address):
            logger.debug("No new request discovered.")
            return False
        if not Web3.is_address(address):
            raise InvalidAddressError(address)
        return True

    async def fill(self, address: str) -> Optional[RequestHandle]:
        """
        Load the request at ``address`` and cross check its window start
        against the tracker.

        Returns:
            The loaded request, or None when the two sources disagree
        """
        tracker_window_start = await self.tracker.window_start_for(address)
        request = await self.requests.transaction_request(address)
        await request.fill_data()

        try:
            self._check_window_start(address, tracker_window_start, request.window_start)
        except WindowMismatchError as e:
            self.mismatches += 1
            logger.error(str(e))
            return None

        return request

    @staticmethod
    def _check_window_start(address, tracker_window_start, request_window_start):
        if request_window_start is None or int(request_window_start) != int(tracker_window_start):
            raise WindowMismatchError(address, tracker_window_start, request_window_start)
