"""
Error types raised by the scanner, the dispatcher and the web3 adapters.
"""


class TimenodeError(Exception):
    """Base class for every error raised by timenode."""


class ConfigError(TimenodeError):
    """Invalid or incomplete configuration."""


class InvalidAddressError(TimenodeError):
    """The tracker returned something that is not an account address."""

    def __init__(self, address):
        self.address = address
        super().__init__(f"[{address}] Received invalid response from Request Tracker")


class WindowMismatchError(TimenodeError):
    """Tracker and request disagree on the request's window start."""

    def __init__(self, address, tracker_window_start, request_window_start):
        self.address = address
        self.tracker_window_start = tracker_window_start
        self.request_window_start = request_window_start
        super().__init__(
            f"[{address}] Data mismatch between txRequest ({request_window_start}) "
            f"and requestTracker ({tracker_window_start}). Double check contract addresses."
        )


class RemoteFetchError(TimenodeError):
    """An RPC call failed or timed out."""

    def __init__(self, operation: str, cause: Exception = None):
        self.operation = operation
        self.cause = cause
        message = f"RPC call {operation} failed"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class DispatchError(TimenodeError):
    """Fetching, refreshing or routing one cached request failed."""

    def __init__(self, address, cause: Exception):
        self.address = address
        self.cause = cause
        super().__init__(f"[{address}] Dispatch failed: {cause}")
