"""Exceptions raised by the sync engine."""


class SyncError(Exception):
    """Base class for sync engine errors."""


class InvalidCursorError(SyncError):
    """A pull cursor could not be decoded."""

    def __init__(self, cursor: str):
        self.cursor = cursor
        super().__init__("Invalid pagination cursor")


class TransactionTimeoutError(SyncError):
    """The push transaction did not finish within its timeout."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Transaction timed out after {timeout:g}s")
