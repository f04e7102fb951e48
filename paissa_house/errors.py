"""Exception types raised by the paginated housing browser."""
from __future__ import annotations


class PaissaHouseError(RuntimeError):
    """Base class for bot errors."""


class TransientFetchError(PaissaHouseError):
    """Raised when the PaissaDB API cannot deliver a world snapshot."""


class UnreachableMessageError(PaissaHouseError):
    """Raised when a session's message or channel can no longer be reached."""

    def __init__(self, message: str, *, forbidden: bool = False) -> None:
        super().__init__(message)
        self.forbidden = forbidden


class MalformedPersistedStateError(PaissaHouseError):
    """Raised when a stored session row cannot be reconstructed."""


class StaleSessionError(PaissaHouseError):
    """Raised when a click arrives for a session that is no longer tracked."""


class PersistenceWriteError(PaissaHouseError):
    """Raised when the durable store rejects a write."""


__all__ = [
    "PaissaHouseError",
    "TransientFetchError",
    "UnreachableMessageError",
    "MalformedPersistedStateError",
    "StaleSessionError",
    "PersistenceWriteError",
]
