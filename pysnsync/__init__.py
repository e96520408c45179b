"""pysnsync - track dotfiles as notes in a remote item store."""

from .api import ItemStoreClient
from .exceptions import (
    DuplicateItemError,
    InvalidInputError,
    InvalidSessionError,
    LocalIOError,
    RemoteAuthenticationError,
    RemoteNetworkError,
    RemoteRateLimitError,
    RemoteSyncError,
    SnSyncError,
    StructuralConflictError,
    UnsupportedPathTypeError,
)
from .session import Session

__version__ = "0.1.0"

__all__ = [
    "ItemStoreClient",
    "Session",
    "SnSyncError",
    "DuplicateItemError",
    "InvalidInputError",
    "InvalidSessionError",
    "LocalIOError",
    "RemoteAuthenticationError",
    "RemoteNetworkError",
    "RemoteRateLimitError",
    "RemoteSyncError",
    "StructuralConflictError",
    "UnsupportedPathTypeError",
]
