"""Exceptions raised by pysnsync."""


class SnSyncError(Exception):
    """Base exception for all pysnsync errors."""


class InvalidSessionError(SnSyncError):
    """Session is missing, expired or lacks the material needed to read items."""


class InvalidInputError(SnSyncError):
    """Root directory or paths are missing or unusable."""


class UnsupportedPathTypeError(SnSyncError):
    """Path is a symlink, socket, device, pipe, oversized file or similar."""


class StructuralConflictError(SnSyncError):
    """A tag title collides with the path of a tracked note."""


class DuplicateItemError(SnSyncError):
    """More than one remote note resolves to the same tag and title."""


class RemoteSyncError(SnSyncError):
    """Synchronising with the remote item store failed."""


class RemoteAuthenticationError(InvalidSessionError, RemoteSyncError):
    """Remote item store rejected the session token."""


class RemoteNetworkError(RemoteSyncError):
    """Network failure while talking to the remote item store."""


class RemoteRateLimitError(RemoteSyncError):
    """Remote item store asked us to slow down."""


class LocalIOError(SnSyncError):
    """Reading, writing or walking the local filesystem failed."""
