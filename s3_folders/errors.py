from __future__ import annotations
"""Exceptions raised by the folder transfer engine."""


class FolderOperationError(Exception):
    """Base class for every error raised by a folder operation."""


class ValidationError(FolderOperationError, ValueError):
    """Raised when a folder name, path or destination is rejected."""


class RemoteError(FolderOperationError):
    """Raised when a call against the remote object store fails."""

    def __init__(self, message: str, *, bucket: str = "", key: str = ""):
        super().__init__(message)
        self.bucket = bucket
        self.key = key


class RemoteListError(RemoteError):
    """Raised when listing objects under a prefix fails."""


class SubsequentListError(RemoteListError):
    """Raised when a listing fails after at least one page was produced."""


class ObjectNotFound(RemoteError):
    """Raised when fetching a key that does not exist."""


class PerObjectTransferError(RemoteError):
    """Raised when fetching or storing a single object fails."""


class RemoteDeleteError(RemoteError):
    """Raised when deleting a single object fails."""
