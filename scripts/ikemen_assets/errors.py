"""
Exception hierarchy for the asset toolkit.
Every storage, network and format failure reaching a caller is one of these.
"""

import errno
from typing import Optional


class AssetError(Exception):
    """Base exception for asset toolkit errors."""

    def __init__(self, message: str, context: Optional[str] = None, recoverable: bool = False):
        super().__init__(message)
        self.context = context
        self.recoverable = recoverable


class StorageError(AssetError):
    """Base exception for storage backend errors."""


class PermissionDenied(StorageError):
    """Raised when the user declined or revoked access to a root."""

    def __init__(self, context: str):
        super().__init__(
            f"Permission denied: unable to access {context}. Grant access and try again.",
            context,
            recoverable=True,
        )


class NotFound(StorageError):
    """Raised when an entry is absent from the root."""

    def __init__(self, context: str):
        super().__init__(f"Item not found: {context}. It may have been moved or deleted.", context)


class OperationCancelled(StorageError):
    """Raised when the user dismissed a picker or prompt."""

    def __init__(self, context: str = "operation"):
        super().__init__("Operation cancelled by user.", context, recoverable=True)


class CapabilityDenied(StorageError):
    """Raised when a write is attempted on a root that cannot be written."""

    def __init__(self, context: str, reason: str = "root is read-only"):
        super().__init__(f"Cannot write {context}: {reason}", context)
        self.reason = reason


class FormatError(AssetError):
    """Raised for malformed binary containers and archives."""

    def __init__(self, message: str, context: Optional[str] = None):
        super().__init__(f"Format error: {message}", context)


class NetworkError(AssetError):
    """Raised for network-related errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        super().__init__(f"Network error: {message}", context, recoverable=True)


_PERMISSION_ERRNOS = {errno.EACCES, errno.EPERM}
_MISSING_ERRNOS = {errno.ENOENT, errno.ENOTDIR, errno.EISDIR}
_READ_ONLY_ERRNOS = {errno.EROFS, errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


def map_os_error(exc: OSError, context: str, writing: bool = False) -> StorageError:
    """
    Map a platform error onto exactly one storage error.

    Args:
        exc: The error raised by the filesystem call
        context: Human readable description of the entry involved
        writing: Whether the failing call was a write

    Returns:
        The storage error to raise in its place
    """
    if isinstance(exc, PermissionError) or exc.errno in _PERMISSION_ERRNOS:
        return PermissionDenied(context)
    if isinstance(exc, (FileNotFoundError, NotADirectoryError, IsADirectoryError)) or exc.errno in _MISSING_ERRNOS:
        return NotFound(context)
    if exc.errno in _READ_ONLY_ERRNOS:
        return CapabilityDenied(context, exc.strerror or str(exc))
    if writing:
        return CapabilityDenied(context, exc.strerror or str(exc))
    return NotFound(context)
