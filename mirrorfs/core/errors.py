"""
MirrorFS Core: Error Translator.

Every request failure is raised as a MirrorFSError subclass carrying one
FailureKind. The FUSE boundary turns it into the errno the dispatch layer
returns negated. Translation is stateless: nothing here logs or retries.
"""
from typing import Optional

from mirrorfs.core.constants import ABSENT_ERRNOS, FailureKind


class MirrorFSError(Exception):
    """Base exception for request failures."""

    kind: FailureKind = FailureKind.IO_FAILURE

    def __init__(self, message: str, path: Optional[str] = None):
        """Initialize MirrorFSError.

        Args:
            message: Error message
            path: Request path the failure belongs to, if known
        """
        super().__init__(message)
        self.message = message
        self.path = path

    @property
    def errno(self) -> int:
        """POSIX error number for this failure."""
        return self.kind.errno


class InvalidRequestError(MirrorFSError):
    """Malformed path, negative offset or missing directory sink."""

    kind = FailureKind.INVALID_REQUEST


class NotFoundError(MirrorFSError):
    """Path resolves to neither a directory nor a regular file."""

    kind = FailureKind.NOT_FOUND


class AccessDeniedError(MirrorFSError):
    """Open requested anything other than read-only access."""

    kind = FailureKind.ACCESS_DENIED


class IsDirectoryError(MirrorFSError):
    """open or read issued against a directory."""

    kind = FailureKind.IS_A_DIRECTORY


class RemoteIOError(MirrorFSError):
    """Host filesystem I/O failed."""

    kind = FailureKind.REMOTE_IO


class IOFailureError(MirrorFSError):
    """An outgoing entry name could not be constructed."""

    kind = FailureKind.IO_FAILURE


_ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (
        InvalidRequestError,
        NotFoundError,
        AccessDeniedError,
        IsDirectoryError,
        RemoteIOError,
        IOFailureError,
    )
}


def error_for(kind: FailureKind, message: str, path: Optional[str] = None) -> MirrorFSError:
    """Build the exception for a failure kind.

    Args:
        kind: Failure kind
        message: Error message
        path: Request path

    Returns:
        MirrorFSError subclass instance for ``kind``
    """
    return _ERRORS_BY_KIND[kind](message, path)


def from_os_error(exc: OSError, path: Optional[str] = None, operation: str = "io") -> MirrorFSError:
    """Translate a host I/O failure (listing, open, seek, read) to RemoteIO."""
    return RemoteIOError(f"{operation} failed: {exc.strerror or exc}", path)


def from_lookup_error(exc: OSError, path: Optional[str] = None) -> MirrorFSError:
    """Translate a failed metadata lookup.

    errnos meaning the path is absent map to NotFound, everything else to
    RemoteIO.
    """
    if exc.errno in ABSENT_ERRNOS:
        return NotFoundError(f"No such file or directory: {path}", path)
    return from_os_error(exc, path, operation="lstat")


def from_decode_error(exc: UnicodeError, path: Optional[str] = None) -> MirrorFSError:
    """Translate a request path that could not be decoded."""
    return InvalidRequestError(f"Undecodable request path: {exc}", path)


def to_return_code(exc: MirrorFSError) -> int:
    """Negated errno, as returned by a handler to the dispatch layer."""
    return -exc.errno
