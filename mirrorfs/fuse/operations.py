"""
FUSE filesystem operations for MirrorFS.

This module implements the fusepy Operations table for a read-only mount:
- init: mount hook
- getattr: file and directory attributes
- readdir: directory listing
- open: read-only access check
- read: bounded reads

Every handler delegates to a FilesystemBackend and converts MirrorFSError
into FuseOSError; fusepy then returns the negated errno to the kernel.
Write-type operations keep fusepy's defaults, which reject with EROFS.

fusepy decodes kernel paths with its ``encoding`` (strict UTF-8) before any
handler runs. A kernel path that is not valid UTF-8 therefore fails inside
fusepy with EFAULT and never reaches this table. Callers that hand bytes
paths to the handlers directly get EINVAL for the same input.
"""

import functools
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fuse import FuseOSError, Operations

from mirrorfs.backends.base import FilesystemBackend
from mirrorfs.core.errors import MirrorFSError
from mirrorfs.core.logging import Logger

F = TypeVar("F", bound=Callable[..., Any])


def to_fuse_error(exc: MirrorFSError) -> FuseOSError:
    """FuseOSError carrying the errno for ``exc``."""
    return FuseOSError(exc.errno)


def handler(func: F) -> F:
    """Decorate an operation so request failures reach fusepy as FuseOSError."""

    @functools.wraps(func)
    def wrapper(self: "MirrorFSOperations", path, *args, **kwargs):
        try:
            return func(self, path, *args, **kwargs)
        except MirrorFSError as e:
            self.logger.debug(
                "Request failed",
                op=func.__name__,
                path=path,
                kind=e.kind.name,
                errno=e.errno,
            )
            raise to_fuse_error(e)
        except Exception as e:
            # fusepy reports anything else as EFAULT
            self.logger.exception("Unexpected handler error", e, op=func.__name__, path=path)
            raise

    return wrapper  # type: ignore[return-value]


class MirrorFSOperations(Operations):
    """
    FUSE filesystem operations implementation for MirrorFS.

    Holds only the backend and a logger, both shared read-only between
    fusepy worker threads.
    """

    def __init__(self, backend: FilesystemBackend, logger: Optional[Logger] = None):
        """
        Initialize FUSE operations.

        Args:
            backend: Backend that answers every request
            logger: Logger (created if None)
        """
        self.backend = backend
        self.logger = logger if logger is not None else Logger("mirrorfs.fuse")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init(self, path: str) -> None:
        """Called by fusepy once the filesystem is mounted."""
        self.logger.info("Filesystem initialized", backend=self.backend.name)

    # =========================================================================
    # Metadata
    # =========================================================================

    @handler
    def getattr(self, path: str, fh: Optional[int] = None) -> Dict[str, Any]:
        """
        Get file attributes (equivalent to stat()).

        Args:
            path: Request path
            fh: File handle (unused)

        Returns:
            Dictionary with st_mode, st_nlink, st_size and timestamps

        Raises:
            FuseOSError: ENOENT if path is neither a directory nor a file
        """
        return self.backend.attributes(path).to_stat()

    # =========================================================================
    # Directories
    # =========================================================================

    @handler
    def readdir(self, path: str, fh: int) -> List[str]:
        """
        List directory contents, "." and ".." included.

        Names are returned without attributes or offsets, so fusepy hands the
        kernel each entry with a null stat and offset 0.

        Raises:
            FuseOSError: EINVAL if path is not a directory
        """
        names: List[str] = []

        def sink(name: str, attrs: Optional[dict], offset: int) -> int:
            names.append(name)
            return 0

        self.backend.stream_directory(path, sink)
        return names

    # =========================================================================
    # Files
    # =========================================================================

    @handler
    def open(self, path: str, flags: int) -> int:
        """
        Check read-only access to a file.

        Returns:
            File handle 0; nothing is kept open

        Raises:
            FuseOSError: EISDIR, ENOENT or EACCES
        """
        return self.backend.open(path, flags)

    @handler
    def read(self, path: str, size: int, offset: int, fh: int) -> bytes:
        """
        Read file content.

        Args:
            path: Request path
            size: Maximum number of bytes
            offset: Byte offset to start reading from
            fh: File handle from open() (unused, the file is reopened)

        Returns:
            Up to ``size`` bytes; fewer only at end of file

        Raises:
            FuseOSError: EISDIR, ENOENT, EINVAL or EREMOTEIO
        """
        return self.backend.read(path, size, offset)
