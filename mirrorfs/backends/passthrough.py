"""
Read-only passthrough backend.

Exposes a host source directory as-is. Each request does one metadata
query (``lstat``) or works on one descriptor (``open`` + ``fstat``), so the
kind that was checked is the kind that gets used. No descriptor outlives
the call that opened it.
"""

import errno
import os
from typing import Iterator, List

from mirrorfs.core.constants import FileKind, Limits
from mirrorfs.core.errors import (
    InvalidRequestError,
    IsDirectoryError,
    NotFoundError,
    from_lookup_error,
    from_os_error,
)
from mirrorfs.core.paths import MountContext, resolve_path
from mirrorfs.backends.base import (
    AttributeRecord,
    DirectoryEntry,
    FilesystemBackend,
    RequestPathArg,
    check_open_intent,
    number_entries,
    path_text,
)

# O_NOFOLLOW makes a final symlink fail with ELOOP instead of being followed.
# O_NONBLOCK keeps a FIFO from blocking the worker thread.
_NOFOLLOW = getattr(os, "O_NOFOLLOW", 0)
_READ_FLAGS = os.O_RDONLY | _NOFOLLOW | getattr(os, "O_NONBLOCK", 0)
_DIRECTORY_FLAGS = os.O_RDONLY | _NOFOLLOW | getattr(os, "O_DIRECTORY", 0)

# open() errnos for targets that are neither directory nor regular file
_SPECIAL_FILE_ERRNOS = frozenset({errno.ENXIO, errno.ENODEV})

_MISSING_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR, errno.ELOOP, errno.ENAMETOOLONG})


class PassthroughBackend(FilesystemBackend):
    """
    Read-only view of a source directory.

    Attributes:
        context: Immutable mount context holding the source root
    """

    def __init__(self, context: MountContext):
        """
        Initialize the backend.

        Args:
            context: Mount context created once at startup
        """
        self.context = context

    @property
    def name(self) -> str:
        return "passthrough"

    def __repr__(self) -> str:
        return f"PassthroughBackend(source_root={self.context.source_root!r})"

    def _lstat(self, path: RequestPathArg) -> os.stat_result:
        real_path = resolve_path(self.context, path)
        try:
            return os.lstat(real_path)
        except OSError as e:
            raise from_lookup_error(e, path_text(path))

    def attributes(self, path: RequestPathArg) -> AttributeRecord:
        st = self._lstat(path)

        record = AttributeRecord.from_stat(st)
        if record.kind is FileKind.OTHER:
            display = path_text(path)
            raise NotFoundError(f"Not a regular file or directory: {display}", display)
        return record

    def list_directory(self, path: RequestPathArg, cursor: int = Limits.FIRST_CURSOR) -> Iterator[DirectoryEntry]:
        display = path_text(path)
        if cursor < Limits.FIRST_CURSOR:
            raise InvalidRequestError(f"Negative directory cursor: {cursor}", display)

        names = self._scan(resolve_path(self.context, path), display)
        return number_entries(names, cursor, display)

    def _scan(self, real_path: str, display: str) -> List[str]:
        """Host entry names of a directory, read through one descriptor."""
        try:
            fd = os.open(real_path, _DIRECTORY_FLAGS)
        except OSError as e:
            if e.errno in _MISSING_ERRNOS:
                raise InvalidRequestError(f"Not a directory: {display}", display)
            raise from_os_error(e, display, operation="opendir")

        try:
            # scandir(fd) works on a duplicate; fd itself is closed below
            with os.scandir(fd) as scanner:
                return [entry.name for entry in scanner]
        except NotADirectoryError:
            raise InvalidRequestError(f"Not a directory: {display}", display)
        except OSError as e:
            raise from_os_error(e, display, operation="readdir")
        finally:
            os.close(fd)

    def open(self, path: RequestPathArg, flags: int) -> int:
        st = self._lstat(path)
        display = path_text(path)

        kind = FileKind.from_mode(st.st_mode)
        if kind is FileKind.DIRECTORY:
            raise IsDirectoryError(f"Is a directory: {display}", display)
        if kind is not FileKind.REGULAR:
            raise NotFoundError(f"Not a regular file: {display}", display)

        check_open_intent(flags, display)
        return 0

    def read(self, path: RequestPathArg, size: int, offset: int) -> bytes:
        real_path = resolve_path(self.context, path)
        display = path_text(path)

        try:
            fd = os.open(real_path, _READ_FLAGS)
        except OSError as e:
            if e.errno == errno.EISDIR:
                raise IsDirectoryError(f"Is a directory: {display}", display)
            if e.errno in _SPECIAL_FILE_ERRNOS:
                raise NotFoundError(f"Not a regular file: {display}", display)
            if e.errno in _MISSING_ERRNOS:
                raise NotFoundError(f"No such file: {display}", display)
            raise from_os_error(e, display, operation="open")

        try:
            try:
                st = os.fstat(fd)
            except OSError as e:
                raise from_os_error(e, display, operation="fstat")

            kind = FileKind.from_mode(st.st_mode)
            if kind is FileKind.DIRECTORY:
                raise IsDirectoryError(f"Is a directory: {display}", display)
            if kind is not FileKind.REGULAR:
                raise NotFoundError(f"Not a regular file: {display}", display)

            if offset < 0:
                raise InvalidRequestError(f"Negative read offset: {offset}", display)

            return read_fully(fd, size, offset, display)
        finally:
            os.close(fd)


def read_fully(fd: int, size: int, offset: int, display: str = "") -> bytes:
    """
    Read ``size`` bytes at ``offset``, looping over short reads.

    Stops early only at end of file. An offset past the end returns b"".

    Raises:
        RemoteIOError: If the host read fails
    """
    chunks = []
    remaining = max(size, 0)
    position = offset

    while remaining > 0:
        try:
            chunk = os.pread(fd, remaining, position)
        except OSError as e:
            raise from_os_error(e, display, operation="read")
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
        position += len(chunk)

    return b"".join(chunks)
