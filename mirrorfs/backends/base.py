"""
MirrorFS Backends: Base Classes and Data Structures.

This module provides the contract every filesystem backend implements:
- AttributeRecord: Immutable attributes reported for a path
- DirectoryEntry: One entry of a directory listing with its resume cursor
- FilesystemBackend: Abstract base class exposing attributes, list, open, read

The FUSE operations table only talks to a FilesystemBackend, so the
read-only host passthrough and the in-memory tree are interchangeable.
"""

import os
import stat
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, Union

from mirrorfs.core.constants import FileKind, Limits
from mirrorfs.core.errors import AccessDeniedError, InvalidRequestError, IOFailureError

# sink(name, attribute_hint, offset_hint); a non-zero return stops the stream
DirectorySink = Callable[[str, Optional[dict], int], Optional[int]]

RequestPathArg = Union[str, bytes]

_WRITE_INTENT_FLAGS = os.O_APPEND | os.O_TRUNC | os.O_CREAT


@dataclass(frozen=True)
class AttributeRecord:
    """
    Immutable attributes of a directory or regular file.

    Attributes:
        kind: DIRECTORY or REGULAR (OTHER is never reported)
        mode: Permission bits (without the file type bits)
        nlink: Link count
        size: Size in bytes, 0 for directories
        mtime: Modification timestamp (seconds since epoch)
        uid: Owner user id
        gid: Owner group id
    """

    kind: FileKind
    mode: int
    nlink: int
    size: int = 0
    mtime: float = 0.0
    uid: int = 0
    gid: int = 0

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "AttributeRecord":
        """Build a record from a host ``stat`` result."""
        kind = FileKind.from_mode(st.st_mode)
        return cls(
            kind=kind,
            mode=stat.S_IMODE(st.st_mode),
            nlink=st.st_nlink,
            size=st.st_size if kind is FileKind.REGULAR else 0,
            mtime=st.st_mtime,
            uid=st.st_uid,
            gid=st.st_gid,
        )

    @property
    def is_dir(self) -> bool:
        """Check if this is a directory."""
        return self.kind is FileKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        """Check if this is a regular file."""
        return self.kind is FileKind.REGULAR

    def to_stat(self) -> dict:
        """Render as the ``st_*`` dictionary fusepy expects from getattr."""
        return {
            "st_mode": self.kind.type_bits | self.mode,
            "st_nlink": self.nlink,
            "st_size": self.size,
            "st_mtime": self.mtime,
            "st_atime": self.mtime,
            "st_ctime": self.mtime,
            "st_uid": self.uid,
            "st_gid": self.gid,
        }


@dataclass(frozen=True)
class DirectoryEntry:
    """
    One directory entry.

    Attributes:
        name: Entry name
        cursor: Opaque position that resumes the listing after this entry
    """

    name: str
    cursor: int


def is_read_only_intent(flags: int) -> bool:
    """True when open flags request strictly read-only access."""
    return (flags & os.O_ACCMODE) == os.O_RDONLY and not (flags & _WRITE_INTENT_FLAGS)


def check_open_intent(flags: int, path: Optional[str] = None) -> None:
    """Reject any write, read-write, append, truncate or create intent.

    Raises:
        AccessDeniedError: If ``flags`` is not strictly read-only
    """
    if not is_read_only_intent(flags):
        raise AccessDeniedError(f"Read-only filesystem, open flags {flags:#o} rejected", path)


def check_entry_name(name: str, path: Optional[str] = None) -> str:
    """Ensure an entry name can be carried back to the dispatch layer.

    Raises:
        IOFailureError: If the name contains NUL or is not valid UTF-8
    """
    if "\0" in name:
        raise IOFailureError(f"Entry name contains NUL: {name!r}", path)
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        raise IOFailureError(f"Entry name is not valid UTF-8: {name!r}", path)
    return name


def number_entries(names: Iterable[str], cursor: int, path: Optional[str] = None) -> Iterator[DirectoryEntry]:
    """Number a listing ("." and ".." first) and skip to ``cursor``.

    Each yielded entry carries the cursor of the entry after it.
    """
    position = Limits.FIRST_CURSOR
    for name in _with_dot_entries(names):
        position += 1
        if position <= cursor:
            continue
        yield DirectoryEntry(name=check_entry_name(name, path), cursor=position)


def _with_dot_entries(names: Iterable[str]) -> Iterator[str]:
    yield from Limits.DOT_ENTRIES
    for name in names:
        if name not in Limits.DOT_ENTRIES:
            yield name


class FilesystemBackend(ABC):
    """
    Abstract base class for filesystem backends.

    Every method takes a slash-rooted request path. Failures are raised as
    MirrorFSError subclasses; implementations hold no mutable shared state
    and must be safe to call from several threads at once.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short backend name used in logs."""

    @abstractmethod
    def attributes(self, path: RequestPathArg) -> AttributeRecord:
        """
        Attributes of a directory or regular file.

        Raises:
            InvalidRequestError: Malformed path
            NotFoundError: Missing path, or neither directory nor regular file
            RemoteIOError: Host I/O failure
        """

    @abstractmethod
    def list_directory(self, path: RequestPathArg, cursor: int = Limits.FIRST_CURSOR) -> Iterator[DirectoryEntry]:
        """
        Lazy listing of a directory, "." and ".." included, from ``cursor``.

        Checks happen when called; entries are produced while iterating.

        Raises:
            InvalidRequestError: Malformed path, or path is not a directory
            RemoteIOError: Host I/O failure
            IOFailureError: An entry name cannot be returned (while iterating)
        """

    @abstractmethod
    def open(self, path: RequestPathArg, flags: int) -> int:
        """
        Check that ``path`` may be opened with ``flags``.

        Returns:
            File handle; always 0, nothing is retained

        Raises:
            IsDirectoryError: Path is a directory
            NotFoundError: Missing path, or not a regular file
            AccessDeniedError: Anything but a read-only intent
        """

    @abstractmethod
    def read(self, path: RequestPathArg, size: int, offset: int) -> bytes:
        """
        Read up to ``size`` bytes starting at ``offset``.

        Returns fewer bytes only at end of file; an offset at or past the end
        returns b"".

        Raises:
            IsDirectoryError: Path is a directory
            NotFoundError: Missing path, or not a regular file
            InvalidRequestError: Negative offset
            RemoteIOError: Host I/O failure
        """

    def stream_directory(
        self,
        path: RequestPathArg,
        sink: Optional[DirectorySink],
        cursor: int = Limits.FIRST_CURSOR,
    ) -> int:
        """
        Push every entry name of a directory to ``sink``.

        The sink is called as ``sink(name, None, 0)``: no attribute hint and
        no offset hint. Streaming stops early if the sink returns non-zero
        (its buffer is full).

        Args:
            path: Directory request path
            sink: Entry callback supplied by the dispatch layer
            cursor: Entry position to start from

        Returns:
            Number of entries delivered

        Raises:
            InvalidRequestError: No sink supplied, or path is not a directory
        """
        if sink is None:
            raise InvalidRequestError("No directory sink supplied", path_text(path))

        delivered = 0
        for entry in self.list_directory(path, cursor):
            if sink(entry.name, None, 0):
                break
            delivered += 1
        return delivered


def path_text(path: RequestPathArg) -> str:
    """Request path as text for messages and logs."""
    if isinstance(path, bytes):
        return path.decode("utf-8", "replace")
    return path

