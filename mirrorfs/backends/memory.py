"""
In-memory backend.

A synthetic read-only tree built once from nested mappings: bytes values
are regular files, mapping values are directories. Useful for tests and
for mounting generated content without a source directory.

Example:
    >>> backend = MemoryBackend({"a.txt": b"xyz", "sub": {}})
    >>> backend.read("/a.txt", 10, 0)
    b'xyz'
"""

import os
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Union

from mirrorfs.core.constants import FileKind, Limits
from mirrorfs.core.errors import InvalidRequestError, IsDirectoryError, NotFoundError
from mirrorfs.core.paths import split_request_path
from mirrorfs.backends.base import (
    AttributeRecord,
    DirectoryEntry,
    FilesystemBackend,
    RequestPathArg,
    check_open_intent,
    number_entries,
    path_text,
)

TreeSpec = Mapping[str, Union[bytes, "TreeSpec"]]

DEFAULT_FILE_MODE = 0o444
DEFAULT_DIR_MODE = 0o555


@dataclass(frozen=True)
class _Node:
    kind: FileKind
    data: bytes = b""
    children: Mapping[str, "_Node"] = field(default_factory=lambda: MappingProxyType({}))


def _build(spec: TreeSpec) -> _Node:
    children = {}
    for name, value in spec.items():
        if not name or "/" in name or name in Limits.DOT_ENTRIES:
            raise ValueError(f"Invalid entry name: {name!r}")
        if isinstance(value, (bytes, bytearray)):
            children[name] = _Node(kind=FileKind.REGULAR, data=bytes(value))
        elif isinstance(value, Mapping):
            children[name] = _build(value)
        else:
            raise TypeError(f"Entry {name!r} must be bytes or a mapping, got {type(value).__name__}")
    return _Node(kind=FileKind.DIRECTORY, children=MappingProxyType(children))


class MemoryBackend(FilesystemBackend):
    """
    Read-only filesystem backed by an immutable in-memory tree.

    Attributes:
        mtime: Timestamp reported for every node
        uid: Owner user id reported for every node
        gid: Owner group id reported for every node
    """

    def __init__(
        self,
        tree: Optional[TreeSpec] = None,
        mtime: Optional[float] = None,
        uid: Optional[int] = None,
        gid: Optional[int] = None,
    ):
        """
        Initialize the backend.

        Args:
            tree: Nested mapping of names to bytes (files) or mappings (dirs)
            mtime: Timestamp to report (defaults to creation time)
            uid: Owner to report (defaults to the current user)
            gid: Group to report (defaults to the current group)

        Raises:
            ValueError: If an entry name is empty, ".", ".." or contains "/"
            TypeError: If a value is neither bytes nor a mapping
        """
        self._root = _build(tree or {})
        self.mtime = time.time() if mtime is None else mtime
        self.uid = os.getuid() if uid is None else uid
        self.gid = os.getgid() if gid is None else gid

    @property
    def name(self) -> str:
        return "memory"

    def _lookup(self, path: RequestPathArg) -> _Node:
        node = self._root
        for part in split_request_path(path):
            if node.kind is not FileKind.DIRECTORY or part not in node.children:
                display = path_text(path)
                raise NotFoundError(f"No such file or directory: {display}", display)
            node = node.children[part]
        return node

    def _record(self, node: _Node) -> AttributeRecord:
        if node.kind is FileKind.DIRECTORY:
            subdirs = sum(1 for child in node.children.values() if child.kind is FileKind.DIRECTORY)
            return AttributeRecord(
                kind=FileKind.DIRECTORY,
                mode=DEFAULT_DIR_MODE,
                nlink=2 + subdirs,
                mtime=self.mtime,
                uid=self.uid,
                gid=self.gid,
            )
        return AttributeRecord(
            kind=FileKind.REGULAR,
            mode=DEFAULT_FILE_MODE,
            nlink=1,
            size=len(node.data),
            mtime=self.mtime,
            uid=self.uid,
            gid=self.gid,
        )

    def _regular_file(self, path: RequestPathArg) -> _Node:
        node = self._lookup(path)
        if node.kind is FileKind.DIRECTORY:
            display = path_text(path)
            raise IsDirectoryError(f"Is a directory: {display}", display)
        return node

    def attributes(self, path: RequestPathArg) -> AttributeRecord:
        return self._record(self._lookup(path))

    def list_directory(self, path: RequestPathArg, cursor: int = Limits.FIRST_CURSOR) -> Iterator[DirectoryEntry]:
        display = path_text(path)
        if cursor < Limits.FIRST_CURSOR:
            raise InvalidRequestError(f"Negative directory cursor: {cursor}", display)

        try:
            node = self._lookup(path)
        except NotFoundError:
            raise InvalidRequestError(f"Not a directory: {display}", display)
        if node.kind is not FileKind.DIRECTORY:
            raise InvalidRequestError(f"Not a directory: {display}", display)

        return number_entries(node.children.keys(), cursor, display)

    def open(self, path: RequestPathArg, flags: int) -> int:
        self._regular_file(path)
        check_open_intent(flags, path_text(path))
        return 0

    def read(self, path: RequestPathArg, size: int, offset: int) -> bytes:
        node = self._regular_file(path)
        if offset < 0:
            display = path_text(path)
            raise InvalidRequestError(f"Negative read offset: {offset}", display)
        return node.data[offset:offset + max(size, 0)]
