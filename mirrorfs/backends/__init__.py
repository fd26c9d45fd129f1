"""MirrorFS Backends.

Filesystem backends behind the FUSE operations table:
- FilesystemBackend: Abstract interface (attributes, list, open, read)
- PassthroughBackend: Read-only view of a host source directory
- MemoryBackend: Read-only synthetic in-memory tree

Usage:
    from mirrorfs.backends import PassthroughBackend
    from mirrorfs.core.paths import MountContext

    backend = PassthroughBackend(MountContext.for_source("/data"))
    backend.attributes("/README.md")
"""

from mirrorfs.backends.base import (
    AttributeRecord,
    DirectoryEntry,
    DirectorySink,
    FilesystemBackend,
    is_read_only_intent,
)
from mirrorfs.backends.memory import MemoryBackend
from mirrorfs.backends.passthrough import PassthroughBackend

__all__ = [
    "AttributeRecord",
    "DirectoryEntry",
    "DirectorySink",
    "FilesystemBackend",
    "MemoryBackend",
    "PassthroughBackend",
    "is_read_only_intent",
]
