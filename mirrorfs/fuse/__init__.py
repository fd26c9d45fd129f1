"""MirrorFS FUSE Interface.

This module implements the fusepy operations table for MirrorFS:
- MirrorFSOperations: FUSE callback implementations

Usage:
    from mirrorfs.fuse import MirrorFSOperations
    from mirrorfs.backends import PassthroughBackend
    from mirrorfs.core.paths import MountContext

    ops = MirrorFSOperations(PassthroughBackend(MountContext.for_source("/data")))
"""

from mirrorfs.fuse.operations import MirrorFSOperations, to_fuse_error

__all__ = [
    "MirrorFSOperations",
    "to_fuse_error",
]
