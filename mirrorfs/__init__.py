"""MirrorFS - read-only passthrough filesystem built on fusepy."""

from mirrorfs.core.constants import MIRRORFS_VERSION

__version__ = MIRRORFS_VERSION
