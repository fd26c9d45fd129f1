"""MirrorFS Core - path resolution, error taxonomy and shared utilities.

Import specific functions from submodules:
    from mirrorfs.core.paths import MountContext, resolve_path
    from mirrorfs.core.errors import MirrorFSError, to_return_code
    from mirrorfs.core.config import ConfigManager
    from mirrorfs.core.logging import Logger
"""

from mirrorfs.core import config, constants, errors, logging, paths, validators

__all__ = [
    "config",
    "constants",
    "errors",
    "logging",
    "paths",
    "validators",
]
