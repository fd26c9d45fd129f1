"""
MirrorFS Core: Constants and Type Definitions

This module provides system-wide constants, failure kinds, error codes and
type definitions shared by the backends and the FUSE boundary.
"""
import errno
import stat
from enum import Enum, IntEnum
from typing import TypeAlias

# Version information
MIRRORFS_VERSION = "1.0.0"
DEFAULT_FSNAME = "mirrorfs"


class FailureKind(Enum):
    """Closed set of request failures, each bound to a fixed POSIX errno."""

    INVALID_REQUEST = "invalid_request"  # Malformed path, negative offset, missing sink
    NOT_FOUND = "not_found"  # Neither a directory nor a regular file
    ACCESS_DENIED = "access_denied"  # Non read-only open
    IS_A_DIRECTORY = "is_a_directory"  # open/read against a directory
    REMOTE_IO = "remote_io"  # Host I/O failure
    IO_FAILURE = "io_failure"  # Outgoing entry name could not be built

    @property
    def errno(self) -> int:
        """POSIX error number reported to the dispatch layer."""
        return _FAILURE_ERRNOS[self]


# EREMOTEIO is Linux-only; other platforms report EIO
_FAILURE_ERRNOS = {
    FailureKind.INVALID_REQUEST: errno.EINVAL,
    FailureKind.NOT_FOUND: errno.ENOENT,
    FailureKind.ACCESS_DENIED: errno.EACCES,
    FailureKind.IS_A_DIRECTORY: errno.EISDIR,
    FailureKind.REMOTE_IO: getattr(errno, "EREMOTEIO", errno.EIO),
    FailureKind.IO_FAILURE: errno.EIO,
}


# Error codes for the outer surfaces (CLI, configuration)
class ErrorCode(IntEnum):
    """Standardized error codes for MirrorFS configuration and startup."""

    SUCCESS = 0
    INVALID_INPUT = 1  # Bad path, invalid configuration
    NOT_FOUND = 2  # File or directory doesn't exist
    INTERNAL_ERROR = 6


# Type aliases for clarity
ResolvedPath: TypeAlias = str


class FileKind(Enum):
    """File kind as reported to the dispatch layer."""

    DIRECTORY = "directory"
    REGULAR = "regular"
    OTHER = "other"

    @classmethod
    def from_mode(cls, mode: int) -> "FileKind":
        """Determine file kind from an ``st_mode`` value."""
        if stat.S_ISDIR(mode):
            return cls.DIRECTORY
        elif stat.S_ISREG(mode):
            return cls.REGULAR
        else:
            return cls.OTHER

    @property
    def type_bits(self) -> int:
        """``S_IFMT`` bits for this kind (0 for OTHER)."""
        if self is FileKind.DIRECTORY:
            return stat.S_IFDIR
        if self is FileKind.REGULAR:
            return stat.S_IFREG
        return 0


class Limits:
    """Resource limits and default values."""

    # Path limits
    MAX_PATH_LENGTH = 4096

    # Synthetic directory entries always reported by readdir
    DOT_ENTRIES = (".", "..")

    # Cursor of the first directory entry
    FIRST_CURSOR = 0

    # Log rotation
    LOG_MAX_BYTES = 10 * 1024 * 1024
    LOG_BACKUP_COUNT = 5


# errno values from lstat that mean "there is nothing here"
ABSENT_ERRNOS = frozenset(
    {errno.ENOENT, errno.ENOTDIR, errno.ELOOP, errno.ENAMETOOLONG, errno.EACCES}
)


class ConfigKey:
    """Configuration key constants (dotted, below the ``mirrorfs`` root)."""

    ROOT = "mirrorfs"

    LOGGING = "logging"
    LOG_LEVEL = "logging.level"
    LOG_FILE = "logging.file"

    FUSE = "fuse"
    FSNAME = "fuse.fsname"
    ALLOW_OTHER = "fuse.allow_other"
    FOREGROUND = "fuse.foreground"
    NOTHREADS = "fuse.nothreads"


DEFAULT_CONFIG = {
    ConfigKey.ROOT: {
        ConfigKey.LOGGING: {
            "level": "INFO",
            "file": None,
        },
        ConfigKey.FUSE: {
            "fsname": DEFAULT_FSNAME,
            "allow_other": False,
            "foreground": False,
            "nothreads": False,
        },
    }
}
