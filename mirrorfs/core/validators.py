"""
MirrorFS Core: Input Validators.

Validation for the merged configuration and for the directories handed to
the command line.
"""
import os
import re
from typing import Any, Dict, Union

from mirrorfs.core.constants import ConfigKey, ErrorCode
from mirrorfs.core.logging import LogLevel

# FUSE rejects commas in option values; keep fsname to a safe charset
_FSNAME_RE = re.compile(r"^[A-Za-z0-9_.@:+-]{1,64}$")

_BOOLEAN_FUSE_KEYS = ("allow_other", "foreground", "nothreads")


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.error_code = error_code


def validate_config(config: Dict[str, Any]) -> bool:
    """Validate the merged ``mirrorfs`` configuration section.

    Args:
        config: Configuration dictionary (contents of the ``mirrorfs`` key)

    Returns:
        True if valid

    Raises:
        ValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValidationError("Configuration must be a dictionary")

    logging_config = config.get(ConfigKey.LOGGING, {})
    if not isinstance(logging_config, dict):
        raise ValidationError("Logging configuration must be a dictionary")
    if "level" in logging_config:
        validate_log_level(logging_config["level"])
    log_file = logging_config.get("file")
    if log_file is not None and not isinstance(log_file, str):
        raise ValidationError(f"Log file must be a path string: {log_file!r}")

    fuse_config = config.get(ConfigKey.FUSE, {})
    if not isinstance(fuse_config, dict):
        raise ValidationError("FUSE configuration must be a dictionary")
    if "fsname" in fuse_config:
        validate_fsname(fuse_config["fsname"])
    for key in _BOOLEAN_FUSE_KEYS:
        if key in fuse_config and not isinstance(fuse_config[key], bool):
            raise ValidationError(f"fuse.{key} must be boolean: {fuse_config[key]!r}")

    return True


def validate_log_level(level: Union[str, int]) -> bool:
    """Validate a log level name such as "DEBUG".

    Raises:
        ValidationError: If the level is unknown
    """
    if not isinstance(level, str) or level.upper() not in LogLevel.__members__:
        valid_levels = list(LogLevel.__members__)
        raise ValidationError(f"Invalid log level: {level!r}. Must be one of {valid_levels}")
    return True


def validate_fsname(fsname: str) -> bool:
    """Validate the filesystem name reported in the mount table.

    Raises:
        ValidationError: If the name is empty or has unsafe characters
    """
    if not isinstance(fsname, str) or not _FSNAME_RE.match(fsname):
        raise ValidationError(f"Invalid fsname: {fsname!r}")
    return True


def validate_directory(path: str, label: str = "Path") -> bool:
    """Check that ``path`` is an existing directory.

    Args:
        path: Path to check
        label: Name used in the error message ("Mount point", "Source")

    Raises:
        ValidationError: If the path is missing or not a directory
    """
    if not path:
        raise ValidationError(f"{label} must not be empty")
    if not os.path.exists(path):
        raise ValidationError(f"{label} does not exist: {path}", ErrorCode.NOT_FOUND)
    if not os.path.isdir(path):
        raise ValidationError(f"{label} is not a directory: {path}")
    return True
