#!/usr/bin/env python3
"""Command-line interface for MirrorFS.

This module provides the CLI for mounting a source directory read-only:
- Argument parsing and validation
- Configuration file loading
- Logging setup

Example:
    >>> from mirrorfs.cli import parse_arguments
    >>> args = parse_arguments(['/mnt/mirror', '/data'])
"""

import argparse
import os
import sys
from typing import Any, Dict, List, Optional

from mirrorfs.core.config import ConfigError, ConfigManager, ConfigSource
from mirrorfs.core.constants import MIRRORFS_VERSION, ConfigKey
from mirrorfs.core.logging import Logger
from mirrorfs.core.validators import ValidationError, validate_config, validate_directory

VERSION = MIRRORFS_VERSION
DESCRIPTION = "MirrorFS - read-only passthrough filesystem"


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid usage or --help/--version
        CLIError: If mountpoint or source is not an existing directory
    """
    parser = argparse.ArgumentParser(
        prog="mirrorfs",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Expose /data read-only at /mnt/mirror
  mirrorfs /mnt/mirror /data

  # Run in foreground with debug logging
  mirrorfs /mnt/mirror /data --foreground --debug

  # Load settings from a YAML file
  mirrorfs /mnt/mirror /data --config mirrorfs.yaml
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {VERSION}",
    )

    parser.add_argument("mountpoint", metavar="MOUNTPOINT", help="Existing directory to mount on")
    parser.add_argument("source", metavar="SOURCE", help="Existing directory to expose")

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    # store_true flags default to None so they only override the file when given
    fs_group = parser.add_argument_group("filesystem options")

    fs_group.add_argument(
        "--allow-other",
        action="store_true",
        default=None,
        help="Allow other users to access the filesystem",
    )

    fs_group.add_argument(
        "--fsname",
        metavar="NAME",
        type=str,
        help="Filesystem name shown in the mount table (default: mirrorfs)",
    )

    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "-f",
        "--foreground",
        action="store_true",
        default=None,
        help="Run in foreground (don't daemonize)",
    )

    log_group.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Log file path",
    )

    fuse_group = parser.add_argument_group("FUSE options")

    fuse_group.add_argument(
        "-o",
        "--fuse-opt",
        metavar="OPT",
        action="append",
        dest="fuse_options",
        help="Additional FUSE options (can be specified multiple times)",
    )

    parsed = parser.parse_args(args)

    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Raises:
        CLIError: If mountpoint, source or config file are unusable
    """
    try:
        validate_directory(args.mountpoint, "Mount point")
        validate_directory(args.source, "Source")
    except ValidationError as e:
        raise CLIError(str(e))

    if args.config and not os.path.isfile(args.config):
        raise CLIError(f"Configuration file does not exist: {args.config}")


def build_config_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build configuration dictionary from command-line arguments.

    Options that were not given are left as None so they do not override
    values from the configuration file or environment.

    Args:
        args: Parsed arguments namespace

    Returns:
        Configuration dictionary for ConfigManager
    """
    return {
        ConfigKey.ROOT: {
            ConfigKey.LOGGING: {
                "level": "DEBUG" if args.debug else None,
                "file": args.log_file,
            },
            ConfigKey.FUSE: {
                "fsname": args.fsname,
                "allow_other": args.allow_other,
                "foreground": args.foreground,
            },
        }
    }


def load_config(args: argparse.Namespace) -> ConfigManager:
    """
    Load configuration from file, environment and arguments.

    Raises:
        CLIError: If the configuration file is unreadable or invalid
    """
    try:
        config = ConfigManager(config_file=args.config)
        config.load_dict(build_config_from_args(args), ConfigSource.CLI_ARGS)
        validate_config(config.section())
    except (ConfigError, ValidationError) as e:
        raise CLIError(str(e))
    return config


def setup_logging(config: ConfigManager) -> Logger:
    """
    Setup logging from configuration.

    Args:
        config: Configuration manager

    Returns:
        Configured logger instance
    """
    log_level = config.get(f"{ConfigKey.ROOT}.{ConfigKey.LOG_LEVEL}", "INFO")
    log_file = config.get(f"{ConfigKey.ROOT}.{ConfigKey.LOG_FILE}")

    logger = Logger("mirrorfs", level=log_level)

    if log_file:
        logger.add_handler(logger.create_file_handler(log_file))
        logger.debug(f"Logging to file: {log_file}")

    return logger


def validate_runtime_environment() -> None:
    """
    Validate runtime environment for MirrorFS.

    Raises:
        CLIError: If fusepy or /dev/fuse is unavailable
    """
    try:
        import fuse

        if not hasattr(fuse, "FUSE"):
            raise CLIError(
                "FUSE library is too old or incompatible\n" "Install fusepy: pip install fusepy"
            )

    except (ImportError, OSError):
        raise CLIError("FUSE library not found\n" "Install fusepy and libfuse")

    if sys.platform.startswith("linux") and not os.path.exists("/dev/fuse"):
        raise CLIError(
            "/dev/fuse not found\n"
            "FUSE kernel module may not be loaded\n"
            "Try: sudo modprobe fuse"
        )


def print_banner(logger: Logger) -> None:
    """Log startup banner with version information."""
    logger.info("=" * 60)
    logger.info(f"MirrorFS v{VERSION}")
    logger.info(DESCRIPTION)
    logger.info("=" * 60)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Handles argument parsing, validation and configuration, then passes
    control to mirrorfs.main for mounting.
    """
    try:
        args = parse_arguments(argv)

        validate_runtime_environment()

        config = load_config(args)

        logger = setup_logging(config)

        if config.get(f"{ConfigKey.ROOT}.{ConfigKey.FOREGROUND}"):
            print_banner(logger)

        from mirrorfs.main import run_mirrorfs

        return run_mirrorfs(args, config, logger)

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
