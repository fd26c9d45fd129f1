#!/usr/bin/env python3
"""Main entry point for the MirrorFS filesystem.

This module handles:
- Building the mount context, backend and operations table
- FUSE mount-option assembly
- Mounting (blocks until unmount)

Example:
    >>> from mirrorfs.main import run_mirrorfs
    >>> run_mirrorfs(args, config, logger)
"""

import argparse
import sys
from typing import Any, Dict, Optional

from fuse import FUSE

from mirrorfs.backends.passthrough import PassthroughBackend
from mirrorfs.core.config import ConfigManager
from mirrorfs.core.constants import DEFAULT_FSNAME, ConfigKey
from mirrorfs.core.logging import Logger
from mirrorfs.core.paths import MountContext
from mirrorfs.fuse.operations import MirrorFSOperations


class MirrorFSMain:
    """
    Main class for MirrorFS filesystem management.

    Handles component creation and FUSE mounting.
    """

    def __init__(self, args: argparse.Namespace, config: ConfigManager, logger: Logger):
        """
        Initialize MirrorFS main controller.

        Args:
            args: Parsed command-line arguments
            config: Configuration manager
            logger: Logger instance
        """
        self.args = args
        self.config = config
        self.logger = logger

        self.context: Optional[MountContext] = None
        self.backend: Optional[PassthroughBackend] = None
        self.fuse_ops: Optional[MirrorFSOperations] = None

    def _setting(self, key: str, default: Any = None) -> Any:
        return self.config.get(f"{ConfigKey.ROOT}.{key}", default)

    def initialize_components(self) -> None:
        """
        Create the mount context, backend and operations table.

        Raises:
            NotADirectoryError: If the source is not a directory
        """
        self.logger.debug("Creating MountContext", source=self.args.source)
        self.context = MountContext.for_source(self.args.source)

        self.backend = PassthroughBackend(self.context)

        self.fuse_ops = MirrorFSOperations(self.backend, logger=self.logger)

        self.logger.info("Components initialized", source=self.context.source_root)

    def build_fuse_options(self) -> Dict[str, Any]:
        """
        Build FUSE mount options.

        The mount is always read-only; extra ``-o`` options may add to but
        not remove that.

        Returns:
            Keyword options for fuse.FUSE
        """
        options: Dict[str, Any] = {
            "foreground": bool(self._setting(ConfigKey.FOREGROUND, False)),
            "nothreads": bool(self._setting(ConfigKey.NOTHREADS, False)),
            "fsname": self._setting(ConfigKey.FSNAME, DEFAULT_FSNAME),
        }

        if self._setting(ConfigKey.ALLOW_OTHER, False):
            options["allow_other"] = True

        for opt in getattr(self.args, "fuse_options", None) or []:
            if "=" in opt:
                key, value = opt.split("=", 1)
                options[key] = value
            else:
                options[opt] = True

        options.pop("rw", None)
        options["ro"] = True

        return options

    def mount_filesystem(self) -> int:
        """
        Mount the FUSE filesystem.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        mount_point = self.args.mountpoint
        options = self.build_fuse_options()

        with self.logger.add_context(mountpoint=mount_point):
            self.logger.info("Mounting MirrorFS", fsname=options["fsname"])

            try:
                # Blocks until unmount
                FUSE(self.fuse_ops, mount_point, **options)
            except RuntimeError as e:
                self.logger.error(f"FUSE mount failed: {e}")
                return 1

            self.logger.info("FUSE unmounted")
        return 0

    def run(self) -> int:
        """
        Initialize and mount.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        try:
            self.initialize_components()
            return self.mount_filesystem()

        except KeyboardInterrupt:
            self.logger.info("Interrupted by user")
            return 130

        except OSError as e:
            self.logger.error(f"Fatal error: {e}")
            return 1


def run_mirrorfs(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    """
    Main entry point for running MirrorFS.

    Args:
        args: Parsed command-line arguments
        config: Configuration manager
        logger: Logger instance

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    return MirrorFSMain(args, config, logger).run()


def main():
    """Entry point when run as a script; delegates to the CLI."""
    from mirrorfs.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
