"""
MirrorFS Core: Path Resolver.

Turns request paths from the dispatch layer into paths under the source
root. Paths are canonicalized before joining and the result is checked to
stay inside the root, so ".." segments and symlinked parent directories
cannot reach the host filesystem outside the mount.
"""
import os
import posixpath
from dataclasses import dataclass
from typing import Tuple, Union

from mirrorfs.core.constants import Limits, ResolvedPath
from mirrorfs.core.errors import InvalidRequestError, NotFoundError, from_decode_error


@dataclass(frozen=True)
class MountContext:
    """
    Immutable binding of the source root, created once at startup.

    Attributes:
        source_root: Absolute path of the source directory as given
        real_root: Source root with symlinks resolved; request paths are
            joined onto it
    """

    source_root: str
    real_root: str

    @classmethod
    def for_source(cls, source: Union[str, os.PathLike]) -> "MountContext":
        """
        Create a MountContext for a source directory.

        Args:
            source: Source directory path

        Returns:
            MountContext bound to ``source``

        Raises:
            NotADirectoryError: If ``source`` is not an existing directory
        """
        source_root = os.path.abspath(os.fspath(source))
        if not os.path.isdir(source_root):
            raise NotADirectoryError(f"Source is not a directory: {source_root}")
        return cls(source_root=source_root, real_root=os.path.realpath(source_root))


def decode_request_path(raw: Union[str, bytes]) -> str:
    """Decode a request path delivered as bytes (strict UTF-8)."""
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise from_decode_error(e, repr(raw))
    return raw


def normalize_request_path(raw: Union[str, bytes]) -> str:
    """
    Canonicalize a request path relative to the mount root.

    Args:
        raw: Slash-rooted request path

    Returns:
        Root-relative POSIX path, "" for the root itself

    Raises:
        InvalidRequestError: If the path is undecodable, not slash-rooted,
            contains NUL, is too long, or climbs above the root
    """
    path = decode_request_path(raw)

    if not path or not path.startswith("/"):
        raise InvalidRequestError(f"Request path must start with '/': {path!r}", path)
    if "\0" in path:
        raise InvalidRequestError("Request path contains NUL", path)
    if len(path) > Limits.MAX_PATH_LENGTH:
        raise InvalidRequestError("Request path too long", path)

    relative = path.lstrip("/")
    if not relative:
        return ""

    # normpath keeps leading ".." segments, which is exactly the escape case
    normalized = posixpath.normpath(relative)
    if normalized == "..":
        raise InvalidRequestError("Request path escapes the mount root", path)
    if normalized.startswith("../"):
        raise InvalidRequestError("Request path escapes the mount root", path)
    if normalized == ".":
        return ""
    return normalized


def split_request_path(raw: Union[str, bytes]) -> Tuple[str, ...]:
    """Canonical request path as a tuple of components (empty for the root)."""
    normalized = normalize_request_path(raw)
    if not normalized:
        return ()
    return tuple(normalized.split("/"))


def _is_within(path: str, root: str) -> bool:
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


def resolve_path(context: MountContext, raw: Union[str, bytes]) -> ResolvedPath:
    """
    Resolve a request path to a host path under the source root.

    The final component is not dereferenced, so a symlink stays visible as a
    symlink to the caller.

    Args:
        context: Mount context
        raw: Slash-rooted request path

    Returns:
        Host path under ``context.real_root``

    Raises:
        InvalidRequestError: If the request path is malformed
        NotFoundError: If a symlinked parent directory leads outside the root
    """
    relative = normalize_request_path(raw)
    if not relative:
        return context.real_root

    resolved = os.path.join(context.real_root, *relative.split("/"))

    real_parent = os.path.realpath(os.path.dirname(resolved))
    if not _is_within(real_parent, context.real_root):
        raise NotFoundError(f"Path leaves the source root: {raw!r}", "/" + relative)

    return resolved
