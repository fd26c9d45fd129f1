"""Tests for the error translator."""

import errno

import pytest

from mirrorfs.core.constants import FailureKind
from mirrorfs.core.errors import (
    AccessDeniedError,
    InvalidRequestError,
    IOFailureError,
    IsDirectoryError,
    MirrorFSError,
    NotFoundError,
    RemoteIOError,
    error_for,
    from_decode_error,
    from_lookup_error,
    from_os_error,
    to_return_code,
)

REMOTE_IO_ERRNO = getattr(errno, "EREMOTEIO", errno.EIO)


class TestErrorClasses:
    """Each error class carries one failure kind."""

    @pytest.mark.parametrize(
        "cls, kind, code",
        [
            (InvalidRequestError, FailureKind.INVALID_REQUEST, errno.EINVAL),
            (NotFoundError, FailureKind.NOT_FOUND, errno.ENOENT),
            (AccessDeniedError, FailureKind.ACCESS_DENIED, errno.EACCES),
            (IsDirectoryError, FailureKind.IS_A_DIRECTORY, errno.EISDIR),
            (RemoteIOError, FailureKind.REMOTE_IO, REMOTE_IO_ERRNO),
            (IOFailureError, FailureKind.IO_FAILURE, errno.EIO),
        ],
    )
    def test_kind_and_errno(self, cls, kind, code):
        error = cls("boom", "/a.txt")
        assert isinstance(error, MirrorFSError)
        assert error.kind is kind
        assert error.errno == code
        assert error.path == "/a.txt"
        assert str(error) == "boom"

    def test_error_for_every_kind(self):
        """error_for covers the whole enumeration."""
        for kind in FailureKind:
            error = error_for(kind, "msg", "/p")
            assert error.kind is kind
            assert error.path == "/p"


class TestTranslation:
    """Translation of host failures."""

    @pytest.mark.parametrize("code", [errno.ENOENT, errno.ENOTDIR, errno.ELOOP, errno.ENAMETOOLONG])
    def test_lookup_absent_is_not_found(self, code):
        error = from_lookup_error(OSError(code, "absent"), "/x")
        assert isinstance(error, NotFoundError)

    def test_lookup_io_failure_is_remote_io(self):
        error = from_lookup_error(OSError(errno.EIO, "disk on fire"), "/x")
        assert isinstance(error, RemoteIOError)

    def test_os_error_is_remote_io(self):
        error = from_os_error(OSError(errno.EBADF, "Bad file descriptor"), "/x", operation="read")
        assert isinstance(error, RemoteIOError)
        assert "read failed" in error.message

    def test_decode_error_is_invalid_request(self):
        try:
            b"\xff".decode("utf-8")
        except UnicodeDecodeError as e:
            error = from_decode_error(e)
        assert isinstance(error, InvalidRequestError)


class TestReturnCode:
    """Handler return contract."""

    def test_negated_errno(self):
        assert to_return_code(NotFoundError("missing")) == -errno.ENOENT
        assert to_return_code(InvalidRequestError("bad")) == -errno.EINVAL
        assert to_return_code(RemoteIOError("io")) == -REMOTE_IO_ERRNO

    def test_always_negative(self):
        for kind in FailureKind:
            assert to_return_code(error_for(kind, "x")) < 0
