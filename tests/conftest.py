"""Shared pytest fixtures for MirrorFS tests."""
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
import yaml

from mirrorfs.backends.memory import MemoryBackend
from mirrorfs.backends.passthrough import PassthroughBackend
from mirrorfs.core.paths import MountContext


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def source_dir(temp_dir: Path) -> Path:
    """Create a source directory with test files."""
    source = temp_dir / "source"
    source.mkdir()

    (source / "a.txt").write_bytes(b"xyz")
    (source / "hello.txt").write_bytes(b"asdf\n")
    (source / "sub").mkdir()

    (source / "docs").mkdir()
    (source / "docs" / "guide.md").write_text("# Guide\n\nRead-only content\n")

    return source


@pytest.fixture
def mount_dir(temp_dir: Path) -> Path:
    """Create a mount point directory."""
    mount = temp_dir / "mount"
    mount.mkdir()
    return mount


@pytest.fixture
def outside_dir(temp_dir: Path) -> Path:
    """Directory next to the source root, never reachable through it."""
    outside = temp_dir / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_text("not for the mount")
    return outside


@pytest.fixture
def context(source_dir: Path) -> MountContext:
    """Mount context bound to the source directory."""
    return MountContext.for_source(source_dir)


@pytest.fixture
def backend(context: MountContext) -> PassthroughBackend:
    """Passthrough backend over the source directory."""
    return PassthroughBackend(context)


@pytest.fixture
def memory_backend() -> MemoryBackend:
    """In-memory backend holding the same tree as source_dir."""
    return MemoryBackend(
        {
            "a.txt": b"xyz",
            "hello.txt": b"asdf\n",
            "sub": {},
            "docs": {"guide.md": b"# Guide\n\nRead-only content\n"},
        },
        mtime=1_700_000_000.0,
    )


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Provide a sample MirrorFS configuration."""
    return {
        "mirrorfs": {
            "logging": {
                "level": "WARNING",
                "file": None,
            },
            "fuse": {
                "fsname": "testmirror",
                "allow_other": True,
            },
        }
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: Dict[str, Any]) -> Path:
    """Create a configuration file."""
    config_path = temp_dir / "mirrorfs.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path
