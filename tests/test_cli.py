"""Tests for CLI argument parsing and configuration.

This module tests the command-line interface including:
- Argument parsing
- Configuration loading and precedence
- Logging setup
- Runtime environment checks
- The main() entry point
"""

import os
import sys
import types
from unittest.mock import Mock, patch

import pytest
import yaml

from mirrorfs.cli import (
    CLIError,
    build_config_from_args,
    load_config,
    main,
    parse_arguments,
    print_banner,
    setup_logging,
    validate_runtime_environment,
)
from mirrorfs.core.logging import LogLevel


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep MIRRORFS_* variables from the host out of the tests."""
    for key in [k for k in list(os.environ) if k.startswith("MIRRORFS_")]:
        monkeypatch.delenv(key)


class TestParseArguments:
    """Test argument parsing."""

    def test_parse_basic_arguments(self, mount_dir, source_dir):
        """Parses the two required positionals."""
        args = parse_arguments([str(mount_dir), str(source_dir)])

        assert args.mountpoint == str(mount_dir)
        assert args.source == str(source_dir)
        assert args.foreground is None
        assert args.allow_other is None
        assert not args.debug
        assert args.fuse_options is None

    def test_parse_all_options(self, mount_dir, source_dir, config_file):
        args = parse_arguments(
            [
                str(mount_dir),
                str(source_dir),
                "--config",
                str(config_file),
                "--allow-other",
                "--fsname",
                "data",
                "--foreground",
                "--debug",
                "--log-file",
                "/tmp/mirrorfs.log",
                "-o",
                "uid=1000",
                "-o",
                "default_permissions",
            ]
        )

        assert args.config == str(config_file)
        assert args.allow_other is True
        assert args.fsname == "data"
        assert args.foreground is True
        assert args.debug is True
        assert args.log_file == "/tmp/mirrorfs.log"
        assert args.fuse_options == ["uid=1000", "default_permissions"]

    def test_missing_source(self, mount_dir):
        with pytest.raises(SystemExit):
            parse_arguments([str(mount_dir)])

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_arguments(["--version"])
        assert exc_info.value.code == 0
        assert "1.0.0" in capsys.readouterr().out

    def test_source_does_not_exist(self, mount_dir, temp_dir):
        with pytest.raises(CLIError, match="Source does not exist"):
            parse_arguments([str(mount_dir), str(temp_dir / "missing")])

    def test_mountpoint_not_directory(self, source_dir):
        with pytest.raises(CLIError, match="Mount point is not a directory"):
            parse_arguments([str(source_dir / "a.txt"), str(source_dir)])

    def test_config_does_not_exist(self, mount_dir, source_dir, temp_dir):
        with pytest.raises(CLIError, match="Configuration file does not exist"):
            parse_arguments([str(mount_dir), str(source_dir), "-c", str(temp_dir / "none.yaml")])


class TestBuildConfigFromArgs:
    def test_unset_options_are_none(self, mount_dir, source_dir):
        config = build_config_from_args(parse_arguments([str(mount_dir), str(source_dir)]))

        assert config["mirrorfs"]["logging"] == {"level": None, "file": None}
        assert config["mirrorfs"]["fuse"] == {"fsname": None, "allow_other": None, "foreground": None}

    def test_debug_sets_level(self, mount_dir, source_dir):
        config = build_config_from_args(parse_arguments([str(mount_dir), str(source_dir), "-d"]))
        assert config["mirrorfs"]["logging"]["level"] == "DEBUG"


class TestLoadConfig:
    def test_defaults(self, mount_dir, source_dir):
        config = load_config(parse_arguments([str(mount_dir), str(source_dir)]))

        assert config.get("mirrorfs.fuse.fsname") == "mirrorfs"
        assert config.get("mirrorfs.fuse.allow_other") is False

    def test_file_values(self, mount_dir, source_dir, config_file):
        config = load_config(parse_arguments([str(mount_dir), str(source_dir), "-c", str(config_file)]))

        assert config.get("mirrorfs.fuse.fsname") == "testmirror"
        assert config.get("mirrorfs.logging.level") == "WARNING"

    def test_args_override_file(self, mount_dir, source_dir, config_file):
        args = parse_arguments([str(mount_dir), str(source_dir), "-c", str(config_file), "--fsname", "cli", "-d"])
        config = load_config(args)

        assert config.get("mirrorfs.fuse.fsname") == "cli"
        assert config.get("mirrorfs.logging.level") == "DEBUG"

    def test_environment(self, mount_dir, source_dir, monkeypatch):
        monkeypatch.setenv("MIRRORFS_FUSE_FSNAME", "fromenv")
        config = load_config(parse_arguments([str(mount_dir), str(source_dir)]))
        assert config.get("mirrorfs.fuse.fsname") == "fromenv"

    def test_invalid_yaml(self, mount_dir, source_dir, temp_dir):
        bad = temp_dir / "bad.yaml"
        bad.write_text("mirrorfs: [")

        with pytest.raises(CLIError, match="YAML parse error"):
            load_config(parse_arguments([str(mount_dir), str(source_dir), "-c", str(bad)]))

    def test_invalid_values(self, mount_dir, source_dir, temp_dir):
        bad = temp_dir / "bad.yaml"
        bad.write_text(yaml.dump({"mirrorfs": {"fuse": {"allow_other": "maybe"}}}))

        with pytest.raises(CLIError, match="allow_other"):
            load_config(parse_arguments([str(mount_dir), str(source_dir), "-c", str(bad)]))


class TestSetupLogging:
    def test_level_from_config(self, mount_dir, source_dir, config_file):
        config = load_config(parse_arguments([str(mount_dir), str(source_dir), "-c", str(config_file)]))
        logger = setup_logging(config)

        assert logger.name == "mirrorfs"
        assert logger.get_level() == LogLevel.WARNING

    def test_log_file(self, mount_dir, source_dir, temp_dir):
        log_path = temp_dir / "mirrorfs.log"
        config = load_config(parse_arguments([str(mount_dir), str(source_dir), "--log-file", str(log_path)]))

        logger = setup_logging(config)
        logger.warning("hello file")
        for handler in logger.logger.handlers:
            handler.flush()

        assert "hello file" in log_path.read_text()
        for handler in list(logger.logger.handlers):
            logger.remove_handler(handler)
            handler.close()


class TestValidateRuntimeEnvironment:
    def test_missing_fuse_library(self):
        with patch.dict(sys.modules, {"fuse": None}):
            with pytest.raises(CLIError, match="FUSE library not found"):
                validate_runtime_environment()

    def test_incompatible_fuse_library(self):
        with patch.dict(sys.modules, {"fuse": types.ModuleType("fuse")}):
            with pytest.raises(CLIError, match="too old"):
                validate_runtime_environment()

    def test_missing_device(self):
        fake_fuse = types.ModuleType("fuse")
        fake_fuse.FUSE = object
        with patch.dict(sys.modules, {"fuse": fake_fuse}):
            with patch("mirrorfs.cli.sys.platform", "linux"):
                with patch("mirrorfs.cli.os.path.exists", return_value=False):
                    with pytest.raises(CLIError, match="/dev/fuse not found"):
                        validate_runtime_environment()


def test_print_banner():
    logger = Mock()
    print_banner(logger)

    messages = [call.args[0] for call in logger.info.call_args_list]
    assert "MirrorFS v1.0.0" in messages


class TestMain:
    """Test the main() entry point."""

    @pytest.fixture
    def fake_main_module(self):
        module = types.ModuleType("mirrorfs.main")
        module.run_mirrorfs = Mock(return_value=0)
        with patch.dict(sys.modules, {"mirrorfs.main": module}):
            yield module

    @pytest.fixture(autouse=True)
    def runtime_ok(self):
        with patch("mirrorfs.cli.validate_runtime_environment") as validate:
            yield validate

    def test_success(self, mount_dir, source_dir, fake_main_module):
        assert main([str(mount_dir), str(source_dir)]) == 0

        args, config, logger = fake_main_module.run_mirrorfs.call_args.args
        assert args.source == str(source_dir)
        assert config.get("mirrorfs.fuse.fsname") == "mirrorfs"
        assert logger.name == "mirrorfs"

    def test_exit_code_passed_through(self, mount_dir, source_dir, fake_main_module):
        fake_main_module.run_mirrorfs.return_value = 1
        assert main([str(mount_dir), str(source_dir)]) == 1

    def test_foreground_prints_banner(self, mount_dir, source_dir, fake_main_module):
        with patch("mirrorfs.cli.print_banner") as banner:
            main([str(mount_dir), str(source_dir), "--foreground"])
        banner.assert_called_once()

    def test_cli_error(self, mount_dir, temp_dir, capsys):
        assert main([str(mount_dir), str(temp_dir / "missing")]) == 1
        assert "Error: Source does not exist" in capsys.readouterr().err

    def test_runtime_error(self, mount_dir, source_dir, runtime_ok, capsys):
        runtime_ok.side_effect = CLIError("FUSE library not found")
        assert main([str(mount_dir), str(source_dir)]) == 1
        assert "FUSE library not found" in capsys.readouterr().err

    def test_keyboard_interrupt(self, mount_dir, source_dir, fake_main_module):
        fake_main_module.run_mirrorfs.side_effect = KeyboardInterrupt
        assert main([str(mount_dir), str(source_dir)]) == 130
