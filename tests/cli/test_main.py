"""Tests for CLI entry point and global options."""

import pytest

from osquery_tool import __version__
from osquery_tool.cli.main import app
from osquery_tool.core.exceptions import ConfigError


@pytest.mark.unit
class TestCliHelp:
    def test_help_flag(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "osquery-tool" in result.stdout
        for command in ("query", "tables", "schema", "status", "config"):
            assert command in result.stdout

    def test_no_args_shows_help(self, runner):
        result = runner.invoke(app, [])
        assert result.exit_code == 0 or result.exit_code == 2
        assert "Usage" in result.stdout or "Usage" in result.stderr

    def test_global_options_listed(self, runner):
        result = runner.invoke(app, ["--help"])
        for option in ("--osqueryi", "--extension", "--no-extension", "--compact"):
            assert option in result.stdout


@pytest.mark.unit
class TestCliVersion:
    def test_version_flag(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"osquery-tool {__version__}" in result.stdout

    def test_version_short_flag(self, runner):
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert f"osquery-tool {__version__}" in result.stdout


@pytest.mark.unit
class TestCliVerbose:
    def test_verbose_flag_accepted(self, runner, config_file):
        result = runner.invoke(app, ["--verbose", "--config", str(config_file), "tables"])
        assert result.exit_code == 0


@pytest.mark.unit
class TestUnknownCommand:
    def test_unknown_command_fails(self, runner):
        result = runner.invoke(app, ["nonexistent-command"])
        assert result.exit_code != 0


@pytest.mark.unit
class TestBadConfig:
    def test_malformed_config_raises_config_error(self, runner, temp_dir):
        bad = temp_dir / "bad.toml"
        bad.write_text("osqueryi_path = [unclosed\n")
        result = runner.invoke(app, ["--config", str(bad), "status"])
        assert isinstance(result.exception, ConfigError)

    def test_unknown_key_raises_config_error(self, runner, temp_dir):
        bad = temp_dir / "bad.toml"
        bad.write_text('no_such_key = "x"\n')
        result = runner.invoke(app, ["--config", str(bad), "status"])
        assert isinstance(result.exception, ConfigError)
