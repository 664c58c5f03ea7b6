"""
Unit tests for configuration validation functionality.

Tests the validation of the launcher, tools and logging sections, including
defaults for missing keys and error reporting for bad values.
"""

import logging

import pytest

from proflaunch.config.validators import (
    validate_app_config,
    validate_launcher_config,
    validate_logging_config,
    validate_tools_config,
)
from proflaunch.validation import ValidationError


@pytest.fixture
def sample_config_data(temp_dir):
    """Sample configuration data for testing."""
    return {
        "launcher": {
            "wait_on_normal_exit": True,
            "wait_on_abnormal_exit": False,
            "assets_dir": f"  {temp_dir}  ",
        },
        "tools": {
            "install_root": r"C:\VS\Common7\IDE",
            "perf_monitor": "VSPerfMon.exe",
            "perf_cmd": "VSPerfCmd.exe",
        },
        "logging": {"level": "debug"},
    }


@pytest.mark.unit
class TestLauncherConfigValidation:
    """Test cases for launcher configuration validation."""

    def test_success(self, sample_config_data, temp_dir):
        config = validate_launcher_config(sample_config_data["launcher"])

        assert config.wait_on_normal_exit is True
        assert config.wait_on_abnormal_exit is False
        assert config.assets_dir == str(temp_dir)

    def test_defaults(self):
        config = validate_launcher_config({})

        assert config.wait_on_normal_exit is False
        assert config.wait_on_abnormal_exit is False
        assert config.assets_dir is None

    def test_blank_assets_dir_is_none(self):
        assert validate_launcher_config({"assets_dir": ""}).assets_dir is None

    def test_missing_assets_dir(self, temp_dir):
        with pytest.raises(ValidationError) as exc_info:
            validate_launcher_config({"assets_dir": str(temp_dir / "missing")})

        assert exc_info.value.field_name == "launcher.assets_dir"
        assert "does not exist" in str(exc_info.value)

    def test_non_boolean_flag(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_launcher_config({"wait_on_normal_exit": "yes"})

        assert exc_info.value.field_name == "launcher.wait_on_normal_exit"

    def test_section_must_be_table(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_launcher_config(["not", "a", "table"])

        assert "[launcher]" in str(exc_info.value)


@pytest.mark.unit
class TestToolsConfigValidation:
    """Test cases for tools configuration validation."""

    def test_success(self, sample_config_data):
        config = validate_tools_config(sample_config_data["tools"])

        assert config.install_root == r"C:\VS\Common7\IDE"
        assert config.perf_monitor == "VSPerfMon.exe"
        assert config.perf_cmd == "VSPerfCmd.exe"

    def test_defaults(self):
        config = validate_tools_config({})

        assert config.install_root is None
        assert config.perf_monitor == "VSPerfMon.exe"
        assert config.perf_cmd == "VSPerfCmd.exe"

    @pytest.mark.parametrize("name", ["", "bin/VSPerfCmd.exe", r"bin\VSPerfCmd.exe"])
    def test_invalid_tool_names(self, name):
        with pytest.raises(ValidationError) as exc_info:
            validate_tools_config({"perf_cmd": name})

        assert "tools.perf_cmd" in str(exc_info.value)

    def test_install_root_must_be_string(self):
        with pytest.raises(ValidationError):
            validate_tools_config({"install_root": 42})


@pytest.mark.unit
class TestLoggingConfigValidation:
    """Test cases for logging configuration validation."""

    def test_level_normalized(self, sample_config_data):
        assert validate_logging_config(sample_config_data["logging"]).level == "DEBUG"

    def test_default_level(self):
        assert validate_logging_config({}).level == "INFO"

    def test_invalid_level(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_logging_config({"level": "verbose"})

        assert "logging.level" in str(exc_info.value)


@pytest.mark.unit
class TestAppConfigValidation:
    """Test cases for whole-file validation."""

    def test_success(self, sample_config_data):
        config = validate_app_config(sample_config_data)

        assert config.launcher.wait_on_normal_exit is True
        assert config.tools.install_root == r"C:\VS\Common7\IDE"
        assert config.logging.level == "DEBUG"

    def test_empty_file(self):
        config = validate_app_config({})

        assert config.launcher.assets_dir is None
        assert config.tools.perf_monitor == "VSPerfMon.exe"

    def test_unknown_section_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="proflaunch.config.validators"):
            validate_app_config({"plotting": {}})

        assert "[plotting]" in caplog.text
