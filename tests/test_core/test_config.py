"""
Tests for modploy.core.config
===============================

These tests verify the deployment configuration:
    - Default values allow a zero-config start (nothing to deploy)
    - Environment variables are honoured
    - YAML files are parsed, malformed ones rejected
    - Validation catches invalid values
    - The configuration is immutable
"""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from modploy.core.config import DeployerConfig, get_default_config, load_config
from modploy.core.exceptions import ConfigurationError


# =============================================================================
# Test: Default Configuration
# =============================================================================
class TestDefaultConfig:
    """Tests for default configuration values."""

    def test_default_config_creates_successfully(self) -> None:
        config = DeployerConfig()
        assert config.runtime_dirs == []
        assert config.application_dirs == []

    def test_watch_disabled_by_default(self) -> None:
        assert DeployerConfig().watch_application_dirs is False

    def test_default_quiet_period(self) -> None:
        config = DeployerConfig()
        assert config.watch_quiet_period_ms == 1500
        assert config.quiet_period_seconds == pytest.approx(1.5)

    def test_default_archive_extension(self) -> None:
        assert DeployerConfig().archive_extension == ".jar"

    def test_get_default_config(self) -> None:
        assert isinstance(get_default_config(), DeployerConfig)


# =============================================================================
# Test: Explicit Values and Validation
# =============================================================================
class TestConfigValidation:
    """Tests for explicit values and validation rules."""

    def test_directory_order_is_preserved(self) -> None:
        config = DeployerConfig(runtime_dirs=["b", "a", "c"], application_dirs=["z", "y"])
        assert config.runtime_dirs == ["b", "a", "c"]
        assert config.application_dirs == ["z", "y"]

    def test_negative_quiet_period_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DeployerConfig(watch_quiet_period_ms=-1)

    def test_extension_without_dot_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DeployerConfig(archive_extension="jar")

    def test_custom_extension_accepted(self) -> None:
        assert DeployerConfig(archive_extension=".zip").archive_extension == ".zip"

    def test_config_is_immutable(self) -> None:
        config = DeployerConfig()
        with pytest.raises(ValidationError):
            config.watch_application_dirs = True


# =============================================================================
# Test: Environment Variables
# =============================================================================
class TestEnvironmentConfig:
    """Tests for MODPLOY_* environment variables."""

    def test_watch_flag_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MODPLOY_WATCH_APPLICATION_DIRS", "true")
        assert DeployerConfig().watch_application_dirs is True

    def test_dirs_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MODPLOY_APPLICATION_DIRS", '["/opt/deploy", "/opt/extra"]')
        assert DeployerConfig().application_dirs == ["/opt/deploy", "/opt/extra"]

    def test_constructor_overrides_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MODPLOY_WATCH_QUIET_PERIOD_MS", "200")
        assert DeployerConfig(watch_quiet_period_ms=50).watch_quiet_period_ms == 50


# =============================================================================
# Test: YAML Loading
# =============================================================================
class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "modploy.yaml"
        path.write_text(yaml.safe_dump({
            "runtime_dirs": ["runtime"],
            "application_dirs": ["deploy", "hot"],
            "watch_application_dirs": True,
            "watch_quiet_period_ms": 250,
        }))

        config = load_config(str(path))

        assert config.runtime_dirs == ["runtime"]
        assert config.application_dirs == ["deploy", "hot"]
        assert config.watch_application_dirs is True
        assert config.quiet_period_seconds == pytest.approx(0.25)

    def test_missing_explicit_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_empty_yaml_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "modploy.yaml"
        path.write_text("")
        assert load_config(str(path)).application_dirs == []

    def test_malformed_yaml_raises_configuration_error(self, tmp_path: Path) -> None:
        path = tmp_path / "modploy.yaml"
        path.write_text("runtime_dirs: [unclosed\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(str(path))
        assert exc_info.value.error_code == "INVALID_YAML"

    def test_non_mapping_yaml_raises_configuration_error(self, tmp_path: Path) -> None:
        path = tmp_path / "modploy.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(str(path))
        assert exc_info.value.error_code == "INVALID_CONFIG_STRUCTURE"

    def test_auto_detects_file_in_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "modploy.yaml").write_text("application_dirs: [auto]\n")
        monkeypatch.chdir(tmp_path)
        assert load_config().application_dirs == ["auto"]

    def test_no_file_in_cwd_uses_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        assert load_config().application_dirs == []
