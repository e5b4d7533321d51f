"""
modploy.core.config - Configuration Management
================================================

The deployment configuration is read once at startup and never changes for
the lifetime of the process. Sources, highest priority first:

    1. Explicit constructor arguments (load_config passes YAML values here)
    2. Environment variables (prefixed with MODPLOY_)
    3. Default values defined below

Architecture Context:
    DeployerConfig is created once and handed to the orchestrator, which
    passes the relevant parts down:

        DeployerConfig
            ├── runtime_dirs, application_dirs   → DeploymentOrchestrator
            ├── watch_application_dirs           → DeploymentOrchestrator
            ├── watch_quiet_period_ms            → DirWatcher
            └── archive_extension                → ArtifactInstaller, WatchBridge

Usage:
    # Load from environment variables:
    config = DeployerConfig()

    # Load from YAML file:
    config = load_config("modploy.yaml")

    # Explicit values:
    config = DeployerConfig(
        runtime_dirs=["/opt/app/runtime"],
        application_dirs=["/opt/app/deploy"],
        watch_application_dirs=True,
    )

Environment Variables:
    MODPLOY_RUNTIME_DIRS='["/opt/app/runtime"]'
    MODPLOY_APPLICATION_DIRS='["/opt/app/deploy"]'
    MODPLOY_WATCH_APPLICATION_DIRS=true
    MODPLOY_WATCH_QUIET_PERIOD_MS=1500
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from modploy.core.exceptions import ConfigurationError


DEFAULT_CONFIG_FILE = "modploy.yaml"


# =============================================================================
# Main Configuration
# =============================================================================
class DeployerConfig(BaseSettings):
    """Immutable deployment configuration.

    Attributes:
        runtime_dirs: Runtime-tier directories, deployed first, in order.
        application_dirs: Application-tier directories, deployed after the
            runtime tier, in order. These are the only watchable directories.
        watch_application_dirs: Place every application directory under a
            debounced filesystem watch once the bulk deployment is done.
        watch_quiet_period_ms: Quiet period the watcher waits after the last
            change before delivering a batch.
        archive_extension: File name suffix identifying module archives.

    Example:
        >>> config = DeployerConfig(application_dirs=["deploy"])
        >>> config.quiet_period_seconds
        1.5
    """

    runtime_dirs: list[str] = Field(
        default_factory=list,
        description="Runtime-tier directories (deployed first)",
    )
    application_dirs: list[str] = Field(
        default_factory=list,
        description="Application-tier directories (deployed second, watchable)",
    )
    watch_application_dirs: bool = Field(
        default=False,
        description="Watch application directories for changes after startup",
    )
    watch_quiet_period_ms: int = Field(
        default=1500,
        ge=0,
        le=600_000,
        description="Debounce window of the directory watcher in milliseconds",
    )
    archive_extension: str = Field(
        default=".jar",
        description="File name suffix of deployable archives",
    )

    model_config = {
        "env_prefix": "MODPLOY_",
        "case_sensitive": False,
        "frozen": True,
    }

    @field_validator("archive_extension")
    @classmethod
    def _extension_has_dot(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError(f"archive_extension must look like '.jar', got {value!r}")
        return value

    @property
    def quiet_period_seconds(self) -> float:
        """Watch debounce window in seconds."""
        return self.watch_quiet_period_ms / 1000.0


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None) -> DeployerConfig:
    """Load the deployment configuration from YAML and/or the environment.

    Args:
        path: Path to a YAML file. If None, ``modploy.yaml`` in the current
            directory is used when present; otherwise defaults + environment.

    Returns:
        A validated DeployerConfig.

    Raises:
        FileNotFoundError: An explicit path was given but does not exist.
        ConfigurationError: The YAML file could not be parsed or its top
            level is not a mapping.
    """
    if path is None:
        default_path = Path(DEFAULT_CONFIG_FILE)
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(config_path) as f:
            try:
                raw_data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    message=f"Invalid YAML in {path}: {e}",
                    error_code="INVALID_YAML",
                    details={"path": str(config_path)},
                ) from e

        if raw_data is None:
            raw_data = {}
        if not isinstance(raw_data, dict):
            raise ConfigurationError(
                message=f"Top level of {path} must be a mapping",
                error_code="INVALID_CONFIG_STRUCTURE",
                details={"path": str(config_path), "type": type(raw_data).__name__},
            )
        yaml_data = raw_data

    return DeployerConfig(**yaml_data)


def get_default_config() -> DeployerConfig:
    """Create a DeployerConfig from defaults and environment variables only."""
    return DeployerConfig()
