"""
modploy.core - Foundation Layer
================================

Plain data structures and configuration that every other package depends on:

    - config:      DeployerConfig + load_config
    - enums:       Action, ModuleState, ChangeKind
    - models:      ArchiveManifest, Artifact, ChangeBatch
    - exceptions:  ModployError hierarchy

Dependency Rule:
    core/ depends on nothing else in the modploy package.
"""

from modploy.core.config import DeployerConfig, get_default_config, load_config
from modploy.core.enums import Action, ChangeKind, ModuleState
from modploy.core.exceptions import (
    ArchiveError,
    ConfigurationError,
    ModployError,
    ModuleRuntimeError,
    WatchError,
)
from modploy.core.models import ArchiveManifest, Artifact, ChangeBatch

__all__ = [
    # Config
    "DeployerConfig",
    "get_default_config",
    "load_config",
    # Enums
    "Action",
    "ChangeKind",
    "ModuleState",
    # Models
    "ArchiveManifest",
    "Artifact",
    "ChangeBatch",
    # Exceptions
    "ModployError",
    "ConfigurationError",
    "ArchiveError",
    "ModuleRuntimeError",
    "WatchError",
]
