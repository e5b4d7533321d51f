"""
modploy - Module Deployment Agent
===================================

modploy scans directories for packaged modules, decides for each archive
whether to install it, update a running instance, wrap a plain library into
a module or leave it alone, and starts whatever it installed. Application
directories can stay under a debounced filesystem watch so that dropped or
replaced archives are redeployed without a restart.

Layers (top to bottom):
    1. Deployment      - Orchestrator, Watch Bridge, Installer, Classifier,
                         Location Resolver
    2. Infrastructure  - Host runtime interface, archive handling,
                         directory watcher
    3. Core            - Configuration, enums, models, exceptions

Quick Start:
    >>> from modploy import DeploymentOrchestrator, load_config
    >>> from modploy.infrastructure.runtime import InMemoryModuleRuntime
    >>> async with DeploymentOrchestrator(load_config(), InMemoryModuleRuntime()):
    ...     ...
"""

__version__ = "0.1.0"

from modploy.core.config import DeployerConfig, load_config
from modploy.deployment.orchestrator import DeploymentOrchestrator

__all__ = ["DeployerConfig", "DeploymentOrchestrator", "load_config", "__version__"]
