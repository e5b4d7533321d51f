"""
modploy.deployment - Decision and Lifecycle Engine
====================================================

    Orchestrator → Installer (walker + single-artifact path)
                 → Classifier → Location Resolver → host runtime

    WatchBridge feeds watcher batches back into the same Installer.
"""

from modploy.deployment.classifier import ArtifactClassifier
from modploy.deployment.installer import ArtifactInstaller
from modploy.deployment.location import (
    has_module_metadata,
    normalize_symbolic_name,
    resolve_location,
)
from modploy.deployment.orchestrator import DeploymentOrchestrator
from modploy.deployment.watch_bridge import WatchBridge

__all__ = [
    "ArtifactClassifier",
    "ArtifactInstaller",
    "DeploymentOrchestrator",
    "WatchBridge",
    "has_module_metadata",
    "normalize_symbolic_name",
    "resolve_location",
]
