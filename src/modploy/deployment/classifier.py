"""
modploy.deployment.classifier - Artifact Classification
=========================================================

Decides which Action applies to one artifact. The decision depends only on
the artifact's manifest, the caller's ``is_known_path`` flag, and what the
host runtime currently holds. Nothing is cached: calling classify() twice
with the same inputs and the same runtime state gives the same answer.

Decision Table (first match wins):

    ┌───┬──────────────────────────────────────────────┬──────────────────┐
    │ # │ Condition                                    │ Action           │
    ├───┼──────────────────────────────────────────────┼──────────────────┤
    │ 1 │ manifest has Deploy-Action: stop-host        │ STOP_FRAMEWORK   │
    │ 2 │ symbolic name, identity not in runtime       │ INSTALL          │
    │ 3 │ symbolic name, identity in runtime           │ UPDATE if known  │
    │   │                                              │ path, else NONE  │
    │ 4 │ no symbolic name, identity not in runtime    │ WRAP_AND_INSTALL │
    │ 5 │ anything else                                │ NONE             │
    └───┴──────────────────────────────────────────────┴──────────────────┘

Rule 3 is why a boot scan never restarts modules that are already running:
only watch-driven re-evaluation of a previously seen path sets
``is_known_path``.
"""

from __future__ import annotations

from typing import Optional

import structlog

from modploy.core.enums import Action
from modploy.core.models import Artifact
from modploy.deployment.location import has_module_metadata, resolve_location
from modploy.infrastructure.runtime import ModuleRuntime


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


class ArtifactClassifier:
    """Maps an artifact to the Action the installer should carry out.

    Example:
        >>> classifier = ArtifactClassifier(runtime)
        >>> await classifier.classify(artifact, is_known_path=False)
        <Action.INSTALL: 'install'>
    """

    def __init__(self, runtime: ModuleRuntime) -> None:
        self._runtime: Optional[ModuleRuntime] = runtime
        self._logger = logger.bind(component="artifact_classifier")

    @property
    def is_disposed(self) -> bool:
        return self._runtime is None

    async def classify(self, artifact: Artifact, is_known_path: bool) -> Action:
        """Classify one artifact.

        Args:
            artifact: The loaded artifact. A None manifest means the archive
                carries no module metadata.
            is_known_path: True only when re-evaluating a path that was seen
                before (watch-driven update).

        Returns:
            The Action to perform. Always NONE after dispose().
        """
        if self._runtime is None:
            self._logger.debug("classifier_disposed", path=str(artifact.path))
            return Action.NONE

        manifest = artifact.manifest
        if manifest is not None and manifest.requests_host_stop:
            return Action.STOP_FRAMEWORK

        location = resolve_location(manifest, artifact.file_name)
        present = await self._runtime.lookup(location) is not None

        if has_module_metadata(manifest):
            if not present:
                return Action.INSTALL
            return Action.UPDATE if is_known_path else Action.NONE

        if not present:
            return Action.WRAP_AND_INSTALL
        return Action.NONE

    def dispose(self) -> None:
        """Release the runtime reference. Idempotent."""
        if self._runtime is not None:
            self._runtime = None
            self._logger.debug("classifier_disposed")
