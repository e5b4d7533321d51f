"""
modploy.deployment.orchestrator - Deployment Lifecycle
========================================================

The DeploymentOrchestrator is the single entry point the hosting process
uses: ``start()`` once at boot, ``stop()`` once at shutdown.

Startup Sequence:

    1. Runtime tier      for dir in runtime_dirs (in order):
                             handles = install_directory(dir); start(handles)
    2. Application tier  for dir in application_dirs (in order):
                             handles = install_directory(dir); start(handles)
                             if watching: register WatchBridge + DirWatcher
    3. Watches           start every registered watcher

    Watchers are only started after the whole application tier has been
    scanned, so no change batch can race the boot scan over the same archive.

Shutdown Sequence:

    1. Dispose the classifier (no further actions are decided)
    2. Stop every watcher (each lets its in-flight batch finish)

Usage:
    >>> orchestrator = DeploymentOrchestrator(config, runtime)
    >>> await orchestrator.start()
    >>> ...
    >>> await orchestrator.stop()

    Or:
    >>> async with DeploymentOrchestrator(config, runtime) as orchestrator:
    ...     ...
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

import structlog

from modploy.core.config import DeployerConfig
from modploy.core.exceptions import ModployError
from modploy.deployment.classifier import ArtifactClassifier
from modploy.deployment.installer import ArtifactInstaller
from modploy.deployment.watch_bridge import WatchBridge
from modploy.infrastructure.dir_watcher import DirWatcher, FileChangeListener
from modploy.infrastructure.runtime import ModuleRuntime


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


# Builds a watcher for (directory, quiet period in seconds, listener)
WatcherFactory = Callable[[Path, float, FileChangeListener], DirWatcher]


class DeploymentOrchestrator:
    """Drives bulk deployment at boot and incremental deployment afterwards.

    Attributes:
        _config: Immutable deployment configuration.
        _runtime: Host module runtime.
        _classifier: Decides the action for each artifact.
        _installer: Carries out actions and walks directories.
        _watchers: Registered watchers, keyed by application directory.
        _started: Whether start() has completed.
    """

    def __init__(
        self,
        config: DeployerConfig,
        runtime: ModuleRuntime,
        *,
        watcher_factory: Optional[WatcherFactory] = None,
    ) -> None:
        self._config = config
        self._runtime = runtime
        self._classifier = ArtifactClassifier(runtime)
        self._installer = ArtifactInstaller(
            runtime,
            self._classifier,
            archive_extension=config.archive_extension,
        )
        self._watcher_factory: WatcherFactory = watcher_factory or DirWatcher
        self._watchers: dict[Path, DirWatcher] = {}
        self._started = False
        self._logger = logger.bind(component="deployment_orchestrator")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> DeployerConfig:
        return self._config

    @property
    def runtime(self) -> ModuleRuntime:
        return self._runtime

    @property
    def classifier(self) -> ArtifactClassifier:
        return self._classifier

    @property
    def installer(self) -> ArtifactInstaller:
        return self._installer

    @property
    def watchers(self) -> dict[Path, DirWatcher]:
        """Snapshot of the registered watchers."""
        return dict(self._watchers)

    @property
    def is_started(self) -> bool:
        return self._started

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Deploy both tiers, then begin watching. Idempotent."""
        if self._started:
            self._logger.debug("orchestrator_already_started")
            return

        self._logger.info(
            "deployment_starting",
            runtime_dirs=list(self._config.runtime_dirs),
            application_dirs=list(self._config.application_dirs),
            watch=self._config.watch_application_dirs,
        )

        await self._deploy_runtime()
        await self._deploy_applications()
        await self._start_watchers()

        self._started = True
        self._logger.info("deployment_started", watchers=len(self._watchers))

    async def stop(self) -> None:
        """Release the classifier and stop all watchers. Idempotent."""
        if not self._started:
            self._logger.debug("orchestrator_not_started_skipping_stop")
            return

        self._logger.info("deployment_stopping")
        self._classifier.dispose()

        for directory, watcher in self._watchers.items():
            try:
                await watcher.stop()
            except Exception as e:
                self._logger.error("watch_stop_failed", directory=str(directory), error=str(e))
        self._watchers.clear()

        self._started = False
        self._logger.info("deployment_stopped")

    async def __aenter__(self) -> DeploymentOrchestrator:
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()

    # =========================================================================
    # Phases
    # =========================================================================

    async def _deploy_runtime(self) -> None:
        for directory in self._config.runtime_dirs:
            await self._deploy_directory(Path(directory), tier="runtime")

    async def _deploy_applications(self) -> None:
        for directory in self._config.application_dirs:
            path = Path(directory)
            await self._deploy_directory(path, tier="application")

            if self._config.watch_application_dirs:
                bridge = WatchBridge(path, self._installer)
                self._watchers[path] = self._watcher_factory(
                    path,
                    self._config.quiet_period_seconds,
                    bridge,
                )

    async def _deploy_directory(self, directory: Path, tier: str) -> None:
        handles = await self._installer.install_directory(directory)
        started = await self._installer.start_modules(handles)
        self._logger.info(
            "directory_deployed",
            tier=tier,
            directory=str(directory),
            installed=len(handles),
            started=len(started),
        )

    async def _start_watchers(self) -> None:
        for directory, watcher in list(self._watchers.items()):
            try:
                await watcher.start()
            except ModployError as e:
                self._logger.error("watch_start_failed", directory=str(directory), error=e.to_dict())
                del self._watchers[directory]
            except Exception as e:
                self._logger.error("watch_start_failed", directory=str(directory), error=str(e))
                del self._watchers[directory]

    def __repr__(self) -> str:
        return (
            f"DeploymentOrchestrator("
            f"started={self._started}, "
            f"watchers={len(self._watchers)})"
        )
