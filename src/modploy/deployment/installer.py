"""
modploy.deployment.installer - Artifact Installation and Directory Walking
============================================================================

The ArtifactInstaller carries out classification results against the host
runtime. It exposes three operations:

    install_or_update(path, is_known_path)  one archive → handle | None
    install_directory(directory)            recursive walk → [handles]
    start_modules(handles)                  start each, failures isolated

Flow for a single archive:

    load_artifact(path) ──→ resolve_location ──→ lock(location)
                                                     │
                                       classifier.classify(artifact)
                                                     │
            ┌───────────────┬────────────────────────┼───────────────────┐
            ▼               ▼                        ▼                   ▼
         INSTALL          UPDATE              WRAP_AND_INSTALL     STOP_FRAMEWORK
     runtime.install   stop → update →     wrap_archive → install  runtime.stop_host
                          start                                    installer halts

Concurrency:
    Classification and dispatch for one Location Identity run under a
    per-identity asyncio.Lock, so a watch-triggered update and a concurrent
    scan never interleave stop/update/start calls for the same module.
    Different identities proceed independently. A lock lives only while some
    caller holds or waits for it.

    Archive reading and wrapping run in worker threads (asyncio.to_thread)
    so large archives do not stall other watchers on the loop.

Failure Isolation:
    Every failure for one archive (unreadable file, runtime error, or any
    other exception) is logged with path and location and yields None. A walk always
    continues with the next archive. The only exception is STOP_FRAMEWORK,
    after which the installer refuses all further work.

Walk Order:
    Direct archives of a directory first (sorted by name), then its
    subdirectories (sorted by name), depth-first. Each resolved directory is
    entered at most once per walk, so directory symlink cycles terminate.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import structlog

from modploy.core.enums import Action
from modploy.core.exceptions import ArchiveError, ModployError
from modploy.core.models import Artifact
from modploy.deployment.classifier import ArtifactClassifier
from modploy.deployment.location import resolve_location
from modploy.infrastructure.archive import load_artifact, wrap_archive
from modploy.infrastructure.runtime import ModuleHandle, ModuleRuntime


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


@dataclass
class _IdentityLock:
    lock: asyncio.Lock
    users: int = 0


class ArtifactInstaller:
    """Installs, updates, wraps and starts modules found on disk.

    Attributes:
        archive_extension: File name suffix of deployable archives.
        is_halted: True once a STOP_FRAMEWORK action has been carried out.

    Example:
        >>> installer = ArtifactInstaller(runtime, ArtifactClassifier(runtime))
        >>> handles = await installer.install_directory(Path("deploy"))
        >>> await installer.start_modules(handles)
    """

    def __init__(
        self,
        runtime: ModuleRuntime,
        classifier: ArtifactClassifier,
        archive_extension: str = ".jar",
    ) -> None:
        self._runtime = runtime
        self._classifier = classifier
        self._archive_extension = archive_extension
        self._locks: dict[str, _IdentityLock] = {}
        self._halted = False
        self._logger = logger.bind(component="artifact_installer")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def archive_extension(self) -> str:
        return self._archive_extension

    @property
    def is_halted(self) -> bool:
        return self._halted

    @property
    def active_identity_locks(self) -> int:
        """Number of Location Identities currently held or awaited."""
        return len(self._locks)

    def is_archive(self, path: Path) -> bool:
        """Whether ``path`` names a deployable archive (by extension only)."""
        return path.name.endswith(self._archive_extension)

    # =========================================================================
    # Directory Walker
    # =========================================================================

    async def install_directory(self, directory: Path) -> list[ModuleHandle]:
        """Install every archive under ``directory``, recursively.

        Args:
            directory: Root of the walk. A missing directory is not an error.

        Returns:
            Handles of newly installed (or wrapped) modules, in walk order,
            without duplicates.
        """
        return await self._walk(Path(directory), set())

    async def _walk(self, directory: Path, visited: set[Path]) -> list[ModuleHandle]:
        if self._halted:
            return []
        if not directory.is_dir():
            self._logger.debug("directory_missing", directory=str(directory))
            return []

        real = directory.resolve()
        if real in visited:
            self._logger.warning("directory_cycle_skipped", directory=str(directory))
            return []
        visited.add(real)

        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            self._logger.error("directory_unreadable", directory=str(directory), error=str(e))
            return []

        handles: list[ModuleHandle] = []
        for entry in entries:
            if self._halted:
                return handles
            if entry.is_file() and self.is_archive(entry):
                handle = await self.install_or_update(entry, is_known_path=False)
                if handle is not None and handle not in handles:
                    handles.append(handle)

        for entry in entries:
            if self._halted:
                return handles
            if entry.is_dir():
                for handle in await self._walk(entry, visited):
                    if handle not in handles:
                        handles.append(handle)

        return handles

    # =========================================================================
    # Single-Artifact Install Path
    # =========================================================================

    async def install_or_update(
        self,
        path: Path,
        is_known_path: bool,
    ) -> Optional[ModuleHandle]:
        """Classify one archive and carry out the resulting action.

        Args:
            path: Archive file.
            is_known_path: True for watch-driven re-evaluation of an updated
                path; the only way an UPDATE can be produced.

        Returns:
            The installed, wrapped or updated module handle, or None when
            nothing was done or the action failed.
        """
        path = Path(path)
        if self._halted:
            self._logger.debug("installer_halted_skip", path=str(path))
            return None

        try:
            artifact = await asyncio.to_thread(load_artifact, path)
        except ArchiveError as e:
            self._logger.error("artifact_unreadable", path=str(path), error=e.to_dict())
            return None
        except Exception as e:
            self._logger.error(
                "artifact_unreadable",
                path=str(path),
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        location = resolve_location(artifact.manifest, artifact.file_name)

        async with self._serialized(location):
            if self._halted:
                return None
            try:
                action = await self._classifier.classify(artifact, is_known_path)
                if action == Action.NONE:
                    return None
                return await self._dispatch(action, artifact, location)
            except ModployError as e:
                self._logger.error(
                    "artifact_deploy_failed",
                    path=str(path),
                    location=location,
                    error=e.to_dict(),
                )
            except Exception as e:
                self._logger.error(
                    "artifact_deploy_failed",
                    path=str(path),
                    location=location,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return None

    async def _dispatch(
        self,
        action: Action,
        artifact: Artifact,
        location: str,
    ) -> Optional[ModuleHandle]:
        path = str(artifact.path)

        if action == Action.INSTALL:
            self._logger.info("module_installing", location=location, path=path)
            data = await asyncio.to_thread(artifact.read_bytes)
            return await self._runtime.install(location, data)

        if action == Action.UPDATE:
            handle = await self._runtime.lookup(location)
            if handle is None:
                self._logger.warning("update_target_missing", location=location, path=path)
                return None
            self._logger.info("module_updating", location=location, path=path)
            data = await asyncio.to_thread(artifact.read_bytes)
            await handle.stop()
            await handle.update(data)
            await handle.start()
            return handle

        if action == Action.WRAP_AND_INSTALL:
            self._logger.info("archive_wrapping", location=location, path=path)
            data = await asyncio.to_thread(artifact.read_bytes)
            wrapped = await asyncio.to_thread(wrap_archive, data, location)
            return await self._runtime.install(location, wrapped)

        if action == Action.STOP_FRAMEWORK:
            self._logger.warning("host_stop_requested", path=path)
            self._halted = True
            await self._runtime.stop_host()

        return None

    @asynccontextmanager
    async def _serialized(self, location: str) -> AsyncIterator[None]:
        """Hold the lock of one Location Identity.

        The lock is created on first use and dropped once no caller holds or
        waits for it.
        """
        entry = self._locks.get(location)
        if entry is None:
            entry = self._locks[location] = _IdentityLock(asyncio.Lock())
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[location]

    # =========================================================================
    # Starting
    # =========================================================================

    async def start_modules(self, handles: Iterable[ModuleHandle]) -> list[ModuleHandle]:
        """Start each handle; a failing start does not affect the others.

        Returns:
            The handles that started successfully.
        """
        started: list[ModuleHandle] = []
        for handle in handles:
            try:
                await handle.start()
            except ModployError as e:
                self._logger.error(
                    "module_start_failed",
                    location=handle.location,
                    error=e.to_dict(),
                )
                continue
            except Exception as e:
                self._logger.error(
                    "module_start_failed",
                    location=handle.location,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue
            started.append(handle)
        return started
