"""
modploy.deployment.watch_bridge - Incremental Deployment on File Changes
==========================================================================

Connects a DirWatcher to the installer. One WatchBridge is created per
watched application directory; it reuses exactly the same install path as
the boot scan so both routes reach the same outcome for the same archive.

    change batch             per path                       afterwards
    ────────────             ────────                       ──────────
    created   directory  →   install_directory              start all produced
              archive    →   install_or_update(known=False) handles
    updated   directory  →   install_directory              (update restarts
              archive    →   install_or_update(known=True)   in place)
    deleted              →   acknowledged, nothing else

Non-archive files and paths that have vanished by the time the batch is
handled are skipped.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from modploy.deployment.installer import ArtifactInstaller
from modploy.infrastructure.dir_watcher import FileChangeListener
from modploy.infrastructure.runtime import ModuleHandle


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


class WatchBridge(FileChangeListener):
    """FileChangeListener that redeploys changed archives of one directory.

    Attributes:
        directory: The application directory this bridge serves.
    """

    def __init__(self, directory: Path, installer: ArtifactInstaller) -> None:
        self._directory = Path(directory)
        self._installer = installer
        self._logger = logger.bind(component="watch_bridge", directory=str(self._directory))

    @property
    def directory(self) -> Path:
        return self._directory

    async def files_created(self, paths: list[Path]) -> None:
        """Install new archives and directories, then start what was installed."""
        handles = await self._process(paths, is_known_path=False)
        started = await self._installer.start_modules(handles)
        self._logger.info(
            "created_batch_processed",
            paths=len(paths),
            installed=len(handles),
            started=len(started),
        )

    async def files_updated(self, paths: list[Path]) -> None:
        """Re-evaluate changed archives; this is the only source of UPDATE."""
        handles = await self._process(paths, is_known_path=True)
        self._logger.info("updated_batch_processed", paths=len(paths), changed=len(handles))

    async def files_deleted(self, paths: list[Path]) -> None:
        # Modules are never removed when their archive disappears
        self._logger.info("deleted_paths_ignored", paths=len(paths))

    async def _process(self, paths: list[Path], is_known_path: bool) -> list[ModuleHandle]:
        handles: list[ModuleHandle] = []
        for path in paths:
            path = Path(path)
            if path.is_dir():
                produced = await self._installer.install_directory(path)
            elif path.is_file():
                if not self._installer.is_archive(path):
                    self._logger.debug("non_archive_ignored", path=str(path))
                    continue
                handle = await self._installer.install_or_update(path, is_known_path)
                produced = [handle] if handle is not None else []
            else:
                self._logger.debug("path_vanished", path=str(path))
                continue

            for handle in produced:
                if handle not in handles:
                    handles.append(handle)
        return handles
