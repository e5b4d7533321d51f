"""
modploy.infrastructure.dir_watcher - Debounced Directory Watcher
==================================================================

Turns raw filesystem notifications into debounced batches of
created / updated / deleted paths.

Architecture Context:

    watchdog Observer thread                 asyncio event loop
    ────────────────────────                 ──────────────────
    _EventForwarder.on_*  ──call_soon_threadsafe──→  DirWatcher._record
                                                        │ (coalesce into
                                                        │  pending changes,
                                                        │  restart quiet timer)
                                                        ▼
                                                  DirWatcher._flush
                                                        │ ChangeBatch
                                                        ▼
                                                  asyncio.Queue
                                                        │ one batch at a time
                                                        ▼
                                                  FileChangeListener
                                                  files_created / files_updated
                                                  / files_deleted

Coalescing Rules (per path, within one quiet period):
    created → modified   = created
    deleted → created    = updated
    created → deleted    = dropped
    moved                = deleted(src) + created(dest)
    Directory-modified events and events on the root itself are ignored.

Lifecycle:
    start()  schedules a recursive watchdog observer and a consumer task.
    stop()   stops accepting events, discards anything not yet delivered,
             lets the batch currently being delivered finish, then returns.

Usage:
    >>> watcher = DirWatcher(Path("deploy"), quiet_period=1.5, listener=bridge)
    >>> await watcher.start()
    >>> ...
    >>> await watcher.stop()
"""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from modploy.core.enums import ChangeKind
from modploy.core.exceptions import WatchError
from modploy.core.models import ChangeBatch


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


# =============================================================================
# Listener Interface
# =============================================================================
class FileChangeListener(ABC):
    """Receives debounced change batches from a DirWatcher.

    Each callback gets the paths of one kind from one batch. Within a batch
    the callbacks run in the order created, updated, deleted.
    """

    @abstractmethod
    async def files_created(self, paths: list[Path]) -> None:
        ...

    @abstractmethod
    async def files_updated(self, paths: list[Path]) -> None:
        ...

    @abstractmethod
    async def files_deleted(self, paths: list[Path]) -> None:
        ...


# =============================================================================
# watchdog Adapter
# =============================================================================
class _EventForwarder(FileSystemEventHandler):
    """Forwards watchdog events from the observer thread to the watcher."""

    def __init__(self, watcher: DirWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        self._watcher._post(ChangeKind.CREATED, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        # Parent directories report a modification for every child change
        if event.is_directory:
            return
        self._watcher._post(ChangeKind.UPDATED, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._watcher._post(ChangeKind.DELETED, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._watcher._post(ChangeKind.DELETED, event.src_path)
        self._watcher._post(ChangeKind.CREATED, event.dest_path)


# =============================================================================
# DirWatcher
# =============================================================================
class DirWatcher:
    """Recursive, debounced watcher for one directory tree.

    Attributes:
        root: The watched directory.
        quiet_period: Seconds without new events before a batch is delivered.
    """

    def __init__(
        self,
        root: Path,
        quiet_period: float,
        listener: FileChangeListener,
    ) -> None:
        self._root = Path(root)
        self._quiet_period = quiet_period
        self._listener = listener

        self._running = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._observer: Optional[Observer] = None
        self._queue: asyncio.Queue[Optional[ChangeBatch]] = asyncio.Queue()
        self._consumer: Optional[asyncio.Task[None]] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._pending: dict[Path, ChangeKind] = {}

        self._logger = logger.bind(component="dir_watcher", directory=str(self._root))

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def root(self) -> Path:
        return self._root

    @property
    def quiet_period(self) -> float:
        return self._quiet_period

    @property
    def listener(self) -> FileChangeListener:
        return self._listener

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Begin watching.

        Raises:
            WatchError: The root is not a directory or the observer could
                not be started.
        """
        if self._running:
            return

        if not self._root.is_dir():
            raise WatchError(
                message=f"Cannot watch {self._root}: not a directory",
                directory=str(self._root),
                error_code="NOT_A_DIRECTORY",
            )

        self._loop = asyncio.get_running_loop()
        observer = Observer()
        try:
            observer.schedule(_EventForwarder(self), str(self._root), recursive=True)
            observer.start()
        except Exception as e:
            raise WatchError(
                message=f"Cannot watch {self._root}: {e}",
                directory=str(self._root),
                error_code="OBSERVER_START_FAILED",
            ) from e

        self._observer = observer
        self._running = True
        self._consumer = asyncio.create_task(self._dispatch_loop())
        self._logger.info("watch_started", quiet_period=self._quiet_period)

    async def stop(self) -> None:
        """Stop watching. Idempotent.

        The batch being delivered, if any, runs to completion; pending
        changes and queued batches are discarded.
        """
        if not self._running:
            return
        self._running = False

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        discarded = len(self._pending)
        self._pending.clear()

        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join)
            self._observer = None

        while not self._queue.empty():
            self._queue.get_nowait()
            discarded += 1
        self._queue.put_nowait(None)

        if self._consumer is not None:
            await self._consumer
            self._consumer = None

        self._logger.info("watch_stopped", discarded=discarded)

    # =========================================================================
    # Event intake (observer thread → loop)
    # =========================================================================

    def _post(self, kind: ChangeKind, raw_path: str | bytes) -> None:
        """Called on the observer thread."""
        loop = self._loop
        if loop is None or loop.is_closed() or not self._running:
            return
        try:
            loop.call_soon_threadsafe(self._record, kind, Path(os.fsdecode(raw_path)))
        except RuntimeError:
            # Loop closed between the check and the call
            self._logger.debug("event_dropped_loop_closed", kind=kind.value)

    def _record(self, kind: ChangeKind, path: Path) -> None:
        """Coalesce one change into the pending set. Runs on the loop."""
        if not self._running or path == self._root:
            return

        previous = self._pending.get(path)
        if kind == ChangeKind.CREATED:
            self._pending[path] = (
                ChangeKind.UPDATED if previous == ChangeKind.DELETED else ChangeKind.CREATED
            )
        elif kind == ChangeKind.UPDATED:
            if previous != ChangeKind.CREATED:
                self._pending[path] = ChangeKind.UPDATED
        elif previous == ChangeKind.CREATED:
            del self._pending[path]
        else:
            self._pending[path] = ChangeKind.DELETED

        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().call_later(self._quiet_period, self._flush)

    def _flush(self) -> None:
        """Quiet period elapsed: move pending changes into one batch."""
        self._timer = None
        if not self._running or not self._pending:
            return

        batch = ChangeBatch()
        for path, kind in sorted(self._pending.items()):
            if kind == ChangeKind.CREATED:
                batch.created.append(path)
            elif kind == ChangeKind.UPDATED:
                batch.updated.append(path)
            else:
                batch.deleted.append(path)
        self._pending.clear()
        self._queue.put_nowait(batch)

    # =========================================================================
    # Delivery
    # =========================================================================

    async def _dispatch_loop(self) -> None:
        while True:
            batch = await self._queue.get()
            if batch is None:
                return
            await self._deliver(batch)

    async def _deliver(self, batch: ChangeBatch) -> None:
        self._logger.debug(
            "change_batch_ready",
            created=len(batch.created),
            updated=len(batch.updated),
            deleted=len(batch.deleted),
        )
        for kind, paths, callback in (
            (ChangeKind.CREATED, batch.created, self._listener.files_created),
            (ChangeKind.UPDATED, batch.updated, self._listener.files_updated),
            (ChangeKind.DELETED, batch.deleted, self._listener.files_deleted),
        ):
            if not paths:
                continue
            try:
                await callback(paths)
            except Exception as e:
                self._logger.error(
                    "change_listener_failed",
                    kind=kind.value,
                    paths=[str(p) for p in paths],
                    error=str(e),
                )

    def __repr__(self) -> str:
        return f"DirWatcher(root={str(self._root)!r}, running={self._running})"
