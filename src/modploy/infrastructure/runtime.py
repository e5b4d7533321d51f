"""
modploy.infrastructure.runtime - Host Module Runtime Interface
================================================================

The host runtime owns module lifecycle. modploy only decides *what* to ask
of it; this module defines the contract and ships an in-memory
implementation for development and testing.

Architecture Context:

    ┌────────────────────┐   install / lookup / stop_host   ┌───────────────┐
    │  ArtifactInstaller │ ───────────────────────────────→ │ ModuleRuntime │
    │  ArtifactClassifier│                                   │               │
    └────────────────────┘                                   │ ┌───────────┐ │
              │            start / stop / update             │ │ModuleHandle│ │
              └────────────────────────────────────────────→ │ └───────────┘ │
                                                             └───────────────┘

Contract:
    - install(location, data) → ModuleHandle
        Raises ModuleRuntimeError if the stream is not a module archive.
        Installing at a location that is already bound returns the existing
        handle.
    - lookup(location) → ModuleHandle | None
    - stop_host()  terminates the host. Irreversible.
    - ModuleHandle.start() / stop() / update(data) may raise
      ModuleRuntimeError.

Implementations:
    - InMemoryModuleRuntime: dict-backed, records an ordered event log and
      supports failure injection for tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import structlog

from modploy.core.enums import ModuleState
from modploy.core.exceptions import ArchiveError, ModuleRuntimeError
from modploy.infrastructure.archive import read_manifest


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


# =============================================================================
# Abstract Interfaces
# =============================================================================
class ModuleHandle(ABC):
    """A module installed in the host runtime."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Location Identity the module was installed under."""
        ...

    @property
    @abstractmethod
    def symbolic_name(self) -> str:
        """Symbolic name declared by the installed archive."""
        ...

    @property
    @abstractmethod
    def state(self) -> ModuleState:
        """Current lifecycle state."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the module. Starting an active module is a no-op."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the module. Stopping an inactive module is a no-op."""
        ...

    @abstractmethod
    async def update(self, data: bytes) -> None:
        """Replace the module content with ``data``."""
        ...


class ModuleRuntime(ABC):
    """The host module runtime, as seen by the deployment engine."""

    @abstractmethod
    async def install(self, location: str, data: bytes) -> ModuleHandle:
        """Install a module archive under ``location``.

        Raises:
            ModuleRuntimeError: The stream is malformed or not a module.
        """
        ...

    @abstractmethod
    async def lookup(self, location: str) -> Optional[ModuleHandle]:
        """Return the module installed under ``location``, if any."""
        ...

    @abstractmethod
    async def stop_host(self) -> None:
        """Terminate the whole host runtime."""
        ...


# =============================================================================
# In-Memory Implementation
# =============================================================================
class InMemoryModule(ModuleHandle):
    """Module handle owned by InMemoryModuleRuntime."""

    def __init__(
        self,
        runtime: InMemoryModuleRuntime,
        location: str,
        symbolic_name: str,
        data: bytes,
    ) -> None:
        self._runtime = runtime
        self._location = location
        self._symbolic_name = symbolic_name
        self._state = ModuleState.INSTALLED
        self.data = data

    @property
    def location(self) -> str:
        return self._location

    @property
    def symbolic_name(self) -> str:
        return self._symbolic_name

    @property
    def state(self) -> ModuleState:
        return self._state

    async def start(self) -> None:
        self._runtime._guard("start", self._location)
        self._state = ModuleState.ACTIVE
        self._runtime._record("start", self._location)

    async def stop(self) -> None:
        self._runtime._guard("stop", self._location)
        if self._state == ModuleState.ACTIVE:
            self._state = ModuleState.STOPPED
        self._runtime._record("stop", self._location)

    async def update(self, data: bytes) -> None:
        self._runtime._guard("update", self._location)
        self._symbolic_name = self._runtime._symbolic_name_of(data, self._location, "update")
        self.data = data
        self._runtime._record("update", self._location)

    def __repr__(self) -> str:
        return f"InMemoryModule(location={self._location!r}, state={self._state.value})"


class InMemoryModuleRuntime(ModuleRuntime):
    """Dict-backed host runtime for development and testing.

    Every successful operation is appended to ``events`` as an
    ``(operation, location)`` tuple, so tests can assert ordering such as
    install-before-start.

    Failure Injection:
        >>> runtime = InMemoryModuleRuntime()
        >>> runtime.inject_failure("foo:1.0", "start")
        >>> # the next start() of foo:1.0 raises ModuleRuntimeError

    Attributes:
        events: Ordered log of successful operations.
        host_stopped: Whether stop_host() has been called.
    """

    def __init__(self) -> None:
        self._modules: dict[str, InMemoryModule] = {}
        self._failures: set[tuple[str, str]] = set()
        self.events: list[tuple[str, str]] = []
        self.host_stopped = False
        self._logger = logger.bind(component="in_memory_module_runtime")

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------
    def inject_failure(self, location: str, operation: str) -> None:
        """Make the next ``operation`` on ``location`` raise once."""
        self._failures.add((location, operation))

    @property
    def modules(self) -> dict[str, InMemoryModule]:
        """Snapshot of installed modules keyed by location."""
        return dict(self._modules)

    def events_for(self, location: str) -> list[str]:
        """Operations recorded for one location, in order."""
        return [op for op, loc in self.events if loc == location]

    # -------------------------------------------------------------------------
    # ModuleRuntime
    # -------------------------------------------------------------------------
    async def install(self, location: str, data: bytes) -> ModuleHandle:
        existing = self._modules.get(location)
        if existing is not None:
            self._logger.debug("module_already_installed", location=location)
            return existing

        self._guard("install", location)
        symbolic_name = self._symbolic_name_of(data, location, "install")
        module = InMemoryModule(self, location, symbolic_name, data)
        self._modules[location] = module
        self._record("install", location)
        self._logger.debug("module_installed", location=location)
        return module

    async def lookup(self, location: str) -> Optional[ModuleHandle]:
        return self._modules.get(location)

    async def stop_host(self) -> None:
        self._guard("stop_host", "")
        self.host_stopped = True
        for module in self._modules.values():
            module._state = ModuleState.STOPPED
        self._record("stop_host", "")
        self._logger.info("host_stopped", modules=len(self._modules))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    def _record(self, operation: str, location: str) -> None:
        self.events.append((operation, location))

    def _guard(self, operation: str, location: str) -> None:
        """Raise for a stopped host or an injected failure."""
        if self.host_stopped:
            raise ModuleRuntimeError(
                message="Host runtime has been stopped",
                location=location,
                operation=operation,
                error_code="HOST_STOPPED",
            )
        if (location, operation) in self._failures:
            self._failures.discard((location, operation))
            raise ModuleRuntimeError(
                message=f"Injected {operation} failure",
                location=location,
                operation=operation,
                error_code="INJECTED_FAILURE",
            )

    def _symbolic_name_of(self, data: bytes, location: str, operation: str) -> str:
        try:
            manifest = read_manifest(data)
        except ArchiveError as e:
            raise ModuleRuntimeError(
                message=f"Malformed module stream: {e.message}",
                location=location,
                operation=operation,
                error_code="MALFORMED_STREAM",
            ) from e

        if manifest is None or manifest.symbolic_name is None:
            raise ModuleRuntimeError(
                message="Stream is not a module archive (no symbolic name)",
                location=location,
                operation=operation,
                error_code="NOT_A_MODULE",
            )
        return manifest.symbolic_name
