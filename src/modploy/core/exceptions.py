"""
modploy.core.exceptions - Custom Exception Hierarchy
======================================================

Structured exceptions for modploy. Every failure the deployment engine can
run into is raised as one of these types so that the installer can log it
with full context and move on to the next artifact.

Exception Hierarchy:
    ModployError (base)
        ├── ConfigurationError   - Invalid or unreadable configuration
        ├── ArchiveError         - Archive cannot be opened, read, or wrapped
        ├── ModuleRuntimeError   - Host runtime refused install/update/start/stop
        └── WatchError           - Directory watcher could not be started

Propagation Policy:
    None of these abort a deployment run. They are caught at the smallest
    scope (one artifact, one watcher), logged, and the run continues:

        install_or_update(path)
            → ArchiveError / ModuleRuntimeError raised
            → caught inside the installer
            → logged with path + location
            → artifact yields no handle, next artifact proceeds

Usage:
    >>> from modploy.core.exceptions import ModuleRuntimeError
    >>> raise ModuleRuntimeError(
    ...     message="Module failed to start",
    ...     location="foo:1.0",
    ...     operation="start",
    ... )
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
class ModployError(Exception):
    """Base exception for all modploy errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable code, UPPER_SNAKE_CASE.
        details: Additional debugging context.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary for structured logging.

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
# Raised while loading configuration. This is the one error that is allowed
# to stop the agent before deployment begins.
# =============================================================================
class ConfigurationError(ModployError):
    """Raised when the deployment configuration is invalid or unreadable.

    Example:
        >>> raise ConfigurationError(
        ...     message="modploy.yaml is not valid YAML",
        ...     error_code="INVALID_YAML",
        ...     details={"path": "modploy.yaml"},
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Archive Error
# =============================================================================
class ArchiveError(ModployError):
    """Raised when an archive cannot be opened, read, or wrapped.

    A missing or corrupt *manifest* inside an otherwise readable archive is
    not an ArchiveError; that archive is simply treated as a plain library.

    Attributes:
        path: Filesystem path of the offending archive (may be empty when
            the archive came from an in-memory byte stream).
    """

    def __init__(
        self,
        message: str,
        path: str = "",
        error_code: str = "ARCHIVE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if path:
            enriched_details["path"] = path

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.path = path


# =============================================================================
# Module Runtime Error
# =============================================================================
# Raised by ModuleRuntime / ModuleHandle implementations. Carries the
# location and the operation so a log line alone tells which module failed
# and at which lifecycle step.
# =============================================================================
class ModuleRuntimeError(ModployError):
    """Raised when the host runtime fails an install/update/start/stop call.

    Attributes:
        location: Location Identity of the module involved.
        operation: Lifecycle operation that failed
            ("install", "update", "start", "stop", "stop_host").

    Example:
        >>> raise ModuleRuntimeError(
        ...     message="Stream is not a module archive",
        ...     location="plainlib.jar",
        ...     operation="install",
        ...     error_code="NOT_A_MODULE",
        ... )
    """

    def __init__(
        self,
        message: str,
        location: str,
        operation: str,
        error_code: str = "MODULE_RUNTIME_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["location"] = location
        enriched_details["operation"] = operation

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.location = location
        self.operation = operation


# =============================================================================
# Watch Error
# =============================================================================
class WatchError(ModployError):
    """Raised when a directory watcher cannot be started.

    The orchestrator logs it and carries on; the directory simply receives no
    incremental updates for the rest of the run.

    Attributes:
        directory: The directory that could not be watched.
    """

    def __init__(
        self,
        message: str,
        directory: str,
        error_code: str = "WATCH_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["directory"] = directory

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.directory = directory
