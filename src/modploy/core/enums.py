"""
modploy.core.enums - Type-Safe Enumerations
=============================================

Enumerations used across modploy. All inherit from ``str`` and ``Enum`` so
they log and serialize as plain strings and compare equal to them:

    >>> Action.INSTALL == "install"
    True

Mapping to the engine:

    ┌─────────────────────────────────────────────────────────────┐
    │  DECISION                                                   │
    │    Action: what the installer asks of the host runtime      │
    ├─────────────────────────────────────────────────────────────┤
    │  HOST RUNTIME                                               │
    │    ModuleState: lifecycle of an installed module            │
    ├─────────────────────────────────────────────────────────────┤
    │  WATCHING                                                   │
    │    ChangeKind: classification of raw filesystem events      │
    └─────────────────────────────────────────────────────────────┘
"""

from enum import Enum


# =============================================================================
# Action
# =============================================================================
# The outcome of classifying one artifact. Exactly five values; computed
# fresh on every classification and never cached.
#
#   NONE             → nothing to do, no runtime call
#   INSTALL          → runtime.install(location, bytes)
#   UPDATE           → handle.stop(); handle.update(bytes); handle.start()
#   WRAP_AND_INSTALL → synthesize a manifest, then install
#   STOP_FRAMEWORK   → runtime.stop_host(), installer halts
# =============================================================================
class Action(str, Enum):
    """Deployment action decided for a single artifact."""

    NONE = "none"
    INSTALL = "install"
    UPDATE = "update"
    WRAP_AND_INSTALL = "wrap_and_install"
    STOP_FRAMEWORK = "stop_framework"


# =============================================================================
# Module State
# =============================================================================
#   install() → INSTALLED → start() → ACTIVE → stop() → STOPPED
#                                 ↖──────── start() ────────┘
# =============================================================================
class ModuleState(str, Enum):
    """Lifecycle states of a module inside the host runtime."""

    INSTALLED = "installed"     # Installed, never started
    ACTIVE = "active"           # Running
    STOPPED = "stopped"         # Was running, has been stopped


# =============================================================================
# Change Kind
# =============================================================================
class ChangeKind(str, Enum):
    """Kind of a filesystem change seen by the directory watcher."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
