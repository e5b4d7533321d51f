"""
modploy.infrastructure - Collaborators of the Deployment Engine
=================================================================

    - archive:      manifest reading, artifact loading, archive wrapping
    - runtime:      ModuleRuntime / ModuleHandle interfaces + in-memory runtime
    - dir_watcher:  debounced, recursive directory watcher (watchdog)
"""

from modploy.infrastructure.archive import load_artifact, read_manifest, wrap_archive
from modploy.infrastructure.dir_watcher import DirWatcher, FileChangeListener
from modploy.infrastructure.runtime import (
    InMemoryModule,
    InMemoryModuleRuntime,
    ModuleHandle,
    ModuleRuntime,
)

__all__ = [
    "load_artifact",
    "read_manifest",
    "wrap_archive",
    "DirWatcher",
    "FileChangeListener",
    "ModuleHandle",
    "ModuleRuntime",
    "InMemoryModule",
    "InMemoryModuleRuntime",
]
