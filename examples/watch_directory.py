"""
Watch Directory Example — Boot Scan plus Incremental Deployment
=================================================================

This example builds a throwaway application directory, boots a
DeploymentOrchestrator over it with watching enabled, then drops a new
module archive and rewrites an existing one while the watcher runs.

What it shows:
    - a module archive installed under ``name:version``
    - a plain archive wrapped and installed under its file name
    - a dropped archive picked up after the quiet period
    - an in-place rewrite turned into stop → update → start

Usage:
    python examples/watch_directory.py
"""

from __future__ import annotations

import asyncio
import tempfile
import zipfile
from pathlib import Path
from typing import Optional

from modploy.core.config import DeployerConfig
from modploy.deployment.orchestrator import DeploymentOrchestrator
from modploy.infrastructure.archive import MANIFEST_PATH, render_manifest
from modploy.infrastructure.runtime import InMemoryModuleRuntime


def write_archive(path: Path, name: Optional[str] = None, version: Optional[str] = None) -> None:
    """Write a tiny archive; without ``name`` it carries no manifest."""
    with zipfile.ZipFile(path, "w") as zf:
        if name is not None:
            headers = {"Bundle-ManifestVersion": "2", "Bundle-SymbolicName": name}
            if version is not None:
                headers["Bundle-Version"] = version
            zf.writestr(MANIFEST_PATH, render_manifest(headers))
        zf.writestr("lib/Code.class", b"\xca\xfe\xba\xbe")


async def main() -> None:
    """Deploy, watch, and print the runtime's event log."""
    with tempfile.TemporaryDirectory() as tmp:
        deploy = Path(tmp).resolve() / "deploy"
        deploy.mkdir()
        write_archive(deploy / "foo-1.0.jar", "foo", "1.0")
        write_archive(deploy / "plainlib.jar")

        config = DeployerConfig(
            application_dirs=[str(deploy)],
            watch_application_dirs=True,
            watch_quiet_period_ms=300,
        )
        runtime = InMemoryModuleRuntime()

        async with DeploymentOrchestrator(config, runtime):
            print("After boot scan:", sorted(runtime.modules))

            write_archive(deploy / "foo-1.1.jar", "foo", "1.1")
            await asyncio.sleep(1.0)
            print("After drop:     ", sorted(runtime.modules))

            write_archive(deploy / "foo-1.0.jar", "foo", "1.0")
            await asyncio.sleep(1.0)

        print()
        print("Runtime events")
        print("-" * 40)
        for operation, location in runtime.events:
            print(f"{operation:<8} {location}")


if __name__ == "__main__":
    asyncio.run(main())
