"""
Shared Test Fixtures for modploy
==================================

Reusable pytest fixtures, organized by layer:

    1. Archives      (build zip archives with a manifest on the fly)
    2. Configuration
    3. Host runtime  (InMemoryModuleRuntime)
    4. Deployment    (classifier, installer)
"""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Optional

import pytest

from modploy.core.config import DeployerConfig
from modploy.deployment.classifier import ArtifactClassifier
from modploy.deployment.installer import ArtifactInstaller
from modploy.infrastructure.archive import MANIFEST_PATH, render_manifest
from modploy.infrastructure.runtime import InMemoryModuleRuntime


# =============================================================================
# Archives
# =============================================================================

def build_archive(
    path: Path,
    headers: Optional[dict[str, str]] = None,
    entries: Optional[dict[str, bytes]] = None,
) -> Path:
    """Write a zip archive at ``path``.

    Args:
        path: Target file; parent directories are created.
        headers: Manifest headers. None writes no manifest at all.
        entries: Extra archive members. Defaults to one class file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        if headers is not None:
            zf.writestr(MANIFEST_PATH, render_manifest(headers))
        for name, content in (entries or {"lib/Code.class": b"\xca\xfe\xba\xbe"}).items():
            zf.writestr(name, content)
    return path


def break_manifest_member(path: Path, defect: str) -> Path:
    """Damage the manifest entry of an archive built by ``build_archive``.

    The archive still opens and lists its members, but reading the manifest
    fails:

        "encrypted"                → RuntimeError (password required)
        "unsupported_compression"  → NotImplementedError

    The manifest is the first entry, so the first central directory record
    describes it.
    """
    data = bytearray(path.read_bytes())
    record = data.find(b"PK\x01\x02")
    assert record >= 0, "no central directory record"
    if defect == "encrypted":
        data[record + 8] |= 0x01
    elif defect == "unsupported_compression":
        data[record + 10:record + 12] = (99).to_bytes(2, "little")
    else:
        raise ValueError(f"unknown defect {defect!r}")
    path.write_bytes(bytes(data))
    return path


def module_headers(name: str, version: Optional[str] = None) -> dict[str, str]:
    """Manifest headers of a module archive."""
    headers = {"Bundle-ManifestVersion": "2", "Bundle-SymbolicName": name}
    if version is not None:
        headers["Bundle-Version"] = version
    return headers


@pytest.fixture
def make_archive():
    """Factory fixture: ``make_archive(path, headers=None, entries=None)``."""
    return build_archive


@pytest.fixture
def make_module():
    """Factory fixture: ``make_module(path, name, version=None)``."""

    def _make(path: Path, name: str, version: Optional[str] = None) -> Path:
        return build_archive(path, headers=module_headers(name, version))

    return _make


@pytest.fixture
def break_manifest():
    """Factory fixture: ``break_manifest(path, defect)``."""
    return break_manifest_member


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def runtime_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "runtime"
    directory.mkdir()
    return directory


@pytest.fixture
def app_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "deploy"
    directory.mkdir()
    return directory


@pytest.fixture
def config(runtime_dir: Path, app_dir: Path) -> DeployerConfig:
    """Configuration with one runtime and one application directory, no watch."""
    return DeployerConfig(
        runtime_dirs=[str(runtime_dir)],
        application_dirs=[str(app_dir)],
        watch_application_dirs=False,
    )


# =============================================================================
# Host Runtime
# =============================================================================

@pytest.fixture
def runtime() -> InMemoryModuleRuntime:
    """Fresh InMemoryModuleRuntime with nothing installed."""
    return InMemoryModuleRuntime()


# =============================================================================
# Deployment
# =============================================================================

@pytest.fixture
def classifier(runtime: InMemoryModuleRuntime) -> ArtifactClassifier:
    return ArtifactClassifier(runtime)


@pytest.fixture
def installer(runtime: InMemoryModuleRuntime, classifier: ArtifactClassifier) -> ArtifactInstaller:
    return ArtifactInstaller(runtime, classifier)

