"""
modploy.core.models - Core Data Models
========================================

Pydantic models shared by every layer of modploy:

    - ArchiveManifest: the identity headers read from an archive's manifest
    - Artifact:        one archive on disk being considered for deployment
    - ChangeBatch:     one debounced batch of filesystem changes

None of these are persisted. An Artifact lives only for the duration of a
single classify/install call; a ChangeBatch only until its listener returns.

Manifest Headers:
    Bundle-SymbolicName   → identity name (directives after ';' are ignored)
    Bundle-Version        → identity version
    Deploy-Action         → "stop-host" asks the host runtime to terminate
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Manifest Header Names
# =============================================================================
SYMBOLIC_NAME_HEADER = "Bundle-SymbolicName"
VERSION_HEADER = "Bundle-Version"
MANIFEST_VERSION_HEADER = "Bundle-ManifestVersion"
DEPLOY_ACTION_HEADER = "Deploy-Action"

STOP_HOST_DIRECTIVE = "stop-host"


# =============================================================================
# Archive Manifest
# =============================================================================
class ArchiveManifest(BaseModel):
    """Main-section headers of an archive manifest.

    Only a handful of headers matter to the deployment engine; the rest are
    kept verbatim so wrapping can preserve them.

    Attributes:
        headers: Header name → value, in file order.

    Example:
        >>> manifest = ArchiveManifest(headers={
        ...     "Bundle-SymbolicName": "foo;singleton:=true",
        ...     "Bundle-Version": "1.0",
        ... })
        >>> manifest.symbolic_name
        'foo;singleton:=true'
    """

    model_config = ConfigDict(frozen=True)

    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Main-section manifest headers",
    )

    @property
    def symbolic_name(self) -> Optional[str]:
        """Raw Bundle-SymbolicName value, or None if absent or blank."""
        return self._header(SYMBOLIC_NAME_HEADER)

    @property
    def version(self) -> Optional[str]:
        """Raw Bundle-Version value, or None if absent or blank."""
        return self._header(VERSION_HEADER)

    @property
    def requests_host_stop(self) -> bool:
        """Whether the manifest carries the stop-host sentinel directive."""
        value = self._header(DEPLOY_ACTION_HEADER)
        return value is not None and value.lower() == STOP_HOST_DIRECTIVE

    def _header(self, name: str) -> Optional[str]:
        value = self.headers.get(name)
        if value is None:
            return None
        value = value.strip()
        return value or None


# =============================================================================
# Artifact
# =============================================================================
class Artifact(BaseModel):
    """An archive on disk that is a candidate for deployment.

    The manifest is read eagerly (it is small and needed for classification);
    the archive bytes are read lazily, only once an action other than NONE
    has been decided.

    Attributes:
        path: Filesystem path of the archive.
        manifest: Parsed manifest, or None when the archive has none or it
            could not be decoded. None means "plain library archive".
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(description="Filesystem path of the archive")
    manifest: Optional[ArchiveManifest] = Field(
        default=None,
        description="Parsed manifest (None = no usable module metadata)",
    )

    @property
    def file_name(self) -> str:
        """Raw file name, used as the fallback Location Identity."""
        return self.path.name

    def read_bytes(self) -> bytes:
        """Read the full archive content from disk."""
        return self.path.read_bytes()


# =============================================================================
# Change Batch
# =============================================================================
class ChangeBatch(BaseModel):
    """Filesystem changes accumulated during one quiet period.

    Order inside each list is not significant.
    """

    created: list[Path] = Field(default_factory=list)
    updated: list[Path] = Field(default_factory=list)
    deleted: list[Path] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.created or self.updated or self.deleted)
