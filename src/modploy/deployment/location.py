"""
modploy.deployment.location - Location Identity Resolution
============================================================

The Location Identity is the only de-duplication key in modploy: the host
runtime answers "is this module already present?" by looking it up.

    symbolic name + version   →  "com.example.foo:1.0.0"
    symbolic name, no version →  "com.example.foo"
    no symbolic name          →  raw file name, e.g. "plainlib.jar"

Normalization of the symbolic name:
    - everything from the first ';' on is a header directive and is dropped
      ("foo;singleton:=true" → "foo")
    - surrounding whitespace is stripped
    - characters outside [A-Za-z0-9._-] are removed

The file-name fallback is known to be weak: two different plain archives
with the same name in different directories resolve to the same identity.
"""

from __future__ import annotations

import re
from pathlib import PurePath
from typing import Optional

from modploy.core.models import ArchiveManifest


_DISALLOWED = re.compile(r"[^A-Za-z0-9._-]")


def normalize_symbolic_name(raw: Optional[str]) -> Optional[str]:
    """Normalize a raw Bundle-SymbolicName value.

    Returns:
        The normalized name, or None if nothing usable remains.
    """
    if raw is None:
        return None
    name = raw.split(";", 1)[0].strip()
    name = _DISALLOWED.sub("", name)
    return name or None


def has_module_metadata(manifest: Optional[ArchiveManifest]) -> bool:
    """Whether the manifest declares a usable symbolic name."""
    if manifest is None:
        return False
    return normalize_symbolic_name(manifest.symbolic_name) is not None


def resolve_location(manifest: Optional[ArchiveManifest], fallback_name: str) -> str:
    """Derive the Location Identity of an archive.

    Args:
        manifest: Parsed manifest, or None for archives without one.
        fallback_name: Archive file name (or path; only the final component
            is used).

    Returns:
        ``name[:version]`` when a symbolic name is declared, otherwise the
        raw file name.

    Example:
        >>> resolve_location(ArchiveManifest(headers={
        ...     "Bundle-SymbolicName": "foo", "Bundle-Version": "1.0"}), "foo-1.0.jar")
        'foo:1.0'
        >>> resolve_location(None, "/deploy/lib/plainlib.jar")
        'plainlib.jar'
    """
    if manifest is not None:
        name = normalize_symbolic_name(manifest.symbolic_name)
        if name is not None:
            version = manifest.version
            return f"{name}:{version}" if version else name
    return PurePath(fallback_name).name
