"""
modploy.infrastructure.archive - Archive and Manifest Handling
================================================================

Module archives are zip files carrying a manifest at ``META-INF/MANIFEST.MF``.
This module is the only place that opens archives:

    load_artifact(path)            → Artifact (manifest read, bytes lazy)
    read_manifest(data)            → ArchiveManifest | None, from raw bytes
    wrap_archive(data, name)       → bytes of a module archive built from a
                                     plain library archive

Manifest Format:
    Plain ``Name: value`` lines. A line starting with a single space continues
    the previous header. The main section ends at the first blank line;
    per-entry sections after it are ignored. Written lines are wrapped at
    72 bytes.

    Manifest-Version: 1.0
    Bundle-ManifestVersion: 2
    Bundle-SymbolicName: com.example.foo;singleton:=true
    Bundle-Version: 1.0.0

Failure Modes:
    - Archive cannot be opened (not a zip, unreadable) → ArchiveError.
    - Archive opens but the manifest is missing, undecodable or its member
      cannot be extracted (corrupt, encrypted, unsupported compression)
      → manifest is None. The archive is then a plain library.
"""

from __future__ import annotations

import io
import zipfile
import zlib
from pathlib import Path
from typing import Optional

import structlog

from modploy.core.exceptions import ArchiveError
from modploy.core.models import (
    MANIFEST_VERSION_HEADER,
    SYMBOLIC_NAME_HEADER,
    ArchiveManifest,
    Artifact,
)


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


MANIFEST_PATH = "META-INF/MANIFEST.MF"
MANIFEST_LINE_LIMIT = 72

# Raised by ZipFile.read for a member that is listed but cannot be extracted
MEMBER_READ_ERRORS = (
    zipfile.BadZipFile,
    OSError,
    RuntimeError,
    NotImplementedError,
    EOFError,
    zlib.error,
)


# =============================================================================
# Manifest Text
# =============================================================================
def parse_manifest(text: str) -> dict[str, str]:
    """Parse the main section of a manifest into an ordered header dict.

    Lines without a ``:`` separator are skipped.
    """
    headers: dict[str, str] = {}
    current: Optional[str] = None

    for line in text.splitlines():
        if not line:
            # End of main section
            break
        if line.startswith(" "):
            if current is not None:
                headers[current] += line[1:]
            continue

        name, sep, value = line.partition(":")
        if not sep:
            current = None
            continue
        current = name.strip()
        headers[current] = value.strip()

    return headers


def render_manifest(headers: dict[str, str]) -> bytes:
    """Render headers as manifest bytes, ``Manifest-Version`` first."""
    ordered = {"Manifest-Version": headers.get("Manifest-Version", "1.0")}
    ordered.update((k, v) for k, v in headers.items() if k != "Manifest-Version")

    # Wrapped on characters, not bytes, so multi-byte values stay decodable
    lines: list[str] = []
    for name, value in ordered.items():
        line = f"{name}: {value}"
        lines.append(line[:MANIFEST_LINE_LIMIT])
        rest = line[MANIFEST_LINE_LIMIT:]
        while rest:
            lines.append(" " + rest[: MANIFEST_LINE_LIMIT - 1])
            rest = rest[MANIFEST_LINE_LIMIT - 1:]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


# =============================================================================
# Reading
# =============================================================================
def _manifest_from_zip(zf: zipfile.ZipFile, source: str) -> Optional[ArchiveManifest]:
    try:
        raw = zf.read(MANIFEST_PATH)
    except KeyError:
        return None
    except MEMBER_READ_ERRORS as e:
        logger.warning(
            "manifest_unreadable",
            path=source,
            error=str(e),
            error_type=type(e).__name__,
        )
        return None

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.warning("manifest_undecodable", path=source, error=str(e))
        return None

    return ArchiveManifest(headers=parse_manifest(text))


def read_manifest(data: bytes) -> Optional[ArchiveManifest]:
    """Read the manifest of an archive held in memory.

    Raises:
        ArchiveError: The bytes are not a zip archive.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            return _manifest_from_zip(zf, source="<stream>")
    except zipfile.BadZipFile as e:
        raise ArchiveError(
            message=f"Not a zip archive: {e}",
            error_code="BAD_ARCHIVE",
        ) from e


def load_artifact(path: Path) -> Artifact:
    """Open an archive on disk and read its manifest.

    Args:
        path: Archive file path.

    Returns:
        Artifact with the manifest populated (or None for plain archives).

    Raises:
        ArchiveError: The file cannot be opened as a zip archive.
    """
    try:
        with zipfile.ZipFile(path) as zf:
            manifest = _manifest_from_zip(zf, source=str(path))
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveError(
            message=f"Cannot open archive {path}: {e}",
            path=str(path),
            error_code="BAD_ARCHIVE",
        ) from e

    return Artifact(path=path, manifest=manifest)


# =============================================================================
# Wrapping
# =============================================================================
def wrap_archive(data: bytes, symbolic_name: str) -> bytes:
    """Turn a plain library archive into a module archive.

    Existing manifest headers are kept; ``Bundle-SymbolicName`` is set to
    ``symbolic_name`` and ``Bundle-ManifestVersion`` to 2. All other entries
    are copied unchanged, with the manifest written first.

    Args:
        data: Bytes of the plain archive.
        symbolic_name: Symbolic name to assign (the resolved location).

    Returns:
        Bytes of the wrapped archive.

    Raises:
        ArchiveError: ``data`` is not a readable zip archive.
    """
    out = io.BytesIO()
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as src:
            existing = _manifest_from_zip(src, source="<stream>")
            headers = dict(existing.headers) if existing is not None else {}
            headers[MANIFEST_VERSION_HEADER] = "2"
            headers[SYMBOLIC_NAME_HEADER] = symbolic_name

            with zipfile.ZipFile(out, "w", compression=zipfile.ZIP_DEFLATED) as dst:
                dst.writestr(MANIFEST_PATH, render_manifest(headers))
                for info in src.infolist():
                    if info.filename == MANIFEST_PATH:
                        continue
                    dst.writestr(info, src.read(info.filename))
    except MEMBER_READ_ERRORS as e:
        raise ArchiveError(
            message=f"Cannot wrap archive as {symbolic_name}: {e}",
            error_code="WRAP_FAILED",
            details={"symbolic_name": symbolic_name},
        ) from e

    return out.getvalue()
