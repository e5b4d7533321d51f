"""
Tests for modploy.deployment.location
=======================================

What's Being Tested:
    - name:version identity for module archives
    - normalization of symbolic names (directives, whitespace, bad chars)
    - file-name fallback for archives without a symbolic name
    - identity stability regardless of path
"""

import pytest

from modploy.core.models import ArchiveManifest
from modploy.deployment.location import (
    has_module_metadata,
    normalize_symbolic_name,
    resolve_location,
)


def _manifest(**headers: str) -> ArchiveManifest:
    return ArchiveManifest(headers={k.replace("_", "-"): v for k, v in headers.items()})


# =============================================================================
# Tests: Normalization
# =============================================================================
class TestNormalizeSymbolicName:

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("foo", "foo"),
            ("com.example.foo", "com.example.foo"),
            ("foo;singleton:=true", "foo"),
            ("  foo ; version=1 ", "foo"),
            ("foo bar", "foobar"),
            ("my-lib_2.core", "my-lib_2.core"),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        assert normalize_symbolic_name(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", ";singleton:=true", "@@@"])
    def test_unusable_names(self, raw) -> None:
        assert normalize_symbolic_name(raw) is None


# =============================================================================
# Tests: Resolution
# =============================================================================
class TestResolveLocation:

    def test_name_and_version(self) -> None:
        manifest = _manifest(Bundle_SymbolicName="foo", Bundle_Version="1.0")
        assert resolve_location(manifest, "foo-1.0.jar") == "foo:1.0"

    def test_name_without_version(self) -> None:
        manifest = _manifest(Bundle_SymbolicName="foo")
        assert resolve_location(manifest, "foo.jar") == "foo"

    def test_directives_do_not_leak_into_identity(self) -> None:
        manifest = _manifest(Bundle_SymbolicName="foo;singleton:=true", Bundle_Version="2.1.0")
        assert resolve_location(manifest, "whatever.jar") == "foo:2.1.0"

    def test_fallback_without_manifest(self) -> None:
        assert resolve_location(None, "plainlib.jar") == "plainlib.jar"

    def test_fallback_uses_only_file_name(self) -> None:
        assert resolve_location(None, "/deploy/nested/plainlib.jar") == "plainlib.jar"

    def test_fallback_when_manifest_has_no_name(self) -> None:
        manifest = _manifest(Bundle_Version="1.0", Created_By="maven")
        assert resolve_location(manifest, "lib-1.0.jar") == "lib-1.0.jar"

    @pytest.mark.parametrize(
        "path",
        ["foo-1.0.jar", "/a/b/foo-1.0.jar", "renamed.jar", "/elsewhere/x.jar"],
    )
    def test_identity_independent_of_path(self, path: str) -> None:
        manifest = _manifest(Bundle_SymbolicName="foo", Bundle_Version="1.0")
        assert resolve_location(manifest, path) == "foo:1.0"

    def test_version_bump_changes_identity(self) -> None:
        v1 = _manifest(Bundle_SymbolicName="foo", Bundle_Version="1.0")
        v2 = _manifest(Bundle_SymbolicName="foo", Bundle_Version="1.1")
        assert resolve_location(v1, "foo.jar") != resolve_location(v2, "foo.jar")


class TestHasModuleMetadata:

    def test_none_manifest(self) -> None:
        assert has_module_metadata(None) is False

    def test_manifest_with_name(self) -> None:
        assert has_module_metadata(_manifest(Bundle_SymbolicName="foo")) is True

    def test_manifest_with_unusable_name(self) -> None:
        assert has_module_metadata(_manifest(Bundle_SymbolicName=";x")) is False
