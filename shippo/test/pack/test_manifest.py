"""Tests for shippo.pack.manifest module."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from shippo.pack.manifest import (
    BuildEnvInfo,
    Manifest,
    ManifestArtifact,
    ManifestPackage,
    ManifestProject,
    ManifestSignature,
    ManifestTarget,
    ToolingInfo,
    format_timestamp,
)


def _manifest() -> Manifest:
    archive = ManifestArtifact("app-v1-native.tar.gz", 120, "a" * 64)
    sbom = ManifestArtifact("app-v1-native-sbom.cdx.json", 80, "b" * 64)
    return Manifest(
        shippo_version="0.1.0",
        generated_at=datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        project=ManifestProject(repo_url="https://example.com/r.git", commit="abc", version="v1"),
        packages=(
            ManifestPackage(
                name="app",
                project_type="rust",
                path="app",
                targets=(
                    ManifestTarget(
                        target="native",
                        artifacts=(archive,),
                        sbom=sbom,
                        signatures=(
                            ManifestSignature("app-v1-native.tar.gz.sig", "gpg", placeholder=True),
                        ),
                    ),
                ),
            ),
        ),
        tooling=ToolingInfo(rust="rustc 1.78.0"),
        build_env=BuildEnvInfo(os="linux", arch="x86_64", ci=True),
    )


class TestManifestJson:
    def test_round_trip(self) -> None:
        manifest = _manifest()
        assert Manifest.from_json(manifest.to_json()) == manifest

    def test_stable_text(self) -> None:
        text = _manifest().to_json()

        assert text.endswith("}\n")
        assert text == json.dumps(json.loads(text), indent=2, sort_keys=True) + "\n"

    def test_field_names(self) -> None:
        data = json.loads(_manifest().to_json())

        assert data["generated_at"] == "2024-05-01T12:00:00Z"
        assert data["packages"][0]["type"] == "rust"
        assert data["tooling"] == {"go": None, "node": None, "python": None, "rust": "rustc 1.78.0"}
        assert data["build_env"] == {"arch": "x86_64", "ci": True, "os": "linux"}
        sig = data["packages"][0]["targets"][0]["signatures"][0]
        assert sig == {"filename": "app-v1-native.tar.gz.sig", "method": "gpg", "placeholder": True}

    def test_all_files(self) -> None:
        assert _manifest().all_files() == [
            "app-v1-native.tar.gz",
            "app-v1-native-sbom.cdx.json",
            "app-v1-native.tar.gz.sig",
        ]


class TestManifestParsing:
    def test_not_an_object(self) -> None:
        with pytest.raises(ValueError):
            Manifest.from_json("[]")

    def test_missing_field(self) -> None:
        data = json.loads(_manifest().to_json())
        del data["packages"][0]["targets"][0]["artifacts"][0]["sha256"]

        with pytest.raises(ValueError):
            Manifest.from_json(json.dumps(data))

    def test_wrong_type(self) -> None:
        data = json.loads(_manifest().to_json())
        data["packages"][0]["targets"][0]["artifacts"][0]["bytes"] = "120"

        with pytest.raises(TypeError):
            Manifest.from_json(json.dumps(data))

    def test_invalid_json(self) -> None:
        with pytest.raises(json.JSONDecodeError):
            Manifest.from_json("{not json")


def test_format_timestamp_normalizes_to_utc() -> None:
    from datetime import timedelta, timezone

    moment = datetime(2024, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(moment) == "2024-05-01T12:00:00Z"
