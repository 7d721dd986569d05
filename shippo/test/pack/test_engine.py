"""Tests for shippo.pack.engine: bundle layout, ledger, determinism."""

from __future__ import annotations

import json
import tarfile
from dataclasses import replace
from pathlib import Path

from shippo.core.result import Err, Ok
from shippo.output.console import MockConsole, Style
from shippo.pack.engine import package_outputs
from shippo.pack.manifest import Manifest
from shippo.platform.files import sha256_file

from ._fixtures import built_binary, hooks, package_plan, plan


def _ledger(bundle: Path) -> list[tuple[str, str]]:
    lines = (bundle / "SHA256SUMS").read_text(encoding="utf-8").splitlines()
    return [(line[:64], line[66:]) for line in lines]


class TestBundleLayout:
    def test_files_written(self, tmp_path: Path) -> None:
        bundle = tmp_path / "dist"
        result = package_outputs(
            plan(), [built_binary(tmp_path)], bundle, commit="abc", hooks=hooks()
        )

        assert isinstance(result, Ok)
        assert sorted(p.name for p in bundle.iterdir()) == [
            "SHA256SUMS",
            "app-v1.0.0-native-sbom.cdx.json",
            "app-v1.0.0-native.tar.gz",
            "app-v1.0.0-native.zip",
            "manifest.json",
            "provenance.json",
        ]

    def test_manifest_matches_disk(self, tmp_path: Path) -> None:
        bundle = tmp_path / "dist"
        result = package_outputs(plan(), [built_binary(tmp_path)], bundle, hooks=hooks())

        assert isinstance(result, Ok)
        on_disk = Manifest.from_json((bundle / "manifest.json").read_text(encoding="utf-8"))
        assert on_disk == result.value
        target = on_disk.packages[0].targets[0]
        for artifact in target.files():
            path = bundle / artifact.filename
            assert artifact.sha256 == sha256_file(path)
            assert artifact.bytes == path.stat().st_size
        assert on_disk.tooling.rust == "rustc 1.78.0"
        assert on_disk.build_env.ci is False
        assert on_disk.project.version == "v1.0.0"

    def test_ledger_order(self, tmp_path: Path) -> None:
        bundle = tmp_path / "dist"
        package_outputs(plan(), [built_binary(tmp_path)], bundle, hooks=hooks())

        entries = _ledger(bundle)
        assert [name for _, name in entries] == [
            "app-v1.0.0-native.tar.gz",
            "app-v1.0.0-native.zip",
            "app-v1.0.0-native-sbom.cdx.json",
            "manifest.json",
        ]
        for sha, name in entries:
            assert sha == sha256_file(bundle / name)

    def test_provenance(self, tmp_path: Path) -> None:
        bundle = tmp_path / "dist"
        package_outputs(plan(), [built_binary(tmp_path)], bundle, hooks=hooks())

        provenance = json.loads((bundle / "provenance.json").read_text(encoding="utf-8"))
        assert provenance == {
            "ci": False,
            "generated_at": "2024-05-01T12:00:00Z",
            "version": "v1.0.0",
        }

    def test_name_template_and_sbom_format(self, tmp_path: Path) -> None:
        pkg = package_plan(formats=("zip",), template="{name}_{target}", sbom_format="spdx")
        bundle = tmp_path / "dist"
        result = package_outputs(plan(pkg), [built_binary(tmp_path)], bundle, hooks=hooks())

        assert isinstance(result, Ok)
        assert result.value.all_files() == ["app_native.zip", "app_native-sbom.spdx.json"]

    def test_package_without_outputs(self, tmp_path: Path) -> None:
        p = plan(package_plan("app"), package_plan("idle"))
        result = package_outputs(p, [built_binary(tmp_path)], tmp_path / "dist", hooks=hooks())

        assert isinstance(result, Ok)
        assert [len(pkg.targets) for pkg in result.value.packages] == [1, 0]

    def test_outputs_outside_plan_ignored(self, tmp_path: Path) -> None:
        built = [built_binary(tmp_path), built_binary(tmp_path, package="other")]
        result = package_outputs(plan(), built, tmp_path / "dist", hooks=hooks())

        assert isinstance(result, Ok)
        assert [pkg.name for pkg in result.value.packages] == ["app"]


class TestSigning:
    def test_placeholders_when_no_signer(self, tmp_path: Path) -> None:
        bundle = tmp_path / "dist"
        console = MockConsole()
        result = package_outputs(
            plan(package_plan(sign=True)),
            [built_binary(tmp_path)],
            bundle,
            hooks=hooks(),
            console=console,
        )

        assert isinstance(result, Ok)
        sigs = result.value.packages[0].targets[0].signatures
        assert [s.filename for s in sigs] == [
            "app-v1.0.0-native.tar.gz.sig",
            "app-v1.0.0-native.zip.sig",
            "app-v1.0.0-native-sbom.cdx.json.sig",
        ]
        assert all(s.placeholder for s in sigs)
        assert console.count(Style.WARNING) == 3
        names = [name for _, name in _ledger(bundle)]
        assert names[3:] == [s.filename for s in sigs] + ["manifest.json"]

    def test_caller_can_disable_signing(self, tmp_path: Path) -> None:
        bundle = tmp_path / "dist"
        result = package_outputs(
            plan(package_plan(sign=True)),
            [built_binary(tmp_path)],
            bundle,
            sign=False,
            hooks=hooks(),
        )

        assert isinstance(result, Ok)
        assert result.value.packages[0].targets[0].signatures == ()
        assert not list(bundle.glob("*.sig"))


class TestDeterminism:
    def test_same_inputs_same_bundle(self, tmp_path: Path) -> None:
        built = [built_binary(tmp_path)]
        first = tmp_path / "one"
        second = tmp_path / "two"
        package_outputs(plan(), built, first, hooks=hooks())
        package_outputs(plan(), built, second, hooks=hooks())

        for name in ("manifest.json", "SHA256SUMS", "app-v1.0.0-native.tar.gz"):
            assert (first / name).read_bytes() == (second / name).read_bytes()


class TestErrors:
    def test_unsupported_format(self, tmp_path: Path) -> None:
        pkg = package_plan(formats=("7z",))
        result = package_outputs(plan(pkg), [built_binary(tmp_path)], tmp_path / "d", hooks=hooks())

        assert isinstance(result, Err)
        assert result.error.kind == "unsupported_format"

    def test_missing_build_output(self, tmp_path: Path) -> None:
        output = built_binary(tmp_path)
        gone = replace(output, artifacts=(tmp_path / "missing",))
        result = package_outputs(plan(), [gone], tmp_path / "d", hooks=hooks())

        assert isinstance(result, Err)
        assert result.error.kind == "io"
        assert not (tmp_path / "d" / "manifest.json").exists()

    def test_template_without_target_collides(self, tmp_path: Path) -> None:
        pkg = package_plan(formats=("tar.gz",), template="{name}-{version}")
        built = [
            built_binary(tmp_path, target="linux-x64"),
            built_binary(tmp_path, target="darwin-arm64"),
        ]
        bundle = tmp_path / "d"
        result = package_outputs(plan(pkg), built, bundle, hooks=hooks())

        assert isinstance(result, Err)
        assert result.error.kind == "duplicate_name"
        assert "app-v1.0.0.tar.gz" in result.error.message
        assert not (bundle / "manifest.json").exists()
        # The first target's archive is left as written, not overwritten.
        with tarfile.open(bundle / "app-v1.0.0.tar.gz") as tar:
            member = tar.extractfile("app")
            assert member is not None
            assert member.read().endswith(b"linux-x64")

    def test_reserved_names_are_refused(self, tmp_path: Path) -> None:
        pkg = package_plan(formats=("json",), template="manifest")
        result = package_outputs(plan(pkg), [built_binary(tmp_path)], tmp_path / "d", hooks=hooks())

        assert isinstance(result, Err)
        assert result.error.kind == "duplicate_name"
