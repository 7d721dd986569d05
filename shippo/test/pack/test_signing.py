"""Tests for shippo.pack.signing module."""

from __future__ import annotations

from pathlib import Path

import pytest

from shippo.core.plan import SignPolicy
from shippo.core.result import Err, Ok
from shippo.output.console import MockConsole
from shippo.pack import signing
from shippo.pack.signing import (
    ExternalSignatureChecker,
    ExternalSigner,
    UnavailableSigner,
    is_placeholder,
    sign_file,
)
from shippo.platform.files import sha256_file

GPG = SignPolicy(enabled=True, method="gpg", cosign_mode="keyless")
COSIGN = SignPolicy(enabled=True, method="cosign", cosign_mode="keyless")


class FakeSigner:
    """Writes a fixed 'signature' and reports success."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path, str]] = []

    def sign(self, artifact: Path, signature: Path, policy: SignPolicy) -> bool:
        self.calls.append((artifact, signature, policy.method))
        signature.write_bytes(b"-----BEGIN PGP SIGNATURE-----\n")
        return True


@pytest.fixture
def artifact(tmp_path: Path) -> Path:
    path = tmp_path / "app.tar.gz"
    path.write_bytes(b"archive bytes")
    return path


class TestSignFile:
    def test_real_signature(self, artifact: Path) -> None:
        signer = FakeSigner()
        console = MockConsole()

        result = sign_file(artifact.parent, artifact.name, GPG, signer, console)

        assert isinstance(result, Ok)
        assert result.value.filename == "app.tar.gz.sig"
        assert result.value.placeholder is False
        assert signer.calls == [(artifact, artifact.parent / "app.tar.gz.sig", "gpg")]
        assert not console.has_warning()

    def test_degrades_to_placeholder(self, artifact: Path) -> None:
        console = MockConsole()

        result = sign_file(artifact.parent, artifact.name, COSIGN, UnavailableSigner(), console)

        assert isinstance(result, Ok)
        assert result.value.placeholder is True
        assert result.value.method == "cosign"
        sig = artifact.parent / "app.tar.gz.sig"
        assert sig.read_text(encoding="ascii") == sha256_file(artifact)
        assert console.has_warning()
        assert console.find("placeholder")

    def test_missing_artifact_is_error(self, tmp_path: Path) -> None:
        result = sign_file(tmp_path, "gone.zip", GPG, UnavailableSigner())

        assert isinstance(result, Err)
        assert result.error.kind == "io"


class TestIsPlaceholder:
    def test_matches_hash_with_whitespace(self, tmp_path: Path) -> None:
        sig = tmp_path / "a.sig"
        sig.write_text("f" * 64 + "\n", encoding="ascii")

        assert is_placeholder(sig, "f" * 64)
        assert not is_placeholder(sig, "e" * 64)


class TestExternalTools:
    def test_cosign_missing_means_no_signature(
        self, artifact: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(signing, "which", lambda _name: None)

        assert ExternalSigner().sign(artifact, artifact.with_suffix(".sig"), COSIGN) is False

    def test_checker_without_tool_returns_none(
        self, artifact: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(signing, "which", lambda _name: None)
        checker = ExternalSignatureChecker()

        assert checker.check(artifact, artifact.with_suffix(".sig"), "gpg") is None
        assert checker.check(artifact, artifact.with_suffix(".sig"), "cosign") is None

    def test_unknown_method(self, artifact: Path) -> None:
        policy = SignPolicy(enabled=True, method="minisign", cosign_mode="keyless")
        assert ExternalSigner().sign(artifact, artifact.with_suffix(".sig"), policy) is False
