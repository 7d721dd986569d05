"""Detached signatures for bundle files.

Signing never stops a release. When the configured signer is missing or
fails, a placeholder signature is written instead: a ``.sig`` file holding
only the artifact's SHA-256. The manifest marks such signatures with
``placeholder: true`` and the CLI prints a warning for each one.

Signature checking during verification is advisory in the same way.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from shippo.core.plan import SignPolicy
from shippo.core.result import Err, Ok, Result
from shippo.output.console import ConsoleProtocol, NullConsole
from shippo.platform.files import sha256_file
from shippo.platform.process import run as run_process
from shippo.platform.process import which

from .errors import PackagingError
from .manifest import ManifestSignature

__all__ = [
    "ExternalSignatureChecker",
    "ExternalSigner",
    "SignatureCheckerProtocol",
    "SignerProtocol",
    "UnavailableSigner",
    "is_placeholder",
    "sign_file",
    "signature_name",
]


def signature_name(filename: str) -> str:
    return f"{filename}.sig"


class SignerProtocol(Protocol):
    def sign(self, artifact: Path, signature: Path, policy: SignPolicy) -> bool:
        """Write a detached signature; return False if no real signature was made."""
        ...


class SignatureCheckerProtocol(Protocol):
    def check(self, artifact: Path, signature: Path, method: str) -> bool | None:
        """Check a real signature. None means no checking tool is available."""
        ...


class ExternalSigner:
    """Signs with ``gpg --detach-sign`` or ``cosign sign-blob``."""

    def sign(self, artifact: Path, signature: Path, policy: SignPolicy) -> bool:
        match policy.method:
            case "gpg":
                cmd = [
                    "gpg",
                    "--batch",
                    "--yes",
                    "--detach-sign",
                    "-o",
                    str(signature),
                    str(artifact),
                ]
            case "cosign":
                if which("cosign") is None:
                    return False
                cmd = ["cosign", "sign-blob", str(artifact), "--output", str(signature)]
            case _:
                return False
        return isinstance(run_process(cmd, cwd=artifact.parent), Ok)


class UnavailableSigner:
    """Signer that never produces a real signature (no signing tools present)."""

    def sign(self, artifact: Path, signature: Path, policy: SignPolicy) -> bool:
        return False


class ExternalSignatureChecker:
    """Checks with ``gpg --verify`` or ``cosign verify-blob`` when installed."""

    def check(self, artifact: Path, signature: Path, method: str) -> bool | None:
        match method:
            case "gpg":
                if which("gpg") is None:
                    return None
                cmd = ["gpg", "--verify", str(signature), str(artifact)]
            case "cosign":
                if which("cosign") is None:
                    return None
                cmd = ["cosign", "verify-blob", str(artifact), "--signature", str(signature)]
            case _:
                return None
        return isinstance(run_process(cmd, cwd=artifact.parent), Ok)


def is_placeholder(signature: Path, artifact_sha256: str) -> bool:
    """True if ``signature`` is a placeholder for an artifact with this hash.

    Raises:
        OSError: The signature file could not be read.
    """
    return signature.read_bytes().strip() == artifact_sha256.encode("ascii")


def sign_file(
    bundle_dir: Path,
    filename: str,
    policy: SignPolicy,
    signer: SignerProtocol,
    console: ConsoleProtocol | None = None,
) -> Result[ManifestSignature, PackagingError]:
    """Sign one bundle file, falling back to a placeholder signature.

    Only filesystem failures are errors; signer failures degrade.
    """
    console = console or NullConsole()
    artifact = bundle_dir / filename
    sig_name = signature_name(filename)
    sig_path = bundle_dir / sig_name

    try:
        sha = sha256_file(artifact)
    except OSError as e:
        return Err(PackagingError.from_os_error("read", artifact, e))

    if signer.sign(artifact, sig_path, policy) and sig_path.is_file():
        console.debug(f"signed {filename} with {policy.method}")
        return Ok(ManifestSignature(filename=sig_name, method=policy.method))

    try:
        sig_path.write_text(sha, encoding="ascii")
    except OSError as e:
        return Err(PackagingError.from_os_error("write", sig_path, e))
    console.warning(
        f"{policy.method} signing unavailable for {filename}; wrote placeholder {sig_name} "
        "(checksum only, not a cryptographic signature)"
    )
    return Ok(ManifestSignature(filename=sig_name, method=policy.method, placeholder=True))
