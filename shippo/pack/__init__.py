"""Release bundle packaging, manifest and verification."""

from .engine import BuiltOutput, PackagingHooks, package_outputs
from .errors import PackagingError, VerificationError
from .manifest import Manifest
from .verify import VerifyReport, verify_manifest

__all__ = [
    "BuiltOutput",
    "Manifest",
    "PackagingError",
    "PackagingHooks",
    "VerificationError",
    "VerifyReport",
    "package_outputs",
    "verify_manifest",
]
