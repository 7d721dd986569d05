"""SBOM stub documents.

No dependency graph is scanned: the document names the component, its
version and the build target so that every (package, target) pair ships a
well-formed SBOM that real scanners can later replace.
"""

from __future__ import annotations

import json
from pathlib import Path

__all__ = ["sbom_filename", "sbom_document", "write_sbom"]

_SUFFIXES = {"cyclonedx": "cdx.json", "spdx": "spdx.json"}


def sbom_filename(stem: str, fmt: str) -> str:
    """``app-1.0-x86`` + ``cyclonedx`` -> ``app-1.0-x86-sbom.cdx.json``."""
    return f"{stem}-sbom.{_SUFFIXES.get(fmt, 'cdx.json')}"


def sbom_document(name: str, version: str, target: str, fmt: str) -> dict[str, object]:
    if fmt == "spdx":
        doc_name = f"{name}-{version}-{target}"
        return {
            "spdxVersion": "SPDX-2.3",
            "dataLicense": "CC0-1.0",
            "SPDXID": "SPDXRef-DOCUMENT",
            "name": doc_name,
            "documentNamespace": f"https://spdx.org/spdxdocs/{doc_name}",
            "creationInfo": {"creators": ["Tool: shippo"]},
            "packages": [
                {
                    "name": name,
                    "SPDXID": "SPDXRef-Package",
                    "versionInfo": version,
                    "downloadLocation": "NOASSERTION",
                    "comment": f"target: {target}",
                }
            ],
        }
    return {
        "bomFormat": "CycloneDX",
        "specVersion": "1.4",
        "version": 1,
        "metadata": {"component": {"name": name, "version": version, "target": target}},
        "components": [],
    }


def write_sbom(path: Path, name: str, version: str, target: str, fmt: str) -> None:
    """Write the stub document.

    Raises:
        OSError: The file could not be written.
    """
    doc = sbom_document(name, version, target, fmt)
    path.write_text(json.dumps(doc, indent=2, sort_keys=True) + "\n", encoding="utf-8")
