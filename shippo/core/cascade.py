"""Three-tier value resolution and the compiled-in defaults.

Every overridable setting is resolved the same way: the value set on the
package entry wins, then the value set at the global level, then the
default defined here. Keeping the defaults in one module makes the
precedence rules auditable without reading the resolver.
"""

from __future__ import annotations

__all__ = [
    "cascade",
    "DEFAULT_TARGETS",
    "DEFAULT_FORMATS",
    "DEFAULT_NAME_TEMPLATE",
    "DEFAULT_SBOM_ENABLED",
    "DEFAULT_SBOM_FORMAT",
    "DEFAULT_SBOM_MODE",
    "DEFAULT_SIGN_ENABLED",
    "DEFAULT_SIGN_METHOD",
    "DEFAULT_COSIGN_MODE",
    "DEFAULT_NODE_MODE",
    "DEFAULT_NODE_TOOL",
    "DEFAULT_NODE_ENTRY",
    "DEFAULT_FRONTEND_DIR",
    "DEFAULT_PYTHON_MODE",
    "DEFAULT_PYINSTALLER_MODE",
    "DEFAULT_PYINSTALLER_ENTRY",
    "FALLBACK_VERSION",
]

DEFAULT_TARGETS: tuple[str, ...] = ("native",)
DEFAULT_FORMATS: tuple[str, ...] = ("tar.gz", "zip")
DEFAULT_NAME_TEMPLATE = "{name}-{version}-{target}"

DEFAULT_SBOM_ENABLED = True
DEFAULT_SBOM_FORMAT = "cyclonedx"
DEFAULT_SBOM_MODE = "auto"

DEFAULT_SIGN_ENABLED = False
DEFAULT_SIGN_METHOD = "cosign"
DEFAULT_COSIGN_MODE = "keyless"

DEFAULT_NODE_MODE = "cli-binary"
DEFAULT_NODE_TOOL = "pkg"
DEFAULT_NODE_ENTRY = "index.js"
DEFAULT_FRONTEND_DIR = "dist"

DEFAULT_PYTHON_MODE = "wheel"
DEFAULT_PYINSTALLER_MODE = "onefile"
DEFAULT_PYINSTALLER_ENTRY = "main.py"

# Used when no version is configured and the VCS has no tag.
FALLBACK_VERSION = "v0.1.0"


def cascade[T](package_value: T | None, global_value: T | None, default: T) -> T:
    """Resolve one setting: package level > global level > default.

    ``None`` means "not set at this level"; any other value, including an
    empty list or ``False``, counts as set.

    Example:
        cascade(("linux-x64",), ("native",), DEFAULT_TARGETS) == ("linux-x64",)
        cascade(None, ("native",), DEFAULT_TARGETS) == ("native",)
        cascade(None, None, DEFAULT_TARGETS) == DEFAULT_TARGETS
    """
    if package_value is not None:
        return package_value
    if global_value is not None:
        return global_value
    return default
