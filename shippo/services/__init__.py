"""Services driving external systems: native toolchains and release hosting."""

from shippo.services.build_errors import BuildError
from shippo.services.builders import BuiltTarget, build_package
from shippo.services.publish import PublishError, ReleaseInput, publish_github

__all__ = [
    "BuildError",
    "BuiltTarget",
    "PublishError",
    "ReleaseInput",
    "build_package",
    "publish_github",
]
