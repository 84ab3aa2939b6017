"""
ceb.version - Build and version metadata

Read-only information logged when the entrypoint starts.
"""

from __future__ import annotations

import os
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version

from pydantic import BaseModel, ConfigDict

from ceb import __version__

DISTRIBUTION_NAME = "ceb"

# Populated by the release build (e.g. from `git rev-parse HEAD`).
ENV_GIT_COMMIT = "CEB_GIT_COMMIT"


class VersionInfo(BaseModel):
    """Descriptive version metadata for the running entrypoint."""

    model_config = ConfigDict(frozen=True)

    version: str
    prerelease: str = ""
    metadata: str = ""
    revision: str = ""

    def full_version_number(self, rev: bool) -> str:
        """Render ``v<version>[-<prerelease>][+<metadata>][ (<revision>)]``."""
        result = f"v{self.version}"
        if self.prerelease:
            result += f"-{self.prerelease}"
        if self.metadata:
            result += f"+{self.metadata}"
        if rev and self.revision:
            result += f" ({self.revision})"
        return result


def _split_version(raw: str) -> tuple[str, str, str]:
    base, _, metadata = raw.partition("+")
    # PEP 440 pre-release suffixes are not hyphenated; only split on "-".
    version, _, prerelease = base.partition("-")
    return version, prerelease, metadata


def get_version() -> VersionInfo:
    """Return version info for the installed distribution."""
    try:
        raw = package_version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        raw = __version__

    version, prerelease, metadata = _split_version(raw)
    return VersionInfo(
        version=version,
        prerelease=prerelease,
        metadata=metadata,
        revision=os.environ.get(ENV_GIT_COMMIT, ""),
    )
