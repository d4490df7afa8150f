"""Kubernetes release version checks."""

import logging
import re

import httpx

from verifier.errors import ReleaseValidationError, SuiteBuildError


logger = logging.getLogger(__name__)

STABLE_TXT_URL = "https://dl.k8s.io/release/stable.txt"

# Number of minor releases accepted for certification, newest first
SUPPORTED_RELEASE_COUNT = 3

RELEASE_PATTERN = re.compile(r"^v(\d+)\.(\d+)$")
STABLE_PATTERN = re.compile(r"^v(\d+)\.(\d+)(?:\.\d+)?")


def fetch_stable_version(url: str = STABLE_TXT_URL, timeout: float = 30.0) -> str:
    """Read the latest stable Kubernetes version, e.g. ``v1.31.2``.

    Raises:
        SuiteBuildError: If the version cannot be read
    """
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise SuiteBuildError(f"unable to read latest version info from {url}: {e}") from e

    version = response.text.strip()
    if not STABLE_PATTERN.match(version):
        raise SuiteBuildError(f"unable to parse latest version info '{version}'")
    return version


def minor_release(version: str) -> str:
    """Reduce ``v1.31.2`` to ``v1.31``."""
    match = STABLE_PATTERN.match(version)
    if not match:
        raise ReleaseValidationError(
            f"unable to use version '{version}' as it is not a valid version"
        )
    return f"v{match.group(1)}.{match.group(2)}"


class ReleaseValidator:
    """Decides whether a submission's release can be certified."""

    def __init__(self, latest: str, supported_count: int = SUPPORTED_RELEASE_COUNT):
        self.latest = latest
        self.supported_count = supported_count

    def supported_versions(self) -> list[str]:
        """Supported minor releases, newest first."""
        match = STABLE_PATTERN.match(self.latest)
        if not match:
            return []
        major, minor = int(match.group(1)), int(match.group(2))
        return [
            f"v{major}.{minor - offset}"
            for offset in range(self.supported_count)
            if minor - offset >= 0
        ]

    def validate(self, version: str) -> None:
        """Check a release version.

        Raises:
            ReleaseValidationError: If the version is malformed or unsupported
        """
        if not version:
            raise ReleaseValidationError(
                "unable to find a release version in the folder structure of this PR"
            )
        if not RELEASE_PATTERN.match(version):
            raise ReleaseValidationError(
                f"unable to use version '{version}' as it is not a valid version"
            )
        supported = self.supported_versions()
        if version not in supported:
            raise ReleaseValidationError(
                f"the version {version} is not a supported release, "
                f"supported releases are {', '.join(supported)}"
            )
