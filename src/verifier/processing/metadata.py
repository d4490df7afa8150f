"""Per-release conformance metadata stored on disk."""

import logging
from pathlib import Path

import httpx

from verifier.processing.release import ReleaseValidator


logger = logging.getLogger(__name__)

CONFORMANCE_YAML = "conformance.yaml"

UPSTREAM_CONFORMANCE_URL = (
    "https://raw.githubusercontent.com/kubernetes/kubernetes/"
    "release-{release}/test/conformance/testdata/conformance.yaml"
)


class MetadataStore:
    """Reads ``<root>/<version>/conformance.yaml``."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path_for(self, version: str) -> Path:
        return self.root / version / CONFORMANCE_YAML

    def read(self, version: str) -> str:
        """Read the conformance metadata for a release.

        Raises:
            FileNotFoundError: If the release has no metadata yet
            OSError: On any other read failure
        """
        return self.path_for(version).read_text(encoding="utf-8")

    def has_release(self, version: str) -> bool:
        return self.path_for(version).is_file()


def sync_conformance_metadata(
    root: str | Path,
    validator: ReleaseValidator,
    timeout: float = 60.0,
) -> list[Path]:
    """Download conformance.yaml for every supported release.

    Args:
        root: Metadata root directory
        validator: Validator providing the supported releases
        timeout: HTTP timeout in seconds

    Returns:
        Paths written
    """
    store = MetadataStore(root)
    written: list[Path] = []

    with httpx.Client(timeout=timeout, follow_redirects=True) as client:
        for version in validator.supported_versions():
            url = UPSTREAM_CONFORMANCE_URL.format(release=version.lstrip("v"))
            logger.info(f"Fetching conformance metadata for {version} from {url}")
            response = client.get(url)
            if response.status_code == 404:
                logger.warning(f"No conformance metadata published for {version} yet")
                continue
            response.raise_for_status()

            path = store.path_for(version)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(response.text, encoding="utf-8")
            written.append(path)

    return written
