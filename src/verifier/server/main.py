"""Entry points for the verify-conformance server and tools."""

import logging

import uvicorn

from verifier.processing.metadata import sync_conformance_metadata
from verifier.processing.release import ReleaseValidator, fetch_stable_version
from verifier.server.config import get_settings


def run():
    """Run the webhook server."""
    settings = get_settings()

    uvicorn.run(
        "verifier.server.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


def sync_metadata():
    """Download conformance.yaml for every supported release."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    latest = fetch_stable_version(settings.stable_txt_url)
    written = sync_conformance_metadata(settings.metadata_root, ReleaseValidator(latest))
    for path in written:
        print(path)


if __name__ == "__main__":
    run()
