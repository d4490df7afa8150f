"""verify-conformance webhook server."""

from verifier.server.app import create_app
from verifier.server.config import Settings

__all__ = ["create_app", "Settings"]
