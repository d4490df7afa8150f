"""Processing of conformance pull requests."""

from verifier.processing.suite import PRSuite, SupportingFile, build_suite
from verifier.processing.release import ReleaseValidator, fetch_stable_version
from verifier.processing.metadata import MetadataStore, sync_conformance_metadata
from verifier.processing.processor import (
    Gate,
    Outcome,
    ProcessingResult,
    PullRequestProcessor,
)
from verifier.processing.batch import BatchReport, handle_all

__all__ = [
    "PRSuite",
    "SupportingFile",
    "build_suite",
    "ReleaseValidator",
    "fetch_stable_version",
    "MetadataStore",
    "sync_conformance_metadata",
    "Gate",
    "Outcome",
    "ProcessingResult",
    "PullRequestProcessor",
    "BatchReport",
    "handle_all",
]
