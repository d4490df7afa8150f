"""Gathering everything needed to evaluate one conformance PR."""

import logging
import posixpath
from dataclasses import dataclass, field
from urllib.parse import urlparse

import httpx
import yaml

from verifier.errors import SuiteBuildError
from verifier.github.client import GitHubClient, GitHubClientError, raw_url_for_blob_url
from verifier.github.models import PullRequestSummary
from verifier.labels.classifier import LabelClassifier


logger = logging.getLogger(__name__)

PRODUCT_YAML = "PRODUCT.yaml"

REQUIRED_FILES = ("README.md", PRODUCT_YAML, "e2e.log", "junit_01.xml")

PRODUCT_YAML_URL_FIELDS = ("website_url", "repo_url", "documentation_url")


@dataclass
class SupportingFile:
    """A file submitted in the PR, with its content."""

    name: str
    base_name: str
    blob_url: str = ""
    contents: str = ""


@dataclass
class PRSuite:
    """Working state for a single PR during one processing pass."""

    pr: PullRequestSummary
    labels: list[str] = field(default_factory=list)
    files: list[SupportingFile] = field(default_factory=list)
    release_version: str = ""
    product_name: str = ""
    latest_version: str = ""
    missing_files: list[str] = field(default_factory=list)
    product_yaml: dict = field(default_factory=dict)
    product_yaml_url_types: dict[str, str] = field(default_factory=dict)
    metadata_folder: str = ""
    conformance_yaml: str = ""

    @property
    def classifier(self) -> LabelClassifier:
        return LabelClassifier(self.release_version, self.missing_files)

    def file(self, base_name: str) -> SupportingFile | None:
        """Find a submitted file by its base name."""
        for f in self.files:
            if f.base_name == base_name:
                return f
        return None

    def set_submission_metadata_from_folder_structure(self) -> None:
        """Derive release, product and missing files from the submitted paths.

        Submissions live under ``<release>/<product>/``, e.g.
        ``v1.29/my-distro/PRODUCT.yaml``.
        """
        names = [f.name for f in self.files] or list(self.pr.files)
        for name in names:
            parts = name.split("/")
            if len(parts) >= 3:
                self.release_version = parts[0]
                self.product_name = parts[1]
                break

        present = {posixpath.basename(name) for name in names}
        self.missing_files = [f for f in REQUIRED_FILES if f not in present]


def head_content_type(url: str, timeout: float = 10.0) -> str | None:
    """Return the Content-Type served at ``url``, or None if unreachable.

    Malformed URLs and certificate failures count as unreachable.
    """
    try:
        if not urlparse(url).scheme:
            url = f"https://{url}"
        response = httpx.head(url, timeout=timeout, follow_redirects=True)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        logger.info(f"HEAD request to '{url}' failed: {e}")
        return None
    return response.headers.get("Content-Type", "")


def _load_product_yaml(suite: PRSuite) -> None:
    product = suite.file(PRODUCT_YAML)
    if product is None:
        logger.info(f"{suite.pr}: no {PRODUCT_YAML} found in the PR files")
        return

    try:
        data = yaml.safe_load(product.contents)
    except yaml.YAMLError as e:
        logger.info(f"{suite.pr}: failed to parse {PRODUCT_YAML}: {e}")
        return
    if not isinstance(data, dict):
        logger.info(f"{suite.pr}: {PRODUCT_YAML} is not a mapping")
        return
    suite.product_yaml = data

    for field_name in PRODUCT_YAML_URL_FIELDS:
        url = data.get(field_name)
        if not url:
            logger.info(f"{suite.pr}: field '{field_name}' is empty, not resolving URL")
            continue
        suite.product_yaml_url_types[field_name] = ""
        content_type = head_content_type(str(url))
        if content_type is None:
            continue
        logger.info(f"{suite.pr}: '{field_name}' -> {url} = '{content_type}'")
        suite.product_yaml_url_types[field_name] = content_type


def build_suite(
    client: GitHubClient,
    pr: PullRequestSummary,
    latest_version: str = "",
    metadata_folder: str = "",
) -> PRSuite:
    """Fetch labels and submitted files for a PR.

    Args:
        client: GitHub client
        pr: PR snapshot
        latest_version: Latest stable Kubernetes version
        metadata_folder: Root of the per-release conformance metadata

    Returns:
        Populated PRSuite

    Raises:
        SuiteBuildError: If labels, changes or file contents cannot be fetched
    """
    suite = PRSuite(pr=pr, latest_version=latest_version, metadata_folder=metadata_folder)

    try:
        suite.labels = client.get_issue_labels(pr.org, pr.repo, pr.number)
    except GitHubClientError as e:
        raise SuiteBuildError(f"error fetching labels for {pr}: {e}") from e

    try:
        changes = client.get_pull_request_changes(pr.org, pr.repo, pr.number)
    except GitHubClientError as e:
        raise SuiteBuildError(f"error fetching changes for {pr}: {e}") from e

    for change in changes:
        if change.status == "removed":
            continue
        try:
            contents = client.fetch_file(raw_url_for_blob_url(change.blob_url))
        except GitHubClientError as e:
            raise SuiteBuildError(
                f"error fetching content of '{change.filename}' in {pr}: {e}"
            ) from e
        suite.files.append(
            SupportingFile(
                name=change.filename,
                base_name=posixpath.basename(change.filename),
                blob_url=change.blob_url,
                contents=contents,
            )
        )

    suite.set_submission_metadata_from_folder_structure()
    _load_product_yaml(suite)
    return suite
