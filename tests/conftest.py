"""Pytest fixtures for verifier tests."""

import itertools
import posixpath

import pytest
import yaml

from verifier.github.client import GitHubClientError
from verifier.github.models import (
    CombinedStatus,
    IssueComment,
    PullRequestChange,
    PullRequestSummary,
)
from verifier.processing.suite import PRSuite, SupportingFile


BOT_LOGIN = "verify-conformance-bot"

CONFORMANCE_YAML = """\
- testname: Pods, basic
  codename: '[sig-node] Pods should be submitted and removed [NodeConformance] [Conformance]'
- testname: Services, basic
  codename: '[sig-network] Services should serve a basic endpoint [Conformance]'
"""

JUNIT_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<testsuites>
  <testsuite name="Kubernetes e2e suite" tests="3" failures="0">
    <testcase name="[sig-node] Pods should be submitted and removed [NodeConformance] [Conformance]" />
    <testcase name="[sig-network] Services should serve a basic endpoint [Conformance]" />
    <testcase name="[sig-storage] Something skipped">
      <skipped />
    </testcase>
  </testsuite>
</testsuites>
"""

E2E_LOG = """\
I0101 00:00:00.000000      21 e2e.go:126] Starting e2e run on Ginkgo node 1
Kubernetes e2e suite version: v1.29.3
Ran 2 of 7000 Specs in 5000.000 seconds
SUCCESS! -- 2 Passed | 0 Failed | 0 Pending | 6998 Skipped
"""

PRODUCT_YAML = """\
vendor: Example Inc
name: Example Kubernetes
version: v1.29.3
type: distribution
description: An example distribution
website_url: https://example.com
documentation_url: https://example.com/docs
"""


class FakeGitHub:
    """In-memory stand-in for GitHubClient recording every mutation."""

    def __init__(self, labels=None, comments=None, files=None, bot_login=BOT_LOGIN):
        self.bot_login = bot_login
        self.labels: list[str] = list(labels or [])
        self.comments: list[IssueComment] = list(comments or [])
        self.combined = CombinedStatus(sha="", state="")
        self.statuses: list[dict] = []
        self.mutations: list[tuple] = []
        self.fail_on: set[tuple[str, str]] = set()
        self.files: dict[str, str] = dict(files or {})
        self._ids = itertools.count(1000)

    def _maybe_fail(self, method: str, arg: str = "") -> None:
        if (method, arg) in self.fail_on:
            raise GitHubClientError(f"{method} failed for '{arg}'")

    def is_bot_user(self, login: str) -> bool:
        return login in (self.bot_login, f"{self.bot_login}[bot]")

    def get_issue_labels(self, org, repo, number):
        self._maybe_fail("get_issue_labels")
        return list(self.labels)

    def get_pull_request_changes(self, org, repo, number):
        self._maybe_fail("get_pull_request_changes")
        return [
            PullRequestChange(
                filename=name,
                blob_url=f"https://github.com/{org}/{repo}/blob/abc123/{name}",
                status="added",
            )
            for name in self.files
        ]

    def fetch_file(self, url):
        self._maybe_fail("fetch_file")
        name = url.split("/abc123/", 1)[1]
        return self.files[name]

    def add_label(self, org, repo, number, label):
        self._maybe_fail("add_label", label)
        self.labels.append(label)
        self.mutations.append(("add_label", label))

    def remove_label(self, org, repo, number, label):
        self._maybe_fail("remove_label", label)
        self.labels = [existing for existing in self.labels if existing != label]
        self.mutations.append(("remove_label", label))

    def list_issue_comments(self, org, repo, number):
        self._maybe_fail("list_issue_comments")
        return list(self.comments)

    def delete_comment(self, org, repo, number, comment_id):
        self._maybe_fail("delete_comment")
        self.comments = [c for c in self.comments if c.id != comment_id]
        self.mutations.append(("delete_comment", comment_id))

    def create_comment(self, org, repo, number, body):
        self._maybe_fail("create_comment")
        self.comments.append(IssueComment(id=next(self._ids), body=body, user=self.bot_login))
        self.mutations.append(("create_comment", body))

    def get_combined_status(self, org, repo, ref):
        self._maybe_fail("get_combined_status")
        return self.combined

    def create_status(self, org, repo, sha, state, description, context):
        self._maybe_fail("create_status")
        self.combined = CombinedStatus(sha=sha, state=state)
        self.statuses.append(
            {"sha": sha, "state": state, "description": description, "context": context}
        )
        self.mutations.append(("create_status", state))


@pytest.fixture
def fake_github():
    """Empty in-memory GitHub."""
    return FakeGitHub()


@pytest.fixture
def make_github():
    """Factory for in-memory GitHubs with preset labels, comments or files."""
    return FakeGitHub


@pytest.fixture
def make_pr():
    """Factory for PR snapshots."""

    def _make_pr(title="Conformance results for v1.29/Example Kubernetes", **kwargs):
        defaults = {
            "org": "cncf",
            "repo": "k8s-conformance",
            "number": 42,
            "head_sha": "abc123",
            "title": title,
            "author": "submitter",
        }
        defaults.update(kwargs)
        return PullRequestSummary(**defaults)

    return _make_pr


@pytest.fixture
def submission_files():
    """A complete, passing v1.29 submission."""
    prefix = "v1.29/example-kubernetes"
    return {
        f"{prefix}/README.md": "# Example Kubernetes\nHow to reproduce.",
        f"{prefix}/PRODUCT.yaml": PRODUCT_YAML,
        f"{prefix}/e2e.log": E2E_LOG,
        f"{prefix}/junit_01.xml": JUNIT_XML,
    }


@pytest.fixture
def metadata_root(tmp_path):
    """Metadata root holding conformance.yaml for v1.29 only."""
    release_dir = tmp_path / "v1.29"
    release_dir.mkdir()
    (release_dir / "conformance.yaml").write_text(CONFORMANCE_YAML)
    return tmp_path


@pytest.fixture(autouse=True)
def offline_url_checks(monkeypatch):
    """Keep PRODUCT.yaml URL checks off the network."""
    monkeypatch.setattr(
        "verifier.processing.suite.head_content_type",
        lambda url, timeout=10.0: "text/html; charset=utf-8",
    )


@pytest.fixture
def make_suite(make_pr, submission_files):
    """Factory for evaluated-ready suites, passing by default."""

    def _make_suite(files=None, pr=None, conformance_yaml=CONFORMANCE_YAML):
        files = submission_files if files is None else files
        suite = PRSuite(
            pr=pr or make_pr(),
            files=[
                SupportingFile(name=name, base_name=posixpath.basename(name), contents=content)
                for name, content in files.items()
            ],
            conformance_yaml=conformance_yaml,
        )
        suite.set_submission_metadata_from_folder_structure()
        product = suite.file("PRODUCT.yaml")
        if product is not None:
            suite.product_yaml = yaml.safe_load(product.contents)
            suite.product_yaml_url_types = {
                "website_url": "text/html",
                "documentation_url": "text/html",
            }
        return suite

    return _make_suite
