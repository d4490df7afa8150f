"""GitHub integration module for verifier."""

from verifier.github.client import GitHubClient, GitHubClientError, raw_url_for_blob_url
from verifier.github.models import (
    CombinedStatus,
    CommitState,
    IssueComment,
    PullRequestChange,
    PullRequestSummary,
    StatusContext,
)
from verifier.github.search import build_open_pr_query, search

__all__ = [
    "GitHubClient",
    "GitHubClientError",
    "raw_url_for_blob_url",
    "CombinedStatus",
    "CommitState",
    "IssueComment",
    "PullRequestChange",
    "PullRequestSummary",
    "StatusContext",
    "build_open_pr_query",
    "search",
]
