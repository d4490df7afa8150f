"""GitHub client wrapping PyGithub and the GraphQL API."""

import logging
import os

import httpx
from github import Github, GithubException, UnknownObjectException
from github.Issue import Issue
from github.Repository import Repository

from verifier.errors import VerifierError
from verifier.github.models import (
    CombinedStatus,
    IssueComment,
    PullRequestChange,
    PullRequestSummary,
    StatusContext,
)


logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"


class GitHubClientError(VerifierError):
    """Raised when GitHub operations fail."""


def raw_url_for_blob_url(blob_url: str) -> str:
    """Turn a blob URL from a PR change into the URL serving the raw file."""
    raw_url = blob_url.replace("github.com", "raw.githubusercontent.com", 1)
    return raw_url.replace("/blob", "", 1)


class GitHubClient:
    """Synchronous GitHub client used by the reconcilers.

    Every call returns a result or raises ``GitHubClientError``.
    """

    def __init__(
        self,
        token: str | None = None,
        bot_login: str | None = None,
        timeout: float = 30.0,
    ):
        self.token = token or os.getenv("GITHUB_TOKEN")
        if not self.token:
            raise GitHubClientError(
                "GitHub token not found. Set GITHUB_TOKEN environment variable."
            )

        self._github = Github(self.token)
        self._bot_login = bot_login
        self._timeout = timeout
        self._repos: dict[str, Repository] = {}

    # ------------------------------------------------------------------
    # Repository helpers
    # ------------------------------------------------------------------

    def repo(self, org: str, repo: str) -> Repository:
        full_name = f"{org}/{repo}"
        if full_name not in self._repos:
            try:
                self._repos[full_name] = self._github.get_repo(full_name)
            except GithubException as e:
                raise GitHubClientError(f"Failed to get repository {full_name}: {e}") from e
        return self._repos[full_name]

    def _issue(self, org: str, repo: str, number: int) -> Issue:
        return self.repo(org, repo).get_issue(number=number)

    @property
    def bot_login(self) -> str:
        """Login of the account the client acts as."""
        if self._bot_login is None:
            try:
                self._bot_login = self._github.get_user().login
            except GithubException as e:
                raise GitHubClientError(f"Failed to get bot user: {e}") from e
        return self._bot_login

    def is_bot_user(self, login: str) -> bool:
        """Check whether a comment author is the bot itself."""
        bot = self.bot_login
        return login in (bot, f"{bot}[bot]")

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    def get_pull_request(self, org: str, repo: str, number: int) -> PullRequestSummary:
        """Fetch a fresh snapshot of a pull request over REST.

        Args:
            org: Repository owner
            repo: Repository name
            number: PR number

        Returns:
            PullRequestSummary with the head commit's status contexts
        """
        try:
            pr = self.repo(org, repo).get_pull(number=number)
            head_sha = pr.head.sha
            combined = self.repo(org, repo).get_commit(head_sha).get_combined_status()
            return PullRequestSummary(
                org=org,
                repo=repo,
                number=pr.number,
                head_sha=head_sha,
                title=pr.title or "",
                author=pr.user.login if pr.user else "",
                labels=tuple(label.name for label in pr.labels),
                files=tuple(f.filename for f in pr.get_files()),
                status_contexts=tuple(
                    StatusContext(context=s.context, state=s.state)
                    for s in combined.statuses
                ),
            )
        except GithubException as e:
            raise GitHubClientError(f"Failed to get PR {org}/{repo}#{number}: {e}") from e

    def get_pull_request_changes(
        self, org: str, repo: str, number: int
    ) -> list[PullRequestChange]:
        try:
            pr = self.repo(org, repo).get_pull(number=number)
            return [
                PullRequestChange(filename=f.filename, blob_url=f.blob_url, status=f.status)
                for f in pr.get_files()
            ]
        except GithubException as e:
            raise GitHubClientError(
                f"Failed to get changes for PR {org}/{repo}#{number}: {e}"
            ) from e

    def fetch_file(self, url: str) -> str:
        """Download the raw content of a file.

        Args:
            url: Raw file URL

        Returns:
            File content as string
        """
        try:
            response = httpx.get(url, timeout=self._timeout, follow_redirects=True)
            response.raise_for_status()
            return response.text
        except httpx.HTTPError as e:
            raise GitHubClientError(f"Failed to fetch '{url}': {e}") from e

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    def get_issue_labels(self, org: str, repo: str, number: int) -> list[str]:
        try:
            return [label.name for label in self._issue(org, repo, number).get_labels()]
        except GithubException as e:
            raise GitHubClientError(
                f"Failed to get labels for {org}/{repo}#{number}: {e}"
            ) from e

    def add_label(self, org: str, repo: str, number: int, label: str) -> None:
        try:
            self._issue(org, repo, number).add_to_labels(label)
        except GithubException as e:
            raise GitHubClientError(
                f"Failed to add label '{label}' to {org}/{repo}#{number}: {e}"
            ) from e

    def remove_label(self, org: str, repo: str, number: int, label: str) -> None:
        """Remove a label; a label that is already gone is not an error."""
        try:
            self._issue(org, repo, number).remove_from_labels(label)
        except UnknownObjectException:
            logger.debug(f"Label '{label}' already absent from {org}/{repo}#{number}")
        except GithubException as e:
            raise GitHubClientError(
                f"Failed to remove label '{label}' from {org}/{repo}#{number}: {e}"
            ) from e

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def list_issue_comments(self, org: str, repo: str, number: int) -> list[IssueComment]:
        """List comments oldest first."""
        try:
            return [
                IssueComment(
                    id=c.id,
                    body=c.body or "",
                    user=c.user.login if c.user else "",
                    html_url=c.html_url,
                    created_at=c.created_at,
                )
                for c in self._issue(org, repo, number).get_comments()
            ]
        except GithubException as e:
            raise GitHubClientError(
                f"Failed to list comments on {org}/{repo}#{number}: {e}"
            ) from e

    def delete_comment(self, org: str, repo: str, number: int, comment_id: int) -> None:
        try:
            self._issue(org, repo, number).get_comment(comment_id).delete()
        except GithubException as e:
            raise GitHubClientError(
                f"Failed to delete comment {comment_id} on {org}/{repo}#{number}: {e}"
            ) from e

    def create_comment(self, org: str, repo: str, number: int, body: str) -> None:
        try:
            self._issue(org, repo, number).create_comment(body)
        except GithubException as e:
            raise GitHubClientError(
                f"Failed to post comment on {org}/{repo}#{number}: {e}"
            ) from e

    # ------------------------------------------------------------------
    # Commit status
    # ------------------------------------------------------------------

    def get_combined_status(self, org: str, repo: str, ref: str) -> CombinedStatus:
        try:
            combined = self.repo(org, repo).get_commit(ref).get_combined_status()
            return CombinedStatus(
                sha=combined.sha,
                state=combined.state,
                statuses=[
                    StatusContext(context=s.context, state=s.state) for s in combined.statuses
                ],
            )
        except GithubException as e:
            raise GitHubClientError(
                f"Failed to get combined status for {org}/{repo}@{ref}: {e}"
            ) from e

    def create_status(
        self,
        org: str,
        repo: str,
        sha: str,
        state: str,
        description: str,
        context: str,
    ) -> None:
        try:
            self.repo(org, repo).get_commit(sha).create_status(
                state=state,
                description=description,
                context=context,
            )
        except GithubException as e:
            raise GitHubClientError(
                f"Failed to create status on {org}/{repo}@{sha}: {e}"
            ) from e

    # ------------------------------------------------------------------
    # GraphQL
    # ------------------------------------------------------------------

    def graphql(self, query: str, variables: dict | None = None) -> dict:
        """Run a GraphQL query.

        Args:
            query: GraphQL query document
            variables: Query variables

        Returns:
            The ``data`` member of the response
        """
        try:
            response = httpx.post(
                GRAPHQL_URL,
                json={"query": query, "variables": variables or {}},
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/vnd.github+json",
                },
                timeout=self._timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise GitHubClientError(f"GraphQL request failed: {e}") from e

        if payload.get("errors"):
            messages = "; ".join(err.get("message", str(err)) for err in payload["errors"])
            raise GitHubClientError(f"GraphQL query returned errors: {messages}")
        return payload.get("data") or {}
