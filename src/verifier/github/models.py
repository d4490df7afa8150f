"""Data models for GitHub entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class CommitState(str, Enum):
    """Commit status state."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"


@dataclass(frozen=True)
class StatusContext:
    """A single status context reported on a commit."""

    context: str
    state: str


@dataclass(frozen=True)
class PullRequestSummary:
    """Snapshot of a pull request taken once per processing pass.

    The snapshot is never updated in place. Changes made by a reconciliation
    are only visible after fetching a new one.
    """

    org: str
    repo: str
    number: int
    head_sha: str
    title: str
    author: str = ""
    labels: tuple[str, ...] = ()
    files: tuple[str, ...] = ()
    status_contexts: tuple[StatusContext, ...] = ()

    @property
    def full_name(self) -> str:
        """Repository name in ``org/repo`` form."""
        return f"{self.org}/{self.repo}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.org}/{self.repo}/pull/{self.number}"

    def __str__(self) -> str:
        return f"{self.org}/{self.repo}#{self.number}"

    @classmethod
    def from_graphql(cls, node: dict) -> "PullRequestSummary":
        """Create a summary from a ``... on PullRequest`` search node.

        Only status contexts of the commit matching ``headRefOid`` are kept.

        Args:
            node: GraphQL node dictionary

        Returns:
            PullRequestSummary instance
        """
        head_sha = node.get("headRefOid") or ""
        repository = node.get("repository") or {}

        contexts: list[StatusContext] = []
        for commit_node in (node.get("commits") or {}).get("nodes") or []:
            commit = commit_node.get("commit") or {}
            if commit.get("oid") != head_sha:
                continue
            status = commit.get("status") or {}
            for ctx in status.get("contexts") or []:
                contexts.append(
                    StatusContext(context=ctx.get("context", ""), state=ctx.get("state", ""))
                )

        return cls(
            org=(repository.get("owner") or {}).get("login", ""),
            repo=repository.get("name", ""),
            number=int(node["number"]),
            head_sha=head_sha,
            title=node.get("title") or "",
            author=(node.get("author") or {}).get("login", ""),
            labels=tuple(
                label["name"] for label in (node.get("labels") or {}).get("nodes") or []
            ),
            files=tuple(f["path"] for f in (node.get("files") or {}).get("nodes") or []),
            status_contexts=tuple(contexts),
        )


@dataclass
class PullRequestChange:
    """A file changed by a pull request."""

    filename: str
    blob_url: str
    status: str = "modified"  # "added", "modified", "removed"


@dataclass
class IssueComment:
    """A comment on an issue or pull request."""

    id: int
    body: str
    user: str
    html_url: str = ""
    created_at: datetime | None = None


@dataclass
class CombinedStatus:
    """Combined status of a commit."""

    sha: str
    state: str
    statuses: list[StatusContext] = field(default_factory=list)
