"""Unit tests for GitHub client."""

import pytest
from unittest.mock import MagicMock, patch

import httpx
from github import GithubException, UnknownObjectException

from verifier.github.client import GitHubClient, GitHubClientError, raw_url_for_blob_url


@pytest.fixture
def mock_repo():
    return MagicMock()


@pytest.fixture
def client(mock_repo):
    client = GitHubClient(token="test-token", bot_login="verify-conformance-bot")
    client._repos["cncf/k8s-conformance"] = mock_repo
    return client


class TestGitHubClientInit:
    """Tests for GitHubClient initialization."""

    def test_init_without_token_raises_error(self):
        """Test that missing token raises error."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(GitHubClientError, match="GitHub token"):
                GitHubClient()

    def test_init_with_token(self):
        """Test initialization with token."""
        client = GitHubClient(token="test-token")
        assert client.token == "test-token"

    def test_init_from_env(self):
        """Test initialization from environment."""
        with patch.dict("os.environ", {"GITHUB_TOKEN": "env-token"}):
            client = GitHubClient()
            assert client.token == "env-token"


class TestBotUser:
    """Tests for recognising the bot's own comments."""

    def test_is_bot_user(self, client):
        assert client.is_bot_user("verify-conformance-bot")
        assert client.is_bot_user("verify-conformance-bot[bot]")
        assert not client.is_bot_user("someone")

    def test_bot_login_from_token(self):
        client = GitHubClient(token="test-token")
        client._github = MagicMock()
        client._github.get_user.return_value.login = "token-owner"

        assert client.bot_login == "token-owner"
        assert client.bot_login == "token-owner"
        client._github.get_user.assert_called_once()


class TestRepo:
    """Tests for repository lookup."""

    def test_repo_is_cached(self):
        client = GitHubClient(token="test-token")
        client._github = MagicMock()

        client.repo("cncf", "k8s-conformance")
        client.repo("cncf", "k8s-conformance")

        client._github.get_repo.assert_called_once_with("cncf/k8s-conformance")

    def test_repo_failure(self):
        client = GitHubClient(token="test-token")
        client._github = MagicMock()
        client._github.get_repo.side_effect = GithubException(404, {"message": "Not Found"})

        with pytest.raises(GitHubClientError, match="Failed to get repository"):
            client.repo("cncf", "missing")


class TestPullRequests:
    """Tests for PR reads."""

    def test_get_pull_request(self, client, mock_repo):
        """Test fetching a PR snapshot."""
        pr = MagicMock()
        pr.number = 42
        pr.title = "Conformance results for v1.29/Example"
        pr.head.sha = "abc123"
        pr.user.login = "submitter"
        label = MagicMock()
        label.name = "release-v1.29"
        pr.labels = [label]
        pr.get_files.return_value = [MagicMock(filename="v1.29/example/README.md")]
        mock_repo.get_pull.return_value = pr
        status = MagicMock(context="verify-conformance", state="success")
        mock_repo.get_commit.return_value.get_combined_status.return_value.statuses = [status]

        summary = client.get_pull_request("cncf", "k8s-conformance", 42)

        assert str(summary) == "cncf/k8s-conformance#42"
        assert summary.head_sha == "abc123"
        assert summary.labels == ("release-v1.29",)
        assert summary.files == ("v1.29/example/README.md",)
        assert summary.status_contexts[0].state == "success"
        mock_repo.get_commit.assert_called_with("abc123")

    def test_get_pull_request_changes(self, client, mock_repo):
        mock_repo.get_pull.return_value.get_files.return_value = [
            MagicMock(filename="a", blob_url="https://github.com/o/r/blob/s/a", status="added")
        ]

        changes = client.get_pull_request_changes("cncf", "k8s-conformance", 42)

        assert changes[0].filename == "a"
        assert changes[0].status == "added"

    def test_raw_url_for_blob_url(self):
        assert raw_url_for_blob_url(
            "https://github.com/cncf/k8s-conformance/blob/abc123/v1.29/x/e2e.log"
        ) == "https://raw.githubusercontent.com/cncf/k8s-conformance/abc123/v1.29/x/e2e.log"

    def test_fetch_file(self, client):
        response = MagicMock(text="contents")

        with patch("verifier.github.client.httpx.get", return_value=response):
            assert client.fetch_file("https://raw.githubusercontent.com/o/r/s/f") == "contents"

    def test_fetch_file_failure(self, client):
        with patch(
            "verifier.github.client.httpx.get", side_effect=httpx.ConnectError("down")
        ):
            with pytest.raises(GitHubClientError, match="Failed to fetch"):
                client.fetch_file("https://raw.githubusercontent.com/o/r/s/f")


class TestLabels:
    """Tests for label mutations."""

    def test_add_label(self, client, mock_repo):
        client.add_label("cncf", "k8s-conformance", 42, "release-v1.29")

        mock_repo.get_issue.assert_called_with(number=42)
        mock_repo.get_issue.return_value.add_to_labels.assert_called_once_with("release-v1.29")

    def test_add_label_failure(self, client, mock_repo):
        mock_repo.get_issue.return_value.add_to_labels.side_effect = GithubException(
            403, {"message": "Forbidden"}
        )

        with pytest.raises(GitHubClientError, match="release-v1.29"):
            client.add_label("cncf", "k8s-conformance", 42, "release-v1.29")

    def test_remove_absent_label_is_not_an_error(self, client, mock_repo):
        mock_repo.get_issue.return_value.remove_from_labels.side_effect = (
            UnknownObjectException(404, {"message": "Label does not exist"})
        )

        client.remove_label("cncf", "k8s-conformance", 42, "release-v1.28")

    def test_get_issue_labels(self, client, mock_repo):
        label = MagicMock()
        label.name = "lgtm"
        mock_repo.get_issue.return_value.get_labels.return_value = [label]

        assert client.get_issue_labels("cncf", "k8s-conformance", 42) == ["lgtm"]


class TestComments:
    """Tests for comment operations."""

    def test_list_issue_comments(self, client, mock_repo):
        comment = MagicMock(id=1, body=None, html_url="u", created_at=None)
        comment.user.login = "verify-conformance-bot"
        mock_repo.get_issue.return_value.get_comments.return_value = [comment]

        comments = client.list_issue_comments("cncf", "k8s-conformance", 42)

        assert comments[0].id == 1
        assert comments[0].body == ""
        assert comments[0].user == "verify-conformance-bot"

    def test_delete_comment(self, client, mock_repo):
        client.delete_comment("cncf", "k8s-conformance", 42, 7)

        issue = mock_repo.get_issue.return_value
        issue.get_comment.assert_called_once_with(7)
        issue.get_comment.return_value.delete.assert_called_once()

    def test_create_comment_failure(self, client, mock_repo):
        mock_repo.get_issue.return_value.create_comment.side_effect = GithubException(
            500, {"message": "Server Error"}
        )

        with pytest.raises(GitHubClientError, match="Failed to post comment"):
            client.create_comment("cncf", "k8s-conformance", 42, "body")


class TestStatus:
    """Tests for commit status operations."""

    def test_get_combined_status(self, client, mock_repo):
        combined = mock_repo.get_commit.return_value.get_combined_status.return_value
        combined.sha = "abc123"
        combined.state = "pending"
        combined.statuses = []

        result = client.get_combined_status("cncf", "k8s-conformance", "abc123")

        assert (result.sha, result.state, result.statuses) == ("abc123", "pending", [])

    def test_create_status(self, client, mock_repo):
        client.create_status(
            "cncf",
            "k8s-conformance",
            "abc123",
            state="success",
            description="All checks are passing",
            context="verify-conformance",
        )

        mock_repo.get_commit.assert_called_with("abc123")
        mock_repo.get_commit.return_value.create_status.assert_called_once_with(
            state="success",
            description="All checks are passing",
            context="verify-conformance",
        )


class TestGraphql:
    """Tests for GraphQL requests."""

    def test_graphql(self, client):
        response = MagicMock()
        response.json.return_value = {"data": {"search": {"nodes": []}}}

        with patch("verifier.github.client.httpx.post", return_value=response) as mock_post:
            data = client.graphql("query { viewer { login } }", {"a": 1})

        assert data == {"search": {"nodes": []}}
        sent = mock_post.call_args.kwargs
        assert sent["json"] == {"query": "query { viewer { login } }", "variables": {"a": 1}}
        assert sent["headers"]["Authorization"] == "Bearer test-token"

    def test_graphql_errors(self, client):
        response = MagicMock()
        response.json.return_value = {"errors": [{"message": "rate limited"}]}

        with patch("verifier.github.client.httpx.post", return_value=response):
            with pytest.raises(GitHubClientError, match="rate limited"):
                client.graphql("query { viewer { login } }")
