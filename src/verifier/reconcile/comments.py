"""Keep a single up-to-date bot comment on a PR."""

import logging

from verifier.errors import CommentUpdateError
from verifier.github.client import GitHubClient, GitHubClientError
from verifier.github.models import PullRequestSummary


logger = logging.getLogger(__name__)


def update_comments(client: GitHubClient, pr: PullRequestSummary, body: str) -> bool:
    """Post ``body`` unless the latest bot comment already says the same.

    When a new comment is needed, every bot comment except the latest is
    deleted first, so at most one old comment survives next to the new one.
    Comments by anyone else are left alone.

    Returns:
        True if a new comment was posted

    Raises:
        CommentUpdateError: If listing, deleting or posting fails
    """
    try:
        comments = client.list_issue_comments(pr.org, pr.repo, pr.number)
        bot_comments = [c for c in comments if c.body and client.is_bot_user(c.user)]
    except GitHubClientError as e:
        raise CommentUpdateError(f"unable to list comments on {pr}: {e}", pr=str(pr)) from e

    if bot_comments and bot_comments[-1].body == body:
        logger.info(f"{pr}: nothing new to comment")
        return False

    try:
        for stale in bot_comments[:-1]:
            client.delete_comment(pr.org, pr.repo, pr.number, stale.id)
    except GitHubClientError as e:
        raise CommentUpdateError(
            f"unable to prune stale comments on {pr}: {e}", pr=str(pr)
        ) from e

    try:
        client.create_comment(pr.org, pr.repo, pr.number, body)
    except GitHubClientError as e:
        raise CommentUpdateError(f"unable to post comment on {pr}: {e}", pr=str(pr)) from e

    logger.info(f"{pr}: posted comment, pruned {max(len(bot_comments) - 1, 0)} stale")
    return True
