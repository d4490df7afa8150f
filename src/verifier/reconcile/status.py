"""Set the verify-conformance commit status."""

import logging

from verifier.errors import StatusUpdateError
from verifier.github.client import GitHubClient, GitHubClientError
from verifier.github.models import CommitState, PullRequestSummary


logger = logging.getLogger(__name__)

STATUS_CONTEXT = "verify-conformance"


def status_description(state: str) -> str:
    """Human readable description for a status state."""
    match state:
        case CommitState.SUCCESS.value:
            return "All checks are passing"
        case CommitState.FAILURE.value:
            return "Please check failing requirements and update accordingly"
        case _:
            return "Internal error"


def has_verified_status(pr: PullRequestSummary) -> bool:
    """Check whether the head commit already carries a successful status."""
    for ctx in pr.status_contexts:
        if ctx.context.lower() == STATUS_CONTEXT:
            return ctx.state.lower() == CommitState.SUCCESS.value
    return False


def update_status(client: GitHubClient, pr: PullRequestSummary, state: str) -> bool:
    """Create a status on the head commit if it differs from ``state``.

    A head commit already verified as successful is never regressed.

    Returns:
        True if a status was created

    Raises:
        StatusUpdateError: If reading or creating the status fails
    """
    state = str(getattr(state, "value", state))

    if has_verified_status(pr):
        logger.info(f"{pr}: status already verified")
        return False

    try:
        combined = client.get_combined_status(pr.org, pr.repo, pr.head_sha)
    except GitHubClientError as e:
        raise StatusUpdateError(f"failed to get combined status for {pr}: {e}", pr=str(pr)) from e

    if combined.sha == pr.head_sha and combined.state == state:
        logger.info(f"{pr}: status unchanged")
        return False

    description = status_description(state)
    if state not in (CommitState.SUCCESS.value, CommitState.FAILURE.value):
        logger.info(f"{pr}: state '{state}' is not a verdict, reporting internal error")
    logger.info(f"{pr}: setting state '{state}' with description '{description}'")

    try:
        client.create_status(
            pr.org,
            pr.repo,
            pr.head_sha,
            state=state,
            description=description,
            context=STATUS_CONTEXT,
        )
    except GitHubClientError as e:
        raise StatusUpdateError(f"failed to create status for {pr}: {e}", pr=str(pr)) from e
    return True
