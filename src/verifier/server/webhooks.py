"""Webhook handlers for GitHub events."""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from enum import Enum

from fastapi import Request, HTTPException

from verifier.server.config import get_settings
from verifier.server.runtime import in_scope, process_pr


logger = logging.getLogger(__name__)


class WebhookEvent(str, Enum):
    """Supported webhook events."""

    ISSUE_COMMENT = "issue_comment"
    PULL_REQUEST = "pull_request"


PULL_REQUEST_ACTIONS = ("opened", "reopened")


@dataclass
class WebhookPayload:
    """Parsed webhook payload."""

    event: str
    action: str
    installation_id: int
    repository: str
    sender: str
    data: dict


async def verify_webhook_signature(request: Request, body: bytes) -> bool:
    """Verify the webhook signature from GitHub.

    Args:
        request: FastAPI request
        body: Raw request body

    Returns:
        True if signature is valid

    Raises:
        HTTPException: If signature is invalid
    """
    settings = get_settings()

    if not settings.github_webhook_secret:
        logger.warning("Webhook secret not configured, skipping verification")
        return True

    signature_header = request.headers.get("X-Hub-Signature-256", "")
    if not signature_header:
        raise HTTPException(status_code=401, detail="Missing signature header")

    expected_signature = (
        "sha256="
        + hmac.new(
            settings.github_webhook_secret.encode(),
            body,
            hashlib.sha256,
        ).hexdigest()
    )

    if not hmac.compare_digest(signature_header, expected_signature):
        raise HTTPException(status_code=401, detail="Invalid signature")

    return True


def parse_webhook_payload(event_type: str, payload: dict) -> WebhookPayload:
    """Parse a webhook payload into a structured format.

    Args:
        event_type: GitHub event type
        payload: Raw payload dictionary

    Returns:
        Parsed WebhookPayload
    """
    return WebhookPayload(
        event=event_type,
        action=payload.get("action", ""),
        installation_id=payload.get("installation", {}).get("id", 0),
        repository=payload.get("repository", {}).get("full_name", ""),
        sender=payload.get("sender", {}).get("login", ""),
        data=payload,
    )


async def handle_pull_request_event(payload: WebhookPayload) -> dict:
    """Handle pull request events.

    Only newly opened or reopened PRs are processed; later pushes are picked
    up by comments or the periodic scan.

    Args:
        payload: Webhook payload

    Returns:
        Result dictionary
    """
    pr_number = payload.data.get("pull_request", {}).get("number") or payload.data.get(
        "number"
    )

    if payload.action not in PULL_REQUEST_ACTIONS:
        return {"status": "skipped", "reason": f"unsupported action: {payload.action}"}

    if not in_scope(payload.repository):
        return {"status": "skipped", "reason": "repository not configured"}

    logger.info(f"Processing PR #{pr_number} in {payload.repository} ({payload.action})")
    return await process_pr(payload.repository, int(pr_number))


async def handle_issue_comment_event(payload: WebhookPayload) -> dict:
    """Handle issue_comment events by reprocessing the PR commented on.

    Args:
        payload: Webhook payload

    Returns:
        Result dictionary
    """
    if payload.action != "created":
        return {"status": "skipped", "reason": f"unsupported action: {payload.action}"}

    issue = payload.data.get("issue", {})

    # issue_comment fires for both issues and PRs
    if "pull_request" not in issue:
        return {"status": "skipped", "reason": "not a pull request"}

    if not in_scope(payload.repository):
        return {"status": "skipped", "reason": "repository not configured"}

    pr_number = issue.get("number")
    logger.info(f"Comment on PR #{pr_number} in {payload.repository}, reprocessing")
    return await process_pr(payload.repository, int(pr_number))


async def handle_webhook(event_type: str, payload: dict) -> dict:
    """Main webhook handler that routes to specific handlers.

    Args:
        event_type: GitHub event type
        payload: Webhook payload

    Returns:
        Handler result
    """
    parsed = parse_webhook_payload(event_type, payload)

    logger.info(
        f"Received webhook: {event_type}/{parsed.action} "
        f"from {parsed.repository or 'N/A'} by {parsed.sender}"
    )

    if event_type == WebhookEvent.PULL_REQUEST:
        return await handle_pull_request_event(parsed)

    elif event_type == WebhookEvent.ISSUE_COMMENT:
        return await handle_issue_comment_event(parsed)

    else:
        logger.debug(f"Ignoring event type: {event_type}")
        return {"status": "ignored", "event": event_type}
