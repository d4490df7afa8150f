"""Wiring between the server and PR processing."""

import asyncio
import logging

from verifier.errors import ReleaseNotProcessableError, VerifierError
from verifier.github.client import GitHubClient, GitHubClientError
from verifier.processing.batch import BatchReport, handle_all, scan_queries
from verifier.processing.metadata import MetadataStore
from verifier.processing.processor import ProcessingResult, PullRequestProcessor
from verifier.processing.release import ReleaseValidator, fetch_stable_version
from verifier.rules.basic import BasicRuleSuite
from verifier.server.config import get_settings
from verifier.server.github_app import get_github_app_auth


logger = logging.getLogger(__name__)

# Webhooks and the periodic scan never process PRs at the same time
processing_lock = asyncio.Lock()


def in_scope(repo_full_name: str) -> bool:
    """Check whether a repository is configured for verification.

    An empty scope covers nothing, matching the full scan.
    """
    settings = get_settings()
    if not settings.repo_list and not settings.org_list:
        logger.warning("No repos have been configured for verify-conformance")
        return False
    owner = repo_full_name.split("/")[0]
    return repo_full_name in settings.repo_list or owner in settings.org_list


async def _bot_login() -> str | None:
    settings = get_settings()
    if settings.bot_login:
        return settings.bot_login
    if settings.uses_github_app:
        return await get_github_app_auth().get_app_slug()
    return None


async def get_client_for_repo(repo_full_name: str, token: str | None = None) -> GitHubClient:
    """Get a GitHub client able to act on a repository."""
    settings = get_settings()
    if token is None and settings.uses_github_app:
        token = await get_github_app_auth().get_token_for_repo(repo_full_name)
        if token is None:
            raise GitHubClientError(f"GitHub App is not installed on {repo_full_name}")
    return GitHubClient(token=token or settings.github_token or None, bot_login=await _bot_login())


async def get_client_for_owner(owner: str, token: str | None = None) -> GitHubClient:
    """Get a GitHub client able to act on an org or user account."""
    settings = get_settings()
    if token is None and settings.uses_github_app:
        token = await get_github_app_auth().get_token_for_owner(owner)
        if token is None:
            raise GitHubClientError(f"GitHub App is not installed on {owner}")
    return GitHubClient(token=token or settings.github_token or None, bot_login=await _bot_login())


def build_processor(client: GitHubClient) -> PullRequestProcessor:
    """Create a processor using the latest stable release as baseline."""
    settings = get_settings()
    latest = fetch_stable_version(settings.stable_txt_url)
    return PullRequestProcessor(
        client=client,
        evaluator=BasicRuleSuite(),
        validator=ReleaseValidator(latest),
        metadata_store=MetadataStore(settings.metadata_root),
    )


def process_pull_request(client: GitHubClient, org: str, repo: str, number: int) -> ProcessingResult:
    """Fetch a fresh snapshot of a PR and process it."""
    pr = client.get_pull_request(org, repo, number)
    return build_processor(client).process(pr)


async def process_pr(repo_full_name: str, number: int, token: str | None = None) -> dict:
    """Process one PR off the event loop and report the result.

    Args:
        repo_full_name: Repository in ``owner/repo`` form
        number: PR number
        token: GitHub token to use instead of the configured credentials

    Returns:
        Result dictionary
    """
    org, repo = repo_full_name.split("/", 1)
    try:
        client = await get_client_for_repo(repo_full_name, token)
        async with processing_lock:
            result = await asyncio.to_thread(process_pull_request, client, org, repo, number)
    except ReleaseNotProcessableError as e:
        logger.info(f"{repo_full_name}#{number} needs attention: {e}")
        response = {"status": "error", "error": str(e)}
        if e.result is not None:
            response.update(e.result.to_dict())
        return response
    except VerifierError as e:
        logger.error(f"Failed to process {repo_full_name}#{number}: {e}")
        return {"status": "error", "error": str(e)}

    logger.info(f"Processed {repo_full_name}#{number} at stage {result.stage}")
    return {"status": "success", **result.to_dict()}


async def run_full_scan(token: str | None = None) -> BatchReport:
    """Process every open PR in the configured scope."""
    settings = get_settings()
    orgs = list(scan_queries(settings.repo_list, settings.org_list))
    clients = {org: await get_client_for_owner(org, token) for org in orgs}

    async with processing_lock:
        return await asyncio.to_thread(
            handle_all,
            settings.repo_list,
            settings.org_list,
            clients.__getitem__,
            build_processor,
        )


async def periodic_scan(interval_seconds: int) -> None:
    """Run a full scan every ``interval_seconds`` until cancelled."""
    while True:
        try:
            report = await run_full_scan()
            logger.info(
                f"Full scan done: {report.considered} considered, "
                f"{len(report.errors)} with errors"
            )
        except Exception:
            logger.exception("Full scan failed")
        await asyncio.sleep(interval_seconds)
