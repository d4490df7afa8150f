"""Periodic processing of every open PR in the configured scope."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from verifier.errors import VerifierError
from verifier.github.client import GitHubClient
from verifier.github.search import OPEN_PR_QUERY, build_open_pr_query, search
from verifier.processing.processor import PullRequestProcessor


logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """Summary of a full scan."""

    considered: int = 0
    processed: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "considered": self.considered,
            "processed": self.processed,
            "errors": self.errors,
        }


def scan_queries(repos: Iterable[str], orgs: Iterable[str]) -> dict[str, str]:
    """Map each org to the search query covering its configured scope.

    A configured org covers all its repos; otherwise the org's configured
    repos are listed explicitly.
    """
    queries: dict[str, str] = {}
    for org in orgs:
        queries[org] = f'{OPEN_PR_QUERY} org:"{org}"'

    repos_by_org: dict[str, list[str]] = {}
    for repo in repos:
        parts = repo.split("/")
        if len(parts) != 2:
            logger.warning(f"Ignoring repo '{repo}' that is not in org/repo format")
            continue
        repos_by_org.setdefault(parts[0], []).append(repo)

    for org, org_repos in repos_by_org.items():
        if org in queries:
            continue
        queries[org] = build_open_pr_query(org_repos)
    return queries


def handle_all(
    repos: Iterable[str],
    orgs: Iterable[str],
    client_for_org: Callable[[str], GitHubClient],
    processor_for_client: Callable[[GitHubClient], PullRequestProcessor],
) -> BatchReport:
    """Search every open PR in scope and process them one at a time.

    The whole search completes before any PR is processed. A search error
    aborts the scan; any error on a single PR, expected or not, is logged
    and recorded in the report and the scan moves on.

    Args:
        repos: Configured ``org/repo`` names
        orgs: Configured orgs
        client_for_org: Returns a GitHub client able to act on an org
        processor_for_client: Builds a processor around a client

    Returns:
        BatchReport for the scan
    """
    report = BatchReport()
    queries = scan_queries(list(repos), list(orgs))
    if not queries:
        logger.warning("No repos have been configured for verify-conformance")
        return report

    work = []
    seen: set[tuple[str, str, int]] = set()
    for org, query in queries.items():
        client = client_for_org(org)
        for pr in search(client, query, org):
            key = (pr.org, pr.repo, pr.number)
            if key in seen:
                continue
            seen.add(key)
            work.append((client, pr))

    report.considered = len(work)
    logger.info(f"Considering {report.considered} PRs.")

    processors: dict[int, PullRequestProcessor] = {}
    for client, pr in work:
        try:
            processor = processors.get(id(client))
            if processor is None:
                processor = processors[id(client)] = processor_for_client(client)
            processor.process(pr)
            report.processed.append(str(pr))
        except VerifierError as e:
            logger.info(f"error running checks on PR {pr}: {e}")
            report.errors[str(pr)] = str(e)
        except Exception as e:
            logger.exception(f"unexpected error running checks on PR {pr}")
            report.errors[str(pr)] = f"unexpected error: {e}"

    return report
