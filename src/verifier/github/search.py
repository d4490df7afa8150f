"""Paginated GitHub search for conformance pull requests."""

import logging

from verifier.github.client import GitHubClient
from verifier.github.models import PullRequestSummary


logger = logging.getLogger(__name__)

SEARCH_QUERY = """
query($query: String!, $searchCursor: String) {
  rateLimit {
    cost
    remaining
  }
  search(type: ISSUE, first: 100, after: $searchCursor, query: $query) {
    pageInfo {
      hasNextPage
      endCursor
    }
    nodes {
      ... on PullRequest {
        number
        headRefOid
        title
        author {
          login
        }
        repository {
          name
          owner {
            login
          }
        }
        labels(first: 100) {
          nodes {
            name
          }
        }
        files(first: 10) {
          nodes {
            path
          }
        }
        commits(last: 5) {
          nodes {
            commit {
              oid
              status {
                contexts {
                  context
                  state
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

OPEN_PR_QUERY = "archived:false is:pr is:open"


def build_open_pr_query(repos: list[str]) -> str:
    """Build the search query for open PRs in the given ``org/repo`` list."""
    parts = [OPEN_PR_QUERY]
    for repo in repos:
        if len(repo.split("/")) != 2:
            logger.warning(f"Ignoring repo '{repo}' that is not in org/repo format")
            continue
        parts.append(f'repo:"{repo}"')
    return " ".join(parts)


def search(client: GitHubClient, query: str, org: str = "") -> list[PullRequestSummary]:
    """Walk every page of a search and return all pull requests found.

    The result is only returned once the last page has been read. Any query
    error aborts the walk.

    Args:
        client: GitHub client for the org being searched
        query: GitHub search query
        org: Org the query runs on behalf of, used for logging

    Returns:
        All PR summaries across pages
    """
    results: list[PullRequestSummary] = []
    variables: dict = {"query": query, "searchCursor": None}
    total_cost = 0
    remaining = 0

    while True:
        logger.info(f'Running search "{query}" for {org or "default scope"}')
        data = client.graphql(SEARCH_QUERY, variables)

        rate_limit = data.get("rateLimit") or {}
        total_cost += int(rate_limit.get("cost") or 0)
        remaining = int(rate_limit.get("remaining") or 0)

        page = data.get("search") or {}
        for node in page.get("nodes") or []:
            # Issues come back as empty nodes from the PullRequest fragment
            if not node or "number" not in node:
                continue
            results.append(PullRequestSummary.from_graphql(node))

        page_info = page.get("pageInfo") or {}
        if not page_info.get("hasNextPage"):
            break
        variables["searchCursor"] = page_info.get("endCursor")

    logger.info(
        f'Search for query "{query}" cost {total_cost} point(s). {remaining} remaining.'
    )
    return results
