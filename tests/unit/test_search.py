"""Unit tests for the paginated PR search."""

import pytest
from unittest.mock import MagicMock

from verifier.github.client import GitHubClientError
from verifier.github.models import PullRequestSummary
from verifier.github.search import OPEN_PR_QUERY, build_open_pr_query, search


def pr_node(number, head="abc123", org="cncf", repo="k8s-conformance", contexts=None):
    return {
        "number": number,
        "headRefOid": head,
        "title": f"Conformance results for v1.29/Product {number}",
        "author": {"login": "submitter"},
        "repository": {"name": repo, "owner": {"login": org}},
        "labels": {"nodes": [{"name": "release-v1.29"}]},
        "files": {"nodes": [{"path": "v1.29/product/README.md"}]},
        "commits": {
            "nodes": [
                {
                    "commit": {
                        "oid": "old",
                        "status": {"contexts": [{"context": "verify-conformance", "state": "SUCCESS"}]},
                    }
                },
                {"commit": {"oid": head, "status": {"contexts": contexts or []}}},
            ]
        },
    }


def page(nodes, has_next, cursor=None, cost=1, remaining=4999):
    return {
        "rateLimit": {"cost": cost, "remaining": remaining},
        "search": {
            "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
            "nodes": nodes,
        },
    }


class TestBuildOpenPrQuery:
    """Tests for build_open_pr_query."""

    def test_query(self):
        query = build_open_pr_query(["cncf/k8s-conformance", "cncf/other"])

        assert query == (
            f'{OPEN_PR_QUERY} repo:"cncf/k8s-conformance" repo:"cncf/other"'
        )

    def test_malformed_repo_is_skipped(self):
        assert build_open_pr_query(["not-a-repo", "a/b/c"]) == OPEN_PR_QUERY


class TestSearch:
    """Tests for walking search pages."""

    def test_walks_every_page(self):
        """Test that results from all pages are returned in order."""
        client = MagicMock()
        client.graphql.side_effect = [
            page([pr_node(1), {}], has_next=True, cursor="c1"),
            page([pr_node(2)], has_next=False, cost=2, remaining=4997),
        ]

        results = search(client, "is:pr", "cncf")

        assert [pr.number for pr in results] == [1, 2]
        assert client.graphql.call_count == 2
        first_vars = client.graphql.call_args_list[0].args[1]
        second_vars = client.graphql.call_args_list[1].args[1]
        assert second_vars == {"query": "is:pr", "searchCursor": "c1"}
        assert first_vars["query"] == "is:pr"

    def test_empty_search(self):
        client = MagicMock()
        client.graphql.return_value = page([], has_next=False)

        assert search(client, "is:pr") == []

    def test_error_aborts_walk(self):
        """Test that an error on a later page discards the partial result."""
        client = MagicMock()
        client.graphql.side_effect = [
            page([pr_node(1)], has_next=True, cursor="c1"),
            GitHubClientError("GraphQL query returned errors: boom"),
        ]

        with pytest.raises(GitHubClientError, match="boom"):
            search(client, "is:pr")


class TestFromGraphql:
    """Tests for PullRequestSummary.from_graphql."""

    def test_only_head_commit_contexts_are_kept(self):
        node = pr_node(
            7, head="head1", contexts=[{"context": "verify-conformance", "state": "FAILURE"}]
        )

        pr = PullRequestSummary.from_graphql(node)

        assert str(pr) == "cncf/k8s-conformance#7"
        assert pr.head_sha == "head1"
        assert pr.author == "submitter"
        assert pr.labels == ("release-v1.29",)
        assert pr.files == ("v1.29/product/README.md",)
        assert [(c.context, c.state) for c in pr.status_contexts] == [
            ("verify-conformance", "FAILURE")
        ]
        assert pr.url == "https://github.com/cncf/k8s-conformance/pull/7"
