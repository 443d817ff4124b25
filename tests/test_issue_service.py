import unittest

from repo_nexus.application.issue_service import IssueService, build_bounty_query, parse_repository
from repo_nexus.domain.exceptions import GitHubAPIError, InvalidRepositoryError, MissingTokenError
from repo_nexus.domain.models import RepositoryReference


def raw_issue(issue_id: int, updated_day: int, pull_request: bool = False, **extra) -> dict:
    issue = {
        "id": issue_id,
        "number": issue_id,
        "title": f"Issue {issue_id}",
        "state": "open",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": f"2024-01-{updated_day:02d}T00:00:00Z",
        "labels": [],
    }
    if pull_request:
        issue["pull_request"] = {"url": "https://api.github.com/pulls/1"}
    issue.update(extra)
    return issue


class _FakeIssueClient:
    def __init__(self, by_label=None, unlabeled=None, search=None, token="t") -> None:
        self.by_label = by_label or {}
        self.unlabeled = unlabeled or []
        self.search = search
        self.token = token
        self.calls = []

    def require_token(self) -> None:
        if not self.token:
            raise MissingTokenError("no token")

    async def list_issues(self, session, full_name, state="open", per_page=10, page=1, labels=None):
        self.calls.append({"full_name": full_name, "state": state, "per_page": per_page, "page": page, "labels": labels})
        if labels is None:
            return self.unlabeled
        result = self.by_label.get(labels, [])
        if isinstance(result, Exception):
            raise result
        return result

    async def search_issues(self, session, query, per_page, page, sort="updated", order="desc"):
        self.calls.append({"query": query, "per_page": per_page, "page": page})
        return self.search


class TestParseRepository(unittest.TestCase):
    def test_accepts_owner_and_name(self) -> None:
        self.assertEqual(parse_repository("octocat/hello").full_name, "octocat/hello")

    def test_accepts_urls(self) -> None:
        self.assertEqual(parse_repository("https://github.com/octocat/hello").full_name, "octocat/hello")
        self.assertEqual(parse_repository("https://github.com/octocat/hello.git").full_name, "octocat/hello")
        self.assertEqual(
            parse_repository("https://github.com/octocat/hello/tree/main/src").full_name,
            "octocat/hello",
        )

    def test_rejects_garbage(self) -> None:
        for reference in (None, "", "   ", "octocat", "a/b/c", "https://example.com/a/b"):
            with self.assertRaises(InvalidRepositoryError, msg=reference):
                parse_repository(reference)


class TestIssueService(unittest.IsolatedAsyncioTestCase):
    async def test_labels_are_ored_deduplicated_and_sorted(self) -> None:
        client = _FakeIssueClient(by_label={
            "bug": [raw_issue(1, 5), raw_issue(2, 9)],
            "good first issue": [raw_issue(2, 9), raw_issue(3, 7)],
        })
        service = IssueService(client)

        page = await service.labeled_issues(
            RepositoryReference(owner="octocat", name="hello"),
            labels="bug, good first issue",
            per_page=10,
        )

        self.assertEqual([issue.id for issue in page.issues], [2, 3, 1])
        self.assertEqual([call["labels"] for call in client.calls], ["bug", "good first issue"])
        self.assertTrue(all(call["per_page"] == 20 and call["page"] == 1 for call in client.calls))
        self.assertFalse(page.has_more)
        self.assertEqual(page.total, 3)

    async def test_failed_label_is_skipped(self) -> None:
        client = _FakeIssueClient(by_label={
            "bug": GitHubAPIError("Not Found", status=404),
            "help wanted": [raw_issue(4, 2)],
        })
        service = IssueService(client)

        page = await service.labeled_issues(RepositoryReference(owner="o", name="r"), labels="bug,help wanted")

        self.assertEqual([issue.id for issue in page.issues], [4])

    async def test_combined_labels_are_paginated(self) -> None:
        client = _FakeIssueClient(by_label={"bug": [raw_issue(i, i) for i in range(1, 6)]})
        service = IssueService(client)

        page = await service.labeled_issues(RepositoryReference(owner="o", name="r"), labels="bug", page=2, per_page=2)

        self.assertEqual([issue.id for issue in page.issues], [3, 2])
        self.assertTrue(page.has_more)
        self.assertEqual(page.total, 4)

    async def test_pull_requests_are_removed(self) -> None:
        client = _FakeIssueClient(unlabeled=[raw_issue(1, 1), raw_issue(2, 2, pull_request=True)])
        service = IssueService(client)

        page = await service.labeled_issues(RepositoryReference(owner="o", name="r"), per_page=5, page=3)

        self.assertEqual([issue.id for issue in page.issues], [1])
        self.assertEqual(client.calls[0]["page"], 3)
        self.assertEqual(client.calls[0]["per_page"], 5)

    async def test_bounty_search(self) -> None:
        client = _FakeIssueClient(search=([raw_issue(11, 3)], 42))
        service = IssueService(client)

        page = await service.labeled_issues(
            RepositoryReference(owner="o", name="r"), state="all", bounty_signals=True,
        )

        self.assertEqual(page.total, 42)
        self.assertEqual(page.to_payload()["issues"][0]["id"], 11)
        self.assertTrue(client.calls[0]["query"].startswith("repo:o/r is:issue state:all in:title,body ("))

    async def test_requires_token(self) -> None:
        service = IssueService(_FakeIssueClient(token=None))

        with self.assertRaises(MissingTokenError):
            await service.labeled_issues(RepositoryReference(owner="o", name="r"))

    def test_bounty_query_lists_labels(self) -> None:
        query = build_bounty_query(RepositoryReference(owner="o", name="r"), "open")

        self.assertIn("gitcoin OR issuehunt", query)
        self.assertTrue(query.endswith("(label:bounty OR label:bug-bounty OR label:reward OR label:paid)"))
