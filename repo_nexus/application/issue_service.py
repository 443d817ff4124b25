import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp

from repo_nexus.domain.exceptions import GitHubAPIError, InvalidRepositoryError
from repo_nexus.domain.models import Issue, RepositoryReference
from repo_nexus.infrastructure.acl import GitHubTranslator
from repo_nexus.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)

MAX_PER_PAGE = 100

BOUNTY_TOKENS = ["bounty", "reward", "paid", "funded", "bug-bounty", "cash", "gitcoin", "issuehunt", "algora"]
MONEY_TOKENS = ['"$"', '"$10"', '"$25"', '"$50"', '"$75"', '"$100"', '"$200"', '"$300"', '"$500"', '"$1000"', "USD", "EUR", "INR"]
BOUNTY_LABELS = ["bounty", "bug-bounty", "reward", "paid"]

_URL_PATTERN = re.compile(r"github\.com/([^/\s]+)/([^/\s?#]+)")


def parse_repository(reference: Optional[str]) -> RepositoryReference:
    """
    Accepts `owner/name` or any github.com URL pointing into a repository.

    Raises:
        InvalidRepositoryError: If neither form matches.
    """
    if not reference or not reference.strip():
        raise InvalidRepositoryError("Repository name is required")

    reference = reference.strip()
    match = _URL_PATTERN.search(reference)
    if match:
        owner, name = match.groups()
    elif "://" not in reference and reference.count("/") == 1:
        owner, name = reference.split("/")
    else:
        raise InvalidRepositoryError("Invalid GitHub URL or repository format")

    if name.endswith(".git"):
        name = name[:-4]
    if not owner or not name:
        raise InvalidRepositoryError("Invalid GitHub URL or repository format")
    return RepositoryReference(owner=owner, name=name)


def build_bounty_query(repo: RepositoryReference, state: str) -> str:
    return " ".join([
        f"repo:{repo.full_name}",
        "is:issue",
        f"state:{state}",
        f"in:title,body ({' OR '.join(BOUNTY_TOKENS + MONEY_TOKENS)})",
        f"({' OR '.join(f'label:{label}' for label in BOUNTY_LABELS)})",
    ])


@dataclass
class IssuePage:
    issues: List[Issue]
    total: int
    page: int
    per_page: int

    @property
    def has_more(self) -> bool:
        return len(self.issues) == self.per_page

    def to_payload(self) -> Dict[str, Any]:
        return {
            "issues": [issue.model_dump(mode="json") for issue in self.issues],
            "total": self.total,
            "page": self.page,
            "perPage": self.per_page,
            "hasMore": self.has_more,
        }


class IssueService:
    """Lists issues of a repository, optionally filtered by labels or bounty signals."""

    def __init__(self, github_client: GitHubRestClient):
        self.github_client = github_client

    async def labeled_issues(
        self,
        repo: RepositoryReference,
        labels: Optional[str] = None,
        state: str = "open",
        page: int = 1,
        per_page: int = 10,
        bounty_signals: bool = False,
    ) -> IssuePage:
        self.github_client.require_token()

        async with aiohttp.ClientSession() as session:
            if bounty_signals:
                return await self._bounty_issues(session, repo, state, page, per_page)

            issues = await self._fetch_issues(session, repo, labels, state, page, per_page)

        issues = [issue for issue in issues if not issue.is_pull_request]
        total = len(issues)
        if total == per_page:
            # The issues endpoint has no total; advertise at least one more page.
            total = max(total, per_page * 2)
        return IssuePage(issues=issues, total=total, page=page, per_page=per_page)

    async def _fetch_issues(
        self,
        session: aiohttp.ClientSession,
        repo: RepositoryReference,
        labels: Optional[str],
        state: str,
        page: int,
        per_page: int,
    ) -> List[Issue]:
        label_variants = [label.strip() for label in (labels or "").split(",") if label.strip()]
        if not label_variants:
            raw_issues = await self.github_client.list_issues(
                session, repo.full_name, state=state, per_page=per_page, page=page,
            )
            return [GitHubTranslator.to_issue(raw) for raw in raw_issues]

        # The API ANDs comma-separated labels; query each one to get OR semantics.
        collected: List[Issue] = []
        seen_ids = set()
        for label in label_variants:
            try:
                raw_issues = await self.github_client.list_issues(
                    session,
                    repo.full_name,
                    state=state,
                    per_page=min(per_page * 2, MAX_PER_PAGE),
                    page=1,
                    labels=label,
                )
            except GitHubAPIError as e:
                logger.warning(f"Failed to fetch issues for label '{label}' in {repo.full_name}: {e}")
                continue

            for raw in raw_issues:
                if raw.get("id") in seen_ids:
                    continue
                seen_ids.add(raw.get("id"))
                collected.append(GitHubTranslator.to_issue(raw))

        collected.sort(key=lambda issue: issue.updated_at, reverse=True)
        start = (page - 1) * per_page
        return collected[start:start + per_page]

    async def _bounty_issues(
        self,
        session: aiohttp.ClientSession,
        repo: RepositoryReference,
        state: str,
        page: int,
        per_page: int,
    ) -> IssuePage:
        raw_items, total_count = await self.github_client.search_issues(
            session, build_bounty_query(repo, state), per_page=per_page, page=page,
        )
        issues = [GitHubTranslator.to_issue(raw) for raw in raw_items]
        return IssuePage(issues=issues, total=total_count or len(issues), page=page, per_page=per_page)
