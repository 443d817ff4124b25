from datetime import datetime, timezone
from typing import Any, Dict, Optional

from repo_nexus.domain.models import (
    ContentEntry,
    Issue,
    IssueLabel,
    IssueUser,
    PopularRepo,
    RateLimitStatus,
    RepositoryDetails,
    RepositoryLicense,
    RepositoryMetric,
    RepositoryOwner,
    TrendingDeveloper,
    UserRepo,
)


def _parse_timestamp(raw_date: Optional[str]) -> Optional[datetime]:
    if not raw_date:
        return None
    return datetime.fromisoformat(raw_date.replace("Z", "+00:00"))


def _require_timestamp(raw_node: Dict[str, Any], key: str, entity: str) -> datetime:
    parsed = _parse_timestamp(raw_node.get(key))
    if parsed is None:
        raise ValueError(f"{key} is required to build {entity}.")
    return parsed


class GitHubTranslator:
    """
    Anti-corruption layer that translates raw GitHub REST JSON payloads into domain models.
    Scoring and presentation code only ever sees the typed models.
    """

    @staticmethod
    def to_metric(raw_item: Dict[str, Any]) -> RepositoryMetric:
        """
        Transforms a repository search item into a RepositoryMetric.

        Args:
            raw_item (Dict[str, Any]): One element of `items` from /search/repositories.

        Returns:
            RepositoryMetric: The typed, immutable snapshot.

        Raises:
            ValueError: If the id or the created/updated timestamps are missing.
        """
        if raw_item.get('id') is None:
            raise ValueError("id is required to build RepositoryMetric.")

        created_at = _require_timestamp(raw_item, 'created_at', 'RepositoryMetric')
        updated_at = _require_timestamp(raw_item, 'updated_at', 'RepositoryMetric')
        # Empty repositories have never been pushed to.
        pushed_at = _parse_timestamp(raw_item.get('pushed_at')) or updated_at

        owner_data = raw_item.get('owner') or {}
        license_data = raw_item.get('license')

        return RepositoryMetric(
            id=raw_item['id'],
            name=raw_item.get('name', ''),
            full_name=raw_item.get('full_name', raw_item.get('name', '')),
            description=raw_item.get('description'),
            html_url=raw_item.get('html_url'),
            stargazers_count=raw_item.get('stargazers_count') or 0,
            forks_count=raw_item.get('forks_count') or 0,
            watchers_count=raw_item.get('watchers_count') or 0,
            open_issues_count=raw_item.get('open_issues_count') or 0,
            language=raw_item.get('language'),
            topics=raw_item.get('topics') or [],
            created_at=created_at,
            updated_at=updated_at,
            pushed_at=pushed_at,
            owner=RepositoryOwner(
                login=owner_data.get('login', ''),
                avatar_url=owner_data.get('avatar_url'),
                html_url=owner_data.get('html_url'),
                type=owner_data.get('type'),
            ) if owner_data else None,
            license=RepositoryLicense(
                name=license_data.get('name'),
                spdx_id=license_data.get('spdx_id'),
            ) if license_data else None,
            homepage=raw_item.get('homepage'),
        )

    @staticmethod
    def to_user_repo(raw_repo: Dict[str, Any]) -> UserRepo:
        return UserRepo(
            name=raw_repo.get('name', ''),
            description=raw_repo.get('description'),
            stargazers_count=raw_repo.get('stargazers_count') or 0,
            html_url=raw_repo.get('html_url'),
            updated_at=_require_timestamp(raw_repo, 'updated_at', 'UserRepo'),
        )

    @staticmethod
    def to_developer(raw_user: Dict[str, Any], popular_repo: Optional[UserRepo] = None) -> TrendingDeveloper:
        if not raw_user.get('login'):
            raise ValueError("login is required to build TrendingDeveloper.")

        return TrendingDeveloper(
            login=raw_user['login'],
            name=raw_user.get('name'),
            avatar_url=raw_user.get('avatar_url'),
            html_url=raw_user.get('html_url'),
            bio=raw_user.get('bio'),
            location=raw_user.get('location'),
            company=raw_user.get('company'),
            followers=raw_user.get('followers') or 0,
            following=raw_user.get('following') or 0,
            public_repos=raw_user.get('public_repos') or 0,
            created_at=_parse_timestamp(raw_user.get('created_at')),
            updated_at=_parse_timestamp(raw_user.get('updated_at')),
            popularRepo=PopularRepo(
                name=popular_repo.name,
                description=popular_repo.description,
                stargazers_count=popular_repo.stargazers_count,
                html_url=popular_repo.html_url,
            ) if popular_repo else None,
        )

    @staticmethod
    def to_issue(raw_issue: Dict[str, Any]) -> Issue:
        user_data = raw_issue.get('user')

        return Issue(
            id=raw_issue['id'],
            number=raw_issue['number'],
            title=raw_issue.get('title', ''),
            state=raw_issue.get('state', 'open'),
            html_url=raw_issue.get('html_url'),
            body=raw_issue.get('body'),
            user=IssueUser(
                login=user_data.get('login', ''),
                avatar_url=user_data.get('avatar_url'),
                html_url=user_data.get('html_url'),
            ) if user_data else None,
            labels=[
                IssueLabel(
                    id=label.get('id'),
                    name=label.get('name', ''),
                    color=label.get('color'),
                    description=label.get('description'),
                )
                for label in raw_issue.get('labels') or []
            ],
            created_at=_require_timestamp(raw_issue, 'created_at', 'Issue'),
            updated_at=_require_timestamp(raw_issue, 'updated_at', 'Issue'),
            comments=raw_issue.get('comments') or 0,
            is_pull_request=bool(raw_issue.get('pull_request')),
        )

    @staticmethod
    def to_rate_limit(raw_payload: Dict[str, Any]) -> RateLimitStatus:
        rate = raw_payload.get('rate') or {}
        return RateLimitStatus(
            limit=rate.get('limit', 0),
            remaining=rate.get('remaining', 0),
            reset=datetime.fromtimestamp(rate.get('reset', 0), tz=timezone.utc),
        )

    @staticmethod
    def to_repository_details(raw_repo: Dict[str, Any]) -> RepositoryDetails:
        return RepositoryDetails(
            name=raw_repo.get('name', ''),
            full_name=raw_repo.get('full_name', ''),
            description=raw_repo.get('description'),
            language=raw_repo.get('language'),
            topics=raw_repo.get('topics') or [],
            stargazers_count=raw_repo.get('stargazers_count') or 0,
            forks_count=raw_repo.get('forks_count') or 0,
            default_branch=raw_repo.get('default_branch') or 'main',
        )

    @staticmethod
    def to_content_entry(raw_entry: Dict[str, Any]) -> ContentEntry:
        return ContentEntry(
            name=raw_entry.get('name', ''),
            path=raw_entry.get('path', ''),
            type=raw_entry.get('type', 'file'),
            size=raw_entry.get('size'),
        )
