import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional

import aiohttp

from repo_nexus.domain.exceptions import GitHubAPIError
from repo_nexus.domain.models import (
    DateRange,
    RepositoryMetric,
    ScoredRepository,
    TimeWindow,
    TrendingDeveloper,
    UserRepo,
)
from repo_nexus.domain.scoring import (
    HIGHLY_TRENDING_Z,
    days_between,
    final_trending_score,
    raw_trending_score,
    star_velocity,
    z_scores,
)
from repo_nexus.infrastructure.acl import GitHubTranslator
from repo_nexus.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)

BRANCH_PAGE_SIZE = 15
FALLBACK_PAGE_SIZE = 25
TOP_N = 25
DEBUG_TOP_N = 10
RECENTLY_UPDATED_MIN_STARS = 10
RECENTLY_CREATED_MIN_STARS = 5
FALLBACK_MIN_STARS = 10

DEVELOPER_SEARCH_SIZE = 30
DEVELOPER_TOP_N = 25
DEVELOPER_REPO_SAMPLE = 5

CONNECTOR_LIMIT = 10

SCORE_FIELDS = ("raw_trending_score", "z_score", "stars_velocity", "final_trending_score")


def _build_query(qualifier: str, cutoff: DateRange, min_stars: int, language: Optional[str]) -> str:
    query = f"{qualifier}:>={cutoff.from_date.isoformat()} stars:>={min_stars}"
    if language:
        query += f" language:{language}"
    return query


def deduplicate(metrics: List[RepositoryMetric]) -> List[RepositoryMetric]:
    """Drops repeated ids, keeping the first occurrence and the original order."""
    seen = set()
    unique = []
    for metric in metrics:
        if metric.id in seen:
            continue
        seen.add(metric.id)
        unique.append(metric)
    return unique


def score_batch(batch: List[RepositoryMetric], now: datetime) -> List[ScoredRepository]:
    """Scores a batch against its own mean and standard deviation."""
    raw_scores = [raw_trending_score(metric, now) for metric in batch]
    batch_z_scores = z_scores(raw_scores)

    return [
        ScoredRepository(
            **dict(metric),
            raw_trending_score=raw_score,
            z_score=z_score,
            final_trending_score=final_trending_score(raw_score, z_score),
            stars_velocity=star_velocity(metric, now),
        )
        for metric, raw_score, z_score in zip(batch, raw_scores, batch_z_scores)
    ]


def rank(scored: List[ScoredRepository], limit: int = TOP_N) -> List[ScoredRepository]:
    # sorted() is stable with reverse=True, so equal scores keep batch order
    return sorted(scored, key=lambda repo: repo.final_trending_score, reverse=True)[:limit]


def build_debug_info(scored: List[ScoredRepository], ranked: List[ScoredRepository], now: datetime) -> Dict[str, Any]:
    """Read-only statistics about a scored batch. Never feeds back into ranking."""
    batch_z_scores = [repo.z_score for repo in scored]
    mean_z = sum(batch_z_scores) / len(batch_z_scores) if batch_z_scores else 0.0

    return {
        "algorithm": "Z-score based trending detection",
        "z_score_explanation": "z = (x - mean) / std_dev where x=score over the current batch",
        "scoring_rules": {
            "z > 1.5": "Highly trending (major boost)",
            "z > 0.5": "Moderately trending (moderate boost)",
            "z > 0": "Slightly trending (small boost)",
            "z <= 0": "Not trending (penalty applied, floored at 10% of raw score)",
        },
        "dataset_stats": {
            "total_repos": len(scored),
            "mean_z_score": round(mean_z, 3),
            "positive_z_count": sum(1 for z in batch_z_scores if z > 0),
            "highly_trending_count": sum(1 for z in batch_z_scores if z > HIGHLY_TRENDING_Z),
        },
        "top_results": [
            {
                "name": repo.full_name,
                "z_score": round(repo.z_score, 2),
                "stars_velocity": round(repo.stars_velocity, 3),
                "stars": repo.stargazers_count,
                "age_days": max(int(days_between(repo.created_at, now)), 0),
                "final_score": round(repo.final_trending_score, 3),
            }
            for repo in ranked[:DEBUG_TOP_N]
        ],
    }


def pick_popular_repo(repos: List[UserRepo], date_range: DateRange) -> Optional[UserRepo]:
    """Most-starred repo updated inside the window, else the most recently updated one."""
    cutoff = datetime.combine(date_range.from_date, time.min, tzinfo=timezone.utc)
    recent = [repo for repo in repos if repo.updated_at >= cutoff]
    if recent:
        # Equal star counts go to the later repo in the listing.
        return max(reversed(recent), key=lambda repo: repo.stargazers_count)
    return repos[0] if repos else None


@dataclass
class TrendingRepositoriesResult:
    repositories: List[RepositoryMetric]
    total_count: int
    date_range: DateRange
    generated_at: datetime
    fallback: bool = False
    debug: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        items = []
        for repo in self.repositories:
            item = repo.model_dump(mode="json")
            # Fallback items are unscored; keep the keys so both paths share one shape.
            for field in SCORE_FIELDS:
                item.setdefault(field, None)
            items.append(item)

        payload: Dict[str, Any] = {
            "items": items,
            "total_count": self.total_count,
            "generated_at": self.generated_at.isoformat(),
            "date_range": self.date_range.model_dump(mode="json"),
        }
        if self.fallback:
            payload["fallback"] = True
        if self.debug is not None:
            payload["debug"] = self.debug
        return payload


@dataclass
class TrendingDevelopersResult:
    developers: List[TrendingDeveloper]
    date_range: Optional[DateRange] = None
    generated_at: Optional[datetime] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "items": [developer.model_dump(mode="json") for developer in self.developers],
            "total_count": len(self.developers),
        }
        if self.generated_at is not None and self.date_range is not None:
            payload["generated_at"] = self.generated_at.isoformat()
            payload["date_range"] = self.date_range.model_dump(mode="json")
        return payload


class TrendingService:
    """
    Builds trending rankings from GitHub search results.

    Repositories: two concurrent searches are deduplicated into one batch,
    scored, z-score normalised against that batch and ranked. When both
    searches fail the service degrades to a single unscored search.
    Developers: a user search decorated with profile and popular-repo data.
    """

    def __init__(self, github_client: GitHubRestClient, debug: bool = False):
        self.github_client = github_client
        self.debug = debug

    async def trending_repositories(
        self,
        language: Optional[str] = None,
        window: TimeWindow = TimeWindow.DAILY,
        now: Optional[datetime] = None,
    ) -> TrendingRepositoriesResult:
        """
        Raises:
            GitHubAPIError: Only when the fallback search fails as well.
        """
        now = now or datetime.now(timezone.utc)
        date_range = DateRange.for_window(window, now)

        async with aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=CONNECTOR_LIMIT),
        ) as session:
            try:
                batch = await self._fetch_batch(session, language, date_range)
            except GitHubAPIError as e:
                logger.error(f"Advanced trending search failed, falling back to simple search: {e}")
                return await self._fallback(session, language, date_range, now)

        scored = score_batch(batch, now)
        ranked = rank(scored)

        logger.info(
            f"Ranked {len(ranked)} of {len(scored)} repositories "
            f"(since={window.value}, language={language or 'any'})."
        )

        return TrendingRepositoriesResult(
            repositories=ranked,
            total_count=len(ranked),
            date_range=date_range,
            generated_at=now,
            debug=build_debug_info(scored, ranked, now) if self.debug else None,
        )

    async def _fetch_batch(
        self,
        session: aiohttp.ClientSession,
        language: Optional[str],
        date_range: DateRange,
    ) -> List[RepositoryMetric]:
        """Runs both searches concurrently; a failed branch contributes nothing."""
        recently_updated, recently_created = await asyncio.gather(
            self._search_branch(
                session,
                "recently-updated",
                _build_query("pushed", date_range, RECENTLY_UPDATED_MIN_STARS, language),
                sort="updated",
            ),
            self._search_branch(
                session,
                "recently-created",
                _build_query("created", date_range, RECENTLY_CREATED_MIN_STARS, language),
                sort="stars",
            ),
        )

        if recently_updated is None and recently_created is None:
            raise GitHubAPIError("Both trending searches failed.")

        return deduplicate((recently_updated or []) + (recently_created or []))

    async def _search_branch(
        self,
        session: aiohttp.ClientSession,
        label: str,
        query: str,
        sort: str,
    ) -> Optional[List[RepositoryMetric]]:
        """Returns the translated items, or None if the search failed."""
        try:
            raw_items, _ = await self.github_client.search_repositories(
                session, query, sort=sort, order="desc", per_page=BRANCH_PAGE_SIZE,
            )
        except GitHubAPIError as e:
            logger.warning(f"Search branch '{label}' failed, continuing without it: {e}")
            return None

        return self._translate_items(raw_items, label)

    @staticmethod
    def _translate_items(raw_items: List[Dict], label: str) -> List[RepositoryMetric]:
        metrics = []
        for raw_item in raw_items:
            try:
                metrics.append(GitHubTranslator.to_metric(raw_item))
            except ValueError as e:
                logger.warning(f"Skipping malformed item from '{label}': {e}")
        return metrics

    async def _fallback(
        self,
        session: aiohttp.ClientSession,
        language: Optional[str],
        date_range: DateRange,
        now: datetime,
    ) -> TrendingRepositoriesResult:
        query = f"stars:>={FALLBACK_MIN_STARS}"
        if language:
            query += f" language:{language}"

        raw_items, total_count = await self.github_client.search_repositories(
            session, query, sort="updated", order="desc", per_page=FALLBACK_PAGE_SIZE,
        )

        return TrendingRepositoriesResult(
            repositories=self._translate_items(raw_items, "fallback"),
            total_count=total_count,
            date_range=date_range,
            generated_at=now,
            fallback=True,
        )

    async def trending_developers(
        self,
        language: Optional[str] = None,
        window: TimeWindow = TimeWindow.DAILY,
        now: Optional[datetime] = None,
    ) -> TrendingDevelopersResult:
        now = now or datetime.now(timezone.utc)
        date_range = DateRange.for_window(window, now)
        query = f"{language} in:readme type:user" if language else "type:user"

        async with aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=CONNECTOR_LIMIT),
        ) as session:
            try:
                users = await self.github_client.search_users(
                    session, query, sort="repositories", order="desc", per_page=DEVELOPER_SEARCH_SIZE,
                )
            except GitHubAPIError as e:
                logger.error(f"Developer search failed: {e}")
                return TrendingDevelopersResult(developers=[])

            logins = [user["login"] for user in users[:DEVELOPER_TOP_N] if user.get("login")]
            developers = await asyncio.gather(
                *(self._decorate_developer(session, login, date_range) for login in logins)
            )

        return TrendingDevelopersResult(
            developers=[developer for developer in developers if developer is not None],
            date_range=date_range,
            generated_at=now,
        )

    async def _decorate_developer(
        self,
        session: aiohttp.ClientSession,
        login: str,
        date_range: DateRange,
    ) -> Optional[TrendingDeveloper]:
        try:
            raw_user = await self.github_client.get_user(session, login)
        except GitHubAPIError as e:
            logger.warning(f"Error fetching developer {login}: {e}")
            return None

        popular_repo = None
        try:
            raw_repos = await self.github_client.get_user_repos(session, login, per_page=DEVELOPER_REPO_SAMPLE)
            repos = []
            for raw_repo in raw_repos:
                try:
                    repos.append(GitHubTranslator.to_user_repo(raw_repo))
                except ValueError:
                    continue
            popular_repo = pick_popular_repo(repos, date_range)
        except GitHubAPIError as e:
            logger.warning(f"Could not fetch repos for {login}: {e}")

        try:
            return GitHubTranslator.to_developer(raw_user, popular_repo)
        except ValueError as e:
            logger.warning(f"Skipping developer {login}: {e}")
            return None
