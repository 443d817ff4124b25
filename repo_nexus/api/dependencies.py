"""FastAPI dependency providers. Tests swap these via app.dependency_overrides."""

from functools import lru_cache

from fastapi import Depends

from repo_nexus import config
from repo_nexus.application.insight_service import InsightService
from repo_nexus.application.issue_service import IssueService
from repo_nexus.application.trending_service import TrendingService
from repo_nexus.infrastructure.gemini_client import GeminiClient
from repo_nexus.infrastructure.github_client import GitHubRestClient


@lru_cache
def get_github_client() -> GitHubRestClient:
    return GitHubRestClient(token=config.GITHUB_TOKEN)


@lru_cache
def get_text_generator() -> GeminiClient:
    return GeminiClient(api_key=config.GEMINI_API_KEY, model=config.GEMINI_MODEL)


def get_trending_service(github_client: GitHubRestClient = Depends(get_github_client)) -> TrendingService:
    return TrendingService(github_client=github_client, debug=config.DEBUG)


def get_issue_service(github_client: GitHubRestClient = Depends(get_github_client)) -> IssueService:
    return IssueService(github_client=github_client)


def get_insight_service(
    github_client: GitHubRestClient = Depends(get_github_client),
    generator: GeminiClient = Depends(get_text_generator),
) -> InsightService:
    return InsightService(github_client=github_client, generator=generator)
