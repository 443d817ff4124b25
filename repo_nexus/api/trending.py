"""Trending repositories and developers endpoint."""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from repo_nexus import config
from repo_nexus.api.dependencies import get_trending_service
from repo_nexus.application.trending_service import TrendingService
from repo_nexus.domain.exceptions import GitHubAPIError
from repo_nexus.domain.models import TimeWindow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trending"])


def _cached(payload: dict) -> JSONResponse:
    return JSONResponse(payload, headers={"Cache-Control": config.CACHE_CONTROL})


@router.get("/trending")
@router.get("/api/trending")
async def get_trending(
    language: Optional[str] = Query(default=None),
    since: Optional[str] = Query(default="daily"),
    type: Literal["repositories", "developers"] = Query(default="repositories"),
    service: TrendingService = Depends(get_trending_service),
):
    """
    Trending repositories (z-score ranked) or developers.

    - **language**: optional language filter
    - **since**: daily, weekly or monthly; anything else is treated as daily
    - **type**: repositories or developers
    """
    window = TimeWindow.parse(since)
    language = language.strip() if language and language.strip() else None

    if type == "developers":
        developers = await service.trending_developers(language=language, window=window)
        if developers.date_range is None:
            return JSONResponse(developers.to_payload())
        return _cached(developers.to_payload())

    try:
        result = await service.trending_repositories(language=language, window=window)
    except GitHubAPIError as e:
        logger.error(f"Error fetching trending data: {e}")
        return JSONResponse(
            {"error": e.message or "Failed to fetch trending data"},
            status_code=e.status or 500,
        )

    return _cached(result.to_payload())
