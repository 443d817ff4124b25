"""Repository issue listing endpoints."""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from repo_nexus.api.dependencies import get_issue_service
from repo_nexus.application.issue_service import IssueService, parse_repository
from repo_nexus.domain.exceptions import GitHubAPIError, MissingTokenError, RateLimitExceededException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["issues"])


@router.get("/get-labeled-issues")
async def get_labeled_issues(
    repo: Optional[str] = Query(default=None),
    labels: Optional[str] = Query(default=None),
    state: Literal["open", "closed", "all"] = Query(default="open"),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100, alias="perPage"),
    bounty_signals: bool = Query(default=False, alias="bountySignals"),
    service: IssueService = Depends(get_issue_service),
):
    """
    Issues of a repository, pull requests excluded.

    Comma-separated labels are matched with OR semantics. `bountySignals`
    switches to a search for issues mentioning bounties or payouts.
    """
    reference = parse_repository(repo)

    try:
        issue_page = await service.labeled_issues(
            reference,
            labels=labels,
            state=state,
            page=page,
            per_page=per_page,
            bounty_signals=bounty_signals,
        )
    except MissingTokenError:
        return JSONResponse(
            {"error": "GitHub authentication not configured. Please set GITHUB_TOKEN in your environment."},
            status_code=401,
        )
    except RateLimitExceededException as e:
        logger.warning(f"Rate limited while fetching issues for {reference.full_name}: {e}")
        return JSONResponse(
            {"error": "GitHub API rate limit exceeded. Please wait or use an authenticated token."},
            status_code=429,
        )
    except GitHubAPIError as e:
        logger.error(f"Error fetching issues for {reference.full_name}: {e}")
        if e.status == 401:
            return JSONResponse({"error": "GitHub token is invalid or expired."}, status_code=401)
        if e.status == 403:
            return JSONResponse(
                {"error": "GitHub API rate limit exceeded. Please wait or use an authenticated token."},
                status_code=429,
            )
        return JSONResponse(
            {
                "error": "Failed to fetch repository issues",
                "hint": "Check the server logs or ensure the GitHub token is properly configured",
            },
            status_code=500,
        )

    return issue_page.to_payload()
