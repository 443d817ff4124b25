"""Generative-model endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from repo_nexus.api.dependencies import get_insight_service
from repo_nexus.application.insight_service import InsightService, IssueInput, RoastContender
from repo_nexus.application.issue_service import parse_repository
from repo_nexus.domain.exceptions import GitHubAPIError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["insights"])


class ExplainIssueRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    issue: IssueInput
    repo_name: str = Field(..., min_length=1, alias="repoName")


class GenerateReadmeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    repo: Optional[str] = None
    repo_url: Optional[str] = Field(default=None, alias="repoUrl")


class RoastRequest(BaseModel):
    user1: RoastContender
    user2: RoastContender


@router.post("/explain-issue")
async def explain_issue(data: ExplainIssueRequest, service: InsightService = Depends(get_insight_service)):
    """Plain-language walkthrough of an issue for prospective contributors."""
    explanation = await service.explain_issue(data.issue, data.repo_name)
    return {
        "success": True,
        "explanation": explanation,
        "issue": {
            "title": data.issue.title,
            "number": data.issue.number,
            "url": data.issue.html_url,
        },
    }


@router.post("/generate-readme")
async def generate_readme(data: GenerateReadmeRequest, service: InsightService = Depends(get_insight_service)):
    """Draft a README from repository metadata. Accepts a GitHub URL or owner/name."""
    reference = parse_repository(data.repo_url or data.repo)

    try:
        readme, details = await service.generate_readme(reference)
    except GitHubAPIError as e:
        logger.error(f"Error generating README for {reference.full_name}: {e}")
        return JSONResponse({"error": e.message, "markdown": "", "content": ""}, status_code=500)

    return {
        "markdown": readme,
        "content": readme,
        "repoData": {
            "name": details.name,
            "description": details.description,
            "language": details.language,
            "topics": details.topics,
            "stars": details.stargazers_count,
            "forks": details.forks_count,
        },
    }


@router.post("/generate-roast")
async def generate_roast(data: RoastRequest, service: InsightService = Depends(get_insight_service)):
    result = await service.generate_roast(data.user1, data.user2)
    return result.to_payload()


@router.get("/visualize-repo")
async def visualize_repo(
    repo: Optional[str] = Query(default=None),
    service: InsightService = Depends(get_insight_service),
):
    """Mermaid architecture diagram for a repository."""
    reference = parse_repository(repo)

    try:
        diagram, prompt = await service.visualize_repository(reference)
    except GitHubAPIError as e:
        logger.error(f"Error visualizing repository {reference.full_name}: {e}")
        return JSONResponse({"error": "Failed to visualize repository"}, status_code=500)

    return {"diagram": diagram, "prompt": prompt}
