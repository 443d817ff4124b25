"""GitHub token and rate-limit status."""

import aiohttp
from fastapi import APIRouter, Depends

from repo_nexus.api.dependencies import get_github_client
from repo_nexus.domain.exceptions import GitHubAPIError
from repo_nexus.infrastructure.acl import GitHubTranslator
from repo_nexus.infrastructure.github_client import GitHubRestClient

router = APIRouter(prefix="/api", tags=["status"])


@router.get("/github-status")
async def github_status(github_client: GitHubRestClient = Depends(get_github_client)):
    if not github_client.has_token:
        return {"hasToken": False, "error": "GITHUB_TOKEN not configured in environment variables"}

    try:
        async with aiohttp.ClientSession() as session:
            raw_payload = await github_client.get_rate_limit(session)
    except GitHubAPIError as e:
        return {"hasToken": True, "error": e.message}

    rate_limit = GitHubTranslator.to_rate_limit(raw_payload)
    return {
        "hasToken": True,
        "rateLimitRemaining": rate_limit.remaining,
        "rateLimitReset": rate_limit.reset.isoformat(),
        "rateLimitLimit": rate_limit.limit,
    }
