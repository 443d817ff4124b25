import aiohttp
import asyncio
import base64
import logging
from typing import Any, Dict, List, Optional, Tuple

from repo_nexus.domain.exceptions import GitHubAPIError, MissingTokenError, RateLimitExceededException

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"

DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30, connect=10)
# Each trending search branch gives up after this long and counts as failed.
SEARCH_TIMEOUT = aiohttp.ClientTimeout(total=10)
USER_REPOS_TIMEOUT = aiohttp.ClientTimeout(total=5)

Params = Dict[str, Any]


class GitHubRestClient:
    """
    Client for the GitHub REST v3 API.

    Every call is a single attempt: failures surface as GitHubAPIError and the
    caller decides whether to degrade or propagate. Methods return raw JSON;
    GitHubTranslator turns it into domain models.
    """

    def __init__(self, token: Optional[str] = None, api_url: str = GITHUB_API):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "NEXUS-App",
        }
        if token:
            self.headers["Authorization"] = f"token {token}"

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    def require_token(self) -> None:
        if not self.token:
            raise MissingTokenError(
                "GitHub token not configured. Please set GITHUB_TOKEN in your environment."
            )

    async def _get(
        self,
        session: aiohttp.ClientSession,
        path: str,
        params: Optional[Params] = None,
        timeout: aiohttp.ClientTimeout = DEFAULT_TIMEOUT,
    ) -> Any:
        url = f"{self.api_url}{path}"
        try:
            async with session.get(url, params=params, headers=self.headers, timeout=timeout) as response:
                if response.status >= 400:
                    await self._raise_for_response(response)
                try:
                    return await response.json()
                except (aiohttp.ContentTypeError, ValueError) as e:
                    logger.warning(f"GET {path} returned an undecodable body: {e!r}")
                    raise GitHubAPIError(
                        f"Undecodable response body: {e}", status=response.status,
                    ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"GET {path} failed: {e!r}")
            raise GitHubAPIError(str(e) or e.__class__.__name__) from e

    @staticmethod
    async def _raise_for_response(response: aiohttp.ClientResponse) -> None:
        if response.status in (403, 429) and response.headers.get("X-RateLimit-Remaining") == "0":
            raise RateLimitExceededException(
                reset_at=response.headers.get("X-RateLimit-Reset"), status=response.status,
            )

        try:
            payload = await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            # Proxies and gateways answer with HTML bodies.
            payload = None
        message = payload.get("message") if isinstance(payload, dict) else None

        raise GitHubAPIError(message or response.reason or f"HTTP {response.status}", status=response.status)

    async def search_repositories(
        self,
        session: aiohttp.ClientSession,
        query: str,
        sort: str,
        order: str = "desc",
        per_page: int = 15,
        timeout: aiohttp.ClientTimeout = SEARCH_TIMEOUT,
    ) -> Tuple[List[Dict], int]:
        """
        Runs a repository search.

        Returns:
            Tuple of (raw items, upstream total_count).
        """
        data = await self._get(
            session,
            "/search/repositories",
            params={"q": query, "sort": sort, "order": order, "per_page": per_page},
            timeout=timeout,
        )
        return data.get("items", []), data.get("total_count", 0)

    async def search_users(
        self,
        session: aiohttp.ClientSession,
        query: str,
        sort: str = "repositories",
        order: str = "desc",
        per_page: int = 30,
    ) -> List[Dict]:
        data = await self._get(
            session,
            "/search/users",
            params={"q": query, "sort": sort, "order": order, "per_page": per_page},
        )
        return data.get("items", [])

    async def search_issues(
        self,
        session: aiohttp.ClientSession,
        query: str,
        per_page: int,
        page: int,
        sort: str = "updated",
        order: str = "desc",
    ) -> Tuple[List[Dict], int]:
        data = await self._get(
            session,
            "/search/issues",
            params={"q": query, "sort": sort, "order": order, "per_page": per_page, "page": page},
        )
        items = data.get("items", [])
        return items, data.get("total_count", len(items))

    async def get_user(self, session: aiohttp.ClientSession, login: str) -> Dict:
        return await self._get(session, f"/users/{login}")

    async def get_user_repos(
        self,
        session: aiohttp.ClientSession,
        login: str,
        per_page: int = 5,
    ) -> List[Dict]:
        return await self._get(
            session,
            f"/users/{login}/repos",
            params={"sort": "updated", "direction": "desc", "per_page": per_page},
            timeout=USER_REPOS_TIMEOUT,
        )

    async def get_rate_limit(self, session: aiohttp.ClientSession) -> Dict:
        return await self._get(session, "/rate_limit")

    async def get_repository(self, session: aiohttp.ClientSession, full_name: str) -> Dict:
        return await self._get(session, f"/repos/{full_name}")

    async def list_issues(
        self,
        session: aiohttp.ClientSession,
        full_name: str,
        state: str = "open",
        per_page: int = 10,
        page: int = 1,
        labels: Optional[str] = None,
    ) -> List[Dict]:
        params: Params = {
            "state": state,
            "per_page": per_page,
            "page": page,
            "sort": "updated",
            "direction": "desc",
        }
        if labels:
            params["labels"] = labels
        return await self._get(session, f"/repos/{full_name}/issues", params=params)

    async def get_contents(
        self,
        session: aiohttp.ClientSession,
        full_name: str,
        path: str = "",
    ) -> List[Dict]:
        """Lists a directory; a file path yields a single-element list."""
        data = await self._get(session, f"/repos/{full_name}/contents/{path}")
        return data if isinstance(data, list) else [data]

    async def get_file_content(
        self,
        session: aiohttp.ClientSession,
        full_name: str,
        path: str,
    ) -> Optional[str]:
        """
        Fetches and decodes a single file.

        Returns None when the path does not exist or is not a file.
        """
        try:
            data = await self._get(session, f"/repos/{full_name}/contents/{path}")
        except GitHubAPIError as e:
            if e.status == 404:
                return None
            raise

        if isinstance(data, list) or data.get("type") != "file" or not data.get("content"):
            return None
        return base64.b64decode(data["content"]).decode("utf-8", errors="replace")

    async def get_readme(self, session: aiohttp.ClientSession, full_name: str) -> str:
        data = await self._get(session, f"/repos/{full_name}/readme")
        return base64.b64decode(data.get("content", "")).decode("utf-8", errors="replace")

    async def get_full_file_tree(self, session: aiohttp.ClientSession, full_name: str) -> List[Dict]:
        """Returns every blob in the default branch, walking repo -> branch -> recursive tree."""
        repo = await self.get_repository(session, full_name)
        branch = await self._get(session, f"/repos/{full_name}/branches/{repo['default_branch']}")
        tree_sha = branch["commit"]["commit"]["tree"]["sha"]
        tree = await self._get(session, f"/repos/{full_name}/git/trees/{tree_sha}", params={"recursive": 1})
        return [node for node in tree.get("tree", []) if node.get("type") == "blob"]
