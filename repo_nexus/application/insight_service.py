import asyncio
import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Tuple

import aiohttp
from pydantic import BaseModel, ConfigDict, Field

from repo_nexus.application import prompts
from repo_nexus.domain.exceptions import GitHubAPIError
from repo_nexus.domain.models import (
    ContentEntry,
    IssueLabel,
    IssueUser,
    ProjectManifest,
    RepositoryDetails,
    RepositoryReference,
)
from repo_nexus.infrastructure.acl import GitHubTranslator
from repo_nexus.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)

ROOT_LISTING_LIMIT = 30
KEY_FILE_LIMIT = 10
FILE_EXCERPT_CHARS = 500
TREE_SAMPLE_SIZE = 400
TOP_LANGUAGES = 3

KEY_FILE_NAMES = ("package.json", "requirements.txt", "Cargo.toml", "pom.xml", "go.mod")
KEY_FILE_SUFFIXES = (".py", ".js", ".ts", ".jsx", ".tsx", ".md")
PROJECT_FILES = ("package.json", "requirements.txt", "Cargo.toml", "pom.xml", "go.mod", "composer.json")

_FENCE_PATTERN = re.compile(r"^```[\w-]*\s*\n?|\n?```\s*$")


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...


class IssueInput(BaseModel):
    """Issue as sent by the client; only the fields the prompt needs."""
    title: str
    number: int
    body: Optional[str] = None
    html_url: Optional[str] = None
    labels: List[IssueLabel] = Field(default_factory=list)
    user: Optional[IssueUser] = None


class ContenderProfile(BaseModel):
    login: str
    public_repos: int = 0
    followers: int = 0
    following: int = 0
    created_at: Optional[datetime] = None
    bio: Optional[str] = None


class ContenderRepo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    stars: int = 0
    commit_count: Optional[int] = Field(None, alias="commitCount")


class ContenderStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    languages: Dict[str, Any] = Field(default_factory=dict)
    total_stars: int = Field(0, alias="totalStars")
    total_forks: int = Field(0, alias="totalForks")
    total_commits: Optional[int] = Field(None, alias="totalCommits")
    contributions: int = 0
    top_repos: List[ContenderRepo] = Field(default_factory=list, alias="topRepos")

    def top_languages(self) -> List[str]:
        # Clients send languages already ordered by usage.
        return list(self.languages)[:TOP_LANGUAGES]


class RoastContender(BaseModel):
    user: ContenderProfile
    stats: ContenderStats


@dataclass
class RoastResult:
    roast: str
    battle_stats: Dict[str, int]
    top_languages: Dict[str, List[str]]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "roast": self.roast,
            "battleStats": self.battle_stats,
            "topLanguages": self.top_languages,
        }


def is_key_file(entry: ContentEntry) -> bool:
    if entry.type != "file":
        return False
    return any(name in entry.name for name in KEY_FILE_NAMES) or entry.name.endswith(KEY_FILE_SUFFIXES)


def categorize_paths(paths: List[str]) -> Dict[str, List[str]]:
    """Buckets file paths into coarse architectural layers."""
    categories: Dict[str, List[str]] = {
        "pages": [],
        "apiRoutes": [],
        "components": [],
        "models": [],
        "utils": [],
        "configs": [],
        "workflows": [],
    }
    for original in paths:
        path = original.lower()
        if path.startswith("app/") or "/pages/" in path or "/page." in path:
            categories["pages"].append(original)
        elif "/api/" in path or "/routes/" in path or "route." in path:
            categories["apiRoutes"].append(original)
        elif "/components/" in path or "/ui/" in path:
            categories["components"].append(original)
        elif any(token in path for token in ("model", "schema", "entity", "prisma")):
            categories["models"].append(original)
        elif any(token in path for token in ("util", "helper", "service", "/lib/", "hook")):
            categories["utils"].append(original)
        elif path.endswith((".yml", ".yaml", ".json", ".rc")) or "config" in path or ".env" in path:
            categories["configs"].append(original)

        # Workflows may also have landed in configs above.
        if path.startswith(".github/workflows/"):
            categories["workflows"].append(original)
    return categories


def strip_code_fences(text: str) -> str:
    return _FENCE_PATTERN.sub("", text.strip()).strip()


def battle_stats(user1: RoastContender, user2: RoastContender) -> Dict[str, int]:
    return {
        "totalCommitsCompared": (user1.stats.total_commits or 0) + (user2.stats.total_commits or 0),
        "totalStarsClashed": user1.stats.total_stars + user2.stats.total_stars,
        "totalReposJudged": user1.user.public_repos + user2.user.public_repos,
        "totalContributions": user1.stats.contributions + user2.stats.contributions,
    }


class InsightService:
    """
    Natural-language features backed by a text generator: issue explanations,
    README drafts, profile roasts and architecture diagrams.
    """

    def __init__(self, github_client: GitHubRestClient, generator: TextGenerator):
        self.github_client = github_client
        self.generator = generator

    async def explain_issue(self, issue: IssueInput, repo_name: str) -> str:
        prompt = prompts.explain_issue_prompt(
            repo_name=repo_name,
            title=issue.title,
            number=issue.number,
            body=issue.body,
            labels=[label.name for label in issue.labels],
            author=issue.user.login if issue.user else None,
        )
        return await self.generator.generate(prompt)

    async def generate_readme(self, repo: RepositoryReference) -> Tuple[str, RepositoryDetails]:
        """
        Drafts a README from repository metadata and a sample of key root files.

        Raises:
            GitHubAPIError: If the repository itself cannot be fetched.
        """
        async with aiohttp.ClientSession() as session:
            raw_repo = await self.github_client.get_repository(session, repo.full_name)
            details = GitHubTranslator.to_repository_details(raw_repo)

            try:
                raw_entries = await self.github_client.get_contents(session, repo.full_name)
            except GitHubAPIError as e:
                logger.warning(f"Could not list files of {repo.full_name}: {e}")
                raw_entries = []

            entries = [GitHubTranslator.to_content_entry(raw) for raw in raw_entries[:ROOT_LISTING_LIMIT]]
            key_files = [entry for entry in entries if is_key_file(entry)][:KEY_FILE_LIMIT]

            summaries = await asyncio.gather(
                *(self._summarize_file(session, repo, entry) for entry in key_files)
            )

        prompt = prompts.readme_prompt(details, "\n\n".join(summaries))
        readme = await self.generator.generate(prompt)
        return readme, details

    async def _summarize_file(
        self,
        session: aiohttp.ClientSession,
        repo: RepositoryReference,
        entry: ContentEntry,
    ) -> str:
        try:
            content = await self.github_client.get_file_content(session, repo.full_name, entry.path)
        except GitHubAPIError as e:
            logger.warning(f"Could not read {entry.path} in {repo.full_name}: {e}")
            content = None
        excerpt = content[:FILE_EXCERPT_CHARS] if content else "Content not accessible"
        return f"File: {entry.name}\n{excerpt}"

    async def generate_roast(self, user1: RoastContender, user2: RoastContender) -> RoastResult:
        roast = await self.generator.generate(prompts.roast_prompt(user1, user2))
        return RoastResult(
            roast=roast,
            battle_stats=battle_stats(user1, user2),
            top_languages={
                "user1": user1.stats.top_languages(),
                "user2": user2.stats.top_languages(),
            },
        )

    async def visualize_repository(self, repo: RepositoryReference) -> Tuple[str, str]:
        """
        Asks the model for a Mermaid architecture diagram.

        Returns:
            Tuple of (diagram, prompt used).

        Raises:
            GitHubAPIError: If the file tree cannot be fetched.
        """
        async with aiohttp.ClientSession() as session:
            try:
                readme = await self.github_client.get_readme(session, repo.full_name)
            except GitHubAPIError as e:
                logger.info(f"No README for {repo.full_name}: {e}")
                readme = None

            tree = await self.github_client.get_full_file_tree(session, repo.full_name)
            file_paths = [node["path"] for node in tree if node.get("path")]
            manifest = await self._find_manifest(session, repo)

        prompt = prompts.architecture_prompt(
            full_name=repo.full_name,
            readme=readme,
            file_paths=file_paths[:TREE_SAMPLE_SIZE],
            manifest=manifest,
            categories=categorize_paths(file_paths),
        )
        diagram = await self.generator.generate(prompt)
        return strip_code_fences(diagram), prompt

    async def _find_manifest(
        self,
        session: aiohttp.ClientSession,
        repo: RepositoryReference,
    ) -> Optional[ProjectManifest]:
        """First project file present wins; only package.json is parsed."""
        for filename in PROJECT_FILES:
            try:
                content = await self.github_client.get_file_content(session, repo.full_name, filename)
            except GitHubAPIError as e:
                logger.warning(f"Could not read {filename} in {repo.full_name}: {e}")
                continue
            if content is None:
                continue

            if filename != "package.json":
                return ProjectManifest(filename=filename)

            try:
                parsed = json.loads(content)
            except json.JSONDecodeError:
                parsed = None
            if not isinstance(parsed, dict):
                logger.warning(f"Unparseable package.json in {repo.full_name}")
                return ProjectManifest(filename=filename)

            dependencies = {**(parsed.get("dependencies") or {}), **(parsed.get("devDependencies") or {})}
            return ProjectManifest(
                filename=filename,
                dependencies={name: str(version) for name, version in dependencies.items()},
                scripts={name: str(cmd) for name, cmd in (parsed.get("scripts") or {}).items()} or None,
            )
        return None
