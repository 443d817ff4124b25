import json
import unittest

from repo_nexus.application.insight_service import (
    InsightService,
    IssueInput,
    RoastContender,
    categorize_paths,
    strip_code_fences,
)
from repo_nexus.domain.exceptions import GitHubAPIError
from repo_nexus.domain.models import RepositoryReference

REPO = RepositoryReference(owner="octocat", name="demo")


class _FakeGenerator:
    def __init__(self, reply: str = "generated") -> None:
        self.reply = reply
        self.prompts = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


class _FakeRepoClient:
    def __init__(self, files=None, contents=None, readme=None, tree=None, repo=None) -> None:
        self.files = files or {}
        self.contents = contents or []
        self.readme = readme
        self.tree = tree or []
        self.repo = repo or {"name": "demo", "full_name": "octocat/demo", "description": "A demo", "language": "Python"}
        self.requested_files = []

    async def get_repository(self, session, full_name):
        if isinstance(self.repo, Exception):
            raise self.repo
        return self.repo

    async def get_contents(self, session, full_name, path=""):
        if isinstance(self.contents, Exception):
            raise self.contents
        return self.contents

    async def get_file_content(self, session, full_name, path):
        self.requested_files.append(path)
        content = self.files.get(path)
        if isinstance(content, Exception):
            raise content
        return content

    async def get_readme(self, session, full_name):
        if isinstance(self.readme, Exception):
            raise self.readme
        return self.readme

    async def get_full_file_tree(self, session, full_name):
        if isinstance(self.tree, Exception):
            raise self.tree
        return self.tree


def _entry(name: str, entry_type: str = "file") -> dict:
    return {"name": name, "path": name, "type": entry_type}


class TestHelpers(unittest.TestCase):
    def test_strip_code_fences(self) -> None:
        self.assertEqual(strip_code_fences("```mermaid\nflowchart TD\n  A-->B\n```"), "flowchart TD\n  A-->B")
        self.assertEqual(strip_code_fences("  flowchart TD\n  A-->B  "), "flowchart TD\n  A-->B")

    def test_categorize_paths(self) -> None:
        categories = categorize_paths([
            "app/page.tsx",
            "src/api/users.ts",
            "src/components/Button.tsx",
            "prisma/schema.prisma",
            "src/lib/format.ts",
            "tsconfig.json",
            ".github/workflows/ci.yml",
            "LICENSE",
        ])

        self.assertEqual(categories["pages"], ["app/page.tsx"])
        self.assertEqual(categories["apiRoutes"], ["src/api/users.ts"])
        self.assertEqual(categories["components"], ["src/components/Button.tsx"])
        self.assertEqual(categories["models"], ["prisma/schema.prisma"])
        self.assertEqual(categories["utils"], ["src/lib/format.ts"])
        self.assertEqual(categories["configs"], ["tsconfig.json", ".github/workflows/ci.yml"])
        self.assertEqual(categories["workflows"], [".github/workflows/ci.yml"])


class TestInsightService(unittest.IsolatedAsyncioTestCase):
    async def test_explain_issue_fills_prompt(self) -> None:
        generator = _FakeGenerator("explanation")
        service = InsightService(_FakeRepoClient(), generator)
        issue = IssueInput.model_validate({
            "title": "Crash on start",
            "number": 7,
            "labels": [{"name": "bug"}, {"name": "help wanted"}],
            "user": {"login": "octocat"},
        })

        explanation = await service.explain_issue(issue, "octocat/demo")

        self.assertEqual(explanation, "explanation")
        prompt = generator.prompts[0]
        self.assertIn("Issue Number: #7", prompt)
        self.assertIn("Labels: bug, help wanted", prompt)
        self.assertIn("Created by: octocat", prompt)
        self.assertIn("Issue Body: No description provided", prompt)

    async def test_generate_readme_samples_key_files(self) -> None:
        client = _FakeRepoClient(
            contents=[
                _entry("package.json"),
                _entry("main.py"),
                _entry("logo.png"),
                _entry("docs", "dir"),
                _entry("NOTES.md"),
            ],
            files={
                "package.json": '{"name": "demo"}',
                "main.py": "x" * 800,
                "NOTES.md": GitHubAPIError("Forbidden", status=403),
            },
        )
        generator = _FakeGenerator("# demo")
        service = InsightService(client, generator)

        readme, details = await service.generate_readme(REPO)

        self.assertEqual(readme, "# demo")
        self.assertEqual(details.name, "demo")
        self.assertEqual(client.requested_files, ["package.json", "main.py", "NOTES.md"])
        prompt = generator.prompts[0]
        self.assertIn('File: package.json\n{"name": "demo"}', prompt)
        self.assertIn("File: main.py\n" + "x" * 500 + "\n", prompt)
        self.assertNotIn("x" * 501, prompt)
        self.assertIn("File: NOTES.md\nContent not accessible", prompt)
        self.assertNotIn("logo.png", prompt)

    async def test_generate_readme_survives_unlistable_root(self) -> None:
        generator = _FakeGenerator()
        service = InsightService(_FakeRepoClient(contents=GitHubAPIError("Not Found", status=404)), generator)

        readme, _ = await service.generate_readme(REPO)

        self.assertEqual(readme, "generated")
        self.assertIn("Primary Language: Python", generator.prompts[0])

    async def test_generate_readme_missing_repository_propagates(self) -> None:
        service = InsightService(_FakeRepoClient(repo=GitHubAPIError("Not Found", status=404)), _FakeGenerator())

        with self.assertRaises(GitHubAPIError):
            await service.generate_readme(REPO)

    async def test_roast_collects_battle_stats(self) -> None:
        generator = _FakeGenerator("🔥")
        service = InsightService(_FakeRepoClient(), generator)
        user1 = RoastContender.model_validate({
            "user": {"login": "alice", "public_repos": 12, "followers": 3},
            "stats": {
                "languages": {"Go": 10, "Rust": 5, "C": 2, "Zig": 1},
                "totalStars": 40,
                "totalCommits": 900,
                "contributions": 120,
                "topRepos": [{"name": "fast", "stars": 30, "commitCount": 400}],
            },
        })
        user2 = RoastContender.model_validate({
            "user": {"login": "bob", "public_repos": 3},
            "stats": {"languages": {"Python": 1}, "totalStars": 2, "contributions": 8},
        })

        result = await service.generate_roast(user1, user2)

        self.assertEqual(result.to_payload(), {
            "roast": "🔥",
            "battleStats": {
                "totalCommitsCompared": 900,
                "totalStarsClashed": 42,
                "totalReposJudged": 15,
                "totalContributions": 128,
            },
            "topLanguages": {"user1": ["Go", "Rust", "C"], "user2": ["Python"]},
        })
        prompt = generator.prompts[0]
        self.assertIn("USER 1: alice", prompt)
        self.assertIn("Top Repo: fast (30 stars, 400 commits)", prompt)
        self.assertIn("Top Repo: None", prompt)

    async def test_visualize_strips_fences_and_reads_package_json(self) -> None:
        package = json.dumps({
            "dependencies": {"react": "^18.0.0"},
            "devDependencies": {"vitest": "^1.0.0"},
            "scripts": {"dev": "vite"},
        })
        client = _FakeRepoClient(
            readme="# Demo app",
            tree=[{"path": "app/page.tsx", "type": "blob"}, {"path": "src/api/users.ts", "type": "blob"}],
            files={"package.json": package},
        )
        generator = _FakeGenerator("```mermaid\nflowchart TD\n  UI-->API\n```")
        service = InsightService(client, generator)

        diagram, prompt = await service.visualize_repository(REPO)

        self.assertEqual(diagram, "flowchart TD\n  UI-->API")
        self.assertIs(prompt, generator.prompts[0])
        self.assertIn("# Demo app", prompt)
        self.assertIn('Dependencies: {"react": "^18.0.0", "vitest": "^1.0.0"}', prompt)
        self.assertIn('Scripts: {"dev": "vite"}', prompt)
        self.assertIn("- pages (1): app/page.tsx", prompt)
        self.assertEqual(client.requested_files, ["package.json"])

    async def test_visualize_falls_back_to_first_present_manifest(self) -> None:
        client = _FakeRepoClient(
            readme=GitHubAPIError("Not Found", status=404),
            tree=[{"path": "main.py", "type": "blob"}],
            files={"package.json": GitHubAPIError("Forbidden", status=403), "requirements.txt": "fastapi\n"},
        )
        generator = _FakeGenerator("flowchart TD")
        service = InsightService(client, generator)

        _, prompt = await service.visualize_repository(REPO)

        self.assertIn("No README available.", prompt)
        self.assertIn("Manifest: requirements.txt", prompt)
        self.assertNotIn("Dependencies:", prompt)
        self.assertEqual(client.requested_files, ["package.json", "requirements.txt"])

    async def test_visualize_needs_file_tree(self) -> None:
        service = InsightService(_FakeRepoClient(tree=GitHubAPIError("Not Found", status=404)), _FakeGenerator())

        with self.assertRaises(GitHubAPIError):
            await service.visualize_repository(REPO)
