"""Prompt templates for the generative-model features."""

import json
from typing import Dict, List, Optional, Sequence

from repo_nexus.domain.models import ProjectManifest, RepositoryDetails


def explain_issue_prompt(
    repo_name: str,
    title: str,
    number: int,
    body: Optional[str],
    labels: Sequence[str],
    author: Optional[str],
) -> str:
    return f"""
You are a senior software engineer helping explain GitHub issues to developers.

Repository: {repo_name}
Issue Title: {title}
Issue Number: #{number}
Issue Body: {body or 'No description provided'}
Labels: {', '.join(labels) or 'No labels'}
Created by: {author or 'Unknown'}

Please provide a comprehensive explanation that includes:

1. **Issue Summary**: What is the problem or feature request?
2. **Technical Context**: What part of the codebase is likely affected?
3. **Complexity Level**: Is this beginner, intermediate, or advanced?
4. **Approach to Fix**: Step-by-step guidance on how to approach solving this
5. **Key Considerations**: Important things to keep in mind while working on this
6. **Resources**: What documentation or knowledge might be helpful

Keep the explanation clear, actionable, and helpful for contributors of all levels. Use markdown formatting for better readability.
"""


def readme_prompt(details: RepositoryDetails, file_summaries: str) -> str:
    """
    Build the README drafting prompt.

    Args:
        details: Repository metadata.
        file_summaries: Pre-rendered `File: <name>` blocks with truncated contents.
    """
    return f"""Create a comprehensive README.md for the GitHub repository "{details.name}".

Repository Info:
- Name: {details.name}
- Description: {details.description or 'No description provided'}
- Primary Language: {details.language or 'Not specified'}
- Topics: {', '.join(details.topics) or 'None'}

Key Files Overview:
{file_summaries}

Create a README with these sections:

1. Project title with description
2. Key features (3-5 bullet points)
3. Installation instructions
4. Basic usage examples
5. Tech stack
6. Contributing guidelines
7. License information

Requirements:
- Use appropriate badges
- Include clear installation steps
- Add usage examples with code blocks
- Keep it professional and well-structured
- Use emojis for section headers
- Make it engaging but concise

Generate the complete README.md content:"""


def _contender_block(label: str, contender) -> str:
    user, stats = contender.user, contender.stats
    top_repo = stats.top_repos[0] if stats.top_repos else None
    top_repo_line = (
        f"{top_repo.name} ({top_repo.stars} stars, {top_repo.commit_count or 0} commits)"
        if top_repo else "None"
    )
    account_year = user.created_at.year if user.created_at else "Unknown"

    return f"""{label}: {user.login}
- Repos: {user.public_repos}
- Followers: {user.followers}
- Following: {user.following}
- Total Stars: {stats.total_stars}
- Total Forks: {stats.total_forks}
- Total Commits: {stats.total_commits or 0}
- Contributions: {stats.contributions}
- Top Languages: [{', '.join(stats.top_languages())}]
- Top Repo: {top_repo_line}
- Account Age: {account_year}
- Bio: {user.bio or 'No bio'}"""


def roast_prompt(user1, user2) -> str:
    """`user1`/`user2` are RoastContender instances."""
    login1, login2 = user1.user.login, user2.user.login
    return f"""You are a savage roast master analyzing GitHub profiles. Based on the data below, create a BRUTAL and SAVAGE roast for each user (2-3 lines each), and declare a winner based on their GitHub statistics. Don't hold back - make it spicy! 🔥

{_contender_block('USER 1', user1)}

{_contender_block('USER 2', user2)}

Format your response as:
🔥 **{login1}**: [2-3 line savage roast]

🔥 **{login2}**: [2-3 line savage roast]

🏆 **WINNER**: [Winner's username] - [1 line brutal reason why they dominated]

💀 **BATTLE VERDICT**: [2-3 line summary of who wins what categories and overall assessment]

Be absolutely RUTHLESS and SAVAGE. Roast their commit frequency, repo quality, follower-to-following ratio, language choices, bio, everything! Make it hurt but funny. No mercy!
When listing Top Languages, keep the array format (e.g. [TypeScript, JavaScript, Python]) so the frontend can render each language with its authentic color."""


def architecture_prompt(
    full_name: str,
    readme: Optional[str],
    file_paths: List[str],
    manifest: Optional[ProjectManifest],
    categories: Dict[str, List[str]],
) -> str:
    manifest_section = "No project manifest found."
    if manifest:
        manifest_section = f"Manifest: {manifest.filename}"
        if manifest.dependencies:
            manifest_section += f"\nDependencies: {json.dumps(manifest.dependencies)}"
        if manifest.scripts:
            manifest_section += f"\nScripts: {json.dumps(manifest.scripts)}"

    category_lines = "\n".join(
        f"- {name} ({len(paths)}): {', '.join(paths[:15])}"
        for name, paths in categories.items() if paths
    ) or "- (no recognisable layers)"

    readme_excerpt = (readme or "No README available.")[:3000]

    return f"""You are a software architect. Produce a detailed architecture diagram for the GitHub repository "{full_name}".

README (excerpt):
{readme_excerpt}

Project configuration:
{manifest_section}

Path categories:
{category_lines}

File tree sample:
{chr(10).join(file_paths)}

Instructions:
- Output ONLY Mermaid code, starting with `flowchart TD`.
- Group nodes into subgraphs by layer (UI/pages, API routes, services/utils, data/models, configuration, CI/workflows).
- Use short, unique node ids and human-readable labels.
- Draw edges for the main request and data flows between layers.
- Include external services (databases, third-party APIs) inferred from dependencies.
- Do not wrap the output in markdown code fences and do not add commentary."""
