from __future__ import annotations

from typing import Any

from github import Auth, Github, GithubException
from rich.console import Console

console = Console()

README_MAX_CHARS = 3000


class GitHubError(Exception):
    pass


def _client(token: str | None) -> Github:
    return Github(auth=Auth.Token(token)) if token else Github()


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def list_repos(username: str, token: str | None = None) -> list[dict[str, Any]]:
    if not username:
        raise GitHubError("GitHub username not configured")
    try:
        user = _client(token).get_user(username)
        repos = list(user.get_repos(sort="updated"))
    except GithubException as exc:
        raise GitHubError(f"Failed to fetch repos from GitHub: {exc}") from exc

    return [
        {
            "name": repo.name,
            "fullName": repo.full_name,
            "description": repo.description,
            "githubUrl": repo.html_url,
            "homepage": repo.homepage,
            "topics": list(repo.topics or []),
            "language": repo.language,
            "stars": repo.stargazers_count,
            "isFork": repo.fork,
            "createdAt": _iso(repo.created_at),
            "updatedAt": _iso(repo.updated_at),
        }
        for repo in repos
        if not repo.fork
    ]


def fetch_repo_context(full_name: str, token: str | None = None) -> dict[str, Any]:
    context: dict[str, Any] = {
        "name": full_name.split("/")[-1],
        "description": "",
        "homepage": "",
        "topics": [],
        "languages": [],
        "readme": "",
    }
    try:
        repo = _client(token).get_repo(full_name)
    except Exception as exc:
        console.print(f"[dim]GitHub repo lookup failed for {full_name}: {exc}[/dim]")
        return context

    context["name"] = repo.name
    context["description"] = repo.description or ""
    context["homepage"] = repo.homepage or ""
    try:
        context["topics"] = repo.get_topics()
    except Exception as exc:
        console.print(f"[dim]Could not fetch topics: {exc}[/dim]")
    try:
        context["languages"] = list(repo.get_languages().keys())
    except Exception as exc:
        console.print(f"[dim]Could not fetch languages: {exc}[/dim]")
    try:
        readme = repo.get_readme().decoded_content.decode("utf-8", errors="replace")
        context["readme"] = readme[:README_MAX_CHARS]
    except Exception as exc:
        console.print(f"[dim]Could not fetch README: {exc}[/dim]")
    return context
