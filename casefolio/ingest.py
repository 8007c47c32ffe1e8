from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from casefolio.config import (
    CATEGORIES,
    DEFAULT_PROJECT_TYPE,
    DRAFT_MODELS,
    CategoryDecision,
    slugify,
)
from casefolio.github import fetch_repo_context
from casefolio.llm import invoke_with_retry

console = Console()

CATEGORY_SYSTEM_PROMPT = """\
You are casefolio, a tool that turns GitHub repositories into portfolio
entries for a data scientist / AI engineer.

You will receive metadata and README content for one repository. Decide which
ONE category fits it best:

- data-science: ML models, statistical analysis, predictive modeling, data
  analysis notebooks.
- data-visualization: dashboards, Tableau / Power BI reports, charts,
  interactive visualizations.
- ai-automation: workflow automation, bots, n8n / Zapier flows, RPA.
- ai-engineering: production ML systems, APIs, infrastructure, LLM apps, RAG.

Output ONLY the structured data: the category and a one-sentence reason.
"""

DRAFT_SYSTEM_PROMPT = """\
You are casefolio, a tool that writes portfolio project entries and case
studies from GitHub repositories.

You will receive the chosen category, repository metadata and README content.
Produce a project entry:

- title: a concise, human-readable project name (not a slug).
- slug: lowercase words joined by hyphens, derived from the title.
- description: a polished 1-2 sentence summary of what the project does.
- tags: 3-6 short tags. technologies: clean display names of the main tools.
- projectType: one of deployed-app, external-dashboard, github-only,
  case-study, external-resource. Use github-only unless a live deployment or
  dashboard is evident.
- liveUrl: a deployed URL only if one is given in the metadata.
- caseStudy: fill EVERY section of the case-study structure for the category.
  Infer metrics and details from the README where possible and write
  realistic process steps grounded in what the repository does.

RULES:
- Output ONLY the structured data. No explanation, no preamble.
- Never invent a liveUrl.
"""

GITHUB_URL_RE = re.compile(
    r"https?://github\.com/([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)"
)


def parse_github_url(url: str) -> tuple[str, str] | None:
    m = GITHUB_URL_RE.search(url)
    if m:
        owner = m.group(1)
        name = m.group(2)
        if name.endswith(".git"):
            name = name[:-4]
        return owner, name
    return None


def resolve_repo(repo: str, default_owner: str = "") -> tuple[str, str]:
    parsed = parse_github_url(repo)
    if parsed:
        owner, name = parsed
    elif "/" in repo.strip("/"):
        owner, name = repo.strip("/").split("/", 1)
    elif default_owner:
        owner, name = default_owner, repo.strip()
    else:
        raise ValueError(
            f"Cannot resolve repository {repo!r}: give owner/name, a GitHub URL, "
            "or set GITHUB_USERNAME"
        )
    return f"{owner}/{name}", f"https://github.com/{owner}/{name}"


def _build_draft_context(
    repo_url: str,
    meta: dict[str, Any],
    user_description: str | None = None,
) -> str:
    sections: list[str] = [f"Repository URL: {repo_url}"]

    meta_lines = []
    if meta.get("name"):
        meta_lines.append(f"  Repo name: {meta['name']}")
    meta_lines.append(
        f"  GitHub description: {meta.get('description') or 'No description provided'}"
    )
    if meta.get("homepage"):
        meta_lines.append(f"  Homepage/demo URL: {meta['homepage']}")
    meta_lines.append(f"  Topics: {', '.join(meta.get('topics') or []) or 'None'}")
    meta_lines.append(
        f"  Languages: {', '.join(meta.get('languages') or []) or 'Unknown'}"
    )
    sections.append("GitHub API metadata:\n" + "\n".join(meta_lines))

    sections.append(
        f"README content (first 3000 chars):\n{meta.get('readme') or 'No README available'}"
    )

    if user_description:
        sections.append(f"User-provided notes:\n{user_description}")

    return "\n\n---\n\n".join(sections)


def classify_category(llm: BaseChatModel, context: str) -> CategoryDecision:
    structured_llm = llm.with_structured_output(CategoryDecision)
    return invoke_with_retry(
        structured_llm,
        [SystemMessage(content=CATEGORY_SYSTEM_PROMPT), HumanMessage(content=context)],
        step_name="Category classification",
    )


def generate_draft(
    llm: BaseChatModel,
    repo_url: str,
    meta: dict[str, Any],
    category: str | None = None,
    user_description: str | None = None,
) -> dict[str, Any]:
    context = _build_draft_context(repo_url, meta, user_description)

    if category not in CATEGORIES:
        with console.status("Classifying repository...", spinner="dots"):
            decision = classify_category(llm, context)
        category = decision.category
        console.print(f"[dim]Category: {category} ({decision.reason})[/dim]")

    draft_model = DRAFT_MODELS[category]
    with console.status("Drafting case study with LLM...", spinner="dots"):
        structured_llm = llm.with_structured_output(draft_model)
        draft = invoke_with_retry(
            structured_llm,
            [
                SystemMessage(content=DRAFT_SYSTEM_PROMPT),
                HumanMessage(content=f"Category: {category}\n\n{context}"),
            ],
            step_name="Case study drafting",
        )

    record = draft.model_dump(by_alias=True, exclude_none=True)
    record["slug"] = slugify(record.get("slug") or record.get("title") or meta.get("name", ""))
    record["category"] = category
    record["projectType"] = record.get("projectType") or DEFAULT_PROJECT_TYPE
    record["githubUrl"] = repo_url
    record["caseStudyEnabled"] = True
    if meta.get("homepage") and not record.get("liveUrl"):
        record["liveUrl"] = meta["homepage"]
    return record


def draft_from_repo(
    llm: BaseChatModel,
    repo: str,
    token: str | None = None,
    default_owner: str = "",
    category: str | None = None,
    user_description: str | None = None,
) -> dict[str, Any]:
    full_name, repo_url = resolve_repo(repo, default_owner)
    with console.status("Fetching GitHub metadata...", spinner="dots"):
        meta = fetch_repo_context(full_name, token)
    return generate_draft(
        llm, repo_url, meta, category=category, user_description=user_description
    )


def display_draft(draft: dict[str, Any]) -> None:
    table = Table(title="Generated Project Draft", show_header=False)
    table.add_column("Field", style="bold cyan", width=14)
    table.add_column("Value")

    table.add_row("Title", draft.get("title", ""))
    table.add_row("Slug", draft.get("slug", ""))
    table.add_row("Description", draft.get("description", ""))
    table.add_row("Category", draft.get("category") or "(none)")
    table.add_row("Type", draft.get("projectType", ""))
    table.add_row("GitHub", draft.get("githubUrl") or "(none)")
    table.add_row("Live URL", draft.get("liveUrl") or "(none)")
    table.add_row("Technologies", ", ".join(draft.get("technologies") or []) or "(none)")
    table.add_row("Tags", ", ".join(draft.get("tags") or []) or "(none)")

    console.print()
    console.print(table)
    console.print()


def _edit_draft(draft: dict[str, Any]) -> dict[str, Any]:
    console.print("[dim]Press Enter to keep the current value.[/dim]\n")

    edited = dict(draft)
    edited["title"] = Prompt.ask("Title", default=draft.get("title", ""))
    edited["slug"] = Prompt.ask("Slug", default=draft.get("slug", ""))
    edited["description"] = Prompt.ask("Description", default=draft.get("description", ""))
    edited["liveUrl"] = Prompt.ask("Live URL", default=draft.get("liveUrl", "")) or None

    tech_str = Prompt.ask(
        "Technologies (comma-separated)",
        default=", ".join(draft.get("technologies") or []),
    )
    edited["technologies"] = [t.strip() for t in tech_str.split(",") if t.strip()]

    tags_str = Prompt.ask(
        "Tags (comma-separated)",
        default=", ".join(draft.get("tags") or []),
    )
    edited["tags"] = [t.strip() for t in tags_str.split(",") if t.strip()]

    if edited["liveUrl"] is None:
        edited.pop("liveUrl")
    return edited


def confirm_draft(draft: dict[str, Any]) -> dict[str, Any] | None:
    display_draft(draft)

    choice = Prompt.ask(
        "[bold]Create this project?[/bold]",
        choices=["y", "n", "edit"],
        default="y",
    )

    if choice == "n":
        console.print("[yellow]Cancelled.[/yellow]")
        return None
    elif choice == "edit":
        draft = _edit_draft(draft)
        display_draft(draft)
        final = Prompt.ask(
            "[bold]Create the edited project?[/bold]",
            choices=["y", "n"],
            default="y",
        )
        if final == "n":
            console.print("[yellow]Cancelled.[/yellow]")
            return None

    return draft


def save_draft_json(draft: dict[str, Any], path: str | Path) -> None:
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(draft, f, indent=2, ensure_ascii=False)
        f.write("\n")
    console.print(f"[green]Draft saved to {path}[/green]")
