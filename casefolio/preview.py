from __future__ import annotations

import difflib
import json
from typing import Any

from pydantic import ValidationError
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from casefolio.casestudy import parse_case_study

console = Console()

_RECORD_FIELDS = [
    ("slug", "Slug"),
    ("projectType", "Type"),
    ("category", "Category"),
    ("githubUrl", "GitHub"),
    ("liveUrl", "Live URL"),
    ("externalBadge", "Badge"),
    ("thumbnail", "Thumbnail"),
    ("featured", "Featured"),
    ("order", "Order"),
    ("caseStudyEnabled", "Case study"),
]


def _label(key: str) -> str:
    words = []
    current = ""
    for ch in key:
        if ch.isupper() and current:
            words.append(current)
            current = ch.lower()
        else:
            current += ch
    words.append(current)
    return " ".join(words).capitalize()


def _is_empty(value: Any) -> bool:
    if isinstance(value, dict):
        return all(_is_empty(v) for v in value.values())
    if isinstance(value, list):
        return not value
    return value in (None, "")


def _pairs(item: dict[str, Any]) -> list[str]:
    return [f"{_label(k)}: {_format_value(v)}" for k, v in item.items() if not _is_empty(v)]


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, list):
        if value and all(isinstance(v, dict) for v in value):
            return "\n".join(" | ".join(_pairs(item)) for item in value)
        return "\n".join(f"- {v}" for v in value)
    if isinstance(value, dict):
        return "\n".join(_pairs(value))
    return str(value)


def _section_table(name: str, section: dict[str, Any]) -> Table | None:
    rows = [(k, v) for k, v in section.items() if not _is_empty(v)]
    if not rows:
        return None
    table = Table(title=_label(name), show_header=False, title_justify="left", expand=True)
    table.add_column("Field", style="bold cyan", width=18)
    table.add_column("Value")
    for key, value in rows:
        table.add_row(_label(key), _format_value(value))
    return table


def case_study_sections(category: str | None, case_study: dict[str, Any] | None) -> list[Table]:
    try:
        typed = parse_case_study(category, case_study)
    except ValidationError:
        dumped = case_study if isinstance(case_study, dict) else {"caseStudy": case_study}
    else:
        dumped = typed.model_dump(by_alias=True, exclude_none=True)
    tables = []
    for name, section in dumped.items():
        if isinstance(section, dict):
            table = _section_table(name, section)
        else:
            table = _section_table(name, {name: section})
        if table is not None:
            tables.append(table)
    return tables


def render_project(project: dict[str, Any]) -> None:
    header = Table(show_header=False, expand=True)
    header.add_column("Field", style="bold cyan", width=14)
    header.add_column("Value")
    header.add_row("Description", project.get("description", ""))
    for key, label in _RECORD_FIELDS:
        if project.get(key) not in (None, ""):
            header.add_row(label, _format_value(project[key]))
    if project.get("technologies"):
        header.add_row("Technologies", ", ".join(project["technologies"]))
    if project.get("tags"):
        header.add_row("Tags", ", ".join(project["tags"]))

    console.print(Panel(header, title=project.get("title", "(untitled)"), border_style="cyan"))

    if not project.get("caseStudy"):
        console.print("[dim]No case study.[/dim]")
        return
    if not project.get("caseStudyEnabled"):
        console.print("[dim]Case study present but disabled.[/dim]")

    tables = case_study_sections(project.get("category"), project["caseStudy"])
    console.print(Panel(Group(*tables), title="Case study", border_style="green"))


def render_project_list(projects: list[dict[str, Any]]) -> None:
    if not projects:
        console.print("[dim]No projects yet.[/dim]")
        return

    table = Table(title=f"Projects ({len(projects)})")
    table.add_column("Slug", style="cyan")
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("Category")
    table.add_column("Featured", justify="center")
    table.add_column("Case study", justify="center")
    for p in projects:
        table.add_row(
            p.get("slug", ""),
            p.get("title", ""),
            p.get("projectType", ""),
            (p.get("category") or "-").replace("-", " "),
            "*" if p.get("featured") else "",
            "yes" if p.get("caseStudyEnabled") else "",
        )
    console.print(table)


def compute_record_diff(before: dict[str, Any], after: dict[str, Any], slug: str = "") -> str:
    old_lines = json.dumps(before, indent=2, ensure_ascii=False).splitlines()
    new_lines = json.dumps(after, indent=2, ensure_ascii=False).splitlines()
    diff = difflib.unified_diff(
        old_lines,
        new_lines,
        fromfile=f"a/{slug or before.get('slug', '')}",
        tofile=f"b/{after.get('slug', slug)}",
        lineterm="",
    )
    return "\n".join(diff)


def _render_diff_panel(title: str, diff_text: str) -> Panel:
    text = Text()
    for line in diff_text.splitlines():
        if line.startswith("+++") or line.startswith("---"):
            text.append(line + "\n", style="bold")
        elif line.startswith("@@"):
            text.append(line + "\n", style="cyan")
        elif line.startswith("+"):
            text.append(line + "\n", style="green")
        elif line.startswith("-"):
            text.append(line + "\n", style="red")
        else:
            text.append(line + "\n")
    return Panel(text, title=title, border_style="cyan", expand=True)


def show_record_diff(before: dict[str, Any], after: dict[str, Any], slug: str = "") -> str:
    diff_text = compute_record_diff(before, after, slug)
    if diff_text:
        console.print(_render_diff_panel(f"{slug or before.get('slug', '')} (update)", diff_text))
    else:
        console.print("[dim](no changes)[/dim]")
    return diff_text
