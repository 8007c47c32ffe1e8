from __future__ import annotations

import json
import sys
from typing import Any

import click
from rich.console import Console
from rich.panel import Panel

from casefolio.config import CATEGORIES, PersonalInfo, Settings, load_project_file
from casefolio.github import GitHubError, list_repos
from casefolio.ingest import confirm_draft, draft_from_repo, save_draft_json
from casefolio.llm import DraftError, get_llm
from casefolio.preview import render_project, render_project_list, show_record_diff
from casefolio.service import ProjectService, UnauthorizedError, ValidationError
from casefolio.session import LocalGate
from casefolio.store import ConflictError, DocumentStore, NotFoundError, StoreError

console = Console()

_HANDLED = (
    ValidationError,
    UnauthorizedError,
    ConflictError,
    NotFoundError,
    StoreError,
    GitHubError,
    DraftError,
    FileNotFoundError,
    ValueError,
    EnvironmentError,
)


def _fail(exc: Exception) -> None:
    console.print(f"[bold red]Error: {exc}[/bold red]")
    sys.exit(1)


def _parse_assignment(raw: str) -> tuple[str, Any]:
    if "=" not in raw:
        raise click.BadParameter(f"expected KEY=VALUE, got {raw!r}")
    key, value = raw.split("=", 1)
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    return key.strip(), parsed


class _Context:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.store = DocumentStore(settings.data_file, settings.mirror_file)
        self.service = ProjectService(self.store, LocalGate())


pass_ctx = click.make_pass_decorator(_Context)


@click.group()
@click.option(
    "--data-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the projects JSON file (default: CASEFOLIO_DATA_FILE or data/projects.json).",
)
@click.pass_context
def main(ctx: click.Context, data_file: str | None) -> None:
    ctx.obj = _Context(Settings.from_env(data_file=data_file))


@main.command()
@click.option("--name", default="", help="Owner name for personalInfo.")
@click.option("--email", default="", help="Contact email for personalInfo.")
@pass_ctx
def init(obj: _Context, name: str, email: str) -> None:
    """Create an empty data file."""
    created = obj.store.initialize(PersonalInfo(name=name, email=email).model_dump(by_alias=True))
    if created:
        console.print(f"[green]Created {obj.store.path}[/green]")
    else:
        console.print(f"[dim]{obj.store.path} already exists, leaving it alone.[/dim]")


@main.command("list")
@pass_ctx
def list_cmd(obj: _Context) -> None:
    """List every project in file order."""
    try:
        render_project_list(obj.service.list_projects())
    except _HANDLED as e:
        _fail(e)


@main.command()
@click.argument("slug")
@pass_ctx
def show(obj: _Context, slug: str) -> None:
    """Show one project and its case study."""
    try:
        render_project(obj.service.get_project(slug))
    except _HANDLED as e:
        _fail(e)


@main.command()
@click.option(
    "--file",
    "project_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file holding the project fields.",
)
@pass_ctx
def create(obj: _Context, project_file: str) -> None:
    """Create a project from a JSON file."""
    try:
        project = obj.service.create_project(load_project_file(project_file))
    except _HANDLED as e:
        _fail(e)
    console.print(f"[green]Created [bold]{project['slug']}[/bold].[/green]")


@main.command()
@click.argument("slug")
@click.option(
    "--file",
    "project_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with the fields to overwrite.",
)
@click.option(
    "--set",
    "assignments",
    multiple=True,
    help="KEY=VALUE field overwrite; VALUE is parsed as JSON when possible.",
)
@click.option(
    "--apply",
    "do_apply",
    is_flag=True,
    default=False,
    help="Write the change. Without this flag, only the diff is shown.",
)
@pass_ctx
def update(
    obj: _Context,
    slug: str,
    project_file: str | None,
    assignments: tuple[str, ...],
    do_apply: bool,
) -> None:
    """Shallow-merge fields onto an existing project."""
    fields: dict[str, Any] = {}
    try:
        if project_file:
            fields.update(load_project_file(project_file))
        for raw in assignments:
            key, value = _parse_assignment(raw)
            fields[key] = value
        if not fields:
            raise ValidationError("Nothing to update: pass --file or --set")

        before = obj.service.get_project(slug)
        show_record_diff(before, {**before, **fields}, slug)
        if not do_apply:
            console.print("\n[bold yellow]DRY RUN (pass --apply to write changes)[/bold yellow]")
            return
        obj.service.update_project(slug, fields)
    except _HANDLED as e:
        _fail(e)
    console.print(f"[green]Updated [bold]{slug}[/bold].[/green]")


@main.command()
@click.argument("slug")
@click.option("--yes", is_flag=True, default=False, help="Skip the confirmation prompt.")
@pass_ctx
def delete(obj: _Context, slug: str, yes: bool) -> None:
    """Delete a project."""
    if not yes:
        click.confirm(f"Delete project {slug!r}?", abort=True)
    try:
        obj.service.delete_project(slug)
    except _HANDLED as e:
        _fail(e)
    console.print(f"[green]Deleted [bold]{slug}[/bold].[/green]")


@main.command()
@pass_ctx
def repos(obj: _Context) -> None:
    """List importable GitHub repositories (forks excluded)."""
    try:
        items = list_repos(obj.settings.github_username, obj.settings.github_token or None)
        existing = set()
        if obj.store.path.exists():
            existing = {p.get("githubUrl") for p in obj.store.list_all()}
    except _HANDLED as e:
        _fail(e)
    for repo in items:
        marker = "[green]imported[/green]" if repo["githubUrl"] in existing else ""
        console.print(
            f"[cyan]{repo['name']}[/cyan] [dim]{repo.get('language') or ''}[/dim] "
            f"{repo.get('description') or ''} {marker}"
        )


@main.command("import")
@click.argument("repo")
@click.option(
    "--category",
    type=click.Choice(list(CATEGORIES)),
    default=None,
    help="Skip classification and draft this category.",
)
@click.option(
    "--provider",
    type=click.Choice(["ollama", "openai"]),
    default=None,
    help="LLM provider (default: ollama, or set CASEFOLIO_LLM_PROVIDER).",
)
@click.option(
    "--notes",
    default=None,
    help="Extra context for the draft, e.g. your role or results.",
)
@click.option(
    "--save",
    "save_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the draft JSON to this path.",
)
@click.option(
    "--apply",
    "do_apply",
    is_flag=True,
    default=False,
    help="Create the project after confirmation. Without this flag, only the draft is shown.",
)
@pass_ctx
def import_cmd(
    obj: _Context,
    repo: str,
    category: str | None,
    provider: str | None,
    notes: str | None,
    save_path: str | None,
    do_apply: bool,
) -> None:
    """Draft a project entry and case study from a GitHub repository."""
    console.print(Panel("[bold]casefolio[/bold] - GitHub import", style="cyan"))
    try:
        llm = get_llm(provider or obj.settings.llm_provider)
        draft = draft_from_repo(
            llm,
            repo,
            token=obj.settings.github_token or None,
            default_owner=obj.settings.github_username,
            category=category,
            user_description=notes,
        )
        if save_path:
            save_draft_json(draft, save_path)
    except _HANDLED as e:
        _fail(e)

    if not do_apply:
        render_project(draft)
        console.print("\n[bold yellow]DRY RUN (pass --apply to create the project)[/bold yellow]")
        return

    confirmed = confirm_draft(draft)
    if confirmed is None:
        return
    try:
        project = obj.service.create_project(confirmed)
    except _HANDLED as e:
        _fail(e)
    console.print(f"[green]Created [bold]{project['slug']}[/bold].[/green]")


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=5000, show_default=True, type=int)
@click.option("--debug", is_flag=True, default=False)
@pass_ctx
def serve(obj: _Context, host: str, port: int, debug: bool) -> None:
    """Run the JSON API."""
    from casefolio.web.api import create_app

    app = create_app(obj.settings)
    console.print(f"[bold]Serving {obj.settings.data_file} on http://{host}:{port}[/bold]")
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()
