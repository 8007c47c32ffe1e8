from __future__ import annotations

from typing import Any

import pydantic
from rich.console import Console

from casefolio.config import ProjectCreate
from casefolio.session import SessionGate
from casefolio.store import DocumentStore, NotFoundError

console = Console()

REQUIRED_FIELDS = ("title", "slug", "description")


class ValidationError(Exception):
    pass


class UnauthorizedError(Exception):
    pass


def _format_errors(exc: pydantic.ValidationError) -> str:
    missing = [
        str(err["loc"][0])
        for err in exc.errors()
        if err["loc"] and err["loc"][0] in REQUIRED_FIELDS
        and (err["type"] == "missing" or err.get("input") in (None, "") or "empty" in err["msg"])
    ]
    if missing:
        return f"Title, slug, and description are required (missing: {', '.join(missing)})"
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class ProjectService:
    def __init__(self, store: DocumentStore, gate: SessionGate):
        self.store = store
        self.gate = gate

    def _authorize(self, context: Any) -> None:
        if not self.gate.is_authorized(context):
            raise UnauthorizedError("Unauthorized")

    def list_projects(self) -> list[dict[str, Any]]:
        return self.store.list_all()

    def get_project(self, slug: str) -> dict[str, Any]:
        project = self.store.find_by_slug(slug)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def personal_info(self) -> dict[str, Any]:
        return self.store.personal_info()

    def create_project(self, body: Any, context: Any = None) -> dict[str, Any]:
        self._authorize(context)
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        try:
            record = ProjectCreate.model_validate(body).to_record()
        except pydantic.ValidationError as exc:
            raise ValidationError(_format_errors(exc)) from exc

        created = self.store.insert(record)
        console.print(f"[dim]Created project {created['slug']}[/dim]")
        return created

    def update_project(self, slug: str, body: Any, context: Any = None) -> dict[str, Any]:
        self._authorize(context)
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")

        updated = self.store.update_by_slug(slug, body)
        console.print(f"[dim]Updated project {slug}[/dim]")
        return updated

    def delete_project(self, slug: str, context: Any = None) -> None:
        self._authorize(context)
        if not self.store.delete_by_slug(slug):
            raise NotFoundError("Project not found")
        console.print(f"[dim]Deleted project {slug}[/dim]")
