from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console

console = Console()


class StoreError(Exception):
    pass


class StoreReadError(StoreError, OSError):
    pass


class StoreParseError(StoreError, ValueError):
    pass


class StoreWriteError(StoreError, OSError):
    pass


class ConflictError(Exception):
    pass


class NotFoundError(Exception):
    pass


def _dump(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


class DocumentStore:
    def __init__(self, path: str | Path, mirror_path: str | Path | None = None):
        self.path = Path(path)
        self.mirror_path = Path(mirror_path) if mirror_path else None

    def initialize(self, personal_info: dict[str, Any] | None = None) -> bool:
        if self.path.exists():
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.write_data({"projects": [], "personalInfo": personal_info or {}})
        return True

    def read_data(self) -> dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreReadError(f"Could not read data file {self.path}: {exc}") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreParseError(f"Malformed JSON in {self.path}: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("projects"), list):
            raise StoreParseError(
                f"Data file {self.path} must be an object with a 'projects' list"
            )
        return data

    def write_data(self, data: dict[str, Any]) -> None:
        content = _dump(data)
        try:
            self.path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise StoreWriteError(f"Could not write data file {self.path}: {exc}") from exc

        if self.mirror_path is None:
            return
        try:
            self.mirror_path.write_text(content, encoding="utf-8")
        except OSError as exc:
            console.print(
                f"[yellow]Could not sync mirror data file {self.mirror_path}: {exc}[/yellow]"
            )

    def list_all(self) -> list[dict[str, Any]]:
        return self.read_data()["projects"]

    def find_by_slug(self, slug: str) -> dict[str, Any] | None:
        for project in self.list_all():
            if project.get("slug") == slug:
                return project
        return None

    def personal_info(self) -> dict[str, Any]:
        return self.read_data().get("personalInfo") or {}

    def insert(self, record: dict[str, Any]) -> dict[str, Any]:
        data = self.read_data()
        slug = record.get("slug")
        if any(p.get("slug") == slug for p in data["projects"]):
            raise ConflictError(f'Project with slug "{slug}" already exists')

        data["projects"].append(record)
        self.write_data(data)
        return record

    def update_by_slug(self, slug: str, fields: dict[str, Any]) -> dict[str, Any]:
        data = self.read_data()
        projects = data["projects"]
        index = _index_of(projects, slug)
        if index is None:
            raise NotFoundError(f'Project with slug "{slug}" not found')

        new_slug = fields.get("slug")
        if new_slug and new_slug != slug:
            if any(p.get("slug") == new_slug for p in projects):
                raise ConflictError(f'Project with slug "{new_slug}" already exists')

        projects[index] = {**projects[index], **fields}
        self.write_data(data)
        return projects[index]

    def delete_by_slug(self, slug: str) -> bool:
        data = self.read_data()
        index = _index_of(data["projects"], slug)
        if index is None:
            return False

        del data["projects"][index]
        self.write_data(data)
        return True


def _index_of(projects: list[dict[str, Any]], slug: str) -> int | None:
    for i, project in enumerate(projects):
        if project.get("slug") == slug:
            return i
    return None
