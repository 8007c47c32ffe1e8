from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from casefolio.casestudy import (
    AutomationCaseStudy,
    DataScienceCaseStudy,
    DataVizCaseStudy,
    EngineeringCaseStudy,
)

ProjectType = Literal[
    "deployed-app",
    "external-dashboard",
    "github-only",
    "case-study",
    "external-resource",
]

ProjectCategory = Literal[
    "data-science",
    "data-visualization",
    "ai-automation",
    "ai-engineering",
]

CATEGORIES: tuple[str, ...] = ProjectCategory.__args__

DEFAULT_PROJECT_TYPE = "github-only"
DEFAULT_DATA_FILE = "data/projects.json"
DEFAULT_ADMIN_PASSWORD = "admin123"

LLM_PROVIDER = Literal["ollama", "openai"]

DEFAULT_OLLAMA_MODEL = "qwen2.5-coder:7b"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    return _SLUG_RE.sub("-", text.lower()).strip("-")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectCreate(_CamelModel):
    title: str
    slug: str
    description: str
    tags: list[str] = []
    project_type: ProjectType = DEFAULT_PROJECT_TYPE
    category: ProjectCategory | None = None
    github_url: str | None = None
    live_url: str | None = None
    case_study_enabled: bool = False
    thumbnail: str | None = None
    external_badge: str | None = None
    technologies: list[str] = []
    featured: bool = False
    order: int | float | None = None
    case_study: dict[str, Any] | None = None

    @field_validator("title", "slug", "description")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("tags", "technologies", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("case_study_enabled", "featured", mode="before")
    @classmethod
    def none_to_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("project_type", mode="before")
    @classmethod
    def empty_to_default(cls, v: Any) -> Any:
        return v or DEFAULT_PROJECT_TYPE

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PersonalInfo(_CamelModel):
    name: str = ""
    title: str = ""
    email: str = ""
    github: str = ""
    linkedin: str = ""


class CategoryDecision(BaseModel):
    category: ProjectCategory
    reason: str = ""


class _DraftBase(_CamelModel):
    title: str
    slug: str = ""
    description: str
    tags: list[str] = []
    technologies: list[str] = []
    project_type: ProjectType = DEFAULT_PROJECT_TYPE
    live_url: str | None = None
    external_badge: str | None = None


class DataScienceDraft(_DraftBase):
    case_study: DataScienceCaseStudy = Field(default_factory=DataScienceCaseStudy)


class DataVizDraft(_DraftBase):
    case_study: DataVizCaseStudy = Field(default_factory=DataVizCaseStudy)


class AutomationDraft(_DraftBase):
    case_study: AutomationCaseStudy = Field(default_factory=AutomationCaseStudy)


class EngineeringDraft(_DraftBase):
    case_study: EngineeringCaseStudy = Field(default_factory=EngineeringCaseStudy)


DRAFT_MODELS: dict[str, type[_DraftBase]] = {
    "data-science": DataScienceDraft,
    "data-visualization": DataVizDraft,
    "ai-automation": AutomationDraft,
    "ai-engineering": EngineeringDraft,
}


class Settings(BaseModel):
    data_file: Path = Path(DEFAULT_DATA_FILE)
    mirror_file: Path | None = None
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    secret_key: str = "dev-key"
    github_token: str = ""
    github_username: str = ""
    llm_provider: LLM_PROVIDER = "ollama"

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "data_file": os.environ.get("CASEFOLIO_DATA_FILE", DEFAULT_DATA_FILE),
            "mirror_file": os.environ.get("CASEFOLIO_MIRROR_FILE") or None,
            "admin_password": os.environ.get("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
            "secret_key": os.environ.get("FLASK_SECRET_KEY", "dev-key"),
            "github_token": os.environ.get("GITHUB_TOKEN", ""),
            "github_username": os.environ.get("GITHUB_USERNAME", ""),
            "llm_provider": os.environ.get("CASEFOLIO_LLM_PROVIDER", "ollama"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def load_project_file(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Project file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Project file must contain a JSON object: {path}")
    return data
