from __future__ import annotations

import json
from pathlib import Path

import pytest

from casefolio.store import DocumentStore

PERSONAL_INFO = {
    "name": "Ada Example",
    "title": "Data Scientist",
    "email": "ada@example.com",
    "github": "https://github.com/ada",
    "linkedin": "https://www.linkedin.com/in/ada/",
}


@pytest.fixture
def churn_project() -> dict:
    return {
        "title": "Churn Prediction",
        "slug": "churn-prediction",
        "description": "Predicts telecom customer churn.",
        "tags": ["Python", "ML"],
        "projectType": "deployed-app",
        "category": "data-science",
        "githubUrl": "https://github.com/ada/churn",
        "liveUrl": "https://churn.streamlit.app/",
        "caseStudyEnabled": True,
        "technologies": ["Random Forest", "Streamlit"],
        "featured": True,
        "caseStudy": {
            "overview": {
                "summary": "Built a churn early-warning system.",
                "role": "Data Scientist",
                "timeline": "8 Weeks",
                "teamSize": 1,
            },
            "problem": {
                "statement": "Churn was eroding revenue.",
                "businessContext": "Marketing needed a weekly at-risk list.",
                "goals": ["Reduce churn by 15%"],
            },
            "methodology": {
                "approach": "CRISP-DM",
                "processSteps": [{"title": "EDA", "description": "Found risk factors."}],
            },
            "results": {
                "metrics": [{"label": "Recall", "value": "82%", "trend": "up"}],
                "impact": "Churn dropped 3% in the pilot group.",
                "learnings": ["SMOTE mattered."],
            },
        },
    }


@pytest.fixture
def data_file(tmp_path: Path, churn_project: dict) -> Path:
    path = tmp_path / "projects.json"
    path.write_text(
        json.dumps({"projects": [churn_project], "personalInfo": PERSONAL_INFO}, indent=2),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def empty_file(tmp_path: Path) -> Path:
    path = tmp_path / "empty.json"
    path.write_text(json.dumps({"projects": [], "personalInfo": PERSONAL_INFO}), encoding="utf-8")
    return path


@pytest.fixture
def store(data_file: Path) -> DocumentStore:
    return DocumentStore(data_file)


@pytest.fixture
def empty_store(empty_file: Path) -> DocumentStore:
    return DocumentStore(empty_file)
