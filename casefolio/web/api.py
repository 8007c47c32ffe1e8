from __future__ import annotations

from flask import Flask, current_app, jsonify, request, session
from rich.console import Console

from casefolio.config import Settings
from casefolio.github import GitHubError, list_repos
from casefolio.ingest import draft_from_repo, parse_github_url
from casefolio.llm import DraftError, get_llm
from casefolio.service import ProjectService, UnauthorizedError, ValidationError
from casefolio.session import InvalidPasswordError, MissingPasswordError, PasswordGate
from casefolio.store import (
    ConflictError,
    DocumentStore,
    NotFoundError,
    StoreError,
)

console = Console()


def _service() -> ProjectService:
    return current_app.extensions["casefolio"]["service"]


def _settings() -> Settings:
    return current_app.extensions["casefolio"]["settings"]


def _gate() -> PasswordGate:
    return current_app.extensions["casefolio"]["gate"]


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def create_app(settings: Settings | None = None, llm_factory=get_llm) -> Flask:
    settings = settings or Settings.from_env()
    store = DocumentStore(settings.data_file, settings.mirror_file)
    gate = PasswordGate(settings.admin_password)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config.update(SESSION_COOKIE_SAMESITE="Lax", SESSION_COOKIE_HTTPONLY=True)
    app.extensions["casefolio"] = {
        "settings": settings,
        "gate": gate,
        "service": ProjectService(store, gate),
        "llm_factory": llm_factory,
    }

    @app.errorhandler(ValidationError)
    def handle_validation(exc):
        return _error(str(exc), 400)

    @app.errorhandler(UnauthorizedError)
    def handle_unauthorized(exc):
        return _error("Unauthorized", 401)

    @app.errorhandler(NotFoundError)
    def handle_not_found(exc):
        return _error("Project not found", 404)

    @app.errorhandler(ConflictError)
    def handle_conflict(exc):
        return _error(str(exc), 400)

    @app.errorhandler(StoreError)
    def handle_store(exc):
        console.print(f"[red]Data store error: {exc}[/red]")
        return _error(str(exc), 500)

    @app.get("/api/projects")
    def list_projects():
        return jsonify({"projects": _service().list_projects()})

    @app.get("/api/projects/<slug>")
    def get_project(slug: str):
        return jsonify({"project": _service().get_project(slug)})

    @app.post("/api/projects")
    def create_project():
        body = request.get_json(silent=True)
        project = _service().create_project(body, session)
        return jsonify({"project": project}), 201

    @app.put("/api/projects/<slug>")
    def update_project(slug: str):
        body = request.get_json(silent=True)
        project = _service().update_project(slug, body, session)
        return jsonify({"project": project})

    @app.delete("/api/projects/<slug>")
    def delete_project(slug: str):
        _service().delete_project(slug, session)
        return jsonify({"success": True})

    @app.get("/api/personal-info")
    def personal_info():
        return jsonify({"personalInfo": _service().personal_info()})

    @app.post("/api/auth")
    def login():
        body = request.get_json(silent=True) or {}
        try:
            _gate().login(session, body.get("password"))
        except MissingPasswordError as exc:
            return _error(str(exc), 400)
        except InvalidPasswordError as exc:
            return _error(str(exc), 401)
        session.permanent = True
        return jsonify({"success": True})

    @app.get("/api/auth")
    def auth_status():
        return jsonify({"authenticated": _gate().is_authorized(session)})

    @app.delete("/api/auth")
    def logout():
        _gate().logout(session)
        return jsonify({"success": True})

    @app.get("/api/github/repos")
    def github_repos():
        if not _gate().is_authorized(session):
            raise UnauthorizedError("Unauthorized")
        settings = _settings()
        if not settings.github_token:
            return _error("GitHub token not configured", 500)
        try:
            repos = list_repos(settings.github_username, settings.github_token)
        except GitHubError as exc:
            console.print(f"[red]GitHub API error: {exc}[/red]")
            return _error("Failed to fetch repos from GitHub", 500)
        return jsonify({"repos": repos})

    @app.post("/api/github/generate")
    def github_generate():
        if not _gate().is_authorized(session):
            raise UnauthorizedError("Unauthorized")
        body = request.get_json(silent=True) or {}
        repo_name = body.get("repoName")
        repo_url = body.get("repoUrl")
        if not repo_name or not repo_url:
            return _error("Repository name and URL are required", 400)

        settings = _settings()
        try:
            llm = current_app.extensions["casefolio"]["llm_factory"](settings.llm_provider)
        except (ValueError, EnvironmentError) as exc:
            return _error(f"LLM setup failed: {exc}", 500)

        try:
            draft = draft_from_repo(
                llm,
                repo_url if parse_github_url(repo_url) else repo_name,
                token=settings.github_token or None,
                default_owner=settings.github_username,
            )
        except (DraftError, ValueError) as exc:
            console.print(f"[red]Draft generation failed: {exc}[/red]")
            return _error("Failed to generate content", 500)
        draft["githubUrl"] = repo_url
        return jsonify({"project": draft})

    return app
