from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest

from casefolio.config import (
    AutomationDraft,
    CategoryDecision,
    DataScienceDraft,
    EngineeringDraft,
)
from casefolio.ingest import (
    GITHUB_URL_RE,
    _build_draft_context,
    draft_from_repo,
    generate_draft,
    parse_github_url,
    resolve_repo,
    save_draft_json,
)
from casefolio.llm import DraftError, invoke_with_retry


@pytest.fixture
def repo_meta() -> dict:
    return {
        "name": "lead-qualifier",
        "description": "Scores inbound leads",
        "homepage": "",
        "topics": ["n8n", "crm"],
        "languages": ["JavaScript"],
        "readme": "# Lead Qualifier\n\nAn n8n workflow that scores leads with GPT-4.",
    }


def _automation_draft() -> AutomationDraft:
    return AutomationDraft.model_validate(
        {
            "title": "Automated Lead Qualifier",
            "slug": "Automated Lead Qualifier",
            "description": "AI agent that scores inbound leads.",
            "tags": ["n8n", "CRM"],
            "technologies": ["n8n", "GPT-4"],
            "caseStudy": {
                "overview": {"summary": "AI agent", "role": "Automation Engineer"},
                "results": {"roi": {"timeSaved": "20h/wk"}},
            },
        }
    )


def _mock_llm(*outputs) -> MagicMock:
    mock_llm = MagicMock()
    mock_structured = MagicMock()
    mock_structured.invoke.side_effect = list(outputs)
    mock_llm.with_structured_output.return_value = mock_structured
    return mock_llm


class TestParseGithubUrl:
    def test_https_url(self):
        assert parse_github_url("https://github.com/user/repo") == ("user", "repo")

    def test_https_url_with_git(self):
        assert parse_github_url("https://github.com/user/repo.git") == ("user", "repo")

    def test_url_with_extra_path(self):
        assert parse_github_url("https://github.com/ada/churn/tree/main") == ("ada", "churn")

    def test_non_github_url(self):
        assert parse_github_url("https://gitlab.com/user/repo") is None

    def test_plain_text(self):
        assert parse_github_url("not a url at all") is None

    def test_regex_finds_url_in_text(self):
        m = GITHUB_URL_RE.search("see https://github.com/user/repo please")
        assert m is not None
        assert m.group(2) == "repo"


class TestResolveRepo:
    def test_url(self):
        assert resolve_repo("https://github.com/ada/churn") == (
            "ada/churn",
            "https://github.com/ada/churn",
        )

    def test_owner_slash_name(self):
        assert resolve_repo("ada/churn")[0] == "ada/churn"

    def test_bare_name_uses_default_owner(self):
        assert resolve_repo("churn", default_owner="ada")[1] == "https://github.com/ada/churn"

    def test_bare_name_without_owner_raises(self):
        with pytest.raises(ValueError, match="Cannot resolve"):
            resolve_repo("churn")


class TestBuildDraftContext:
    def test_includes_all_sources(self, repo_meta):
        ctx = _build_draft_context("https://github.com/ada/lead-qualifier", repo_meta, "I was solo")
        assert "https://github.com/ada/lead-qualifier" in ctx
        assert "Scores inbound leads" in ctx
        assert "n8n, crm" in ctx
        assert "JavaScript" in ctx
        assert "Lead Qualifier" in ctx
        assert "I was solo" in ctx

    def test_placeholders_for_missing_metadata(self):
        ctx = _build_draft_context("https://github.com/ada/x", {"name": "x"})
        assert "No description provided" in ctx
        assert "Topics: None" in ctx
        assert "Languages: Unknown" in ctx
        assert "No README available" in ctx


class TestGenerateDraft:
    def test_classifies_then_drafts_matching_variant(self, repo_meta):
        mock_llm = _mock_llm(
            CategoryDecision(category="ai-automation", reason="n8n workflow"),
            _automation_draft(),
        )
        draft = generate_draft(mock_llm, "https://github.com/ada/lead-qualifier", repo_meta)

        calls = [c.args[0] for c in mock_llm.with_structured_output.call_args_list]
        assert calls == [CategoryDecision, AutomationDraft]
        assert draft["category"] == "ai-automation"
        assert draft["caseStudy"]["results"]["roi"]["timeSaved"] == "20h/wk"
        assert "maintenance" in draft["caseStudy"]

    def test_forces_repo_fields(self, repo_meta):
        mock_llm = _mock_llm(_automation_draft())
        draft = generate_draft(
            mock_llm,
            "https://github.com/ada/lead-qualifier",
            repo_meta,
            category="ai-automation",
        )
        assert draft["githubUrl"] == "https://github.com/ada/lead-qualifier"
        assert draft["caseStudyEnabled"] is True
        assert draft["projectType"] == "github-only"
        assert draft["slug"] == "automated-lead-qualifier"
        mock_llm.with_structured_output.assert_called_once_with(AutomationDraft)

    def test_slug_falls_back_to_title(self, repo_meta):
        mock_llm = _mock_llm(
            EngineeringDraft(title="RAG Service", description="Answers questions.")
        )
        draft = generate_draft(mock_llm, "https://github.com/ada/rag", repo_meta, category="ai-engineering")
        assert draft["slug"] == "rag-service"

    def test_homepage_becomes_live_url(self, repo_meta):
        repo_meta["homepage"] = "https://leads.example.com"
        mock_llm = _mock_llm(DataScienceDraft(title="X", description="d"))
        draft = generate_draft(mock_llm, "https://github.com/ada/x", repo_meta, category="data-science")
        assert draft["liveUrl"] == "https://leads.example.com"

    def test_draft_is_valid_create_body(self, repo_meta, empty_store):
        from casefolio.service import ProjectService
        from casefolio.session import LocalGate

        mock_llm = _mock_llm(_automation_draft())
        draft = generate_draft(mock_llm, "https://github.com/ada/l", repo_meta, category="ai-automation")
        created = ProjectService(empty_store, LocalGate()).create_project(draft)
        assert created["caseStudy"] == draft["caseStudy"]

    def test_never_touches_store(self, repo_meta, store, data_file):
        before = data_file.read_text()
        mock_llm = _mock_llm(_automation_draft())
        generate_draft(mock_llm, "https://github.com/ada/l", repo_meta, category="ai-automation")
        assert data_file.read_text() == before


class TestDraftFromRepo:
    @patch("casefolio.ingest.fetch_repo_context")
    def test_fetches_context_for_resolved_repo(self, mock_fetch, repo_meta):
        mock_fetch.return_value = repo_meta
        mock_llm = _mock_llm(_automation_draft())
        draft = draft_from_repo(
            mock_llm, "lead-qualifier", token="t", default_owner="ada", category="ai-automation"
        )
        mock_fetch.assert_called_once_with("ada/lead-qualifier", "t")
        assert draft["githubUrl"] == "https://github.com/ada/lead-qualifier"


class TestInvokeWithRetry:
    def test_returns_result(self):
        invocable = MagicMock()
        invocable.invoke.return_value = "ok"
        assert invoke_with_retry(invocable, []) == "ok"

    def test_wraps_final_failure(self, monkeypatch):
        monkeypatch.setenv("CASEFOLIO_MAX_RETRIES", "1")
        invocable = MagicMock()
        invocable.invoke.side_effect = ConnectionError("connection refused")
        with pytest.raises(DraftError, match="connection refused"):
            invoke_with_retry(invocable, [], step_name="Drafting")

    def test_none_output_is_a_failure(self, monkeypatch):
        monkeypatch.setenv("CASEFOLIO_MAX_RETRIES", "1")
        invocable = MagicMock()
        invocable.invoke.return_value = None
        with pytest.raises(DraftError, match="no structured output"):
            invoke_with_retry(invocable, [])


class TestSaveDraftJson:
    def test_saves_valid_json(self, tmp_path):
        out = tmp_path / "draft.json"
        save_draft_json({"title": "Café", "slug": "cafe"}, out)
        text = out.read_text(encoding="utf-8")
        assert json.loads(text)["title"] == "Café"
        assert text.endswith("\n")


class TestConfirmDraft:
    @patch("casefolio.ingest.Prompt.ask", return_value="y")
    def test_confirm_yes(self, _mock_ask):
        from casefolio.ingest import confirm_draft
        assert confirm_draft({"title": "A", "slug": "a"}) == {"title": "A", "slug": "a"}

    @patch("casefolio.ingest.Prompt.ask", return_value="n")
    def test_confirm_no(self, _mock_ask):
        from casefolio.ingest import confirm_draft
        assert confirm_draft({"title": "A", "slug": "a"}) is None

    @patch("casefolio.ingest.Prompt.ask")
    def test_confirm_edit(self, mock_ask):
        mock_ask.side_effect = [
            "edit",
            "New Title",
            "new-title",
            "New description",
            "",
            "Python, Go",
            "backend, api",
            "y",
        ]
        from casefolio.ingest import confirm_draft
        result = confirm_draft(
            {"title": "A", "slug": "a", "description": "d", "caseStudy": {"overview": {}}}
        )
        assert result["title"] == "New Title"
        assert result["slug"] == "new-title"
        assert result["technologies"] == ["Python", "Go"]
        assert result["tags"] == ["backend", "api"]
        assert "liveUrl" not in result
        assert result["caseStudy"] == {"overview": {}}
