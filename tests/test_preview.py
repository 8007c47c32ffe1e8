from __future__ import annotations

from unittest.mock import patch

from casefolio.preview import (
    _format_value,
    _label,
    case_study_sections,
    compute_record_diff,
    render_project,
    render_project_list,
    show_record_diff,
)


class TestFormatting:
    def test_label_splits_camel_case(self):
        assert _label("businessContext") == "Business context"
        assert _label("roi") == "Roi"

    def test_format_values(self):
        assert _format_value(True) == "yes"
        assert _format_value(["a", "b"]) == "- a\n- b"
        assert _format_value({"timeSaved": "2h", "cost": ""}) == "Time saved: 2h"
        assert _format_value([{"label": "Recall", "value": "82%"}]) == "Label: Recall | Value: 82%"


class TestCaseStudySections:
    def test_skips_empty_sections(self):
        tables = case_study_sections("data-science", {"overview": {"summary": "s"}})
        assert [t.title for t in tables] == ["Overview"]

    def test_none_case_study(self):
        assert case_study_sections(None, None) == []

    def test_engineering_sections(self):
        tables = case_study_sections(
            "ai-engineering",
            {"deployment": {"infrastructure": "k8s"}, "learnings": {"technical": ["cache"]}},
        )
        assert [t.title for t in tables] == ["Deployment", "Learnings"]

    def test_nonconforming_document_renders_raw(self):
        tables = case_study_sections(
            "data-science",
            {"overview": {"teamSize": "3-5 people", "summary": "s"}, "notes": "free text"},
        )
        assert [t.title for t in tables] == ["Overview", "Notes"]

    def test_non_object_document_renders_raw(self):
        tables = case_study_sections("data-science", ["loose", "notes"])
        assert [t.title for t in tables] == ["Case study"]


class TestRender:
    def test_render_without_case_study(self, capsys):
        render_project({"title": "A", "slug": "a", "description": "d"})
        assert "No case study." in capsys.readouterr().out

    def test_render_disabled_case_study(self, capsys, churn_project):
        churn_project["caseStudyEnabled"] = False
        render_project(churn_project)
        out = capsys.readouterr().out
        assert "disabled" in out
        assert "Churn Prediction" in out

    def test_render_empty_list(self, capsys):
        render_project_list([])
        assert "No projects yet." in capsys.readouterr().out


class TestRecordDiff:
    def test_diff_shows_changed_field(self):
        diff = compute_record_diff({"slug": "a", "title": "Old"}, {"slug": "a", "title": "New"})
        assert '-  "title": "Old"' in diff
        assert '+  "title": "New"' in diff
        assert "a/a" in diff

    def test_no_changes(self):
        with patch("casefolio.preview.console") as mock_console:
            assert show_record_diff({"slug": "a"}, {"slug": "a"}) == ""
        mock_console.print.assert_called_once_with("[dim](no changes)[/dim]")
