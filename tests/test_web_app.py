from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from casefolio.service import ProjectService
from casefolio.session import LocalGate
from casefolio.store import DocumentStore

web_app = pytest.importorskip("casefolio.web.app")

REPOS = [
    {"name": "churn", "githubUrl": "https://github.com/ada/churn", "description": "Churn model"},
    {"name": "leads", "githubUrl": "https://github.com/ada/leads", "description": None},
]


class _Step:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


def _make_async(fn):
    async def _run(*args, **kwargs):
        return fn(*args, **kwargs)
    return _run


def _send_repos_message(service: ProjectService) -> list[str]:
    sent: list[str] = []

    def _message(content="", **kwargs):
        sent.append(content)
        msg = MagicMock()
        msg.send = AsyncMock()
        return msg

    with patch.object(web_app, "cl") as mock_cl, \
         patch.object(web_app, "service", service), \
         patch.object(web_app, "list_repos", return_value=REPOS):
        mock_cl.Message.side_effect = _message
        mock_cl.Step.return_value = _Step()
        mock_cl.make_async.side_effect = _make_async
        asyncio.run(web_app.on_message(SimpleNamespace(content="repos")))
    return sent


class TestReposMessage:

    def test_marks_imported_repos(self, store):
        sent = _send_repos_message(ProjectService(store, LocalGate()))
        assert len(sent) == 1
        assert "`churn` Churn model (already imported)" in sent[0]
        assert "`leads`" in sent[0]
        assert "leads` (already imported)" not in sent[0]

    def test_unreadable_data_file_reported(self, tmp_path):
        broken = DocumentStore(tmp_path / "missing.json")
        sent = _send_repos_message(ProjectService(broken, LocalGate()))
        assert len(sent) == 1
        assert sent[0].startswith("Could not list repositories:")
        assert "Could not read data file" in sent[0]
