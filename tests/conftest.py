from __future__ import annotations

from typing import List, Optional

import pytest

import config
from job_assist.completion import ServiceUnavailableError


class FakeCompletionClient:
    """Stands in for OllamaClient: replays canned replies and records prompts."""

    def __init__(self, replies=None, models: Optional[List[str]] = None) -> None:
        self.replies = list(replies or [])
        self.models = models
        self.calls: list = []
        self.model_lookups = 0

    def complete(self, prompt: str, model: str, system: Optional[str] = None) -> str:
        self.calls.append({"prompt": prompt, "model": model, "system": system})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply

    def list_models(self) -> List[str]:
        self.model_lookups += 1
        if self.models is None:
            raise ServiceUnavailableError("Ollama unreachable (test)")
        return list(self.models)

    def is_available(self) -> bool:
        return self.models is not None


@pytest.fixture(autouse=True)
def llm_log_files(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Keep the LLM audit logs out of the repository during tests."""
    requests_log = tmp_path / "llm_requests.log"
    responses_log = tmp_path / "llm_responses.log"
    monkeypatch.setattr(config, "LLM_REQUEST_LOG_FILE", requests_log)
    monkeypatch.setattr(config, "LLM_LOG_FILE", responses_log)
    return requests_log, responses_log


@pytest.fixture
def fake_client():
    def _make(*replies, models=None) -> FakeCompletionClient:
        return FakeCompletionClient(replies, models=models)
    return _make


@pytest.fixture
def application_dict() -> dict:
    return {
        "id": "app-1",
        "title": "Data Engineer",
        "status": "pending",
        "company": {"id": "c-1", "name": "Acme Analytics", "sector": "Software"},
        "location": "Lyon",
        "salary_range": "45k-55k",
        "job_url": "https://example.com/jobs/42",
        "notes": "Airflow, Spark and dbt on GCP.",
        "applied_at": "2026-10-01",
        "deadline": "2026-10-21",
    }


@pytest.fixture
def cv_dict() -> dict:
    return {
        "id": "doc-1",
        "type": "cv",
        "title": "Main CV",
        "content": "Jane Doe – Data engineer, 5 years of Python, Spark and Airflow.",
    }
