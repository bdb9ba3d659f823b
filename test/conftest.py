from datetime import datetime, timezone
from typing import Optional

import pytest

from extraction.task_extractor import TaskExtractor
from ingestion.pipeline import IngestionPipeline
from llm.providers.base import AIBackendClient
from storage.memory_store import InMemoryStore
from vocal_clerk.errors import BackendUnavailable
from vocal_clerk.models import User, UserSettings

FIXED_NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeBackend(AIBackendClient):
    name = "fake"

    def __init__(self, response_text: Optional[str] = None, error: Optional[Exception] = None):
        super().__init__(model="test", timeout_s=5.0)
        self._response_text = response_text
        self._error = error
        self.prompts = []

    def extract(self, prompt: str, *, timeout_s: Optional[float] = None) -> str:
        self.prompts.append(prompt)
        if self._error is not None:
            raise self._error
        return self._response_text


@pytest.fixture
def fake_backend_factory():
    def _make(response_text: Optional[str] = None, error: Optional[Exception] = None):
        return FakeBackend(response_text, error)
    return _make


@pytest.fixture
def unavailable_backend():
    return FakeBackend(error=BackendUnavailable("connection refused"))


@pytest.fixture
def store():
    s = InMemoryStore()
    s.add_user(User(id="alice", username="alice", settings=UserSettings(ai_model="mock")))
    return s


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def pipeline_factory(store, fixed_clock):
    def _make(backend: AIBackendClient):
        return IngestionPipeline(
            store,
            backend_selector=lambda user: backend,
            extractor=TaskExtractor(clock=fixed_clock),
        )
    return _make
