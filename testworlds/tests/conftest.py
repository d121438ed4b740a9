"""
Pytest configuration and fixtures for testworlds tests.

Everything runs against InMemoryWorldStore; Postgres tests live in
test_postgres_store.py and skip without DATABASE_URL.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from testworlds.config import PACKAGE_DIR, settings
from testworlds.main import app
from testworlds.repos.memory_store import InMemoryWorldStore
from testworlds.routes import worlds as world_routes
from testworlds.services.fixture_loader import FixtureLoader
from testworlds.services.llm import GenerateOptions, GenerateResult, StreamEvent, finish_event, text_delta
from testworlds.services.seed_engine import SeedEngine

CATALOG_FIXTURES = PACKAGE_DIR / "fixtures"
SESSION_TS = 1_750_000_000_000


@pytest.fixture(scope="session")
def world_store():
    """Replaces the plugin's Postgres store for the whole session."""
    return InMemoryWorldStore()


@pytest.fixture
def store() -> InMemoryWorldStore:
    return InMemoryWorldStore()


@pytest.fixture
def loader() -> FixtureLoader:
    return FixtureLoader(CATALOG_FIXTURES)


@pytest.fixture
def engine(store, loader) -> SeedEngine:
    return SeedEngine(store, loader=loader, session_ts=SESSION_TS)


@pytest.fixture
def worlds_enabled(monkeypatch):
    """Turn test worlds on with a signing secret."""
    monkeypatch.setattr(settings, "TEST_WORLDS_ENABLED", True)
    monkeypatch.setattr(settings, "WORLD_TOKEN_SECRET", "test-world-secret-for-testing-only")


@pytest.fixture
def ai_fixtures_dir(tmp_path) -> Path:
    path = tmp_path / "ai"
    path.mkdir()
    return path


class ScriptedModel:
    """LanguageModel double returning one fixed response and counting calls."""

    def __init__(self, content: str = "Here is your onboarding site.", model_id: str = "scripted-model", delay: float = 0):
        self.content = content
        self._model_id = model_id
        self.delay = delay
        self.calls = 0
        self.usage = {"input_tokens": 12, "output_tokens": 7}

    @property
    def model_id(self) -> str:
        return self._model_id

    async def generate(self, options: GenerateOptions) -> GenerateResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return GenerateResult(content=self.content, usage=self.usage, finish_reason="end_turn")

    async def stream(self, options: GenerateOptions) -> AsyncIterator[StreamEvent]:
        self.calls += 1
        for word in self.content.split(" "):
            if self.delay:
                await asyncio.sleep(self.delay)
            yield text_delta(word + " ")
        yield finish_event(self.usage, "end_turn")


@pytest.fixture
def scripted_model() -> ScriptedModel:
    return ScriptedModel()


@pytest_asyncio.fixture(loop_scope="session")
async def async_client(store):
    """Async HTTP client against the ASGI app, reseeding into the memory store."""
    app.dependency_overrides[world_routes.get_store] = lambda: store
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def session_ts() -> int:
    return SESSION_TS


@pytest.fixture
def make_model():
    """Factory for ScriptedModel with custom content or delay."""
    return ScriptedModel
