import pytest
from contextlib import asynccontextmanager
from types import SimpleNamespace

from jobcrawl.database import Database
from jobcrawl.schemas import RawJobRecord


@pytest.fixture
async def db():
    """Fresh in-memory database with the jobs table created."""
    database = Database("sqlite:///:memory:")
    await database.init()
    yield database
    await database.dispose()


@pytest.fixture
async def session(db):
    async with db.session() as session:
        yield session


@pytest.fixture
def make_record():
    """Factory for RawJobRecord with sensible defaults."""

    def _make(**overrides) -> RawJobRecord:
        data = {
            "title": "Backend Engineer",
            "company": "Acme",
            "link": "https://jobs.example.test/1",
            "source": "Naukri",
            "posted_date": "2026-10-15",
        }
        data.update(overrides)
        return RawJobRecord(**data)

    return _make


@pytest.fixture
def fake_browser(monkeypatch):
    """
    Replace the pipeline's browser session with one yielding state.page.

    Tracks how many sessions were opened and released.
    """
    state = SimpleNamespace(page=None, acquired=0, released=0, configs=[])

    @asynccontextmanager
    async def fake_session(config):
        state.acquired += 1
        state.configs.append(config)
        try:
            yield SimpleNamespace(page=state.page)
        finally:
            state.released += 1

    monkeypatch.setattr("jobcrawl.services.pipeline.browser_session", fake_session)
    return state
