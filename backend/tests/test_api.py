"""
Tests for the HTTP API

Tests cover:
- GET /api/jobs filtering and pagination
- POST /api/crawl validation, success and failure responses
- POST /api/alert outcomes
- GET /health, GET /api/verify-db and GET /metrics
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from jobcrawl.api.alerts import get_mailer
from jobcrawl.config import Settings
from jobcrawl.exceptions import CrawlFailure
from jobcrawl.main import app
from jobcrawl.services.alerts import Mailer
from jobcrawl.services.pipeline import CrawlResult
from jobcrawl.services.storage import PersistResult, persist


@pytest.fixture
async def client(db):
    app.state.db = db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def mailer():
    fake = MagicMock(spec=Mailer)
    fake.send = AsyncMock(return_value=True)
    app.dependency_overrides[get_mailer] = lambda: fake
    return fake


class TestListJobs:
    @pytest.mark.asyncio
    async def test_filters_and_pages(self, client, db, make_record):
        await persist(db, [
            make_record(title="Backend Engineer", link="https://jobs.example.test/1"),
            make_record(title="Frontend Engineer", link="https://jobs.example.test/2"),
            make_record(title="Data Analyst", link="https://jobs.example.test/3"),
        ])

        response = await client.get("/api/jobs", params={"role": "engineer", "limit": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["count"] == 1
        assert data["total"] == 2
        assert data["pages"] == 2
        assert "Engineer" in data["jobs"][0]["title"]

    @pytest.mark.asyncio
    async def test_limit_out_of_range(self, client):
        response = await client.get("/api/jobs", params={"limit": 500})

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestCrawl:
    @pytest.mark.asyncio
    async def test_missing_role(self, client):
        response = await client.post("/api/crawl", json={"location": "Pune"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "role" in body["error"]

    @pytest.mark.asyncio
    async def test_invalid_source(self, client):
        with patch("jobcrawl.api.crawl.crawl_and_store", new_callable=AsyncMock) as mock_crawl:
            response = await client.post(
                "/api/crawl", json={"role": "Engineer", "location": "Pune", "source": "monster"}
            )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": 'Invalid source. Supported sources are "naukri", "shine", "hirist", "linkedin".',
        }
        mock_crawl.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_success(self, client, make_record):
        result = CrawlResult(
            source="Naukri",
            records=[make_record()],
            persisted=PersistResult(inserted=1, duplicates=0, failed=0),
            duration=1.234,
        )

        with patch("jobcrawl.api.crawl.crawl_and_store", new=AsyncMock(return_value=result)) as mock_crawl:
            response = await client.post(
                "/api/crawl",
                json={"role": "Backend Engineer", "location": "Bengaluru", "maxPages": 2},
            )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["source"] == "naukri"
        assert data["totalJobs"] == 1
        assert data["newJobs"] == 1
        assert data["duplicates"] == 0
        assert data["duration"] == "1.23 seconds"
        assert data["jobs"][0]["link"] == "https://jobs.example.test/1"

        extractor = mock_crawl.await_args.args[1]
        assert extractor.max_pages == 2

    @pytest.mark.asyncio
    async def test_crawl_failure(self, client):
        failure = CrawlFailure("Naukri", RuntimeError("browser crashed"))

        with patch("jobcrawl.api.crawl.crawl_and_store", new=AsyncMock(side_effect=failure)):
            response = await client.post("/api/crawl", json={"role": "Engineer", "location": "Pune"})

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert "Naukri crawl failed" in body["error"]

    @pytest.mark.asyncio
    async def test_blank_role_rejected(self, client):
        with patch("jobcrawl.api.crawl.crawl_and_store", new_callable=AsyncMock) as mock_crawl:
            response = await client.post("/api/crawl", json={"role": "   ", "location": "Pune"})

        assert response.status_code == 400
        assert "role" in response.json()["error"]
        mock_crawl.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_search_terms_are_trimmed(self, client):
        result = CrawlResult(source="Naukri", records=[], duration=0.5)

        with patch("jobcrawl.api.crawl.crawl_and_store", new=AsyncMock(return_value=result)) as mock_crawl:
            response = await client.post("/api/crawl", json={"role": "  Backend Engineer ", "location": " Pune"})

        assert response.status_code == 200
        query = mock_crawl.await_args.args[2]
        assert query.role == "Backend Engineer"
        assert query.location == "Pune"

    @pytest.mark.asyncio
    async def test_crawl_failure_stack_hidden_in_production(self, client):
        failure = CrawlFailure("Naukri", RuntimeError("browser crashed"))

        with patch("jobcrawl.main.get_settings", return_value=Settings(environment="production")), \
                patch("jobcrawl.api.crawl.crawl_and_store", new=AsyncMock(side_effect=failure)):
            response = await client.post("/api/crawl", json={"role": "Engineer", "location": "Pune"})

        assert response.status_code == 500
        assert "stack" not in response.json()

    @pytest.mark.asyncio
    async def test_crawl_failure_stack_shown_in_development(self, client):
        failure = CrawlFailure("Naukri", RuntimeError("browser crashed"))

        with patch("jobcrawl.main.get_settings", return_value=Settings(environment="development")), \
                patch("jobcrawl.api.crawl.crawl_and_store", new=AsyncMock(side_effect=failure)):
            response = await client.post("/api/crawl", json={"role": "Engineer", "location": "Pune"})

        assert response.status_code == 500
        assert "CrawlFailure" in response.json()["stack"]


class TestAlert:
    @pytest.mark.asyncio
    async def test_no_matches(self, client, mailer):
        response = await client.post("/api/alert", json={"email": "me@example.test", "role": "astronaut"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "sent": 0,
            "message": "No matching jobs found to send",
        }
        mailer.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sent(self, client, db, make_record, mailer):
        recent = datetime.now(timezone.utc).isoformat(timespec="seconds")
        await persist(db, [make_record(posted_date=recent)])

        response = await client.post("/api/alert", json={"email": "me@example.test", "role": "backend"})

        assert response.status_code == 200
        assert response.json()["message"] == "Alert sent with 1 jobs"

    @pytest.mark.asyncio
    async def test_delivery_failure(self, client, db, make_record, mailer):
        mailer.send.return_value = False
        recent = datetime.now(timezone.utc).isoformat(timespec="seconds")
        await persist(db, [make_record(posted_date=recent)])

        response = await client.post("/api/alert", json={"email": "me@example.test", "role": "backend"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to send email"}

    @pytest.mark.asyncio
    async def test_invalid_email(self, client, mailer):
        response = await client.post("/api/alert", json={"email": "not-an-email", "role": "backend"})

        assert response.status_code == 400


class TestSystem:
    @pytest.mark.asyncio
    async def test_health(self, client, db, make_record):
        await persist(db, [make_record()])

        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["storage"] == "SQLite"
        assert data["jobCount"] == 1
        assert data["timestamp"]

    @pytest.mark.asyncio
    async def test_verify_db(self, client):
        response = await client.get("/api/verify-db")

        assert response.status_code == 200
        data = response.json()
        assert data["connected"] is True
        assert data["tableExists"] is True
        assert data["hasUniqueConstraint"] is True

    @pytest.mark.asyncio
    async def test_metrics(self, client):
        await client.get("/health")

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text

    @pytest.mark.asyncio
    async def test_health_storage_failure(self, client, db, monkeypatch):
        monkeypatch.setattr(
            db, "session", MagicMock(side_effect=OperationalError("SELECT", {}, Exception("database is locked")))
        )

        response = await client.get("/health")

        assert response.status_code == 500
        data = response.json()
        assert data["status"] == "ERROR"
        assert "database is locked" in data["error"]
        assert data["timestamp"]

    @pytest.mark.asyncio
    async def test_verify_db_unreachable(self, client, db, monkeypatch):
        engine = MagicMock()
        engine.connect.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
        monkeypatch.setattr(db, "engine", engine)

        response = await client.get("/api/verify-db")

        assert response.status_code == 500
        data = response.json()
        assert data["connected"] is False
        assert "connection refused" in data["error"]
