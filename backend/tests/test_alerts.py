"""
Tests for the alert dispatcher

Tests cover:
- Selecting jobs from the last 24 hours matching role/location/source
- No delivery attempt when nothing matches
- Delivery failures reported as a boolean
- HTML rendering
- SMTP mailer error handling
"""

import smtplib
import pytest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from jobcrawl.services.alerts import Mailer, dispatch, render_alert_html, select_recent_jobs
from jobcrawl.services.storage import persist

NOW = datetime(2026, 10, 16, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
async def seeded(db, make_record):
    await persist(db, [
        make_record(title="Backend Engineer", location="Pune", source="Naukri",
                    link="https://jobs.example.test/fresh", posted_date="2026-10-16T08:00:00+00:00"),
        make_record(title="Backend Engineer", location="Delhi", source="Shine",
                    link="https://jobs.example.test/fresh-delhi", posted_date="2026-10-15T20:00:00+00:00"),
        make_record(title="Backend Engineer", location="Pune", source="Naukri",
                    link="https://jobs.example.test/old", posted_date="2026-10-10"),
        make_record(title="QA Lead", location="Pune", source="Naukri",
                    link="https://jobs.example.test/qa", posted_date="2026-10-16T09:00:00+00:00"),
    ])
    return db


@pytest.fixture
def mailer():
    fake = MagicMock(spec=Mailer)
    fake.send = AsyncMock(return_value=True)
    return fake


class TestSelectRecentJobs:
    @pytest.mark.asyncio
    async def test_only_last_24_hours(self, seeded):
        async with seeded.session() as session:
            jobs = await select_recent_jobs(session, role="backend", now=NOW)

        assert {job.link for job in jobs} == {
            "https://jobs.example.test/fresh",
            "https://jobs.example.test/fresh-delhi",
        }

    @pytest.mark.asyncio
    async def test_location_and_source_filters(self, seeded):
        async with seeded.session() as session:
            jobs = await select_recent_jobs(session, role="backend", location="pune", source="naukri", now=NOW)

        assert [job.link for job in jobs] == ["https://jobs.example.test/fresh"]

    @pytest.mark.asyncio
    async def test_limit(self, db, make_record):
        await persist(db, [
            make_record(link=f"https://jobs.example.test/{i}", posted_date="2026-10-16T10:00:00+00:00")
            for i in range(15)
        ])
        async with db.session() as session:
            jobs = await select_recent_jobs(session, role="engineer", now=NOW)

        assert len(jobs) == 10


class TestDispatch:
    @pytest.mark.asyncio
    async def test_no_matches_sends_nothing(self, seeded, mailer):
        async with seeded.session() as session:
            result = await dispatch(session, mailer, "me@example.test", role="astronaut", now=NOW)

        assert result.sent == 0
        assert result.matched == 0
        mailer.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sends_matching_jobs(self, seeded, mailer):
        async with seeded.session() as session:
            result = await dispatch(session, mailer, "me@example.test", role="backend", now=NOW)

        assert result.sent == 2
        assert result.delivered is True
        to, subject, html_body = mailer.send.await_args.args
        assert to == "me@example.test"
        assert subject == "New Job Alerts (2 positions)"
        assert "https://jobs.example.test/fresh" in html_body

    @pytest.mark.asyncio
    async def test_delivery_failure_is_reported_not_raised(self, seeded, mailer):
        mailer.send.return_value = False

        async with seeded.session() as session:
            result = await dispatch(session, mailer, "me@example.test", role="backend", now=NOW)

        assert result.matched == 2
        assert result.sent == 0
        assert result.delivered is False


class TestRenderAlertHtml:
    def _job(self, **overrides):
        data = dict(
            title="Backend Engineer",
            company="Acme",
            location="Pune",
            salary="Not specified",
            posted_date="2026-10-16",
            source="Naukri",
            link="https://jobs.example.test/1",
        )
        data.update(overrides)
        return SimpleNamespace(**data)

    def test_lists_job_fields(self):
        html_body = render_alert_html([self._job()])

        assert "Backend Engineer" in html_body
        assert "Acme" in html_body
        assert "2026-10-16" in html_body
        assert 'href="https://jobs.example.test/1"' in html_body

    def test_unspecified_salary_omitted(self):
        assert "Salary" not in render_alert_html([self._job()])
        assert "12 LPA" in render_alert_html([self._job(salary="12 LPA")])

    def test_values_escaped(self):
        html_body = render_alert_html([self._job(title="<script>alert(1)</script>")])

        assert "<script>" not in html_body
        assert "&lt;script&gt;" in html_body


class TestMailer:
    @pytest.mark.asyncio
    async def test_unconfigured_mailer_returns_false(self):
        mailer = Mailer(host="smtp.example.test", port=587, user="", password="")

        assert await mailer.send("me@example.test", "Subject", "<p>hi</p>") is False

    @pytest.mark.asyncio
    @patch("jobcrawl.services.alerts.smtplib.SMTP")
    async def test_smtp_error_returns_false(self, mock_smtp):
        mock_smtp.return_value.__enter__.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad")
        mailer = Mailer(host="smtp.example.test", port=587, user="bot@example.test", password="secret")

        assert await mailer.send("me@example.test", "Subject", "<p>hi</p>") is False

    @pytest.mark.asyncio
    @patch("jobcrawl.services.alerts.smtplib.SMTP")
    async def test_successful_send(self, mock_smtp):
        server = mock_smtp.return_value.__enter__.return_value
        mailer = Mailer(host="smtp.example.test", port=587, user="bot@example.test", password="secret")

        assert await mailer.send("me@example.test", "Subject", "<p>hi</p>") is True
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot@example.test", "secret")
        sent = server.send_message.call_args.args[0]
        assert sent["To"] == "me@example.test"
        assert sent["From"] == '"Job Crawler" <bot@example.test>'
