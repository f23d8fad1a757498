"""
Email alerts for recently posted jobs.

dispatch() selects up to 10 jobs posted within the last 24 hours that match
the requested role (and optional location/source), renders them into a fixed
HTML template and hands the message to a Mailer. No matches means no email.

The 24-hour window compares posted_date as text against an ISO timestamp,
so rows holding bare dates or unparsed relative text may fall on either
side of the cutoff.
"""

import asyncio
import html
import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobcrawl.config import Settings
from jobcrawl.exceptions import DeliveryFailure
from jobcrawl.models import Job
from jobcrawl.schemas import NOT_SPECIFIED
from jobcrawl.services.queries import JobFilters

logger = logging.getLogger(__name__)

ALERT_LIMIT = 10
ALERT_WINDOW = timedelta(hours=24)


@dataclass
class AlertResult:
    matched: int = 0
    sent: int = 0
    delivered: bool = False


class Mailer:
    """SMTP delivery (STARTTLS + login), run in a worker thread."""

    def __init__(self, host: str, port: int, user: str, password: str, from_name: str = "Job Crawler"):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_name = from_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.email_user,
            password=settings.email_pass,
            from_name=settings.email_from_name,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.port and self.user and self.password)

    def build_message(self, to: str, subject: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f'"{self.from_name}" <{self.user}>'
        msg["To"] = to
        msg.attach(MIMEText(html_body, "html"))
        return msg

    def _send_sync(self, msg: MIMEMultipart) -> None:
        if not self.configured:
            raise DeliveryFailure("Email not configured: missing SMTP settings")
        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            server.starttls()
            server.login(self.user, self.password)
            server.send_message(msg)

    async def send(self, to: str, subject: str, html_body: str) -> bool:
        """Send one HTML email. Returns False instead of raising on failure."""
        try:
            await asyncio.to_thread(self._send_sync, self.build_message(to, subject, html_body))
        except (DeliveryFailure, smtplib.SMTPException, OSError) as e:
            logger.error(f"Email sending failed: {e}")
            return False

        logger.info(f"Email sent to {to}")
        return True


def _row(label: str, value: str) -> str:
    return f'<p style="margin: 0 0 5px 0;"><strong>{label}:</strong> {html.escape(value or "")}</p>'


def render_alert_html(jobs: Sequence[Job]) -> str:
    items = []
    for job in jobs:
        salary = _row("Salary", job.salary) if job.salary and job.salary != NOT_SPECIFIED else ""
        items.append(
            '<li style="margin-bottom: 20px; border-bottom: 1px solid #eee; padding-bottom: 10px;">'
            f'<h3 style="margin: 0 0 5px 0; color: #1976d2;">{html.escape(job.title)}</h3>'
            f"{_row('Company', job.company)}"
            f"{_row('Location', job.location)}"
            f"{salary}"
            f"{_row('Posted', job.posted_date)}"
            f"{_row('Source', job.source)}"
            f'<a href="{html.escape(job.link, quote=True)}" style="display: inline-block; margin-top: 10px; '
            'padding: 8px 15px; background-color: #1976d2; color: white; text-decoration: none; '
            'border-radius: 4px;">View Job</a>'
            "</li>"
        )

    return (
        '<div style="font-family: Arial, sans-serif; max-width: 800px; margin: 0 auto;">'
        '<h1 style="color: #333;">New Job Matches</h1>'
        f'<ul style="list-style: none; padding: 0;">{"".join(items)}</ul>'
        "</div>"
    )


async def select_recent_jobs(
    session: AsyncSession,
    role: str,
    location: Optional[str] = None,
    source: Optional[str] = None,
    now: Optional[datetime] = None,
    limit: int = ALERT_LIMIT,
) -> List[Job]:
    now = now or datetime.now(timezone.utc)
    cutoff = (now - ALERT_WINDOW).isoformat(timespec="seconds")

    clauses = JobFilters(role=role, location=location, source=source).clauses()
    query = (
        select(Job)
        .where(Job.posted_date >= cutoff, *clauses)
        .order_by(Job.posted_date.desc(), Job.id.desc())
        .limit(limit)
    )
    result = await session.execute(query)
    return list(result.scalars().all())


async def dispatch(
    session: AsyncSession,
    mailer: Mailer,
    email: str,
    role: str,
    location: Optional[str] = None,
    source: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AlertResult:
    jobs = await select_recent_jobs(session, role, location, source, now=now)
    if not jobs:
        logger.info(f"No matching jobs to email for role '{role}'")
        return AlertResult()

    subject = f"New Job Alerts ({len(jobs)} positions)"
    delivered = await mailer.send(email, subject, render_alert_html(jobs))
    return AlertResult(matched=len(jobs), sent=len(jobs) if delivered else 0, delivered=delivered)
