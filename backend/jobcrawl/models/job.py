"""
Job Model - SQLAlchemy ORM model for crawled job postings

Stores job listings extracted from LinkedIn, Naukri, Shine and Hirist.tech.
A posting is identified by its link; re-crawling the same link never creates
a second row (see services.storage).

Dates:
    posted_date holds the normalized text produced by services.dates, which
    may be an ISO date, an ISO datetime, or the raw text when it could not be
    parsed. posted_date_original keeps the scraped text as-is. Both are plain
    text, so ordering and range filters on posted_date are lexicographic.
"""

from sqlalchemy import Column, String, Integer, Text, DateTime, JSON, Index
from sqlalchemy.sql import func
from jobcrawl.database import Base


class Job(Base):
    """
    Persisted job posting.

    Attributes:
        id: Autoincrement primary key
        title: Job title
        company: Hiring company
        experience: Experience requirement as shown by the source ("N/A" if absent)
        location: Location text ("N/A" if absent)
        skills: Ordered list of skill tags (JSON)
        salary: Salary text ("Not specified" if absent)
        link: Original posting URL (unique)
        source: LinkedIn, Naukri, Shine or Hirist.tech
        posted_date: Normalized posted date text
        posted_date_original: Raw posted date text as scraped
        created_at: Insertion time, set by the database
    """

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    company = Column(Text, nullable=False)
    experience = Column(Text, nullable=True, default="N/A")
    location = Column(Text, nullable=True, default="N/A")
    skills = Column(JSON, nullable=False, default=list)
    salary = Column(Text, nullable=True, default="Not specified")
    link = Column(Text, nullable=False, unique=True)
    source = Column(String(50), nullable=False)
    posted_date = Column(Text, nullable=True)
    posted_date_original = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_jobs_title", "title"),
        Index("idx_jobs_company", "company"),
        Index("idx_jobs_location", "location"),
        Index("idx_jobs_source", "source"),
    )

    def __repr__(self) -> str:
        return f"<Job(title='{self.title}', company='{self.company}', source='{self.source}')>"
