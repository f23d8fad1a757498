"""
Read side over stored jobs.

Filters are case-insensitive substring matches (title, location, source),
combined with AND. Results are ordered by posted_date descending. posted_date
is free text, so when ISO dates, ISO datetimes and unparsed strings are mixed
the order is lexicographic rather than chronological.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobcrawl.models import Job


@dataclass
class JobFilters:
    role: Optional[str] = None
    location: Optional[str] = None
    source: Optional[str] = None

    def clauses(self) -> list:
        clauses = []
        if self.role:
            clauses.append(Job.title.ilike(f"%{self.role}%"))
        if self.location:
            clauses.append(Job.location.ilike(f"%{self.location}%"))
        if self.source:
            clauses.append(Job.source.ilike(f"%{self.source}%"))
        return clauses


@dataclass
class JobPage:
    items: List[Job] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20

    @property
    def page_count(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


async def find_jobs(
    session: AsyncSession,
    filters: Optional[JobFilters] = None,
    page: int = 1,
    page_size: int = 20,
) -> JobPage:
    filters = filters or JobFilters()
    clauses = filters.clauses()

    count_query = select(func.count(Job.id)).where(*clauses)
    total_result = await session.execute(count_query)
    total = total_result.scalar() or 0

    query = (
        select(Job)
        .where(*clauses)
        .order_by(Job.posted_date.desc(), Job.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await session.execute(query)

    return JobPage(items=list(result.scalars().all()), total=total, page=page, page_size=page_size)
