from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from jobcrawl.database import get_db
from jobcrawl.schemas import JobResponse, JobListResponse
from jobcrawl.services.queries import JobFilters, find_jobs

router = APIRouter()


@router.get("/jobs", response_model=JobListResponse)
async def list_jobs(
    role: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    filters = JobFilters(role=role, location=location, source=source)
    result = await find_jobs(db, filters, page=page, page_size=limit)

    return JobListResponse(
        count=len(result.items),
        total=result.total,
        page=result.page,
        pages=result.page_count,
        jobs=[JobResponse.model_validate(job) for job in result.items],
    )
