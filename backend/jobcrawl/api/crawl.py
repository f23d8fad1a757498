import logging

from fastapi import APIRouter, Depends

from jobcrawl.config import Settings, get_settings
from jobcrawl.database import Database, get_database
from jobcrawl.schemas import CrawlRequest, CrawlResponse
from jobcrawl.services.browser import BrowserConfig
from jobcrawl.services.extractors import CrawlQuery, get_extractor
from jobcrawl.services.pipeline import crawl_and_store

logger = logging.getLogger(__name__)

router = APIRouter()

RESPONSE_JOB_LIMIT = 50


@router.post("/crawl", response_model=CrawlResponse)
async def crawl(
    request: CrawlRequest,
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
):
    # Unknown sources raise UnsupportedSource before any browser is launched
    extractor = get_extractor(
        request.source,
        max_pages=request.max_pages or settings.max_pages,
        navigation_timeout_ms=settings.navigation_timeout_ms,
    )
    query = CrawlQuery(role=request.role, location=request.location, experience=request.experience)

    logger.info(f"Starting {extractor.source} crawl for {query.role} in {query.location}")
    result = await crawl_and_store(db, extractor, query, BrowserConfig.from_settings(settings))

    return CrawlResponse(
        source=request.source,
        role=request.role,
        location=request.location,
        total_jobs=len(result.records),
        new_jobs=result.persisted.inserted,
        duplicates=result.persisted.duplicates,
        failed=result.persisted.failed,
        duration=f"{result.duration:.2f} seconds",
        jobs=result.records[:RESPONSE_JOB_LIMIT],
    )
