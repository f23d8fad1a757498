"""
Crawl Pipeline - Drive one extractor through a browser session and store the results

Processing Pipeline:
    1. Launch a browser session (released on every exit path)
    2. Navigate to the source's search URL
    3. Repeat: extract the page, drop links already seen in this crawl,
       then paginate, until a stop condition holds
    4. Hand the records to the dedup gate

Stop conditions:
    - page ceiling reached (extractor.max_pages)
    - a page yields no new records
    - the extractor reports a stop signal (rate limit, "no jobs" banner, target count)
    - paginate() reports there is nothing more to load

A timeout or browser error on the first navigation, or while reading a page,
aborts the crawl with CrawlFailure; records gathered before the failure are
discarded. A failure while loading a later results page only ends pagination.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError

from jobcrawl.database import Database
from jobcrawl.exceptions import CrawlerError, CrawlFailure
from jobcrawl.middleware.metrics import record_crawl, record_crawl_failure
from jobcrawl.schemas import RawJobRecord
from jobcrawl.services.browser import BrowserConfig, browser_session
from jobcrawl.services.extractors import BaseExtractor, CrawlQuery
from jobcrawl.services.storage import PersistResult, persist

logger = logging.getLogger(__name__)

__all__ = ["CrawlQuery", "CrawlResult", "crawl_source", "crawl_and_store"]


@dataclass
class CrawlResult:
    source: str
    records: List[RawJobRecord] = field(default_factory=list)
    persisted: PersistResult = field(default_factory=PersistResult)
    duration: float = 0.0


async def crawl_source(
    extractor: BaseExtractor,
    query: CrawlQuery,
    browser_config: BrowserConfig,
    now: Optional[datetime] = None,
) -> List[RawJobRecord]:
    """
    Crawl one source and return every distinct record found.

    Raises:
        CrawlFailure: navigation timed out or the browser failed
    """
    source = extractor.source
    experience = query.experience_range
    wanted = f" ({experience} yrs)" if experience else ""
    logger.info(f"Scraping {source} for {query.role}{wanted} in {query.location}...")

    records: List[RawJobRecord] = []
    seen_links = set()

    try:
        async with browser_session(browser_config.with_user_agent(extractor.user_agent)) as session:
            page = session.page
            await extractor.navigate(page, query)

            page_number = 1
            while True:
                batch = await extractor.extract_page(page, now=now)
                fresh = [record for record in batch if record.link not in seen_links]
                logger.info(f"[{source}] Found {len(fresh)} new jobs on page {page_number}")
                if not fresh:
                    break

                records.extend(fresh)
                seen_links.update(record.link for record in fresh)

                if page_number >= extractor.max_pages:
                    logger.info(f"[{source}] Reached page limit ({extractor.max_pages})")
                    break

                reason = await extractor.stop_signal(page)
                if reason:
                    logger.info(f"[{source}] Stopping: {reason}")
                    break

                page_number += 1
                if not await extractor.paginate(page, query, page_number):
                    break
    except (CrawlerError, PlaywrightError, OSError) as e:
        record_crawl_failure(source)
        logger.error(f"{source} scraping failed: {e}")
        raise CrawlFailure(source, e) from e

    logger.info(f"Total jobs found from {source}: {len(records)}")
    return records


async def crawl_and_store(
    db: Database,
    extractor: BaseExtractor,
    query: CrawlQuery,
    browser_config: BrowserConfig,
) -> CrawlResult:
    """Crawl one source, then persist through the dedup gate."""
    start_time = time.perf_counter()

    records = await crawl_source(extractor, query, browser_config)
    persisted = await persist(db, records)

    duration = time.perf_counter() - start_time
    record_crawl(extractor.source, duration, persisted.inserted, persisted.duplicates, persisted.failed)

    return CrawlResult(source=extractor.source, records=records, persisted=persisted, duration=duration)
