import logging
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode

from playwright.async_api import Locator, Page

from jobcrawl.schemas import NOT_SPECIFIED, SOURCE_HIRIST, RawJobRecord
from jobcrawl.services.dates import normalize_posted_date
from jobcrawl.services.extractors.base import (
    BaseExtractor,
    CrawlQuery,
    auto_scroll,
    slugify,
    text_of,
    texts_of,
)

logger = logging.getLogger(__name__)


class HiristExtractor(BaseExtractor):
    """
    Hirist.tech search results.

    The result list grows as the page is scrolled. Each "page" is one
    scroll-and-wait round; loading stops when the card count stalls or
    reaches target_count.
    """

    name = "hirist"
    source = SOURCE_HIRIST
    card_selector = ".MuiBox-root.mui-style-1ancegk"
    title_selector = "[data-testid='job_title']"
    max_pages = 10
    target_count = 100
    load_wait_ms = 1000

    def __init__(self, max_pages: Optional[int] = None, navigation_timeout_ms: int = 60000, target_count: Optional[int] = None):
        super().__init__(max_pages=max_pages, navigation_timeout_ms=navigation_timeout_ms)
        if target_count is not None:
            self.target_count = target_count

    def build_url(self, query: CrawlQuery, page_number: int = 1) -> str:
        params = {"loc": query.location.strip()}
        experience = query.experience_range
        if experience is not None:
            params["minexp"] = experience.minimum
            params["maxexp"] = experience.maximum
        return f"https://www.hirist.tech/search/{slugify(query.role)}?{urlencode(params)}"

    async def parse_card(self, card: Locator, base_url: str, now: datetime) -> RawJobRecord:
        posted_text = await text_of(card, "[data-testid='job_posted_date']", default="")
        return RawJobRecord(
            title=await text_of(card, self.title_selector),
            company=await text_of(card, ".MuiTypography-subtitle1"),
            experience=await text_of(card, "[data-testid='job_experience']"),
            location=await text_of(card, "[data-testid='job_location']"),
            salary=await text_of(card, ".MuiTypography-root.mui-style-1n4cg6k", default=NOT_SPECIFIED),
            skills=await texts_of(card, ".MuiBox-root.mui-style-1u0q1tk span"),
            link=await self.require_link(card, f"a:has({self.title_selector})", base_url),
            source=self.source,
            posted_date=normalize_posted_date(posted_text, now) if posted_text else None,
            posted_date_original=posted_text or None,
        )

    async def stop_signal(self, page: Page) -> Optional[str]:
        if await self.card_count(page) >= self.target_count:
            return f"reached {self.target_count} jobs"
        return None

    async def paginate(self, page: Page, query: CrawlQuery, page_number: int) -> bool:
        before = await self.card_count(page)
        await auto_scroll(page)
        await page.wait_for_timeout(self.load_wait_ms)
        after = await self.card_count(page)
        if after <= before:
            logger.info(f"[{self.source}] Lazy loading stalled at {before} cards")
            return False
        return True
