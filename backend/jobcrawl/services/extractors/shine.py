import logging
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode

from playwright.async_api import Locator, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from jobcrawl.exceptions import NavigationTimeout
from jobcrawl.schemas import NOT_AVAILABLE, NOT_SPECIFIED, SOURCE_SHINE, RawJobRecord
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


class ShineExtractor(BaseExtractor):
    """
    Shine search results.

    Shine ships CSS-module class names with a build hash suffix, so the
    selectors match on the stable prefix only.
    """

    name = "shine"
    source = SOURCE_SHINE
    card_selector = "div[class*='jobCardNova_bigCard__']"
    title_selector = "[class*='jobCardNova_bigCardTopTitleHeading__'] a"
    company_selectors = (
        "[class*='jobCardNova_bigCardTopTitle__'] + span",
        "[class*='jobCardNova_bigCardTopTitle__'] span",
    )
    details_selector = "[class*='jobCardNova_bigCardBottom__'] span"
    posted_selector = "[class*='jobCardNova_postedData__']"
    no_jobs_selector = "[class*='noJobFoundContainer__noJobFoundWrapper__']"
    max_pages = 5
    wait_until = "domcontentloaded"
    card_timeout_ms = 15000
    user_agent = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    def build_url(self, query: CrawlQuery, page_number: int = 1) -> str:
        url = f"https://www.shine.com/job-search/{slugify(query.role)}-jobs-in-{slugify(query.location)}"
        params = {}
        experience = query.experience_range
        if experience is not None:
            params["exp"] = experience.minimum
        if page_number > 1:
            params["page"] = page_number
        if params:
            url += f"?{urlencode(params)}"
        return url

    async def wait_for_cards(self, page: Page) -> bool:
        # Either job cards or the "no jobs" banner ends the wait
        try:
            await page.wait_for_selector(
                f"{self.card_selector}, {self.no_jobs_selector}", timeout=self.card_timeout_ms
            )
        except PlaywrightTimeoutError:
            logger.info(f"[{self.source}] Neither jobs nor 'no jobs' message found within timeout")
            return False
        return await page.locator(self.no_jobs_selector).count() == 0

    async def before_extract(self, page: Page) -> None:
        await auto_scroll(page, distance=300, interval_ms=200)

    async def parse_card(self, card: Locator, base_url: str, now: datetime) -> RawJobRecord:
        company = NOT_AVAILABLE
        for selector in self.company_selectors:
            company = await text_of(card, selector)
            if company != NOT_AVAILABLE:
                break

        details = await texts_of(card, self.details_selector)
        experience = details[0] if len(details) > 0 else NOT_AVAILABLE
        location = details[1] if len(details) > 1 else NOT_AVAILABLE
        salary = details[2] if len(details) > 2 else NOT_SPECIFIED

        posted_text = await text_of(card, self.posted_selector, default="")
        return RawJobRecord(
            title=await text_of(card, self.title_selector),
            company=company,
            experience=experience,
            location=location,
            salary=salary,
            link=await self.require_link(card, self.title_selector, base_url),
            source=self.source,
            posted_date=normalize_posted_date(posted_text, now) if posted_text else None,
            posted_date_original=posted_text or None,
        )

    async def stop_signal(self, page: Page) -> Optional[str]:
        if await page.locator(self.no_jobs_selector).count() > 0:
            return "no jobs found"
        return None

    async def paginate(self, page: Page, query: CrawlQuery, page_number: int) -> bool:
        try:
            await self.goto(page, self.build_url(query, page_number))
        except (NavigationTimeout, PlaywrightError) as e:
            logger.info(f"[{self.source}] Could not load page {page_number}: {e}")
            return False
        return True
