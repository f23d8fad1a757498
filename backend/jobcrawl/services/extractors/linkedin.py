import logging
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

from playwright.async_api import Locator, Page

from jobcrawl.schemas import NOT_SPECIFIED, SOURCE_LINKEDIN, RawJobRecord
from jobcrawl.services.dates import normalize_posted_date
from jobcrawl.services.extractors.base import (
    BaseExtractor,
    CrawlQuery,
    ExperienceRange,
    attr_of,
    auto_scroll,
    text_of,
)

logger = logging.getLogger(__name__)


def experience_level(experience: Optional[ExperienceRange]) -> Optional[str]:
    """Map years of experience onto LinkedIn's f_E seniority filter."""
    if experience is None:
        return None
    years = experience.minimum
    if years < 2:
        return "2"  # Entry level
    if years < 5:
        return "3"  # Associate
    if years < 10:
        return "4"  # Mid-Senior level
    return "5"  # Director


def strip_tracking(link: str) -> str:
    parts = urlsplit(link)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


class LinkedInExtractor(BaseExtractor):
    """
    Public LinkedIn job search.

    Results accumulate in one list: each "page" is another batch loaded by
    the "See more jobs" button or by infinite scroll. An error toast means
    LinkedIn has started throttling the session.
    """

    name = "linkedin"
    source = SOURCE_LINKEDIN
    base_url = "https://www.linkedin.com/jobs/search/"
    card_selector = "div.base-card"
    next_selector = "button.infinite-scroller__show-more-button"
    toast_selector = "div.toast--error, section.authwall"
    max_pages = 5
    wait_until = "domcontentloaded"
    load_wait_ms = 2000

    def build_url(self, query: CrawlQuery, page_number: int = 1) -> str:
        params = {
            "keywords": query.role.strip(),
            "location": query.location.strip(),
            "sortBy": "DD",
        }
        level = experience_level(query.experience_range)
        if level:
            params["f_E"] = level
        return f"{self.base_url}?{urlencode(params)}"

    async def parse_card(self, card: Locator, base_url: str, now: datetime) -> RawJobRecord:
        link = await self.require_link(card, "a.base-card__full-link", base_url)

        posted_text = await text_of(card, "time", default="")
        if not posted_text:
            posted_text = await attr_of(card, "time", "datetime") or ""

        return RawJobRecord(
            title=await text_of(card, "h3.base-search-card__title"),
            company=await text_of(card, "h4.base-search-card__subtitle"),
            location=await text_of(card, "span.job-search-card__location"),
            salary=await text_of(card, "span.job-search-card__salary-info", default=NOT_SPECIFIED),
            link=strip_tracking(link),
            source=self.source,
            posted_date=normalize_posted_date(posted_text, now),
            posted_date_original=posted_text or None,
        )

    async def stop_signal(self, page: Page) -> Optional[str]:
        toast = page.locator(self.toast_selector)
        if await toast.count() > 0 and await toast.first.is_visible():
            return "rate limited"
        return None

    async def paginate(self, page: Page, query: CrawlQuery, page_number: int) -> bool:
        before = await self.card_count(page)

        button = page.locator(self.next_selector)
        if await button.count() > 0 and await button.first.is_visible() and await button.first.is_enabled():
            await button.first.click()
        else:
            await auto_scroll(page)
        await page.wait_for_timeout(self.load_wait_ms)

        after = await self.card_count(page)
        if after <= before:
            logger.info(f"[{self.source}] No more results after {before} cards")
            return False
        return True
