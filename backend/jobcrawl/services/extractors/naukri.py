import logging
from datetime import datetime

from playwright.async_api import Locator, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from jobcrawl.exceptions import NavigationTimeout
from jobcrawl.schemas import NOT_SPECIFIED, SOURCE_NAUKRI, RawJobRecord
from jobcrawl.services.dates import normalize_posted_date
from jobcrawl.services.extractors.base import (
    BaseExtractor,
    CrawlQuery,
    slugify,
    text_of,
    texts_of,
)

logger = logging.getLogger(__name__)


class NaukriExtractor(BaseExtractor):
    """Naukri search results; page N lives at `<search-url>-N`."""

    name = "naukri"
    source = SOURCE_NAUKRI
    card_selector = ".srp-jobtuple-wrapper"
    popup_selector = "span[class*='crossIcon']"
    max_pages = 10

    def build_url(self, query: CrawlQuery, page_number: int = 1) -> str:
        """
        Naukri's experience filter takes a single year count, so a range
        such as "2-5" is sent as its minimum (`?experience=2`).
        """
        url = f"https://www.naukri.com/{slugify(query.role)}-jobs-in-{slugify(query.location)}"
        if page_number > 1:
            url += f"-{page_number}"
        experience = query.experience_range
        if experience is not None:
            url += f"?experience={experience.minimum}"
        return url

    async def prepare_page(self, page: Page) -> None:
        try:
            await page.click(self.popup_selector, timeout=5000)
            logger.debug(f"[{self.source}] Closed popup")
        except PlaywrightTimeoutError:
            logger.debug(f"[{self.source}] No popup found")

    async def parse_card(self, card: Locator, base_url: str, now: datetime) -> RawJobRecord:
        posted_text = await text_of(card, ".job-post-day", default="")
        return RawJobRecord(
            title=await text_of(card, ".title"),
            company=await text_of(card, ".comp-name"),
            experience=await text_of(card, ".expwdth"),
            location=await text_of(card, ".locWdth"),
            salary=await text_of(card, ".sal-wrap", default=NOT_SPECIFIED),
            skills=await texts_of(card, ".tags-gt li"),
            link=await self.require_link(card, "a.title", base_url),
            source=self.source,
            posted_date=normalize_posted_date(posted_text, now),
            posted_date_original=posted_text or None,
        )

    async def paginate(self, page: Page, query: CrawlQuery, page_number: int) -> bool:
        try:
            await self.goto(page, self.build_url(query, page_number))
        except (NavigationTimeout, PlaywrightError) as e:
            logger.info(f"[{self.source}] No more pages found: {e}")
            return False
        return True
