import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urljoin

from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from jobcrawl.exceptions import ExtractionElementMissing, NavigationTimeout
from jobcrawl.schemas import NOT_AVAILABLE, RawJobRecord

logger = logging.getLogger(__name__)

SCROLL_SCRIPT = """
async ([distance, interval]) => {
  await new Promise((resolve) => {
    let totalHeight = 0;
    const timer = setInterval(() => {
      const scrollHeight = document.body.scrollHeight;
      window.scrollBy(0, distance);
      totalHeight += distance;
      if (totalHeight >= scrollHeight - window.innerHeight) {
        clearInterval(timer);
        resolve();
      }
    }, interval);
  });
}
"""


def slugify(text: str) -> str:
    """Lowercase and join whitespace-separated words with hyphens."""
    return re.sub(r"\s+", "-", text.strip().lower())


@dataclass(frozen=True)
class ExperienceRange:
    minimum: int
    maximum: int

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ExperienceRange"]:
        """Parse "3" or "2-5" (years); blank or malformed input gives None."""
        if value is None:
            return None
        numbers = [int(n) for n in re.findall(r"\d+", str(value))]
        if not numbers:
            return None
        low, high = numbers[0], numbers[1] if len(numbers) > 1 else numbers[0]
        return cls(min(low, high), max(low, high))

    def __str__(self) -> str:
        if self.minimum == self.maximum:
            return str(self.minimum)
        return f"{self.minimum}-{self.maximum}"


@dataclass(frozen=True)
class CrawlQuery:
    role: str
    location: str
    experience: Optional[str] = None

    @property
    def experience_range(self) -> Optional[ExperienceRange]:
        return ExperienceRange.parse(self.experience)


async def text_of(node, selector: str, default: str = NOT_AVAILABLE) -> str:
    target = node.locator(selector)
    if await target.count() == 0:
        return default
    value = (await target.first.inner_text()).strip()
    return value or default


async def attr_of(node, selector: str, name: str) -> Optional[str]:
    target = node.locator(selector)
    if await target.count() == 0:
        return None
    return await target.first.get_attribute(name)


async def texts_of(node, selector: str) -> List[str]:
    texts = await node.locator(selector).all_inner_texts()
    return [t.strip() for t in texts if t and t.strip()]


async def auto_scroll(page: Page, distance: int = 100, interval_ms: int = 100) -> None:
    """Scroll to the bottom in small steps so lazy-loaded cards render."""
    await page.evaluate(SCROLL_SCRIPT, [distance, interval_ms])


class BaseExtractor(ABC):
    """
    Crawl strategy for one job board.

    The pipeline drives every extractor the same way: navigate() once, then
    extract_page(), stop_signal() and paginate() until a stop condition.
    Subclasses supply URLs, selectors, parse_card() and paginate().
    """

    name: str = "unknown"
    source: str = "unknown"
    card_selector: str = ""
    max_pages: int = 5
    wait_until: str = "networkidle"
    card_timeout_ms: int = 30000
    user_agent: Optional[str] = None

    def __init__(self, max_pages: Optional[int] = None, navigation_timeout_ms: int = 60000):
        if max_pages is not None:
            self.max_pages = max_pages
        self.navigation_timeout_ms = navigation_timeout_ms

    @abstractmethod
    def build_url(self, query: CrawlQuery, page_number: int = 1) -> str:
        """Search URL for the given results page"""

    @abstractmethod
    async def parse_card(self, card: Locator, base_url: str, now: datetime) -> RawJobRecord:
        """Map one rendered job card to a record"""

    @abstractmethod
    async def paginate(self, page: Page, query: CrawlQuery, page_number: int) -> bool:
        """Load results page `page_number`; False when there is nothing more"""

    async def navigate(self, page: Page, query: CrawlQuery) -> None:
        await self.goto(page, self.build_url(query))
        await self.prepare_page(page)

    async def goto(self, page: Page, url: str) -> None:
        logger.info(f"[{self.source}] Navigating to: {url}")
        try:
            await page.goto(url, wait_until=self.wait_until, timeout=self.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(self.source, url, self.navigation_timeout_ms) from e

    async def prepare_page(self, page: Page) -> None:
        """Hook run after the first navigation (popups, consent banners)."""

    async def before_extract(self, page: Page) -> None:
        """Hook run before each page is read (scrolling, lazy loading)."""

    async def wait_for_cards(self, page: Page) -> bool:
        try:
            await page.wait_for_selector(self.card_selector, timeout=self.card_timeout_ms)
            return True
        except PlaywrightTimeoutError:
            logger.info(f"[{self.source}] No job cards appeared on {page.url}")
            return False

    async def extract_page(self, page: Page, now: Optional[datetime] = None) -> List[RawJobRecord]:
        """
        Read every job card currently rendered on the page.

        A card that fails to parse is logged and skipped; the other cards
        on the page are still returned.
        """
        if not await self.wait_for_cards(page):
            return []
        await self.before_extract(page)

        now = now or datetime.now(timezone.utc)
        base_url = page.url
        cards = await page.locator(self.card_selector).all()

        records = []
        for index, card in enumerate(cards):
            try:
                records.append(await self.parse_card(card, base_url, now))
            except Exception as e:
                logger.debug(f"[{self.source}] Skipping card {index}: {e}")
        return records

    async def stop_signal(self, page: Page) -> Optional[str]:
        """Reason to stop paginating (rate limit, no results), or None."""
        return None

    async def card_count(self, page: Page) -> int:
        return await page.locator(self.card_selector).count()

    async def require_link(self, card: Locator, selector: str, base_url: str) -> str:
        href = await attr_of(card, selector, "href")
        if not href or href == "#":
            raise ExtractionElementMissing(self.source, "link")
        return urljoin(base_url, href.strip())

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(source='{self.source}', max_pages={self.max_pages})>"
