"""
Headless browser sessions for crawls.

Each crawl gets its own Chromium process:

    async with browser_session(config) as session:
        await session.page.goto(url)

The session is released on every exit path, including exceptions raised
halfway through pagination.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from jobcrawl.config import Settings

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]


@dataclass(frozen=True)
class BrowserConfig:
    headless: bool = True
    executable_path: Optional[str] = None
    user_agent: Optional[str] = None
    accept_language: str = "en-US,en;q=0.9"
    launch_args: tuple[str, ...] = tuple(LAUNCH_ARGS)
    viewport: dict = field(default_factory=lambda: {"width": 1366, "height": 900})

    @classmethod
    def from_settings(cls, settings: Settings) -> "BrowserConfig":
        headless = settings.browser_headless
        if headless is None:
            headless = settings.is_production
        return cls(
            headless=headless,
            executable_path=settings.browser_executable_path,
            user_agent=settings.user_agent,
            accept_language=settings.accept_language,
        )

    def with_user_agent(self, user_agent: Optional[str]) -> "BrowserConfig":
        if not user_agent:
            return self
        return replace(self, user_agent=user_agent)


@dataclass
class BrowserSession:
    playwright: Playwright
    browser: Browser
    context: BrowserContext
    page: Page


async def acquire(config: BrowserConfig) -> BrowserSession:
    """Launch a browser and open one configured page."""
    playwright = await async_playwright().start()
    browser = None
    try:
        browser = await playwright.chromium.launch(
            headless=config.headless,
            args=list(config.launch_args),
            executable_path=config.executable_path,
        )
        context = await browser.new_context(
            user_agent=config.user_agent,
            locale="en-US",
            extra_http_headers={"Accept-Language": config.accept_language},
            ignore_https_errors=True,
            viewport=config.viewport,
        )
        page = await context.new_page()
    except BaseException:
        if browser is not None:
            await browser.close()
        await playwright.stop()
        raise

    logger.debug(f"Browser launched (headless={config.headless})")
    return BrowserSession(playwright=playwright, browser=browser, context=context, page=page)


async def release(session: BrowserSession) -> None:
    """Close the context, the browser and the driver, attempting each step."""
    for name, close in (
        ("context", session.context.close),
        ("browser", session.browser.close),
        ("playwright", session.playwright.stop),
    ):
        try:
            await close()
        except Exception as e:
            logger.warning(f"Failed to close {name}: {e}")
    logger.debug("Browser closed")


@asynccontextmanager
async def browser_session(config: BrowserConfig) -> AsyncIterator[BrowserSession]:
    session = await acquire(config)
    try:
        yield session
    finally:
        await release(session)
