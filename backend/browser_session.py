"""
Browser lifecycle: launch with retry, one isolated context per submission
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from config import Settings, get_settings
from errors import BrowserUnavailable

logger = logging.getLogger(__name__)

# Container-friendly launch flags
HARDENED_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]

# Minimal flags for watching the browser locally (HEADLESS=false)
LOCAL_VISIBLE_ARGS = [
    "--no-first-run",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--window-size=1280,800",
]

CONTEXT_OPTIONS = {
    "viewport": {"width": 1366, "height": 768},
    "user_agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "locale": "en-IN",
    "timezone_id": "Asia/Kolkata",
    "ignore_https_errors": True,
}

PROBE_PAGE = "data:text/html,<html><body>Test</body></html>"

Launcher = Callable[..., Awaitable[Browser]]


@dataclass
class BrowserSession:
    browser: Browser
    context: BrowserContext
    page: Page


class BrowserSessionManager:
    """Creates one browser per submission; nothing is pooled or shared"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        launcher: Optional[Launcher] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self._launcher = launcher
        self._sleep = sleep

    def browser_args(self) -> List[str]:
        if not self.settings.headless:
            return list(LOCAL_VISIBLE_ARGS)
        return list(HARDENED_ARGS)

    def _launcher_for(self, playwright) -> Launcher:
        if self._launcher is not None:
            return self._launcher

        endpoint = self.settings.browser_endpoint
        if endpoint:
            async def connect(headless: bool, args: List[str], timeout: float) -> Browser:
                logger.info("Connecting to remote browser endpoint: %s", endpoint)
                return await playwright.chromium.connect(endpoint, timeout=timeout)

            return connect
        return playwright.chromium.launch

    async def _start_driver(self):
        if self._launcher is not None:
            return None
        return await async_playwright().start()

    async def launch_with_retry(
        self,
        launch: Launcher,
        max_attempts: Optional[int] = None,
        timeout_ms: Optional[float] = None,
    ) -> Browser:
        max_attempts = max_attempts or self.settings.browser_max_retries
        timeout_ms = timeout_ms or self.settings.browser_timeout_ms
        base_delay = self.settings.browser_retry_delay_ms / 1000.0

        for attempt in range(1, max_attempts + 1):
            try:
                logger.info("Attempting to launch browser (attempt %d/%d)...", attempt, max_attempts)
                browser = await launch(
                    headless=self.settings.headless,
                    args=self.browser_args(),
                    timeout=timeout_ms,
                )
                logger.info("✅ Browser launched successfully")
                return browser
            except Exception as e:
                logger.error("❌ Browser launch attempt %d failed: %s", attempt, e)
                if attempt == max_attempts:
                    raise BrowserUnavailable(
                        f"Failed to launch browser after {max_attempts} attempts: {e}"
                    ) from e
                await self._sleep(base_delay * 2 ** (attempt - 1))

    @asynccontextmanager
    async def acquire(
        self,
        max_attempts: Optional[int] = None,
        timeout_ms: Optional[float] = None,
    ) -> AsyncIterator[BrowserSession]:
        """Launch a browser and yield a fresh context/page, always closing both"""
        playwright = None
        browser = None
        context = None
        try:
            playwright = await self._start_driver()
            browser = await self.launch_with_retry(
                self._launcher_for(playwright), max_attempts, timeout_ms
            )
            context = await browser.new_context(**CONTEXT_OPTIONS)
            page = await context.new_page()
            page.set_default_timeout(self.settings.browser_timeout_ms)
            yield BrowserSession(browser=browser, context=context, page=page)
        finally:
            await self._close(context, browser, playwright)

    async def probe(self, timeout_ms: Optional[float] = None, exercise_page: bool = False) -> bool:
        """Launch and close a browser once to confirm the subsystem works"""
        timeout_ms = timeout_ms or self.settings.browser_probe_timeout_ms
        playwright = None
        browser = None
        context = None
        try:
            playwright = await self._start_driver()
            launch = self._launcher_for(playwright)
            browser = await launch(headless=True, args=self.browser_args(), timeout=timeout_ms)
            if exercise_page:
                context = await browser.new_context()
                page = await context.new_page()
                await page.goto(PROBE_PAGE)
                await page.title()
            return True
        except Exception as e:
            logger.warning("⚠️ Browser probe failed: %s", e)
            return False
        finally:
            await self._close(context, browser, playwright)

    @staticmethod
    async def _close(context, browser, playwright):
        if context is not None:
            try:
                await context.close()
            except Exception as e:
                logger.error("Error closing context: %s", e)
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.error("Error closing browser: %s", e)
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.error("Error stopping Playwright: %s", e)
