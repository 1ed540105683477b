"""Named headless browser sessions using patchright.

Rules:
  - One session per run, keyed by a name generated from the run (``new_session_name``)
  - Every primitive looks the session up by name and fails if it was never launched
  - ``close`` is idempotent and never raises
"""

import asyncio
import logging
import time
import uuid
from datetime import datetime
from typing import Any

from patchright.async_api import async_playwright

from jobagent.browser.actions import dismiss_cookie_banners, scroll_viewports
from jobagent.browser.description import extract_job_description
from jobagent.core.config import BrowserConfig
from jobagent.core.errors import SessionNotFoundError
from jobagent.core.schemas import PageLink

logger = logging.getLogger(__name__)

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
]


def new_session_name(user_id: str, site_id: str) -> str:
    """Build a session name unique to one run."""
    return f"search-{user_id}-{site_id}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


class BrowserSession:
    """Handles owned by one named session."""

    def __init__(self, playwright: Any, browser: Any, context: Any, page: Any) -> None:
        self.playwright = playwright
        self.browser = browser
        self.context = context
        self.page = page
        self.started_at = datetime.now()


class BrowserSessionManager:
    """Owns every live browser session of the process.

    Usage::

        sessions = BrowserSessionManager(settings.browser)
        name = new_session_name("user-1", "linkedin")
        await sessions.launch(name)
        try:
            await sessions.navigate(name, "https://www.linkedin.com/login")
        finally:
            await sessions.close(name)
    """

    def __init__(self, config: BrowserConfig, *, playwright_factory: Any = None) -> None:
        self._config = config
        self._playwright_factory = playwright_factory or async_playwright
        self._sessions: dict[str, BrowserSession] = {}
        self._lock = asyncio.Lock()

    @property
    def active_sessions(self) -> list[str]:
        return sorted(self._sessions)

    async def launch(self, name: str) -> None:
        """Start a browser, context and page under ``name``, replacing any previous one."""
        async with self._lock:
            previous = self._sessions.pop(name, None)
            if previous is not None:
                logger.info("Replacing existing session '%s'", name)
                await _shutdown(name, previous)

            pw = await self._playwright_factory().start()
            try:
                browser = await pw.chromium.launch(
                    headless=self._config.headless, args=_LAUNCH_ARGS,
                )
                context = await browser.new_context(
                    user_agent=self._config.user_agent,
                    viewport={
                        "width": self._config.viewport_width,
                        "height": self._config.viewport_height,
                    },
                    locale=self._config.locale,
                )
                page = await context.new_page()
            except Exception:
                await pw.stop()
                raise

            self._sessions[name] = BrowserSession(pw, browser, context, page)
            logger.info("Launched browser session '%s'", name)

    async def navigate(self, name: str, url: str) -> str:
        """Load ``url``, let client-side rendering settle, dismiss consent overlays.

        Returns the page title.
        """
        page = self._page(name)
        await page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=self._config.navigation_timeout_ms,
        )
        await page.wait_for_timeout(self._config.settle_ms)
        await dismiss_cookie_banners(page)
        return await page.title()  # type: ignore[no-any-return]

    async def fill(self, name: str, selector: str, value: str) -> None:
        page = self._page(name)
        await page.fill(selector, value)

    async def click(self, name: str, selector: str) -> None:
        page = self._page(name)
        await page.click(selector, timeout=self._config.click_timeout_ms)
        await page.wait_for_timeout(2000)

    async def wait(self, name: str, ms: int) -> int:
        """Wait ``ms`` milliseconds, capped by ``max_wait_ms``. Returns the time waited."""
        page = self._page(name)
        safe_ms = max(0, min(ms, self._config.max_wait_ms))
        await page.wait_for_timeout(safe_ms)
        return safe_ms

    async def scroll(self, name: str, steps: int = 3) -> None:
        page = self._page(name)
        await scroll_viewports(page, steps=steps)

    async def extract_links(self, name: str, selector: str) -> list[PageLink]:
        """Return text and href of every element matching ``selector``."""
        page = self._page(name)
        links: list[PageLink] = []
        for el in await page.query_selector_all(selector):
            text = ""
            href = ""
            try:
                text = (await el.inner_text() or "").strip()
            except Exception:
                logger.debug("Link element without text", exc_info=True)
            try:
                href = await el.get_attribute("href") or ""
            except Exception:
                logger.debug("Link element without href", exc_info=True)
            links.append(PageLink(text=text, href=href))
        return links

    async def snapshot(self, name: str) -> str:
        """Compact accessibility-tree text of the page body, capped in size."""
        page = self._page(name)
        snapshot: str = await page.locator("body").aria_snapshot()
        limit = self._config.snapshot_max_chars
        if len(snapshot) > limit:
            snapshot = snapshot[:limit] + "\n... (truncated)"
        return snapshot

    async def get_url(self, name: str) -> str:
        return self._page(name).url  # type: ignore[no-any-return]

    async def get_job_description(self, name: str, max_length: int = 8000) -> str:
        """Run the description cascade on the current page's serialized DOM."""
        page = self._page(name)
        html = await page.content()
        return extract_job_description(html, max_length=max_length)

    async def close(self, name: str) -> None:
        """Release the browser of ``name``. Unknown or closed sessions are ignored."""
        async with self._lock:
            session = self._sessions.pop(name, None)
        if session is None:
            return
        await _shutdown(name, session)

    async def close_all(self) -> None:
        for name in self.active_sessions:
            await self.close(name)

    def _page(self, name: str) -> Any:
        session = self._sessions.get(name)
        if session is None:
            msg = f"Session '{name}' not found. Call launch() first."
            raise SessionNotFoundError(msg)
        return session.page


async def _shutdown(name: str, session: BrowserSession) -> None:
    try:
        await session.browser.close()
    except Exception:
        logger.debug("Browser of session '%s' already closed", name, exc_info=True)
    try:
        await session.playwright.stop()
    except Exception:
        logger.debug("Playwright driver of session '%s' already stopped", name, exc_info=True)
    elapsed = (datetime.now() - session.started_at).total_seconds()
    logger.info("Closed browser session '%s' after %.1fs", name, elapsed)
