"""Reusable page actions: cookie-banner dismissal and lazy-load scrolling."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Refuse first, accept when refusing is not offered.
COOKIE_BUTTON_SELECTORS: tuple[str, ...] = (
    'button[title*="accepter" i]',
    'button:has-text("Non merci")',
    'button:has-text("Fermer sans accepter")',
    'button:has-text("Reject all")',
    'button:has-text("Tout accepter")',
    'button:has-text("Accepter")',
    'button:has-text("Accept all")',
    'button:has-text("Accept cookies")',
    'button:has-text("J\'accepte")',
    'button:has-text("OK pour moi")',
    "#onetrust-accept-btn-handler",
    '[data-testid="cookie-accept"]',
    '[aria-label*="cookie" i][aria-label*="fermer" i]',
)


async def dismiss_cookie_banners(
    page: Any,
    selectors: tuple[str, ...] = COOKIE_BUTTON_SELECTORS,
) -> bool:
    """Click the first visible consent button. Best effort, never raises.

    Returns True if a button was clicked.
    """
    for selector in selectors:
        try:
            button = page.locator(selector).first
            if await button.is_visible():
                await button.click(timeout=2000)
                await page.wait_for_timeout(1000)
                logger.debug("Dismissed cookie banner with '%s'", selector)
                return True
        except Exception:
            logger.debug("Cookie selector '%s' failed, trying next", selector, exc_info=True)
    return False


async def scroll_viewports(
    page: Any,
    *,
    steps: int = 3,
    pause_ms: int = 800,
    settle_ms: int = 1500,
) -> None:
    """Scroll down one viewport height per step to trigger lazy-loaded content."""
    for step in range(steps):
        await page.evaluate("window.scrollBy(0, window.innerHeight)")
        logger.debug("Scroll step %d/%d", step + 1, steps)
        await page.wait_for_timeout(pause_ms)
    await page.wait_for_timeout(settle_ms)
