"""Paginated collection of result pages from an authenticated session.

Per page (strictly sequential):
  1. Navigate to the offset URL (``start = page * results_per_page``)
  2. Block signature in the URL → BlockedError on the first page, stop otherwise
  3. Scroll to trigger lazy loading, capture the snapshot
  4. Snapshot shorter than ``min_snapshot_chars`` → empty page, stop
  5. Extract job links with fallback selectors; no new link after page 0 → stop

The session is left open: enrichment reuses the authenticated browser.
"""

import logging
from typing import Any

from jobagent.core.config import CollectionConfig
from jobagent.core.errors import BlockedError
from jobagent.core.schemas import PageLink, SearchCriteria
from jobagent.platforms.linkedin.site import LINKEDIN_CONFIG, SiteConfig, build_search_url

logger = logging.getLogger(__name__)

BLOCKED_MESSAGE = (
    "LinkedIn blocked access to the search results. "
    "Log in manually in a browser first, then run the search again."
)


class CollectionResult:
    """Snapshots and links gathered over all collected pages."""

    def __init__(self, snapshot: str, links: list[PageLink], pages: int) -> None:
        self.snapshot = snapshot
        self.links = links
        self.pages = pages


def is_blocked_url(url: str, site: SiteConfig = LINKEDIN_CONFIG) -> bool:
    url_lower = url.lower()
    return any(indicator in url_lower for indicator in site.block_url_indicators)


def combine_snapshots(snapshots: list[str]) -> str:
    """Join page snapshots with page-boundary markers."""
    total = len(snapshots)
    return "\n\n".join(
        f"--- Page {i}/{total} ---\n{snapshot}" for i, snapshot in enumerate(snapshots, start=1)
    )


async def collect_pages(
    sessions: Any,
    session_name: str,
    criteria: SearchCriteria,
    config: CollectionConfig,
    site: SiteConfig = LINKEDIN_CONFIG,
) -> CollectionResult | None:
    """Collect up to ``config.max_pages`` result pages.

    Returns None when no page produced a usable snapshot.

    Raises:
        BlockedError: If the first page lands on a block page.
    """
    snapshots: list[str] = []
    links: list[PageLink] = []
    seen_hrefs: set[str] = set()

    for page_num in range(config.max_pages):
        url = build_search_url(criteria, page_num, config.results_per_page, site)
        logger.info("Page %d/%d: navigating to %s", page_num + 1, config.max_pages, url)
        await sessions.navigate(session_name, url)

        current_url = await sessions.get_url(session_name)
        if is_blocked_url(current_url, site):
            logger.warning("Blocked on page %d (URL: %s)", page_num + 1, current_url)
            if page_num == 0:
                raise BlockedError(BLOCKED_MESSAGE)
            logger.info("Stopping pagination after block, keeping %d page(s)", len(snapshots))
            break

        await sessions.scroll(session_name, steps=config.scroll_steps)
        snapshot = await sessions.snapshot(session_name)
        logger.info("Page %d: snapshot of %d chars", page_num + 1, len(snapshot))

        if len(snapshot) < config.min_snapshot_chars:
            logger.info("Page %d: snapshot too short, end of results", page_num + 1)
            break

        snapshots.append(snapshot)

        page_links = await _extract_job_links(sessions, session_name, site)
        new_links = []
        for link in page_links:
            if link.href and link.href in seen_hrefs:
                continue
            seen_hrefs.add(link.href)
            new_links.append(link)
        logger.info(
            "Page %d: %d links extracted, %d new", page_num + 1, len(page_links), len(new_links),
        )

        if not new_links and page_num > 0:
            logger.info("Page %d: no new links, end of results", page_num + 1)
            break

        links.extend(new_links)

    if not snapshots:
        logger.warning("No usable snapshot captured on any page")
        return None

    combined = combine_snapshots(snapshots)
    logger.info(
        "Collection done: %d page(s), %d snapshot chars, %d links",
        len(snapshots), len(combined), len(links),
    )
    return CollectionResult(snapshot=combined, links=links, pages=len(snapshots))


async def _extract_job_links(
    sessions: Any, session_name: str, site: SiteConfig,
) -> list[PageLink]:
    """Try link selectors in order, return the first non-empty result."""
    for selector in site.job_link_selectors:
        try:
            links: list[PageLink] = await sessions.extract_links(session_name, selector)
        except Exception:
            logger.debug("Link selector '%s' raised, trying next", selector, exc_info=True)
            continue
        if links:
            logger.debug("Found %d links with selector '%s'", len(links), selector)
            return links
    return []
