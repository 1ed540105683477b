"""Run controller: login → collect → extract → enrich for one SearchCriteria.

Data flow:
  1. Credential gate (before any resource is opened)
  2. Launch a session named after the run
  3. Login: CHALLENGE/FAILURE raise, collection never starts
  4. Collect result pages → combined snapshot + links
  5. Extract offers (one service call)
  6. Enrich detail pages, merge descriptions back by URL

Stages run strictly in sequence. The session is closed on every exit path.
"""

import logging
from typing import Any

from jobagent.browser.session import new_session_name
from jobagent.core.config import Settings
from jobagent.core.schemas import ScrapedOffer, SearchCriteria
from jobagent.llm import get_provider
from jobagent.llm.base import LLMProvider
from jobagent.pipeline.collector import collect_pages
from jobagent.pipeline.enricher import enrich_offers
from jobagent.pipeline.extractor import extract_offers
from jobagent.platforms.linkedin.auth import LinkedInAuthenticator
from jobagent.platforms.linkedin.site import get_site_config

logger = logging.getLogger(__name__)


def merge_descriptions(
    offers: list[ScrapedOffer], descriptions: dict[str, str],
) -> list[ScrapedOffer]:
    """Replace descriptions by URL lookup; offers not enriched keep their own."""
    merged: list[ScrapedOffer] = []
    for offer in offers:
        description = descriptions.get(offer.url)
        if description is None:
            merged.append(offer)
        else:
            merged.append(offer.model_copy(update={"description": description}))
    return merged


async def run_search_agent(
    criteria: SearchCriteria,
    user_id: str,
    *,
    settings: Settings,
    sessions: Any,
    provider: LLMProvider | None = None,
) -> list[ScrapedOffer]:
    """Execute one run and return the ordered offers.

    Raises:
        ConfigurationError: If the service credential is missing (nothing opened yet).
        AuthenticationError: If login ends in CHALLENGE or FAILURE.
        BlockedError: If the first result page is a block page.
    """
    provider = provider or get_provider(settings.llm.provider)
    provider.api_key()
    site = get_site_config(criteria.sites[0])

    session_name = new_session_name(user_id, site.id)
    logger.info("Starting run '%s' for '%s' in '%s'", session_name, criteria.query, criteria.location)

    try:
        await sessions.launch(session_name)

        authenticator = LinkedInAuthenticator(sessions, session_name, site)
        outcome = await authenticator.login(
            criteria.linkedin_email, criteria.linkedin_password.get_secret_value(),
        )
        outcome.raise_for_state()

        collection = await collect_pages(
            sessions, session_name, criteria, settings.collection, site,
        )
        if collection is None:
            logger.info("No usable result page, returning no offers")
            return []

        offers = await extract_offers(
            provider,
            collection.snapshot,
            collection.links,
            criteria,
            config=settings.extraction,
            llm=settings.llm,
            site=site,
        )
        logger.info("Extracted %d offers", len(offers))
        if not offers:
            return []

        enrichment = await enrich_offers(
            sessions,
            session_name,
            offers,
            provider,
            config=settings.enrichment,
            llm=settings.llm,
        )
        logger.info(
            "Visited %d detail pages, %d descriptions replaced, %d failed",
            enrichment.visited, len(enrichment.descriptions), len(enrichment.errors),
        )
        return merge_descriptions(offers, enrichment.descriptions)
    finally:
        await sessions.close(session_name)
