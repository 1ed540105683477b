"""Detail-page enrichment of extracted offers.

For each of the first ``max_detail_pages`` offers:
  1. Pause between visits (not before the first)
  2. Navigate to the offer URL, run the description cascade
  3. Raw text long enough → cleanup call on the cheaper model
  4. Cleaned text long enough replaces the description, otherwise the
     truncated raw text does (only when it is longer than the listing summary)

A failing offer is logged and recorded; the loop always continues.
"""

import asyncio
import logging
from typing import Any

from jobagent.core.config import EnrichmentConfig, LLMConfig
from jobagent.core.schemas import ScrapedOffer
from jobagent.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class ItemError:
    """A per-offer failure that did not abort the batch."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        self.message = message

    def __repr__(self) -> str:
        return f"ItemError(url={self.url!r}, message={self.message!r})"


class EnrichmentResult:
    """Replacement descriptions keyed by offer URL, plus per-offer errors."""

    def __init__(self) -> None:
        self.descriptions: dict[str, str] = {}
        self.errors: list[ItemError] = []
        self.visited = 0


def build_cleanup_prompt(raw_text: str, max_chars: int = 6000) -> str:
    return (
        "Here is the raw text of a job offer page. Extract ONLY the job description, "
        "keeping:\n"
        "- The company presentation (context)\n"
        "- Responsibilities and tasks\n"
        "- Technical stack and tools\n"
        "- Required profile (experience, skills, education)\n"
        "- Contract details (salary, remote work, location) when present\n\n"
        "Remove everything that is not part of the offer: navigation, buttons, "
        "similar offers, cookie banners, footers, social links, and so on.\n\n"
        "Answer with the cleaned text only, in prose or light markdown. No JSON.\n\n"
        f"Raw text:\n{raw_text[:max_chars]}"
    )


async def clean_description(
    provider: LLMProvider,
    raw_text: str,
    *,
    config: EnrichmentConfig,
    llm: LLMConfig,
) -> str:
    """Strip page noise from a raw description with the cheaper model.

    Returns an empty string when the service fails or answers with no text,
    leaving the raw-text fallback to the caller.
    """
    prompt = build_cleanup_prompt(raw_text, config.cleanup_input_max_chars)
    try:
        cleaned = await asyncio.to_thread(
            provider.complete,
            prompt,
            llm.cleanup_model or provider.cleanup_model,
            max_tokens=llm.cleanup_max_tokens,
        )
    except Exception as e:
        logger.warning("Description cleanup failed: %s", e)
        return ""
    return cleaned.strip()


async def enrich_offers(
    sessions: Any,
    session_name: str,
    offers: list[ScrapedOffer],
    provider: LLMProvider,
    *,
    config: EnrichmentConfig,
    llm: LLMConfig,
) -> EnrichmentResult:
    """Visit detail pages and collect replacement descriptions."""
    result = EnrichmentResult()
    batch = offers[: config.max_detail_pages]
    if not batch:
        return result

    logger.info("Enriching %d/%d offers from detail pages", len(batch), len(offers))
    for i, offer in enumerate(batch):
        if i > 0:
            await sessions.wait(session_name, config.pause_ms)
        try:
            description = await _enrich_one(
                sessions, session_name, offer, provider, config=config, llm=llm,
            )
        except Exception as e:
            logger.warning("Enrichment failed for %s: %s", offer.url, e, exc_info=True)
            result.errors.append(ItemError(offer.url, str(e)))
            continue
        result.visited += 1
        if description is not None:
            result.descriptions[offer.url] = description

    return result


async def _enrich_one(
    sessions: Any,
    session_name: str,
    offer: ScrapedOffer,
    provider: LLMProvider,
    *,
    config: EnrichmentConfig,
    llm: LLMConfig,
) -> str | None:
    """Return the replacement description for one offer, or None to keep the current one."""
    await sessions.navigate(session_name, offer.url)
    raw: str = await sessions.get_job_description(
        session_name, max_length=config.description_max_chars,
    )
    if len(raw) < config.min_description_chars:
        logger.debug("Detail page of %s too short (%d chars)", offer.url, len(raw))
        return None

    cleaned = await clean_description(provider, raw, config=config, llm=llm)
    if len(cleaned) >= config.min_description_chars:
        return cleaned

    fallback = raw[: config.raw_fallback_max_chars]
    if len(fallback) > len(offer.description):
        return fallback
    return None
