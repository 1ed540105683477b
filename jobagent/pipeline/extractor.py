"""Structured extraction of offers from a collected snapshot (one LLM call).

The model is asked for a bare JSON array. Parsing is forgiving: the first
``[...]`` span of the answer is decoded, invalid entries are dropped, and any
failure yields an empty list. A bad answer means zero offers, not a failed run.
"""

import asyncio
import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from jobagent.core.config import ExtractionConfig, LLMConfig
from jobagent.core.schemas import PageLink, ScrapedOffer, SearchCriteria
from jobagent.llm.base import LLMProvider
from jobagent.platforms.linkedin.site import LINKEDIN_CONFIG, SiteConfig, resolve_url

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY = "Unknown company"

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def build_extraction_prompt(
    snapshot: str,
    links: list[PageLink],
    criteria: SearchCriteria,
    config: ExtractionConfig,
    site: SiteConfig = LINKEDIN_CONFIG,
) -> str:
    """Assemble the single extraction prompt."""
    if len(snapshot) > config.snapshot_char_limit:
        snapshot = snapshot[: config.snapshot_char_limit] + "\n... (truncated)"

    links_section = ""
    if links:
        lines = [
            f'{i}. "{link.text}" -> {link.href}'
            for i, link in enumerate(links[: config.max_offers], start=1)
        ]
        links_section = "\nJob links found on the page:\n" + "\n".join(lines) + "\n"

    exclusion = ""
    if criteria.exclude_keywords:
        exclusion = (
            "Exclude offers mentioning any of: "
            f"{', '.join(criteria.exclude_keywords)}\n"
        )

    return (
        f"Extract the job offers from this snapshot of {site.name} search results "
        "(authenticated session).\n"
        "Return ONLY a JSON array (no text before or after).\n\n"
        f'Criteria: "{criteria.query}" in "{criteria.location}"\n'
        f"{exclusion}"
        f"{links_section}\n"
        f"Page snapshot:\n{snapshot}\n\n"
        f"Expected JSON format (at most {config.max_offers} offers):\n"
        '[{"title":"...","company":"...","location":"...","url":"...",'
        '"description":"short summary, 100-200 chars","salary":null,"contractType":null}]\n\n'
        "Rules:\n"
        f'- url must be absolute (prefix with "{site.base_url}" when relative)\n'
        "- description = short summary visible in the result list, not the detail page\n"
        "- salary and contractType = null when not visible\n"
        "- Skip offers without a title or a link"
    )


def parse_offers(
    raw_text: str,
    *,
    max_offers: int = 75,
    default_location: str = "",
    site: SiteConfig = LINKEDIN_CONFIG,
) -> list[ScrapedOffer]:
    """Parse the model answer into offers. Never raises."""
    match = _JSON_ARRAY_RE.search(raw_text or "")
    if match is None:
        logger.warning("No JSON array in extraction answer")
        return []

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.error("Failed to parse extraction JSON: %s", e)
        logger.debug("Raw answer: %s", raw_text[:300])
        return []

    if not isinstance(data, list):
        logger.warning("Extraction JSON is not an array")
        return []

    offers: list[ScrapedOffer] = []
    for entry in data:
        offer = _to_offer(entry, default_location, site)
        if offer is not None:
            offers.append(offer)
    dropped = len(data) - len(offers)
    if dropped:
        logger.debug("Dropped %d entries without title or url", dropped)
    return offers[:max_offers]


def exclude_by_keywords(offers: list[ScrapedOffer], keywords: list[str]) -> list[ScrapedOffer]:
    """Remove offers whose title contains any excluded keyword (case-insensitive)."""
    lowered = [kw.lower().strip() for kw in keywords if kw.strip()]
    if not lowered:
        return offers
    result = [o for o in offers if not any(kw in o.title.lower() for kw in lowered)]
    excluded = len(offers) - len(result)
    if excluded:
        logger.info("Excluded %d offers by keyword", excluded)
    return result


async def extract_offers(
    provider: LLMProvider,
    snapshot: str,
    links: list[PageLink],
    criteria: SearchCriteria,
    *,
    config: ExtractionConfig,
    llm: LLMConfig,
    site: SiteConfig = LINKEDIN_CONFIG,
) -> list[ScrapedOffer]:
    """Send the snapshot to the provider and return the parsed offers."""
    prompt = build_extraction_prompt(snapshot, links, criteria, config, site)
    raw = await asyncio.to_thread(
        provider.complete,
        prompt,
        llm.extraction_model or provider.default_model,
        max_tokens=llm.extraction_max_tokens,
    )
    if not raw:
        logger.warning("Extraction answer has no text")
        return []

    offers = parse_offers(
        raw,
        max_offers=config.max_offers,
        default_location=criteria.location,
        site=site,
    )
    return exclude_by_keywords(offers, criteria.exclude_keywords)


def _to_offer(entry: Any, default_location: str, site: SiteConfig) -> ScrapedOffer | None:
    if not isinstance(entry, dict):
        return None
    title = _text(entry.get("title"))
    url = _text(entry.get("url"))
    if not title or not url:
        return None
    try:
        return ScrapedOffer(
            title=title,
            company=_text(entry.get("company")) or UNKNOWN_COMPANY,
            location=_text(entry.get("location")) or default_location,
            url=resolve_url(url, site),
            description=_text(entry.get("description")),
            salary=_text(entry.get("salary")) or None,
            contract_type=_text(entry.get("contractType", entry.get("contract_type"))) or None,
            source=site.id,
        )
    except ValidationError:
        logger.debug("Invalid offer entry, skipping", exc_info=True)
        return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
