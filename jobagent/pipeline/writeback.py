"""Persist run results: one idempotent upsert per offer, keyed by (user, url)."""

import logging
import sqlite3

from jobagent.core.db import upsert_offer
from jobagent.core.schemas import ScrapedOffer
from jobagent.pipeline.enricher import ItemError

logger = logging.getLogger(__name__)


class WriteBackResult:
    """Counts of a write-back fold."""

    def __init__(self) -> None:
        self.new_count = 0
        self.updated_count = 0
        self.errors: list[ItemError] = []

    @property
    def total(self) -> int:
        return self.new_count + self.updated_count


def store_offers(
    conn: sqlite3.Connection,
    user_id: str,
    offers: list[ScrapedOffer],
    origin: str,
) -> WriteBackResult:
    """Upsert each offer; a failing offer is logged and does not stop the others."""
    result = WriteBackResult()
    for offer in offers:
        if not offer.url:
            continue
        try:
            is_new = upsert_offer(conn, user_id, offer, origin)
        except sqlite3.Error as e:
            logger.warning("Failed to store offer %s: %s", offer.url, e, exc_info=True)
            result.errors.append(ItemError(offer.url, str(e)))
            continue
        if is_new:
            result.new_count += 1
        else:
            result.updated_count += 1

    logger.info(
        "Stored offers for %s: %d new, %d updated, %d errors",
        user_id, result.new_count, result.updated_count, len(result.errors),
    )
    return result
