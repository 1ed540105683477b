"""Interactive trigger: run one stored search config with status tracking.

  1. Load the search config and the owner's credentials
  2. Create a RunStatus row in "pending" state
  3. Run the agent, store offers with origin "manual"
  4. Mark the row "success" with counts, or "error" with the message
"""

import logging
import sqlite3
from collections.abc import Awaitable, Callable
from typing import Any

from jobagent.core.config import Settings
from jobagent.core.db import (
    create_agent_run,
    get_profile,
    get_search_config,
    mark_agent_run_error,
    mark_agent_run_success,
)
from jobagent.core.errors import ConfigurationError, describe_error
from jobagent.core.schemas import ScrapedOffer, SearchCriteria
from jobagent.llm.base import LLMProvider
from jobagent.pipeline.orchestrator import run_search_agent
from jobagent.pipeline.writeback import store_offers

logger = logging.getLogger(__name__)

MANUAL_ORIGIN = "manual"
SEARCH_RUN_TYPE = "search"

RunAgent = Callable[..., Awaitable[list[ScrapedOffer]]]


def load_criteria(conn: sqlite3.Connection, user_id: str, search_config_id: int) -> tuple[str, SearchCriteria]:
    """Return (config name, criteria) for a search config owned by ``user_id``.

    Raises:
        ConfigurationError: If the config does not exist, belongs to another
            user, or the user has no stored credentials.
    """
    config = get_search_config(conn, search_config_id)
    if config is None or config.user_id != user_id:
        msg = f"Search config {search_config_id} not found"
        raise ConfigurationError(msg)

    profile = get_profile(conn, user_id)
    if profile is None or not profile.has_credentials:
        msg = "LinkedIn credentials are not configured. Add them to your profile first."
        raise ConfigurationError(msg)

    return config.name, config.to_criteria(profile)


async def run_search_for_config(
    conn: sqlite3.Connection,
    user_id: str,
    search_config_id: int,
    *,
    settings: Settings,
    sessions: Any,
    provider: LLMProvider | None = None,
    run_agent: RunAgent = run_search_agent,
) -> dict[str, Any]:
    """Run one search and return the summary stored on the RunStatus row.

    Any error is recorded on the row (user-facing message only) and re-raised.
    """
    name, criteria = load_criteria(conn, user_id, search_config_id)
    run_id = create_agent_run(conn, user_id, SEARCH_RUN_TYPE, f"Search: {name}")

    try:
        offers = await run_agent(
            criteria, user_id, settings=settings, sessions=sessions, provider=provider,
        )
        stored = store_offers(conn, user_id, offers, MANUAL_ORIGIN)
    except Exception as e:
        logger.error("Search '%s' failed for %s: %s", name, user_id, e)
        mark_agent_run_error(conn, run_id, describe_error(e))
        raise

    summary: dict[str, Any] = {
        "search_config_id": search_config_id,
        "total": len(offers),
        "new": stored.new_count,
        "updated": stored.updated_count,
    }
    mark_agent_run_success(conn, run_id, summary)
    logger.info("Search '%s' done: %s", name, summary)
    return summary
