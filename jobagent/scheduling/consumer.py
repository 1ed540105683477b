"""Run consumer: handles one trigger event per user, one execution per user at a time.

For one event:
  1. Load credentials and the active search configs (a schedule linked to a
     search config restricts the run to that config)
  2. Missing credentials or configs → skipped result, never raises
  3. Each config: run the agent, store offers with origin "scheduled";
     a failing config is recorded and the others still run
  4. One RunStatus row per handled event
"""

import asyncio
import logging
import sqlite3
from typing import Any

from jobagent.core.config import Settings
from jobagent.core.db import (
    create_agent_run,
    get_profile,
    get_schedule_config,
    get_search_config,
    list_active_search_configs,
    mark_agent_run_error,
    mark_agent_run_success,
)
from jobagent.core.errors import describe_error
from jobagent.core.schemas import StoredSearchConfig
from jobagent.llm.base import LLMProvider
from jobagent.pipeline.enricher import ItemError
from jobagent.pipeline.orchestrator import run_search_agent
from jobagent.pipeline.service import RunAgent
from jobagent.pipeline.writeback import store_offers
from jobagent.scheduling.triggers import TriggerEvent

logger = logging.getLogger(__name__)

SCHEDULED_ORIGIN = "scheduled"
SCHEDULED_RUN_TYPE = "scheduled_search"

NO_CREDENTIALS_REASON = "no LinkedIn credentials"
NO_SEARCH_CONFIG_REASON = "no active search config"


class ConsumerResult:
    """Outcome of one handled trigger event."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        self.skipped = False
        self.reason: str | None = None
        self.search_configs = 0
        self.total_new = 0
        self.total_updated = 0
        self.errors: list[ItemError] = []
        self.run_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.skipped:
            return {"user_id": self.user_id, "skipped": True, "reason": self.reason}
        return {
            "user_id": self.user_id,
            "search_configs": self.search_configs,
            "total_new": self.total_new,
            "total_updated": self.total_updated,
            "errors": len(self.errors),
        }


class RunConsumer:
    """Consumes trigger events with a concurrency limit of one per user id.

    A second event for a user whose run is still in progress waits for it
    to finish; events of different users run in parallel.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        settings: Settings,
        sessions: Any,
        *,
        run_agent: RunAgent = run_search_agent,
        provider: LLMProvider | None = None,
    ) -> None:
        self._conn = conn
        self._settings = settings
        self._sessions = sessions
        self._run_agent = run_agent
        self._provider = provider
        self._user_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @property
    def locked_users(self) -> list[str]:
        """User ids with a run in progress or queued."""
        return sorted(self._user_locks)

    def _acquire_slot(self, user_id: str) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._user_locks[user_id] = lock
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        return lock

    def _release_slot(self, user_id: str) -> None:
        remaining = self._lock_users[user_id] - 1
        if remaining:
            self._lock_users[user_id] = remaining
            return
        # Last holder or waiter gone
        del self._lock_users[user_id]
        del self._user_locks[user_id]

    async def handle(self, event: TriggerEvent) -> ConsumerResult:
        lock = self._acquire_slot(event.user_id)
        if lock.locked():
            logger.info("Run already in progress for %s, queuing event", event.user_id)
        try:
            async with lock:
                return await self._handle(event.user_id)
        finally:
            self._release_slot(event.user_id)

    def _search_configs(self, user_id: str) -> list[StoredSearchConfig]:
        schedule = get_schedule_config(self._conn, user_id)
        if schedule is not None and schedule.search_config_id is not None:
            config = get_search_config(self._conn, schedule.search_config_id)
            if config is None or config.user_id != user_id or not config.is_active:
                return []
            return [config]
        return list_active_search_configs(self._conn, user_id)

    async def _handle(self, user_id: str) -> ConsumerResult:
        result = ConsumerResult(user_id)

        profile = get_profile(self._conn, user_id)
        if profile is None or not profile.has_credentials:
            logger.info("Skipping scheduled run for %s: %s", user_id, NO_CREDENTIALS_REASON)
            result.skipped = True
            result.reason = NO_CREDENTIALS_REASON
            return result

        configs = self._search_configs(user_id)
        if not configs:
            logger.info("Skipping scheduled run for %s: %s", user_id, NO_SEARCH_CONFIG_REASON)
            result.skipped = True
            result.reason = NO_SEARCH_CONFIG_REASON
            return result

        result.search_configs = len(configs)
        result.run_id = create_agent_run(
            self._conn,
            user_id,
            SCHEDULED_RUN_TYPE,
            f"Scheduled search: {', '.join(c.name for c in configs)}",
        )

        for config in configs:
            try:
                offers = await self._run_agent(
                    config.to_criteria(profile),
                    user_id,
                    settings=self._settings,
                    sessions=self._sessions,
                    provider=self._provider,
                )
            except Exception as e:
                logger.warning(
                    "Scheduled search '%s' failed for %s: %s", config.name, user_id, e,
                    exc_info=True,
                )
                result.errors.append(ItemError(f"search_config:{config.id}", describe_error(e)))
                continue

            stored = store_offers(self._conn, user_id, offers, SCHEDULED_ORIGIN)
            result.total_new += stored.new_count
            result.total_updated += stored.updated_count

        if len(result.errors) == len(configs):
            mark_agent_run_error(self._conn, result.run_id, result.errors[0].message)
        else:
            mark_agent_run_success(self._conn, result.run_id, result.to_dict())

        logger.info("Scheduled run for %s done: %s", user_id, result.to_dict())
        return result
