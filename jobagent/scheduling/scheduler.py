"""Minute-cadence trigger loop with at-least-once event delivery.

``tick`` evaluates every active schedule and enqueues one event per due user.
``run_forever`` ticks on each minute boundary and dispatches every queued
event to the consumer as its own task, so different users run in parallel
while the consumer serializes runs of the same user.
"""

import asyncio
import logging
import sqlite3
from datetime import UTC, datetime

from jobagent.core.db import list_active_schedule_configs
from jobagent.scheduling.consumer import ConsumerResult, RunConsumer
from jobagent.scheduling.triggers import TriggerEvent, build_trigger_events, matching_user_ids

logger = logging.getLogger(__name__)


def seconds_until_next_tick(now: datetime, tick_seconds: int = 60) -> float:
    """Seconds from ``now`` to the next multiple of ``tick_seconds`` since the epoch."""
    elapsed = now.timestamp() % tick_seconds
    return tick_seconds - elapsed


class Scheduler:
    """Owns the event queue between trigger evaluation and the consumer."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        consumer: RunConsumer,
        *,
        tick_seconds: int = 60,
    ) -> None:
        self._conn = conn
        self._consumer = consumer
        self._tick_seconds = tick_seconds
        self.queue: asyncio.Queue[TriggerEvent] = asyncio.Queue()
        self._tasks: set[asyncio.Task[ConsumerResult | None]] = set()

    def tick(self, now: datetime | None = None) -> list[str]:
        """Enqueue one event per user due at ``now``. Returns the user ids."""
        now = now or datetime.now(UTC)
        configs = list_active_schedule_configs(self._conn)
        user_ids = matching_user_ids(now, configs)
        for event in build_trigger_events(user_ids):
            self.queue.put_nowait(event)
        if user_ids:
            logger.info("Triggered %d user(s): %s", len(user_ids), ", ".join(user_ids))
        else:
            logger.debug("No schedule due at %s (%d active)", now.isoformat(), len(configs))
        return user_ids

    def dispatch_pending(self) -> int:
        """Start a consumer task for every queued event. Returns the number started."""
        started = 0
        while not self.queue.empty():
            event = self.queue.get_nowait()
            task = asyncio.create_task(self._consume(event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            started += 1
        return started

    async def _consume(self, event: TriggerEvent) -> ConsumerResult | None:
        try:
            return await self._consumer.handle(event)
        except Exception:
            logger.exception("Consumer failed for %s", event.user_id)
            return None
        finally:
            self.queue.task_done()

    async def drain(self) -> None:
        """Wait for every dispatched consumer task."""
        if self._tasks:
            await asyncio.gather(*self._tasks)

    async def run_forever(self) -> None:
        logger.info("Scheduler started (tick every %ds)", self._tick_seconds)
        while True:
            now = datetime.now(UTC)
            delay = seconds_until_next_tick(now, self._tick_seconds)
            boundary = datetime.fromtimestamp(round(now.timestamp() + delay), UTC)
            await asyncio.sleep(delay)
            # Evaluate at the boundary itself, the wake-up may be a few ms early.
            self.tick(boundary)
            self.dispatch_pending()
