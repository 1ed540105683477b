"""Pure trigger evaluation: (now, schedule configs) → user ids due this minute."""

import logging
from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict

from jobagent.core.schemas import ScheduleConfig

logger = logging.getLogger(__name__)

TRIGGER_EVENT_NAME = "search/user.trigger"


class TriggerEvent(BaseModel):
    """One scheduled run request. Carries only the user id."""

    model_config = ConfigDict(frozen=True)

    name: str = TRIGGER_EVENT_NAME
    user_id: str


def local_time(now: datetime, timezone: str) -> datetime:
    """Convert ``now`` to ``timezone``, falling back to UTC for an invalid zone.

    A naive ``now`` is taken as UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    try:
        tz = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.warning("Invalid timezone '%s', using UTC", timezone)
        return now.astimezone(UTC)
    return now.astimezone(tz)


def is_due(now: datetime, config: ScheduleConfig) -> bool:
    if not config.is_active:
        return False
    local = local_time(now, config.timezone)
    return local.hour == config.hour and local.minute == config.minute


def matching_user_ids(now: datetime, configs: list[ScheduleConfig]) -> list[str]:
    """Return user ids whose local time matches their schedule exactly (minute precision)."""
    return [c.user_id for c in configs if is_due(now, c)]


def build_trigger_events(user_ids: list[str]) -> list[TriggerEvent]:
    return [TriggerEvent(user_id=uid) for uid in user_ids]
