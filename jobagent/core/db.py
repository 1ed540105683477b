"""SQLite storage for profiles, search configs, schedules, offers, and run status."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import SecretStr

from jobagent.core.schemas import (
    AgentRun,
    RunStatus,
    ScheduleConfig,
    ScrapedOffer,
    StoredSearchConfig,
    UserProfile,
)

_PROFILES_TABLE = """
CREATE TABLE IF NOT EXISTS profiles (
    user_id            TEXT PRIMARY KEY,
    linkedin_email     TEXT,
    linkedin_password  TEXT,
    updated_at         TEXT NOT NULL
);
"""

_SEARCH_CONFIGS_TABLE = """
CREATE TABLE IF NOT EXISTS search_configs (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id           TEXT    NOT NULL,
    name              TEXT    NOT NULL,
    query             TEXT    NOT NULL,
    location          TEXT    NOT NULL DEFAULT '',
    sites             TEXT    NOT NULL DEFAULT '["linkedin"]',
    contract_types    TEXT    NOT NULL DEFAULT '[]',
    remote            INTEGER NOT NULL DEFAULT 0,
    salary_min        INTEGER,
    exclude_keywords  TEXT    NOT NULL DEFAULT '[]',
    is_active         INTEGER NOT NULL DEFAULT 1,
    created_at        TEXT    NOT NULL
);
"""

_SCHEDULE_CONFIGS_TABLE = """
CREATE TABLE IF NOT EXISTS schedule_configs (
    user_id           TEXT PRIMARY KEY,
    hour              INTEGER NOT NULL DEFAULT 8,
    minute            INTEGER NOT NULL DEFAULT 0,
    timezone          TEXT    NOT NULL DEFAULT 'Europe/Paris',
    is_active         INTEGER NOT NULL DEFAULT 0,
    search_config_id  INTEGER
);
"""

_OFFERS_TABLE = """
CREATE TABLE IF NOT EXISTS offers (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         TEXT    NOT NULL,
    title           TEXT    NOT NULL,
    company         TEXT    NOT NULL DEFAULT '',
    location        TEXT    NOT NULL DEFAULT '',
    url             TEXT    NOT NULL,
    description     TEXT    NOT NULL DEFAULT '',
    salary          TEXT,
    contract_type   TEXT,
    source          TEXT    NOT NULL,
    origin          TEXT    NOT NULL,
    is_new          INTEGER NOT NULL DEFAULT 1,
    is_bookmarked   INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT    NOT NULL,
    updated_at      TEXT    NOT NULL,
    UNIQUE(user_id, url)
);
"""

_AGENT_RUNS_TABLE = """
CREATE TABLE IF NOT EXISTS agent_runs (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id      TEXT NOT NULL,
    type         TEXT NOT NULL,
    status       TEXT NOT NULL,
    label        TEXT NOT NULL,
    result_json  TEXT,
    error        TEXT,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    for ddl in (
        _PROFILES_TABLE,
        _SEARCH_CONFIGS_TABLE,
        _SCHEDULE_CONFIGS_TABLE,
        _OFFERS_TABLE,
        _AGENT_RUNS_TABLE,
    ):
        conn.execute(ddl)
    conn.commit()
    return conn


# --- Profiles ---


def upsert_profile(conn: sqlite3.Connection, profile: UserProfile) -> None:
    """Create or replace the stored credentials of a user."""
    password = (
        profile.linkedin_password.get_secret_value()
        if profile.linkedin_password is not None
        else None
    )
    conn.execute(
        """
        INSERT INTO profiles (user_id, linkedin_email, linkedin_password, updated_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(user_id) DO UPDATE SET
            linkedin_email = excluded.linkedin_email,
            linkedin_password = excluded.linkedin_password,
            updated_at = excluded.updated_at
        """,
        (profile.user_id, profile.linkedin_email, password, datetime.now().isoformat()),
    )
    conn.commit()


def get_profile(conn: sqlite3.Connection, user_id: str) -> UserProfile | None:
    row = conn.execute(
        "SELECT user_id, linkedin_email, linkedin_password FROM profiles WHERE user_id = ?",
        (user_id,),
    ).fetchone()
    if row is None:
        return None
    password = row["linkedin_password"]
    return UserProfile(
        user_id=row["user_id"],
        linkedin_email=row["linkedin_email"],
        linkedin_password=SecretStr(password) if password is not None else None,
    )


# --- Search configs ---


def insert_search_config(conn: sqlite3.Connection, config: StoredSearchConfig) -> int:
    """Store a search config. Returns the row ID."""
    cursor = conn.execute(
        """
        INSERT INTO search_configs
            (user_id, name, query, location, sites, contract_types, remote,
             salary_min, exclude_keywords, is_active, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            config.user_id,
            config.name,
            config.query,
            config.location,
            json.dumps(config.sites),
            json.dumps(config.contract_types),
            int(config.remote),
            config.salary_min,
            json.dumps(config.exclude_keywords),
            int(config.is_active),
            datetime.now().isoformat(),
        ),
    )
    conn.commit()
    return cursor.lastrowid or 0


def get_search_config(conn: sqlite3.Connection, config_id: int) -> StoredSearchConfig | None:
    row = conn.execute("SELECT * FROM search_configs WHERE id = ?", (config_id,)).fetchone()
    return _row_to_search_config(row) if row is not None else None


def list_active_search_configs(
    conn: sqlite3.Connection, user_id: str,
) -> list[StoredSearchConfig]:
    rows = conn.execute(
        "SELECT * FROM search_configs WHERE user_id = ? AND is_active = 1 ORDER BY id",
        (user_id,),
    ).fetchall()
    return [_row_to_search_config(r) for r in rows]


def _row_to_search_config(row: sqlite3.Row) -> StoredSearchConfig:
    return StoredSearchConfig(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        query=row["query"],
        location=row["location"],
        sites=json.loads(row["sites"]),
        contract_types=json.loads(row["contract_types"]),
        remote=bool(row["remote"]),
        salary_min=row["salary_min"],
        exclude_keywords=json.loads(row["exclude_keywords"] or "[]"),
        is_active=bool(row["is_active"]),
    )


# --- Schedules ---


def upsert_schedule_config(conn: sqlite3.Connection, config: ScheduleConfig) -> None:
    conn.execute(
        """
        INSERT INTO schedule_configs
            (user_id, hour, minute, timezone, is_active, search_config_id)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(user_id) DO UPDATE SET
            hour = excluded.hour,
            minute = excluded.minute,
            timezone = excluded.timezone,
            is_active = excluded.is_active,
            search_config_id = excluded.search_config_id
        """,
        (
            config.user_id,
            config.hour,
            config.minute,
            config.timezone,
            int(config.is_active),
            config.search_config_id,
        ),
    )
    conn.commit()


def get_schedule_config(conn: sqlite3.Connection, user_id: str) -> ScheduleConfig | None:
    row = conn.execute(
        "SELECT * FROM schedule_configs WHERE user_id = ?", (user_id,),
    ).fetchone()
    return _row_to_schedule(row) if row is not None else None


def list_active_schedule_configs(conn: sqlite3.Connection) -> list[ScheduleConfig]:
    rows = conn.execute(
        "SELECT * FROM schedule_configs WHERE is_active = 1 ORDER BY user_id",
    ).fetchall()
    return [_row_to_schedule(r) for r in rows]


def _row_to_schedule(row: sqlite3.Row) -> ScheduleConfig:
    return ScheduleConfig(
        user_id=row["user_id"],
        is_active=bool(row["is_active"]),
        hour=row["hour"],
        minute=row["minute"],
        timezone=row["timezone"],
        search_config_id=row["search_config_id"],
    )


# --- Offers ---


def upsert_offer(
    conn: sqlite3.Connection,
    user_id: str,
    offer: ScrapedOffer,
    origin: str,
) -> bool:
    """Insert an offer keyed by (user_id, url), or refresh its mutable fields.

    ``origin`` and ``source`` are only written on insert, so the way an offer
    was first discovered survives later runs.

    Returns True if a new row was inserted, False if an existing row was updated.
    """
    now = datetime.now().isoformat()
    try:
        conn.execute(
            """
            INSERT INTO offers
                (user_id, title, company, location, url, description, salary,
                 contract_type, source, origin, is_new, is_bookmarked,
                 created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, 0, ?, ?)
            """,
            (
                user_id,
                offer.title,
                offer.company,
                offer.location,
                offer.url,
                offer.description,
                offer.salary,
                offer.contract_type,
                offer.source,
                origin,
                now,
                now,
            ),
        )
        conn.commit()
        return True
    except sqlite3.IntegrityError:
        conn.execute(
            """
            UPDATE offers SET
                title = ?, company = ?, location = ?, description = ?,
                salary = ?, contract_type = ?, updated_at = ?
            WHERE user_id = ? AND url = ?
            """,
            (
                offer.title,
                offer.company,
                offer.location,
                offer.description,
                offer.salary,
                offer.contract_type,
                now,
                user_id,
                offer.url,
            ),
        )
        conn.commit()
        return False


def list_offers(conn: sqlite3.Connection, user_id: str) -> list[dict[str, Any]]:
    """Return stored offers of a user, oldest first, as plain dicts."""
    rows = conn.execute(
        "SELECT * FROM offers WHERE user_id = ? ORDER BY id", (user_id,),
    ).fetchall()
    return [dict(r) for r in rows]


# --- Agent runs (status reporting) ---


def create_agent_run(
    conn: sqlite3.Connection,
    user_id: str,
    run_type: str,
    label: str,
) -> int:
    """Record a run in "pending" state before it starts. Returns the row ID."""
    now = datetime.now().isoformat()
    cursor = conn.execute(
        """
        INSERT INTO agent_runs (user_id, type, status, label, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (user_id, run_type, RunStatus.PENDING.value, label, now, now),
    )
    conn.commit()
    return cursor.lastrowid or 0


def mark_agent_run_success(
    conn: sqlite3.Connection, run_id: int, result: dict[str, Any],
) -> None:
    conn.execute(
        "UPDATE agent_runs SET status = ?, result_json = ?, updated_at = ? WHERE id = ?",
        (RunStatus.SUCCESS.value, json.dumps(result), datetime.now().isoformat(), run_id),
    )
    conn.commit()


def mark_agent_run_error(conn: sqlite3.Connection, run_id: int, error: str) -> None:
    conn.execute(
        "UPDATE agent_runs SET status = ?, error = ?, updated_at = ? WHERE id = ?",
        (RunStatus.ERROR.value, error, datetime.now().isoformat(), run_id),
    )
    conn.commit()


def get_agent_run(conn: sqlite3.Connection, run_id: int) -> AgentRun | None:
    row = conn.execute("SELECT * FROM agent_runs WHERE id = ?", (run_id,)).fetchone()
    if row is None:
        return None
    return AgentRun(
        id=row["id"],
        user_id=row["user_id"],
        type=row["type"],
        status=RunStatus(row["status"]),
        label=row["label"],
        result=json.loads(row["result_json"]) if row["result_json"] else None,
        error=row["error"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )
