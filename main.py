"""CLI entry point for the LinkedIn job-discovery agent."""

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import SecretStr

from jobagent.browser.session import BrowserSessionManager
from jobagent.core.config import Settings
from jobagent.core.db import (
    init_db,
    insert_search_config,
    list_active_schedule_configs,
    list_offers,
    upsert_profile,
    upsert_schedule_config,
)
from jobagent.core.errors import AgentError, describe_error
from jobagent.core.schemas import ScheduleConfig, StoredSearchConfig, UserProfile
from jobagent.pipeline.service import run_search_for_config
from jobagent.scheduling.consumer import RunConsumer
from jobagent.scheduling.scheduler import Scheduler
from jobagent.scheduling.triggers import matching_user_ids

logger = logging.getLogger(__name__)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job-discovery agent - search LinkedIn on behalf of stored users",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- import-user subcommand ---
    import_parser = subparsers.add_parser(
        "import-user",
        help="Store a user's credentials, search configs and schedule from YAML",
    )
    import_parser.add_argument("file", help="Path to the user YAML file")
    _add_common(import_parser)

    # --- search subcommand ---
    search_parser = subparsers.add_parser("search", help="Run one stored search config now")
    search_parser.add_argument("--user", required=True, help="User ID")
    search_parser.add_argument(
        "--search-config",
        type=int,
        required=True,
        help="ID of the search config to run",
    )
    _add_common(search_parser)

    # --- due subcommand ---
    due_parser = subparsers.add_parser("due", help="Print user IDs whose schedule matches now")
    due_parser.add_argument(
        "--at",
        help="ISO datetime to evaluate instead of now (naive values are UTC)",
    )
    _add_common(due_parser)

    # --- offers subcommand ---
    offers_parser = subparsers.add_parser("offers", help="List the stored offers of a user")
    offers_parser.add_argument("--user", required=True, help="User ID")
    _add_common(offers_parser)

    # --- scheduler subcommand ---
    scheduler_parser = subparsers.add_parser(
        "scheduler", help="Evaluate schedules every minute and run due searches",
    )
    _add_common(scheduler_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str) -> Settings:
    """Load settings, falling back to defaults when the file is absent."""
    if not Path(path).exists():
        logger.info("No settings file at %s, using defaults", path)
        return Settings()
    return Settings.from_yaml(path)


def import_user(settings: Settings, path: str) -> None:
    """Load a user YAML file into the database.

    Expected shape::

        user_id: alice
        linkedin_email: alice@example.com
        linkedin_password: secret
        searches:
          - name: Python Paris
            query: Python developer
            location: Paris
        schedule:
          hour: 8
          minute: 0
          timezone: Europe/Paris
          is_active: true
          search: Python Paris   # optional, restricts scheduled runs
    """
    raw: dict[str, Any] = yaml.safe_load(Path(path).read_text()) or {}
    user_id = str(raw["user_id"])
    conn = init_db(settings.database.path)

    password = raw.get("linkedin_password")
    upsert_profile(conn, UserProfile(
        user_id=user_id,
        linkedin_email=raw.get("linkedin_email"),
        linkedin_password=SecretStr(str(password)) if password else None,
    ))

    ids_by_name: dict[str, int] = {}
    for entry in raw.get("searches") or []:
        config = StoredSearchConfig(user_id=user_id, **entry)
        config_id = insert_search_config(conn, config)
        ids_by_name[config.name] = config_id
        print(f"  Search config {config_id}: '{config.name}' ({config.query})")

    schedule = raw.get("schedule")
    if schedule:
        schedule = dict(schedule)
        linked = schedule.pop("search", None)
        schedule_config = ScheduleConfig(
            user_id=user_id,
            search_config_id=ids_by_name.get(linked) if linked else None,
            **schedule,
        )
        upsert_schedule_config(conn, schedule_config)
        print(
            f"  Schedule: {schedule_config.hour:02d}:{schedule_config.minute:02d} "
            f"{schedule_config.timezone} (active: {schedule_config.is_active})",
        )

    print(f"User '{user_id}' imported ({len(ids_by_name)} search configs).")
    conn.close()


async def search(settings: Settings, user_id: str, search_config_id: int) -> None:
    """Run one search with a real browser and print the summary."""
    conn = init_db(settings.database.path)
    sessions = BrowserSessionManager(settings.browser)
    try:
        summary = await run_search_for_config(
            conn, user_id, search_config_id, settings=settings, sessions=sessions,
        )
    finally:
        await sessions.close_all()
        conn.close()

    print(f"\nSearch complete: {summary['total']} offers, "
          f"{summary['new']} new, {summary['updated']} updated.")


def due(settings: Settings, at: str | None) -> None:
    now = datetime.fromisoformat(at) if at else datetime.now(UTC)
    conn = init_db(settings.database.path)
    user_ids = matching_user_ids(now, list_active_schedule_configs(conn))
    conn.close()
    print(json.dumps({"at": now.isoformat(), "user_ids": user_ids}))


def show_offers(settings: Settings, user_id: str) -> None:
    conn = init_db(settings.database.path)
    rows = list_offers(conn, user_id)
    conn.close()

    if not rows:
        print(f"No offers stored for '{user_id}'.")
        return
    for row in rows:
        flag = "NEW" if row["is_new"] else "   "
        print(f"[{flag}] {row['title']} - {row['company']} ({row['location']}) [{row['origin']}]")
        print(f"      {row['url']}")
    print(f"\n{len(rows)} offers.")


async def run_scheduler(settings: Settings) -> None:
    conn = init_db(settings.database.path)
    sessions = BrowserSessionManager(settings.browser)
    consumer = RunConsumer(conn, settings, sessions)
    scheduler = Scheduler(conn, consumer, tick_seconds=settings.scheduler.tick_seconds)
    try:
        await scheduler.run_forever()
    finally:
        await sessions.close_all()
        conn.close()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
        if args.command == "import-user":
            import_user(settings, args.file)
        elif args.command == "search":
            asyncio.run(search(settings, args.user, args.search_config))
        elif args.command == "due":
            due(settings, args.at)
        elif args.command == "offers":
            show_offers(settings, args.user)
        elif args.command == "scheduler":
            asyncio.run(run_scheduler(settings))
    except AgentError as e:
        print(f"Error: {e.user_message}", file=sys.stderr)
        sys.exit(1)
    except (FileNotFoundError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        print(f"Error: {describe_error(e)}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
