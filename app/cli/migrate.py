"""Apply or roll back SQL migrations.

Usage:
    python -m app.cli.migrate --command up
    python -m app.cli.migrate --command version
    python -m app.cli.migrate --command force --version 1
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from app.core.config import DatabaseSettings, settings
from app.core.logging import configure_logging
from app.db.migrations import MigrationError, MigrationRunner
from app.db.session import create_db_engine

logger = logging.getLogger(__name__)

COMMANDS = ("up", "down", "version", "force")


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage the database schema.")
    parser.add_argument("--command", choices=COMMANDS, default="up")
    parser.add_argument(
        "--version",
        type=int,
        default=0,
        help="Version to record for the force command.",
    )
    parser.add_argument(
        "--dir",
        type=Path,
        default=Path("migrations"),
        help="Directory holding NNN_name.up.sql / NNN_name.down.sql files.",
    )
    args = parser.parse_args(argv)
    if args.command == "force" and args.version <= 0:
        parser.error("--version is required for the force command")
    return args


def run(command: str, runner: MigrationRunner, *, version: int = 0) -> None:
    if command == "up":
        applied = runner.up()
        if not applied:
            logger.info("migration.no_change")
            return
        current, dirty = runner.version()
        logger.info("migration.applied", extra={"version": current, "dirty": dirty})
    elif command == "down":
        reverted = runner.down()
        if not reverted:
            logger.info("migration.no_change")
            return
        current, dirty = runner.version()
        logger.info("migration.rolled_back", extra={"version": current, "dirty": dirty})
    elif command == "version":
        current, dirty = runner.version()
        if current is None:
            logger.info("migration.none_applied")
            return
        logger.info("migration.version", extra={"version": current, "dirty": dirty})
    elif command == "force":
        runner.force(version)
    else:
        raise MigrationError(f"unknown command: {command}")


def main(
    argv: Optional[Sequence[str]] = None,
    db_settings: Optional[DatabaseSettings] = None,
) -> int:
    args = _parse_args(argv)
    configure_logging(settings.log)

    engine = create_db_engine(db_settings or settings.db)
    try:
        run(args.command, MigrationRunner(engine, args.dir), version=args.version)
    except MigrationError:
        logger.exception("migration.failed", extra={"command": args.command})
        return 1
    finally:
        engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
