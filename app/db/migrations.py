"""Versioned SQL migrations.

Migration files live in one directory and are named
``NNN_description.up.sql`` / ``NNN_description.down.sql``. The applied
version is tracked in a single-row ``schema_migrations`` table together with
a ``dirty`` flag that is set while a migration is running and cleared once it
commits. A dirty database refuses further ``up``/``down`` until ``force`` is
used to pin the version manually.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import Connection, Engine, text

logger = logging.getLogger(__name__)

MIGRATION_FILE_PATTERN = re.compile(r"^(\d+)_(.+)\.(up|down)\.sql$")


class MigrationError(Exception):
    """Raised when migrations cannot be applied or inspected."""


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    up_path: Path
    down_path: Path | None = None


def split_statements(sql: str) -> list[str]:
    """Split a script on ``;`` and drop empty statements and comment-only lines."""
    statements = []
    for chunk in sql.split(";"):
        lines = [line for line in chunk.splitlines() if not line.strip().startswith("--")]
        statement = "\n".join(lines).strip()
        if statement:
            statements.append(statement)
    return statements


def discover_migrations(directory: Path) -> list[Migration]:
    """Return migrations found in ``directory`` sorted by version.

    Raises:
        MigrationError: If the directory is missing, a version has no up file,
            or two files claim the same version and direction.
    """
    if not directory.is_dir():
        raise MigrationError(f"migrations directory not found: {directory}")

    ups: dict[int, tuple[str, Path]] = {}
    downs: dict[int, Path] = {}
    for path in sorted(directory.iterdir()):
        match = MIGRATION_FILE_PATTERN.match(path.name)
        if not match:
            continue
        version = int(match.group(1))
        target = ups if match.group(3) == "up" else downs
        if version in target:
            raise MigrationError(f"duplicate migration version {version}: {path.name}")
        if match.group(3) == "up":
            ups[version] = (match.group(2), path)
        else:
            downs[version] = path

    orphans = set(downs) - set(ups)
    if orphans:
        raise MigrationError(f"down migration without up: {sorted(orphans)}")

    return [
        Migration(version=v, name=name, up_path=path, down_path=downs.get(v))
        for v, (name, path) in sorted(ups.items())
    ]


class MigrationRunner:
    """Apply and roll back migrations against one engine."""

    def __init__(self, engine: Engine, directory: Path | str):
        self._engine = engine
        self._directory = Path(directory)

    def _ensure_table(self, conn: Connection) -> None:
        conn.execute(
            text(
                "CREATE TABLE IF NOT EXISTS schema_migrations ("
                "version BIGINT NOT NULL PRIMARY KEY, "
                "dirty BOOLEAN NOT NULL)"
            )
        )

    def _read_version(self, conn: Connection) -> tuple[int | None, bool]:
        row = conn.execute(text("SELECT version, dirty FROM schema_migrations")).first()
        if row is None:
            return None, False
        return int(row[0]), bool(row[1])

    def _write_version(self, conn: Connection, version: int | None, dirty: bool) -> None:
        conn.execute(text("DELETE FROM schema_migrations"))
        if version is not None:
            conn.execute(
                text("INSERT INTO schema_migrations (version, dirty) VALUES (:v, :d)"),
                {"v": version, "d": dirty},
            )

    def version(self) -> tuple[int | None, bool]:
        """Return ``(version, dirty)``; version is None when nothing is applied."""
        with self._engine.begin() as conn:
            self._ensure_table(conn)
            return self._read_version(conn)

    def _check_clean(self, conn: Connection) -> int | None:
        current, dirty = self._read_version(conn)
        if dirty:
            raise MigrationError(
                f"database is dirty at version {current}; fix it and run force"
            )
        return current

    def _run_script(self, path: Path, version: int, mark: int | None) -> None:
        with self._engine.begin() as conn:
            self._write_version(conn, version, True)

        with self._engine.begin() as conn:
            for statement in split_statements(path.read_text(encoding="utf-8")):
                conn.execute(text(statement))
            self._write_version(conn, mark, False)

    def up(self) -> list[int]:
        """Apply every pending migration in order. Returns versions applied."""
        migrations = discover_migrations(self._directory)
        with self._engine.begin() as conn:
            self._ensure_table(conn)
            current = self._check_clean(conn)

        applied = []
        for migration in migrations:
            if current is not None and migration.version <= current:
                continue
            logger.info(
                "migration.up",
                extra={"version": migration.version, "migration": migration.name},
            )
            self._run_script(migration.up_path, migration.version, migration.version)
            applied.append(migration.version)
        return applied

    def down(self) -> list[int]:
        """Roll back every applied migration, newest first. Returns versions reverted."""
        migrations = discover_migrations(self._directory)
        with self._engine.begin() as conn:
            self._ensure_table(conn)
            current = self._check_clean(conn)

        if current is None:
            return []

        applied = [m for m in migrations if m.version <= current]
        reverted = []
        for index in range(len(applied) - 1, -1, -1):
            migration = applied[index]
            if migration.down_path is None:
                raise MigrationError(f"no down migration for version {migration.version}")
            previous = applied[index - 1].version if index > 0 else None
            logger.info(
                "migration.down",
                extra={"version": migration.version, "migration": migration.name},
            )
            self._run_script(migration.down_path, migration.version, previous)
            reverted.append(migration.version)
        return reverted

    def force(self, version: int) -> None:
        """Set the recorded version and clear the dirty flag without running SQL."""
        if version < 0:
            raise MigrationError("version must be >= 0")
        with self._engine.begin() as conn:
            self._ensure_table(conn)
            self._write_version(conn, version or None, False)
        logger.info("migration.forced", extra={"version": version})
