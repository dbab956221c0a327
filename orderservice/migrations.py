"""Versioned SQL migrations in annotated ``<version>_<name>.sql`` files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    Table,
    select,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

_log = logging.getLogger(__name__)

_ANNOTATION = "-- +goose"

_metadata = MetaData()
_version_table = Table(
    "goose_db_version",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("version_id", BigInteger, nullable=False),
    Column("is_applied", Boolean, nullable=False),
    Column("tstamp", DateTime, default=datetime.now),
)


class MigrationError(Exception):
    """Raised when migrations cannot be read or applied."""


@dataclass
class Migration:
    """One migration file split into statements."""

    version: int
    name: str
    path: Path
    up: list[str] = field(default_factory=list)
    down: list[str] = field(default_factory=list)
    use_transaction: bool = True


def _parse_version(path: Path) -> int:
    prefix, separator, _ = path.name.partition("_")
    if not separator:
        raise MigrationError(f"{path.name}: no filename separator '_' found")
    try:
        version = int(prefix)
    except ValueError as exc:
        raise MigrationError(f"{path.name}: failed to parse version from migration file") from exc
    if version < 1:
        raise MigrationError(f"{path.name}: migration IDs must be greater than zero")
    return version


def parse_migration(path: str | Path) -> Migration:
    """Read a migration file and split its Up and Down sections into statements."""
    path = Path(path)
    migration = Migration(version=_parse_version(path), name=path.name, path=path)

    sections: dict[str, list[str]] = {"up": migration.up, "down": migration.down}
    section: str | None = None
    in_block = False
    buffer: list[str] = []

    def flush() -> None:
        statement = "\n".join(buffer).strip()
        buffer.clear()
        if statement and section is not None:
            sections[section].append(statement)

    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if line.startswith(_ANNOTATION):
            command = line[len(_ANNOTATION):].strip()
            if command in ("Up", "Down"):
                if in_block or "\n".join(buffer).strip():
                    raise MigrationError(f"{path.name}: unexpected unfinished SQL query")
                section = command.lower()
            elif command == "StatementBegin":
                if section is None:
                    raise MigrationError(f"{path.name}: must start with '-- +goose Up'")
                in_block = True
            elif command == "StatementEnd":
                if not in_block:
                    raise MigrationError(f"{path.name}: StatementEnd without StatementBegin")
                in_block = False
                flush()
            elif command == "NO TRANSACTION":
                migration.use_transaction = False
            else:
                raise MigrationError(f"{path.name}: unknown annotation {command!r}")
            continue
        if line.startswith("--"):
            continue
        if not line and not buffer:
            continue
        if section is None:
            raise MigrationError(f"{path.name}: must start with '-- +goose Up'")
        buffer.append(raw)
        if not in_block and line.endswith(";"):
            flush()

    if section is None:
        raise MigrationError(f"{path.name}: must start with '-- +goose Up'")
    if in_block or "\n".join(buffer).strip():
        raise MigrationError(f"{path.name}: unexpected unfinished SQL query")
    return migration


def discover_migrations(directory: str | Path) -> list[Migration]:
    """Return the migrations of ``directory`` ordered by version."""
    directory = Path(directory)
    if not directory.is_dir():
        raise MigrationError(f"{directory} directory does not exists")
    migrations = [parse_migration(path) for path in directory.glob("*.sql")]
    migrations.sort(key=lambda migration: migration.version)
    for previous, current in zip(migrations, migrations[1:]):
        if previous.version == current.version:
            raise MigrationError(
                f"duplicate version {current.version} detected: "
                f"{previous.name}, {current.name}"
            )
    return migrations


def _ensure_version_table(engine: Engine) -> None:
    with engine.begin() as conn:
        if conn.dialect.has_table(conn, _version_table.name):
            return
        _version_table.create(conn)
        conn.execute(_version_table.insert().values(version_id=0, is_applied=True))


def _current_version(engine: Engine) -> int:
    query = select(_version_table.c.version_id, _version_table.c.is_applied).order_by(
        _version_table.c.id.desc()
    )
    skipped: set[int] = set()
    with engine.connect() as conn:
        for version, is_applied in conn.execute(query):
            if version in skipped:
                continue
            if is_applied:
                return version
            skipped.add(version)
    return 0


def _run(conn: Connection, migration: Migration) -> None:
    for statement in migration.up:
        conn.exec_driver_sql(statement)
    conn.execute(_version_table.insert().values(version_id=migration.version, is_applied=True))


def _apply(engine: Engine, migration: Migration) -> None:
    try:
        if migration.use_transaction:
            with engine.begin() as conn:
                _run(conn, migration)
        else:
            with engine.connect() as conn:
                _run(conn.execution_options(isolation_level="AUTOCOMMIT"), migration)
    except SQLAlchemyError as exc:
        raise MigrationError(f"failed to run migration {migration.name}: {exc}") from exc


def migrate_up(engine: Engine, directory: str | Path) -> list[Migration]:
    """Apply every migration newer than the database version; return those applied."""
    migrations = discover_migrations(directory)
    try:
        _ensure_version_table(engine)
        current = _current_version(engine)
    except SQLAlchemyError as exc:
        raise MigrationError(f"failed to read database version: {exc}") from exc

    applied = []
    for migration in migrations:
        if migration.version <= current:
            continue
        _apply(engine, migration)
        _log.info("OK    %s", migration.name)
        applied.append(migration)
    if not applied:
        _log.info("no migrations to run. current version: %d", current)
    return applied