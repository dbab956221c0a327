"""Database engine setup and context-bound transactions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

_log = logging.getLogger(__name__)

_T = TypeVar("_T")

_current: ContextVar[Connection | None] = ContextVar(
    "orderservice_transaction", default=None
)


class DatabaseError(Exception):
    """Raised when the database cannot be reached or a transaction fails."""


def _normalise_dsn(dsn: str) -> str:
    if dsn.startswith("postgres://"):
        return "postgresql://" + dsn[len("postgres://"):]
    return dsn


def create_engine_from_dsn(dsn: str) -> Engine:
    """Create an engine for ``dsn`` and check that the database answers."""
    try:
        url = make_url(_normalise_dsn(dsn))
    except ArgumentError as exc:
        raise DatabaseError(f"cannot parse DB config: {exc}") from exc

    options: dict = {"pool_recycle": 300, "pool_pre_ping": True}
    if url.get_backend_name() != "sqlite":
        options.update(pool_size=10, max_overflow=0)

    try:
        engine = create_engine(url, **options)
    except (ArgumentError, ImportError) as exc:
        raise DatabaseError(f"cannot connect to DB: {exc}") from exc

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        engine.dispose()
        raise DatabaseError(f"failed to connect to database: {exc}") from exc
    return engine


def current_connection() -> Connection | None:
    """Return the connection of the transaction running in this context, if any."""
    return _current.get()


class TransactionManager:
    """Runs callables inside a database transaction."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def perform_transaction(self, fn: Callable[[], _T]) -> _T:
        """Call ``fn`` in a transaction; commit on success, roll back on error."""
        try:
            connection = self._engine.connect()
        except SQLAlchemyError as exc:
            raise DatabaseError(f"unable to begin transaction: {exc}") from exc

        try:
            try:
                transaction = connection.begin()
            except SQLAlchemyError as exc:
                raise DatabaseError(f"unable to begin transaction: {exc}") from exc

            token = _current.set(connection)
            try:
                result = fn()
            except BaseException:
                try:
                    transaction.rollback()
                except SQLAlchemyError as rollback_exc:
                    _log.warning("transaction rollback failed: %s", rollback_exc)
                raise
            finally:
                _current.reset(token)

            try:
                transaction.commit()
            except SQLAlchemyError as exc:
                raise DatabaseError(f"unable to commit transaction: {exc}") from exc
            return result
        finally:
            connection.close()


class EngineStorage:
    """Base for storages that reuse the surrounding transaction when there is one."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Yield the active transaction's connection, or a fresh auto-committed one."""
        active = current_connection()
        if active is not None:
            yield active
            return
        with self.engine.begin() as connection:
            yield connection