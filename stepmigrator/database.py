"""Database collaborators for the migrator.

The migrator only needs four operations, described by DatabaseInterface.
SQLAlchemyDatabase implements them on top of a SQLAlchemy Core connection.
"""

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Connection, Engine, RootTransaction
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError

logger = logging.getLogger(__name__)


@runtime_checkable
class DatabaseInterface(Protocol):
    """What a migration run needs from a database client."""

    def execute(self, statement: str) -> bool: ...

    def begin_transaction(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


def _enable_transactional_ddl(engine: Engine) -> None:
    """Let pysqlite run DDL inside the transaction SQLAlchemy begins.

    The sqlite3 driver otherwise commits implicitly around CREATE/DROP, so a
    rolled back batch would keep its schema changes.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def _ensure_sqlite_directory(url: URL) -> None:
    database = url.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


class SQLAlchemyDatabase:
    """DatabaseInterface backed by a single SQLAlchemy connection."""

    def __init__(self, url: str, echo: bool = False, engine: Engine | None = None):
        self.url = url
        self.last_error: str | None = None

        if engine is None:
            engine = create_engine(url, echo=echo)
            if engine.dialect.name == "sqlite":
                _enable_transactional_ddl(engine)

        self.engine = engine
        self._connection: Connection | None = None
        self._transaction: RootTransaction | None = None

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            if self.engine.dialect.name == "sqlite":
                _ensure_sqlite_directory(self.engine.url)
            logger.debug(f"Connecting to {self.engine.url.render_as_string(hide_password=True)}")
            self._connection = self.engine.connect()
        return self._connection

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None and self._transaction.is_active

    def execute(self, statement: str) -> bool:
        """Execute one SQL statement.

        Returns False (and records last_error) if the database rejects it.
        A successful statement clears last_error.
        """
        self.last_error = None
        try:
            self.connection.exec_driver_sql(statement)
        except SQLAlchemyError as e:
            self.last_error = str(e)
            logger.error(f"Statement failed: {e}")
            return False
        return True

    def begin_transaction(self) -> None:
        self.last_error = None
        self._transaction = self.connection.begin()

    def commit(self) -> None:
        if self._transaction is None:
            raise InvalidRequestError("No transaction to commit")
        self._transaction.commit()
        self._transaction = None

    def rollback(self) -> None:
        if self._transaction is None:
            return
        try:
            if self._transaction.is_active:
                self._transaction.rollback()
        finally:
            self._transaction = None

    def close(self) -> None:
        """Close the connection and dispose of the engine."""
        self.rollback()
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        self.engine.dispose()

    def __enter__(self) -> "SQLAlchemyDatabase":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
