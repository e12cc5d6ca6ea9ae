"""
Store Backend Module

Provides the driver-specific half of the relational store boundary: opening a
DB-API connection with explicit commit control and serializable isolation,
placeholder translation, amount binding and the optional shutdown signal.
SQLite is the embedded default; PostgreSQL is the client/server backend.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Tuple, Union
from urllib.parse import urlsplit, urlunsplit
import sqlite3

from .errors import ConfigurationError
from .logging_config import get_logger
from .money import to_amount


logger = get_logger("toybank.store")


@dataclass(frozen=True)
class Credentials:
    """Database user and password supplied at connect time"""
    user: str
    password: str = field(repr=False)


class StoreBackend(ABC):
    """Abstract interface for relational store drivers"""

    #: Exception base classes raised by the underlying driver
    error_types: Tuple[type, ...] = ()

    @abstractmethod
    def connect(self, credentials: Credentials) -> Any:
        """Open a connection with auto-commit off, serializable isolation and a transaction begun"""
        pass

    @abstractmethod
    def describe(self) -> str:
        """Human readable location of the store, without secrets"""
        pass

    def begin(self, connection: Any) -> None:
        """Start the next transaction after a commit or rollback (default no-op)"""
        pass

    def is_connection_closed(self, connection: Any) -> bool:
        """Whether the driver reports the connection as closed"""
        return False

    def prepare(self, sql: str) -> str:
        """Translate ``?`` placeholders to the driver's parameter style"""
        return sql

    def bind_amount(self, amount: Decimal) -> Any:
        """Convert a Decimal amount to a driver parameter"""
        return amount

    def read_amount(self, value: Any) -> Decimal:
        """Convert a driver value back to a Decimal amount"""
        return to_amount(value)

    def shutdown(self) -> None:
        """Send the store's explicit shutdown signal (default no-op)"""
        pass


class SQLiteBackend(StoreBackend):
    """SQLite backend; every SQLite transaction is serializable"""

    error_types = (sqlite3.Error,)

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)

    def connect(self, credentials: Credentials) -> sqlite3.Connection:
        # SQLite has no user accounts
        logger.debug(f"Ignoring credentials for user {credentials.user!r} on SQLite store")

        # isolation_level=None disables the module's implicit transaction
        # handling; transactions are opened explicitly with BEGIN
        connection = sqlite3.connect(self.db_path, isolation_level=None)
        try:
            connection.execute("PRAGMA foreign_keys = ON")
            connection.execute("PRAGMA read_uncommitted = 0")
            self.begin(connection)
        except sqlite3.Error:
            connection.close()
            raise
        return connection

    def begin(self, connection: sqlite3.Connection) -> None:
        if not connection.in_transaction:
            connection.execute("BEGIN DEFERRED")

    def is_connection_closed(self, connection: sqlite3.Connection) -> bool:
        try:
            connection.total_changes
        except sqlite3.ProgrammingError:
            return True
        return False

    def bind_amount(self, amount: Decimal) -> str:
        # sqlite3 cannot bind Decimal; NUMERIC affinity converts the text
        return str(amount)

    def describe(self) -> str:
        return f"sqlite:///{self.db_path}"


class PostgreSQLBackend(StoreBackend):
    """PostgreSQL backend using psycopg2 with SERIALIZABLE sessions"""

    def __init__(self, connection_string: str):
        try:
            import psycopg2
            import psycopg2.extensions
            self.psycopg2 = psycopg2
            self.extensions = psycopg2.extensions
        except ImportError:
            raise ImportError("psycopg2 is required for PostgreSQL storage. Install with: pip install psycopg2-binary")

        self.connection_string = connection_string
        self.error_types = (psycopg2.Error,)

    def connect(self, credentials: Credentials) -> Any:
        connection = self.psycopg2.connect(
            self.connection_string,
            user=credentials.user,
            password=credentials.password
        )
        try:
            # Transactions start implicitly with the first statement
            connection.set_session(
                isolation_level=self.extensions.ISOLATION_LEVEL_SERIALIZABLE,
                autocommit=False
            )
        except self.psycopg2.Error:
            connection.close()
            raise
        return connection

    def is_connection_closed(self, connection: Any) -> bool:
        return bool(connection.closed)

    def prepare(self, sql: str) -> str:
        return sql.replace("?", "%s")

    def describe(self) -> str:
        parts = urlsplit(self.connection_string)
        if parts.password is None:
            return self.connection_string
        host = parts.hostname or ""
        if parts.port:
            host = f"{host}:{parts.port}"
        if parts.username:
            host = f"{parts.username}@{host}"
        return urlunsplit((parts.scheme, host, parts.path, parts.query, parts.fragment))


def create_backend(database_url: str) -> StoreBackend:
    """
    Select a store backend from a database URL.

    Supported forms are ``sqlite:///relative.db``, ``sqlite:////abs/path.db``,
    ``sqlite:///:memory:`` and ``postgresql://host:port/dbname``.

    Raises:
        ConfigurationError: If the URL scheme is not supported
    """
    if database_url.startswith("sqlite:///"):
        return SQLiteBackend(database_url[len("sqlite:///"):] or ":memory:")
    if database_url.startswith(("postgresql://", "postgres://")):
        return PostgreSQLBackend(database_url)
    raise ConfigurationError(
        "Unsupported database URL", {'database_url': database_url.split("://")[0]}
    )
