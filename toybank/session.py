"""
Session Management Module

Opens sessions against the configured store with explicit commit control and
serializable isolation, reports their health, commits, rolls back and closes
them. A Session is an explicit value handed to every query and update; there
is no process-wide connection.

Cleanup policy: ``close`` is best-effort. Failures while closing the
connection or issuing the backend's shutdown signal are logged and never
raised, because no recovery is possible at that point of the workflow.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator, Optional
import uuid

from .errors import CommitError, DatabaseConnectionError, QueryError
from .logging_config import get_logger, log_action
from .store import Credentials, StoreBackend


@dataclass
class Session:
    """An open, transactionally scoped handle to the relational store"""
    connection: Any
    backend: StoreBackend
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    opened_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    closed: bool = False

    @property
    def resource(self) -> str:
        return f"session:{self.id}"


class ConnectionManager:
    """Owns the lifecycle of sessions for one store backend"""

    def __init__(self, backend: StoreBackend, shutdown_on_close: bool = True):
        self.backend = backend
        self.shutdown_on_close = shutdown_on_close
        self.logger = get_logger("toybank.session")

    def open(self, credentials: Credentials) -> Session:
        """
        Open a session with auto-commit disabled and serializable isolation

        Args:
            credentials: Database user and password

        Returns:
            The open Session

        Raises:
            DatabaseConnectionError: On authentication failure, unreachable
                store or driver error
        """
        try:
            connection = self.backend.connect(credentials)
        except self.backend.error_types as e:
            log_action(
                self.logger, "error",
                f"Unable to establish a connection to the database due to error {e}",
                action="open_session", resource=self.backend.describe(),
                extra={"user": credentials.user, "error": type(e).__name__}
            )
            raise DatabaseConnectionError(
                f"Unable to connect to {self.backend.describe()}: {e}",
                {'user': credentials.user}
            ) from e

        session = Session(connection=connection, backend=self.backend)
        log_action(
            self.logger, "info", "Session opened",
            action="open_session", resource=session.resource,
            extra={"store": self.backend.describe(), "user": credentials.user}
        )
        return session

    def is_open(self, session: Optional[Session]) -> bool:
        """Whether the session exists and has not been closed; never raises"""
        if session is None or session.closed or session.connection is None:
            return False
        try:
            return not session.backend.is_connection_closed(session.connection)
        except Exception as e:
            log_action(
                self.logger, "warning", f"Unable to check connection status: {e}",
                action="check_session", resource=session.resource
            )
            return False

    def commit(self, session: Session) -> None:
        """
        Durably apply all pending writes and begin the next transaction

        Raises:
            CommitError: If the store refuses the commit; the session stays
                open so the caller may retry or abort
        """
        try:
            session.connection.commit()
        except session.backend.error_types as e:
            log_action(
                self.logger, "error",
                f"Unable to commit changes to the DB due to error {e}",
                action="commit", resource=session.resource
            )
            raise CommitError(e) from e

        log_action(self.logger, "info", "Changes committed",
                   action="commit", resource=session.resource)
        self._begin(session)

    def rollback(self, session: Session) -> None:
        """
        Discard all pending writes and begin the next transaction

        Raises:
            QueryError: If the store cannot roll back
        """
        try:
            session.connection.rollback()
        except session.backend.error_types as e:
            log_action(
                self.logger, "error", f"Unable to roll back changes due to error {e}",
                action="rollback", resource=session.resource
            )
            raise QueryError("rollback", e) from e

        log_action(self.logger, "info", "Changes rolled back",
                   action="rollback", resource=session.resource)
        self._begin(session)

    def _begin(self, session: Session) -> None:
        try:
            session.backend.begin(session.connection)
        except session.backend.error_types as e:
            raise QueryError("begin transaction", e) from e

    def close(self, session: Optional[Session]) -> None:
        """Release the session and, when configured, shut the store down; never raises"""
        if session is None or session.closed:
            return

        try:
            session.connection.close()
        except Exception as e:
            log_action(
                self.logger, "error", f"Unable to close DB connection due to error {e}",
                action="close_session", resource=session.resource
            )
        finally:
            session.closed = True

        if self.shutdown_on_close:
            try:
                session.backend.shutdown()
            except Exception as e:
                log_action(
                    self.logger, "error", f"Unable to shut down the store due to error {e}",
                    action="shutdown", resource=session.backend.describe()
                )

        log_action(self.logger, "info", "Session closed",
                   action="close_session", resource=session.resource)

    @contextmanager
    def session(self, credentials: Credentials) -> Iterator[Session]:
        """Context manager that opens a session and always closes it"""
        session = self.open(credentials)
        try:
            yield session
        finally:
            self.close(session)
