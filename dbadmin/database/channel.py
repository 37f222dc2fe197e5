"""
Session Query Channel - Authenticated query execution for one session.

The channel owns the session token and the transport handle. It turns
transport exceptions into a uniform QueryResult and drops the session as
soon as the server reports an authentication failure, so later queries fail
without reaching the server until the user connects again.
"""
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from dbadmin.core.config import get_settings
from dbadmin.core.exceptions import (
    AuthenticationError,
    NotAuthenticatedError,
    TransportError,
)
from dbadmin.core.logging_config import get_logger
from dbadmin.database.transport import DatabaseTransport, SessionHandle

logger = get_logger(__name__)

Rows = List[Dict[str, Any]]


class ChannelState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class QueryOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class QueryResult:
    """
    Result of a statement sent through the channel.

    Attributes:
        outcome: SUCCESS or FAILURE
        rows: Rows returned by the server (empty on failure)
        error: Error message if the statement failed
        auth_failure: Whether the failure was an authentication failure
    """
    outcome: QueryOutcome
    rows: Rows = field(default_factory=list)
    error: Optional[str] = None
    auth_failure: bool = False

    @property
    def success(self) -> bool:
        return self.outcome == QueryOutcome.SUCCESS


class SessionQueryChannel:
    """
    Executes statements for a single logged-in user.

    Each instance is an independent session; create one per client and pass
    it to the services that need it.

    Example:
        >>> channel = SessionQueryChannel(SQLAlchemyTransport())
        >>> token = channel.connect("localhost", "root", "secret", 3306)
        >>> result = channel.execute("SHOW DATABASES;")
        >>> if result.success:
        ...     print([row["Database"] for row in result.rows])
    """

    def __init__(self, transport: DatabaseTransport):
        self._transport = transport
        self._handle: Optional[SessionHandle] = None
        self._token: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> ChannelState:
        with self._lock:
            if self._handle is None:
                return ChannelState.UNAUTHENTICATED
            return ChannelState.AUTHENTICATED

    @property
    def is_authenticated(self) -> bool:
        return self.state == ChannelState.AUTHENTICATED

    @property
    def token(self) -> Optional[str]:
        with self._lock:
            return self._token

    def connect(
        self,
        hostname: str,
        username: str,
        password: str,
        port: Optional[int] = None,
    ) -> Optional[str]:
        """
        Log in to the server.

        A previous session on this channel is closed first.

        Args:
            hostname: Server host
            username: Database user
            password: Database password
            port: Server port, defaults to the configured MySQL port

        Returns:
            Session token, or None if the connection was refused
        """
        port = port or get_settings().default_port
        self.invalidate()

        logger.info(f"Connecting {username}@{hostname}:{port}")
        try:
            handle = self._transport.connect(hostname, username, password, port)
        except AuthenticationError as e:
            logger.warning(f"Authentication failed for {username}@{hostname}:{port}: {e.message}")
            return None
        except TransportError as e:
            logger.error(f"Could not connect to {hostname}:{port}: {e.message}")
            return None

        with self._lock:
            previous = self._handle
            self._handle = handle
            self._token = handle.token

        if previous is not None:
            # Installed by a concurrent connect while this one was in flight
            logger.info(f"Session {previous.token[:8]} replaced")
            self._release(previous)

        logger.info(f"Session {handle.token[:8]} authenticated")
        return handle.token

    def execute(self, sql: str) -> QueryResult:
        """
        Run a statement on the current session.

        Without a session the statement is not sent and the result is an
        authentication failure. An authentication failure reported by the
        server ends the session; other failures leave it in place.
        """
        return self._execute(sql)[1]

    def _execute(self, sql: str) -> Tuple[Optional[SessionHandle], QueryResult]:
        # Also returns the handle the statement ran on, so failures only drop that session
        with self._lock:
            handle = self._handle

        if handle is None:
            error = NotAuthenticatedError()
            logger.warning(f"Query rejected, no session: {sql[:100]}")
            return None, QueryResult(
                outcome=QueryOutcome.FAILURE,
                error=error.message,
                auth_failure=True,
            )

        try:
            rows = self._transport.execute(handle, sql)
        except AuthenticationError as e:
            logger.warning(f"Session {handle.token[:8]} rejected by server: {e.message}")
            self._invalidate_handle(handle)
            return handle, QueryResult(
                outcome=QueryOutcome.FAILURE,
                error=e.message,
                auth_failure=True,
            )
        except TransportError as e:
            logger.error(f"Query failed: {e.message}")
            return handle, QueryResult(outcome=QueryOutcome.FAILURE, error=e.message)

        return handle, QueryResult(outcome=QueryOutcome.SUCCESS, rows=rows)

    def execute_or_invalidate(
        self,
        sql: str,
        on_rows: Callable[[Rows], Any],
        on_invalidated: Optional[Callable[[], Any]] = None,
    ) -> bool:
        """
        Run a statement, treating any failure as a lost session.

        On success ``on_rows`` receives the rows. On failure the session is
        dropped and ``on_invalidated`` is called instead, which is the
        caller's cue to send the user back to the connection screen.

        Returns:
            True if on_rows was called
        """
        handle, result = self._execute(sql)

        if not result.success:
            logger.info(f"Dropping session after failed query: {result.error}")
            if handle is not None:
                self._invalidate_handle(handle)
            if on_invalidated is not None:
                on_invalidated()
            return False

        on_rows(result.rows)
        return True

    def invalidate(self) -> None:
        """Forget the session token and close the handle. Safe to call repeatedly."""
        with self._lock:
            handle = self._handle
        if handle is not None:
            self._invalidate_handle(handle)

    def disconnect(self) -> None:
        """Log out."""
        logger.info("Disconnect requested")
        self.invalidate()

    def _invalidate_handle(self, handle: SessionHandle) -> None:
        # Only the caller that still sees its handle installed clears it
        with self._lock:
            if self._handle is not handle:
                return
            self._handle = None
            self._token = None

        logger.info(f"Session {handle.token[:8]} invalidated")
        self._release(handle)

    def _release(self, handle: SessionHandle) -> None:
        try:
            self._transport.release(handle)
        except TransportError as e:
            logger.warning(f"Error releasing session {handle.token[:8]}: {e.message}")
