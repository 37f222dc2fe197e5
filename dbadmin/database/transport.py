"""
Database Transport - Connections and raw query execution.

The query channel talks to the server only through a DatabaseTransport.
SQLAlchemyTransport is the production implementation:
- one SQLAlchemy engine per authenticated session, keyed by an opaque token
- PyMySQL driver with bounded connect timeout
- idle session expiry
- driver errors classified as AuthenticationError or TransportError
"""
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote_plus

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError

from dbadmin.core.config import get_settings
from dbadmin.core.exceptions import (
    AuthenticationError,
    TransportError,
    UnsupportedDatabaseError,
)
from dbadmin.core.logging_config import get_logger

logger = get_logger(__name__)

# MySQL server errors meaning the credentials were refused:
# 1044 access denied to database, 1045 access denied for user,
# 1698 access denied (auth plugin)
AUTH_ERROR_CODES = frozenset({1044, 1045, 1698})


@dataclass(frozen=True)
class SessionHandle:
    """Opaque reference to an authenticated server session."""
    token: str
    hostname: str
    port: int
    username: str


@dataclass
class DatabaseCredentials:
    """Database connection credentials."""
    host: str
    username: str
    password: str
    port: Optional[int] = None
    database: str = ""
    db_type: str = "mysql"
    use_ssl: bool = False

    def to_connection_url(self) -> str:
        """
        Convert credentials to a SQLAlchemy connection URL.

        Returns:
            Connection URL string

        Raises:
            UnsupportedDatabaseError: For anything other than MySQL
        """
        if self.db_type.lower() != "mysql":
            raise UnsupportedDatabaseError(self.db_type)

        # URL-encode credentials to handle special characters
        encoded_user = quote_plus(self.username)
        encoded_password = quote_plus(self.password)
        port = self.port or get_settings().default_port

        return f"mysql+pymysql://{encoded_user}:{encoded_password}@{self.host}:{port}/{self.database}"


@dataclass
class SessionInfo:
    """Bookkeeping for an active session."""
    handle: SessionHandle
    engine: Engine
    created_at: datetime
    last_used: datetime

    def is_expired(self, timeout_minutes: int) -> bool:
        """Check if the session has expired due to inactivity."""
        expiry_time = self.last_used + timedelta(minutes=timeout_minutes)
        return datetime.now(timezone.utc) > expiry_time

    def update_last_used(self):
        self.last_used = datetime.now(timezone.utc)


class DatabaseTransport(ABC):
    """
    Connection and execution primitives used by SessionQueryChannel.

    Implementations raise AuthenticationError when credentials or a session
    are rejected and TransportError for every other failure.
    """

    @abstractmethod
    def connect(self, hostname: str, username: str, password: str, port: int) -> SessionHandle:
        """Open a session and return its handle."""

    @abstractmethod
    def execute(self, handle: SessionHandle, sql: str) -> List[Dict[str, Any]]:
        """Run a statement and return its rows as dictionaries."""

    @abstractmethod
    def release(self, handle: SessionHandle) -> None:
        """Close the session behind a handle. Unknown handles are ignored."""


def _driver_error_code(error: DBAPIError) -> Optional[int]:
    # PyMySQL errors carry (code, message) in args
    orig = getattr(error, "orig", None)
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def is_authentication_failure(error: SQLAlchemyError) -> bool:
    """Check whether a driver error means the credentials were refused."""
    if not isinstance(error, OperationalError):
        return False
    if _driver_error_code(error) in AUTH_ERROR_CODES:
        return True
    return "access denied" in str(error).lower()


def classify_error(error: SQLAlchemyError, context: str):
    """
    Convert a SQLAlchemy error into AuthenticationError or TransportError.

    Args:
        error: The driver error
        context: Short description of the failing step, for the message

    Returns:
        Exception instance to raise
    """
    details = str(error)
    if is_authentication_failure(error):
        return AuthenticationError(f"{context}: access denied", details=details)
    return TransportError(f"{context} failed", details=details)


class SQLAlchemyTransport(DatabaseTransport):
    """
    Transport backed by one SQLAlchemy engine per session.

    Thread-safe: the session registry is guarded by a lock, while statements
    run outside it so independent sessions do not block each other.

    Example:
        >>> transport = SQLAlchemyTransport()
        >>> handle = transport.connect("localhost", "root", "secret", 3306)
        >>> transport.execute(handle, "SHOW DATABASES;")
        [{'Database': 'information_schema'}, ...]
    """

    def __init__(
        self,
        session_timeout_minutes: Optional[int] = None,
        connect_timeout_seconds: Optional[int] = None,
        use_ssl: Optional[bool] = None,
    ):
        settings = get_settings()
        self.session_timeout_minutes = (
            session_timeout_minutes if session_timeout_minutes is not None
            else settings.session_timeout_minutes
        )
        self.connect_timeout_seconds = (
            connect_timeout_seconds if connect_timeout_seconds is not None
            else settings.connect_timeout_seconds
        )
        self.use_ssl = use_ssl if use_ssl is not None else settings.use_ssl
        self.pool_recycle_seconds = settings.pool_recycle_seconds

        self._sessions: Dict[str, SessionInfo] = {}
        self._lock = threading.Lock()
        logger.info("SQLAlchemyTransport initialized")

    def _create_engine(self, credentials: DatabaseCredentials) -> Engine:
        connect_args: Dict[str, Any] = {"connect_timeout": self.connect_timeout_seconds}
        if self.use_ssl:
            # PyMySQL negotiates TLS when an ssl dict is present
            connect_args["ssl"] = {}

        return create_engine(
            credentials.to_connection_url(),
            pool_pre_ping=True,
            pool_size=3,
            max_overflow=5,
            pool_recycle=self.pool_recycle_seconds,
            connect_args=connect_args,
            echo=False,
        )

    def connect(self, hostname: str, username: str, password: str, port: int) -> SessionHandle:
        """
        Verify credentials and register a new session.

        Raises:
            AuthenticationError: If the server refuses the credentials
            TransportError: If the server cannot be reached
        """
        credentials = DatabaseCredentials(
            host=hostname,
            username=username,
            password=password,
            port=port,
            use_ssl=self.use_ssl,
        )
        engine = self._create_engine(credentials)

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            engine.dispose()
            logger.warning(f"Connect to {username}@{hostname}:{port} failed: {e}")
            raise classify_error(e, f"Connect to {hostname}:{port}") from e

        handle = SessionHandle(
            token=uuid.uuid4().hex,
            hostname=hostname,
            port=port,
            username=username,
        )
        now = datetime.now(timezone.utc)
        with self._lock:
            self._sessions[handle.token] = SessionInfo(
                handle=handle,
                engine=engine,
                created_at=now,
                last_used=now,
            )

        logger.info(f"Opened session {handle.token[:8]} for {username}@{hostname}:{port}")
        return handle

    def _get_engine(self, handle: SessionHandle) -> Engine:
        with self._lock:
            info = self._sessions.get(handle.token)

            if info is None:
                raise AuthenticationError("Unknown or closed session")

            if info.is_expired(self.session_timeout_minutes):
                logger.warning(f"Session {handle.token[:8]} has expired")
                self._sessions.pop(handle.token)
                info.engine.dispose()
                raise AuthenticationError("Session expired")

            info.update_last_used()
            return info.engine

    def execute(self, handle: SessionHandle, sql: str) -> List[Dict[str, Any]]:
        """
        Run a statement on the session's engine.

        Returns:
            Rows as dictionaries, in the order returned by the server.
            Statements without a result set return an empty list.
        """
        engine = self._get_engine(handle)
        logger.info(f"Executing query: {sql[:100]}")

        try:
            with engine.begin() as conn:
                # Sent verbatim: no bind-parameter parsing, no %-formatting by the driver
                result = conn.execution_options(no_parameters=True).exec_driver_sql(sql)
                if not result.returns_rows:
                    return []
                columns = list(result.keys())
                return [dict(zip(columns, row)) for row in result.fetchall()]
        except SQLAlchemyError as e:
            logger.error(f"Query failed: {e}")
            raise classify_error(e, "Query") from e

    def release(self, handle: SessionHandle) -> None:
        with self._lock:
            info = self._sessions.pop(handle.token, None)

        if info is None:
            return

        info.engine.dispose()
        logger.info(f"Closed session {handle.token[:8]}")

    def cleanup_expired_sessions(self) -> int:
        """
        Remove sessions idle for longer than the timeout.

        Returns:
            Number of sessions removed
        """
        with self._lock:
            expired = [
                token for token, info in self._sessions.items()
                if info.is_expired(self.session_timeout_minutes)
            ]
            removed = [self._sessions.pop(token) for token in expired]

        for info in removed:
            logger.info(f"Cleaning up expired session {info.handle.token[:8]}")
            info.engine.dispose()
        return len(removed)

    def active_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def release_all(self):
        """Close every session. Intended for application shutdown."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        for info in sessions:
            info.engine.dispose()
        logger.info(f"Closed all sessions ({len(sessions)})")
