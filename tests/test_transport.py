"""Unit tests for the SQLAlchemy transport; engines are mocked or in-memory SQLite."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, ProgrammingError

from dbadmin.core.exceptions import (
    AuthenticationError,
    TransportError,
    UnsupportedDatabaseError,
)
from dbadmin.database.channel import SessionQueryChannel
from dbadmin.database.transport import (
    DatabaseCredentials,
    SQLAlchemyTransport,
    is_authentication_failure,
)


def _driver_error(code, message):
    return Exception(code, message)


def _make_engine(rows=None, columns=("Database",), error=None):
    engine = MagicMock(name="engine")
    conn = engine.begin.return_value.__enter__.return_value
    exec_driver_sql = conn.execution_options.return_value.exec_driver_sql
    if error is not None:
        exec_driver_sql.side_effect = error
    else:
        result = exec_driver_sql.return_value
        result.returns_rows = rows is not None
        result.keys.return_value = list(columns)
        result.fetchall.return_value = rows or []
    return engine


@pytest.fixture
def create_engine_mock():
    with patch("dbadmin.database.transport.create_engine") as mock:
        mock.return_value = _make_engine(rows=[("information_schema",), ("shop",)])
        yield mock


class TestDatabaseCredentials:

    def test_url_encodes_credentials(self):
        creds = DatabaseCredentials(host="db", username="root", password="p@ss word", port=3307)
        assert creds.to_connection_url() == "mysql+pymysql://root:p%40ss+word@db:3307/"

    def test_default_port(self):
        creds = DatabaseCredentials(host="db", username="root", password="x", database="shop")
        assert creds.to_connection_url() == "mysql+pymysql://root:x@db:3306/shop"

    def test_only_mysql(self):
        creds = DatabaseCredentials(host="db", username="u", password="p", db_type="postgresql")
        with pytest.raises(UnsupportedDatabaseError):
            creds.to_connection_url()


class TestErrorClassification:

    def test_access_denied_code(self):
        error = OperationalError("SELECT 1", {}, _driver_error(1045, "denied"))
        assert is_authentication_failure(error) is True

    def test_access_denied_text(self):
        error = OperationalError("SELECT 1", {}, Exception("Access denied for user 'x'"))
        assert is_authentication_failure(error) is True

    def test_other_operational_error(self):
        error = OperationalError("SELECT 1", {}, _driver_error(2003, "Can't connect to MySQL server"))
        assert is_authentication_failure(error) is False

    def test_programming_error(self):
        error = ProgrammingError("SELECT", {}, _driver_error(1146, "Table doesn't exist"))
        assert is_authentication_failure(error) is False


class TestSQLAlchemyTransport:

    def test_connect_issues_token(self, create_engine_mock):
        transport = SQLAlchemyTransport()

        handle = transport.connect("db", "root", "secret", 3306)

        assert len(handle.token) == 32
        assert handle.hostname == "db"
        assert transport.active_session_count() == 1
        url = create_engine_mock.call_args.args[0]
        assert url == "mysql+pymysql://root:secret@db:3306/"
        assert create_engine_mock.call_args.kwargs["connect_args"]["connect_timeout"] == 10

    def test_connect_access_denied(self, create_engine_mock):
        engine = create_engine_mock.return_value
        engine.connect.side_effect = OperationalError(None, None, _driver_error(1045, "Access denied"))
        transport = SQLAlchemyTransport()

        with pytest.raises(AuthenticationError):
            transport.connect("db", "root", "wrong", 3306)

        engine.dispose.assert_called_once()
        assert transport.active_session_count() == 0

    def test_connect_unreachable(self, create_engine_mock):
        create_engine_mock.return_value.connect.side_effect = OperationalError(
            None, None, _driver_error(2003, "Can't connect to MySQL server on 'db'")
        )

        with pytest.raises(TransportError):
            SQLAlchemyTransport().connect("db", "root", "secret", 3306)

    def test_ssl_connect_args(self, create_engine_mock):
        SQLAlchemyTransport(use_ssl=True).connect("db", "root", "secret", 3306)
        assert create_engine_mock.call_args.kwargs["connect_args"]["ssl"] == {}

    def test_execute_returns_dict_rows(self, create_engine_mock):
        transport = SQLAlchemyTransport()
        handle = transport.connect("db", "root", "secret", 3306)

        rows = transport.execute(handle, "SHOW DATABASES;")

        assert rows == [{"Database": "information_schema"}, {"Database": "shop"}]

    def test_execute_statement_without_rows(self, create_engine_mock):
        create_engine_mock.return_value = _make_engine(rows=None)
        transport = SQLAlchemyTransport()
        handle = transport.connect("db", "root", "secret", 3306)

        assert transport.execute(handle, "ALTER TABLE `t` MODIFY `c` int(11) NULL;") == []

    def test_execute_engine_error(self, create_engine_mock):
        create_engine_mock.return_value = _make_engine(
            error=ProgrammingError("SELECT", {}, _driver_error(1146, "Table 'shop.nope' doesn't exist"))
        )
        transport = SQLAlchemyTransport()
        handle = transport.connect("db", "root", "secret", 3306)

        with pytest.raises(TransportError) as exc_info:
            transport.execute(handle, "SELECT * FROM nope")

        assert "doesn't exist" in exc_info.value.details

    def test_unknown_handle(self, create_engine_mock):
        transport = SQLAlchemyTransport()
        handle = transport.connect("db", "root", "secret", 3306)
        transport.release(handle)

        with pytest.raises(AuthenticationError):
            transport.execute(handle, "SHOW DATABASES;")

    def test_expired_session(self, create_engine_mock):
        transport = SQLAlchemyTransport(session_timeout_minutes=30)
        handle = transport.connect("db", "root", "secret", 3306)
        transport._sessions[handle.token].last_used = datetime.now(timezone.utc) - timedelta(hours=1)

        with pytest.raises(AuthenticationError):
            transport.execute(handle, "SHOW DATABASES;")

        assert transport.active_session_count() == 0

    def test_cleanup_expired_sessions(self, create_engine_mock):
        transport = SQLAlchemyTransport(session_timeout_minutes=30)
        stale = transport.connect("db", "root", "secret", 3306)
        transport.connect("db", "root", "secret", 3306)
        transport._sessions[stale.token].last_used = datetime.now(timezone.utc) - timedelta(hours=1)

        assert transport.cleanup_expired_sessions() == 1
        assert transport.active_session_count() == 1

    def test_release_all(self, create_engine_mock):
        transport = SQLAlchemyTransport()
        transport.connect("db", "root", "secret", 3306)
        transport.connect("db", "root", "secret", 3306)

        transport.release_all()

        assert transport.active_session_count() == 0

    def test_release_unknown_handle_is_ignored(self, create_engine_mock):
        transport = SQLAlchemyTransport()
        handle = transport.connect("db", "root", "secret", 3306)
        transport.release(handle)
        transport.release(handle)

        assert create_engine_mock.return_value.dispose.call_count == 1

    def test_channel_over_expired_session(self, create_engine_mock):
        transport = SQLAlchemyTransport(session_timeout_minutes=30)
        channel = SessionQueryChannel(transport)
        token = channel.connect("db", "root", "secret", 3306)
        transport._sessions[token].last_used = datetime.now(timezone.utc) - timedelta(hours=1)

        result = channel.execute("SHOW DATABASES;")

        assert result.auth_failure is True
        assert channel.token is None


class TestStatementsSentVerbatim:
    """Statements reach a real engine without bind-parameter rewriting."""

    @pytest.fixture
    def sqlite_transport(self):
        def sqlite_engine(url, **kwargs):
            return create_engine("sqlite://")

        with patch("dbadmin.database.transport.create_engine", side_effect=sqlite_engine):
            yield SQLAlchemyTransport()

    def test_colon_word_in_string_literal(self, sqlite_transport):
        handle = sqlite_transport.connect("db", "root", "secret", 3306)

        rows = sqlite_transport.execute(handle, "SELECT 'a' AS a, ':b' AS v")

        assert rows == [{"a": "a", "v": ":b"}]

    def test_percent_in_string_literal(self, sqlite_transport):
        handle = sqlite_transport.connect("db", "root", "secret", 3306)

        assert sqlite_transport.execute(handle, "SELECT 'x%' AS p") == [{"p": "x%"}]

    def test_channel_runs_colon_statement(self, sqlite_transport):
        channel = SessionQueryChannel(sqlite_transport)
        channel.connect("db", "root", "secret", 3306)

        result = channel.execute("SELECT 'a', ':b' AS v")

        assert result.success
        assert result.rows[0]["v"] == ":b"

    def test_insert_with_colon_literal(self, sqlite_transport):
        handle = sqlite_transport.connect("db", "root", "secret", 3306)
        sqlite_transport.execute(handle, "CREATE TABLE t (c TEXT)")

        sqlite_transport.execute(handle, "INSERT INTO t (c) VALUES (':b')")

        assert sqlite_transport.execute(handle, "SELECT c FROM t") == [{"c": ":b"}]
