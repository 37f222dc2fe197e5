"""Shared fixtures: a scripted in-memory transport and a connected channel."""

from typing import Any, Dict, List

import pytest

from dbadmin.core.config import get_settings
from dbadmin.core.exceptions import AuthenticationError, TransportError
from dbadmin.database.channel import SessionQueryChannel
from dbadmin.database.transport import DatabaseTransport, SessionHandle


class FakeTransport(DatabaseTransport):
    """
    Transport answering from a table of canned responses.

    ``responses`` maps SQL text to either a list of rows or an exception
    instance to raise. Every call is recorded.
    """

    def __init__(self, responses=None, password: str = "secret"):
        self.responses: Dict[str, Any] = dict(responses or {})
        self.password = password
        self.connect_calls: List[tuple] = []
        self.executed: List[str] = []
        self.released: List[SessionHandle] = []
        self._issued = 0

    def connect(self, hostname, username, password, port):
        self.connect_calls.append((hostname, username, port))
        if password != self.password:
            raise AuthenticationError("Access denied for user")
        self._issued += 1
        return SessionHandle(
            token=f"token-{self._issued}",
            hostname=hostname,
            port=port,
            username=username,
        )

    def execute(self, handle, sql):
        self.executed.append(sql)
        response = self.responses.get(sql, [])
        if isinstance(response, Exception):
            raise response
        return [dict(row) for row in response]

    def release(self, handle):
        self.released.append(handle)


@pytest.fixture(autouse=True)
def _reset_settings(monkeypatch):
    """Isolate tests from a developer's .env and cached settings."""
    for key in (
        "DB_DEFAULT_PORT",
        "DB_CONNECT_TIMEOUT_SECONDS",
        "SESSION_TIMEOUT_MINUTES",
        "DB_POOL_RECYCLE_SECONDS",
        "DB_USE_SSL",
    ):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def transport():
    return FakeTransport(responses={
        "SHOW DATABASES;": [
            {"Database": "information_schema"},
            {"Database": "shop"},
            {"Database": "analytics"},
        ],
    })


@pytest.fixture
def channel(transport):
    channel = SessionQueryChannel(transport)
    assert channel.connect("localhost", "root", "secret", 3306) == "token-1"
    return channel


@pytest.fixture
def auth_error():
    return AuthenticationError("Access denied for user 'root'@'localhost'")


@pytest.fixture
def transport_error():
    return TransportError("Query failed", details="Table 'shop.nope' doesn't exist")
