"""
Schema Browser - Discovery queries for the navigation views.

Runs SHOW statements through the session's query channel and hands plain
Python objects to whatever presents them. Results are never cached: every
call queries the server again.
"""
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol

from dbadmin.core.events import WarningSink
from dbadmin.core.logging_config import LoggerMixin
from dbadmin.database.channel import SessionQueryChannel
from dbadmin.database.columns import ColumnDescriptor
from dbadmin.database.mutations import quote_identifier

LIST_DATABASES_SQL = "SHOW DATABASES;"


class PresentationSink(Protocol):
    """Receives discovery results for display."""

    def add_item(self, label: str) -> None:
        ...

    def render_summary(self, server_name: str, count: int) -> None:
        ...


class SchemaBrowsingCoordinator(LoggerMixin):
    """
    Lists databases, tables and columns for one session.

    Example:
        >>> browser = SchemaBrowsingCoordinator(channel, on_invalidated=show_login)
        >>> for name in browser.list_databases():
        ...     print(name)
    """

    def __init__(
        self,
        channel: SessionQueryChannel,
        on_invalidated: Optional[Callable[[], Any]] = None,
        warnings: Optional[WarningSink] = None,
    ):
        """
        Args:
            channel: Query channel of the current session
            on_invalidated: Called when a failed query ends the session
            warnings: Sink for classification warnings of listed columns
        """
        self.channel = channel
        self.on_invalidated = on_invalidated
        self.warnings = warnings

    def _fetch(self, sql: str) -> Optional[List[Dict[str, Any]]]:
        fetched: List[Dict[str, Any]] = []
        if not self.channel.execute_or_invalidate(sql, fetched.extend, self.on_invalidated):
            self.logger.info(f"Discovery query failed, session dropped: {sql}")
            return None
        return fetched

    def list_databases(self) -> Iterator[str]:
        """
        Get database names in the order the server returns them.

        Returns:
            One-shot iterator of names; empty if the query failed
        """
        rows = self._fetch(LIST_DATABASES_SQL) or []
        self.logger.debug(f"Found {len(rows)} databases")
        return (row["Database"] for row in rows)

    def list_tables(self, database: str) -> Iterator[str]:
        """Get table names of a database."""
        rows = self._fetch(f"SHOW TABLES FROM {quote_identifier(database)};") or []
        # The single column is named "Tables_in_<database>"
        return (next(iter(row.values())) for row in rows)

    def list_columns(self, database: str, table: str) -> Iterator[ColumnDescriptor]:
        """Get column descriptors of a table."""
        rows = self._fetch(
            f"SHOW COLUMNS FROM {quote_identifier(table)} FROM {quote_identifier(database)};"
        ) or []
        return (ColumnDescriptor.from_row(table, row, warnings=self.warnings) for row in rows)

    def display_databases(self, sink: PresentationSink, server_name: str) -> bool:
        """
        Send every database name to a presentation sink, then a summary.

        Returns:
            False if the query failed; the sink is not touched in that case
        """
        rows = self._fetch(LIST_DATABASES_SQL)
        if rows is None:
            return False

        for row in rows:
            sink.add_item(row["Database"])
        sink.render_summary(server_name, len(rows))
        return True
