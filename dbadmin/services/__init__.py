"""
Services module - Orchestration on top of the session channel.

- schema_browser.py : database / table / column discovery
- column_editor.py  : column edits with descriptor updates
"""
from dbadmin.services.schema_browser import (
    SchemaBrowsingCoordinator,
    PresentationSink,
    LIST_DATABASES_SQL,
)
from dbadmin.services.column_editor import ColumnEditor

__all__ = [
    "SchemaBrowsingCoordinator",
    "PresentationSink",
    "LIST_DATABASES_SQL",
    "ColumnEditor",
]
