"""
Database module - MySQL schema metadata and query access layer.

This module handles:
- Column metadata parsing and classification
- ALTER TABLE statement generation
- Session-scoped query execution
- Connection transport (SQLAlchemy + PyMySQL)
"""
from dbadmin.database.columns import (
    ColumnDescriptor,
    KeyRole,
    ParsedType,
    parse_type,
    base_type,
    extract_length,
    is_integer_family,
    is_text_family,
    is_date_family,
    is_unsigned,
    parse_key_role,
    is_primary_key,
    is_unique,
    can_be_unsigned,
    key_role_full_name,
)
from dbadmin.database.mutations import quote_identifier, rename_column, set_nullable
from dbadmin.database.transport import (
    DatabaseTransport,
    DatabaseCredentials,
    SessionHandle,
    SQLAlchemyTransport,
)
from dbadmin.database.channel import (
    SessionQueryChannel,
    ChannelState,
    QueryOutcome,
    QueryResult,
)

__all__ = [
    # Columns
    "ColumnDescriptor",
    "KeyRole",
    "ParsedType",
    "parse_type",
    "base_type",
    "extract_length",
    "is_integer_family",
    "is_text_family",
    "is_date_family",
    "is_unsigned",
    "parse_key_role",
    "is_primary_key",
    "is_unique",
    "can_be_unsigned",
    "key_role_full_name",
    # Mutations
    "quote_identifier",
    "rename_column",
    "set_nullable",
    # Transport
    "DatabaseTransport",
    "DatabaseCredentials",
    "SessionHandle",
    "SQLAlchemyTransport",
    # Channel
    "SessionQueryChannel",
    "ChannelState",
    "QueryOutcome",
    "QueryResult",
]
