"""
Mutation Generator - Render ALTER TABLE statements for column edits.

Statements are built from column metadata the engine already reported, so
identifiers are trusted: they are wrapped in backticks but not escaped.
Nothing in this module executes SQL.
"""
from dbadmin.core.logging_config import get_logger

logger = get_logger(__name__)

IDENTIFIER_QUOTE = "`"


def quote_identifier(name: str) -> str:
    """Wrap a table or column name in backticks."""
    return f"{IDENTIFIER_QUOTE}{name}{IDENTIFIER_QUOTE}"


def rename_column(table_name: str, old_name: str, new_name: str, current_raw_type: str) -> str:
    """
    Build the statement renaming a column.

    The column type is repeated exactly as stored, since CHANGE requires the
    full definition.

    Example:
        >>> rename_column("users", "old", "new", "varchar(50)")
        'ALTER TABLE `users` CHANGE `old` `new` varchar(50)'
    """
    sql = (
        f"ALTER TABLE {quote_identifier(table_name)} "
        f"CHANGE {quote_identifier(old_name)} {quote_identifier(new_name)} "
        f"{current_raw_type}"
    )
    logger.debug(f"Rendered rename: {sql}")
    return sql


def set_nullable(table_name: str, column_name: str, current_raw_type: str, allow_null: bool) -> str:
    """
    Build the statement allowing or disallowing NULL in a column.

    Example:
        >>> set_nullable("t", "c", "int(11)", False)
        'ALTER TABLE `t` MODIFY `c` int(11) NOT NULL;'
    """
    allow_null_sql = "NULL" if allow_null else "NOT NULL"
    sql = (
        f"ALTER TABLE {quote_identifier(table_name)} "
        f"MODIFY {quote_identifier(column_name)} {current_raw_type} {allow_null_sql};"
    )
    logger.debug(f"Rendered nullability change: {sql}")
    return sql
