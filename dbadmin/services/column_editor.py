"""
Column Editor - Apply column edits and keep descriptors in sync.

The statement is rendered by the mutation generator and executed through the
session channel. The descriptor is only updated after the server accepted
the change.
"""
from dbadmin.core.logging_config import LoggerMixin
from dbadmin.database.channel import SessionQueryChannel
from dbadmin.database.columns import ColumnDescriptor
from dbadmin.database.mutations import rename_column, set_nullable


class ColumnEditor(LoggerMixin):
    """
    Edits columns of the connected server.

    Example:
        >>> editor = ColumnEditor(channel)
        >>> if editor.set_allow_null(column, True):
        ...     assert column.nullable
    """

    def __init__(self, channel: SessionQueryChannel):
        self.channel = channel

    def set_allow_null(self, column: ColumnDescriptor, allow_null: bool) -> bool:
        """
        Allow or disallow NULL values in a column.

        Returns:
            True if the server applied the change
        """
        self.logger.info(
            f"Setting allow null to {allow_null} for column "
            f"{column.table_name}.{column.column_name}"
        )
        sql = set_nullable(column.table_name, column.column_name, column.raw_datatype, allow_null)

        result = self.channel.execute(sql)
        if not result.success:
            self.logger.warning(f"Could not change nullability: {result.error}")
            return False

        column.nullable = allow_null
        return True

    def rename(self, column: ColumnDescriptor, new_name: str) -> bool:
        """
        Rename a column, keeping its type.

        Returns:
            True if the server applied the change
        """
        self.logger.info(f"Renaming column {column.table_name}.{column.column_name} to {new_name}")
        sql = rename_column(column.table_name, column.column_name, new_name, column.raw_datatype)

        result = self.channel.execute(sql)
        if not result.success:
            self.logger.warning(f"Could not rename column: {result.error}")
            return False

        column.column_name = new_name
        return True
