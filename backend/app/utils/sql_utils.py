"""
SQL utilities for database operations.

This module quotes identifiers and builds the parameterized statements used
by the table CRUD operations. Table and column names reaching these helpers
must already be confirmed by the metadata resolver; values are never
interpolated and always travel as bound parameters.
"""

from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

from app.models.generic import MetadataRecord
from app.utils.errors_utils import NoPrimaryKeyError, NoValidColumnsError


class Statement(NamedTuple):
    """A SQL string together with the parameters bound to its placeholders."""

    sql: str
    params: tuple[Any, ...] = ()


def escape_sql_identifier(identifier: str) -> str:
    """
    Escape a SQL identifier (table name, column name, etc.) for safe use in queries.

    Args:
        identifier: The SQL identifier to escape

    Returns:
        Escaped identifier safe for use in SQL queries

    Example:
        >>> escape_sql_identifier('my"table')
        '"my""table"'
    """
    # Replace any quotes with double quotes and wrap in quotes
    escaped = str(identifier).replace('"', '""')
    return f'"{escaped}"'


def build_where_clause_with_params(
    conditions: list[str], logical_operator: str = "AND"
) -> str:
    """
    Build a WHERE clause from a list of conditions.

    Args:
        conditions: List of condition strings
        logical_operator: Operator to join conditions ("AND" or "OR")

    Returns:
        Complete WHERE clause string, or empty string if no conditions
    """
    if not conditions:
        return ""

    if len(conditions) == 1:
        return f"WHERE {conditions[0]}"

    joined_conditions = f" {logical_operator} ".join(conditions)
    return f"WHERE {joined_conditions}"


def build_order_by_clause(
    sort_columns: list[str], sort_directions: list[str] | None = None
) -> str:
    """
    Build an ORDER BY clause from columns and directions.

    Args:
        sort_columns: List of column names to sort by
        sort_directions: List of directions ("ASC" or "DESC"), defaults to "ASC"

    Returns:
        Complete ORDER BY clause string, or empty string if no columns
    """
    if not sort_columns:
        return ""

    directions = list(sort_directions or [])
    # Ensure we have a direction for each column
    while len(directions) < len(sort_columns):
        directions.append("ASC")

    order_parts = []
    for column, direction in zip(sort_columns, directions):
        direction = direction.upper()
        if direction not in ("ASC", "DESC"):
            direction = "ASC"
        order_parts.append(f"{escape_sql_identifier(column)} {direction}")

    return f"ORDER BY {', '.join(order_parts)}"


def _join_sql(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def require_primary_key(metadata: MetadataRecord) -> str:
    if not metadata.primary_key:
        raise NoPrimaryKeyError("Primary key not found for this table")
    return metadata.primary_key


def writable_columns(
    metadata: MetadataRecord, payload: Mapping[str, Any], operation: str = "valid"
) -> list[str]:
    """
    Return the payload keys that are real, non-key columns of the table.

    The result follows the table's column order. Unknown keys are ignored.

    Raises:
        NoValidColumnsError: if no payload key survives the filter
    """
    columns = [
        column
        for column in metadata.columns
        if column != metadata.primary_key and column in payload
    ]
    if not columns:
        raise NoValidColumnsError(f"No {operation} columns provided in request body")
    return columns


def build_list_statement(table_name: str, metadata: MetadataRecord) -> Statement:
    """SELECT every row, newest primary key first when the table has one."""
    order_by = ""
    if metadata.primary_key:
        order_by = build_order_by_clause([metadata.primary_key], ["DESC"])
    return Statement(
        _join_sql(f"SELECT * FROM {escape_sql_identifier(table_name)}", order_by)
    )


def build_get_statement(
    table_name: str, metadata: MetadataRecord, row_id: Any
) -> Statement:
    primary_key = require_primary_key(metadata)
    where = build_where_clause_with_params([f"{escape_sql_identifier(primary_key)} = ?"])
    return Statement(
        _join_sql(f"SELECT * FROM {escape_sql_identifier(table_name)}", where),
        (row_id,),
    )


def build_insert_statement(table_name: str, values: Mapping[str, Any]) -> Statement:
    """
    Build an INSERT for the given column -> value mapping.

    The mapping keys must already be vetted column names.
    """
    columns = list(values.keys())
    column_clause = ", ".join(escape_sql_identifier(c) for c in columns)
    placeholders = ", ".join("?" for _ in columns)
    sql = (
        f"INSERT INTO {escape_sql_identifier(table_name)} "
        f"({column_clause}) VALUES ({placeholders})"
    )
    return Statement(sql, tuple(values[c] for c in columns))


def build_update_statement(
    table_name: str,
    metadata: MetadataRecord,
    values: Mapping[str, Any],
    row_id: Any,
) -> Statement:
    primary_key = require_primary_key(metadata)
    columns = list(values.keys())
    set_clause = ", ".join(f"{escape_sql_identifier(c)} = ?" for c in columns)
    where = build_where_clause_with_params([f"{escape_sql_identifier(primary_key)} = ?"])
    sql = _join_sql(
        f"UPDATE {escape_sql_identifier(table_name)} SET {set_clause}", where
    )
    return Statement(sql, (*(values[c] for c in columns), row_id))


def build_delete_statement(
    table_name: str, metadata: MetadataRecord, row_id: Any
) -> Statement:
    primary_key = require_primary_key(metadata)
    where = build_where_clause_with_params([f"{escape_sql_identifier(primary_key)} = ?"])
    return Statement(
        _join_sql(f"DELETE FROM {escape_sql_identifier(table_name)}", where),
        (row_id,),
    )


def build_search_statement(
    table_name: str, columns: Iterable[str], query: str
) -> Statement:
    """
    Match rows where any column, cast to text, contains the query substring.

    Case sensitivity and NULL handling are whatever the store's LIKE does.
    """
    columns = list(columns)
    conditions = [f"CAST({escape_sql_identifier(c)} AS TEXT) LIKE ?" for c in columns]
    pattern = f"%{query}%"
    return Statement(
        _join_sql(
            f"SELECT * FROM {escape_sql_identifier(table_name)}",
            build_where_clause_with_params(conditions, "OR"),
        ),
        tuple(pattern for _ in columns),
    )
