"""
Generic table CRUD functionality for the Database class.

Every operation resolves the table's metadata through the cache, builds a
single parameterized statement from it and runs that statement on the shared
connection. There is no per-table code: the same path serves any table or
view in the store.
"""

import sqlite3
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

import aiosqlite

if TYPE_CHECKING:
    from app.storage.database import Database

from app.models.generic import MetadataRecord, TableRow
from app.utils.errors_utils import InternalError, RowNotFoundError
from app.utils.logging_utils import get_logger
from app.utils.sql_utils import (
    Statement,
    build_delete_statement,
    build_get_statement,
    build_insert_statement,
    build_list_statement,
    build_search_statement,
    build_update_statement,
    require_primary_key,
    writable_columns,
)
from app.utils.timestamp_utils import auto_populate_create, auto_populate_update

logger = get_logger(__name__)


async def get_table_metadata(database: "Database", table_name: str) -> MetadataRecord:
    """Return the cached metadata for a table, resolving it on first use."""
    async with database.session() as conn:
        return await database.metadata_cache.get_or_resolve(conn, table_name)


async def list_rows(database: "Database", table_name: str) -> list[TableRow]:
    """Return every row of the table, newest primary key first."""
    metadata = await get_table_metadata(database, table_name)
    statement = build_list_statement(table_name, metadata)

    async with database.session() as conn:
        rows = await _fetch_all(conn, statement)
    return [_row_to_dict(row) for row in rows]


async def get_row(database: "Database", table_name: str, row_id: Any) -> TableRow:
    """
    Return the single row whose primary key equals row_id.

    Raises:
        NoPrimaryKeyError: the table has no usable key
        RowNotFoundError: no row matches
    """
    metadata = await get_table_metadata(database, table_name)
    statement = build_get_statement(table_name, metadata, row_id)

    async with database.session() as conn:
        rows = await _fetch_all(conn, statement)
    if not rows:
        raise RowNotFoundError("Item not found")
    return _row_to_dict(rows[0])


async def create_row(
    database: "Database",
    table_name: str,
    payload: Mapping[str, Any],
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Insert a row built from the recognised payload keys plus timestamps.

    Returns:
        The inserted fields with the store-assigned primary key value added
    """
    metadata = await get_table_metadata(database, table_name)
    keys = writable_columns(metadata, payload)

    values = {key: payload[key] for key in keys}
    values.update(auto_populate_create(metadata, keys, now))
    statement = build_insert_statement(table_name, values)

    async with database.session() as conn:
        cursor = await _execute(conn, statement)
        row_id = cursor.lastrowid
        await cursor.close()

    created = dict(values)
    if metadata.primary_key:
        created[metadata.primary_key] = row_id
    logger.info(f"Created row {row_id} in '{table_name}'")
    return created


async def update_row(
    database: "Database",
    table_name: str,
    row_id: Any,
    payload: Mapping[str, Any],
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Update the recognised payload columns of one row and refresh its
    modification timestamps.

    Returns:
        The submitted and auto-populated fields with the primary key set to row_id
    """
    metadata = await get_table_metadata(database, table_name)
    primary_key = require_primary_key(metadata)
    keys = writable_columns(metadata, payload, operation="updatable")

    values = {key: payload[key] for key in keys}
    values.update(auto_populate_update(metadata, keys, now))
    statement = build_update_statement(table_name, metadata, values, row_id)

    async with database.session() as conn:
        cursor = await _execute(conn, statement)
        changed = cursor.rowcount
        await cursor.close()

    if changed == 0:
        raise RowNotFoundError("Item not found")

    updated = dict(values)
    updated[primary_key] = row_id
    return updated


async def delete_row(database: "Database", table_name: str, row_id: Any) -> None:
    metadata = await get_table_metadata(database, table_name)
    statement = build_delete_statement(table_name, metadata, row_id)

    async with database.session() as conn:
        cursor = await _execute(conn, statement)
        changed = cursor.rowcount
        await cursor.close()

    if changed == 0:
        raise RowNotFoundError("Item not found")
    logger.info(f"Deleted row {row_id} from '{table_name}'")


async def search_rows(
    database: "Database", table_name: str, query: str
) -> list[TableRow]:
    """Return rows where any column, read as text, contains query."""
    metadata = await get_table_metadata(database, table_name)
    statement = build_search_statement(table_name, metadata.columns, query)

    async with database.session() as conn:
        rows = await _fetch_all(conn, statement)
    return [_row_to_dict(row) for row in rows]


def _row_to_dict(row: sqlite3.Row) -> TableRow:
    return {key: row[key] for key in row.keys()}


# Integers beyond 64 bits fail at parameter binding with OverflowError
async def _fetch_all(
    conn: aiosqlite.Connection, statement: Statement
) -> list[sqlite3.Row]:
    try:
        rows: Iterable[sqlite3.Row] = await conn.execute_fetchall(
            statement.sql, statement.params
        )
    except (sqlite3.Error, OverflowError) as e:
        _log_statement_failure(e, statement)
        raise InternalError(str(e)) from e
    return list(rows)


async def _execute(conn: aiosqlite.Connection, statement: Statement) -> aiosqlite.Cursor:
    try:
        return await conn.execute(statement.sql, statement.params)
    except (sqlite3.Error, OverflowError) as e:
        _log_statement_failure(e, statement)
        raise InternalError(str(e)) from e


def _log_statement_failure(error: Exception, statement: Statement) -> None:
    logger.error(f"Database error: {error}")
    logger.error(f"SQL: {statement.sql}")
    logger.error(f"Values: {list(statement.params)}")
