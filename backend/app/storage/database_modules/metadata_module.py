"""
Table metadata discovery for the Database class.

This module checks that a table or view exists in the SQLite catalog,
introspects its columns and primary key, and caches the result so later
requests for the same table do not touch the catalog again.
"""

import sqlite3
from collections.abc import Sequence

import aiosqlite

from app.models.generic import MetadataRecord
from app.utils.errors_utils import (
    InvalidRequestError,
    TableNotFoundError,
)
from app.utils.logging_utils import get_logger
from app.utils.sql_utils import escape_sql_identifier

logger = get_logger(__name__)

TABLE_EXISTS_QUERY = (
    "SELECT name FROM sqlite_master WHERE type IN ('table', 'view') AND name = ?"
)
CONVENTIONAL_KEY_COLUMN = "id"


def derive_primary_key(columns: Sequence[str], pk_flags: Sequence[int]) -> str | None:
    """
    Pick the column used to address single rows.

    Precedence: the only column the store flags as primary key, then a column
    named "id", then the first column. Returns None only when there are no
    columns at all.

    Example:
        >>> derive_primary_key(["code", "name"], [1, 0])
        'code'
        >>> derive_primary_key(["name", "id"], [0, 0])
        'id'
    """
    flagged = [column for column, pk in zip(columns, pk_flags) if pk and pk > 0]
    if len(flagged) == 1:
        return flagged[0]
    if CONVENTIONAL_KEY_COLUMN in columns:
        return CONVENTIONAL_KEY_COLUMN
    return columns[0] if columns else None


async def resolve_table_metadata(
    conn: aiosqlite.Connection, table_name: str
) -> MetadataRecord:
    """
    Introspect a table or view and build its metadata record.

    Raises:
        InvalidRequestError: table_name is empty
        TableNotFoundError: no such table/view, it reports no columns, or the
            store cannot introspect it (e.g. a view over a dropped table)
    """
    if not table_name:
        raise InvalidRequestError("Table name is required")

    try:
        found = await conn.execute_fetchall(TABLE_EXISTS_QUERY, (table_name,))
        if not list(found):
            raise TableNotFoundError(f"Table or view not found: {table_name}")

        column_rows = list(
            await conn.execute_fetchall(
                f"PRAGMA table_info({escape_sql_identifier(table_name)})"
            )
        )
    except sqlite3.Error as e:
        logger.error(f"Failed to introspect table '{table_name}': {e}")
        raise TableNotFoundError(f"Could not read columns of {table_name}: {e}") from e

    if not column_rows:
        raise TableNotFoundError(f"No columns found for {table_name}")

    columns = [row["name"] for row in column_rows]
    pk_flags = [row["pk"] for row in column_rows]

    return MetadataRecord(
        columns=columns, primary_key=derive_primary_key(columns, pk_flags)
    )


class MetadataCache:
    """
    Table name -> MetadataRecord map that lives as long as its owner.

    Failed resolutions are not cached, so a table created later is picked
    up on the next request. Two requests racing on the same uncached name may
    both resolve it; the second write stores an identical record.
    """

    def __init__(self) -> None:
        self._records: dict[str, MetadataRecord] = {}

    async def get_or_resolve(
        self, conn: aiosqlite.Connection, table_name: str
    ) -> MetadataRecord:
        record = self._records.get(table_name)
        if record is not None:
            return record

        record = await resolve_table_metadata(conn, table_name)
        self._records[table_name] = record
        logger.info(
            f"Cached metadata for '{table_name}': {len(record.columns)} columns, "
            f"primary key {record.primary_key!r}"
        )
        return record

    def get(self, table_name: str) -> MetadataRecord | None:
        return self._records.get(table_name)

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, table_name: object) -> bool:
        return table_name in self._records

    def __len__(self) -> int:
        return len(self._records)
