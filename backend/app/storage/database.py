"""
This file contains the Database class, which owns the shared aiosqlite
connection and the table metadata cache, and exposes the generic table
CRUD operations used by the API routers.
"""

from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

# Import modularized database functions
from app.models.generic import MetadataRecord, TableRow
from app.storage.database_modules.crud_module import (
    create_row,
    delete_row,
    get_row,
    get_table_metadata,
    list_rows,
    search_rows,
    update_row,
)
from app.storage.database_modules.metadata_module import MetadataCache
from app.utils.config_utils import Config
from app.utils.logging_utils import get_logger

logger = get_logger(__name__)


class AsyncSessionContextManager:
    """Async context manager handing out the shared connection."""

    def __init__(self, connection: aiosqlite.Connection):
        self._connection = connection

    async def __aenter__(self) -> aiosqlite.Connection:
        return self._connection

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        # The connection is shared by all requests and closed in aclose()
        return None


class Database:
    """
    Database interface for the embedded SQLite store, providing schema setup
    and metadata-driven CRUD over any table or view.
    """

    def __init__(self) -> None:
        self._connection: aiosqlite.Connection | None = None
        self.metadata_cache = MetadataCache()

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def setup(self, config: Config) -> None:
        """Opens the connection and initializes the database."""

        if self._connection:
            return

        self.config = config

        try:
            logger.info("Setting up the database...")
            await self._open_connection()
            if config.get_bool("database.apply_schema", True):
                await self._apply_database_schema()
            logger.info("Database setup successfully.")
        except Exception as e:
            logger.error(f"Error setting up database: {e}")
            await self.aclose()
            raise

    async def _open_connection(self) -> None:
        """Opens the shared connection in autocommit mode."""
        db_path = str(self.config.get("database.path", "okr.db"))
        # isolation_level=None: every statement commits on its own
        self._connection = await aiosqlite.connect(db_path, isolation_level=None)
        self._connection.row_factory = aiosqlite.Row
        logger.info(f"Connected to the SQLite database at {db_path}")

    async def _apply_database_schema(self) -> None:
        """Applies the bundled schema script; it only creates what is missing."""
        schema_file = self.config.get(
            "database.schema_file", Path(__file__).parent / "database.sql"
        )

        with open(schema_file, encoding="utf-8") as f:
            schema_sql = f.read()

        async with self.session() as conn:
            logger.info("Applying database schema...")
            await conn.executescript(schema_sql)
            logger.info("Database schema applied successfully")

    def session(self) -> AsyncSessionContextManager:
        """Create a new async context manager for database session."""
        if self._connection is None:
            raise RuntimeError("Database connection not initialized. Call setup() first.")
        return AsyncSessionContextManager(self._connection)

    async def aclose(self) -> None:
        """Close the connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    # Delegated methods to modularized functions

    async def get_table_metadata(self, table_name: str) -> MetadataRecord:
        """Get the columns and primary key of a table or view."""
        return await get_table_metadata(self, table_name)

    async def list_rows(self, table_name: str) -> list[TableRow]:
        """List all rows of a table."""
        return await list_rows(self, table_name)

    async def get_row(self, table_name: str, row_id: Any) -> TableRow:
        """Get a single row by primary key."""
        return await get_row(self, table_name, row_id)

    async def create_row(
        self,
        table_name: str,
        payload: dict[str, Any],
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Insert a row."""
        return await create_row(self, table_name, payload, now)

    async def update_row(
        self,
        table_name: str,
        row_id: Any,
        payload: dict[str, Any],
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Update a row."""
        return await update_row(self, table_name, row_id, payload, now)

    async def delete_row(self, table_name: str, row_id: Any) -> None:
        """Delete a row."""
        return await delete_row(self, table_name, row_id)

    async def search_rows(self, table_name: str, query: str) -> list[TableRow]:
        """Search every column of a table for a substring."""
        return await search_rows(self, table_name, query)
