"""
Table routes for the Dynamic Table CRUD API.
Exposes list, get, create, update, delete, search and metadata operations
for any table or view named in the request path.
"""

import json
from typing import Any

from fastapi import APIRouter, Request, Response, status

from app.storage.database import Database
from app.utils.errors_utils import (
    CrudError,
    ErrorTypes,
    crud_error_to_http,
    validation_error,
)
from app.utils.logging_utils import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["tables"])

# This will be injected from main.py
database: Database


def init_dependencies(db: Database) -> None:
    """Initialize dependencies for this router."""
    global database
    database = db


async def _read_payload(request: Request) -> dict[str, Any]:
    """Parse the request body, which must be a JSON object of column values."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise validation_error(
            error_type=ErrorTypes.INVALID_INPUT,
            message=f"Request body is not valid JSON: {e}",
        )
    if not isinstance(payload, dict):
        raise validation_error(
            error_type=ErrorTypes.INVALID_INPUT,
            message="Request body must be a JSON object of column values",
        )
    return payload


# The fixed-segment routes are declared before /{table}/{row_id} so that
# they take precedence over a row lookup.


@router.get("/{table}/meta", response_model=dict[str, Any])
async def get_table_metadata(table: str) -> Any:
    """
    Get the columns and primary key of a table or view, for client-side
    form and table generation.
    """
    try:
        metadata = await database.get_table_metadata(table)
        return metadata.public_dict()
    except CrudError as e:
        raise crud_error_to_http(e)


@router.get("/{table}/search/{q}", response_model=list[dict[str, Any]])
async def search_rows(table: str, q: str) -> Any:
    """
    Return rows where any column, read as text, contains the search string.
    """
    try:
        return await database.search_rows(table, q)
    except CrudError as e:
        raise crud_error_to_http(e)


@router.get("/{table}", response_model=list[dict[str, Any]])
async def list_rows(table: str) -> Any:
    """List all rows of a table, newest first when it has a primary key."""
    try:
        return await database.list_rows(table)
    except CrudError as e:
        raise crud_error_to_http(e)


@router.get("/{table}/{row_id}", response_model=dict[str, Any])
async def get_row(table: str, row_id: str) -> Any:
    try:
        return await database.get_row(table, row_id)
    except CrudError as e:
        raise crud_error_to_http(e)


@router.post(
    "/{table}", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED
)
async def create_row(table: str, request: Request) -> Any:
    """
    Create a row from the body's recognised columns.
    Creation and modification timestamps are filled in when the table has them.
    """
    payload = await _read_payload(request)
    try:
        return await database.create_row(table, payload)
    except CrudError as e:
        raise crud_error_to_http(e)


@router.put("/{table}/{row_id}", response_model=dict[str, Any])
async def update_row(table: str, row_id: str, request: Request) -> Any:
    """
    Update the body's recognised columns of one row.
    Modification timestamps are refreshed when the table has them.
    """
    payload = await _read_payload(request)
    try:
        return await database.update_row(table, row_id, payload)
    except CrudError as e:
        raise crud_error_to_http(e)


@router.delete("/{table}/{row_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_row(table: str, row_id: str) -> Response:
    try:
        await database.delete_row(table, row_id)
    except CrudError as e:
        raise crud_error_to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
