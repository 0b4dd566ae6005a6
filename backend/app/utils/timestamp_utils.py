"""
Timestamp auto-population for tables that follow the created/modified
column naming convention.

Tables with columns named createdon, modifiedon or modifiedtime get those
values filled in by the server on create and update, unless the caller
supplied the column explicitly.
"""

from collections.abc import Collection
from datetime import datetime

from app.models.generic import MetadataRecord

CREATED_ON_COLUMN = "createdon"
MODIFIED_ON_COLUMN = "modifiedon"
MODIFIED_TIME_COLUMN = "modifiedtime"

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"


def _eligible(
    metadata: MetadataRecord, supplied: Collection[str], column: str
) -> bool:
    return column in metadata.columns and column not in supplied


def auto_populate_create(
    metadata: MetadataRecord,
    supplied: Collection[str],
    now: datetime | None = None,
) -> dict[str, str]:
    """
    Return the timestamp columns to add to an INSERT.

    Args:
        metadata: Metadata of the target table
        supplied: Column names the caller already provided
        now: Moment to stamp; defaults to the current local time

    Returns:
        Mapping of column name to formatted date or time string
    """
    now = now or datetime.now()
    date_str = now.strftime(DATE_FORMAT)
    fields: dict[str, str] = {}
    if _eligible(metadata, supplied, CREATED_ON_COLUMN):
        fields[CREATED_ON_COLUMN] = date_str
    if _eligible(metadata, supplied, MODIFIED_ON_COLUMN):
        fields[MODIFIED_ON_COLUMN] = date_str
    if _eligible(metadata, supplied, MODIFIED_TIME_COLUMN):
        fields[MODIFIED_TIME_COLUMN] = now.strftime(TIME_FORMAT)
    return fields


def auto_populate_update(
    metadata: MetadataRecord,
    supplied: Collection[str],
    now: datetime | None = None,
) -> dict[str, str]:
    """Return the modification timestamp columns to add to an UPDATE."""
    now = now or datetime.now()
    fields: dict[str, str] = {}
    if _eligible(metadata, supplied, MODIFIED_ON_COLUMN):
        fields[MODIFIED_ON_COLUMN] = now.strftime(DATE_FORMAT)
    if _eligible(metadata, supplied, MODIFIED_TIME_COLUMN):
        fields[MODIFIED_TIME_COLUMN] = now.strftime(TIME_FORMAT)
    return fields
