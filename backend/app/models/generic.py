"""
Generic models for schema-driven table access.

These models describe any table or view without knowing its schema in
advance: the metadata record is discovered at runtime and rows are plain
column -> scalar mappings.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# A row as returned by the store: column name -> text, integer, real or null
RowValue = str | int | float | None
TableRow = dict[str, RowValue]


class MetadataRecord(BaseModel):
    """Columns and primary key of a table or view, as seen by the store."""

    columns: list[str]
    primary_key: str | None = Field(default=None, alias="primaryKey")

    # Records are cached for the life of the process, so they must not change
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_validator(mode="after")
    def check_primary_key_is_column(self) -> "MetadataRecord":
        if self.primary_key is not None and self.primary_key not in self.columns:
            raise ValueError(
                f"Primary key '{self.primary_key}' is not one of the table columns"
            )
        return self

    def public_dict(self) -> dict[str, Any]:
        """The shape consumed by form and table rendering clients."""
        return self.model_dump(by_alias=True)


# Export commonly used models
__all__ = [
    "MetadataRecord",
    "RowValue",
    "TableRow",
]
