"""Pydantic schemas for CSV bulk component import."""
import uuid

from pydantic import BaseModel, ConfigDict


class ImportRow(BaseModel):
    """One parsed CSV record. Every value is the raw trimmed text; coercion happens in validation."""

    model_config = ConfigDict(frozen=True)

    row_number: int
    name: str = ""
    sku: str | None = None
    description: str | None = None
    category: str | None = None
    owner_type: str = ""
    supplier_name: str | None = None
    location_code: str | None = None
    quantity: str | None = None
    unit: str | None = None
    unit_cost: str | None = None
    reorder_level: str | None = None

    # Set when the source line had a different column count than the header
    malformed: bool = False
    column_count: int | None = None


class ImportRowData(BaseModel):
    """Subset of a failed row echoed back so the user can locate it."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    sku: str | None = None
    owner_type: str | None = None
    supplier_name: str | None = None
    location_code: str | None = None

    @classmethod
    def from_row(cls, row: ImportRow) -> "ImportRowData":
        return cls(
            name=row.name or None,
            sku=row.sku,
            owner_type=row.owner_type or None,
            supplier_name=row.supplier_name,
            location_code=row.location_code,
        )


class ImportRowError(BaseModel):
    model_config = ConfigDict(frozen=True)

    row_number: int
    row_data: ImportRowData
    error_message: str
    error_field: str | None = None


class ImportResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_rows: int
    successful_imports: int
    failed_imports: int
    errors: list[ImportRowError]
    imported_component_ids: list[uuid.UUID]
    duration_ms: int
    cancelled: bool = False


class ImportResponse(BaseModel):
    success: bool
    message: str
    data: ImportResult
