"""Pydantic schemas for inventory components."""
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.component import OwnerType


# ─── Create ───

class ComponentCreate(BaseModel):
    """Normalized creation request: used by both the REST endpoint and CSV import."""

    name: str = Field(min_length=1, max_length=200)
    sku: str | None = Field(default=None, max_length=100)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)

    owner_type: OwnerType
    supplier_id: uuid.UUID | None = None
    storage_location_id: uuid.UUID | None = None

    quantity: int = Field(default=0, ge=0)
    unit: str | None = Field(default=None, max_length=50)
    unit_cost: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    reorder_level: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_owner(self) -> "ComponentCreate":
        if self.owner_type == OwnerType.supplier:
            if self.supplier_id is None:
                raise ValueError("supplier_id is required when owner_type is supplier")
            if self.storage_location_id is not None:
                raise ValueError("storage_location_id must be empty when owner_type is supplier")
        else:
            if self.storage_location_id is None:
                raise ValueError("storage_location_id is required when owner_type is storage_location")
            if self.supplier_id is not None:
                raise ValueError("supplier_id must be empty when owner_type is storage_location")
        return self


# ─── Update ───

class ComponentUpdate(BaseModel):
    """Partial update. Ownership fields are merged with the stored values before checking."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    sku: str | None = Field(default=None, max_length=100)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)

    owner_type: OwnerType | None = None
    supplier_id: uuid.UUID | None = None
    storage_location_id: uuid.UUID | None = None

    quantity: int | None = Field(default=None, ge=0)
    unit: str | None = Field(default=None, max_length=50)
    unit_cost: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    reorder_level: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_not_null(self) -> "ComponentUpdate":
        for field in ("name", "owner_type", "quantity"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


# ─── Detail ───

class ComponentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    sku: str | None
    description: str | None
    category: str | None
    owner_type: OwnerType
    supplier_id: uuid.UUID | None
    storage_location_id: uuid.UUID | None
    quantity: int
    unit: str | None
    unit_cost: Decimal | None
    reorder_level: int | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ─── Paginated list response ───

class ComponentListResponse(BaseModel):
    items: list[ComponentOut]
    total: int
    page: int
    page_size: int
