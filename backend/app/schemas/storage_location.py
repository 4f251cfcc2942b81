"""Pydantic schemas for storage location API endpoints."""
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StorageLocationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    location_code: str
    name: str
    description: str | None
    parent_location_id: uuid.UUID | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class StorageLocationListResponse(BaseModel):
    items: list[StorageLocationOut]
    total: int
    page: int
    page_size: int


class StorageLocationCreate(BaseModel):
    location_code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    parent_location_id: uuid.UUID | None = None


class StorageLocationUpdate(BaseModel):
    location_code: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    parent_location_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def _check_not_null(self) -> "StorageLocationUpdate":
        for field in ("location_code", "name"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self
