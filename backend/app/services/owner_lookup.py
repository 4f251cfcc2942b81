"""Resolve CSV owner references (supplier name / location code) to ids."""
import uuid
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.storage_location import StorageLocation
from app.models.supplier import Supplier


class OwnerResolver(Protocol):
    async def resolve_supplier(self, name: str) -> uuid.UUID | None: ...

    async def resolve_location(self, location_code: str) -> uuid.UUID | None: ...


class DbOwnerResolver:
    """Read-only lookups against active suppliers/locations of one team, cached per instance."""

    def __init__(self, db: AsyncSession, team_id: uuid.UUID):
        self._db = db
        self._team_id = team_id
        self._suppliers: dict[str, uuid.UUID | None] = {}
        self._locations: dict[str, uuid.UUID | None] = {}

    async def resolve_supplier(self, name: str) -> uuid.UUID | None:
        if name not in self._suppliers:
            result = await self._db.execute(
                select(Supplier.id).where(
                    Supplier.team_id == self._team_id,
                    Supplier.name == name,
                    Supplier.is_active.is_(True),
                )
            )
            self._suppliers[name] = result.scalars().first()
        return self._suppliers[name]

    async def resolve_location(self, location_code: str) -> uuid.UUID | None:
        if location_code not in self._locations:
            result = await self._db.execute(
                select(StorageLocation.id).where(
                    StorageLocation.team_id == self._team_id,
                    StorageLocation.location_code == location_code,
                    StorageLocation.is_active.is_(True),
                )
            )
            self._locations[location_code] = result.scalars().first()
        return self._locations[location_code]
