"""Storage location API endpoints: team-scoped list, detail and create."""
import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import ALL_ROLES, WRITE_ROLES, require_role
from app.db.session import get_session
from app.models.storage_location import StorageLocation
from app.schemas.storage_location import (
    StorageLocationCreate,
    StorageLocationListResponse,
    StorageLocationOut,
    StorageLocationUpdate,
)
from app.services import audit as audit_svc

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=StorageLocationListResponse, summary="List active storage locations")
async def list_locations(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*ALL_ROLES))],
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    search: str | None = Query(default=None),
):
    filters = [StorageLocation.team_id == current_user.team_id, StorageLocation.is_active.is_(True)]
    if search:
        filters.append(
            or_(
                StorageLocation.location_code.ilike(f"%{search}%"),
                StorageLocation.name.ilike(f"%{search}%"),
            )
        )

    total = (
        await db.execute(select(func.count()).select_from(StorageLocation).where(*filters))
    ).scalar_one()

    stmt = (
        select(StorageLocation)
        .where(*filters)
        .order_by(StorageLocation.location_code.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    locations = (await db.execute(stmt)).scalars().all()

    return StorageLocationListResponse(
        items=[StorageLocationOut.model_validate(loc) for loc in locations],
        total=total,
        page=page,
        page_size=page_size,
    )


async def _get_team_location(db: AsyncSession, location_id: uuid.UUID, team_id: uuid.UUID) -> StorageLocation:
    location = (
        await db.execute(
            select(StorageLocation).where(
                StorageLocation.id == location_id,
                StorageLocation.team_id == team_id,
                StorageLocation.is_active.is_(True),
            )
        )
    ).scalar_one_or_none()
    if location is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Storage location not found.")
    return location


@router.get("/{location_id}", response_model=StorageLocationOut, summary="Get storage location detail")
async def get_location(
    location_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*ALL_ROLES))],
):
    return await _get_team_location(db, location_id, current_user.team_id)


@router.post(
    "",
    response_model=StorageLocationOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a storage location (ADMIN, INVENTORY_MANAGER)",
)
async def create_location(
    body: StorageLocationCreate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*WRITE_ROLES))],
):
    code = body.location_code.strip()
    existing = (
        await db.execute(
            select(StorageLocation.id).where(
                StorageLocation.team_id == current_user.team_id,
                StorageLocation.location_code == code,
            )
        )
    ).scalars().first()
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Location code '{code}' is already in use.",
        )

    if body.parent_location_id is not None:
        parent = (
            await db.execute(
                select(StorageLocation.id).where(
                    StorageLocation.id == body.parent_location_id,
                    StorageLocation.team_id == current_user.team_id,
                    StorageLocation.is_active.is_(True),
                )
            )
        ).scalars().first()
        if parent is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent location not found.")

    location = StorageLocation(
        location_code=code,
        name=body.name.strip(),
        description=body.description,
        parent_location_id=body.parent_location_id,
        team_id=current_user.team_id,
        created_by=current_user.id,
        is_active=True,
    )
    db.add(location)
    await db.flush()

    await audit_svc.log(
        db,
        action="storage_location.created",
        entity_type="storage_location",
        entity_id=location.id,
        team_id=current_user.team_id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        after=body.model_dump(),
    )
    await db.commit()
    await db.refresh(location)
    return location


async def _is_ancestor_or_self(
    db: AsyncSession, location_id: uuid.UUID, parent_id: uuid.UUID, team_id: uuid.UUID
) -> bool:
    """True when ``location_id`` appears on the parent chain starting at ``parent_id``."""
    current: uuid.UUID | None = parent_id
    seen: set[uuid.UUID] = set()
    while current is not None and current not in seen:
        if current == location_id:
            return True
        seen.add(current)
        current = (
            await db.execute(
                select(StorageLocation.parent_location_id).where(
                    StorageLocation.id == current,
                    StorageLocation.team_id == team_id,
                )
            )
        ).scalars().first()
    return False


@router.patch(
    "/{location_id}",
    response_model=StorageLocationOut,
    summary="Partially update a storage location (ADMIN, INVENTORY_MANAGER)",
)
async def update_location(
    location_id: uuid.UUID,
    body: StorageLocationUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*WRITE_ROLES))],
):
    location = await _get_team_location(db, location_id, current_user.team_id)

    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update.")

    if "location_code" in updates:
        updates["location_code"] = updates["location_code"].strip()
        if updates["location_code"] != location.location_code:
            duplicate = (
                await db.execute(
                    select(StorageLocation.id).where(
                        StorageLocation.team_id == current_user.team_id,
                        StorageLocation.location_code == updates["location_code"],
                        StorageLocation.id != location.id,
                    )
                )
            ).scalars().first()
            if duplicate is not None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Location code '{updates['location_code']}' is already in use.",
                )

    if "name" in updates:
        updates["name"] = updates["name"].strip()

    parent_id = updates.get("parent_location_id")
    if parent_id is not None:
        parent = (
            await db.execute(
                select(StorageLocation.id).where(
                    StorageLocation.id == parent_id,
                    StorageLocation.team_id == current_user.team_id,
                    StorageLocation.is_active.is_(True),
                )
            )
        ).scalars().first()
        if parent is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent location not found.")
        if await _is_ancestor_or_self(db, location.id, parent_id, current_user.team_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Circular reference detected in location hierarchy.",
            )

    before_state = {k: getattr(location, k) for k in updates}
    for field, value in updates.items():
        setattr(location, field, value)
    await db.flush()

    await audit_svc.log(
        db,
        action="storage_location.updated",
        entity_type="storage_location",
        entity_id=location.id,
        team_id=current_user.team_id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        before=before_state,
        after=updates,
    )
    await db.commit()
    await db.refresh(location)
    return location


@router.delete(
    "/{location_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Soft-delete a storage location (ADMIN, INVENTORY_MANAGER)",
)
async def delete_location(
    location_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*WRITE_ROLES))],
):
    location = await _get_team_location(db, location_id, current_user.team_id)

    active_children = (
        await db.execute(
            select(func.count()).select_from(StorageLocation).where(
                StorageLocation.parent_location_id == location.id,
                StorageLocation.team_id == current_user.team_id,
                StorageLocation.is_active.is_(True),
            )
        )
    ).scalar_one()
    if active_children:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete a location with active child locations.",
        )

    location.is_active = False
    await audit_svc.log(
        db,
        action="storage_location.deleted",
        entity_type="storage_location",
        entity_id=location.id,
        team_id=current_user.team_id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        before={"is_active": True},
        after={"is_active": False},
    )
    await db.commit()
    logger.info("Storage location %s deactivated by %s", location.id, current_user.email)
