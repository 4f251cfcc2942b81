"""Inventory component API endpoints."""
import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import ALL_ROLES, WRITE_ROLES, require_role
from app.db.session import get_session
from app.models.component import Component, OwnerType
from app.schemas.component import ComponentCreate, ComponentListResponse, ComponentOut, ComponentUpdate
from app.services import audit as audit_svc
from app.services import components as components_svc

logger = logging.getLogger(__name__)

router = APIRouter()


# ─── List components ───

@router.get("", response_model=ComponentListResponse, summary="List components with optional filters")
async def list_components(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*ALL_ROLES))],
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    owner_type: OwnerType | None = Query(default=None),
    supplier_id: uuid.UUID | None = Query(default=None),
    storage_location_id: uuid.UUID | None = Query(default=None),
    category: str | None = Query(default=None),
    low_stock: bool = Query(default=False, description="Only components at or below their reorder level"),
    search: str | None = Query(default=None, description="Matches name, SKU or description"),
):
    filters = [Component.team_id == current_user.team_id, Component.is_active.is_(True)]
    if owner_type is not None:
        filters.append(Component.owner_type == owner_type)
    if supplier_id is not None:
        filters.append(Component.supplier_id == supplier_id)
    if storage_location_id is not None:
        filters.append(Component.storage_location_id == storage_location_id)
    if category:
        filters.append(Component.category == category)
    if low_stock:
        filters.append(Component.quantity <= Component.reorder_level)
    if search:
        pattern = f"%{search}%"
        filters.append(
            or_(
                Component.name.ilike(pattern),
                Component.sku.ilike(pattern),
                Component.description.ilike(pattern),
            )
        )

    total = (await db.execute(select(func.count()).select_from(Component).where(*filters))).scalar_one()

    stmt = (
        select(Component)
        .where(*filters)
        .order_by(Component.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    components = (await db.execute(stmt)).scalars().all()

    return ComponentListResponse(
        items=[ComponentOut.model_validate(c) for c in components],
        total=total,
        page=page,
        page_size=page_size,
    )


async def _get_team_component(db: AsyncSession, component_id: uuid.UUID, team_id: uuid.UUID) -> Component:
    component = (
        await db.execute(
            select(Component).where(
                Component.id == component_id,
                Component.team_id == team_id,
                Component.is_active.is_(True),
            )
        )
    ).scalar_one_or_none()
    if component is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Component not found.")
    return component


# ─── Get component ───

@router.get("/{component_id}", response_model=ComponentOut, summary="Get component detail")
async def get_component(
    component_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*ALL_ROLES))],
):
    return await _get_team_component(db, component_id, current_user.team_id)


# ─── Create component ───

@router.post(
    "",
    response_model=ComponentOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a component (ADMIN, INVENTORY_MANAGER)",
)
async def create_component(
    body: ComponentCreate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*WRITE_ROLES))],
):
    try:
        component = await components_svc.create_component(db, body, current_user.team_id, current_user.id)
    except components_svc.DuplicateSkuError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except components_svc.ComponentCreateError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    await audit_svc.log(
        db,
        action="component.created",
        entity_type="component",
        entity_id=component.id,
        team_id=current_user.team_id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        after=body.model_dump(mode="json"),
    )
    await db.commit()
    await db.refresh(component)
    return component


# ─── Update component ───

@router.patch(
    "/{component_id}",
    response_model=ComponentOut,
    summary="Partially update a component (ADMIN, INVENTORY_MANAGER)",
)
async def update_component(
    component_id: uuid.UUID,
    body: ComponentUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*WRITE_ROLES))],
):
    component = await _get_team_component(db, component_id, current_user.team_id)

    if not body.model_fields_set:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update.")

    try:
        before_state = await components_svc.update_component(db, component, body, current_user.team_id)
    except components_svc.DuplicateSkuError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except components_svc.ComponentCreateError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    await audit_svc.log(
        db,
        action="component.updated",
        entity_type="component",
        entity_id=component.id,
        team_id=current_user.team_id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        before=before_state,
        after=body.model_dump(mode="json", exclude_unset=True),
    )
    await db.commit()
    await db.refresh(component)
    return component


# ─── Delete component ───

@router.delete(
    "/{component_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Soft-delete a component (ADMIN, INVENTORY_MANAGER)",
)
async def delete_component(
    component_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*WRITE_ROLES))],
):
    component = await _get_team_component(db, component_id, current_user.team_id)
    component.is_active = False

    await audit_svc.log(
        db,
        action="component.deleted",
        entity_type="component",
        entity_id=component.id,
        team_id=current_user.team_id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        before={"is_active": True},
        after={"is_active": False},
    )
    await db.commit()
    logger.info("Component %s deactivated by %s", component.id, current_user.email)
