"""Supplier API endpoints: team-scoped list, detail and create."""
import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import ALL_ROLES, WRITE_ROLES, require_role
from app.db.session import get_session
from app.models.supplier import Supplier
from app.schemas.supplier import SupplierCreate, SupplierListResponse, SupplierOut, SupplierUpdate
from app.services import audit as audit_svc

logger = logging.getLogger(__name__)

router = APIRouter()


# ─── List suppliers ───

@router.get("", response_model=SupplierListResponse, summary="List active suppliers of the team")
async def list_suppliers(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*ALL_ROLES))],
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    search: str | None = Query(default=None),
):
    filters = [Supplier.team_id == current_user.team_id, Supplier.is_active.is_(True)]
    if search:
        filters.append(Supplier.name.ilike(f"%{search}%"))

    total = (await db.execute(select(func.count()).select_from(Supplier).where(*filters))).scalar_one()

    stmt = (
        select(Supplier)
        .where(*filters)
        .order_by(Supplier.name.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    suppliers = (await db.execute(stmt)).scalars().all()

    return SupplierListResponse(
        items=[SupplierOut.model_validate(s) for s in suppliers],
        total=total,
        page=page,
        page_size=page_size,
    )


async def _get_team_supplier(db: AsyncSession, supplier_id: uuid.UUID, team_id: uuid.UUID) -> Supplier:
    supplier = (
        await db.execute(
            select(Supplier).where(
                Supplier.id == supplier_id,
                Supplier.team_id == team_id,
                Supplier.is_active.is_(True),
            )
        )
    ).scalar_one_or_none()
    if supplier is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found.")
    return supplier


# ─── Get supplier ───

@router.get("/{supplier_id}", response_model=SupplierOut, summary="Get supplier detail")
async def get_supplier(
    supplier_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*ALL_ROLES))],
):
    return await _get_team_supplier(db, supplier_id, current_user.team_id)


# ─── Create supplier ───

@router.post(
    "",
    response_model=SupplierOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a supplier (ADMIN, INVENTORY_MANAGER)",
)
async def create_supplier(
    body: SupplierCreate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*WRITE_ROLES))],
):
    name = body.name.strip()
    existing = (
        await db.execute(
            select(Supplier.id).where(Supplier.team_id == current_user.team_id, Supplier.name == name)
        )
    ).scalars().first()
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A supplier named '{name}' already exists.",
        )

    supplier = Supplier(
        name=name,
        contact_person=body.contact_person,
        email=body.email,
        phone=body.phone,
        address=body.address,
        notes=body.notes,
        team_id=current_user.team_id,
        created_by=current_user.id,
        is_active=True,
    )
    db.add(supplier)
    await db.flush()

    await audit_svc.log(
        db,
        action="supplier.created",
        entity_type="supplier",
        entity_id=supplier.id,
        team_id=current_user.team_id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        after=body.model_dump(),
    )
    await db.commit()
    await db.refresh(supplier)
    logger.info("Supplier %s created by %s", supplier.id, current_user.email)
    return supplier


# ─── Update supplier ───

@router.patch(
    "/{supplier_id}",
    response_model=SupplierOut,
    summary="Partially update a supplier (ADMIN, INVENTORY_MANAGER)",
)
async def update_supplier(
    supplier_id: uuid.UUID,
    body: SupplierUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*WRITE_ROLES))],
):
    supplier = await _get_team_supplier(db, supplier_id, current_user.team_id)

    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update.")

    if "name" in updates:
        updates["name"] = updates["name"].strip()
        if updates["name"] != supplier.name:
            duplicate = (
                await db.execute(
                    select(Supplier.id).where(
                        Supplier.team_id == current_user.team_id,
                        Supplier.name == updates["name"],
                        Supplier.id != supplier.id,
                    )
                )
            ).scalars().first()
            if duplicate is not None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"A supplier named '{updates['name']}' already exists.",
                )

    before_state = {k: getattr(supplier, k) for k in updates}
    for field, value in updates.items():
        setattr(supplier, field, value)
    await db.flush()

    await audit_svc.log(
        db,
        action="supplier.updated",
        entity_type="supplier",
        entity_id=supplier.id,
        team_id=current_user.team_id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        before=before_state,
        after=updates,
    )
    await db.commit()
    await db.refresh(supplier)
    return supplier


# ─── Delete supplier ───

@router.delete(
    "/{supplier_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Soft-delete a supplier (ADMIN, INVENTORY_MANAGER)",
)
async def delete_supplier(
    supplier_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*WRITE_ROLES))],
):
    supplier = await _get_team_supplier(db, supplier_id, current_user.team_id)
    supplier.is_active = False

    await audit_svc.log(
        db,
        action="supplier.deleted",
        entity_type="supplier",
        entity_id=supplier.id,
        team_id=current_user.team_id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        before={"is_active": True},
        after={"is_active": False},
    )
    await db.commit()
    logger.info("Supplier %s deactivated by %s", supplier.id, current_user.email)
