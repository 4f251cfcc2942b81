"""Component creation service: shared by the REST endpoint and CSV import."""
import logging
import uuid
from collections.abc import Awaitable, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.component import Component, OwnerType
from app.models.storage_location import StorageLocation
from app.models.supplier import Supplier
from app.schemas.component import ComponentCreate, ComponentUpdate

logger = logging.getLogger(__name__)

ComponentCreator = Callable[[ComponentCreate], Awaitable[uuid.UUID]]


class ComponentCreateError(ValueError):
    """A structurally valid component create or update could not be persisted."""


class DuplicateSkuError(ComponentCreateError):
    pass


class OwnerNotFoundError(ComponentCreateError):
    pass


async def create_component(
    db: AsyncSession,
    data: ComponentCreate,
    team_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Component:
    """Insert a component for the team and flush to obtain its id.

    Raises:
        DuplicateSkuError: an active component in the team already uses the SKU.
        OwnerNotFoundError: the supplier/location does not exist, is inactive,
            or belongs to another team.
    """
    if data.sku:
        existing = (
            await db.execute(
                select(Component.id).where(
                    Component.team_id == team_id,
                    Component.sku == data.sku,
                    Component.is_active.is_(True),
                )
            )
        ).scalars().first()
        if existing is not None:
            raise DuplicateSkuError(f"Component with SKU '{data.sku}' already exists")

    owner_id = data.supplier_id if data.owner_type == OwnerType.supplier else data.storage_location_id
    await _ensure_owner(db, data.owner_type, owner_id, team_id)

    component = Component(
        name=data.name,
        sku=data.sku,
        description=data.description,
        category=data.category,
        owner_type=data.owner_type,
        supplier_id=data.supplier_id if data.owner_type == OwnerType.supplier else None,
        storage_location_id=(
            data.storage_location_id if data.owner_type == OwnerType.storage_location else None
        ),
        quantity=data.quantity,
        unit=data.unit,
        unit_cost=data.unit_cost,
        reorder_level=data.reorder_level if data.reorder_level is not None else 0,
        team_id=team_id,
        created_by=user_id,
        is_active=True,
    )
    db.add(component)
    await db.flush()
    logger.debug("Created component %s (%s) for team %s", component.id, component.name, team_id)
    return component


async def _ensure_owner(
    db: AsyncSession, owner_type: OwnerType, owner_id: uuid.UUID | None, team_id: uuid.UUID
) -> None:
    if owner_type == OwnerType.supplier:
        model, label = Supplier, "Supplier"
    else:
        model, label = StorageLocation, "Storage location"
    if owner_id is None:
        raise OwnerNotFoundError(f"{label} is required when owner_type is {owner_type.value}")

    found = (
        await db.execute(
            select(model.id).where(
                model.id == owner_id,
                model.team_id == team_id,
                model.is_active.is_(True),
            )
        )
    ).scalars().first()
    if found is None:
        raise OwnerNotFoundError(f"{label} {owner_id} not found")


async def update_component(
    db: AsyncSession,
    component: Component,
    data: ComponentUpdate,
    team_id: uuid.UUID,
) -> dict:
    """Apply the fields set on ``data`` and flush. Returns the previous values of changed fields.

    Ownership changes are merged with the stored owner, then the other owner
    column is cleared and the resulting owner is checked like on create.

    Raises:
        DuplicateSkuError: another active component in the team uses the new SKU.
        OwnerNotFoundError: the resulting owner is missing, inactive or foreign.
    """
    updates = data.model_dump(exclude_unset=True)

    new_sku = updates.get("sku")
    if new_sku and new_sku != component.sku:
        existing = (
            await db.execute(
                select(Component.id).where(
                    Component.team_id == team_id,
                    Component.sku == new_sku,
                    Component.is_active.is_(True),
                    Component.id != component.id,
                )
            )
        ).scalars().first()
        if existing is not None:
            raise DuplicateSkuError(f"Component with SKU '{new_sku}' already exists")

    if updates.keys() & {"owner_type", "supplier_id", "storage_location_id"}:
        owner_type = OwnerType(updates.get("owner_type", component.owner_type))
        supplier_id = updates.get("supplier_id", component.supplier_id)
        location_id = updates.get("storage_location_id", component.storage_location_id)
        if owner_type == OwnerType.supplier:
            location_id = None
        else:
            supplier_id = None
        await _ensure_owner(db, owner_type, supplier_id or location_id, team_id)
        updates.update(owner_type=owner_type, supplier_id=supplier_id, storage_location_id=location_id)

    before = {field: getattr(component, field) for field in updates}
    for field, value in updates.items():
        setattr(component, field, value)
    await db.flush()
    logger.debug("Updated component %s fields %s", component.id, sorted(updates))
    return before


def savepoint_creator(db: AsyncSession, team_id: uuid.UUID, user_id: uuid.UUID) -> ComponentCreator:
    """Wrap create_component in a SAVEPOINT so one failed insert leaves the outer transaction usable."""

    async def _create(data: ComponentCreate) -> uuid.UUID:
        async with db.begin_nested():
            component = await create_component(db, data, team_id, user_id)
        return component.id

    return _create
