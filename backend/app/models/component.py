import enum
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TeamOwnedMixin, TimestampMixin, UUIDMixin


class OwnerType(str, enum.Enum):
    supplier = "supplier"
    storage_location = "storage_location"


class Component(Base, UUIDMixin, TimestampMixin, TeamOwnedMixin):
    """Inventory item owned by exactly one supplier or storage location."""

    __tablename__ = "inv_components"
    __table_args__ = (
        CheckConstraint(
            "(owner_type = 'supplier' AND supplier_id IS NOT NULL AND storage_location_id IS NULL)"
            " OR owner_type = 'storage_location'",
            name="inv_components_owner_supplier_check",
        ),
        CheckConstraint(
            "(owner_type = 'storage_location' AND storage_location_id IS NOT NULL AND supplier_id IS NULL)"
            " OR owner_type = 'supplier'",
            name="inv_components_owner_location_check",
        ),
        CheckConstraint("quantity >= 0", name="inv_components_quantity_check"),
        CheckConstraint("reorder_level IS NULL OR reorder_level >= 0", name="inv_components_reorder_level_check"),
        CheckConstraint("unit_cost IS NULL OR unit_cost >= 0", name="inv_components_unit_cost_check"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    owner_type: Mapped[OwnerType] = mapped_column(
        SAEnum(OwnerType, name="inv_owner_type"), nullable=False, index=True
    )
    supplier_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("inv_suppliers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    storage_location_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("inv_storage_locations.id", ondelete="SET NULL"), nullable=True, index=True
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    unit_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    reorder_level: Mapped[int | None] = mapped_column(Integer, nullable=True, default=0)

    supplier: Mapped[Optional["Supplier"]] = relationship("Supplier")
    storage_location: Mapped[Optional["StorageLocation"]] = relationship("StorageLocation")
