import uuid
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TeamOwnedMixin, TimestampMixin, UUIDMixin


class StorageLocation(Base, UUIDMixin, TimestampMixin, TeamOwnedMixin):
    __tablename__ = "inv_storage_locations"
    __table_args__ = (
        UniqueConstraint("team_id", "location_code", name="inv_storage_locations_code_team_unique"),
        CheckConstraint("id != parent_location_id", name="inv_storage_locations_no_self_reference_check"),
    )

    location_code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_location_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("inv_storage_locations.id", ondelete="CASCADE"), nullable=True
    )

    parent: Mapped[Optional["StorageLocation"]] = relationship("StorageLocation", remote_side="StorageLocation.id")
