from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TeamOwnedMixin, TimestampMixin, UUIDMixin


class Supplier(Base, UUIDMixin, TimestampMixin, TeamOwnedMixin):
    __tablename__ = "inv_suppliers"
    __table_args__ = (UniqueConstraint("team_id", "name", name="inv_suppliers_name_team_unique"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    contact_person: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
