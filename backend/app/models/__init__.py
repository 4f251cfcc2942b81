from app.models.team import Team
from app.models.user import User
from app.models.supplier import Supplier
from app.models.storage_location import StorageLocation
from app.models.component import Component, OwnerType
from app.models.audit import AuditLog

__all__ = [
    "Team",
    "User",
    "Supplier",
    "StorageLocation",
    "Component", "OwnerType",
    "AuditLog",
]
