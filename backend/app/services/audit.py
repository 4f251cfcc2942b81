"""Audit log helper: append-only writes to audit_logs table."""
import json
import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog

logger = logging.getLogger(__name__)


async def log(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | str | None = None,
    team_id: uuid.UUID | str | None = None,
    actor_id: uuid.UUID | str | None = None,
    actor_email: str | None = None,
    before: Any | None = None,
    after: Any | None = None,
    notes: str | None = None,
) -> AuditLog:
    """Write a single audit log entry.

    Args:
        db: Async session. The entry is flushed, never committed; the caller
            owns the transaction.
        action: Short verb, e.g. 'component.created', 'components.imported'.
        entity_type: Table/domain name, e.g. 'component', 'supplier'.
        entity_id: PK of the affected record (None for bulk actions).
        team_id: Team the action belongs to.
        actor_id: User who performed the action (None for system actions).
        actor_email: Denormalised email (preserved if user is later deleted).
        before: Dict snapshot of state before the action (JSON-serialisable).
        after: Dict snapshot of state after the action.
        notes: Free-text annotation.
    """
    entry = AuditLog(
        team_id=uuid.UUID(str(team_id)) if team_id else None,
        actor_id=uuid.UUID(str(actor_id)) if actor_id else None,
        actor_email=actor_email,
        action=action,
        entity_type=entity_type,
        entity_id=uuid.UUID(str(entity_id)) if entity_id else None,
        before_state=json.dumps(before, default=str) if before is not None else None,
        after_state=json.dumps(after, default=str) if after is not None else None,
        notes=notes,
    )
    db.add(entry)
    await db.flush()
    logger.debug("Audit: %s %s/%s", action, entity_type, entity_id)
    return entry
