"""CSV bulk import endpoint for inventory components."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.deps import WRITE_ROLES, require_role
from app.core.limiter import limiter
from app.db.session import get_session
from app.schemas.imports import ImportResponse
from app.services import audit as audit_svc
from app.services import csv_import as csv_import_svc
from app.services.components import savepoint_creator
from app.services.owner_lookup import DbOwnerResolver

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/components",
    response_model=ImportResponse,
    summary="Bulk import components from CSV (ADMIN, INVENTORY_MANAGER)",
    responses={status.HTTP_400_BAD_REQUEST: {"description": "Unreadable file, or every row failed"}},
)
@limiter.limit(settings.CSV_IMPORT_RATE_LIMIT)
async def import_components(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role(*WRITE_ROLES))],
    file: UploadFile = File(...),
):
    filename = file.filename or ""
    if not filename.lower().endswith(".csv"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File must be a CSV")

    content = await file.read(settings.CSV_IMPORT_MAX_BYTES + 1)
    if len(content) > settings.CSV_IMPORT_MAX_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File size exceeds {settings.CSV_IMPORT_MAX_BYTES // (1024 * 1024)}MB limit",
        )

    try:
        result = await csv_import_svc.import_components_from_csv(
            content,
            resolver=DbOwnerResolver(db, current_user.team_id),
            create=savepoint_creator(db, current_user.team_id, current_user.id),
        )
    except csv_import_svc.FileDecodeError as exc:
        logger.info("CSV import of '%s' rejected: %s", filename, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    await audit_svc.log(
        db,
        action="components.imported",
        entity_type="component",
        team_id=current_user.team_id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        after={
            "total_rows": result.total_rows,
            "successful_imports": result.successful_imports,
            "failed_imports": result.failed_imports,
        },
        notes=f"CSV import from '{filename}'",
    )
    await db.commit()

    if result.failed_imports and not result.successful_imports:
        body = ImportResponse(success=False, message="All imports failed", data=result)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(mode="json"))
    if result.failed_imports:
        return ImportResponse(success=True, message="Import completed with some errors", data=result)
    return ImportResponse(success=True, message="All imports successful", data=result)
