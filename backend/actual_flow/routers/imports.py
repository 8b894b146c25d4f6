from typing import List, Optional
import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import get_db, get_importer
from ..errors import ImporterError
from ..services.importer import LunchFlowImporter
from ..services.scheduler import get_scheduled_jobs
from ..services.sync_service import SyncService
from ..schemas.sync import ImportPreview, ImportResult, ScheduledJobInfo, SyncLogResponse

router = APIRouter(prefix="/imports", tags=["Imports"])


@router.get("/preview", response_model=ImportPreview)
async def preview_import(
    check_duplicates: Optional[bool] = None,
    importer: LunchFlowImporter = Depends(get_importer),
    db: AsyncSession = Depends(get_db)
):
    """Fetch and map transactions and flag duplicates without importing."""
    mappings = await SyncService(db).get_mapping_schemas()
    if not mappings:
        raise HTTPException(
            status_code=400,
            detail="No account mappings configured. Please configure mappings first."
        )

    try:
        return await importer.prepare_import(mappings, check_duplicates=check_duplicates)
    except httpx.HTTPError as e:
        raise HTTPException(status_code=502, detail=f"Failed to prepare import: {str(e)}")


@router.post("/run", response_model=ImportResult)
async def run_import(
    dry_run: bool = False,
    importer: LunchFlowImporter = Depends(get_importer),
    db: AsyncSession = Depends(get_db)
):
    """Import transactions from all mapped Lunch Flow accounts into Actual."""
    try:
        return await SyncService(db).run_import(importer, trigger='manual', dry_run=dry_run)
    except ImporterError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except httpx.HTTPError as e:
        raise HTTPException(status_code=502, detail=f"Failed to import transactions: {str(e)}")


@router.get("/logs", response_model=List[SyncLogResponse])
async def get_sync_logs(
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
):
    """Get the most recent import runs."""
    return await SyncService(db).get_sync_logs(limit=limit)


@router.get("/logs/{log_id}", response_model=SyncLogResponse)
async def get_sync_log(
    log_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Get a specific sync log entry."""
    log = await SyncService(db).get_sync_log(log_id)

    if not log:
        raise HTTPException(status_code=404, detail="Sync log not found")

    return log


@router.get("/schedule", response_model=List[ScheduledJobInfo])
async def list_scheduled_jobs():
    """List the scheduled import jobs."""
    return [ScheduledJobInfo(**job) for job in get_scheduled_jobs()]
