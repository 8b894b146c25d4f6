from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import get_db
from ..errors import ConflictError, NotFoundError
from ..services.sync_service import SyncService
from ..schemas.mapping import AccountMappingCreate, AccountMappingResponse

router = APIRouter(prefix="/mappings", tags=["Account Mappings"])


@router.get("/", response_model=List[AccountMappingResponse])
async def list_account_mappings(db: AsyncSession = Depends(get_db)):
    """List all configured account mappings."""
    return await SyncService(db).list_mappings()


@router.post("/", response_model=AccountMappingResponse, status_code=201)
async def create_account_mapping(
    mapping: AccountMappingCreate,
    db: AsyncSession = Depends(get_db)
):
    """Map a Lunch Flow account to an Actual Budget account."""
    try:
        return await SyncService(db).create_mapping(mapping)
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{mapping_id}", response_model=AccountMappingResponse)
async def get_account_mapping(
    mapping_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Get a specific account mapping."""
    try:
        return await SyncService(db).get_mapping(mapping_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{mapping_id}", response_model=AccountMappingResponse)
async def update_account_mapping(
    mapping_id: int,
    mapping: AccountMappingCreate,
    db: AsyncSession = Depends(get_db)
):
    """Update an account mapping."""
    try:
        return await SyncService(db).update_mapping(mapping_id, mapping)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{mapping_id}")
async def delete_account_mapping(
    mapping_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Delete an account mapping."""
    try:
        await SyncService(db).delete_mapping(mapping_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {"status": "success", "message": "Mapping deleted"}
