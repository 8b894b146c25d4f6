from typing import List
from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_actual_client, get_importer
from ..services.actual_client import ActualBudgetClient
from ..services.importer import LunchFlowImporter
from ..schemas.actual import ActualBudget
from ..schemas.sync import ConnectionStatus

router = APIRouter(prefix="/connections", tags=["Connections"])


@router.get("/test", response_model=ConnectionStatus)
async def test_connections(importer: LunchFlowImporter = Depends(get_importer)):
    """Test the Lunch Flow and Actual Budget connections."""
    return await importer.test_connections()


@router.get("/budgets", response_model=List[ActualBudget])
async def list_budgets(actual: ActualBudgetClient = Depends(get_actual_client)):
    """List the budgets available on the Actual server."""
    try:
        return await actual.list_budgets()
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch available budgets: {str(e)}")
