from typing import List
from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_actual_client, get_lunch_flow_client
from ..services.actual_client import ActualBudgetClient
from ..services.lunch_flow_client import LunchFlowClient
from ..schemas.actual import ActualBudgetAccount
from ..schemas.lunch_flow import LunchFlowAccount

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.get("/lunch-flow", response_model=List[LunchFlowAccount])
async def get_lunch_flow_accounts(lunch_flow: LunchFlowClient = Depends(get_lunch_flow_client)):
    """Get all connected Lunch Flow accounts."""
    try:
        return await lunch_flow.get_accounts()
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch Lunch Flow accounts: {str(e)}")


@router.get("/actual", response_model=List[ActualBudgetAccount])
async def get_actual_accounts(actual: ActualBudgetClient = Depends(get_actual_client)):
    """Get all open Actual Budget accounts."""
    try:
        return await actual.get_accounts()
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch Actual Budget accounts: {str(e)}")
