from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel


class AccountMappingBase(BaseModel):
    """Links one Lunch Flow account to one Actual Budget account."""
    lunch_flow_account_id: int
    lunch_flow_account_name: str = ""
    actual_budget_account_id: str
    actual_budget_account_name: str = ""
    # Transactions dated before this are not imported
    sync_start_date: Optional[date] = None
    include_pending: bool = False

    @property
    def label(self) -> str:
        return f"{self.lunch_flow_account_name} → {self.actual_budget_account_name}"


class AccountMappingCreate(AccountMappingBase):
    pass


class AccountMappingResponse(AccountMappingBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
