from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel

from .actual import ActualBudgetTransaction


class ConnectionStatus(BaseModel):
    lunch_flow: bool
    actual_budget: bool

    @property
    def ok(self) -> bool:
        return self.lunch_flow and self.actual_budget


class AccountFetchResult(BaseModel):
    """Outcome of fetching one mapped account from Lunch Flow."""
    account: str
    lunch_flow_account_id: int
    sync_start_date: Optional[date] = None
    include_pending: bool = False
    posted_count: int = 0
    pending_count: int = 0
    success: bool = True
    error_message: Optional[str] = None


class ImportPreview(BaseModel):
    """Mapped transactions ready for import, before anything is written."""
    transactions: List[ActualBudgetTransaction]
    account_results: List[AccountFetchResult]
    fetched_count: int = 0
    skipped_count: int = 0  # source records with no mapping
    duplicate_count: int = 0
    duplicate_check_enabled: bool = False
    duplicate_check_failed: bool = False
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def unique_transactions(self) -> List[ActualBudgetTransaction]:
        return [tx for tx in self.transactions if not tx.is_duplicate]


class ImportResult(BaseModel):
    """Result of an import run."""
    fetched: int = 0
    mapped: int = 0
    duplicates_skipped: int = 0
    imported: int = 0
    updated: int = 0
    account_count: int = 0
    dry_run: bool = False
    duplicate_check_failed: bool = False
    account_results: List[AccountFetchResult] = []
    message: str = ""


class SyncLogResponse(BaseModel):
    """Response for sync log entry."""
    id: int
    started_at: datetime
    completed_at: Optional[datetime] = None
    status: str
    trigger: str = 'manual'
    transactions_found: int = 0
    transactions_mapped: int = 0
    duplicates_skipped: int = 0
    transactions_imported: int = 0
    transactions_updated: int = 0
    account_results: Optional[list] = None
    error_message: Optional[str] = None

    class Config:
        from_attributes = True


class ScheduledJobInfo(BaseModel):
    """Information about a scheduled job."""
    id: str
    name: str
    next_run_time: Optional[str] = None
    trigger: str
