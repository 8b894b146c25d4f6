from .lunch_flow import (
    LunchFlowAccount,
    LunchFlowTransaction,
)
from .actual import (
    ActualBudget,
    ActualBudgetAccount,
    ActualBudgetTransaction,
    ActualImportResult,
)
from .mapping import (
    AccountMappingBase,
    AccountMappingCreate,
    AccountMappingResponse,
)
from .sync import (
    ConnectionStatus,
    AccountFetchResult,
    ImportPreview,
    ImportResult,
    SyncLogResponse,
    ScheduledJobInfo,
)

__all__ = [
    "LunchFlowAccount",
    "LunchFlowTransaction",
    "ActualBudget",
    "ActualBudgetAccount",
    "ActualBudgetTransaction",
    "ActualImportResult",
    "AccountMappingBase",
    "AccountMappingCreate",
    "AccountMappingResponse",
    "ConnectionStatus",
    "AccountFetchResult",
    "ImportPreview",
    "ImportResult",
    "SyncLogResponse",
    "ScheduledJobInfo",
]
