from .transaction_mapper import TransactionMapper, MappingResult
from .duplicate_detector import DuplicateTransactionDetector, MatchingPolicy
from .lunch_flow_client import LunchFlowClient
from .actual_client import ActualBudgetClient
from .importer import LunchFlowImporter
from .sync_service import SyncService
from .scheduler import (
    initialize_scheduler,
    shutdown_scheduler,
    schedule_import,
    get_scheduled_jobs,
    scheduled_import_job
)

__all__ = [
    "TransactionMapper",
    "MappingResult",
    "DuplicateTransactionDetector",
    "MatchingPolicy",
    "LunchFlowClient",
    "ActualBudgetClient",
    "LunchFlowImporter",
    "SyncService",
    "initialize_scheduler",
    "shutdown_scheduler",
    "schedule_import",
    "get_scheduled_jobs",
    "scheduled_import_job"
]
