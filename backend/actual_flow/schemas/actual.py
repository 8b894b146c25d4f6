from datetime import date
from typing import List, Optional
from pydantic import BaseModel


# Annotations added during a run; the Actual API rejects unknown fields
TRANSIENT_FIELDS = {"is_duplicate", "duplicate_of", "is_pending"}


class ActualBudget(BaseModel):
    id: str
    name: str


class ActualBudgetAccount(BaseModel):
    id: str
    name: str
    offbudget: bool = False
    closed: bool = False


class ActualBudgetTransaction(BaseModel):
    """Transaction format for the Actual Budget API."""
    id: Optional[str] = None
    date: date
    amount: int  # Integer cents (-4250 = -42.50)
    imported_payee: str = ""
    payee_name: str = ""
    account: str
    cleared: bool = True
    notes: Optional[str] = None
    imported_id: Optional[str] = None

    is_duplicate: bool = False
    duplicate_of: Optional[str] = None
    is_pending: bool = False

    def to_import_payload(self) -> dict:
        """Return the record as sent to Actual, without run annotations."""
        return self.model_dump(
            mode="json",
            exclude=TRANSIENT_FIELDS | {"id"},
            exclude_none=True,
        )


class ActualImportResult(BaseModel):
    """Result of an Actual import call for one account."""
    added: List[str] = []
    updated: List[str] = []
    errors: List[str] = []
