from datetime import date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class LunchFlowAccount(BaseModel):
    id: int
    name: str
    institution_name: str = ""


class LunchFlowTransaction(BaseModel):
    """A transaction as reported by Lunch Flow.

    ``id`` is None for pending transactions that have not been assigned a
    stable identifier yet.
    """
    id: Optional[str] = None
    account_id: int = Field(alias="accountId")
    date: date
    amount: Decimal
    currency: str = ""
    merchant: str = ""
    description: str = ""
    is_pending: bool = Field(default=False, alias="isPending")

    class Config:
        populate_by_name = True

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("date", mode="before")
    @classmethod
    def _truncate_datetime(cls, value):
        # Some responses carry a full timestamp; only the calendar date matters
        if isinstance(value, str) and len(value) > 10:
            return value[:10]
        return value

    @field_validator("merchant", "description", "currency", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("is_pending", mode="before")
    @classmethod
    def _none_to_false(cls, value):
        return bool(value)
