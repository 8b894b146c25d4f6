"""Shared pytest fixtures for actual_flow tests."""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from actual_flow.config import Settings
from actual_flow.models.database import Base
from actual_flow.schemas.actual import ActualBudgetAccount, ActualBudgetTransaction, ActualImportResult
from actual_flow.schemas.lunch_flow import LunchFlowAccount, LunchFlowTransaction
from actual_flow.schemas.mapping import AccountMappingBase
from actual_flow.services.importer import LunchFlowImporter


def make_lf_transaction(**overrides) -> LunchFlowTransaction:
    """Build a Lunch Flow transaction with sensible defaults."""
    data = {
        "id": "tx-1",
        "accountId": 101,
        "date": "2024-03-01",
        "amount": "-42.50",
        "currency": "USD",
        "merchant": "Whole Foods #123",
        "description": "WHOLE FOODS MKT 123 SEATTLE WA",
        "isPending": False,
    }
    data.update(overrides)
    return LunchFlowTransaction.model_validate(data)


def make_ab_transaction(**overrides) -> ActualBudgetTransaction:
    """Build an Actual Budget transaction with sensible defaults."""
    data = {
        "id": "ab-1",
        "date": date(2024, 3, 1),
        "amount": -4250,
        "imported_payee": "Whole Foods #123",
        "payee_name": "Whole Foods #123",
        "account": "acct-checking",
    }
    data.update(overrides)
    return ActualBudgetTransaction(**data)


class FakeLunchFlowClient:
    """In-memory stand-in for LunchFlowClient."""

    def __init__(self, transactions=None, failing_accounts=(), connected=True):
        self.transactions = list(transactions or [])
        self.failing_accounts = set(failing_accounts)
        self.connected = connected
        self.calls = []

    async def get_accounts(self):
        return [LunchFlowAccount(id=101, name="Chase Checking", institution_name="Chase")]

    async def get_transactions(self, account_id, include_pending=False):
        self.calls.append((account_id, include_pending))
        if account_id in self.failing_accounts:
            raise RuntimeError(f"account {account_id} unavailable")
        return [
            tx for tx in self.transactions
            if tx.account_id == account_id and (include_pending or not tx.is_pending)
        ]

    async def test_connection(self):
        return self.connected


class FakeActualClient:
    """In-memory stand-in for ActualBudgetClient."""

    def __init__(self, existing=None, connected=True, fail_existing=False):
        self.existing = list(existing or [])
        self.connected = connected
        self.fail_existing = fail_existing
        self.imported = []
        self.existing_requests = []

    async def get_accounts(self):
        return [ActualBudgetAccount(id="acct-checking", name="Checking")]

    async def list_budgets(self):
        return []

    async def get_transactions(self, account_ids=None, since_date=None):
        self.existing_requests.append((list(account_ids or []), since_date))
        if self.fail_existing:
            raise RuntimeError("actual unavailable")
        return list(self.existing)

    async def import_transactions(self, transactions):
        self.imported.extend(transactions)
        return ActualImportResult(added=[f"new-{i}" for i in range(len(transactions))])

    async def test_connection(self):
        return self.connected


@pytest.fixture
def checking_mapping():
    return AccountMappingBase(
        lunch_flow_account_id=101,
        lunch_flow_account_name="Chase Checking",
        actual_budget_account_id="acct-checking",
        actual_budget_account_name="Checking",
    )


@pytest.fixture
def card_mapping():
    return AccountMappingBase(
        lunch_flow_account_id=202,
        lunch_flow_account_name="Amex Gold",
        actual_budget_account_id="acct-amex",
        actual_budget_account_name="Amex",
        sync_start_date=date(2024, 3, 1),
        include_pending=True,
    )


@pytest.fixture
def mappings(checking_mapping, card_mapping):
    return [checking_mapping, card_mapping]


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        duplicate_checking_across_accounts=True,
        duplicate_date_tolerance_days=3,
        payee_similarity_threshold=0.6,
    )


@pytest.fixture
def source_transactions():
    return [
        make_lf_transaction(id="c-1", accountId=101, date="2024-03-01", amount="-42.50"),
        make_lf_transaction(id="c-2", accountId=101, date="2024-03-04", amount="2500.00",
                            merchant="ACME PAYROLL", description="Salary"),
        make_lf_transaction(id="a-1", accountId=202, date="2024-02-27", amount="-9.99",
                            merchant="Netflix", description="NETFLIX.COM"),
        make_lf_transaction(id="a-2", accountId=202, date="2024-03-02", amount="-18.00",
                            merchant="SQ *BLUE BOTTLE", description="Coffee"),
        make_lf_transaction(id=None, accountId=202, date="2024-03-05", amount="-7.25",
                            merchant="Uber Eats", description="Pending order", isPending=True),
        make_lf_transaction(id="x-1", accountId=999, date="2024-03-03", amount="-1.00",
                            merchant="Unmapped", description=""),
    ]


@pytest.fixture
def lunch_flow(source_transactions):
    return FakeLunchFlowClient(source_transactions)


@pytest.fixture
def actual():
    return FakeActualClient()


@pytest.fixture
def importer(lunch_flow, actual, settings):
    return LunchFlowImporter(lunch_flow, actual, settings)


@pytest.fixture
def database_url(tmp_path):
    """A file-backed SQLite database with the schema created."""
    db_path = tmp_path / "actual_flow.db"

    # Create the schema with the sync driver; tests open it with aiosqlite
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    engine.dispose()

    return f"sqlite+aiosqlite:///{db_path}"


@pytest.fixture
def session_factory(database_url):
    # NullPool so connections never outlive the event loop that opened them
    engine = create_async_engine(database_url, poolclass=NullPool)
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session
