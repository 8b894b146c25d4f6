from datetime import datetime
from sqlalchemy import Column, String, Integer, Date, DateTime, Text, Boolean, JSON
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()


class AccountMapping(Base):
    """Link between a Lunch Flow account and an Actual Budget account."""
    __tablename__ = "account_mappings"

    id = Column(Integer, primary_key=True, autoincrement=True)

    lunch_flow_account_id = Column(Integer, unique=True, index=True, nullable=False)
    lunch_flow_account_name = Column(String(255), nullable=False, default="")

    actual_budget_account_id = Column(String(255), nullable=False)
    actual_budget_account_name = Column(String(255), nullable=False, default="")

    # Sync policy
    sync_start_date = Column(Date, nullable=True)
    include_pending = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SyncLog(Base):
    """Log of import runs for history tracking."""
    __tablename__ = "sync_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    started_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    status = Column(String(50), nullable=False)  # 'success', 'failed', 'running'
    trigger = Column(String(50), default='manual')  # 'manual', 'scheduled', 'cli'

    # Results
    transactions_found = Column(Integer, default=0)
    transactions_mapped = Column(Integer, default=0)
    duplicates_skipped = Column(Integer, default=0)
    transactions_imported = Column(Integer, default=0)
    transactions_updated = Column(Integer, default=0)

    # Per-account fetch outcome, as a list of AccountFetchResult dicts
    account_results = Column(JSON, nullable=True)

    error_message = Column(Text, nullable=True)


# Database setup functions
async def get_engine(database_url: str):
    return create_async_engine(database_url, echo=False)


async def get_session_maker(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(database_url: str):
    engine = await get_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine
