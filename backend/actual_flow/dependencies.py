from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from .config import get_settings
from .services.actual_client import ActualBudgetClient
from .services.importer import LunchFlowImporter
from .services.lunch_flow_client import LunchFlowClient

# Create engine and session factory
_engine = None
_session_factory = None


async def get_engine():
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(settings.database_url, echo=False)
    return _engine


async def get_session_factory():
    global _session_factory
    if _session_factory is None:
        engine = await get_engine()
        _session_factory = sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database sessions."""
    session_factory = await get_session_factory()
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_lunch_flow_client() -> LunchFlowClient:
    return LunchFlowClient()


def get_actual_client() -> ActualBudgetClient:
    return ActualBudgetClient()


def get_importer() -> LunchFlowImporter:
    """Dependency for an importer wired to the configured ledgers."""
    return LunchFlowImporter(get_lunch_flow_client(), get_actual_client(), get_settings())
