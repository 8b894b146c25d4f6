import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError, NotFoundError, mapping_already_exists, mapping_not_found
from ..models.database import AccountMapping, SyncLog
from ..schemas.mapping import AccountMappingCreate, AccountMappingResponse
from ..schemas.sync import ImportResult
from .importer import LunchFlowImporter

logger = logging.getLogger(__name__)


class SyncService:
    """Account mappings and import runs backed by the database."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_mappings(self) -> List[AccountMapping]:
        result = await self.session.execute(
            select(AccountMapping).order_by(AccountMapping.id)
        )
        return list(result.scalars().all())

    async def get_mapping(self, mapping_id: int) -> AccountMapping:
        result = await self.session.execute(
            select(AccountMapping).where(AccountMapping.id == mapping_id)
        )
        mapping = result.scalar_one_or_none()
        if mapping is None:
            raise NotFoundError(mapping_not_found(mapping_id))
        return mapping

    async def _ensure_unmapped(self, lunch_flow_account_id: int, exclude_id: Optional[int] = None):
        query = select(AccountMapping).where(
            AccountMapping.lunch_flow_account_id == lunch_flow_account_id
        )
        if exclude_id is not None:
            query = query.where(AccountMapping.id != exclude_id)
        result = await self.session.execute(query)
        if result.scalar_one_or_none() is not None:
            raise ConflictError(mapping_already_exists(lunch_flow_account_id))

    async def create_mapping(self, data: AccountMappingCreate) -> AccountMapping:
        await self._ensure_unmapped(data.lunch_flow_account_id)

        mapping = AccountMapping(**data.model_dump())
        self.session.add(mapping)
        await self.session.commit()
        await self.session.refresh(mapping)

        logger.info(f"Mapped Lunch Flow account {mapping.lunch_flow_account_id} to {mapping.actual_budget_account_id}")
        return mapping

    async def update_mapping(self, mapping_id: int, data: AccountMappingCreate) -> AccountMapping:
        mapping = await self.get_mapping(mapping_id)
        if data.lunch_flow_account_id != mapping.lunch_flow_account_id:
            await self._ensure_unmapped(data.lunch_flow_account_id, exclude_id=mapping_id)

        for field, value in data.model_dump().items():
            setattr(mapping, field, value)
        mapping.updated_at = datetime.utcnow()

        await self.session.commit()
        await self.session.refresh(mapping)
        return mapping

    async def delete_mapping(self, mapping_id: int) -> None:
        mapping = await self.get_mapping(mapping_id)
        await self.session.delete(mapping)
        await self.session.commit()

    async def get_mapping_schemas(self) -> List[AccountMappingResponse]:
        """Mappings as plain schemas, detached from the session."""
        return [AccountMappingResponse.model_validate(m) for m in await self.list_mappings()]

    async def run_import(
        self,
        importer: LunchFlowImporter,
        trigger: str = "manual",
        dry_run: bool = False
    ) -> ImportResult:
        """
        Run an import and record it in the sync log.

        Errors are recorded on the log entry and re-raised.
        """
        sync_log = SyncLog(status='running', trigger=trigger)
        self.session.add(sync_log)
        await self.session.commit()

        try:
            mappings = await self.get_mapping_schemas()
            result = await importer.import_transactions(mappings, dry_run=dry_run)
        except Exception as e:
            logger.error(f"Import failed ({trigger}): {e}")
            sync_log.status = 'failed'
            sync_log.error_message = str(e)
            sync_log.completed_at = datetime.utcnow()
            await self.session.commit()
            raise

        sync_log.status = 'success'
        sync_log.completed_at = datetime.utcnow()
        sync_log.transactions_found = result.fetched
        sync_log.transactions_mapped = result.mapped
        sync_log.duplicates_skipped = result.duplicates_skipped
        sync_log.transactions_imported = result.imported
        sync_log.transactions_updated = result.updated
        sync_log.account_results = [r.model_dump(mode="json") for r in result.account_results]
        await self.session.commit()

        return result

    async def get_sync_logs(self, limit: int = 50) -> List[SyncLog]:
        result = await self.session.execute(
            select(SyncLog).order_by(SyncLog.started_at.desc(), SyncLog.id.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def get_sync_log(self, log_id: int) -> Optional[SyncLog]:
        result = await self.session.execute(
            select(SyncLog).where(SyncLog.id == log_id)
        )
        return result.scalar_one_or_none()
