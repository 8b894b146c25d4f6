import asyncio
import logging
from datetime import timedelta
from typing import List, Optional, Sequence, Tuple

from ..config import Settings, get_settings
from ..errors import ConnectionFailedError, NoMappingsError, NothingMappedError
from ..schemas.lunch_flow import LunchFlowTransaction
from ..schemas.mapping import AccountMappingBase
from ..schemas.sync import AccountFetchResult, ConnectionStatus, ImportPreview, ImportResult
from .actual_client import ActualBudgetClient
from .duplicate_detector import DuplicateTransactionDetector, MatchingPolicy
from .lunch_flow_client import LunchFlowClient
from .transaction_mapper import TransactionMapper

logger = logging.getLogger(__name__)


class LunchFlowImporter:
    """Runs fetch -> map -> duplicate check -> import between the two ledgers."""

    def __init__(
        self,
        lunch_flow: Optional[LunchFlowClient] = None,
        actual: Optional[ActualBudgetClient] = None,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.lunch_flow = lunch_flow or LunchFlowClient()
        self.actual = actual or ActualBudgetClient()

    async def test_connections(self) -> ConnectionStatus:
        """Test both connections concurrently."""
        lunch_flow_ok, actual_ok = await asyncio.gather(
            self.lunch_flow.test_connection(),
            self.actual.test_connection(),
        )
        return ConnectionStatus(lunch_flow=lunch_flow_ok, actual_budget=actual_ok)

    async def fetch_transactions(
        self,
        mappings: Sequence[AccountMappingBase]
    ) -> Tuple[List[LunchFlowTransaction], List[AccountFetchResult]]:
        """
        Fetch transactions for every mapped account.

        Applies each mapping's sync start date. An account that fails to
        fetch is recorded as failed and the others still run.
        """
        all_transactions = []
        results = []

        for mapping in mappings:
            result = AccountFetchResult(
                account=mapping.label,
                lunch_flow_account_id=mapping.lunch_flow_account_id,
                sync_start_date=mapping.sync_start_date,
                include_pending=mapping.include_pending,
            )
            try:
                transactions = await self.lunch_flow.get_transactions(
                    mapping.lunch_flow_account_id,
                    include_pending=mapping.include_pending
                )
            except Exception as e:
                logger.warning(
                    f"Failed to fetch transactions for Lunch Flow account "
                    f"{mapping.lunch_flow_account_id} ({mapping.lunch_flow_account_name}): {e}"
                )
                result.success = False
                result.error_message = str(e)
                results.append(result)
                continue

            if mapping.sync_start_date:
                transactions = [
                    tx for tx in transactions
                    if tx.date >= mapping.sync_start_date
                ]

            result.pending_count = sum(1 for tx in transactions if tx.is_pending)
            result.posted_count = len(transactions) - result.pending_count
            all_transactions.extend(transactions)
            results.append(result)

        return all_transactions, results

    async def prepare_import(
        self,
        mappings: Sequence[AccountMappingBase],
        check_duplicates: Optional[bool] = None
    ) -> ImportPreview:
        """Fetch and map transactions and flag duplicates, without importing."""
        if check_duplicates is None:
            check_duplicates = self.settings.duplicate_checking_across_accounts

        source_transactions, account_results = await self.fetch_transactions(mappings)

        mapper = TransactionMapper(mappings)
        mapped, skipped = mapper.map_transactions_with_skipped(source_transactions)

        preview = ImportPreview(
            transactions=mapped,
            account_results=account_results,
            fetched_count=len(source_transactions),
            skipped_count=len(skipped),
            duplicate_check_enabled=check_duplicates,
        )

        if mapped:
            preview.start_date = min(tx.date for tx in mapped)
            preview.end_date = max(tx.date for tx in mapped)

        if check_duplicates and mapped:
            policy = MatchingPolicy.from_settings(self.settings)
            since = preview.start_date - timedelta(days=policy.date_tolerance_days)
            account_ids = sorted({tx.account for tx in mapped})
            try:
                existing = await self.actual.get_transactions(account_ids, since_date=since)
            except Exception as e:
                logger.warning(f"Failed to check for duplicates, proceeding without duplicate detection: {e}")
                preview.duplicate_check_failed = True
            else:
                detector = DuplicateTransactionDetector(existing, policy)
                detector.check_for_duplicates(mapped)
                preview.duplicate_count = detector.get_duplicate_count(mapped)
                if preview.duplicate_count:
                    logger.info(f"Found {preview.duplicate_count} duplicate transactions that will be skipped")

        return preview

    async def import_transactions(
        self,
        mappings: Sequence[AccountMappingBase],
        dry_run: bool = False,
        check_duplicates: Optional[bool] = None
    ) -> ImportResult:
        """
        Import transactions from all mapped Lunch Flow accounts into Actual.

        Raises:
            NoMappingsError: no account mappings configured
            ConnectionFailedError: either ledger is unreachable
            NothingMappedError: transactions were fetched but none could be mapped
        """
        if not mappings:
            raise NoMappingsError("No account mappings configured")

        status = await self.test_connections()
        if not status.ok:
            raise ConnectionFailedError(
                f"Connection test failed (Lunch Flow: {status.lunch_flow}, "
                f"Actual Budget: {status.actual_budget})"
            )

        preview = await self.prepare_import(mappings, check_duplicates)

        result = ImportResult(
            fetched=preview.fetched_count,
            mapped=len(preview.transactions),
            duplicates_skipped=preview.duplicate_count,
            dry_run=dry_run,
            duplicate_check_failed=preview.duplicate_check_failed,
            account_results=preview.account_results,
        )

        if preview.fetched_count == 0:
            result.message = "No transactions found for any of the mapped accounts"
            logger.info(result.message)
            return result

        if not preview.transactions:
            raise NothingMappedError("No transactions could be mapped to Actual Budget accounts")

        unique = preview.unique_transactions
        if not unique:
            result.message = "No unique transactions to import (all were duplicates)"
            logger.info(result.message)
            return result

        payloads = [tx.to_import_payload() for tx in unique]
        result.account_count = len({p["account"] for p in payloads})

        if dry_run:
            result.message = f"Dry run: {len(payloads)} transactions would be imported"
            logger.info(result.message)
            return result

        logger.info(f"Importing {len(payloads)} transactions...")
        import_result = await self.actual.import_transactions(payloads)
        result.imported = len(import_result.added)
        result.updated = len(import_result.updated)
        for error in import_result.errors:
            logger.warning(f"Actual reported an import error: {error}")

        result.message = (
            f"Successfully imported {result.imported} transactions "
            f"across {result.account_count} account(s)"
        )
        if result.duplicates_skipped:
            result.message += f"; {result.duplicates_skipped} duplicate transactions were skipped"
        logger.info(result.message)

        return result
