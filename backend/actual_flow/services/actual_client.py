import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional
import httpx

from ..config import get_settings
from ..schemas.actual import (
    ActualBudget,
    ActualBudgetAccount,
    ActualBudgetTransaction,
    ActualImportResult,
)

logger = logging.getLogger(__name__)


class ActualBudgetClient:
    """Client for Actual Budget, through an actual-http-api server."""

    def __init__(
        self,
        server_url: Optional[str] = None,
        api_key: Optional[str] = None,
        budget_sync_id: Optional[str] = None,
        encryption_password: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        settings = get_settings()
        self.server_url = (server_url or settings.actual_server_url).rstrip("/")
        self.budget_sync_id = budget_sync_id or settings.actual_budget_sync_id
        self.transport = transport
        self.headers = {
            "x-api-key": api_key or settings.actual_api_key,
            "Content-Type": "application/json"
        }
        encryption_password = encryption_password or settings.actual_encryption_password
        if encryption_password:
            self.headers["budget-encryption-password"] = encryption_password

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict = None,
        json_data: dict = None
    ) -> dict:
        """Make an authenticated request to the Actual HTTP API."""
        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.request(
                method,
                f"{self.server_url}/v1{endpoint}",
                headers=self.headers,
                params=params,
                json=json_data,
                timeout=60.0
            )
            response.raise_for_status()
            return response.json()

    @property
    def _budget_path(self) -> str:
        return f"/budgets/{self.budget_sync_id}"

    async def list_budgets(self) -> List[ActualBudget]:
        """Get all budgets available on the server."""
        data = await self._request("GET", "/budgets")
        return [
            # groupId is the sync id the other endpoints expect
            ActualBudget(id=b.get("groupId") or b.get("cloudFileId") or b.get("id", ""), name=b.get("name") or "")
            for b in data.get("data", [])
        ]

    async def get_accounts(self) -> List[ActualBudgetAccount]:
        """Get all open accounts in the budget."""
        data = await self._request("GET", f"{self._budget_path}/accounts")
        return [
            ActualBudgetAccount(
                id=a["id"],
                name=a["name"],
                offbudget=bool(a.get("offbudget")),
                closed=bool(a.get("closed"))
            )
            for a in data.get("data", [])
            if not a.get("closed")
        ]

    async def get_payee_names(self) -> Dict[str, str]:
        """Map payee ids to display names."""
        data = await self._request("GET", f"{self._budget_path}/payees")
        return {p["id"]: p.get("name") or "" for p in data.get("data", [])}

    async def get_account_transactions(
        self,
        account_id: str,
        since_date: Optional[date] = None,
        payee_names: Optional[Dict[str, str]] = None
    ) -> List[ActualBudgetTransaction]:
        """Get the existing transactions of one account."""
        params = {"since_date": since_date.isoformat()} if since_date else None
        data = await self._request(
            "GET",
            f"{self._budget_path}/accounts/{account_id}/transactions",
            params=params
        )
        payee_names = payee_names or {}

        transactions = []
        for tx in data.get("data", []):
            # Split parents carry the total; children repeat it
            if tx.get("is_child"):
                continue
            transactions.append(ActualBudgetTransaction(
                id=tx.get("id"),
                date=tx["date"],
                amount=tx["amount"],
                imported_payee=tx.get("imported_payee") or "",
                payee_name=tx.get("payee_name") or payee_names.get(tx.get("payee"), ""),
                account=tx.get("account") or account_id,
                cleared=bool(tx.get("cleared")),
                notes=tx.get("notes"),
                imported_id=tx.get("imported_id")
            ))

        return transactions

    async def get_transactions(
        self,
        account_ids: Optional[Iterable[str]] = None,
        since_date: Optional[date] = None
    ) -> List[ActualBudgetTransaction]:
        """
        Get existing transactions across accounts.

        Args:
            account_ids: Accounts to read (default: every open account)
            since_date: Only transactions on or after this date

        Returns:
            List of ActualBudgetTransaction objects
        """
        if account_ids is None:
            account_ids = [a.id for a in await self.get_accounts()]

        payee_names = await self.get_payee_names()

        transactions = []
        for account_id in account_ids:
            transactions.extend(
                await self.get_account_transactions(account_id, since_date, payee_names)
            )
        return transactions

    async def import_transactions(
        self,
        transactions: List[dict]
    ) -> ActualImportResult:
        """
        Import transactions into Actual.

        Args:
            transactions: Import payloads (see ActualBudgetTransaction.to_import_payload)

        Returns:
            ActualImportResult with added and updated ids across all accounts
        """
        by_account = defaultdict(list)
        for tx in transactions:
            by_account[tx["account"]].append(tx)

        result = ActualImportResult()
        for account_id, account_transactions in by_account.items():
            data = await self._request(
                "POST",
                f"{self._budget_path}/accounts/{account_id}/transactions/import",
                json_data={"transactions": account_transactions}
            )
            payload = data.get("data", {})
            result.added.extend(payload.get("added", []))
            result.updated.extend(payload.get("updated", []))
            result.errors.extend(str(e) for e in payload.get("errors", []) or [])
            logger.info(
                f"Imported {len(account_transactions)} transactions into account {account_id}"
            )

        return result

    async def test_connection(self) -> bool:
        """Test if the Actual connection is working."""
        try:
            await self.get_accounts()
            return True
        except Exception as e:
            logger.warning(f"Actual Budget connection test failed: {e}")
            return False
