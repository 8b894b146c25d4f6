import logging
from typing import List, Optional
import httpx
from pydantic import ValidationError

from ..config import get_settings
from ..schemas.lunch_flow import LunchFlowAccount, LunchFlowTransaction

logger = logging.getLogger(__name__)


class LunchFlowClient:
    """Client for Lunch Flow API interactions."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        settings = get_settings()
        self.api_key = api_key or settings.lunch_flow_api_key
        self.base_url = (base_url or settings.lunch_flow_base_url).rstrip("/")
        self.transport = transport
        self.headers = {
            "x-api-key": self.api_key,
            "Accept": "application/json"
        }

    async def _request(self, method: str, endpoint: str, params: dict = None) -> dict:
        """Make an authenticated request to the Lunch Flow API."""
        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.request(
                method,
                f"{self.base_url}{endpoint}",
                headers=self.headers,
                params=params,
                timeout=30.0
            )
            response.raise_for_status()
            return response.json()

    async def get_accounts(self) -> List[LunchFlowAccount]:
        """Get all connected bank accounts."""
        data = await self._request("GET", "/accounts")
        accounts = data.get("accounts", [])

        return [
            LunchFlowAccount(
                id=acc["id"],
                name=acc.get("name") or "Unknown Account",
                institution_name=acc.get("institution_name") or ""
            )
            for acc in accounts
        ]

    async def get_transactions(
        self,
        account_id: int,
        include_pending: bool = False
    ) -> List[LunchFlowTransaction]:
        """
        Get transactions for a Lunch Flow account.

        Args:
            account_id: Lunch Flow account ID
            include_pending: Also return pending transactions

        Returns:
            List of LunchFlowTransaction objects
        """
        params = {"include_pending": "true"} if include_pending else None
        data = await self._request("GET", f"/accounts/{account_id}/transactions", params=params)

        transactions = []
        for tx in data.get("transactions", []):
            # Some responses omit the account id on nested transactions
            tx.setdefault("accountId", account_id)
            try:
                transaction = LunchFlowTransaction.model_validate(tx)
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed transaction {tx.get('id')} for Lunch Flow account {account_id}: {e}"
                )
                continue
            if transaction.is_pending and not include_pending:
                continue
            transactions.append(transaction)

        logger.debug(f"Fetched {len(transactions)} transactions for Lunch Flow account {account_id}")
        return transactions

    async def test_connection(self) -> bool:
        """Test if the Lunch Flow connection is working."""
        try:
            await self.get_accounts()
            return True
        except Exception as e:
            logger.warning(f"Lunch Flow connection test failed: {e}")
            return False
