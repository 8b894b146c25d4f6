import hashlib
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from ..schemas.actual import ActualBudgetTransaction
from ..schemas.lunch_flow import LunchFlowTransaction
from ..schemas.mapping import AccountMappingBase

logger = logging.getLogger(__name__)

CENT = Decimal("1")


class MappingResult(NamedTuple):
    transactions: List[ActualBudgetTransaction]
    skipped: List[LunchFlowTransaction]


class TransactionMapper:
    """Convert Lunch Flow transactions into Actual Budget transactions.

    Transactions from Lunch Flow accounts without a mapping are dropped;
    the caller may have fetched more accounts than are configured.
    """

    def __init__(self, account_mappings: Sequence[AccountMappingBase]):
        self._mappings: Dict[int, AccountMappingBase] = {}
        for mapping in account_mappings:
            # First mapping wins if a source account is listed twice
            self._mappings.setdefault(mapping.lunch_flow_account_id, mapping)

    @staticmethod
    def to_minor_units(amount: Decimal) -> int:
        """Convert a decimal amount to Actual's integer cents."""
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        return int((amount * 100).quantize(CENT, rounding=ROUND_HALF_EVEN))

    @staticmethod
    def normalize_payee(text: Optional[str]) -> str:
        """Trim and collapse runs of whitespace."""
        return " ".join((text or "").split())

    @staticmethod
    def generate_imported_id(transaction: LunchFlowTransaction) -> str:
        """
        Build a stable imported_id for Actual's own duplicate handling.

        Settled transactions use the Lunch Flow id. Pending transactions
        without an id get a hash of date, amount and merchant, so they stay
        distinct from the settled transaction that later replaces them.
        """
        prefix = f"lf-{transaction.account_id}"
        if transaction.id is not None:
            return f"{prefix}-{transaction.id}"

        hash_input = (
            f"{transaction.date.isoformat()}:"
            f"{TransactionMapper.to_minor_units(transaction.amount)}:"
            f"{transaction.merchant}"
        )
        digest = hashlib.sha256(hash_input.encode()).hexdigest()[:32]
        return f"{prefix}-pending-{digest}"

    def get_mapping(self, lunch_flow_account_id: int) -> Optional[AccountMappingBase]:
        return self._mappings.get(lunch_flow_account_id)

    def map_transaction(
        self,
        transaction: LunchFlowTransaction
    ) -> Optional[ActualBudgetTransaction]:
        """Map a single transaction, or return None if it cannot be mapped."""
        mapping = self.get_mapping(transaction.account_id)
        if mapping is None or not mapping.actual_budget_account_id:
            return None

        try:
            amount = self.to_minor_units(transaction.amount)
        except InvalidOperation:
            # Beyond decimal precision; not a real amount
            logger.warning(
                f"Skipping transaction {transaction.id} with unrepresentable amount {transaction.amount}"
            )
            return None

        raw_payee = transaction.merchant if transaction.merchant.strip() else transaction.description

        return ActualBudgetTransaction(
            date=transaction.date,
            amount=amount,
            imported_payee=raw_payee,
            payee_name=self.normalize_payee(raw_payee),
            account=mapping.actual_budget_account_id,
            cleared=not transaction.is_pending,
            notes=transaction.description or None,
            imported_id=self.generate_imported_id(transaction),
            is_pending=transaction.is_pending,
        )

    def map_transactions_with_skipped(
        self,
        transactions: Iterable[LunchFlowTransaction]
    ) -> MappingResult:
        """Map transactions and also return the source records that were dropped."""
        mapped = []
        skipped = []

        for tx in transactions:
            result = self.map_transaction(tx)
            if result is None:
                skipped.append(tx)
            else:
                mapped.append(result)

        if skipped:
            logger.debug(f"Skipped {len(skipped)} transactions that could not be mapped")

        return MappingResult(transactions=mapped, skipped=skipped)

    def map_transactions(
        self,
        transactions: Iterable[LunchFlowTransaction]
    ) -> List[ActualBudgetTransaction]:
        return self.map_transactions_with_skipped(transactions).transactions
