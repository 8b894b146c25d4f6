import logging
import re
from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Dict, List, Optional, Sequence, Tuple

from ..schemas.actual import ActualBudgetTransaction

logger = logging.getLogger(__name__)

# Card processor prefixes such as "SQ *COFFEE" or "TST* BISTRO"
_PROCESSOR_PREFIX = re.compile(r"^\s*(sq|tst|sp|pp|paypal|zettle|sumup|pos)\s*\*\s*", re.IGNORECASE)
_STORE_NUMBER = re.compile(r"#\s*\d+")
_NON_ALNUM = re.compile(r"[^0-9a-z]+")

MIN_OVERLAP_TOKENS = 2


@dataclass(frozen=True)
class MatchingPolicy:
    """Tolerances used when deciding whether two transactions are the same."""
    date_tolerance_days: int = 3
    payee_similarity_threshold: float = 0.6

    @classmethod
    def exact(cls) -> "MatchingPolicy":
        return cls(date_tolerance_days=0, payee_similarity_threshold=1.0)

    @classmethod
    def from_settings(cls, settings) -> "MatchingPolicy":
        return cls(
            date_tolerance_days=settings.duplicate_date_tolerance_days,
            payee_similarity_threshold=settings.payee_similarity_threshold,
        )


def normalize_payee_for_matching(payee: Optional[str]) -> List[str]:
    """
    Reduce a payee string to comparable tokens.

    Lower-cases, strips processor prefixes and store numbers, drops
    punctuation and tokens that are only digits.
    """
    if not payee:
        return []
    text = _PROCESSOR_PREFIX.sub("", payee)
    text = _STORE_NUMBER.sub(" ", text.lower())
    tokens = _NON_ALNUM.sub(" ", text).split()
    return [token for token in tokens if not token.isdigit()]


def payee_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Similarity of two payee strings between 0.0 and 1.0.

    The larger of the character sequence ratio and the token overlap
    coefficient, so "Blue Bottle" still matches "Blue Bottle Coffee Oakland".
    Overlap only counts when both sides have at least two tokens.
    """
    tokens_a = normalize_payee_for_matching(a)
    tokens_b = normalize_payee_for_matching(b)
    if not tokens_a and not tokens_b:
        return 1.0
    if not tokens_a or not tokens_b:
        return 0.0

    ratio = SequenceMatcher(None, " ".join(tokens_a), " ".join(tokens_b)).ratio()

    set_a, set_b = set(tokens_a), set(tokens_b)
    if min(len(set_a), len(set_b)) < MIN_OVERLAP_TOKENS:
        return ratio

    overlap = len(set_a & set_b) / min(len(set_a), len(set_b))
    return max(ratio, overlap)


class DuplicateTransactionDetector:
    """Flag candidate transactions that already exist in Actual Budget."""

    def __init__(
        self,
        existing_transactions: Sequence[ActualBudgetTransaction],
        policy: Optional[MatchingPolicy] = None
    ):
        self.policy = policy or MatchingPolicy()
        # Index by (account, amount); lists keep the original order for tie-breaks
        self._index: Dict[Tuple[str, int], List[ActualBudgetTransaction]] = {}
        for tx in existing_transactions:
            self._index.setdefault((tx.account, tx.amount), []).append(tx)

    def _payee_score(
        self,
        candidate: ActualBudgetTransaction,
        existing: ActualBudgetTransaction
    ) -> float:
        candidate_payees = [p for p in (candidate.payee_name, candidate.imported_payee) if p]
        existing_payees = [p for p in (existing.payee_name, existing.imported_payee) if p]

        if not candidate_payees or not existing_payees:
            return payee_similarity(
                candidate_payees[0] if candidate_payees else "",
                existing_payees[0] if existing_payees else "",
            )

        return max(
            payee_similarity(ours, theirs)
            for ours in candidate_payees
            for theirs in existing_payees
        )

    def find_duplicate(
        self,
        candidate: ActualBudgetTransaction
    ) -> Optional[ActualBudgetTransaction]:
        """
        Return the existing transaction this candidate duplicates, if any.

        Amount and account must match exactly, the date must be within the
        tolerance window and the payee similar enough. The closest date wins;
        remaining ties go to whichever came first in the existing list.
        """
        if candidate.amount is None or candidate.date is None:
            return None

        best = None
        best_delta = None

        for existing in self._index.get((candidate.account, candidate.amount), []):
            if existing.date is None:
                continue

            delta = abs((existing.date - candidate.date).days)
            if delta > self.policy.date_tolerance_days:
                continue

            if self._payee_score(candidate, existing) < self.policy.payee_similarity_threshold:
                continue

            if best is None or delta < best_delta:
                best = existing
                best_delta = delta

        return best

    def check_for_duplicates(
        self,
        candidates: List[ActualBudgetTransaction]
    ) -> List[ActualBudgetTransaction]:
        """
        Check candidates for duplicates and mark them.

        Returns the same list with is_duplicate/duplicate_of set on matches.
        """
        for candidate in candidates:
            match = self.find_duplicate(candidate)
            if match is not None:
                candidate.is_duplicate = True
                candidate.duplicate_of = match.id
                logger.debug(
                    f"Transaction {candidate.imported_id} duplicates existing {match.id}"
                )

        return candidates

    @staticmethod
    def get_duplicate_count(candidates: Sequence[ActualBudgetTransaction]) -> int:
        return sum(1 for tx in candidates if tx.is_duplicate is True)
