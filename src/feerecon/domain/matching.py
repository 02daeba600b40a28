"""Automatic matching of bank credits against recorded payments.

The engine runs a single greedy pass. Transactions are visited in a fixed
order (transaction date ascending, amount descending, id ascending) and each
takes the best-scoring payment still available. A payment satisfies at most
one transaction per pass, so a transaction visited later can lose a payment
to an earlier one even if it would have scored higher. This is not a
globally optimal assignment.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from feerecon.domain.entities import (
    BankTransaction,
    Direction,
    MatchScore,
    Payment,
    TransactionStatus,
)
from feerecon.domain.scoring import DEFAULT_SCORING, ScoringConfig, score_match

logger = logging.getLogger(__name__)

ClaimFn = Callable[[Payment], bool]


@dataclass(frozen=True)
class MatchDecision:
    """Outcome of the automatic pass for one transaction."""

    transaction: BankTransaction
    payment: Optional[Payment] = None
    score: Optional[MatchScore] = None

    @property
    def matched(self) -> bool:
        return self.payment is not None


def _always_claim(payment: Payment) -> bool:
    return True


class MatchingEngine:
    """Greedy confidence-scored matcher."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        """Initialize matching engine.

        Args:
            config: Scoring weights and thresholds (defaults to DEFAULT_SCORING)
        """
        self.config = config or DEFAULT_SCORING

    @staticmethod
    def order_transactions(transactions: Iterable[BankTransaction]) -> list[BankTransaction]:
        """Order transactions for the pass: date ascending, amount descending, id ascending."""
        return sorted(transactions, key=lambda t: (t.transaction_date, -t.amount, t.id))

    @staticmethod
    def order_candidates(payments: Iterable[Payment]) -> list[Payment]:
        """Order the candidate pool: payment date ascending, then id."""
        return sorted(payments, key=lambda p: (p.date, p.id))

    def rank_candidates(
        self, transaction: BankTransaction, candidates: Sequence[Payment]
    ) -> list[tuple[Payment, MatchScore]]:
        """Score every candidate, highest confidence first.

        The sort is stable, so equal scores keep the candidates' order.
        """
        scored = [(payment, score_match(transaction, payment, self.config)) for payment in candidates]
        return sorted(scored, key=lambda item: -item[1].confidence)

    def run(
        self,
        transactions: Iterable[BankTransaction],
        candidates: Iterable[Payment],
        claim: ClaimFn = _always_claim,
    ) -> list[MatchDecision]:
        """Run the automatic pass.

        Only pending credit transactions are considered. For each one, the
        candidates at or above the auto-match threshold are tried in ranked
        order and the first payment that ``claim`` accepts is taken. A
        payment that fails to be claimed (already reconciled elsewhere) is
        dropped from the pool.

        Args:
            transactions: Session transactions
            candidates: Unreconciled payments in the statement period
            claim: Atomic "claim payment if still unreconciled" callback

        Returns:
            One decision per considered transaction, in processing order
        """
        pool = self.order_candidates(candidates)
        eligible = [
            t
            for t in transactions
            if t.direction == Direction.CREDIT and t.status == TransactionStatus.PENDING
        ]

        decisions = []
        for transaction in self.order_transactions(eligible):
            decision = MatchDecision(transaction=transaction)
            for payment, score in self.rank_candidates(transaction, pool):
                if score.confidence < self.config.auto_match_threshold:
                    break
                pool = [p for p in pool if p.id != payment.id]
                if claim(payment):
                    decision = MatchDecision(transaction=transaction, payment=payment, score=score)
                    break
                logger.warning(
                    "Payment %s was claimed elsewhere while matching transaction %s",
                    payment.id,
                    transaction.id,
                )
            logger.debug(
                "Transaction %s: %s",
                transaction.id,
                f"matched payment {decision.payment.id} ({decision.score.confidence})"
                if decision.matched
                else "no confident candidate",
            )
            decisions.append(decision)
        return decisions

    def suggest(
        self, transaction: BankTransaction, candidates: Sequence[Payment]
    ) -> list[tuple[Payment, MatchScore]]:
        """Return the top candidates at or above the suggestion threshold.

        Args:
            transaction: Transaction to find suggestions for
            candidates: Payments to consider

        Returns:
            At most max_suggestions (payment, score) pairs, best first
        """
        ranked = self.rank_candidates(transaction, self.order_candidates(candidates))
        kept = [
            (payment, score)
            for payment, score in ranked
            if score.confidence >= self.config.suggestion_threshold
        ]
        return kept[: self.config.max_suggestions]
