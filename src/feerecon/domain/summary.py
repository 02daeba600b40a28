"""Reconciliation summary domain service.

Everything here is recomputed from the stored transactions and the ledger's
payments for the statement period, so it doubles as the source of truth when
a session's denormalized counters need to be checked or repaired.
"""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Any

from feerecon.database.base import Database
from feerecon.domain.entities import (
    MATCHED_STATUSES,
    BankTransaction,
    Direction,
    PaymentMethodBreakdown,
    ReconciliationSession,
    ReconciliationSummary,
    StatusBreakdown,
    TransactionStatus,
)
from feerecon.domain.errors import (
    ConsistencyError,
    NotFoundError,
    counters_out_of_sync,
    session_not_found,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def compute_counters(transactions: list[BankTransaction]) -> dict[str, Any]:
    """Aggregate the session counter values from a transaction set."""
    statuses = [t.status for t in transactions]
    return {
        "total_transactions": len(transactions),
        "matched_count": sum(1 for s in statuses if s in MATCHED_STATUSES),
        "unmatched_count": statuses.count(TransactionStatus.UNMATCHED),
        "ignored_count": statuses.count(TransactionStatus.IGNORED),
        "total_credits": sum(
            (t.amount for t in transactions if t.direction == Direction.CREDIT), ZERO
        ),
        "total_debits": sum(
            (t.amount for t in transactions if t.direction == Direction.DEBIT), ZERO
        ),
    }


class SummaryService:
    """Service for session summaries and counter consistency checks."""

    def __init__(self, db: Database):
        """Initialize summary service.

        Args:
            db: Database instance
        """
        self.db = db
        self.ledger = db.get_payment_ledger()

    def _require_session(self, session_id: int) -> ReconciliationSession:
        session = self.db.get_session(session_id)
        if session is None:
            raise NotFoundError(session_not_found(session_id))
        return session

    def build_summary(self, session_id: int) -> ReconciliationSummary:
        """Build the reconciliation summary of a session.

        Args:
            session_id: Session ID

        Returns:
            ReconciliationSummary with totals, variance, match rate and
            breakdowns by status and by payment method

        Raises:
            NotFoundError: If the session does not exist
        """
        session = self._require_session(session_id)
        transactions = self.db.list_bank_transactions(session_id)
        counters = compute_counters(transactions)

        by_status_count: dict[TransactionStatus, int] = defaultdict(int)
        by_status_amount: dict[TransactionStatus, Decimal] = defaultdict(lambda: ZERO)
        matched_amount = ZERO
        unmatched_bank_amount = ZERO
        for txn in transactions:
            by_status_count[txn.status] += 1
            by_status_amount[txn.status] += txn.amount
            if txn.status in MATCHED_STATUSES:
                matched_amount += txn.amount
            elif txn.status == TransactionStatus.UNMATCHED and txn.is_credit:
                unmatched_bank_amount += txn.amount

        by_status = tuple(
            StatusBreakdown(status=status, count=by_status_count[status], amount=by_status_amount[status])
            for status in TransactionStatus
            if status in by_status_count
        )

        payments = self.ledger.list_payments(
            session.school_id,
            start_date=session.statement_period_start,
            end_date=session.statement_period_end,
        )
        total_system = sum((p.amount for p in payments), ZERO)
        reconciled_system = sum((p.amount for p in payments if p.is_reconciled), ZERO)

        total = counters["total_transactions"]
        match_rate = counters["matched_count"] / total * 100 if total else 0.0

        return ReconciliationSummary(
            session_id=session_id,
            total_bank_credits=counters["total_credits"],
            total_bank_debits=counters["total_debits"],
            total_system_payments=total_system,
            reconciled_system_amount=reconciled_system,
            matched_amount=matched_amount,
            unmatched_bank_amount=unmatched_bank_amount,
            unmatched_system_amount=total_system - reconciled_system,
            variance=counters["total_credits"] - total_system,
            match_rate=match_rate,
            total_transactions=total,
            matched_count=counters["matched_count"],
            unmatched_count=counters["unmatched_count"],
            ignored_count=counters["ignored_count"],
            by_status=by_status,
            by_payment_method=self._by_payment_method(session_id, payments),
        )

    def _by_payment_method(self, session_id: int, payments) -> tuple[PaymentMethodBreakdown, ...]:
        """Bank side counts matched transactions under their payment's method."""
        system: dict[str, list[Decimal]] = defaultdict(list)
        for payment in payments:
            system[payment.payment_method].append(payment.amount)

        bank: dict[str, list[Decimal]] = defaultdict(list)
        for match in self.db.list_matches(session_id):
            payment = self.ledger.get_payment(match.payment_id)
            transaction = self.db.get_bank_transaction(match.transaction_id)
            if payment is None or transaction is None:
                continue
            bank[payment.payment_method].append(transaction.amount)

        return tuple(
            PaymentMethodBreakdown(
                method=method,
                bank_count=len(bank[method]),
                bank_amount=sum(bank[method], ZERO),
                system_count=len(system[method]),
                system_amount=sum(system[method], ZERO),
            )
            for method in sorted(set(system) | set(bank))
        )

    def live_counters(self, session_id: int) -> dict[str, Any]:
        """Recompute a session's counters from its transactions."""
        self._require_session(session_id)
        return compute_counters(self.db.list_bank_transactions(session_id))

    def check_counters(self, session_id: int) -> dict[str, tuple[Any, Any]]:
        """Compare stored session counters with the live aggregate.

        Returns:
            Mapping of counter name to (stored, live) for every counter that
            differs; empty when the session is consistent
        """
        session = self._require_session(session_id)
        live = compute_counters(self.db.list_bank_transactions(session_id))
        mismatches = {}
        for name, live_value in live.items():
            stored = getattr(session, name)
            if stored != live_value:
                mismatches[name] = (stored, live_value)
        return mismatches

    def assert_consistent(self, session_id: int) -> None:
        """Raise ConsistencyError if stored counters have drifted."""
        mismatches = self.check_counters(session_id)
        if mismatches:
            raise ConsistencyError(counters_out_of_sync(session_id, mismatches))

    def repair_counters(self, session_id: int) -> dict[str, tuple[Any, Any]]:
        """Overwrite drifted session counters with the live aggregate.

        Returns:
            The mismatches that were repaired (empty if nothing changed)
        """
        mismatches = self.check_counters(session_id)
        if mismatches:
            logger.warning(counters_out_of_sync(session_id, mismatches))
            with self.db.atomic():
                self.db.set_session_counters(
                    session_id, {name: live for name, (_, live) in mismatches.items()}
                )
        return mismatches
