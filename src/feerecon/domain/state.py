"""Bank transaction status transitions and their effect on session counters."""

from datetime import datetime
from typing import Optional

from feerecon.database.base import Database
from feerecon.domain.entities import BankTransaction, IgnoreReason, TransactionStatus
from feerecon.domain.errors import ConflictError, InvalidStateError, invalid_transition

ALLOWED_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset(
        {
            TransactionStatus.MATCHED,
            TransactionStatus.UNMATCHED,
            TransactionStatus.MANUAL_MATCH,
            TransactionStatus.IGNORED,
        }
    ),
    TransactionStatus.UNMATCHED: frozenset(
        {TransactionStatus.MANUAL_MATCH, TransactionStatus.IGNORED}
    ),
    TransactionStatus.MATCHED: frozenset({TransactionStatus.UNMATCHED}),
    TransactionStatus.MANUAL_MATCH: frozenset({TransactionStatus.UNMATCHED}),
    TransactionStatus.IGNORED: frozenset(),
    TransactionStatus.DISPUTED: frozenset(),
}

# Session counter each status is tallied under
_COUNTER_BUCKETS = {
    TransactionStatus.MATCHED: "matched",
    TransactionStatus.MANUAL_MATCH: "matched",
    TransactionStatus.UNMATCHED: "unmatched",
    TransactionStatus.IGNORED: "ignored",
}


def can_transition(current: TransactionStatus, target: TransactionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def counter_deltas(current: TransactionStatus, target: TransactionStatus) -> dict[str, int]:
    """Return the session counter adjustments for a status change."""
    deltas = {"matched": 0, "unmatched": 0, "ignored": 0}
    old_bucket = _COUNTER_BUCKETS.get(current)
    new_bucket = _COUNTER_BUCKETS.get(target)
    if old_bucket is not None:
        deltas[old_bucket] -= 1
    if new_bucket is not None:
        deltas[new_bucket] += 1
    return deltas


def change_status(
    db: Database,
    transaction: BankTransaction,
    target: TransactionStatus,
    ignore_reason: Optional[IgnoreReason] = None,
    ignored_by: Optional[str] = None,
    ignored_at: Optional[datetime] = None,
) -> None:
    """Move a transaction to a new status and adjust its session's counters.

    The status write is a compare-and-set against the status the caller
    read, so a concurrent change makes this raise instead of double counting.
    Call inside ``db.atomic()`` to keep the status and the counters together.

    Raises:
        InvalidStateError: If the transition is not allowed
        ConflictError: If the stored status no longer equals transaction.status
    """
    current = transaction.status
    if not can_transition(current, target):
        raise InvalidStateError(invalid_transition(transaction.id, current.value, target.value))

    updated = db.update_bank_transaction_status(
        transaction.id,
        target,
        expected_status=current,
        ignore_reason=ignore_reason,
        ignored_by=ignored_by,
        ignored_at=ignored_at,
    )
    if not updated:
        raise ConflictError(
            f"Bank transaction {transaction.id} changed status concurrently; reload and retry"
        )

    deltas = counter_deltas(current, target)
    if any(deltas.values()):
        db.adjust_session_counters(transaction.session_id, **deltas)
