"""Manual override operations on single bank transactions."""

import logging
from datetime import datetime, UTC
from typing import Optional

from feerecon.database.base import Database
from feerecon.domain.entities import (
    MATCHED_STATUSES,
    BankTransaction,
    IgnoreReason,
    MatchType,
    SessionStatus,
    TransactionStatus,
)
from feerecon.domain.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    payment_already_reconciled,
    payment_not_found,
    transaction_not_found,
)
from feerecon.domain.state import change_status

logger = logging.getLogger(__name__)

MANUAL_MATCH_REASON = "Manually matched by user"


class ManualOverrideService:
    """Service for match, unmatch and ignore overrides.

    Each operation checks the transaction's current status first, so
    repeating an override that already took effect changes nothing.
    """

    def __init__(self, db: Database):
        """Initialize manual override service.

        Args:
            db: Database instance
        """
        self.db = db
        self.ledger = db.get_payment_ledger()

    def _load(self, transaction_id: int) -> BankTransaction:
        transaction = self.db.get_bank_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        session = self.db.get_session(transaction.session_id)
        if session is not None and session.status == SessionStatus.COMPLETED:
            raise InvalidStateError(
                f"Session {session.id} is completed; its transactions can no longer be changed"
            )
        return transaction

    def manual_match(
        self,
        transaction_id: int,
        payment_id: int,
        user_id: str,
        notes: Optional[str] = None,
    ) -> int:
        """Match a transaction to a payment by hand.

        Args:
            transaction_id: Bank transaction ID
            payment_id: Payment ID
            user_id: Acting user
            notes: Optional notes stored on the match

        Returns:
            ID of the (new or already existing) match

        Raises:
            NotFoundError: If the transaction or payment does not exist
            ValidationError: If the transaction is a debit
            InvalidStateError: If the transaction is ignored or disputed
            ConflictError: If either side already has a different active match
        """
        transaction = self._load(transaction_id)
        existing = self.db.get_match_for_transaction(transaction_id)
        if existing is not None:
            if existing.payment_id == payment_id:
                return existing.id
            raise ConflictError(
                f"Bank transaction {transaction_id} is already matched to payment "
                f"{existing.payment_id}; unmatch it first"
            )
        if transaction.status not in (TransactionStatus.PENDING, TransactionStatus.UNMATCHED):
            raise InvalidStateError(
                f"Bank transaction {transaction_id} is {transaction.status.value} and cannot be matched"
            )
        if not transaction.is_credit:
            raise ValidationError(
                f"Bank transaction {transaction_id} is a debit; only credits can match payments"
            )

        payment = self.ledger.get_payment(payment_id)
        if payment is None:
            raise NotFoundError(payment_not_found(payment_id))
        if payment.is_reconciled:
            raise ConflictError(payment_already_reconciled(payment_id))

        with self.db.atomic():
            if not self.ledger.claim_payment(payment_id):
                raise ConflictError(payment_already_reconciled(payment_id))
            match_id = self.db.create_match(
                transaction_id=transaction_id,
                payment_id=payment_id,
                match_type=MatchType.MANUAL,
                confidence=100,
                reasons=[MANUAL_MATCH_REASON],
                matched_by=user_id,
                notes=notes,
            )
            change_status(self.db, transaction, TransactionStatus.MANUAL_MATCH)

        logger.info(
            "Transaction %d manually matched to payment %d by %s", transaction_id, payment_id, user_id
        )
        return match_id

    def unmatch(self, transaction_id: int) -> None:
        """Remove a transaction's active match and release its payment.

        Args:
            transaction_id: Bank transaction ID

        Raises:
            NotFoundError: If the transaction does not exist
            InvalidStateError: If the transaction is neither matched nor unmatched
        """
        transaction = self._load(transaction_id)
        if transaction.status == TransactionStatus.UNMATCHED:
            return
        if transaction.status not in MATCHED_STATUSES:
            raise InvalidStateError(
                f"Bank transaction {transaction_id} is {transaction.status.value} and has no match to remove"
            )

        with self.db.atomic():
            match = self.db.get_match_for_transaction(transaction_id)
            if match is not None:
                self.db.delete_match(match.id)
                self.ledger.release_payment(match.payment_id)
            change_status(self.db, transaction, TransactionStatus.UNMATCHED)

        logger.info(
            "Transaction %d unmatched%s",
            transaction_id,
            f", payment {match.payment_id} released" if match is not None else "",
        )

    def ignore(self, transaction_id: int, reason: IgnoreReason | str, user_id: str) -> None:
        """Mark a transaction as not needing reconciliation.

        Args:
            transaction_id: Bank transaction ID
            reason: One of the IgnoreReason values
            user_id: Acting user

        Raises:
            ValidationError: If the reason is missing or not in the closed set
            NotFoundError: If the transaction does not exist
            ConflictError: If the transaction is matched (unmatch it first)
            InvalidStateError: If the transaction is disputed
        """
        try:
            ignore_reason = IgnoreReason(reason)
        except ValueError:
            raise ValidationError(
                f"Invalid ignore reason '{reason}'. "
                f"Must be one of: {', '.join(r.value for r in IgnoreReason)}"
            )

        transaction = self._load(transaction_id)
        if transaction.status == TransactionStatus.IGNORED:
            return
        if transaction.status in MATCHED_STATUSES:
            raise ConflictError(
                f"Bank transaction {transaction_id} is {transaction.status.value}; unmatch it before ignoring"
            )

        with self.db.atomic():
            change_status(
                self.db,
                transaction,
                TransactionStatus.IGNORED,
                ignore_reason=ignore_reason,
                ignored_by=user_id,
                ignored_at=datetime.now(UTC),
            )

        logger.info(
            "Transaction %d ignored by %s (%s)", transaction_id, user_id, ignore_reason.value
        )
