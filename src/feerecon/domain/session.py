"""Reconciliation session domain service."""

import logging
from datetime import datetime, timedelta, UTC
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from feerecon.database.base import Database
from feerecon.domain.bank_profile import BankProfileService
from feerecon.domain.entities import (
    MATCHED_STATUSES,
    SUGGESTIBLE_STATUSES,
    BankProfile,
    BankTransaction,
    Direction,
    MatchType,
    ParsedTransaction,
    PossibleMatch,
    ReconciliationSession,
    SessionStatus,
    TransactionDetail,
    TransactionStatus,
)
from feerecon.domain.errors import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
    session_not_found,
    transaction_not_found,
)
from feerecon.domain.matching import MatchingEngine
from feerecon.domain.scoring import ScoringConfig
from feerecon.domain.state import change_status
from feerecon.domain.statement_parser import (
    check_required_columns,
    parse_statement_rows,
    read_statement_rows,
    resolve_columns,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = 1000

# Sessions the automatic pass may (re)run on
_MATCHABLE_SESSION_STATUSES = frozenset(
    {SessionStatus.PROCESSING, SessionStatus.FAILED, SessionStatus.IN_PROGRESS}
)


class SessionService:
    """Service owning the lifecycle of reconciliation sessions."""

    def __init__(
        self,
        db: Database,
        config: Optional[ScoringConfig] = None,
        max_rows: int = DEFAULT_MAX_ROWS,
    ):
        """Initialize session service.

        Args:
            db: Database instance
            config: Scoring weights and thresholds for the matching engine
            max_rows: Largest statement (in data rows) accepted for import
        """
        self.db = db
        self.ledger = db.get_payment_ledger()
        self.profile_service = BankProfileService(db)
        self.engine = MatchingEngine(config)
        self.max_rows = max_rows

    def get_session(self, session_id: int) -> Optional[ReconciliationSession]:
        """Get session by ID.

        Args:
            session_id: Session ID

        Returns:
            Session entity or None if not found
        """
        return self.db.get_session(session_id)

    def require_session(self, session_id: int) -> ReconciliationSession:
        session = self.db.get_session(session_id)
        if session is None:
            raise NotFoundError(session_not_found(session_id))
        return session

    def list_sessions(self, school_id: Optional[str] = None) -> list[ReconciliationSession]:
        """List sessions, most recent first.

        Args:
            school_id: Optional school to filter by

        Returns:
            List of session entities
        """
        return self.db.list_sessions(school_id=school_id)

    def import_statement(
        self,
        file_path: str | Path,
        school_id: str,
        bank_account_name: str,
        bank_account_number: str,
        imported_by: str,
        profile_name: Optional[str] = None,
    ) -> dict[str, Any]:
        """Import a statement file and run the automatic matching pass.

        Args:
            file_path: Path to the delimited statement file
            school_id: School that owns the bank account
            bank_account_name: Account label
            bank_account_number: Account number
            imported_by: Importing user
            profile_name: Bank profile to use; detected from the header if None

        Returns:
            Dict with import statistics (see import_rows)

        Raises:
            FileNotFoundError: If the file does not exist
            NotFoundError: If profile_name does not exist
            StatementParseError: If the file cannot be read with the profile
            ValidationError: If no profile fits, or the statement is empty or too large
        """
        if profile_name is not None:
            profile = self.profile_service.require_profile(profile_name)
        else:
            profile = self.profile_service.detect_for_file(file_path)
            if profile is None:
                raise ValidationError(
                    f"Could not detect a bank profile for {file_path}; pass one explicitly"
                )
            logger.info("Detected bank profile '%s' for %s", profile.name, file_path)

        rows = read_statement_rows(file_path, header_row=profile.header_row)
        return self.import_rows(
            rows,
            profile,
            school_id=school_id,
            bank_account_name=bank_account_name,
            bank_account_number=bank_account_number,
            file_name=Path(file_path).name,
            imported_by=imported_by,
        )

    def import_rows(
        self,
        rows: Sequence[Mapping[str, Any]],
        profile: BankProfile,
        school_id: str,
        bank_account_name: str,
        bank_account_number: str,
        file_name: str,
        imported_by: str,
    ) -> dict[str, Any]:
        """Parse statement rows, persist them as a session and auto-match.

        The session and its transactions are written in one unit of work,
        then the matching pass runs in a second one. If matching fails, the
        session is left in 'failed' status with all transactions pending and
        run_auto_matching can be retried.

        Returns:
            Dict with import statistics:
            - session_id: ID of the new session
            - imported: number of transactions stored
            - skipped: number of rows dropped by the parser
            - skipped_details: list of {"row_num", "reason"} for dropped rows
            - matched: number of transactions auto-matched
            - unmatched: number of credits left unmatched

        Raises:
            StatementParseError: If the profile's required columns are missing
            ValidationError: If there are too many rows or none survive parsing
        """
        if len(rows) > self.max_rows:
            raise ValidationError(
                f"Statement has {len(rows)} rows; at most {self.max_rows} can be imported at once"
            )
        if rows:
            profile = resolve_columns(rows[0].keys(), profile)
            check_required_columns(rows[0].keys(), profile)

        parsed, skipped = parse_statement_rows(rows, profile, first_row_num=profile.header_row + 1)
        if not parsed:
            raise ValidationError(f"No transactions found in {file_name}")

        session_id = self.create_session(
            parsed,
            school_id=school_id,
            bank_account_name=bank_account_name,
            bank_account_number=bank_account_number,
            bank_name=profile.bank_name,
            file_name=file_name,
            imported_by=imported_by,
        )
        logger.info(
            "Imported %d transactions from %s into session %d (%d rows skipped)",
            len(parsed),
            file_name,
            session_id,
            len(skipped),
        )

        result = self.run_auto_matching(session_id)
        return {
            "session_id": session_id,
            "imported": len(parsed),
            "skipped": len(skipped),
            "skipped_details": skipped,
            "matched": result["matched"],
            "unmatched": result["unmatched"],
        }

    def create_session(
        self,
        transactions: Sequence[ParsedTransaction],
        school_id: str,
        bank_account_name: str,
        bank_account_number: str,
        file_name: str,
        imported_by: str,
        bank_name: Optional[str] = None,
    ) -> int:
        """Persist a session together with its transactions, all pending.

        Args:
            transactions: Parsed statement transactions (at least one)
            school_id: School that owns the bank account
            bank_account_name: Account label
            bank_account_number: Account number
            file_name: Source file name
            imported_by: Importing user
            bank_name: Bank the statement came from

        Returns:
            Session ID

        Raises:
            ValidationError: If transactions is empty
        """
        if not transactions:
            raise ValidationError("A reconciliation session needs at least one transaction")

        dates = [t.transaction_date for t in transactions]
        total_credits = sum(
            (t.amount for t in transactions if t.direction == Direction.CREDIT), Decimal("0")
        )
        total_debits = sum(
            (t.amount for t in transactions if t.direction == Direction.DEBIT), Decimal("0")
        )

        with self.db.atomic():
            session_id = self.db.create_session(
                school_id=school_id,
                bank_account_name=bank_account_name,
                bank_account_number=bank_account_number,
                bank_name=bank_name,
                statement_period_start=min(dates),
                statement_period_end=max(dates),
                file_name=file_name,
                imported_by=imported_by,
                total_transactions=len(transactions),
                total_credits=total_credits,
                total_debits=total_debits,
            )
            for txn in transactions:
                self.db.create_bank_transaction(
                    session_id=session_id,
                    transaction_date=txn.transaction_date,
                    value_date=txn.value_date,
                    reference=txn.reference,
                    description=txn.description,
                    amount=txn.amount,
                    direction=txn.direction,
                    balance=txn.balance,
                    raw_data=txn.raw_data,
                )
        return session_id

    def run_auto_matching(self, session_id: int) -> dict[str, int]:
        """Run the automatic matching pass over a session's pending credits.

        Matches, status changes, payment claims and counter updates are one
        unit of work. On failure everything is rolled back, the session is
        marked 'failed' and the error is re-raised.

        Args:
            session_id: Session ID

        Returns:
            Dict with "matched" and "unmatched" counts for this pass

        Raises:
            NotFoundError: If the session does not exist
            InvalidStateError: If the session is completed
        """
        session = self.require_session(session_id)
        if session.status not in _MATCHABLE_SESSION_STATUSES:
            raise InvalidStateError(
                f"Session {session_id} is {session.status.value}; matching cannot run"
            )

        try:
            with self.db.atomic():
                transactions = self.db.list_bank_transactions(
                    session_id, status=TransactionStatus.PENDING, direction=Direction.CREDIT
                )
                candidates = self.ledger.list_payments(
                    session.school_id,
                    start_date=session.statement_period_start,
                    end_date=session.statement_period_end,
                    unreconciled_only=True,
                )
                decisions = self.engine.run(
                    transactions, candidates, claim=lambda p: self.ledger.claim_payment(p.id)
                )

                matched = 0
                for decision in decisions:
                    if decision.matched:
                        self.db.create_match(
                            transaction_id=decision.transaction.id,
                            payment_id=decision.payment.id,
                            match_type=MatchType.AUTO,
                            confidence=decision.score.confidence,
                            reasons=list(decision.score.reasons),
                        )
                        change_status(self.db, decision.transaction, TransactionStatus.MATCHED)
                        matched += 1
                    else:
                        change_status(self.db, decision.transaction, TransactionStatus.UNMATCHED)

                self.db.update_session_status(session_id, SessionStatus.IN_PROGRESS)
        except Exception:
            logger.error("Matching pass failed for session %d; marking it failed", session_id)
            with self.db.atomic():
                self.db.update_session_status(session_id, SessionStatus.FAILED)
            raise

        unmatched = len(decisions) - matched
        logger.info(
            "Session %d matching pass: %d matched, %d unmatched", session_id, matched, unmatched
        )
        return {"matched": matched, "unmatched": unmatched}

    def find_possible_matches(self, transaction_id: int) -> list[PossibleMatch]:
        """Suggest payments a pending or unmatched credit may belong to.

        Unreconciled payments within the suggestion window around the
        transaction date are scored; those at or above the suggestion
        threshold are returned, best first, at most max_suggestions of them.

        Args:
            transaction_id: Bank transaction ID

        Returns:
            List of possible matches (empty for any other status or for debits)

        Raises:
            NotFoundError: If the transaction does not exist
        """
        transaction = self.db.get_bank_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return self._possible_matches(transaction)

    def _possible_matches(self, transaction: BankTransaction) -> list[PossibleMatch]:
        if transaction.status not in SUGGESTIBLE_STATUSES or not transaction.is_credit:
            return []

        session = self.require_session(transaction.session_id)
        window = timedelta(days=self.engine.config.suggestion_window_days)
        payments = self.ledger.list_payments(
            session.school_id,
            start_date=transaction.transaction_date - window,
            end_date=transaction.transaction_date + window,
            unreconciled_only=True,
        )
        return [
            PossibleMatch(
                payment_id=payment.id,
                student_name=payment.student_name,
                student_id=payment.student_id,
                payment_amount=payment.amount,
                payment_date=payment.date,
                payment_method=payment.payment_method,
                receipt_number=payment.receipt_number or "",
                confidence=score.confidence,
                match_reasons=score.reasons,
            )
            for payment, score in self.engine.suggest(transaction, payments)
        ]

    def get_session_transactions(
        self,
        session_id: int,
        status: Optional[TransactionStatus] = None,
        include_suggestions: bool = True,
    ) -> list[TransactionDetail]:
        """List a session's transactions with their match or suggestions.

        Args:
            session_id: Session ID
            status: Optional status filter
            include_suggestions: Compute possible matches for pending/unmatched credits

        Returns:
            List of transaction details in import order
        """
        self.require_session(session_id)
        details = []
        for transaction in self.db.list_bank_transactions(session_id, status=status):
            match = None
            possible: tuple[PossibleMatch, ...] = ()
            if transaction.status in MATCHED_STATUSES:
                match = self.db.get_match_for_transaction(transaction.id)
            elif include_suggestions:
                possible = tuple(self._possible_matches(transaction))
            details.append(
                TransactionDetail(transaction=transaction, match=match, possible_matches=possible)
            )
        return details

    def complete_session(self, session_id: int, user_id: str, notes: Optional[str] = None) -> None:
        """Close a reconciliation session.

        Completed sessions no longer accept overrides or matching passes.

        Args:
            session_id: Session ID
            user_id: User completing the session
            notes: Optional closing notes

        Raises:
            NotFoundError: If the session does not exist
            InvalidStateError: If the session is not in progress
        """
        session = self.require_session(session_id)
        if session.status != SessionStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Session {session_id} is {session.status.value}; only in-progress sessions can be completed"
            )
        with self.db.atomic():
            self.db.update_session_status(
                session_id,
                SessionStatus.COMPLETED,
                completed_at=datetime.now(UTC),
                completed_by=user_id,
                notes=notes,
            )
        logger.info("Session %d completed by %s", session_id, user_id)
