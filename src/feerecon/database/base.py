"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from feerecon.domain.entities import (
    BankProfile,
    BankTransaction,
    Direction,
    IgnoreReason,
    MatchType,
    ReconciliationMatch,
    ReconciliationSession,
    SessionStatus,
    TransactionStatus,
)
from feerecon.domain.ledger import PaymentLedger


class Database(ABC):
    """Abstract database interface for feerecon."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Group writes into one unit of work.

        Writes inside the block are committed together when the outermost
        block exits normally and rolled back if it raises. Blocks nest.
        """
        pass

    @abstractmethod
    def get_payment_ledger(self) -> PaymentLedger:
        """Return the payment ledger adapter sharing this database's unit of work."""
        pass

    # Bank profile operations
    @abstractmethod
    def create_bank_profile(
        self,
        name: str,
        bank_name: str,
        date_column: str,
        reference_column: str,
        description_column: str,
        amount_column: str,
        date_format: str,
        type_column: Optional[str] = None,
        credit_indicator: Optional[str] = None,
        debit_indicator: Optional[str] = None,
        balance_column: Optional[str] = None,
        header_row: int = 1,
    ) -> int:
        """Create a custom bank profile. Returns profile ID."""
        pass

    @abstractmethod
    def get_bank_profile_by_name(self, name: str) -> Optional[BankProfile]:
        """Get custom bank profile by name."""
        pass

    @abstractmethod
    def list_bank_profiles(self) -> list[BankProfile]:
        """List custom bank profiles in creation order."""
        pass

    @abstractmethod
    def delete_bank_profile(self, profile_id: int) -> None:
        """Delete a custom bank profile."""
        pass

    # Session operations
    @abstractmethod
    def create_session(
        self,
        school_id: str,
        bank_account_name: str,
        bank_account_number: str,
        bank_name: Optional[str],
        statement_period_start: date,
        statement_period_end: date,
        file_name: str,
        imported_by: str,
        total_transactions: int,
        total_credits: Decimal,
        total_debits: Decimal,
        status: SessionStatus = SessionStatus.PROCESSING,
    ) -> int:
        """Create a reconciliation session. Returns session ID."""
        pass

    @abstractmethod
    def get_session(self, session_id: int) -> Optional[ReconciliationSession]:
        """Get session by ID."""
        pass

    @abstractmethod
    def list_sessions(self, school_id: Optional[str] = None) -> list[ReconciliationSession]:
        """List sessions, most recently imported first."""
        pass

    @abstractmethod
    def update_session_status(
        self,
        session_id: int,
        status: SessionStatus,
        completed_at: Optional[datetime] = None,
        completed_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Update session status and optional completion fields."""
        pass

    @abstractmethod
    def adjust_session_counters(
        self, session_id: int, matched: int = 0, unmatched: int = 0, ignored: int = 0
    ) -> None:
        """Add deltas to the session's matched/unmatched/ignored counters."""
        pass

    @abstractmethod
    def set_session_counters(self, session_id: int, counters: dict[str, Any]) -> None:
        """Overwrite session counters (repair path).

        Accepted keys: total_transactions, matched_count, unmatched_count,
        ignored_count, total_credits, total_debits.
        """
        pass

    # Bank transaction operations
    @abstractmethod
    def create_bank_transaction(
        self,
        session_id: int,
        transaction_date: date,
        value_date: date,
        reference: str,
        description: str,
        amount: Decimal,
        direction: Direction,
        balance: Decimal,
        raw_data: dict[str, Any],
        status: TransactionStatus = TransactionStatus.PENDING,
    ) -> int:
        """Create a bank transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_bank_transaction(self, transaction_id: int) -> Optional[BankTransaction]:
        """Get bank transaction by ID."""
        pass

    @abstractmethod
    def list_bank_transactions(
        self,
        session_id: int,
        status: Optional[TransactionStatus] = None,
        direction: Optional[Direction] = None,
    ) -> list[BankTransaction]:
        """List a session's transactions in storage order with optional filters."""
        pass

    @abstractmethod
    def update_bank_transaction_status(
        self,
        transaction_id: int,
        status: TransactionStatus,
        expected_status: TransactionStatus,
        ignore_reason: Optional[IgnoreReason] = None,
        ignored_by: Optional[str] = None,
        ignored_at: Optional[datetime] = None,
    ) -> bool:
        """Change status only if the current status equals expected_status.

        Returns:
            True if the row was updated
        """
        pass

    # Match operations
    @abstractmethod
    def create_match(
        self,
        transaction_id: int,
        payment_id: int,
        match_type: MatchType,
        confidence: int,
        reasons: list[str],
        matched_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a reconciliation match. Returns match ID."""
        pass

    @abstractmethod
    def get_match_for_transaction(self, transaction_id: int) -> Optional[ReconciliationMatch]:
        """Get the active match of a transaction."""
        pass

    @abstractmethod
    def get_match_for_payment(self, payment_id: int) -> Optional[ReconciliationMatch]:
        """Get the active match that claims a payment."""
        pass

    @abstractmethod
    def list_matches(self, session_id: int) -> list[ReconciliationMatch]:
        """List active matches of a session's transactions."""
        pass

    @abstractmethod
    def delete_match(self, match_id: int) -> None:
        """Delete a reconciliation match."""
        pass
