"""Domain model entities for feerecon.

These are pure data classes representing reconciliation concepts, independent
of the database schema. Services and the matching engine only ever see these
types; the ORM models stay behind the mapper layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class Direction(str, Enum):
    """Direction of money movement as reported by the bank."""

    CREDIT = "credit"
    DEBIT = "debit"


class TransactionStatus(str, Enum):
    """Reconciliation status of a bank transaction.

    DISPUTED is reserved: nothing in the automatic pass or the manual
    overrides moves a transaction into or out of it.
    """

    PENDING = "pending"
    MATCHED = "matched"
    MANUAL_MATCH = "manual_match"
    UNMATCHED = "unmatched"
    IGNORED = "ignored"
    DISPUTED = "disputed"


class MatchType(str, Enum):
    """How a reconciliation match was created."""

    AUTO = "auto"
    MANUAL = "manual"


class SessionStatus(str, Enum):
    """Lifecycle status of a reconciliation session."""

    PROCESSING = "processing"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class IgnoreReason(str, Enum):
    """Closed set of reasons a transaction may be ignored for."""

    BANK_CHARGES = "bank_charges"
    INTEREST = "interest"
    REVERSAL = "reversal"
    NON_FEE = "non_fee"
    DUPLICATE = "duplicate"
    OTHER = "other"


MATCHED_STATUSES = frozenset({TransactionStatus.MATCHED, TransactionStatus.MANUAL_MATCH})
SUGGESTIBLE_STATUSES = frozenset({TransactionStatus.PENDING, TransactionStatus.UNMATCHED})


@dataclass(frozen=True)
class BankProfile:
    """Describes how to read one bank's statement export."""

    name: str
    bank_name: str
    date_column: str
    reference_column: str
    description_column: str
    amount_column: str
    date_format: str
    type_column: Optional[str] = None
    credit_indicator: Optional[str] = None
    debit_indicator: Optional[str] = None
    balance_column: Optional[str] = None
    header_row: int = 1
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_builtin(self) -> bool:
        return self.id is None

    def configured_columns(self) -> list[str]:
        """Return every column name this profile reads, in a stable order."""
        columns = [
            self.date_column,
            self.reference_column,
            self.description_column,
            self.amount_column,
            self.type_column,
            self.balance_column,
        ]
        return [c for c in columns if c]


@dataclass(frozen=True)
class ParsedTransaction:
    """A statement row after parsing, before it is persisted."""

    transaction_date: date
    value_date: date
    reference: str
    description: str
    amount: Decimal
    direction: Direction
    balance: Decimal
    raw_data: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class BankTransaction:
    """Bank transaction domain entity."""

    id: int
    session_id: int
    transaction_date: date
    value_date: date
    reference: str
    description: str
    amount: Decimal
    direction: Direction
    balance: Decimal
    status: TransactionStatus
    created_at: datetime
    raw_data: dict[str, Any] = field(default_factory=dict, compare=False)
    ignore_reason: Optional[IgnoreReason] = None
    ignored_by: Optional[str] = None
    ignored_at: Optional[datetime] = None

    @property
    def is_credit(self) -> bool:
        return self.direction == Direction.CREDIT


@dataclass(frozen=True)
class ReconciliationMatch:
    """Active pairing between a bank transaction and a payment record."""

    id: int
    transaction_id: int
    payment_id: int
    match_type: MatchType
    confidence: int
    reasons: tuple[str, ...]
    matched_at: datetime
    matched_by: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ReconciliationSession:
    """One imported statement batch with its denormalized counters."""

    id: int
    school_id: str
    bank_account_name: str
    bank_account_number: str
    bank_name: Optional[str]
    statement_period_start: date
    statement_period_end: date
    file_name: str
    imported_at: datetime
    imported_by: str
    status: SessionStatus
    total_transactions: int
    total_credits: Decimal
    total_debits: Decimal
    matched_count: int
    unmatched_count: int
    ignored_count: int
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Payment:
    """Payment record owned by the fee ledger."""

    id: int
    school_id: str
    student_id: str
    student_name: str
    amount: Decimal
    date: date
    reference: Optional[str]
    receipt_number: Optional[str]
    payment_method: str
    status: str
    is_reconciled: bool


@dataclass(frozen=True)
class MatchScore:
    """Confidence score (0-100) and the factors that produced it."""

    confidence: int
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class PossibleMatch:
    """Candidate payment surfaced for human review. Never persisted."""

    payment_id: int
    student_name: str
    student_id: str
    payment_amount: Decimal
    payment_date: date
    payment_method: str
    receipt_number: str
    confidence: int
    match_reasons: tuple[str, ...]


@dataclass(frozen=True)
class TransactionDetail:
    """Bank transaction together with its match or its suggestions."""

    transaction: BankTransaction
    match: Optional[ReconciliationMatch] = None
    possible_matches: tuple[PossibleMatch, ...] = ()


@dataclass(frozen=True)
class StatusBreakdown:
    """Count and amount of a session's transactions in one status."""

    status: TransactionStatus
    count: int
    amount: Decimal


@dataclass(frozen=True)
class PaymentMethodBreakdown:
    """Bank-side and system-side totals for one payment method."""

    method: str
    bank_count: int
    bank_amount: Decimal
    system_count: int
    system_amount: Decimal


@dataclass(frozen=True)
class ReconciliationSummary:
    """Figures derived on demand from a session's transactions and payments."""

    session_id: int
    total_bank_credits: Decimal
    total_bank_debits: Decimal
    total_system_payments: Decimal
    reconciled_system_amount: Decimal
    matched_amount: Decimal
    unmatched_bank_amount: Decimal
    unmatched_system_amount: Decimal
    variance: Decimal
    match_rate: float
    total_transactions: int
    matched_count: int
    unmatched_count: int
    ignored_count: int
    by_status: tuple[StatusBreakdown, ...] = ()
    by_payment_method: tuple[PaymentMethodBreakdown, ...] = ()
