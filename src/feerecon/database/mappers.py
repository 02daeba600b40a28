"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the reconciliation services
never depend on the table layout.
"""

from decimal import Decimal

from feerecon.domain import entities as domain
from feerecon.database.models import (
    BankProfile as ORMBankProfile,
    BankTransaction as ORMBankTransaction,
    Payment as ORMPayment,
    ReconciliationMatch as ORMReconciliationMatch,
    ReconciliationSession as ORMReconciliationSession,
)


def _decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def bank_profile_to_domain(orm_profile: ORMBankProfile) -> domain.BankProfile:
    """Convert SQLAlchemy BankProfile model to domain BankProfile entity."""
    return domain.BankProfile(
        id=orm_profile.id,
        name=orm_profile.name,
        bank_name=orm_profile.bank_name,
        date_column=orm_profile.date_column,
        reference_column=orm_profile.reference_column,
        description_column=orm_profile.description_column,
        amount_column=orm_profile.amount_column,
        date_format=orm_profile.date_format,
        type_column=orm_profile.type_column,
        credit_indicator=orm_profile.credit_indicator,
        debit_indicator=orm_profile.debit_indicator,
        balance_column=orm_profile.balance_column,
        header_row=orm_profile.header_row,
        created_at=orm_profile.created_at,
    )


def session_to_domain(orm_session: ORMReconciliationSession) -> domain.ReconciliationSession:
    """Convert SQLAlchemy ReconciliationSession model to domain entity."""
    return domain.ReconciliationSession(
        id=orm_session.id,
        school_id=orm_session.school_id,
        bank_account_name=orm_session.bank_account_name,
        bank_account_number=orm_session.bank_account_number,
        bank_name=orm_session.bank_name,
        statement_period_start=orm_session.statement_period_start,
        statement_period_end=orm_session.statement_period_end,
        file_name=orm_session.file_name,
        imported_at=orm_session.imported_at,
        imported_by=orm_session.imported_by,
        status=domain.SessionStatus(orm_session.status),
        total_transactions=orm_session.total_transactions,
        total_credits=_decimal(orm_session.total_credits),
        total_debits=_decimal(orm_session.total_debits),
        matched_count=orm_session.matched_count,
        unmatched_count=orm_session.unmatched_count,
        ignored_count=orm_session.ignored_count,
        completed_at=orm_session.completed_at,
        completed_by=orm_session.completed_by,
        notes=orm_session.notes,
    )


def bank_transaction_to_domain(orm_transaction: ORMBankTransaction) -> domain.BankTransaction:
    """Convert SQLAlchemy BankTransaction model to domain entity."""
    ignore_reason = orm_transaction.ignore_reason
    return domain.BankTransaction(
        id=orm_transaction.id,
        session_id=orm_transaction.session_id,
        transaction_date=orm_transaction.transaction_date,
        value_date=orm_transaction.value_date,
        reference=orm_transaction.reference or "",
        description=orm_transaction.description or "",
        amount=_decimal(orm_transaction.amount),
        direction=domain.Direction(orm_transaction.direction),
        balance=_decimal(orm_transaction.balance),
        status=domain.TransactionStatus(orm_transaction.status),
        created_at=orm_transaction.created_at,
        raw_data=dict(orm_transaction.raw_data or {}),
        ignore_reason=domain.IgnoreReason(ignore_reason) if ignore_reason else None,
        ignored_by=orm_transaction.ignored_by,
        ignored_at=orm_transaction.ignored_at,
    )


def match_to_domain(orm_match: ORMReconciliationMatch) -> domain.ReconciliationMatch:
    """Convert SQLAlchemy ReconciliationMatch model to domain entity."""
    return domain.ReconciliationMatch(
        id=orm_match.id,
        transaction_id=orm_match.transaction_id,
        payment_id=orm_match.payment_id,
        match_type=domain.MatchType(orm_match.match_type),
        confidence=orm_match.confidence,
        reasons=tuple(orm_match.reasons or ()),
        matched_at=orm_match.matched_at,
        matched_by=orm_match.matched_by,
        notes=orm_match.notes,
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    return domain.Payment(
        id=orm_payment.id,
        school_id=orm_payment.school_id,
        student_id=orm_payment.student_id,
        student_name=orm_payment.student_name,
        amount=_decimal(orm_payment.amount),
        date=orm_payment.date,
        reference=orm_payment.reference,
        receipt_number=orm_payment.receipt_number,
        payment_method=orm_payment.payment_method,
        status=orm_payment.status,
        is_reconciled=bool(orm_payment.is_reconciled),
    )
