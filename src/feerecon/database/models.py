"""SQLAlchemy models for feerecon database."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class BankProfile(Base):
    """Custom bank statement profile model."""

    __tablename__ = "bank_profiles"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    bank_name = Column(String, nullable=False)
    date_column = Column(String, nullable=False)
    reference_column = Column(String, nullable=False)
    description_column = Column(String, nullable=False)
    amount_column = Column(String, nullable=False)
    date_format = Column(String, nullable=False)
    type_column = Column(String, nullable=True)
    credit_indicator = Column(String, nullable=True)
    debit_indicator = Column(String, nullable=True)
    balance_column = Column(String, nullable=True)
    header_row = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class ReconciliationSession(Base):
    """Imported statement batch model."""

    __tablename__ = "reconciliation_sessions"

    id = Column(Integer, primary_key=True)
    school_id = Column(String, nullable=False, index=True)
    bank_account_name = Column(String, nullable=False)
    bank_account_number = Column(String, nullable=False)
    bank_name = Column(String, nullable=True)
    statement_period_start = Column(Date, nullable=False)
    statement_period_end = Column(Date, nullable=False)
    file_name = Column(String, nullable=False)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    imported_by = Column(String, nullable=False)
    status = Column(String, nullable=False)
    total_transactions = Column(Integer, default=0, nullable=False)
    total_credits = Column(Numeric(16, 2), default=0, nullable=False)
    total_debits = Column(Numeric(16, 2), default=0, nullable=False)
    matched_count = Column(Integer, default=0, nullable=False)
    unmatched_count = Column(Integer, default=0, nullable=False)
    ignored_count = Column(Integer, default=0, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    completed_by = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    # Relationships
    transactions = relationship("BankTransaction", back_populates="session")


class BankTransaction(Base):
    """Bank statement line model."""

    __tablename__ = "bank_transactions"

    id = Column(Integer, primary_key=True)
    session_id = Column(Integer, ForeignKey("reconciliation_sessions.id"), nullable=False, index=True)
    transaction_date = Column(Date, nullable=False)
    value_date = Column(Date, nullable=False)
    reference = Column(String, nullable=False, default="")
    description = Column(String, nullable=False, default="")
    amount = Column(Numeric(16, 2), nullable=False)
    direction = Column(String, nullable=False)
    balance = Column(Numeric(16, 2), nullable=False, default=0)
    raw_data = Column(JSON, nullable=False, default=dict)
    status = Column(String, nullable=False, index=True)
    ignore_reason = Column(String, nullable=True)
    ignored_by = Column(String, nullable=True)
    ignored_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    session = relationship("ReconciliationSession", back_populates="transactions")
    match = relationship("ReconciliationMatch", back_populates="transaction", uselist=False)


class ReconciliationMatch(Base):
    """Active transaction/payment pairing model.

    Both foreign keys are unique: a transaction and a payment each have at
    most one active match. Unmatching deletes the row.
    """

    __tablename__ = "reconciliation_matches"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("bank_transactions.id"), unique=True, nullable=False)
    payment_id = Column(Integer, ForeignKey("payments.id"), unique=True, nullable=False)
    match_type = Column(String, nullable=False)
    confidence = Column(Integer, nullable=False)
    reasons = Column(JSON, nullable=False, default=list)
    matched_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    matched_by = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    # Relationships
    transaction = relationship("BankTransaction", back_populates="match")
    payment = relationship("Payment")


class Payment(Base):
    """Fee payment model, the SQL side of the payment ledger."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    school_id = Column(String, nullable=False, index=True)
    student_id = Column(String, nullable=False)
    student_name = Column(String, nullable=False)
    amount = Column(Numeric(16, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    reference = Column(String, nullable=True)
    receipt_number = Column(String, nullable=True)
    payment_method = Column(String, nullable=False, default="cash")
    status = Column(String, nullable=False, default="completed")
    is_reconciled = Column(Boolean, default=False, nullable=False)
    recorded_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
