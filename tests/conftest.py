"""Shared pytest fixtures for feerecon tests."""

import tempfile
import os
from datetime import date, datetime, UTC
from decimal import Decimal
from pathlib import Path
import pytest

from feerecon.database.factories import create_sqlite_database
from feerecon.domain.bank_profile import BankProfileService
from feerecon.domain.entities import (
    BankTransaction,
    Direction,
    Payment,
    TransactionStatus,
)
from feerecon.domain.overrides import ManualOverrideService
from feerecon.domain.session import SessionService
from feerecon.domain.summary import SummaryService

SCHOOL_ID = "kia"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def ledger(temp_db):
    """Payment ledger sharing the temporary database."""
    return temp_db.get_payment_ledger()


@pytest.fixture
def profile_service(temp_db):
    """Create a BankProfileService with a temporary database."""
    return BankProfileService(temp_db)


@pytest.fixture
def session_service(temp_db):
    """Create a SessionService with a temporary database."""
    return SessionService(temp_db)


@pytest.fixture
def override_service(temp_db):
    """Create a ManualOverrideService with a temporary database."""
    return ManualOverrideService(temp_db)


@pytest.fixture
def summary_service(temp_db):
    """Create a SummaryService with a temporary database."""
    return SummaryService(temp_db)


@pytest.fixture
def record_payment(ledger):
    """Return a helper that records a payment with sensible defaults."""

    def _record(
        amount="500000",
        payment_date=date(2024, 1, 15),
        student_name="Mukasa John",
        student_id="S001",
        reference=None,
        receipt_number=None,
        payment_method="mobile_money",
        status="completed",
        school_id=SCHOOL_ID,
    ):
        return ledger.record_payment(
            school_id=school_id,
            student_id=student_id,
            student_name=student_name,
            amount=Decimal(amount),
            date=payment_date,
            reference=reference,
            receipt_number=receipt_number,
            payment_method=payment_method,
            status=status,
        )

    return _record


@pytest.fixture
def import_rows(session_service):
    """Return a helper that imports rows with the built-in Stanbic profile."""
    from feerecon.domain.bank_profile import BUILTIN_PROFILES

    def _import(rows, profile=None):
        return session_service.import_rows(
            rows,
            profile or BUILTIN_PROFILES["stanbic"],
            school_id=SCHOOL_ID,
            bank_account_name="Fees Collection",
            bank_account_number="9030012345678",
            file_name="statement.csv",
            imported_by="bursar",
        )

    return _import


def stanbic_row(amount, description, txn_date="15/01/2024", kind="CR", reference="REF001"):
    """Build a statement row in the Stanbic layout."""
    return {
        "Transaction Date": txn_date,
        "Reference": reference,
        "Description": description,
        "Amount": amount,
        "Dr/Cr": kind,
        "Balance": "0",
    }


def make_transaction(
    amount="500000",
    transaction_date=date(2024, 1, 15),
    description="MOBILE MONEY DEPOSIT MUKASA JOHN",
    reference="",
    direction=Direction.CREDIT,
    status=TransactionStatus.PENDING,
    id=1,
):
    """Build an in-memory BankTransaction for pure tests."""
    return BankTransaction(
        id=id,
        session_id=1,
        transaction_date=transaction_date,
        value_date=transaction_date,
        reference=reference,
        description=description,
        amount=Decimal(amount),
        direction=direction,
        balance=Decimal("0"),
        status=status,
        created_at=datetime.now(UTC),
    )


def make_payment(
    amount="500000",
    payment_date=date(2024, 1, 15),
    student_name="Mukasa John",
    reference=None,
    receipt_number=None,
    id=1,
    payment_method="mobile_money",
):
    """Build an in-memory Payment for pure tests."""
    return Payment(
        id=id,
        school_id=SCHOOL_ID,
        student_id=f"S{id:03d}",
        student_name=student_name,
        amount=Decimal(amount),
        date=payment_date,
        reference=reference,
        receipt_number=receipt_number,
        payment_method=payment_method,
        status="completed",
        is_reconciled=False,
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
