"""SQLAlchemy adapter for the payment ledger port."""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from feerecon.database.models import Payment
from feerecon.database.mappers import payment_to_domain
from feerecon.domain.entities import Payment as DomainPayment
from feerecon.domain.errors import NotFoundError, payment_not_found
from feerecon.domain.ledger import PaymentLedger

if TYPE_CHECKING:
    from feerecon.database.sqlalchemy_db import SQLAlchemyDatabase


class SQLAlchemyPaymentLedger(PaymentLedger):
    """Payment ledger backed by the payments table.

    Shares the owning database's ORM session, so claims and releases join
    whatever unit of work the caller has open.
    """

    def __init__(self, db: "SQLAlchemyDatabase"):
        self.db = db

    def get_payment(self, payment_id: int) -> Optional[DomainPayment]:
        """Get payment by ID."""
        session = self.db._get_session()
        payment = session.query(Payment).filter(Payment.id == payment_id).first()
        if payment is None:
            return None
        return payment_to_domain(payment)

    def list_payments(
        self,
        school_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        unreconciled_only: bool = False,
        completed_only: bool = True,
    ) -> list[DomainPayment]:
        """List a school's payments ordered by date then ID."""
        session = self.db._get_session()
        query = session.query(Payment).filter(Payment.school_id == school_id)
        if start_date is not None:
            query = query.filter(Payment.date >= start_date)
        if end_date is not None:
            query = query.filter(Payment.date <= end_date)
        if unreconciled_only:
            query = query.filter(Payment.is_reconciled.is_(False))
        if completed_only:
            query = query.filter(Payment.status == "completed")
        payments = query.order_by(Payment.date, Payment.id).all()
        return [payment_to_domain(p) for p in payments]

    def claim_payment(self, payment_id: int) -> bool:
        """Mark a payment reconciled only if it is currently unreconciled."""
        session = self.db._get_session()
        updated = (
            session.query(Payment)
            .filter(Payment.id == payment_id, Payment.is_reconciled.is_(False))
            .update({"is_reconciled": True}, synchronize_session="fetch")
        )
        self.db._commit()
        return updated == 1

    def release_payment(self, payment_id: int) -> None:
        """Clear a payment's reconciled flag."""
        session = self.db._get_session()
        payment = session.query(Payment).filter(Payment.id == payment_id).first()
        if payment is None:
            raise NotFoundError(payment_not_found(payment_id))
        payment.is_reconciled = False
        self.db._commit()

    def record_payment(
        self,
        school_id: str,
        student_id: str,
        student_name: str,
        amount: Decimal,
        date: date,
        reference: Optional[str] = None,
        receipt_number: Optional[str] = None,
        payment_method: str = "cash",
        status: str = "completed",
    ) -> int:
        """Record a payment. Returns payment ID."""
        session = self.db._get_session()
        payment = Payment(
            school_id=school_id,
            student_id=student_id,
            student_name=student_name,
            amount=amount,
            date=date,
            reference=reference,
            receipt_number=receipt_number,
            payment_method=payment_method,
            status=status,
            is_reconciled=False,
        )
        session.add(payment)
        self.db._commit()
        return payment.id
