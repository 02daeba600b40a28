"""Port to the fee ledger that owns payment records.

The reconciled flag on a payment is the only thing this subsystem writes to
the ledger, and it does so through claim/release so that the claim can be an
atomic conditional update.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional

from feerecon.domain.entities import Payment


class PaymentLedger(ABC):
    """Abstract payment ledger interface."""

    @abstractmethod
    def get_payment(self, payment_id: int) -> Optional[Payment]:
        """Get payment by ID."""
        pass

    @abstractmethod
    def list_payments(
        self,
        school_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        unreconciled_only: bool = False,
        completed_only: bool = True,
    ) -> list[Payment]:
        """List a school's payments dated within [start_date, end_date]."""
        pass

    @abstractmethod
    def claim_payment(self, payment_id: int) -> bool:
        """Mark a payment reconciled only if it is currently unreconciled.

        Returns:
            True if this call flipped the flag, False if it was already set
            or the payment does not exist
        """
        pass

    @abstractmethod
    def release_payment(self, payment_id: int) -> None:
        """Clear a payment's reconciled flag."""
        pass

    @abstractmethod
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
        pass
