"""Tests for manual override operations."""

import pytest
from datetime import date

from conftest import stanbic_row
from feerecon.domain.entities import IgnoreReason, MatchType, TransactionStatus
from feerecon.domain.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def unmatched_credit(import_rows, temp_db):
    """Import one credit nothing matches and return its transaction."""
    result = import_rows([stanbic_row("500,000", "CASH DEPOSIT")])
    (txn,) = temp_db.list_bank_transactions(result["session_id"])
    assert txn.status == TransactionStatus.UNMATCHED
    return txn


@pytest.fixture
def pending_debit(import_rows, temp_db):
    """Import one bank charge and return its (pending) transaction."""
    result = import_rows([stanbic_row("15,000", "LEDGER FEE", kind="DR")])
    (txn,) = temp_db.list_bank_transactions(result["session_id"])
    return txn


def _counters(temp_db, session_id):
    s = temp_db.get_session(session_id)
    return (s.matched_count, s.unmatched_count, s.ignored_count)


class TestManualMatch:
    """Tests for manual matching."""

    def test_manual_match(self, override_service, unmatched_credit, record_payment, ledger, temp_db):
        """Test a manual match creates the record, claims the payment and moves counters."""
        payment_id = record_payment(payment_date=date(2024, 2, 1))

        match_id = override_service.manual_match(
            unmatched_credit.id, payment_id, user_id="bursar", notes="parent called"
        )

        match = temp_db.get_match_for_transaction(unmatched_credit.id)
        assert match.id == match_id
        assert match.match_type == MatchType.MANUAL
        assert match.confidence == 100
        assert match.reasons == ("Manually matched by user",)
        assert match.matched_by == "bursar"
        assert match.notes == "parent called"
        assert temp_db.get_bank_transaction(unmatched_credit.id).status == TransactionStatus.MANUAL_MATCH
        assert ledger.get_payment(payment_id).is_reconciled
        assert _counters(temp_db, unmatched_credit.session_id) == (1, 0, 0)

    def test_same_pairing_is_noop(self, override_service, unmatched_credit, record_payment, temp_db):
        """Test re-applying the same manual match does not double count."""
        payment_id = record_payment()
        first = override_service.manual_match(unmatched_credit.id, payment_id, user_id="bursar")
        second = override_service.manual_match(unmatched_credit.id, payment_id, user_id="bursar")

        assert first == second
        assert _counters(temp_db, unmatched_credit.session_id) == (1, 0, 0)

    def test_different_payment_conflicts(self, override_service, unmatched_credit, record_payment):
        """Test matching an already matched transaction to another payment."""
        first = record_payment()
        second = record_payment(student_id="S2")
        override_service.manual_match(unmatched_credit.id, first, user_id="bursar")

        with pytest.raises(ConflictError):
            override_service.manual_match(unmatched_credit.id, second, user_id="bursar")

    def test_reconciled_payment_conflicts(self, override_service, unmatched_credit, record_payment, ledger, temp_db):
        """Test a payment already claimed elsewhere cannot be matched."""
        payment_id = record_payment()
        ledger.claim_payment(payment_id)

        with pytest.raises(ConflictError, match="already reconciled"):
            override_service.manual_match(unmatched_credit.id, payment_id, user_id="bursar")

        assert temp_db.get_bank_transaction(unmatched_credit.id).status == TransactionStatus.UNMATCHED
        assert _counters(temp_db, unmatched_credit.session_id) == (0, 1, 0)

    def test_ignored_transaction_cannot_be_matched(self, override_service, unmatched_credit, record_payment):
        """Test an ignored transaction must not be matched."""
        payment_id = record_payment()
        override_service.ignore(unmatched_credit.id, "non_fee", user_id="bursar")

        with pytest.raises(InvalidStateError):
            override_service.manual_match(unmatched_credit.id, payment_id, user_id="bursar")

    def test_debit_cannot_be_matched(self, override_service, pending_debit, record_payment):
        """Test debits are never matched to fee payments."""
        payment_id = record_payment(amount="15000")

        with pytest.raises(ValidationError):
            override_service.manual_match(pending_debit.id, payment_id, user_id="bursar")

    def test_missing_payment(self, override_service, unmatched_credit):
        """Test a missing payment raises NotFoundError."""
        with pytest.raises(NotFoundError):
            override_service.manual_match(unmatched_credit.id, 999, user_id="bursar")

    def test_missing_transaction(self, override_service, record_payment):
        """Test a missing transaction raises NotFoundError."""
        with pytest.raises(NotFoundError):
            override_service.manual_match(999, record_payment(), user_id="bursar")


class TestUnmatch:
    """Tests for unmatching."""

    def test_unmatch_restores_state(self, override_service, unmatched_credit, record_payment, ledger, temp_db):
        """Test unmatch removes the match, releases the payment and restores counters."""
        payment_id = record_payment()
        before = _counters(temp_db, unmatched_credit.session_id)
        override_service.manual_match(unmatched_credit.id, payment_id, user_id="bursar")

        override_service.unmatch(unmatched_credit.id)

        assert temp_db.get_bank_transaction(unmatched_credit.id).status == TransactionStatus.UNMATCHED
        assert temp_db.get_match_for_transaction(unmatched_credit.id) is None
        assert not ledger.get_payment(payment_id).is_reconciled
        assert _counters(temp_db, unmatched_credit.session_id) == before

    def test_unmatch_auto_match(self, import_rows, record_payment, override_service, ledger, temp_db):
        """Test unmatching an automatic match."""
        payment_id = record_payment()
        result = import_rows([stanbic_row("500,000", "DEPOSIT MUKASA JOHN")])
        (txn,) = temp_db.list_bank_transactions(result["session_id"])
        assert txn.status == TransactionStatus.MATCHED

        override_service.unmatch(txn.id)

        assert temp_db.get_bank_transaction(txn.id).status == TransactionStatus.UNMATCHED
        assert not ledger.get_payment(payment_id).is_reconciled
        assert _counters(temp_db, txn.session_id) == (0, 1, 0)

    def test_unmatch_twice_is_noop(self, override_service, unmatched_credit, record_payment, temp_db):
        """Test unmatching an unmatched transaction changes nothing."""
        override_service.manual_match(unmatched_credit.id, record_payment(), user_id="bursar")
        override_service.unmatch(unmatched_credit.id)
        override_service.unmatch(unmatched_credit.id)

        assert _counters(temp_db, unmatched_credit.session_id) == (0, 1, 0)

    def test_unmatch_pending_is_invalid(self, override_service, pending_debit):
        """Test unmatch from pending is rejected."""
        with pytest.raises(InvalidStateError):
            override_service.unmatch(pending_debit.id)


class TestIgnore:
    """Tests for ignoring transactions."""

    def test_ignore_records_audit_fields(self, override_service, unmatched_credit, temp_db):
        """Test ignore stores reason, actor and time."""
        override_service.ignore(unmatched_credit.id, IgnoreReason.DUPLICATE, user_id="bursar")

        txn = temp_db.get_bank_transaction(unmatched_credit.id)
        assert txn.status == TransactionStatus.IGNORED
        assert txn.ignore_reason == IgnoreReason.DUPLICATE
        assert txn.ignored_by == "bursar"
        assert txn.ignored_at is not None
        assert _counters(temp_db, txn.session_id) == (0, 0, 1)

    def test_ignore_twice_is_idempotent(self, override_service, pending_debit, temp_db):
        """Test ignoring twice gives the same state as ignoring once."""
        override_service.ignore(pending_debit.id, "bank_charges", user_id="bursar")
        once = (temp_db.get_bank_transaction(pending_debit.id), _counters(temp_db, pending_debit.session_id))

        override_service.ignore(pending_debit.id, "bank_charges", user_id="someone else")
        twice = (temp_db.get_bank_transaction(pending_debit.id), _counters(temp_db, pending_debit.session_id))

        assert once == twice
        assert twice[1] == (0, 0, 1)

    @pytest.mark.parametrize("reason", ["", "because", None])
    def test_invalid_reason(self, override_service, unmatched_credit, temp_db, reason):
        """Test reasons outside the closed set are rejected before any change."""
        with pytest.raises(ValidationError, match="Invalid ignore reason"):
            override_service.ignore(unmatched_credit.id, reason, user_id="bursar")

        assert temp_db.get_bank_transaction(unmatched_credit.id).status == TransactionStatus.UNMATCHED

    def test_matched_transaction_must_be_unmatched_first(self, override_service, unmatched_credit, record_payment):
        """Test ignoring a matched transaction is a conflict."""
        override_service.manual_match(unmatched_credit.id, record_payment(), user_id="bursar")

        with pytest.raises(ConflictError, match="unmatch"):
            override_service.ignore(unmatched_credit.id, "other", user_id="bursar")


def test_overrides_refused_on_completed_session(import_rows, session_service, override_service, temp_db):
    """Test a completed session's transactions are frozen."""
    result = import_rows([stanbic_row("500,000", "CASH DEPOSIT")])
    (txn,) = temp_db.list_bank_transactions(result["session_id"])
    session_service.complete_session(result["session_id"], user_id="head")

    with pytest.raises(InvalidStateError):
        override_service.ignore(txn.id, "other", user_id="bursar")
