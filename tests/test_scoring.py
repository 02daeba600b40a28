"""Tests for the confidence scorer."""

import pytest
from dataclasses import replace
from datetime import date, timedelta

from conftest import make_payment, make_transaction
from feerecon.domain.scoring import DEFAULT_SCORING, ScoringConfig, score_match


def test_exact_amount_same_day_and_name():
    """Test the canonical mobile money deposit scores 90."""
    score = score_match(make_transaction(), make_payment())

    assert score.confidence == 90
    assert score.reasons == (
        "Amount matches exactly",
        "Same transaction date",
        "Name found in description",
    )


def test_exact_amount_same_day_reference_at_least_90():
    """Test exact amount, same day and reference in description is >= 90."""
    txn = make_transaction(description="SCHOOL FEES RCT-1002")
    payment = make_payment(student_name="Someone Else", receipt_number="RCT-1002")

    score = score_match(txn, payment)

    assert score.confidence >= 90
    assert "Reference found in description" in score.reasons


def test_score_is_capped_at_100():
    """Test all factors together never exceed 100."""
    txn = make_transaction(description="FEES MUKASA JOHN REF PAY-77")
    payment = make_payment(reference="PAY-77")

    assert score_match(txn, payment).confidence == 100


def test_close_amount():
    """Test an amount within the tolerance earns the close bonus."""
    txn = make_transaction(amount="500500", description="DEPOSIT")
    score = score_match(txn, make_payment())

    assert score.confidence == 20 + 25
    assert score.reasons == ("Amount is close", "Same transaction date")


def test_amount_outside_tolerance():
    """Test a distant amount earns nothing for amount."""
    txn = make_transaction(amount="350000", description="DEPOSIT")
    score = score_match(txn, make_payment())

    assert "Amount matches exactly" not in score.reasons
    assert "Amount is close" not in score.reasons
    assert score.confidence == 25


@pytest.mark.parametrize(
    "days,points",
    [(1, 10), (2, 8), (3, 7), (4, 5), (5, 3), (6, 2), (7, 0), (8, 0)],
)
def test_date_bonus_decays_linearly(days, points):
    """Test the date bonus tapers from 10 at one day to 0 at the window edge."""
    txn = make_transaction(
        transaction_date=date(2024, 1, 15) + timedelta(days=days), description="DEPOSIT"
    )
    score = score_match(txn, make_payment())

    assert score.confidence == 50 + points
    has_reason = any(r.startswith("Date within") for r in score.reasons)
    assert has_reason == (points > 0)


def test_date_reason_wording():
    """Test singular and plural day wording."""
    one = score_match(make_transaction(transaction_date=date(2024, 1, 16)), make_payment())
    two = score_match(make_transaction(transaction_date=date(2024, 1, 17)), make_payment())

    assert "Date within 1 day" in one.reasons
    assert "Date within 2 days" in two.reasons


def test_reference_matches_bank_reference():
    """Test a payment reference equal to the bank reference counts."""
    txn = make_transaction(description="DEPOSIT", reference="TRF240116002")
    payment = make_payment(student_name="Nobody Here", reference="trf240116002")

    score = score_match(txn, payment)

    assert "Reference matches bank reference" in score.reasons
    assert score.confidence == 50 + 25 + 20


def test_short_reference_in_description():
    """Test a short receipt number found in the description still counts."""
    txn = make_transaction(description="SCHOOL FEES RCPT 42")
    payment = make_payment(student_name="Someone Else", reference="42")

    score = score_match(txn, payment)

    assert "Reference found in description" in score.reasons
    assert score.confidence >= 90


def test_empty_reference_never_matches():
    """Test blank references and receipt numbers earn nothing."""
    txn = make_transaction(description="DEPOSIT", reference="")
    payment = make_payment(student_name="Nobody Here", reference="  ", receipt_number="")

    assert score_match(txn, payment).reasons == ("Amount matches exactly", "Same transaction date")


def test_name_with_extra_whitespace_and_case():
    """Test name matching is case-insensitive and whitespace-normalized."""
    txn = make_transaction(description="deposit   mukasa    john  ")
    payment = make_payment(student_name="  MUKASA John")

    assert "Name found in description" in score_match(txn, payment).reasons


def test_name_tokens_in_any_order():
    """Test all name tokens present as words count as a full name match."""
    txn = make_transaction(description="DEPOSIT JOHN MUKASA")

    assert "Name found in description" in score_match(txn, make_payment()).reasons


def test_partial_name_match():
    """Test a single name token earns the partial bonus."""
    txn = make_transaction(description="DEPOSIT FROM MUKASA")
    score = score_match(txn, make_payment())

    assert "Partial name match" in score.reasons
    assert score.confidence == 50 + 25 + 5


def test_deterministic():
    """Test identical inputs always produce identical scores."""
    txn = make_transaction()
    payment = make_payment(reference="MM123")

    assert score_match(txn, payment) == score_match(txn, payment)


def test_custom_config():
    """Test weights come from the scoring config."""
    config = replace(DEFAULT_SCORING, exact_amount_points=60, same_day_points=10)
    score = score_match(make_transaction(description="DEPOSIT"), make_payment(), config)

    assert score.confidence == 70


def test_default_thresholds():
    """Test the documented auto-match and suggestion thresholds."""
    config = ScoringConfig()

    assert config.auto_match_threshold == 80
    assert config.suggestion_threshold == 30
    assert config.max_suggestions == 5
