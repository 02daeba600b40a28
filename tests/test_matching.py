"""Tests for the greedy matching engine."""

from datetime import date

from conftest import make_payment, make_transaction
from feerecon.domain.entities import Direction, TransactionStatus
from feerecon.domain.matching import MatchingEngine


def test_matches_confident_candidate():
    """Test a transaction takes a candidate above the threshold."""
    engine = MatchingEngine()
    decisions = engine.run([make_transaction()], [make_payment()])

    assert len(decisions) == 1
    assert decisions[0].matched
    assert decisions[0].payment.id == 1
    assert decisions[0].score.confidence == 90


def test_below_threshold_is_unmatched():
    """Test a weak candidate leaves the transaction unmatched."""
    engine = MatchingEngine()
    decisions = engine.run([make_transaction(amount="350000")], [make_payment()])

    assert not decisions[0].matched


def test_only_pending_credits_are_considered():
    """Test debits and already-evaluated transactions are skipped."""
    engine = MatchingEngine()
    transactions = [
        make_transaction(id=1, direction=Direction.DEBIT),
        make_transaction(id=2, status=TransactionStatus.UNMATCHED),
        make_transaction(id=3),
    ]
    decisions = engine.run(transactions, [make_payment()])

    assert [d.transaction.id for d in decisions] == [3]


def test_payment_claimed_once_per_pass():
    """Test a payment satisfies at most one transaction (greedy, first wins)."""
    engine = MatchingEngine()
    first = make_transaction(id=1, description="DEPOSIT MUKASA JOHN A")
    second = make_transaction(id=2, description="DEPOSIT MUKASA JOHN B")
    decisions = engine.run([second, first], [make_payment()])

    assert decisions[0].transaction.id == 1
    assert decisions[0].matched
    assert decisions[1].transaction.id == 2
    assert not decisions[1].matched


def test_transaction_order():
    """Test ordering by date ascending, amount descending, then id."""
    transactions = [
        make_transaction(id=4, transaction_date=date(2024, 1, 16), amount="100"),
        make_transaction(id=3, transaction_date=date(2024, 1, 15), amount="100"),
        make_transaction(id=2, transaction_date=date(2024, 1, 15), amount="900"),
        make_transaction(id=1, transaction_date=date(2024, 1, 15), amount="100"),
    ]

    ordered = MatchingEngine.order_transactions(transactions)

    assert [t.id for t in ordered] == [2, 1, 3, 4]


def test_best_candidate_wins():
    """Test the highest scoring candidate is taken, not the first."""
    engine = MatchingEngine()
    weaker = make_payment(id=1, payment_date=date(2024, 1, 14))
    stronger = make_payment(id=2)

    decisions = engine.run([make_transaction()], [weaker, stronger])

    assert decisions[0].payment.id == 2


def test_ties_go_to_pool_order():
    """Test equal scores resolve to the earliest payment (date, then id)."""
    engine = MatchingEngine()
    later_id = make_payment(id=9)
    earlier_id = make_payment(id=3)

    decisions = engine.run([make_transaction()], [later_id, earlier_id])

    assert decisions[0].payment.id == 3


def test_failed_claim_falls_through_to_next_candidate():
    """Test a payment claimed elsewhere is skipped and the next one tried."""
    engine = MatchingEngine()
    taken = make_payment(id=1)
    available = make_payment(id=2)

    decisions = engine.run(
        [make_transaction()], [taken, available], claim=lambda p: p.id != 1
    )

    assert decisions[0].payment.id == 2


def test_failed_claim_removes_payment_from_pool():
    """Test a payment that failed to be claimed is not offered again."""
    engine = MatchingEngine()
    claims = []

    def claim(payment):
        claims.append(payment.id)
        return False

    engine.run(
        [make_transaction(id=1), make_transaction(id=2)], [make_payment(id=1)], claim=claim
    )

    assert claims == [1]


def test_suggest_limits_and_threshold():
    """Test suggestions keep at most five candidates at or above 30."""
    engine = MatchingEngine()
    txn = make_transaction(description="DEPOSIT")
    candidates = [make_payment(id=i) for i in range(1, 8)]
    candidates.append(make_payment(id=20, amount="1", payment_date=date(2024, 3, 1)))

    suggestions = engine.suggest(txn, candidates)

    assert len(suggestions) == 5
    assert [p.id for p, _ in suggestions] == [1, 2, 3, 4, 5]
    assert all(score.confidence >= 30 for _, score in suggestions)


def test_suggest_sorted_by_confidence():
    """Test suggestions come best first."""
    engine = MatchingEngine()
    txn = make_transaction()
    close = make_payment(id=1, amount="500200")
    exact = make_payment(id=2)

    suggestions = engine.suggest(txn, [close, exact])

    assert [p.id for p, _ in suggestions] == [2, 1]
