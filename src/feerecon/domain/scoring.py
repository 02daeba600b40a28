"""Confidence scoring between a bank transaction and a payment record."""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from feerecon.domain.entities import MatchScore, Payment

_WORD = re.compile(r"[a-z0-9]+")


@dataclass(frozen=True)
class ScoringConfig:
    """Weights and thresholds used by the scorer and the matching engine."""

    exact_amount_points: int = 50
    close_amount_points: int = 20
    amount_tolerance: Decimal = Decimal("1000")
    same_day_points: int = 25
    near_date_points: int = 10
    date_window_days: int = 7
    reference_points: int = 20
    full_name_points: int = 15
    partial_name_points: int = 5
    min_token_length: int = 3
    auto_match_threshold: int = 80
    suggestion_threshold: int = 30
    suggestion_window_days: int = 7
    max_suggestions: int = 5


DEFAULT_SCORING = ScoringConfig()


def _normalize(text: Optional[str]) -> str:
    return " ".join((text or "").lower().split())


def _date_points(days: int, config: ScoringConfig) -> int:
    """Linearly decaying bonus: full near_date_points at 1 day, 0 at the window edge."""
    window = config.date_window_days
    if days < 1 or days > window:
        return 0
    if window == 1:
        return config.near_date_points
    span = window - 1
    # Integer round-half-up keeps scores reproducible across platforms
    return (config.near_date_points * (window - days) * 2 + span) // (2 * span)


def _reference_reason(description: str, bank_reference: str, payment: Payment) -> Optional[str]:
    for candidate in (payment.reference, payment.receipt_number):
        ref = _normalize(candidate)
        if not ref:
            continue
        if ref in description:
            return "Reference found in description"
        if bank_reference and (ref == bank_reference or ref in bank_reference):
            return "Reference matches bank reference"
    return None


def _name_points(description: str, payment: Payment, config: ScoringConfig) -> tuple[int, Optional[str]]:
    name = _normalize(payment.student_name)
    if not name:
        return 0, None
    if name in description:
        return config.full_name_points, "Name found in description"

    words = set(_WORD.findall(description))
    tokens = [t for t in _WORD.findall(name) if len(t) >= config.min_token_length]
    if not tokens:
        return 0, None
    found = [t for t in tokens if t in words]
    if len(tokens) >= 2 and len(found) == len(tokens):
        return config.full_name_points, "Name found in description"
    if found:
        return config.partial_name_points, "Partial name match"
    return 0, None


def score_match(transaction, payment: Payment, config: ScoringConfig = DEFAULT_SCORING) -> MatchScore:
    """Score how likely a bank transaction and a payment are the same event.

    Factors (default weights): exact amount +50, or within the tolerance +20;
    same date +25, or within the date window a bonus decaying from 10 to 0;
    payment reference or receipt number in the description (or the bank
    reference) +20; payer name in the description +15, or a single name
    token +5. The total is capped at 100 and only contributing factors are
    listed as reasons.

    Args:
        transaction: Object with transaction_date, amount, description, reference
        payment: Candidate payment record
        config: Scoring weights

    Returns:
        MatchScore with confidence 0-100 and reasons
    """
    confidence = 0
    reasons: list[str] = []

    difference = abs(Decimal(transaction.amount) - Decimal(payment.amount))
    if difference == 0:
        confidence += config.exact_amount_points
        reasons.append("Amount matches exactly")
    elif difference <= config.amount_tolerance:
        confidence += config.close_amount_points
        reasons.append("Amount is close")

    days = abs((transaction.transaction_date - payment.date).days)
    if days == 0:
        confidence += config.same_day_points
        reasons.append("Same transaction date")
    else:
        points = _date_points(days, config)
        if points > 0:
            confidence += points
            reasons.append(f"Date within {days} day{'s' if days != 1 else ''}")

    description = _normalize(transaction.description)
    reference_reason = _reference_reason(description, _normalize(transaction.reference), payment)
    if reference_reason is not None:
        confidence += config.reference_points
        reasons.append(reference_reason)

    name_points, name_reason = _name_points(description, payment, config)
    if name_reason is not None:
        confidence += name_points
        reasons.append(name_reason)

    return MatchScore(confidence=min(confidence, 100), reasons=tuple(reasons))
