"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as a transaction or payment that is already matched."""


class InvalidStateError(ConflictError):
    """Operation is not allowed from the entity's current status."""


class StatementParseError(ValidationError):
    """Statement file cannot be imported at all (unreadable, missing columns)."""


class ConsistencyError(DomainError):
    """Stored session counters disagree with the live transaction set."""


def session_not_found(session_id: int) -> str:
    """Return message for missing reconciliation session."""
    return f"Reconciliation session {session_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing bank transaction."""
    return f"Bank transaction {transaction_id} not found"


def payment_not_found(payment_id: int) -> str:
    """Return message for missing payment record."""
    return f"Payment {payment_id} not found"


def profile_not_found(name: str) -> str:
    """Return message for missing bank profile."""
    return f"Bank profile '{name}' not found"


def invalid_transition(transaction_id: int, current: str, target: str) -> str:
    """Return message for a status change the state machine does not allow."""
    return (
        f"Bank transaction {transaction_id} cannot move from '{current}' to '{target}'"
    )


def payment_already_reconciled(payment_id: int) -> str:
    """Return message when a payment is already claimed by another match."""
    return f"Payment {payment_id} is already reconciled with another transaction"


def counters_out_of_sync(session_id: int, mismatches: dict[str, tuple]) -> str:
    """Return message describing drifted session counters."""
    parts = [
        f"{name} stored={stored} live={live}"
        for name, (stored, live) in sorted(mismatches.items())
    ]
    return f"Session {session_id} counters out of sync: {', '.join(parts)}"
