"""Matching and manual override commands."""

from dataclasses import replace

import click
from feerecon.cli.error_handling import handle_domain_error
from feerecon.domain.entities import IgnoreReason
from feerecon.domain.errors import DomainError
from feerecon.domain.overrides import ManualOverrideService
from feerecon.domain.scoring import DEFAULT_SCORING
from feerecon.domain.session import SessionService


@click.group()
def match_group():
    """Run automatic matching and correct matches by hand."""
    pass


@match_group.command("run")
@click.argument("session_id", type=int)
@click.option(
    "--threshold",
    type=click.IntRange(0, 100),
    help=f"Auto-match confidence threshold (default: {DEFAULT_SCORING.auto_match_threshold})",
)
@click.pass_context
def run_matching(ctx, session_id: int, threshold: int | None):
    """Run the automatic matching pass over a session's pending credits."""
    config = DEFAULT_SCORING
    if threshold is not None:
        config = replace(config, auto_match_threshold=threshold)
    service = SessionService(ctx.obj["db"], config=config)

    try:
        result = service.run_auto_matching(session_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Matched: {result['matched']}, unmatched: {result['unmatched']}")


@match_group.command("suggest")
@click.argument("transaction_id", type=int)
@click.pass_context
def suggest_matches(ctx, transaction_id: int):
    """Show possible payments for a pending or unmatched transaction."""
    service = SessionService(ctx.obj["db"])

    try:
        suggestions = service.find_possible_matches(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not suggestions:
        click.echo("No possible matches found.")
        return

    click.echo(f"\nPossible matches for transaction {transaction_id}:")
    click.echo("-" * 90)
    for pm in suggestions:
        click.echo(
            f"Payment {pm.payment_id:4d} | {pm.confidence:3d}% | {pm.payment_date} | "
            f"{pm.payment_amount:>15,.2f} | {pm.student_name} ({pm.student_id})"
        )
        click.echo(f"      {'; '.join(pm.match_reasons)}")


@match_group.command("manual")
@click.argument("transaction_id", type=int)
@click.argument("payment_id", type=int)
@click.option("--user", "user_id", required=True, help="Acting user")
@click.option("--notes", help="Notes stored with the match")
@click.pass_context
def manual_match(ctx, transaction_id: int, payment_id: int, user_id: str, notes: str | None):
    """Match a transaction to a payment by hand."""
    service = ManualOverrideService(ctx.obj["db"])

    try:
        match_id = service.manual_match(transaction_id, payment_id, user_id=user_id, notes=notes)
        click.echo(f"Matched transaction {transaction_id} to payment {payment_id} (match {match_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@match_group.command("unmatch")
@click.argument("transaction_id", type=int)
@click.pass_context
def unmatch(ctx, transaction_id: int):
    """Remove a transaction's match and release its payment."""
    service = ManualOverrideService(ctx.obj["db"])

    try:
        service.unmatch(transaction_id)
        click.echo(f"Transaction {transaction_id} is unmatched")
    except DomainError as e:
        handle_domain_error(ctx, e)


@match_group.command("ignore")
@click.argument("transaction_id", type=int)
@click.option(
    "--reason",
    required=True,
    type=click.Choice([r.value for r in IgnoreReason]),
    help="Why the transaction needs no reconciliation",
)
@click.option("--user", "user_id", required=True, help="Acting user")
@click.pass_context
def ignore(ctx, transaction_id: int, reason: str, user_id: str):
    """Ignore a transaction (bank charges, interest, ...)."""
    service = ManualOverrideService(ctx.obj["db"])

    try:
        service.ignore(transaction_id, reason, user_id=user_id)
        click.echo(f"Transaction {transaction_id} ignored ({reason})")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register match commands with main CLI."""
    cli.add_command(match_group, name="match")
