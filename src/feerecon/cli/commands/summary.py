"""Reconciliation summary command."""

import click
from feerecon.cli.error_handling import handle_domain_error
from feerecon.domain.errors import DomainError
from feerecon.domain.summary import SummaryService


@click.command("summary")
@click.argument("session_id", type=int)
@click.pass_context
def summary(ctx, session_id: int):
    """Show the reconciliation summary of a session."""
    service = SummaryService(ctx.obj["db"])

    try:
        s = service.build_summary(session_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nReconciliation summary for session {session_id}")
    click.echo("=" * 60)
    click.echo(f"Bank credits:            {s.total_bank_credits:>18,.2f}")
    click.echo(f"Bank debits:             {s.total_bank_debits:>18,.2f}")
    click.echo(f"System payments:         {s.total_system_payments:>18,.2f}")
    click.echo(f"Reconciled payments:     {s.reconciled_system_amount:>18,.2f}")
    click.echo(f"Matched amount:          {s.matched_amount:>18,.2f}")
    click.echo(f"Unmatched bank amount:   {s.unmatched_bank_amount:>18,.2f}")
    click.echo(f"Unmatched system amount: {s.unmatched_system_amount:>18,.2f}")
    click.echo(f"Variance:                {s.variance:>18,.2f}")
    click.echo(f"Match rate:              {s.match_rate:>17.1f}%")

    if s.by_status:
        click.echo("\nBy status:")
        click.echo("-" * 60)
        for row in s.by_status:
            click.echo(f"  {row.status.value:14s} {row.count:5d} {row.amount:>18,.2f}")

    if s.by_payment_method:
        click.echo("\nBy payment method:")
        click.echo("-" * 60)
        for row in s.by_payment_method:
            click.echo(
                f"  {row.method:14s} bank {row.bank_count:4d} {row.bank_amount:>15,.2f} | "
                f"system {row.system_count:4d} {row.system_amount:>15,.2f}"
            )


def register_commands(cli):
    """Register summary command with main CLI."""
    cli.add_command(summary)
