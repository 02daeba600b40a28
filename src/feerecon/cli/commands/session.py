"""Reconciliation session commands."""

import click
from feerecon.cli.error_handling import handle_domain_error
from feerecon.domain.entities import TransactionStatus
from feerecon.domain.errors import DomainError
from feerecon.domain.session import SessionService
from feerecon.domain.summary import SummaryService


@click.group()
def session_group():
    """Inspect and close reconciliation sessions."""
    pass


@session_group.command("list")
@click.option("--school", "school_id", help="Only sessions of this school")
@click.pass_context
def list_sessions(ctx, school_id: str | None):
    """List reconciliation sessions, most recent first."""
    service = SessionService(ctx.obj["db"])

    sessions = service.list_sessions(school_id=school_id)
    if not sessions:
        click.echo("No sessions found.")
        return

    click.echo("\nSessions:")
    click.echo("-" * 100)
    for s in sessions:
        click.echo(
            f"ID: {s.id:3d} | {s.school_id:10s} | {s.bank_account_name:20s} | "
            f"{s.statement_period_start} - {s.statement_period_end} | {s.status.value:11s} | "
            f"{s.matched_count}/{s.total_transactions} matched"
        )


@session_group.command("show")
@click.argument("session_id", type=int)
@click.pass_context
def show_session(ctx, session_id: int):
    """Show a session's details and counters."""
    service = SessionService(ctx.obj["db"])

    try:
        s = service.require_session(session_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nSession {s.id} ({s.status.value})")
    click.echo(f"  School:       {s.school_id}")
    click.echo(f"  Account:      {s.bank_account_name} ({s.bank_account_number})")
    click.echo(f"  Bank:         {s.bank_name or '-'}")
    click.echo(f"  Period:       {s.statement_period_start} to {s.statement_period_end}")
    click.echo(f"  File:         {s.file_name}")
    click.echo(f"  Imported:     {s.imported_at:%Y-%m-%d %H:%M} by {s.imported_by}")
    click.echo(f"  Transactions: {s.total_transactions}")
    click.echo(f"  Matched:      {s.matched_count}")
    click.echo(f"  Unmatched:    {s.unmatched_count}")
    click.echo(f"  Ignored:      {s.ignored_count}")
    click.echo(f"  Credits:      {s.total_credits:,.2f}")
    click.echo(f"  Debits:       {s.total_debits:,.2f}")
    if s.completed_at is not None:
        click.echo(f"  Completed:    {s.completed_at:%Y-%m-%d %H:%M} by {s.completed_by}")
    if s.notes:
        click.echo(f"  Notes:        {s.notes}")


@session_group.command("transactions")
@click.argument("session_id", type=int)
@click.option(
    "--status",
    type=click.Choice([s.value for s in TransactionStatus]),
    help="Only transactions in this status",
)
@click.option("--suggestions/--no-suggestions", default=True, help="Show possible matches")
@click.pass_context
def list_transactions(ctx, session_id: int, status: str | None, suggestions: bool):
    """List a session's transactions with their matches or suggestions."""
    service = SessionService(ctx.obj["db"])

    try:
        details = service.get_session_transactions(
            session_id,
            status=TransactionStatus(status) if status else None,
            include_suggestions=suggestions,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not details:
        click.echo("No transactions found.")
        return

    for detail in details:
        t = detail.transaction
        click.echo(
            f"ID: {t.id:4d} | {t.transaction_date} | {t.direction.value:6s} | "
            f"{t.amount:>15,.2f} | {t.status.value:12s} | {t.description}"
        )
        if detail.match is not None:
            m = detail.match
            click.echo(
                f"      -> payment {m.payment_id} ({m.match_type.value}, {m.confidence}%): "
                f"{'; '.join(m.reasons)}"
            )
        for pm in detail.possible_matches:
            click.echo(
                f"      ? payment {pm.payment_id} {pm.student_name} {pm.payment_amount:,.2f} "
                f"on {pm.payment_date} ({pm.confidence}%): {'; '.join(pm.match_reasons)}"
            )


@session_group.command("complete")
@click.argument("session_id", type=int)
@click.option("--user", "user_id", required=True, help="User closing the session")
@click.option("--notes", help="Closing notes")
@click.pass_context
def complete_session(ctx, session_id: int, user_id: str, notes: str | None):
    """Mark a session as completed."""
    service = SessionService(ctx.obj["db"])

    try:
        service.complete_session(session_id, user_id=user_id, notes=notes)
        click.echo(f"Session {session_id} completed")
    except DomainError as e:
        handle_domain_error(ctx, e)


@session_group.command("repair")
@click.argument("session_id", type=int)
@click.option("--check", is_flag=True, help="Only report drifted counters")
@click.pass_context
def repair_session(ctx, session_id: int, check: bool):
    """Recompute a session's counters from its transactions."""
    service = SummaryService(ctx.obj["db"])

    try:
        if check:
            mismatches = service.check_counters(session_id)
        else:
            mismatches = service.repair_counters(session_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not mismatches:
        click.echo(f"Session {session_id} counters are consistent")
        return

    verb = "Drifted" if check else "Repaired"
    for name, (stored, live) in sorted(mismatches.items()):
        click.echo(f"{verb} {name}: stored={stored} live={live}")
    if check:
        ctx.exit(1)


def register_commands(cli):
    """Register session commands with main CLI."""
    cli.add_command(session_group, name="session")
