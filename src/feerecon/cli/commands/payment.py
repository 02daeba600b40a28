"""Payment ledger commands."""

import click
from feerecon.cli.error_handling import handle_domain_error
from feerecon.utils.amount_parser import parse_amount
from feerecon.utils.date_parser import parse_date


@click.group()
def payment_group():
    """Record and list fee payments."""
    pass


@payment_group.command("record")
@click.option("--school", "school_id", required=True, help="School ID")
@click.option("--student-id", required=True, help="Student ID")
@click.option("--student-name", required=True, help="Payer/student display name")
@click.option("--amount", required=True, help="Amount paid (e.g., '500,000')")
@click.option("--date", "date_str", required=True, help="Payment date (e.g., 2024-01-15, today)")
@click.option("--reference", help="Payment reference")
@click.option("--receipt", "receipt_number", help="Receipt number")
@click.option("--method", "payment_method", default="cash", show_default=True, help="Payment method")
@click.option("--status", default="completed", show_default=True, help="Payment status")
@click.pass_context
def record_payment(
    ctx,
    school_id: str,
    student_id: str,
    student_name: str,
    amount: str,
    date_str: str,
    reference: str | None,
    receipt_number: str | None,
    payment_method: str,
    status: str,
):
    """Record a fee payment.

    Examples:
        feerecon payment record --school kia --student-id S001 \\
            --student-name "Mukasa John" --amount 500000 --date 2024-01-15
    """
    ledger = ctx.obj["db"].get_payment_ledger()

    try:
        payment_amount = parse_amount(amount)
        payment_date = parse_date(date_str)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if payment_amount <= 0:
        handle_domain_error(ctx, ValueError("Payment amount must be positive"))

    payment_id = ledger.record_payment(
        school_id=school_id,
        student_id=student_id,
        student_name=student_name,
        amount=payment_amount,
        date=payment_date,
        reference=reference,
        receipt_number=receipt_number,
        payment_method=payment_method,
        status=status,
    )
    click.echo(f"Recorded payment {payment_id}: {student_name} {payment_amount:,.2f} on {payment_date}")


@payment_group.command("list")
@click.option("--school", "school_id", required=True, help="School ID")
@click.option("--start-date", help="Earliest payment date")
@click.option("--end-date", help="Latest payment date")
@click.option("--unreconciled", is_flag=True, help="Only payments not yet reconciled")
@click.pass_context
def list_payments(
    ctx, school_id: str, start_date: str | None, end_date: str | None, unreconciled: bool
):
    """List a school's completed payments."""
    ledger = ctx.obj["db"].get_payment_ledger()

    try:
        start = parse_date(start_date) if start_date else None
        end = parse_date(end_date) if end_date else None
    except ValueError as e:
        handle_domain_error(ctx, e)

    payments = ledger.list_payments(
        school_id, start_date=start, end_date=end, unreconciled_only=unreconciled
    )
    if not payments:
        click.echo("No payments found.")
        return

    click.echo("\nPayments:")
    click.echo("-" * 90)
    for p in payments:
        flag = "reconciled" if p.is_reconciled else "open"
        click.echo(
            f"ID: {p.id:4d} | {p.date} | {p.amount:>15,.2f} | {p.student_name:25s} | "
            f"{p.payment_method:12s} | {flag}"
        )


def register_commands(cli):
    """Register payment commands with main CLI."""
    cli.add_command(payment_group, name="payment")
