"""Bank profile management commands."""

import click
from feerecon.cli.error_handling import handle_domain_error
from feerecon.domain.bank_profile import BankProfileService
from feerecon.domain.errors import DomainError
from feerecon.utils.date_parser import STATEMENT_DATE_FORMATS


@click.group()
def profile_group():
    """Manage bank statement profiles."""
    pass


@profile_group.command("list")
@click.pass_context
def list_profiles(ctx):
    """List built-in and custom bank profiles."""
    service = BankProfileService(ctx.obj["db"])

    click.echo("\nBank profiles:")
    click.echo("-" * 70)
    for p in service.list_profiles():
        kind = "built-in" if p.is_builtin else "custom"
        click.echo(f"{p.name:20s} | {p.bank_name:30s} | {p.date_format:12s} | {kind}")


@profile_group.command("show")
@click.argument("name")
@click.pass_context
def show_profile(ctx, name: str):
    """Show the column layout of a bank profile."""
    service = BankProfileService(ctx.obj["db"])

    try:
        p = service.require_profile(name)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nProfile: {p.name} ({p.bank_name})")
    click.echo(f"  Date column:        {p.date_column} [{p.date_format}]")
    click.echo(f"  Amount column:      {p.amount_column}")
    click.echo(f"  Reference column:   {p.reference_column or '-'}")
    click.echo(f"  Description column: {p.description_column or '-'}")
    if p.type_column:
        click.echo(
            f"  Type column:        {p.type_column} "
            f"(credit: {p.credit_indicator or '-'}, debit: {p.debit_indicator or '-'})"
        )
    if p.balance_column:
        click.echo(f"  Balance column:     {p.balance_column}")
    click.echo(f"  Header row:         {p.header_row}")


@profile_group.command("create")
@click.argument("name")
@click.option("--bank", "bank_name", required=True, help="Bank display name")
@click.option("--date-column", required=True, help="Header of the transaction date column")
@click.option("--amount-column", required=True, help="Header of the amount column")
@click.option(
    "--date-format",
    type=click.Choice(list(STATEMENT_DATE_FORMATS)),
    default="DD/MM/YYYY",
    show_default=True,
    help="Date format used in the statement",
)
@click.option("--reference-column", default="", help="Header of the bank reference column")
@click.option("--description-column", default="", help="Header of the narration column")
@click.option("--type-column", help="Header of the credit/debit indicator column")
@click.option("--credit-indicator", help="Text marking a credit in the type column")
@click.option("--debit-indicator", help="Text marking a debit in the type column")
@click.option("--balance-column", help="Header of the running balance column")
@click.option("--header-row", type=int, default=1, show_default=True, help="Line number of the header row")
@click.pass_context
def create_profile(
    ctx,
    name: str,
    bank_name: str,
    date_column: str,
    amount_column: str,
    date_format: str,
    reference_column: str,
    description_column: str,
    type_column: str | None,
    credit_indicator: str | None,
    debit_indicator: str | None,
    balance_column: str | None,
    header_row: int,
):
    """Create a custom bank profile.

    Examples:
        feerecon profile create absa --bank "ABSA Uganda" \\
            --date-column "Posting Date" --amount-column "Amount" \\
            --description-column "Narrative" --date-format DD-MMM-YYYY
    """
    service = BankProfileService(ctx.obj["db"])

    try:
        profile_id = service.create_profile(
            name=name,
            bank_name=bank_name,
            date_column=date_column,
            amount_column=amount_column,
            date_format=date_format,
            reference_column=reference_column,
            description_column=description_column,
            type_column=type_column,
            credit_indicator=credit_indicator,
            debit_indicator=debit_indicator,
            balance_column=balance_column,
            header_row=header_row,
        )
        click.echo(f"Created bank profile '{name}' (ID: {profile_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@profile_group.command("delete")
@click.argument("name")
@click.pass_context
def delete_profile(ctx, name: str):
    """Delete a custom bank profile."""
    service = BankProfileService(ctx.obj["db"])

    try:
        service.delete_profile(name)
        click.echo(f"Deleted bank profile '{name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@profile_group.command("detect")
@click.argument("statement_file", type=click.Path(exists=True))
@click.pass_context
def detect_profile(ctx, statement_file: str):
    """Detect which bank profile fits a statement file."""
    service = BankProfileService(ctx.obj["db"])

    try:
        p = service.detect_for_file(statement_file)
    except (DomainError, OSError) as e:
        handle_domain_error(ctx, e)

    if p is None:
        click.echo("No bank profile matches this statement.")
        ctx.exit(1)
    click.echo(f"Detected profile: {p.name} ({p.bank_name})")


def register_commands(cli):
    """Register profile commands with main CLI."""
    cli.add_command(profile_group, name="profile")
