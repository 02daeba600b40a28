"""Statement import command."""

import click
from feerecon.cli.error_handling import handle_domain_error
from feerecon.domain.errors import DomainError
from feerecon.domain.session import SessionService


@click.command("import")
@click.argument("statement_file", type=click.Path(exists=True))
@click.option("--school", "school_id", required=True, help="School ID")
@click.option("--account-name", required=True, help="Bank account label")
@click.option("--account-number", required=True, help="Bank account number")
@click.option("--profile", "profile_name", help="Bank profile name (detected if omitted)")
@click.option("--user", "imported_by", required=True, help="Importing user")
@click.pass_context
def import_statement(
    ctx,
    statement_file: str,
    school_id: str,
    account_name: str,
    account_number: str,
    profile_name: str | None,
    imported_by: str,
):
    """Import a bank statement and auto-match it against payments."""
    service = SessionService(ctx.obj["db"])

    try:
        result = service.import_statement(
            statement_file,
            school_id=school_id,
            bank_account_name=account_name,
            bank_account_number=account_number,
            imported_by=imported_by,
            profile_name=profile_name,
        )
    except (DomainError, OSError) as e:
        handle_domain_error(ctx, e)

    click.echo("\nImport complete:")
    click.echo(f"  Session: {result['session_id']}")
    click.echo(f"  Imported: {result['imported']} transactions")
    click.echo(f"  Matched: {result['matched']}")
    click.echo(f"  Unmatched: {result['unmatched']}")
    click.echo(f"  Skipped: {result['skipped']} rows")
    for detail in result["skipped_details"]:
        click.echo(f"    Row {detail['row_num']}: {detail['reason']}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_statement)
