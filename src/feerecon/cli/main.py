"""Main CLI entry point."""

import logging

import click
from feerecon.database.factories import create_sqlite_database

# Import and register all commands at module level
from feerecon.cli.commands import (
    profile,
    payment,
    import_cmd,
    session,
    match,
    summary,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FEERECON_DB_PATH environment variable)",
    envvar="FEERECON_DB_PATH",
)
@click.option("--verbose", "-v", is_flag=True, help="Log import and matching details")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Feerecon - school fee bank statement reconciliation.

    Import bank statements, match bank credits to recorded fee payments,
    review suggestions, and correct matches by hand.
    """
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
profile.register_commands(cli)
payment.register_commands(cli)
import_cmd.register_commands(cli)
session.register_commands(cli)
match.register_commands(cli)
summary.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
