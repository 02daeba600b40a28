"""Integration tests for end-to-end CLI workflows."""

import pytest
from feerecon.cli.main import cli


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh database file for one CLI workflow."""
    return str(tmp_path / "feerecon.db")


@pytest.fixture
def run(cli_runner, db_path):
    """Invoke the CLI against the workflow database."""

    def _run(*args):
        return cli_runner.invoke(cli, ["--db-path", db_path, *args])

    return _run


def _record_sample_payments(run):
    result = run(
        "payment", "record", "--school", "kia", "--student-id", "S001",
        "--student-name", "Mukasa John", "--amount", "500,000",
        "--date", "2024-01-15", "--method", "mobile_money",
    )
    assert result.exit_code == 0
    assert "Recorded payment 1" in result.output

    result = run(
        "payment", "record", "--school", "kia", "--student-id", "S002",
        "--student-name", "Namuli Sarah", "--amount", "750000",
        "--date", "2024-01-16", "--receipt", "RCT-1002",
    )
    assert result.exit_code == 0

    result = run(
        "payment", "record", "--school", "kia", "--student-id", "S003",
        "--student-name", "Okello Peter", "--amount", "120000",
        "--date", "2024-01-20",
    )
    assert result.exit_code == 0


def _import_stanbic(run, fixtures_dir):
    return run(
        "import", str(fixtures_dir / "stanbic_statement.csv"),
        "--school", "kia", "--account-name", "Fees Collection",
        "--account-number", "9030012345678", "--user", "bursar",
    )


def test_full_workflow(run, fixtures_dir):
    """Test payments → import → review → manual fixes → summary → complete."""
    _record_sample_payments(run)

    # Import detects the Stanbic layout and auto-matches two credits
    result = _import_stanbic(run, fixtures_dir)
    assert result.exit_code == 0
    assert "Session: 1" in result.output
    assert "Imported: 4 transactions" in result.output
    assert "Matched: 2" in result.output
    assert "Unmatched: 1" in result.output
    assert "Skipped: 1 rows" in result.output

    result = run("session", "list")
    assert result.exit_code == 0
    assert "2/4 matched" in result.output
    assert "in_progress" in result.output

    result = run("session", "show", "1")
    assert result.exit_code == 0
    assert "Period:       2024-01-15 to 2024-01-18" in result.output
    assert "Bank:         Stanbic Bank Uganda" in result.output

    # Payment 3 falls after the statement period but within the suggestion window
    result = run("session", "transactions", "1", "--status", "unmatched")
    assert result.exit_code == 0
    assert "CASH DEPOSIT UNKNOWN" in result.output
    assert "? payment 3 Okello Peter" in result.output

    result = run("match", "suggest", "4")
    assert result.exit_code == 0
    assert "Payment    3" in result.output

    result = run("match", "manual", "4", "3", "--user", "bursar", "--notes", "paid at bank")
    assert result.exit_code == 0
    assert "Matched transaction 4 to payment 3" in result.output

    result = run("match", "ignore", "3", "--reason", "bank_charges", "--user", "bursar")
    assert result.exit_code == 0
    assert "ignored (bank_charges)" in result.output

    result = run("payment", "list", "--school", "kia", "--unreconciled")
    assert result.exit_code == 0
    assert "No payments found." in result.output

    result = run("summary", "1")
    assert result.exit_code == 0
    assert "Bank credits:" in result.output and "1,370,000.00" in result.output
    assert "Bank debits:" in result.output and "15,000.00" in result.output
    assert "75.0%" in result.output
    assert "manual_match" in result.output
    assert "ignored" in result.output

    result = run("session", "repair", "1", "--check")
    assert result.exit_code == 0
    assert "counters are consistent" in result.output

    result = run("session", "complete", "1", "--user", "head")
    assert result.exit_code == 0
    assert "Session 1 completed" in result.output

    # Completed sessions are frozen
    result = run("match", "unmatch", "4")
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_unmatch_and_rerun(run, fixtures_dir):
    """Test unmatching a credit and re-running matching leaves it unmatched."""
    _record_sample_payments(run)
    assert _import_stanbic(run, fixtures_dir).exit_code == 0

    result = run("match", "unmatch", "1")
    assert result.exit_code == 0
    assert "Transaction 1 is unmatched" in result.output

    # Only pending credits are considered, so nothing new is matched
    result = run("match", "run", "1")
    assert result.exit_code == 0
    assert "Matched: 0, unmatched: 0" in result.output

    result = run("session", "transactions", "1", "--status", "unmatched")
    assert "MOBILE MONEY DEPOSIT MUKASA JOHN" in result.output
    assert "? payment 1 Mukasa John" in result.output


def test_import_with_explicit_profile(run, fixtures_dir):
    """Test importing a statement whose header is not on the first line."""
    result = run(
        "import", str(fixtures_dir / "centenary_statement.csv"),
        "--school", "kia", "--account-name", "Fees", "--account-number", "1",
        "--profile", "centenary", "--user", "bursar",
    )

    assert result.exit_code == 0
    assert "Session: 1" in result.output


def test_import_unknown_layout(run, fixtures_dir):
    """Test an undetectable statement fails with a clear error."""
    result = run(
        "import", str(fixtures_dir / "unknown_statement.csv"),
        "--school", "kia", "--account-name", "Fees", "--account-number", "1",
        "--user", "bursar",
    )

    assert result.exit_code == 1
    assert "Error:" in result.output

    result = run("session", "list")
    assert "No sessions found." in result.output


def test_profile_commands(run, fixtures_dir, tmp_path):
    """Test listing, creating, detecting and deleting bank profiles."""
    result = run("profile", "list")
    assert result.exit_code == 0
    assert "stanbic" in result.output
    assert "built-in" in result.output

    result = run("profile", "show", "centenary")
    assert result.exit_code == 0
    assert "Header row:         2" in result.output

    result = run("profile", "detect", str(fixtures_dir / "equity_statement.csv"))
    assert result.exit_code == 0
    assert "Detected profile: equity" in result.output

    result = run(
        "profile", "create", "absa", "--bank", "ABSA Uganda",
        "--date-column", "Posting Date", "--amount-column", "Amount",
        "--description-column", "Narrative", "--date-format", "DD-MMM-YYYY",
    )
    assert result.exit_code == 0
    assert "Created bank profile 'absa'" in result.output

    statement = tmp_path / "absa.csv"
    statement.write_text("Posting Date,Narrative,Amount\n15-Jan-2024,FEES,1000\n")
    result = run("profile", "detect", str(statement))
    assert "Detected profile: absa" in result.output

    result = run("profile", "delete", "absa")
    assert result.exit_code == 0

    result = run("profile", "delete", "stanbic")
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_unknown_ids_exit_with_error(run):
    """Test commands on missing records exit with status 1."""
    for args in (
        ("session", "show", "99"),
        ("summary", "99"),
        ("match", "suggest", "99"),
        ("match", "ignore", "99", "--reason", "other", "--user", "bursar"),
        ("profile", "show", "nope"),
    ):
        result = run(*args)
        assert result.exit_code == 1, args
        assert "Error:" in result.output


def test_invalid_payment_amount(run):
    """Test an unparseable payment amount is rejected."""
    result = run(
        "payment", "record", "--school", "kia", "--student-id", "S1",
        "--student-name", "X", "--amount", "abc", "--date", "2024-01-15",
    )

    assert result.exit_code == 1
    assert "Error:" in result.output
