"""Bank statement parsing.

Turns rows of a bank export (header -> cell mappings) into normalized
ParsedTransaction values according to a BankProfile. Parsing is a pure
transform: rows that cannot be read are dropped and reported, never fatal.
"""

import csv
import logging
from dataclasses import replace
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence

from feerecon.domain.entities import BankProfile, Direction, ParsedTransaction
from feerecon.domain.errors import StatementParseError
from feerecon.utils.amount_parser import parse_amount
from feerecon.utils.date_parser import parse_statement_date

logger = logging.getLogger(__name__)


def _cell(row: Mapping[Any, Any], column: Optional[str]) -> Any:
    if not column:
        return None
    value = row.get(column)
    if isinstance(value, str):
        return value.strip()
    return value


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _raw_copy(row: Mapping[Any, Any]) -> dict[str, Any]:
    """Copy a source row into JSON-safe form for audit storage."""
    raw = {}
    for key, value in row.items():
        if value is None or isinstance(value, (str, int, float, bool)):
            raw[str(key)] = value
        else:
            raw[str(key)] = str(value)
    return raw


def determine_direction(
    raw_amount: Decimal, type_value: Any, profile: BankProfile
) -> Direction:
    """Decide credit/debit for a row.

    With a type column configured, the credit and debit indicators are looked
    up in the cell as case-insensitive substrings. The indicator found
    earliest in the cell decides, the longer one on a tie, so a "Credit" cell
    reads as a credit even with single-letter "C"/"D" indicators. Without a
    type column (or when neither indicator occurs), the sign of the raw
    amount decides.
    """
    type_str = _text(type_value).upper()
    if profile.type_column and type_str:
        found = []
        for indicator, direction in (
            (profile.debit_indicator, Direction.DEBIT),
            (profile.credit_indicator, Direction.CREDIT),
        ):
            if indicator:
                position = type_str.find(indicator.upper())
                if position >= 0:
                    found.append((position, -len(indicator), direction))
        if found:
            return min(found, key=lambda item: item[:2])[2]
    return Direction.DEBIT if raw_amount < 0 else Direction.CREDIT


def check_required_columns(headers: Iterable[str], profile: BankProfile) -> None:
    """Raise StatementParseError when the profile's date or amount column is absent."""
    header_set = {h.strip() for h in headers if h is not None}
    missing = [c for c in (profile.date_column, profile.amount_column) if c.strip() not in header_set]
    if missing:
        raise StatementParseError(
            f"Statement is missing required columns for profile '{profile.name}': "
            f"{', '.join(missing)}"
        )


def parse_statement_rows(
    rows: Sequence[Mapping[Any, Any]], profile: BankProfile, first_row_num: int = 2
) -> tuple[list[ParsedTransaction], list[dict[str, Any]]]:
    """Parse statement rows and report the rows that were dropped.

    Args:
        rows: Rows keyed by column header
        profile: Bank profile describing the columns
        first_row_num: Line number of the first data row, used in skip reports

    Returns:
        Tuple of (parsed transactions, skipped rows). Each skipped entry has
        "row_num" and "reason".
    """
    transactions: list[ParsedTransaction] = []
    skipped: list[dict[str, Any]] = []

    for row_num, row in enumerate(rows, start=first_row_num):
        try:
            transaction_date = parse_statement_date(
                _cell(row, profile.date_column), profile.date_format
            )
        except ValueError as e:
            skipped.append({"row_num": row_num, "reason": str(e)})
            logger.debug("Row %d skipped: %s", row_num, e)
            continue

        try:
            raw_amount = parse_amount(_cell(row, profile.amount_column))
        except ValueError as e:
            skipped.append({"row_num": row_num, "reason": str(e)})
            logger.debug("Row %d skipped: %s", row_num, e)
            continue

        if raw_amount == 0:
            skipped.append({"row_num": row_num, "reason": "Zero amount"})
            logger.debug("Row %d skipped: zero amount", row_num)
            continue

        direction = determine_direction(raw_amount, _cell(row, profile.type_column), profile)

        balance = Decimal("0")
        balance_value = _cell(row, profile.balance_column)
        if balance_value not in (None, ""):
            try:
                balance = parse_amount(balance_value)
            except ValueError:
                logger.debug("Row %d: unreadable balance %r", row_num, balance_value)

        transactions.append(
            ParsedTransaction(
                transaction_date=transaction_date,
                value_date=transaction_date,
                reference=_text(_cell(row, profile.reference_column)),
                description=_text(_cell(row, profile.description_column)),
                amount=abs(raw_amount),
                direction=direction,
                balance=balance,
                raw_data=_raw_copy(row),
            )
        )

    return transactions, skipped


def parse_statement(
    rows: Sequence[Mapping[Any, Any]], profile: BankProfile
) -> list[ParsedTransaction]:
    """Parse statement rows into transactions, silently dropping unreadable rows.

    Args:
        rows: Rows keyed by column header
        profile: Bank profile describing the columns

    Returns:
        List of parsed transactions in row order
    """
    transactions, _ = parse_statement_rows(rows, profile)
    return transactions


def detect_profile(
    headers: Sequence[str], profiles: Sequence[BankProfile]
) -> Optional[BankProfile]:
    """Pick the bank profile that fits a statement header row.

    A profile qualifies when both its date column and its amount column occur
    as a substring of some header. Profiles whose date and amount columns are
    exact headers rank above substring-only matches; within a rank the one
    with the most configured columns present wins, and ties go to the
    earlier profile.

    Args:
        headers: Header cells of the statement
        profiles: Profiles to consider, in configuration order

    Returns:
        The chosen profile, or None if no profile qualifies
    """
    cleaned = [h.strip() for h in headers if h]

    def present(column: str) -> bool:
        return any(column in header for header in cleaned)

    best: Optional[BankProfile] = None
    best_rank = (False, -1)
    for profile in profiles:
        if not (present(profile.date_column) and present(profile.amount_column)):
            continue
        exact = profile.date_column in cleaned and profile.amount_column in cleaned
        score = sum(1 for column in profile.configured_columns() if present(column))
        if (exact, score) > best_rank:
            best = profile
            best_rank = (exact, score)
    return best


def resolve_columns(headers: Iterable[Any], profile: BankProfile) -> BankProfile:
    """Bind a profile's column names to the headers of one statement.

    Each configured column maps to the header equal to it (ignoring
    surrounding spaces), or failing that to the first header containing it,
    so a profile column "Amount" reads a header like "Amount (UGX)". Columns
    with no such header are left unchanged.
    """
    keys = [h for h in headers if isinstance(h, str) and h.strip()]

    def resolve(column: Optional[str]) -> Optional[str]:
        if not column:
            return column
        for key in keys:
            if key.strip() == column:
                return key
        for key in keys:
            if column in key:
                return key
        return column

    return replace(
        profile,
        date_column=resolve(profile.date_column),
        reference_column=resolve(profile.reference_column),
        description_column=resolve(profile.description_column),
        amount_column=resolve(profile.amount_column),
        type_column=resolve(profile.type_column),
        balance_column=resolve(profile.balance_column),
    )


def _read_lines(path: Path) -> list[str]:
    if not path.exists():
        raise FileNotFoundError(f"Statement file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            return f.read().splitlines()
    except UnicodeDecodeError as e:
        raise StatementParseError(f"Statement file {path} is not valid UTF-8 text: {e}")


def _sniff_delimiter(sample: str) -> str:
    try:
        return csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
    except csv.Error:
        return ","


def read_statement_headers(file_path: str | Path, header_row: int = 1) -> list[str]:
    """Read the header cells of a delimited statement file.

    Args:
        file_path: Path to the statement file
        header_row: 1-based line number of the header

    Returns:
        List of header names, or an empty list if the file is shorter than header_row
    """
    lines = _read_lines(Path(file_path))
    if len(lines) < header_row:
        return []
    header_line = lines[header_row - 1]
    delimiter = _sniff_delimiter("\n".join(lines[header_row - 1 : header_row + 4]))
    return [h.strip() for h in next(csv.reader([header_line], delimiter=delimiter))]


def read_statement_rows(file_path: str | Path, header_row: int = 1) -> list[dict[str, str]]:
    """Read a delimited statement file into rows keyed by header.

    Lines above the header row (bank letterheads, account banners) are
    skipped. Blank lines are ignored.

    Args:
        file_path: Path to the statement file
        header_row: 1-based line number of the header

    Returns:
        List of row dicts

    Raises:
        FileNotFoundError: If the file does not exist
        StatementParseError: If the file has no header row
    """
    lines = _read_lines(Path(file_path))
    body = [line for line in lines[header_row - 1 :] if line.strip()]
    if not body:
        raise StatementParseError(f"Statement file {file_path} has no header row")

    delimiter = _sniff_delimiter("\n".join(body[:5]))
    reader = csv.DictReader(body, delimiter=delimiter)
    if reader.fieldnames is None:
        raise StatementParseError(f"Statement file {file_path} has no columns")
    reader.fieldnames = [name.strip() for name in reader.fieldnames]

    rows = []
    for row in reader:
        rows.append({key: value for key, value in row.items() if key is not None})
    return rows
