"""Amount parsing utilities."""

from decimal import Decimal
import re
from typing import Any

# Numeric core with optional currency text around it: codes and abbreviations
# such as UGX, UShs or KShs, symbols, and the "/=" or "/-" suffix
AMOUNT_PATTERN = re.compile(
    r"^(?P<prefix>[A-Za-z$€£¥.\s+-]*?)"
    r"(?P<number>\d[\d,\s]*(?:\.\d+)?|\.\d+)"
    r"(?P<suffix>[A-Za-z$€£¥/=.\s-]*)$"
)


def parse_amount(value: Any) -> Decimal:
    """Parse a statement amount into a Decimal.

    Handles various formats:
    - "500000" and numeric cell values
    - "UGX 500,000" / "500,000 UGX" / "UShs 500,000" / "Shs. 500,000"
    - "500,000/="
    - "-1,234.56"
    - "(15,000)" (negative in parentheses)

    Args:
        value: Amount string or number

    Returns:
        Decimal amount

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError(f"Could not parse amount '{value}'")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise ValueError(f"Could not parse amount '{value}'")
        return amount

    if value is None or not str(value).strip():
        raise ValueError("Empty amount string")

    amount_str = str(value).strip().strip('"').strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1].strip()

    match = AMOUNT_PATTERN.match(amount_str)
    if match is None:
        raise ValueError(f"Could not parse amount '{value}'")
    if "-" in match.group("prefix"):
        is_negative = True

    # Drop thousands separators and digit-group spaces
    amount = Decimal(re.sub(r"[,\s]", "", match.group("number")))
    return -amount if is_negative else amount
