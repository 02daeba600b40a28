"""Utility functions for feerecon."""

from feerecon.utils.date_parser import parse_date, parse_statement_date
from feerecon.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_statement_date", "parse_amount"]
