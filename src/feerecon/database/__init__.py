"""Database layer for feerecon."""

from feerecon.database.base import Database
from feerecon.database.factories import create_sqlite_database
from feerecon.database.payment_ledger import SQLAlchemyPaymentLedger

__all__ = ["Database", "SQLAlchemyPaymentLedger", "create_sqlite_database"]
