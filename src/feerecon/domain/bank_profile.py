"""Bank profile domain service."""

from pathlib import Path
from typing import Optional

from feerecon.database.base import Database
from feerecon.domain.entities import BankProfile
from feerecon.domain.errors import NotFoundError, ValidationError, profile_not_found
from feerecon.domain.statement_parser import detect_profile, read_statement_headers
from feerecon.utils.date_parser import STATEMENT_DATE_FORMATS

# Statement layouts of the Ugandan banks schools most commonly bank with.
BUILTIN_PROFILES: dict[str, BankProfile] = {
    "stanbic": BankProfile(
        name="stanbic",
        bank_name="Stanbic Bank Uganda",
        date_format="DD/MM/YYYY",
        date_column="Transaction Date",
        reference_column="Reference",
        description_column="Description",
        amount_column="Amount",
        type_column="Dr/Cr",
        balance_column="Balance",
        credit_indicator="CR",
        debit_indicator="DR",
    ),
    "dfcu": BankProfile(
        name="dfcu",
        bank_name="DFCU Bank",
        date_format="DD-MMM-YYYY",
        date_column="Date",
        reference_column="Reference No",
        description_column="Particulars",
        amount_column="Amount",
        type_column="Transaction Type",
        balance_column="Running Balance",
        credit_indicator="Credit",
        debit_indicator="Debit",
    ),
    "equity": BankProfile(
        name="equity",
        bank_name="Equity Bank Uganda",
        date_format="YYYY-MM-DD",
        date_column="Trans Date",
        reference_column="Trans Ref",
        description_column="Narration",
        amount_column="Amount",
        balance_column="Balance",
    ),
    "centenary": BankProfile(
        name="centenary",
        bank_name="Centenary Bank",
        date_format="DD/MM/YYYY",
        date_column="Value Date",
        reference_column="Reference",
        description_column="Transaction Details",
        amount_column="Amount",
        type_column="Type",
        balance_column="Balance",
        header_row=2,
        credit_indicator="C",
        debit_indicator="D",
    ),
    "standard_chartered": BankProfile(
        name="standard_chartered",
        bank_name="Standard Chartered Uganda",
        date_format="DD-MM-YYYY",
        date_column="Date",
        reference_column="Transaction Reference",
        description_column="Description",
        amount_column="Amount",
        type_column="Debit/Credit",
        balance_column="Closing Balance",
    ),
}


class BankProfileService:
    """Service for managing bank statement profiles.

    Built-in profiles are always available and cannot be changed. Custom
    profiles are stored in the database and listed after the built-ins.
    """

    def __init__(self, db: Database):
        """Initialize bank profile service.

        Args:
            db: Database instance
        """
        self.db = db

    def list_profiles(self) -> list[BankProfile]:
        """List all profiles in configuration order (built-ins first).

        Returns:
            List of bank profiles
        """
        return list(BUILTIN_PROFILES.values()) + self.db.list_bank_profiles()

    def get_profile(self, name: str) -> Optional[BankProfile]:
        """Get a profile by name.

        Args:
            name: Profile name

        Returns:
            Bank profile or None if not found
        """
        if name in BUILTIN_PROFILES:
            return BUILTIN_PROFILES[name]
        return self.db.get_bank_profile_by_name(name)

    def require_profile(self, name: str) -> BankProfile:
        """Get a profile by name, raising NotFoundError if it does not exist."""
        profile = self.get_profile(name)
        if profile is None:
            raise NotFoundError(profile_not_found(name))
        return profile

    def create_profile(
        self,
        name: str,
        bank_name: str,
        date_column: str,
        amount_column: str,
        date_format: str,
        reference_column: str = "",
        description_column: str = "",
        type_column: Optional[str] = None,
        credit_indicator: Optional[str] = None,
        debit_indicator: Optional[str] = None,
        balance_column: Optional[str] = None,
        header_row: int = 1,
    ) -> int:
        """Create a custom bank profile.

        Args:
            name: Unique profile name
            bank_name: Display name of the bank
            date_column: Header of the transaction date column
            amount_column: Header of the amount column
            date_format: One of the supported date format tags
            reference_column: Header of the bank reference column
            description_column: Header of the narration column
            type_column: Optional header of the credit/debit indicator column
            credit_indicator: Substring marking a credit in type_column
            debit_indicator: Substring marking a debit in type_column
            balance_column: Optional header of the running balance column
            header_row: 1-based line number of the header row

        Returns:
            Profile ID

        Raises:
            ValidationError: If the name is taken or the profile is incomplete
        """
        name = name.strip()
        if not name:
            raise ValidationError("Profile name must not be empty")
        if self.get_profile(name) is not None:
            raise ValidationError(f"Bank profile with name '{name}' already exists")
        if not date_column.strip() or not amount_column.strip():
            raise ValidationError("Profile requires both a date column and an amount column")
        if date_format not in STATEMENT_DATE_FORMATS:
            raise ValidationError(
                f"Invalid date format '{date_format}'. "
                f"Must be one of: {', '.join(STATEMENT_DATE_FORMATS)}"
            )
        if type_column and not (credit_indicator or debit_indicator):
            raise ValidationError(
                "A type column needs a credit indicator, a debit indicator, or both"
            )
        if header_row < 1:
            raise ValidationError("Header row must be 1 or greater")

        return self.db.create_bank_profile(
            name=name,
            bank_name=bank_name,
            date_column=date_column.strip(),
            reference_column=reference_column.strip(),
            description_column=description_column.strip(),
            amount_column=amount_column.strip(),
            date_format=date_format,
            type_column=type_column or None,
            credit_indicator=credit_indicator or None,
            debit_indicator=debit_indicator or None,
            balance_column=balance_column or None,
            header_row=header_row,
        )

    def delete_profile(self, name: str) -> None:
        """Delete a custom bank profile.

        Args:
            name: Profile name

        Raises:
            ValidationError: If the profile is built in
            NotFoundError: If no custom profile has that name
        """
        if name in BUILTIN_PROFILES:
            raise ValidationError(f"Built-in bank profile '{name}' cannot be deleted")
        profile = self.db.get_bank_profile_by_name(name)
        if profile is None:
            raise NotFoundError(profile_not_found(name))
        self.db.delete_bank_profile(profile.id)

    def detect_for_file(self, file_path: str | Path) -> Optional[BankProfile]:
        """Detect the profile matching a statement file's header row.

        Every distinct header row used by the known profiles is tried, so a
        bank whose export has a banner line above the header is still found.

        Args:
            file_path: Path to the statement file

        Returns:
            The detected profile, or None
        """
        profiles = self.list_profiles()
        for header_row in sorted({p.header_row for p in profiles}):
            headers = read_statement_headers(file_path, header_row=header_row)
            candidates = [p for p in profiles if p.header_row == header_row]
            profile = detect_profile(headers, candidates)
            if profile is not None:
                return profile
        return None
