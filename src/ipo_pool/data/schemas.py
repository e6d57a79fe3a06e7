"""
Data schemas for CSV file validation.

Defines expected columns for roster imports and report exports.
"""

from dataclasses import dataclass


@dataclass
class ColumnSchema:
    """Schema definition for a single column."""
    name: str
    dtype: str  # pandas dtype string
    required: bool = True
    nullable: bool = False


@dataclass
class FileSchema:
    """Schema definition for a file."""
    name: str
    columns: list[ColumnSchema]
    description: str

    @property
    def required_columns(self) -> list[str]:
        """Get list of required column names."""
        return [c.name for c in self.columns if c.required]

    @property
    def all_columns(self) -> list[str]:
        """Get list of all column names."""
        return [c.name for c in self.columns]

    def validate_columns(self, df_columns: list[str]) -> tuple[bool, list[str]]:
        """
        Validate that a dataframe has the required columns.

        Args:
            df_columns: List of column names from the dataframe

        Returns:
            Tuple of (is_valid, list of missing columns)
        """
        missing = [col for col in self.required_columns if col not in df_columns]
        return len(missing) == 0, missing


# Demat account roster (input)
DEMAT_ACCOUNTS_SCHEMA = FileSchema(
    name="demat_accounts",
    description="Demat accounts with owner and commission rate",
    columns=[
        ColumnSchema(name="account_name", dtype="str", required=True),
        ColumnSchema(name="owner_name", dtype="str", required=True),
        ColumnSchema(name="commission_rate", dtype="str", required=True),
    ],
)

# Participant roster (input)
PARTICIPANTS_SCHEMA = FileSchema(
    name="participants",
    description="Participants with contribution and demat account",
    columns=[
        ColumnSchema(name="name", dtype="str", required=True),
        ColumnSchema(name="investment_amount", dtype="str", required=True),
        # Account id or account name
        ColumnSchema(name="demat_account", dtype="str", required=True),
    ],
)

# Individual participant returns (output)
PARTICIPANT_REPORT_SCHEMA = FileSchema(
    name="participant_report",
    description="Individual participant returns per settled pool",
    columns=[
        ColumnSchema(name="Participant Name", dtype="str"),
        ColumnSchema(name="Investment Amount", dtype="str"),
        ColumnSchema(name="Demat Account", dtype="str"),
        ColumnSchema(name="Account Owner", dtype="str"),
        ColumnSchema(name="Status", dtype="str"),
        ColumnSchema(name="Individual Return", dtype="str"),
        ColumnSchema(name="Profit/Loss", dtype="str"),
    ],
)

# Per-account settlement summary (output)
ACCOUNT_SUMMARY_SCHEMA = FileSchema(
    name="account_summary",
    description="Settlement summary per demat account",
    columns=[
        ColumnSchema(name="Account", dtype="str"),
        ColumnSchema(name="Owner", dtype="str"),
        ColumnSchema(name="Participants", dtype="str"),
        ColumnSchema(name="Total Investment", dtype="str"),
        ColumnSchema(name="Status", dtype="str"),
        ColumnSchema(name="Sale Price", dtype="str", required=False, nullable=True),
        ColumnSchema(name="Final Amount", dtype="str"),
        ColumnSchema(name="Commission", dtype="str"),
        ColumnSchema(name="Net Profit/Loss", dtype="str"),
    ],
)
