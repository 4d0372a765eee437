"""Load transactions from local CSV/JSON checkbook exports"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from spendwatch.ingest.normalize import normalize_records
from spendwatch.models.transaction import Transaction
from spendwatch.utils.errors import DataLoadError
from spendwatch.utils.logging import get_logger

logger = get_logger(__name__)

# Canonical names first, then Boston checkbook and CTHRU column names
DEFAULT_COLUMN_ALIASES: Dict[str, Sequence[str]] = {
    'department': ['department', 'Dept Name', 'agency'],
    'vendor': ['vendor', 'Vendor Name', 'vendor_name'],
    'amount': ['amount', 'Monetary Amount', 'check_amount'],
    'date': ['date', 'Entered', 'check_date'],
    'description': ['description', 'Account Descr', 'object_class'],
}

SUPPORTED_SUFFIXES = ('.csv', '.json')


class TransactionFileLoader:
    """
    Reads a checkbook export into normalized transactions.

    Works the same way as the portal clients so an audit can run against a
    downloaded extract instead of a live portal.
    """

    def __init__(self, path: str, column_map: Optional[Dict[str, str]] = None):
        """
        Args:
            path: CSV or JSON (list of records) file
            column_map: Canonical field -> file column, overriding the built-in aliases
        """
        self.path = Path(path)
        if self.path.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise DataLoadError(f"Unsupported file type '{self.path.suffix}': expected .csv or .json")

        self.field_map = {field: list(aliases) for field, aliases in DEFAULT_COLUMN_ALIASES.items()}
        for field, column in (column_map or {}).items():
            if field not in self.field_map:
                raise DataLoadError(f"Unknown transaction field in column map: {field}")
            self.field_map[field] = [column]

    def _read_frame(self) -> pd.DataFrame:
        if not self.path.exists():
            raise DataLoadError(f"Transaction file not found: {self.path}")

        try:
            if self.path.suffix.lower() == '.csv':
                # keep raw text; amounts and dates are parsed during normalization
                return pd.read_csv(self.path, dtype=str, keep_default_na=False)
            return pd.read_json(self.path, orient='records', dtype=False, convert_dates=False)
        except (OSError, ValueError) as e:
            raise DataLoadError(f"Error reading {self.path.name}: {e}") from e

    def load(self, limit: Optional[int] = None) -> List[Transaction]:
        """
        Load and normalize the file, keeping row order

        Args:
            limit: Keep only the first `limit` rows

        Raises:
            DataLoadError: If the file is missing, unreadable or lacks an amount column
        """
        df = self._read_frame()

        if not df.empty and not any(column in df.columns for column in self.field_map['amount']):
            raise DataLoadError(
                f"{self.path.name} has no amount column (looked for {self.field_map['amount']})"
            )

        if limit is not None:
            df = df.head(limit)

        transactions = normalize_records(df.to_dict(orient='records'), self.field_map, source="file")
        logger.info(f"Loaded {len(transactions)} transactions from {self.path.name}", rows=len(df))
        return transactions


def load_transactions(path: str, limit: Optional[int] = None, column_map: Optional[Dict[str, str]] = None) -> List[Transaction]:
    """Convenience wrapper around TransactionFileLoader"""
    return TransactionFileLoader(path, column_map).load(limit)
