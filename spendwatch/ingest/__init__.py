"""Data fetchers: open-data portal clients, file loader and record normalization"""

from .boston_client import BostonCheckbookClient
from .file_loader import TransactionFileLoader, load_transactions
from .massachusetts_client import MassachusettsCheckbookClient
from .normalize import normalize_record, normalize_records, parse_amount

__all__ = [
    "BostonCheckbookClient",
    "MassachusettsCheckbookClient",
    "TransactionFileLoader",
    "load_transactions",
    "normalize_record",
    "normalize_records",
    "parse_amount",
]
