"""Raw portal/file records -> normalized Transaction models"""

import math
from datetime import date as calendar_date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from spendwatch.constants import UNKNOWN_LABEL
from spendwatch.models.transaction import Transaction
from spendwatch.utils.logging import get_logger

logger = get_logger(__name__)

# Canonical field -> candidate source keys, first non-empty value wins
CANONICAL_FIELDS: Dict[str, Sequence[str]] = {
    'department': ['department'],
    'vendor': ['vendor'],
    'amount': ['amount'],
    'date': ['date'],
    'description': ['description'],
}


def _is_missing(value: Any) -> bool:
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _first_present(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if not _is_missing(value):
            return value
    return None


def parse_amount(value: Any) -> float:
    """
    Parse a dollar amount, tolerating "$" and thousands separators.

    Returns 0.0 for missing, unparseable or non-finite values.
    """
    if _is_missing(value):
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace('$', '').replace(',', '')
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount


def _label(value: Any) -> str:
    return UNKNOWN_LABEL if _is_missing(value) else str(value)


def _date_text(value: Any) -> str:
    if _is_missing(value):
        return ""
    if isinstance(value, (datetime, calendar_date)):
        return value.isoformat()
    return str(value)


def _description(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    text = str(value)
    return text if text.strip() else None


def normalize_record(
    record: Mapping[str, Any],
    field_map: Optional[Mapping[str, Sequence[str]]] = None
) -> Optional[Transaction]:
    """
    Normalize one raw record.

    Args:
        record: Raw record (API row, CSV row as dict)
        field_map: Canonical field -> candidate keys in priority order

    Returns:
        Transaction, or None when the amount is negative (refunds and
        reversals are outside the detector's domain)
    """
    field_map = field_map or CANONICAL_FIELDS

    amount = parse_amount(_first_present(record, field_map['amount']))
    if amount < 0:
        return None

    return Transaction(
        department=_label(_first_present(record, field_map['department'])),
        vendor=_label(_first_present(record, field_map['vendor'])),
        amount=amount,
        date=_date_text(_first_present(record, field_map['date'])),
        description=_description(_first_present(record, field_map['description'])),
    )


def normalize_records(
    records: Iterable[Mapping[str, Any]],
    field_map: Optional[Mapping[str, Sequence[str]]] = None,
    source: str = "unknown"
) -> List[Transaction]:
    """Normalize a batch, keeping input order and dropping negative amounts"""
    transactions = []
    dropped = 0

    for record in records:
        transaction = normalize_record(record, field_map)
        if transaction is None:
            dropped += 1
            continue
        transactions.append(transaction)

    if dropped:
        logger.warning(
            "Dropped records with negative amounts",
            source=source,
            dropped=dropped,
            kept=len(transactions)
        )

    return transactions
