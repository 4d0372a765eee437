"""DataFrame view of a transaction batch, shared by the detection tools"""

from typing import Any, Iterable, List, Mapping, Union

import pandas as pd

from spendwatch.models.transaction import Transaction

FRAME_COLUMNS = ['department', 'vendor', 'amount', 'date', 'description']

TransactionLike = Union[Transaction, Mapping[str, Any]]


def as_transactions(records: Iterable[TransactionLike]) -> List[Transaction]:
    """Validate plain dicts into Transaction models, passing models through"""
    return [
        record if isinstance(record, Transaction) else Transaction.model_validate(record)
        for record in records
    ]


def transactions_to_frame(transactions: Iterable[TransactionLike]) -> pd.DataFrame:
    """
    Build the working DataFrame for a batch.

    Columns: department, vendor, amount (float), date (raw text), description,
    and ts - the parsed naive timestamp, NaT when the date is missing or
    unparseable. Row order follows input order.
    """
    transactions = as_transactions(transactions)

    df = pd.DataFrame([t.model_dump() for t in transactions], columns=FRAME_COLUMNS)
    df['amount'] = df['amount'].astype(float)
    df['ts'] = pd.Series(
        [t.parsed_date for t in transactions],
        index=df.index,
        dtype='datetime64[ns]'
    )
    return df


def unique_in_order(values: Iterable[Any]) -> List[Any]:
    """Distinct values keeping first-seen order"""
    return list(dict.fromkeys(values))
