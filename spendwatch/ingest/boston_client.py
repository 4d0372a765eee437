"""City of Boston checkbook client (Analyze Boston CKAN datastore)"""

import os
from typing import Any, Dict, List, Optional

from spendwatch.constants import DEFAULT_TRANSACTION_LIMIT, UNKNOWN_LABEL
from spendwatch.ingest.normalize import normalize_records, parse_amount
from spendwatch.ingest.portal_client import PortalClient
from spendwatch.models.summary import SpendingSummary, SpendingTotal
from spendwatch.models.transaction import Transaction
from spendwatch.utils.config_loader import DEFAULT_SOURCES, get_source_config
from spendwatch.utils.errors import DataSourceError
from spendwatch.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FISCAL_YEAR = DEFAULT_SOURCES['boston']['fiscal_year']
DEFAULT_FISCAL_YEAR_NUMBER = 2025

# Canonical field -> checkbook column
FIELDS = {
    'department': 'Dept Name',
    'vendor': 'Vendor Name',
    'amount': 'Monetary Amount',
    'date': 'Entered',
    'description': 'Account Descr',
}

SUMMARY_TOP_N = 15
LARGE_PAYMENT_LIMIT = 100


def quote_literal(value: str) -> str:
    """Render a SQL string literal, doubling embedded single quotes"""
    return "'" + str(value).replace("'", "''") + "'"


def fiscal_year_number(fiscal_year: str) -> int:
    """'fy25' -> 2025, falling back to the default year when unparseable"""
    try:
        return int(str(fiscal_year).lower().replace('fy', '20', 1))
    except ValueError:
        return DEFAULT_FISCAL_YEAR_NUMBER


class BostonCheckbookClient(PortalClient):
    """
    Query the Boston checkbook with CKAN's datastore_search_sql action.

    Each fiscal year is a separate datastore resource; unknown fiscal years
    fall back to the default one.
    """

    source = "boston"

    def __init__(
        self,
        fiscal_year: Optional[str] = None,
        base_url: str = DEFAULT_SOURCES['boston']['base_url'],
        datasets: Optional[Dict[str, str]] = None,
        **kwargs
    ):
        super().__init__(base_url, **kwargs)
        self.datasets = datasets or dict(DEFAULT_SOURCES['boston']['datasets'])
        self.fiscal_year = (fiscal_year or DEFAULT_FISCAL_YEAR).lower()

        if self.fiscal_year not in self.datasets:
            logger.warning(
                "Unknown fiscal year, using default",
                requested=self.fiscal_year,
                default=DEFAULT_FISCAL_YEAR
            )

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None, fiscal_year: Optional[str] = None, **kwargs):
        """Build a client from the `sources.boston` config section and $BOSTON_FISCAL_YEAR"""
        settings = get_source_config(config, 'boston')
        return cls(
            fiscal_year=fiscal_year or os.getenv("BOSTON_FISCAL_YEAR") or settings['fiscal_year'],
            base_url=settings['base_url'],
            datasets=settings['datasets'],
            timeout_seconds=settings['timeout_seconds'],
            max_retries=settings['max_retries'],
            retry_base_delay=settings['retry_base_delay'],
            **kwargs
        )

    @property
    def resource_id(self) -> str:
        return self.datasets.get(self.fiscal_year) or self.datasets[DEFAULT_FISCAL_YEAR]

    @property
    def fiscal_year_number(self) -> int:
        if self.fiscal_year not in self.datasets:
            return DEFAULT_FISCAL_YEAR_NUMBER
        return fiscal_year_number(self.fiscal_year)

    def run_sql(self, sql: str) -> List[Dict[str, Any]]:
        """
        Execute a datastore SQL query

        Returns:
            Result records

        Raises:
            DataSourceError: On transport failure or when the portal reports success=false
        """
        payload = self.get_json(f"{self.base_url}/datastore_search_sql", params={'sql': sql})

        if not isinstance(payload, dict) or not payload.get('success'):
            error = payload.get('error') if isinstance(payload, dict) else None
            message = (error or {}).get('message') if isinstance(error, dict) else error
            raise DataSourceError(message or 'SQL query failed', source=self.source)

        return payload.get('result', {}).get('records', [])

    def _where_department(self, department: Optional[str]) -> str:
        if not department:
            return ""
        return f' WHERE "{FIELDS["department"]}" = {quote_literal(department)}'

    def _select_transactions(self) -> str:
        columns = ",\n               ".join(
            f'"{column}" as {field}' for field, column in FIELDS.items()
        )
        return f'SELECT {columns}\n        FROM "{self.resource_id}"'

    def build_transactions_query(self, limit: int = DEFAULT_TRANSACTION_LIMIT, department: Optional[str] = None) -> str:
        """SQL for the largest `limit` payments, optionally for one department"""
        return (
            self._select_transactions()
            + self._where_department(department)
            + f' ORDER BY CAST("{FIELDS["amount"]}" AS FLOAT) DESC LIMIT {int(limit)}'
        )

    def fetch_transactions(
        self,
        limit: int = DEFAULT_TRANSACTION_LIMIT,
        department: Optional[str] = None
    ) -> List[Transaction]:
        """Fetch the largest payments as normalized transactions"""
        records = self.run_sql(self.build_transactions_query(limit, department))
        transactions = normalize_records(records, source=self.source)

        logger.info(
            "Fetched Boston transactions",
            fiscal_year=self.fiscal_year,
            department=department,
            records=len(records),
            transactions=len(transactions)
        )
        return transactions

    def count_transactions(self, department: Optional[str] = None) -> int:
        """Number of checkbook rows, optionally for one department"""
        rows = self.run_sql(f'SELECT COUNT(*) as count FROM "{self.resource_id}"' + self._where_department(department))
        return int(rows[0]['count']) if rows else 0

    def fetch_large_payments(self, threshold: float = 1_000_000) -> List[Transaction]:
        """Payments above `threshold`, largest first, capped at 100"""
        amount = f'CAST("{FIELDS["amount"]}" AS FLOAT)'
        sql = (
            self._select_transactions()
            + f' WHERE {amount} > {float(threshold)}'
            + f' ORDER BY {amount} DESC LIMIT {LARGE_PAYMENT_LIMIT}'
        )
        return normalize_records(self.run_sql(sql), source=self.source)

    def _top_totals(self, field: str) -> List[SpendingTotal]:
        amount = f'CAST("{FIELDS["amount"]}" AS FLOAT)'
        rows = self.run_sql(
            f'SELECT "{FIELDS[field]}" as name, SUM({amount}) as value '
            f'FROM "{self.resource_id}" '
            f'GROUP BY "{FIELDS[field]}" '
            f'ORDER BY value DESC LIMIT {SUMMARY_TOP_N}'
        )
        return [
            SpendingTotal(name=row.get('name') or UNKNOWN_LABEL, value=parse_amount(row.get('value')))
            for row in rows
        ]

    def fetch_summary(self) -> SpendingSummary:
        """Total spending, row count and top-15 departments/vendors, aggregated server-side"""
        amount = f'CAST("{FIELDS["amount"]}" AS FLOAT)'
        total_rows = self.run_sql(f'SELECT SUM({amount}) as total FROM "{self.resource_id}"')

        return SpendingSummary(
            total_spending=parse_amount(total_rows[0].get('total')) if total_rows else 0.0,
            total_transactions=self.count_transactions(),
            top_departments=self._top_totals('department'),
            top_vendors=self._top_totals('vendor'),
            fiscal_year=self.fiscal_year_number,
        )

    def fetch_departments(self) -> List[str]:
        """Distinct non-null department names, alphabetical"""
        column = FIELDS['department']
        rows = self.run_sql(
            f'SELECT DISTINCT "{column}" as name FROM "{self.resource_id}" '
            f'WHERE "{column}" IS NOT NULL ORDER BY "{column}"'
        )
        return [row['name'] for row in rows if row.get('name')]
