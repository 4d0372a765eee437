"""Massachusetts CTHRU open checkbook client (Socrata)"""

from typing import Any, Dict, List, Optional

from spendwatch.constants import DEFAULT_TRANSACTION_LIMIT
from spendwatch.ingest.normalize import normalize_records
from spendwatch.ingest.portal_client import PortalClient, as_record_list
from spendwatch.models.summary import SpendingSummary
from spendwatch.models.transaction import Transaction
from spendwatch.tools.report_tools import summarize_spending
from spendwatch.utils.config_loader import DEFAULT_SOURCES, get_source_config
from spendwatch.utils.logging import get_logger

logger = get_logger(__name__)

# Column names vary between CTHRU extracts
FIELD_FALLBACKS = {
    'department': ['department', 'agency'],
    'vendor': ['vendor', 'vendor_name'],
    'amount': ['check_amount', 'amount'],
    'date': ['check_date', 'date'],
    'description': ['description', 'object_class'],
}

SUMMARY_SAMPLE_SIZE = 5000
SUMMARY_TOP_N = 10
AGENCY_LIMIT = 500


class MassachusettsCheckbookClient(PortalClient):
    """Query the statewide expenditure dataset through the SODA JSON API"""

    source = "massachusetts"

    def __init__(
        self,
        base_url: str = DEFAULT_SOURCES['massachusetts']['base_url'],
        dataset: str = DEFAULT_SOURCES['massachusetts']['dataset'],
        **kwargs
    ):
        super().__init__(base_url, **kwargs)
        self.dataset = dataset

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None, **kwargs):
        settings = get_source_config(config, 'massachusetts')
        return cls(
            base_url=settings['base_url'],
            dataset=settings['dataset'],
            timeout_seconds=settings['timeout_seconds'],
            max_retries=settings['max_retries'],
            retry_base_delay=settings['retry_base_delay'],
            **kwargs
        )

    @property
    def dataset_url(self) -> str:
        return f"{self.base_url}/{self.dataset}.json"

    def build_transactions_params(
        self,
        limit: int = DEFAULT_TRANSACTION_LIMIT,
        agency: Optional[str] = None,
        vendor: Optional[str] = None
    ) -> Dict[str, Any]:
        """SoQL parameters for the largest payments, optionally filtered"""
        params: Dict[str, Any] = {'$limit': int(limit), '$order': 'check_amount DESC'}
        if agency:
            params['department'] = agency
        if vendor:
            escaped = vendor.replace("'", "''")
            params['$where'] = f"vendor LIKE '%{escaped}%'"
        return params

    def fetch_records(self, **params) -> List[Dict[str, Any]]:
        return as_record_list(self.get_json(self.dataset_url, params=params), self.source)

    def fetch_transactions(
        self,
        limit: int = DEFAULT_TRANSACTION_LIMIT,
        agency: Optional[str] = None,
        vendor: Optional[str] = None
    ) -> List[Transaction]:
        """
        Fetch the largest payments as normalized transactions

        Args:
            limit: Maximum rows to request
            agency: Exact department/agency name filter
            vendor: Substring match on vendor name

        Raises:
            DataSourceError: On HTTP errors or an unexpected payload
        """
        records = self.fetch_records(**self.build_transactions_params(limit, agency, vendor))
        transactions = normalize_records(records, FIELD_FALLBACKS, source=self.source)

        logger.info(
            "Fetched Massachusetts transactions",
            agency=agency,
            vendor=vendor,
            records=len(records),
            transactions=len(transactions)
        )
        return transactions

    def fetch_summary(self, sample_size: int = SUMMARY_SAMPLE_SIZE) -> SpendingSummary:
        """
        Summarize the largest `sample_size` payments, aggregated client-side.

        Zero-amount rows count as transactions but not toward totals.
        """
        transactions = self.fetch_transactions(limit=sample_size)
        positive = [t for t in transactions if t.amount > 0]
        summary = summarize_spending(positive, top_n=SUMMARY_TOP_N)
        return summary.model_copy(update={'total_transactions': len(transactions)})

    def fetch_agencies(self) -> List[str]:
        """Distinct department names, alphabetical"""
        records = self.fetch_records(**{
            '$select': 'department',
            '$group': 'department',
            '$limit': AGENCY_LIMIT,
        })
        return sorted(r['department'] for r in records if r.get('department'))
