"""Audit runner - fetch transactions from a source, run detection, record metrics"""

import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from spendwatch.constants import DEFAULT_TRANSACTION_LIMIT, DataSource
from spendwatch.ingest.boston_client import BostonCheckbookClient
from spendwatch.ingest.file_loader import TransactionFileLoader
from spendwatch.ingest.massachusetts_client import MassachusettsCheckbookClient
from spendwatch.models.audit_run import AuditRun
from spendwatch.models.rules import DetectionRules
from spendwatch.models.transaction import Transaction
from spendwatch.orchestrator.detector import analyze_transactions
from spendwatch.utils.errors import ConfigurationError, SpendWatchError
from spendwatch.utils.logging import get_logger
from spendwatch.utils.metrics import (
    anomalies_flagged,
    detection_duration,
    flagged_amount,
    transactions_analyzed
)

logger = get_logger(__name__)


def _as_source(source: Union[DataSource, str]) -> DataSource:
    try:
        return DataSource(source)
    except ValueError as e:
        raise ConfigurationError(f"Unknown data source: {source}") from e


class SpendingAuditRunner:
    """Coordinates one audit: fetch, detect, log and record metrics"""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        rules: Optional[DetectionRules] = None,
        boston_client: Optional[BostonCheckbookClient] = None,
        massachusetts_client: Optional[MassachusettsCheckbookClient] = None
    ):
        """
        Args:
            config: Loaded configuration (None = built-in defaults)
            rules: Detection thresholds; defaults to the config's `rules` section
            boston_client, massachusetts_client: Pre-built portal clients
        """
        self.audit_run_id = str(uuid.uuid4())
        self.config = config
        self.rules = rules or DetectionRules.from_config(config)
        self._boston_client = boston_client
        self._massachusetts_client = massachusetts_client

    def fetch_transactions(
        self,
        source: Union[DataSource, str],
        limit: int = DEFAULT_TRANSACTION_LIMIT,
        department: Optional[str] = None,
        fiscal_year: Optional[str] = None,
        path: Optional[str] = None
    ) -> List[Transaction]:
        """
        Pull a transaction batch from one source

        Args:
            source: boston | massachusetts | file
            limit: Maximum transactions
            department: Department (Boston) or agency (Massachusetts) filter
            fiscal_year: Boston fiscal year key, e.g. "fy25"
            path: File path for the file source

        Raises:
            DataSourceError, DataLoadError: When the source cannot be read
            ConfigurationError: For a file source without a path
        """
        source = _as_source(source)

        if source == DataSource.BOSTON:
            client = self._boston_client or BostonCheckbookClient.from_config(self.config, fiscal_year=fiscal_year)
            return client.fetch_transactions(limit=limit, department=department)

        if source == DataSource.MASSACHUSETTS:
            client = self._massachusetts_client or MassachusettsCheckbookClient.from_config(self.config)
            return client.fetch_transactions(limit=limit, agency=department)

        if not path:
            raise ConfigurationError("A file path is required for the file source")
        return TransactionFileLoader(path).load(limit=limit)

    def run_audit(
        self,
        transactions: List[Transaction],
        source: Union[DataSource, str] = DataSource.FILE,
        source_detail: Optional[str] = None
    ) -> AuditRun:
        """Run detection over an already-fetched batch and record metrics"""
        source = _as_source(source)
        started_at = datetime.now()
        start = time.time()

        with detection_duration.time():
            result = analyze_transactions(transactions, self.rules)

        duration = time.time() - start

        transactions_analyzed.labels(source=source.value).inc(len(transactions))
        for anomaly in result.anomalies:
            anomalies_flagged.labels(kind=anomaly.kind.value, severity=anomaly.severity.value).inc()
        flagged_amount.labels(source=source.value).set(result.stats.total_flagged_amount)

        logger.info(
            "Detection complete",
            audit_run_id=self.audit_run_id,
            source=source.value,
            transactions=len(transactions),
            anomalies=result.stats.total_anomalies,
            critical=result.stats.critical_count,
            high=result.stats.high_count,
            duration_seconds=round(duration, 3)
        )

        return AuditRun(
            audit_run_id=self.audit_run_id,
            source=source,
            transaction_count=len(transactions),
            started_at=started_at,
            duration_seconds=duration,
            source_detail=source_detail,
            result=result,
        )

    def run(
        self,
        source: Union[DataSource, str],
        limit: int = DEFAULT_TRANSACTION_LIMIT,
        department: Optional[str] = None,
        fiscal_year: Optional[str] = None,
        path: Optional[str] = None
    ) -> AuditRun:
        """
        Execute a full audit cycle against one source

        Returns:
            AuditRun with the detection result

        Raises:
            SpendWatchError: If fetching or detection fails
        """
        source = _as_source(source)
        logger.info(f"Starting audit run: {self.audit_run_id}", source=source.value, limit=limit)

        try:
            transactions = self.fetch_transactions(
                source,
                limit=limit,
                department=department,
                fiscal_year=fiscal_year,
                path=path
            )

            if not transactions:
                logger.info("No transactions to audit", audit_run_id=self.audit_run_id)

            detail = path or fiscal_year or department
            return self.run_audit(transactions, source, source_detail=detail)

        except SpendWatchError as e:
            logger.error(f"Audit failed: {e}", audit_run_id=self.audit_run_id, source=source.value)
            raise
        except Exception as e:
            logger.error(f"Audit failed: {e}", audit_run_id=self.audit_run_id, source=source.value)
            raise SpendWatchError(f"Audit {self.audit_run_id} failed: {e}") from e
