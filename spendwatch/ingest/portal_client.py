"""Shared HTTP plumbing for open-data portal clients"""

import time
from typing import Any, Dict, List, Optional

import requests

from spendwatch.constants import DEFAULT_REQUEST_TIMEOUT_SECONDS
from spendwatch.orchestrator.retry_handler import retry_with_exponential_backoff
from spendwatch.utils.errors import DataSourceError, SpendWatchError
from spendwatch.utils.logging import get_logger
from spendwatch.utils.metrics import source_fetch_errors, source_fetch_latency

logger = get_logger(__name__)

# Transient failures worth retrying; HTTP error statuses are not
RETRYABLE_ERRORS = (requests.ConnectionError, requests.Timeout)


class PortalClient:
    """
    Base class for checkbook portal clients.

    Subclasses set `source` and build URLs/params; `get_json` handles the
    session, timeout, retries, metrics and error wrapping.
    """

    source = "unknown"

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        max_retries: int = 3,
        retry_base_delay: float = 2,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.session = session or requests.Session()

    def _request(self, url: str, params: Dict[str, Any]) -> Any:
        response = self.session.get(url, params=params, timeout=self.timeout_seconds)
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise DataSourceError(
                f"{self.source} portal returned HTTP {response.status_code}: {e}",
                source=self.source
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise DataSourceError(
                f"{self.source} portal returned invalid JSON: {e}",
                source=self.source
            ) from e

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a JSON document from the portal

        Raises:
            DataSourceError: On HTTP errors, invalid JSON, or exhausted retries
        """
        start = time.time()
        try:
            payload = retry_with_exponential_backoff(
                self._request,
                url,
                params or {},
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
                retry_on=RETRYABLE_ERRORS
            )
        except DataSourceError as e:
            source_fetch_errors.labels(source=self.source).inc()
            logger.error("Portal request failed", source=self.source, url=url, error=str(e))
            raise
        except SpendWatchError as e:
            source_fetch_errors.labels(source=self.source).inc()
            logger.error("Portal unreachable", source=self.source, url=url, error=str(e))
            raise DataSourceError(str(e), source=self.source) from e
        finally:
            source_fetch_latency.labels(source=self.source).observe(time.time() - start)

        logger.debug("Portal request complete", source=self.source, url=url)
        return payload

    def close(self) -> None:
        self.session.close()


def as_record_list(payload: Any, source: str) -> List[Dict[str, Any]]:
    """Check that a portal payload is a list of records"""
    if not isinstance(payload, list):
        raise DataSourceError(
            f"Unexpected {source} response: expected a list of records",
            source=source
        )
    return payload
