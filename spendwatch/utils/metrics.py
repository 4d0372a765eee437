"""Prometheus metrics definitions"""

from prometheus_client import Counter, Histogram, Gauge


# Detection metrics
transactions_analyzed = Counter(
    'transactions_analyzed_total',
    'Total transactions run through the anomaly detector',
    labelnames=['source']
)

anomalies_flagged = Counter(
    'anomalies_flagged_total',
    'Total anomalies flagged',
    labelnames=['kind', 'severity']
)

flagged_amount = Gauge(
    'flagged_amount_dollars',
    'Naive sum of flagged amounts in the most recent audit',
    labelnames=['source']
)

detection_duration = Histogram(
    'detection_duration_seconds',
    'Time spent running all detection methods',
    buckets=[0.05, 0.1, 0.5, 1, 5, 15]
)

# Data source metrics
source_fetch_latency = Histogram(
    'source_fetch_latency_seconds',
    'Latency of open-data portal requests',
    labelnames=['source'],
    buckets=[0.5, 1, 2, 5, 10, 30]
)

source_fetch_errors = Counter(
    'source_fetch_errors_total',
    'Failed open-data portal requests',
    labelnames=['source']
)
