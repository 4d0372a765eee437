"""Anomaly detector - runs every detection method over one transaction batch"""

from typing import Callable, Iterable, List, Optional, Tuple

import pandas as pd

from spendwatch.constants import AnomalyType
from spendwatch.models.anomaly import Anomaly, DetectionResult, DetectionStats
from spendwatch.models.rules import DetectionRules
from spendwatch.tools.amount_tools import (
    detect_benford_deviation,
    detect_duplicate_payments,
    detect_large_outliers,
    detect_round_numbers,
    detect_threshold_avoidance,
)
from spendwatch.tools.frame import TransactionLike, transactions_to_frame
from spendwatch.tools.timing_tools import detect_same_day_payments, detect_weekend_payments
from spendwatch.tools.vendor_tools import (
    detect_high_frequency,
    detect_vendor_concentration,
    detect_vendor_name_flags,
)

DetectionMethod = Callable[[pd.DataFrame, DetectionRules], List[Anomaly]]

# Execution order; also fixes id numbering
DETECTION_METHODS: List[Tuple[AnomalyType, DetectionMethod]] = [
    (AnomalyType.BENFORDS_LAW, lambda frame, rules: detect_benford_deviation(frame, rules.benford)),
    (AnomalyType.DUPLICATE_PAYMENTS, lambda frame, rules: detect_duplicate_payments(frame, rules.duplicate_payments)),
    (AnomalyType.THRESHOLD_AVOIDANCE, lambda frame, rules: detect_threshold_avoidance(frame, rules.threshold_avoidance)),
    (AnomalyType.ROUND_NUMBERS, lambda frame, rules: detect_round_numbers(frame, rules.round_numbers)),
    (AnomalyType.WEEKEND_PAYMENTS, lambda frame, rules: detect_weekend_payments(frame, rules.weekend_payments)),
    (AnomalyType.SAME_DAY_PAYMENTS, lambda frame, rules: detect_same_day_payments(frame, rules.same_day_payments)),
    (AnomalyType.VENDOR_NAME_FLAG, lambda frame, rules: detect_vendor_name_flags(frame, rules.vendor_names)),
    (AnomalyType.HIGH_FREQUENCY, lambda frame, rules: detect_high_frequency(frame, rules.high_frequency)),
    (AnomalyType.LARGE_OUTLIER, lambda frame, rules: detect_large_outliers(frame, rules.large_outliers)),
    (AnomalyType.VENDOR_CONCENTRATION, lambda frame, rules: detect_vendor_concentration(frame, rules.vendor_concentration)),
]


def format_anomaly_id(sequence: int) -> str:
    return f"anomaly-{sequence}"


def assign_ids(findings: List[Anomaly], next_id: int) -> Tuple[List[Anomaly], int]:
    """
    Number a method's findings starting at next_id

    Returns:
        (numbered anomalies, next free id)
    """
    numbered = [
        finding.model_copy(update={"id": format_anomaly_id(next_id + offset)})
        for offset, finding in enumerate(findings)
    ]
    return numbered, next_id + len(numbered)


def analyze_transactions(
    transactions: Iterable[TransactionLike],
    rules: Optional[DetectionRules] = None
) -> DetectionResult:
    """
    Run all detection methods over a batch of transactions.

    Pure function: the input is only read, every anomaly is a new value and
    identical input always yields identical output. Empty input yields no
    anomalies and zero stats.

    Args:
        transactions: Normalized Transaction models (or dicts with the same fields)
        rules: Detection thresholds; defaults to the stock heuristics

    Returns:
        DetectionResult with anomalies in method order and summary stats
    """
    rules = rules or DetectionRules()
    frame = transactions_to_frame(transactions)

    anomalies: List[Anomaly] = []
    next_id = 0
    for _, method in DETECTION_METHODS:
        numbered, next_id = assign_ids(method(frame, rules), next_id)
        anomalies.extend(numbered)

    return DetectionResult(anomalies=anomalies, stats=DetectionStats.from_anomalies(anomalies))
