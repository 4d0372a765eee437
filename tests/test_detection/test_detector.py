"""Tests for the detection orchestrator"""

import json
from pathlib import Path

import pytest

from spendwatch.constants import AnomalyType, Severity
from spendwatch.models.anomaly import Anomaly
from spendwatch.models.rules import DetectionRules
from spendwatch.models.transaction import Transaction
from spendwatch.orchestrator.detector import (
    DETECTION_METHODS,
    analyze_transactions,
    assign_ids
)

FIXTURES = Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def sample_transactions():
    with open(FIXTURES / "sample_transactions.json") as f:
        return [Transaction(**record) for record in json.load(f)]


def _content(result):
    """Anomaly content without ids"""
    return [a.model_dump(exclude={'id'}) for a in result.anomalies]


def test_empty_input():
    result = analyze_transactions([])

    assert result.anomalies == []
    assert result.stats.total_anomalies == 0
    assert result.stats.critical_count == 0
    assert result.stats.high_count == 0
    assert result.stats.medium_count == 0
    assert result.stats.low_count == 0
    assert result.stats.total_flagged_amount == 0


def test_sample_batch(sample_transactions):
    """Fixture batch: Acme LLC splitting at $10,000 plus a $50M outlier"""
    result = analyze_transactions(sample_transactions)

    assert [(a.id, a.kind) for a in result.anomalies] == [
        ("anomaly-0", AnomalyType.DUPLICATE_PAYMENTS),
        ("anomaly-1", AnomalyType.THRESHOLD_AVOIDANCE),
        ("anomaly-2", AnomalyType.LARGE_OUTLIER),
        ("anomaly-3", AnomalyType.VENDOR_CONCENTRATION),
    ]
    assert [a.severity for a in result.anomalies] == [
        Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL, Severity.HIGH
    ]

    stats = result.stats
    assert stats.total_anomalies == 4
    assert stats.critical_count == 1
    assert stats.high_count == 2
    assert stats.medium_count == 1
    assert stats.low_count == 0
    # naive sum: the $50M payment is counted by both the outlier and concentration flags
    assert stats.total_flagged_amount == pytest.approx(29850 * 2 + 50_000_000 * 2)


def test_deterministic(sample_transactions):
    first = analyze_transactions(sample_transactions)
    second = analyze_transactions(sample_transactions)

    assert first.to_dict() == second.to_dict()


def test_content_independent_of_ids(sample_transactions):
    assert _content(analyze_transactions(sample_transactions)) == _content(analyze_transactions(sample_transactions))


def test_input_not_mutated(sample_transactions):
    snapshot = [t.model_dump() for t in sample_transactions]

    analyze_transactions(sample_transactions)

    assert [t.model_dump() for t in sample_transactions] == snapshot


def test_accepts_plain_dicts(sample_transactions):
    records = [t.model_dump() for t in sample_transactions]

    assert analyze_transactions(records).to_dict() == analyze_transactions(sample_transactions).to_dict()


def test_ids_follow_method_order():
    """Benford runs first, so its finding takes anomaly-0"""
    transactions = [Transaction(vendor=f"Vendor {i}", amount=100) for i in range(150)]
    transactions += [Transaction(vendor="Acme LLC", amount=9950) for _ in range(3)]

    result = analyze_transactions(transactions)
    kinds = [a.kind for a in result.anomalies]
    method_order = [kind for kind, _ in DETECTION_METHODS]

    assert kinds[0] == AnomalyType.BENFORDS_LAW
    assert kinds == sorted(kinds, key=method_order.index)
    assert [a.id for a in result.anomalies] == [f"anomaly-{i}" for i in range(len(kinds))]


@pytest.mark.parametrize("transactions", [
    [Transaction(amount=0)],
    [Transaction(vendor="", department="", amount=500, date="")],
    [Transaction(vendor="Same", amount=2500, date="2025-03-04") for _ in range(10)],
    [Transaction(vendor=f"Vendor {i}", amount=0, date="2025-03-01") for i in range(30)],
    [Transaction(vendor="Odd Dates", amount=1500, date=d) for d in ("31/31/2025", "", "2025-13-01")],
    [Transaction(vendor="Far Dates", amount=1500, date=d) for d in ("9999-12-31", "1500-01-01", "0025-03-04")],
    [Transaction(vendor="Sentinel", amount=1500, date="9999-12-31") for _ in range(3)],
])
def test_never_raises_on_edge_cases(transactions):
    result = analyze_transactions(transactions)

    assert result.stats.total_anomalies == len(result.anomalies)


def test_out_of_range_dates_are_treated_as_unknown():
    """Sentinel dates never group as same-day payments"""
    transactions = [Transaction(vendor="Sentinel", amount=1500, date="9999-12-31") for _ in range(3)]

    result = analyze_transactions(transactions)
    kinds = [a.kind for a in result.anomalies]

    assert transactions[0].parsed_date is None
    assert AnomalyType.SAME_DAY_PAYMENTS not in kinds
    assert AnomalyType.WEEKEND_PAYMENTS not in kinds
    duplicate = next(a for a in result.anomalies if a.kind == AnomalyType.DUPLICATE_PAYMENTS)
    assert "Time span: nan days" in duplicate.details


def test_result_is_strict_json():
    transactions = [
        Transaction(vendor="Acme LLC", amount=9950, date="2025-03-03"),
        Transaction(vendor="Acme LLC", amount=9950, date="0025-03-04"),
        Transaction(vendor="Acme LLC", amount=9950, date=""),
    ]

    json.dumps(analyze_transactions(transactions).to_dict(), allow_nan=False)


def test_concentration_at_most_once():
    transactions = [Transaction(vendor="Only Vendor", amount=1000 + i) for i in range(30)]

    result = analyze_transactions(transactions)
    concentration = [a for a in result.anomalies if a.kind == AnomalyType.VENDOR_CONCENTRATION]

    assert len(concentration) == 1
    assert concentration[0].description == "Only Vendor receives 100.0% of all spending"


def test_custom_rules_change_thresholds(sample_transactions):
    rules = DetectionRules(vendor_concentration={'min_share': 100})

    result = analyze_transactions(sample_transactions, rules)

    assert AnomalyType.VENDOR_CONCENTRATION not in [a.kind for a in result.anomalies]


def test_assign_ids_threads_counter():
    finding = Anomaly(
        kind=AnomalyType.LARGE_OUTLIER,
        severity=Severity.HIGH,
        title="Extreme Payment Amount",
        description="test"
    )

    numbered, next_id = assign_ids([finding, finding], 3)

    assert [a.id for a in numbered] == ["anomaly-3", "anomaly-4"]
    assert next_id == 5
    assert finding.id is None

    none_numbered, unchanged = assign_ids([], next_id)
    assert none_numbered == []
    assert unchanged == 5
