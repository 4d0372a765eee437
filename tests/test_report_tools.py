"""Tests for ranking, filtering, export and summaries"""

import json

import pandas as pd
import pytest

from spendwatch.constants import AnomalyType, Severity
from spendwatch.models.anomaly import Anomaly, DetectionResult, DetectionStats
from spendwatch.models.transaction import Transaction
from spendwatch.tools.report_tools import (
    anomalies_to_frame,
    export_anomalies_csv,
    export_result_json,
    filter_anomalies,
    format_report,
    rank_anomalies,
    summarize_spending
)
from spendwatch.utils.errors import ExportError


def _anomaly(anomaly_id, severity, amount=None, kind=AnomalyType.DUPLICATE_PAYMENTS):
    return Anomaly(
        id=anomaly_id,
        kind=kind,
        severity=severity,
        title=f"Flag {anomaly_id}",
        description=f"Description {anomaly_id}",
        amount=amount,
        details=["Vendor: Acme LLC", "Total paid: $29,850"],
        investigation_tips=["Request invoices"],
    )


@pytest.fixture
def anomalies():
    return [
        _anomaly("anomaly-0", Severity.MEDIUM, 5000),
        _anomaly("anomaly-1", Severity.HIGH, 100, kind=AnomalyType.THRESHOLD_AVOIDANCE),
        _anomaly("anomaly-2", Severity.CRITICAL, 50_000_000, kind=AnomalyType.LARGE_OUTLIER),
        _anomaly("anomaly-3", Severity.HIGH, 2000, kind=AnomalyType.THRESHOLD_AVOIDANCE),
        _anomaly("anomaly-4", Severity.LOW, None, kind=AnomalyType.VENDOR_NAME_FLAG),
        _anomaly("anomaly-5", Severity.HIGH, 2000, kind=AnomalyType.VENDOR_CONCENTRATION),
    ]


@pytest.fixture
def result(anomalies):
    return DetectionResult(anomalies=anomalies, stats=DetectionStats.from_anomalies(anomalies))


def test_rank_by_severity_then_amount(anomalies):
    ranked = rank_anomalies(anomalies)

    assert [a.id for a in ranked] == [
        "anomaly-2",  # critical
        "anomaly-3",  # high, $2,000 (first seen)
        "anomaly-5",  # high, $2,000
        "anomaly-1",  # high, $100
        "anomaly-0",  # medium
        "anomaly-4",  # low
    ]


def test_filter_anomalies(anomalies):
    assert [a.id for a in filter_anomalies(anomalies, severity="high")] == ["anomaly-1", "anomaly-3", "anomaly-5"]
    assert [a.id for a in filter_anomalies(anomalies, kind=AnomalyType.THRESHOLD_AVOIDANCE)] == ["anomaly-1", "anomaly-3"]
    assert [a.id for a in filter_anomalies(anomalies, severity=Severity.HIGH, kind="vendor_concentration")] == ["anomaly-5"]
    assert len(filter_anomalies(anomalies)) == 6


def test_filter_rejects_unknown_severity(anomalies):
    with pytest.raises(ValueError):
        filter_anomalies(anomalies, severity="urgent")


def test_anomalies_to_frame(anomalies):
    df = anomalies_to_frame(anomalies)

    assert len(df) == 6
    assert list(df.columns)[:3] == ['id', 'kind', 'severity']
    assert df.loc[0, 'details'] == "Vendor: Acme LLC | Total paid: $29,850"
    assert df.loc[2, 'kind'] == "large_outlier"
    assert df.loc[2, 'severity'] == "critical"


def test_export_csv(anomalies, tmp_path):
    path = export_anomalies_csv(anomalies, str(tmp_path / "out" / "flags.csv"))

    df = pd.read_csv(path)
    assert len(df) == len(anomalies)
    assert df.loc[1, 'investigation_tips'] == "Request invoices"


def test_export_csv_error(anomalies, tmp_path):
    with pytest.raises(ExportError):
        export_anomalies_csv(anomalies, str(tmp_path))


def test_export_json(result, tmp_path):
    path = export_result_json(result, str(tmp_path / "result.json"))

    with open(path) as f:
        payload = json.load(f)

    assert payload['stats']['total_anomalies'] == 6
    assert payload['stats']['high_count'] == 3
    assert payload['anomalies'][2]['severity'] == "critical"
    assert payload['anomalies'][4]['amount'] is None


def test_format_report(result):
    report = format_report(result)

    assert "Total anomalies: 6" in report
    assert "  Critical: 1" in report
    assert "Total flagged amount: $50,009,100" in report
    assert report.index("[CRITICAL] Flag anomaly-2 - $50,000,000") < report.index("[HIGH] Flag anomaly-3")
    assert "[LOW] Flag anomaly-4\n" in report
    assert "    - Vendor: Acme LLC" in report


def test_format_report_detail_cap(result):
    report = format_report(result, max_details=1)

    assert "Total paid" not in report


def test_format_report_empty():
    report = format_report(DetectionResult())

    assert "Total anomalies: 0" in report
    assert "No anomalies detected." in report


def test_summarize_spending():
    transactions = [
        Transaction(department="Police Department", vendor="Acme LLC", amount=500),
        Transaction(department="Fire Department", vendor="Beacon Hill Fuel", amount=300),
        Transaction(department="Police Department", vendor="Beacon Hill Fuel", amount=300),
        Transaction(department="Parks & Recreation", vendor="Green Turf Co", amount=50),
    ]

    summary = summarize_spending(transactions, top_n=2)

    assert summary.total_spending == 1150
    assert summary.total_transactions == 4
    assert [(d.name, d.value) for d in summary.top_departments] == [
        ("Police Department", 800.0), ("Fire Department", 300.0)
    ]
    assert [v.name for v in summary.top_vendors] == ["Beacon Hill Fuel", "Acme LLC"]
    assert summary.fiscal_year is None


def test_summarize_spending_empty():
    summary = summarize_spending([])

    assert summary.total_spending == 0
    assert summary.total_transactions == 0
    assert summary.top_departments == []
