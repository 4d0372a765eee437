"""Ranking, filtering, export and console summaries for detection results"""

import json
from pathlib import Path
from typing import Iterable, List, Optional, Union

import pandas as pd

from spendwatch.constants import AnomalyType, Severity
from spendwatch.models.anomaly import Anomaly, DetectionResult
from spendwatch.models.summary import SpendingSummary, SpendingTotal
from spendwatch.tools.frame import TransactionLike, transactions_to_frame
from spendwatch.utils.errors import ExportError
from spendwatch.utils.formatting import format_compact_currency, format_currency
from spendwatch.utils.logging import get_logger

logger = get_logger(__name__)

LIST_SEPARATOR = " | "

EXPORT_COLUMNS = [
    'id', 'kind', 'severity', 'title', 'description', 'vendor', 'department',
    'amount', 'count', 'details', 'investigation_tips',
]


def rank_anomalies(anomalies: Iterable[Anomaly]) -> List[Anomaly]:
    """Most severe first, then largest amount; ties keep detection order"""
    return sorted(
        anomalies,
        key=lambda a: (-Severity(a.severity).rank, -(a.amount or 0))
    )


def filter_anomalies(
    anomalies: Iterable[Anomaly],
    severity: Optional[Union[Severity, str]] = None,
    kind: Optional[Union[AnomalyType, str]] = None
) -> List[Anomaly]:
    """Keep anomalies matching the given severity and/or kind"""
    severity = Severity(severity) if severity else None
    kind = AnomalyType(kind) if kind else None
    return [
        a for a in anomalies
        if (severity is None or a.severity == severity) and (kind is None or a.kind == kind)
    ]


def anomalies_to_frame(anomalies: Iterable[Anomaly]) -> pd.DataFrame:
    """One row per anomaly; list fields joined with ' | '"""
    rows = []
    for anomaly in anomalies:
        row = anomaly.model_dump(mode="json")
        row['details'] = LIST_SEPARATOR.join(anomaly.details)
        row['investigation_tips'] = LIST_SEPARATOR.join(anomaly.investigation_tips)
        rows.append(row)
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_anomalies_csv(anomalies: Iterable[Anomaly], path: str) -> Path:
    """
    Write anomalies to a CSV file

    Raises:
        ExportError: If the file cannot be written
    """
    output = Path(path)
    df = anomalies_to_frame(anomalies)
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output, index=False)
    except OSError as e:
        raise ExportError(f"Error writing {output}: {e}") from e

    logger.info(f"Exported {len(df)} anomalies", path=str(output), format="csv")
    return output


def export_result_json(result: DetectionResult, path: str) -> Path:
    """
    Write a detection result (anomalies and stats) as JSON

    Raises:
        ExportError: If the file cannot be written
    """
    output = Path(path)
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)
    except OSError as e:
        raise ExportError(f"Error writing {output}: {e}") from e

    logger.info(f"Exported {len(result.anomalies)} anomalies", path=str(output), format="json")
    return output


def format_report(result: DetectionResult, title: str = "Spending Anomaly Report", max_details: Optional[int] = None) -> str:
    """
    Plain-text console report: stats block, then the ranked flags

    Args:
        result: Detection result
        title: Heading line
        max_details: Cap on detail lines printed per anomaly (None = all)
    """
    stats = result.stats
    lines = [
        title,
        "=" * len(title),
        f"Total anomalies: {stats.total_anomalies}",
        f"  Critical: {stats.critical_count}",
        f"  High:     {stats.high_count}",
        f"  Medium:   {stats.medium_count}",
        f"  Low:      {stats.low_count}",
        f"Total flagged amount: {format_currency(stats.total_flagged_amount)} "
        f"({format_compact_currency(stats.total_flagged_amount)}, may count a payment more than once)",
        "",
    ]

    if not result.anomalies:
        lines.append("No anomalies detected.")
        return "\n".join(lines)

    for anomaly in rank_anomalies(result.anomalies):
        severity = Severity(anomaly.severity).value.upper()
        amount = f" - {format_currency(anomaly.amount)}" if anomaly.amount is not None else ""
        lines.append(f"[{severity}] {anomaly.title}{amount}")
        lines.append(f"    {anomaly.description}")

        details = anomaly.details if max_details is None else anomaly.details[:max_details]
        lines.extend(f"    - {detail}" for detail in details)
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def _top_totals(frame: pd.DataFrame, column: str, top_n: int) -> List[SpendingTotal]:
    totals = frame.groupby(column, sort=False)['amount'].sum()
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:top_n]
    return [SpendingTotal(name=name, value=float(value)) for name, value in ranked]


def summarize_spending(transactions: Iterable[TransactionLike], top_n: int = 15) -> SpendingSummary:
    """
    Total spending, transaction count and top departments/vendors by total

    Ties in the top-N lists keep first-seen order.
    """
    frame = transactions_to_frame(transactions)
    if frame.empty:
        return SpendingSummary()

    return SpendingSummary(
        total_spending=float(frame['amount'].sum()),
        total_transactions=len(frame),
        top_departments=_top_totals(frame, 'department', top_n),
        top_vendors=_top_totals(frame, 'vendor', top_n),
    )
