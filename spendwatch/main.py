"""Command-line entry point: spendwatch analyze ..."""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables before anything reads LOG_LEVEL
load_dotenv()

from spendwatch.constants import (  # noqa: E402
    DEFAULT_CONFIG_PATH,
    DEFAULT_TRANSACTION_LIMIT,
    AnomalyType,
    DataSource,
    Severity
)
from spendwatch.models.anomaly import DetectionResult  # noqa: E402
from spendwatch.orchestrator.audit_runner import SpendingAuditRunner  # noqa: E402
from spendwatch.tools.report_tools import (  # noqa: E402
    export_anomalies_csv,
    export_result_json,
    filter_anomalies,
    format_report
)
from spendwatch.utils.config_loader import load_config  # noqa: E402
from spendwatch.utils.errors import SpendWatchError  # noqa: E402
from spendwatch.utils.logging import get_logger  # noqa: E402

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spendwatch",
        description="Flag suspicious patterns in public spending data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  spendwatch analyze --boston --fy fy24 --limit 5000\n"
            "  spendwatch analyze --massachusetts --department 'Department of Transportation'\n"
            "  spendwatch analyze --file checkbook.csv --severity critical --csv flags.csv"
        )
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Run every detection method over a transaction batch")

    source = analyze.add_mutually_exclusive_group(required=True)
    source.add_argument('--file', metavar="PATH", help="Local CSV or JSON checkbook export")
    source.add_argument('--boston', action='store_true', help="City of Boston checkbook (Analyze Boston)")
    source.add_argument('--massachusetts', action='store_true', help="Massachusetts CTHRU checkbook")

    analyze.add_argument('--fy', help="Boston fiscal year, e.g. fy24 (default: config or $BOSTON_FISCAL_YEAR)")
    analyze.add_argument(
        '--limit',
        type=int,
        default=DEFAULT_TRANSACTION_LIMIT,
        help=f"Maximum transactions to analyze (default: {DEFAULT_TRANSACTION_LIMIT})"
    )
    analyze.add_argument('--department', help="Only analyze one department/agency")
    analyze.add_argument(
        '--severity',
        choices=[s.value for s in Severity],
        help="Only report anomalies of this severity"
    )
    analyze.add_argument(
        '--kind',
        choices=[k.value for k in AnomalyType],
        help="Only report anomalies from this detection method"
    )
    analyze.add_argument('--csv', metavar="OUT", help="Write reported anomalies to a CSV file")
    analyze.add_argument('--json', metavar="OUT", help="Write reported anomalies and stats to a JSON file")
    analyze.add_argument(
        '--config',
        metavar="PATH",
        help=f"Rules/sources YAML (default: $SPENDWATCH_CONFIG or {DEFAULT_CONFIG_PATH} if present)"
    )
    return parser


def resolve_config(config_path: Optional[str]):
    """Load the explicit or env-configured file; fall back to built-in defaults when none exists"""
    if config_path or os.getenv("SPENDWATCH_CONFIG"):
        return load_config(config_path)
    if Path(DEFAULT_CONFIG_PATH).exists():
        return load_config(DEFAULT_CONFIG_PATH)
    logger.info("No configuration file found, using built-in defaults")
    return None


def run_analyze(args: argparse.Namespace) -> int:
    config = resolve_config(args.config)
    runner = SpendingAuditRunner(config=config)

    if args.boston:
        source = DataSource.BOSTON
    elif args.massachusetts:
        source = DataSource.MASSACHUSETTS
    else:
        source = DataSource.FILE

    audit = runner.run(
        source,
        limit=args.limit,
        department=args.department,
        fiscal_year=args.fy,
        path=args.file
    )

    result = audit.result
    if args.severity or args.kind:
        result = DetectionResult(
            anomalies=filter_anomalies(result.anomalies, severity=args.severity, kind=args.kind),
            stats=result.stats
        )

    print(format_report(result, title=f"Spending Anomaly Report ({source.value}, {audit.transaction_count:,} transactions)"))

    if args.csv:
        export_anomalies_csv(result.anomalies, args.csv)
        print(f"Anomalies written to {args.csv}")
    if args.json:
        export_result_json(result, args.json)
        print(f"Result written to {args.json}")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; returns the process exit status"""
    args = build_parser().parse_args(argv)

    try:
        return run_analyze(args)
    except SpendWatchError as e:
        logger.error(f"Main execution failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
