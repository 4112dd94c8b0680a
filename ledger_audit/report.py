"""
Audit reporting: console table, summary text and CSV export.
"""

import csv
import logging
import pathlib

import pandas as pd

logger = logging.getLogger(__name__)

DATE_FORMAT = '%m-%d-%y'
PASS_MARK = '✓'
FAIL_MARK = 'X'

RESULT_COLUMNS = ['Date', 'Correct', 'Missing', 'Amount', 'Description', 'Source']


def verdict_frame(verdict):
    """Build a date-ascending DataFrame of verdicts."""
    rows = [
        {'Date': date.strftime(DATE_FORMAT), 'Correct': PASS_MARK if is_valid else FAIL_MARK}
        for date, is_valid in verdict.items()
    ]
    return pd.DataFrame(rows, columns=['Date', 'Correct'])


def format_verdict_table(verdict):
    """Render verdicts as a text table sorted by date."""
    if not len(verdict):
        return "No dates audited"
    return verdict_frame(verdict).to_string(index=False)


def format_audit_summary(result):
    """Format a summary of an audit run.

    Args:
        result (RangeAudit): Audit outcome

    Returns:
        str: Summary text
    """
    verdict = result.verdict
    failed = verdict.failed_dates
    missing = result.missing_transactions()

    summary = [
        f"Days Audited: {len(verdict)}",
        f"Days Reconciled: {len(verdict) - len(failed)}",
        f"Days Unreconciled: {len(failed)}",
        f"Missing Transactions: {len(missing)}",
    ]

    if result.truncated:
        summary.append(
            f"WARNING: range of {result.requested_days} days was truncated to {len(verdict)} days"
        )

    if missing:
        summary.append("\nMissing from ledger:")
        for t in missing:
            summary.append(f"  {t.date.isoformat()}  {t.amount:>12}  {t.description}")
    else:
        summary.append("\nAll source transactions found in ledger")

    return "\n".join(summary)


def save_audit_results(result, output_path):
    """Save audit results to a CSV file.

    One row per missing transaction, plus one row for every date without any
    missing transaction.

    Args:
        result (RangeAudit): Audit outcome
        output_path (str or pathlib.Path): File path or directory

    Returns:
        pathlib.Path: Path written
    """
    rows = []
    for date, is_valid in result.verdict.items():
        day = result.days[date]
        base = {
            'Date': date.isoformat(),
            'Correct': str(is_valid),
            'Missing': len(day.missing),
        }
        if not day.missing:
            rows.append(dict(base, Amount='', Description='', Source=''))
        for t in day.missing:
            rows.append(dict(base, Amount=str(t.amount), Description=t.description, Source=t.source.value))

    df = pd.DataFrame(rows, columns=RESULT_COLUMNS)

    output_path = pathlib.Path(output_path)
    if output_path.is_dir() or not output_path.suffix:
        output_path = output_path / "audit_results.csv"
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.debug(f"Writing audit results to {output_path}")
    df.to_csv(output_path, index=False, quoting=csv.QUOTE_NONNUMERIC)
    return output_path
