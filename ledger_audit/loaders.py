"""
Transaction Loaders

Reads bank and payment-service CSV exports into normalized Transaction records.

Supported Sources:
- Chase: 6 fields
    Transaction Date (MM/DD/YYYY), Post Date, Description, Category, Type, Amount
- Ally: 5 fields
    Date (YYYY-MM-DD), Time, Amount, Type, Description
- Venmo: 18 fields, of which
    [1] ID, [2] Datetime (YYYY-MM-DDTHH:MM:SS), [3] Type, [4] Status, [5] Note,
    [6] From, [7] To, [8] Amount (e.g. "- $12.50")

Malformed rows (wrong field count, unparsable amount or date) are skipped and
logged; the rest of the file still loads. Header lines fall out the same way,
since their amount column never parses. An unreadable file aborts the load.
"""

import csv
import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation

import pandas as pd

from ledger_audit.exceptions import LoadError, RowSkipped
from ledger_audit.models import SourceKind, Transaction

logger = logging.getLogger(__name__)

CHASE_DATE_FORMAT = '%m/%d/%Y'
ALLY_DATE_FORMAT = '%Y-%m-%d'
VENMO_DATETIME_FORMAT = '%Y-%m-%dT%H:%M:%S'

ENCODINGS = ['utf-8-sig', 'cp1252']


def clean_amount(amount):
    """Clean and parse an amount string.

    Args:
        amount (str): Raw amount, e.g. '-12.50', '$1,234.56', '- $5.00', '(12.50)'

    Returns:
        Decimal: Signed amount (negative for outflows)

    Raises:
        ValueError: If the value cannot be parsed as a number
    """
    if amount is None:
        raise ValueError("Invalid amount format: None")
    if isinstance(amount, (int, Decimal)):
        return Decimal(amount)
    if isinstance(amount, float):
        return Decimal(str(amount))

    # Remove currency symbols, commas, and whitespace
    cleaned = re.sub(r'[$,\s]', '', str(amount))

    # Handle parentheses for negative numbers
    if cleaned.startswith('(') and cleaned.endswith(')'):
        cleaned = '-' + cleaned[1:-1]

    if not cleaned:
        raise ValueError(f"Invalid amount format: {amount!r}")

    try:
        result = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Invalid amount format: {amount!r}")

    if not result.is_finite():
        raise ValueError(f"Invalid amount format: {amount!r}")
    return result


def parse_date(date_str, fmt):
    """Parse a date string in the given format, dropping any time of day.

    Raises:
        ValueError: If the string does not match the format
    """
    if not isinstance(date_str, str):
        raise ValueError(f"Date must be a string, got {type(date_str)}")

    dt = datetime.strptime(date_str.strip().strip('"\''), fmt)
    if dt.year < 1900 or dt.year > 2100:
        raise ValueError(f"Invalid date year: {dt.year}")
    return dt.date()


def parse_chase_row(record):
    if len(record) != 6:
        raise ValueError(f"invalid field count {len(record)}, expected 6")

    amount = clean_amount(record[5])
    return Transaction(
        date=parse_date(record[0], CHASE_DATE_FORMAT),
        amount=amount,
        description=record[2],
        source=SourceKind.CHASE,
        details={
            'post_date': record[1],
            'category': record[3],
            'type': record[4],
        },
    )


def parse_ally_row(record):
    if len(record) != 5:
        raise ValueError(f"invalid field count {len(record)}, expected 5")

    amount = clean_amount(record[2])
    return Transaction(
        date=parse_date(record[0], ALLY_DATE_FORMAT),
        amount=amount,
        description=record[4],
        source=SourceKind.ALLY,
        details={
            'time': record[1],
            'type': record[3],
        },
    )


def parse_venmo_row(record):
    if len(record) != 18:
        raise ValueError(f"invalid field count {len(record)}, expected 18")

    amount = clean_amount(record[8])
    return Transaction(
        date=parse_date(record[2], VENMO_DATETIME_FORMAT),
        amount=amount,
        description=record[5],
        source=SourceKind.VENMO,
        details={
            'id': record[1],
            'type': record[3],
            'status': record[4],
            'from': record[6],
            'to': record[7],
        },
    )


ROW_PARSERS = {
    SourceKind.CHASE: parse_chase_row,
    SourceKind.ALLY: parse_ally_row,
    SourceKind.VENMO: parse_venmo_row,
}


def parse_record(parse_row, line_number, record):
    """Parse one CSV record, turning parse failures into RowSkipped."""
    try:
        return parse_row(record)
    except ValueError as e:
        raise RowSkipped(line_number, str(e))


def read_rows(file_path):
    """Read all CSV records from a file, trying each supported encoding.

    Raises:
        LoadError: If the file cannot be opened or decoded
    """
    last_error = None
    for encoding in ENCODINGS:
        try:
            with open(file_path, 'r', encoding=encoding, newline='') as f:
                return list(csv.reader(f, delimiter=',', quotechar='"'))
        except UnicodeDecodeError as e:
            last_error = e
            continue
        except (OSError, csv.Error) as e:
            raise LoadError(f"Could not read transactions from {file_path}: {str(e)}")

    raise LoadError(f"Could not read {file_path} with any supported encoding: {last_error}")


def load_transactions(source, file_path):
    """Load a transaction export into normalized Transaction records.

    Args:
        source (SourceKind or str): Source format ('Chase', 'Ally', 'Venmo')
        file_path (str or Path): Path to the CSV export

    Returns:
        list: Transactions in file order

    Raises:
        LoadError: If the source is unknown or the file cannot be read
    """
    try:
        kind = SourceKind.parse(source)
    except ValueError as e:
        logger.error(str(e))
        raise LoadError(str(e))

    logger.info(f"Loading {kind.value} transactions from {file_path}")
    parse_row = ROW_PARSERS[kind]

    transactions = []
    skipped = 0
    for line_number, record in enumerate(read_rows(file_path), start=1):
        # Skip empty rows
        if not any(cell.strip() for cell in record):
            continue
        try:
            transactions.append(parse_record(parse_row, line_number, record))
        except RowSkipped as e:
            skipped += 1
            logger.warning(str(e))

    logger.info(f"Loaded {len(transactions)} transactions, skipped {skipped} rows")
    if transactions:
        logger.debug(f"First few transactions:\n{transactions_to_frame(transactions).head().to_string()}")
    return transactions


def transactions_to_frame(transactions):
    """Build a DataFrame view of transactions, for logging and reports."""
    columns = ['date', 'amount', 'description', 'source']
    if not transactions:
        return pd.DataFrame(columns=columns)

    return pd.DataFrame(
        [
            {
                'date': t.date,
                'amount': t.amount,
                'description': t.description,
                'source': t.source.value,
            }
            for t in transactions
        ],
        columns=columns,
    )
