"""
Ledger Range Fetcher

Pulls ledger entries for a date range out of the Coda transactions table.

The ledger stores calendar dates as local-midnight timestamps, which Coda
reports as 22:00 on the previous day at either -07:00 or -08:00 depending on
daylight saving. Each date is therefore queried under both encodings, and the
results are deduplicated by row id.
"""

import datetime
import logging

from ledger_audit.coda import column_query
from ledger_audit.exceptions import InvalidRange
from ledger_audit.loaders import clean_amount
from ledger_audit.models import LedgerEntry

logger = logging.getLogger(__name__)

UTC_OFFSETS = ['-07:00', '-08:00']


def date_encodings(date):
    """Return the stored timestamp strings that represent a calendar date."""
    previous = date - datetime.timedelta(days=1)
    return [f"{previous.isoformat()}T22:00:00.000{offset}" for offset in UTC_OFFSETS]


def row_reference(value):
    """Extract the referenced row id from a rich lookup value."""
    if isinstance(value, list):
        if len(value) != 1:
            raise ValueError(f"expected a single row reference, got {len(value)}")
        value = value[0]
    if isinstance(value, dict) and value.get('rowId'):
        return value['rowId']
    raise ValueError(f"not a row reference: {value!r}")


def monetary_amount(value):
    """Extract the amount from a rich currency value or a bare number."""
    if isinstance(value, dict):
        if 'amount' not in value:
            raise ValueError(f"not a monetary amount: {value!r}")
        value = value['amount']
    return clean_amount(value)


class LedgerFetcher:
    """Fetches ledger entries from the Coda transactions table."""

    def __init__(self, client, settings):
        self.client = client
        self.doc_id = settings.coda.doc_id
        self.table_id = settings.coda.transactions_table_id
        self.columns = settings.columns

    def row_to_entry(self, row, date):
        values = row.get('values') or {}
        return LedgerEntry(
            id=row['id'],
            date=date,
            amount=monetary_amount(values.get(self.columns.amount)),
            debit_account_id=row_reference(values.get(self.columns.debit)),
            credit_account_id=row_reference(values.get(self.columns.credit)),
        )

    def fetch_day(self, date):
        """Fetch the ledger entries recorded on one calendar date.

        Rows that cannot be decoded are logged and skipped.
        """
        entries = []
        for encoded in date_encodings(date):
            rows = self.client.list_table_rows(
                self.doc_id,
                self.table_id,
                query=column_query(self.columns.date, encoded),
                value_format='rich',
            )
            for row in rows:
                try:
                    entries.append(self.row_to_entry(row, date))
                except (KeyError, ValueError) as e:
                    logger.warning(f"Skipping ledger row {row.get('id')} on {date}: {str(e)}")
        return entries

    def fetch_range(self, start_date, end_date):
        """Fetch all ledger entries dated within [start_date, end_date].

        Returns:
            list: Entries for every account, deduplicated by id, in query order

        Raises:
            InvalidRange: If start_date is after end_date
            FetchError: If the ledger cannot be reached
        """
        if start_date > end_date:
            raise InvalidRange(f"Start date {start_date} is after end date {end_date}")

        seen = set()
        entries = []
        date = start_date
        while date <= end_date:
            for entry in self.fetch_day(date):
                if entry.id in seen:
                    continue
                seen.add(entry.id)
                entries.append(entry)
            date += datetime.timedelta(days=1)

        logger.info(f"Found {len(entries)} total ledger entries from {start_date} to {end_date}")
        return entries
