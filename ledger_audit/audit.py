"""
Ledger Audit

Checks, one calendar day at a time, that every transaction from a bank or
payment-service export has a matching entry in the ledger.

Matching Rules:
- Amounts must be equal in magnitude
- The audited account must sit on the side of the ledger entry implied by the
  transaction sign and the account type:

    Credit account, negative amount (expense)    -> credit side
    Credit account, positive amount (payoff)     -> debit side
    Asset account,  positive amount (deposit)    -> debit side
    Asset account,  negative amount (withdrawal) -> credit side

- Zero amounts never match
- First unconsumed entry wins; once consumed, an entry is not available to any
  later transaction in the same range

The check runs one way only: ledger entries without a source transaction are
never reported.
"""

import datetime
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Tuple

from ledger_audit.exceptions import InvalidRange
from ledger_audit.filters import filter_by_account, filter_by_date
from ledger_audit.models import (
    Account,
    AuditVerdict,
    Directionality,
    LedgerEntry,
    Transaction,
)

logger = logging.getLogger(__name__)

# Upper bound on the number of days audited in one call
MAX_DURATION = 100

ONE_DAY = datetime.timedelta(days=1)


@dataclass
class DayAudit:
    date: datetime.date
    matched: List[Tuple[Transaction, LedgerEntry]] = field(default_factory=list)
    missing: List[Transaction] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.missing) == 0


@dataclass
class RangeAudit:
    """Outcome of auditing a date range.

    ``truncated`` is set when the requested range was longer than the day limit;
    ``requested_days`` then holds the full span that was asked for.
    """
    verdict: AuditVerdict
    days: Dict[datetime.date, DayAudit]
    consumption: Dict[str, bool]
    requested_days: int
    truncated: bool = False

    @property
    def is_reconciled(self) -> bool:
        return self.verdict.passed

    def missing_transactions(self) -> List[Transaction]:
        return [t for date in sorted(self.days) for t in self.days[date].missing]


def expected_side(account: Account, amount: Decimal):
    """Return which side of a ledger entry should reference the account.

    Returns:
        str or None: 'debit', 'credit', or None for a zero amount
    """
    if amount == 0:
        return None
    if account.directionality is Directionality.CREDIT:
        return 'credit' if amount < 0 else 'debit'
    return 'debit' if amount > 0 else 'credit'


def matches(account: Account, transaction: Transaction, entry: LedgerEntry) -> bool:
    """Check whether a ledger entry accounts for a source transaction."""
    side = expected_side(account, transaction.amount)
    if side is None:
        return False

    if abs(transaction.amount) != entry.amount:
        return False

    if side == 'credit':
        return entry.credit_account_id == account.id
    return entry.debit_account_id == account.id


def audit_day(account, transactions, ledger_entries, date, consumption):
    """Audit a single day of source transactions against the ledger.

    Args:
        account (Account): Account under audit
        transactions (list): All source transactions; filtered to ``date`` here
        ledger_entries (list): All ledger entries of the range; filtered to the account here
        date (datetime.date): Day to audit
        consumption (dict): Ledger entry ids already matched in this range.
            Updated in place for every match.

    Returns:
        DayAudit: Matched pairs and missing transactions for the day. A day with
        missing transactions is a normal negative verdict, not an error.
    """
    day_transactions = filter_by_date(date, transactions)
    logger.info(f"Found {len(day_transactions)} source transactions for {date}")

    account_entries = filter_by_account(account, ledger_entries)
    logger.info(f"Found {len(account_entries)} ledger entries to audit for {account.name}")

    result = DayAudit(date=date)
    for transaction in day_transactions:
        found = None
        for entry in account_entries:
            if consumption.get(entry.id):
                continue
            if matches(account, transaction, entry):
                found = entry
                break

        if found is None:
            result.missing.append(transaction)
            continue

        consumption[found.id] = True
        result.matched.append((transaction, found))
        logger.debug(f"Matched {transaction.amount} '{transaction.description}' to ledger entry {found.id}")

    logger.info(f"Had {len(result.missing)} missing source transactions for {date}")
    return result


def day_count(start_date, end_date):
    """Number of calendar days in the inclusive range."""
    return (end_date - start_date).days + 1


def clamp_end_date(start_date, end_date, max_days=MAX_DURATION):
    """Return the last date that will actually be audited.

    Raises:
        InvalidRange: If start_date is after end_date
        ValueError: If max_days is less than 1
    """
    if start_date > end_date:
        raise InvalidRange(f"Start date {start_date} is after end date {end_date}")
    if max_days < 1:
        raise ValueError(f"max_days must be at least 1, got {max_days}")

    if day_count(start_date, end_date) > max_days:
        return start_date + ONE_DAY * (max_days - 1)
    return end_date


def audit_range(account, transactions, ledger_entries, start_date, end_date, max_days=MAX_DURATION):
    """Audit every date from start_date to end_date inclusive.

    A single consumption record is shared by all days, so a ledger entry matched
    on one day is never matched again later in the range.

    Ranges longer than ``max_days`` are truncated to their first ``max_days``
    dates; a warning is logged and the result is flagged as truncated.

    Args:
        account (Account): Account under audit
        transactions (list): Source transactions
        ledger_entries (list): Ledger entries fetched for the range
        start_date (datetime.date): First date to audit
        end_date (datetime.date): Last date to audit
        max_days (int, optional): Day limit. Defaults to MAX_DURATION.

    Returns:
        RangeAudit: Verdict per date plus the per-day detail

    Raises:
        InvalidRange: If start_date is after end_date
    """
    last_date = clamp_end_date(start_date, end_date, max_days)
    requested_days = day_count(start_date, end_date)
    truncated = last_date != end_date
    if truncated:
        logger.warning(
            f"Requested range spans {requested_days} days; only auditing {max_days} "
            f"days ({start_date} to {last_date})"
        )

    logger.info(f"Auditing {account.name} with {len(ledger_entries)} ledger entries in range")

    verdict = AuditVerdict()
    days = {}
    consumption = {}

    date = start_date
    while date <= last_date:
        logger.info(f"Running audit on date: {date}")
        try:
            day = audit_day(account, transactions, ledger_entries, date, consumption)
        except Exception as e:
            logger.error(f"Received error when running audit for {date}: {str(e)}")
            raise

        verdict[date] = day.is_valid
        days[date] = day
        date += ONE_DAY

    return RangeAudit(
        verdict=verdict,
        days=days,
        consumption=consumption,
        requested_days=requested_days,
        truncated=truncated,
    )
