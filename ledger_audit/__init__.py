"""
Ledger Audit - checks bank and payment exports against an authoritative ledger.

This package provides functionality to:
- Load transaction exports (Chase, Ally, Venmo) into a common format
- Resolve ledger accounts and fetch ledger entries for a date range
- Audit each day of the range, matching every source transaction to a ledger entry
- Report which days reconcile

The normalized transaction format includes:
- date: Calendar date of the transaction
- amount: Signed amount (negative for outflows)
- description: Transaction description
- source: Export the transaction came from
"""

from .audit import (
    MAX_DURATION,
    audit_day,
    audit_range,
    matches,
)
from .filters import filter_by_account, filter_by_date
from .loaders import load_transactions
from .models import (
    Account,
    AuditVerdict,
    Directionality,
    LedgerEntry,
    SourceKind,
    Transaction,
)

__all__ = [
    'MAX_DURATION',
    'audit_day',
    'audit_range',
    'matches',
    'filter_by_account',
    'filter_by_date',
    'load_transactions',
    'Account',
    'AuditVerdict',
    'Directionality',
    'LedgerEntry',
    'SourceKind',
    'Transaction',
]
