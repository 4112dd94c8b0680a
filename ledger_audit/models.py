"""
Data model for the ledger audit.

Accounts and ledger entries come from the remote ledger; transactions come from a
bank or payment-service export. All of them are read-only once loaded. Amounts are
``Decimal`` so that magnitude comparisons between the two sides are exact.

Sign conventions:
- Transaction.amount: negative for outflows (expenses, withdrawals),
  positive for inflows (payments, deposits)
- LedgerEntry.amount: always non-negative; the direction comes from which side
  (debit or credit) references the audited account
"""

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterator, List


class Directionality(Enum):
    CREDIT = 'Credit'
    ASSET = 'Asset'

    @classmethod
    def from_type(cls, value):
        """Map a ledger account type to a directionality.

        Anything that is not explicitly an asset account is treated as credit.
        """
        if isinstance(value, str) and value.strip() == cls.ASSET.value:
            return cls.ASSET
        return cls.CREDIT


class SourceKind(Enum):
    CHASE = 'Chase'
    ALLY = 'Ally'
    VENMO = 'Venmo'

    @classmethod
    def parse(cls, value):
        """Parse a source tag, case-insensitively.

        Raises:
            ValueError: If the tag does not name a supported source
        """
        if isinstance(value, cls):
            return value
        for kind in cls:
            if str(value).strip().lower() == kind.value.lower():
                return kind
        valid = [kind.value for kind in cls]
        raise ValueError(f"Invalid source type: {value}. Expected one of: {valid}")


@dataclass(frozen=True)
class Account:
    name: str
    id: str
    directionality: Directionality

    @property
    def is_credit(self) -> bool:
        return self.directionality is Directionality.CREDIT


@dataclass(frozen=True)
class Transaction:
    """A normalized source transaction.

    ``details`` keeps whatever extra fields the source format carries (post date,
    category, Venmo sender, ...). The audit never looks at them.
    """
    date: datetime.date
    amount: Decimal
    description: str
    source: SourceKind
    details: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class LedgerEntry:
    id: str
    date: datetime.date
    amount: Decimal
    debit_account_id: str
    credit_account_id: str

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"Ledger entry {self.id} has negative amount: {self.amount}")

    def references(self, account_id) -> bool:
        return account_id in (self.debit_account_id, self.credit_account_id)


class AuditVerdict(Mapping):
    """Pass/fail outcome per calendar date.

    Iteration is always date-ascending, whatever order the dates were recorded in.
    """

    def __init__(self, results=None):
        self._results = {}
        for date, is_valid in (results or {}).items():
            self[date] = is_valid

    def __setitem__(self, date, is_valid):
        self._results[date] = bool(is_valid)

    def __getitem__(self, date):
        return self._results[date]

    def __iter__(self) -> Iterator[datetime.date]:
        return iter(sorted(self._results))

    def __len__(self):
        return len(self._results)

    def __repr__(self):
        return f"AuditVerdict({dict(self.items())!r})"

    @property
    def passed(self) -> bool:
        """True when every audited date reconciled."""
        return all(self._results.values())

    @property
    def failed_dates(self) -> List[datetime.date]:
        return [date for date in self if not self._results[date]]
