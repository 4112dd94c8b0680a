import datetime
from decimal import Decimal

import pytest

from ledger_audit.config import DEFAULTS, load_config
from ledger_audit.models import (
    Account,
    Directionality,
    LedgerEntry,
    SourceKind,
    Transaction,
)

CHECKING_ID = 'i-checking'
CARD_ID = 'i-sapphire'
GROCERIES_ID = 'i-groceries'
SALARY_ID = 'i-salary'


def make_transaction(date, amount, description='Test Transaction', source=SourceKind.CHASE):
    """Helper to build a Transaction from plain values"""
    if isinstance(date, str):
        date = datetime.date.fromisoformat(date)
    return Transaction(date=date, amount=Decimal(amount), description=description, source=source)


def make_entry(entry_id, amount, debit, credit, date='2021-03-01'):
    """Helper to build a LedgerEntry from plain values"""
    if isinstance(date, str):
        date = datetime.date.fromisoformat(date)
    return LedgerEntry(
        id=entry_id,
        date=date,
        amount=Decimal(amount),
        debit_account_id=debit,
        credit_account_id=credit,
    )


class FakeCodaClient:
    """Stands in for CodaClient, answering row queries from a dict."""

    def __init__(self, rows_by_query=None, default=None):
        self.rows_by_query = rows_by_query or {}
        self.default = default if default is not None else []
        self.calls = []

    def list_table_rows(self, doc_id, table_id, query=None, value_format=None):
        self.calls.append({
            'doc_id': doc_id,
            'table_id': table_id,
            'query': query,
            'value_format': value_format,
        })
        return self.rows_by_query.get(query, self.default)


@pytest.fixture
def checking():
    """Asset account"""
    return Account(name='Checking', id=CHECKING_ID, directionality=Directionality.ASSET)


@pytest.fixture
def credit_card():
    """Credit account"""
    return Account(name='Sapphire', id=CARD_ID, directionality=Directionality.CREDIT)


@pytest.fixture
def audit_date():
    return datetime.date(2021, 3, 1)


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings built from defaults, isolated from any local config or environment"""
    monkeypatch.delenv('LEDGER_AUDIT_CONFIG', raising=False)
    monkeypatch.setenv('CODA_API_KEY', 'test-key')
    monkeypatch.chdir(tmp_path)
    return load_config()


def ledger_row(row_id, amount, debit, credit, columns=None):
    """Build a Coda row as returned with valueFormat=rich"""
    columns = columns or DEFAULTS['columns']
    return {
        'id': row_id,
        'name': row_id,
        'values': {
            columns['amount']: {'@type': 'MonetaryAmount', 'currency': 'USD', 'amount': amount},
            columns['debit']: {'@type': 'StructuredValue', 'additionalType': 'row', 'rowId': debit},
            columns['credit']: {'@type': 'StructuredValue', 'additionalType': 'row', 'rowId': credit},
        },
    }
