"""
Day filters used by the auditor to narrow the two record sets.
"""


def filter_by_date(date, transactions):
    """Return the transactions dated exactly on ``date``, in input order."""
    return [t for t in transactions if t.date == date]


def filter_by_account(account, entries):
    """Return the ledger entries where ``account`` is the debit or credit party.

    Args:
        account (Account): Account under audit
        entries (list): Ledger entries for the whole range, any account

    Returns:
        list: Matching entries, in input order
    """
    return [e for e in entries if e.references(account.id)]
