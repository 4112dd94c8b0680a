"""
Account directory backed by the ledger's accounts table.
"""

import logging

from ledger_audit.coda import column_query
from ledger_audit.exceptions import AccountNotFound, AmbiguousAccount
from ledger_audit.models import Account, Directionality

logger = logging.getLogger(__name__)


class AccountDirectory:
    """Looks up ledger accounts by name or id."""

    def __init__(self, client, settings):
        self.client = client
        self.doc_id = settings.coda.doc_id
        self.table_id = settings.coda.accounts_table_id
        self.columns = settings.columns
        self._by_id = None

    def _row_to_account(self, row):
        values = row.get('values') or {}
        return Account(
            name=row.get('name', ''),
            id=row['id'],
            directionality=Directionality.from_type(values.get(self.columns.account_type)),
        )

    def _list(self, name=None):
        query = column_query(self.columns.account_name, name) if name else None
        rows = self.client.list_table_rows(self.doc_id, self.table_id, query=query)
        return [self._row_to_account(row) for row in rows]

    def list_accounts(self):
        """Return every account in the ledger."""
        accounts = self._list()
        self._by_id = {account.id: account for account in accounts}
        return accounts

    def resolve(self, name):
        """Find the single account with the given name.

        Raises:
            AccountNotFound: If no account has this name
            AmbiguousAccount: If several accounts have this name
        """
        accounts = self._list(name)
        if not accounts:
            raise AccountNotFound(f"Unable to find account with name: {name}")
        if len(accounts) > 1:
            raise AmbiguousAccount(f"Found {len(accounts)} accounts with name: {name}")

        account = accounts[0]
        logger.info(f"Resolved account '{name}' to {account.id} ({account.directionality.value})")
        return account

    def by_id(self, account_id):
        """Return the account with the given ledger row id.

        The full account list is fetched once and cached.

        Raises:
            AccountNotFound: If no account has this id
        """
        if self._by_id is None:
            self.list_accounts()
        try:
            return self._by_id[account_id]
        except KeyError:
            raise AccountNotFound(f"No account exists for id: {account_id}")
