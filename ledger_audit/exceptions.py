"""
Exceptions raised by the ledger audit system.

Only ``RowSkipped`` is absorbed locally (by the transaction loader); every other
error aborts the run and propagates to the caller.
"""


class AuditError(Exception):
    """Base class for all ledger audit errors."""


class ConfigError(AuditError):
    """Configuration is missing or unreadable."""


class AccountNotFound(AuditError):
    """No account matches the requested name or id."""


class AmbiguousAccount(AuditError):
    """More than one account matches the requested name."""


class InvalidRange(AuditError):
    """The start date falls after the end date."""


class LoadError(AuditError):
    """The transaction source could not be read."""


class RowSkipped(AuditError):
    """A single source row was malformed and has been dropped."""

    def __init__(self, line_number, reason):
        super().__init__(f"Skipping row {line_number}: {reason}")
        self.line_number = line_number
        self.reason = reason


class FetchError(AuditError):
    """The remote ledger could not be reached, even after retries."""
