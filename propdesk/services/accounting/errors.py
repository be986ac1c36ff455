"""Precondition failures raised by the accounting engine."""


class AccountingError(ValueError):
    """Base class for malformed engine input."""


class AccountMismatchError(AccountingError):
    """A trade or payout belongs to a different account than requested."""

    def __init__(self, expected: str, found: str, record_kind: str):
        self.expected = expected
        self.found = found
        self.record_kind = record_kind
        super().__init__(
            f"{record_kind} for account {found!r} passed to evaluation of {expected!r}"
        )


class InvalidTimezoneError(AccountingError):
    """Reporting timezone is not a known IANA name."""
