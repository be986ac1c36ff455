"""Repository layer for account, trade and payout persistence."""

from propdesk.repositories.accounts import (
    AccountRepository,
    InMemoryAccountRepository,
    PostgresAccountRepository,
)

__all__ = [
    "AccountRepository",
    "InMemoryAccountRepository",
    "PostgresAccountRepository",
]
