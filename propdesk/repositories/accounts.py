"""Account repositories: read accessors for the engine, writes for the service.

The engine never writes. Payout and account edits are single-record
operations issued by AccountService.
"""

from datetime import datetime, timezone
from typing import Optional, Protocol

import structlog

from propdesk.schemas.accounts import Account, PayoutEvent, PayoutStatus, TradeEvent

logger = structlog.get_logger(__name__)


class AccountRepository(Protocol):
    """Protocol for account / trade / payout persistence."""

    async def load_account(self, number: str) -> Optional[Account]:
        """Get an account by number, or None if not found."""
        ...

    async def list_accounts(self) -> list[Account]:
        ...

    async def load_trades(self, number: str) -> list[TradeEvent]:
        ...

    async def load_payouts(self, number: str) -> list[PayoutEvent]:
        ...

    async def load_payout(self, payout_id: str) -> Optional[PayoutEvent]:
        ...

    async def save_account(self, account: Account) -> Account:
        """Insert or update an account (keyed by number)."""
        ...

    async def save_payout(self, payout: PayoutEvent) -> PayoutEvent:
        """Insert or update a payout (keyed by id)."""
        ...

    async def delete_payout(self, payout_id: str) -> bool:
        """Delete a payout. Returns False if it did not exist."""
        ...


# =============================================================================
# In-memory implementation
# =============================================================================


class InMemoryAccountRepository:
    """Dict-backed repository for tests and local runs without a database."""

    def __init__(
        self,
        accounts: Optional[list[Account]] = None,
        trades: Optional[list[TradeEvent]] = None,
        payouts: Optional[list[PayoutEvent]] = None,
    ):
        self._accounts: dict[str, Account] = {a.number: a for a in accounts or []}
        self._trades: list[TradeEvent] = list(trades or [])
        self._payouts: dict[str, PayoutEvent] = {p.id: p for p in payouts or []}

    async def load_account(self, number: str) -> Optional[Account]:
        return self._accounts.get(number)

    async def list_accounts(self) -> list[Account]:
        return sorted(self._accounts.values(), key=lambda a: a.number)

    async def load_trades(self, number: str) -> list[TradeEvent]:
        return [t for t in self._trades if t.account_number == number]

    async def load_payouts(self, number: str) -> list[PayoutEvent]:
        return [p for p in self._payouts.values() if p.account_number == number]

    async def load_payout(self, payout_id: str) -> Optional[PayoutEvent]:
        return self._payouts.get(payout_id)

    async def save_account(self, account: Account) -> Account:
        self._accounts[account.number] = account
        return account

    async def save_payout(self, payout: PayoutEvent) -> PayoutEvent:
        # Same stamp the Postgres upsert sets with updated_at = NOW()
        stored = payout.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        self._payouts[stored.id] = stored
        return stored

    async def delete_payout(self, payout_id: str) -> bool:
        return self._payouts.pop(payout_id, None) is not None


# =============================================================================
# PostgreSQL implementation
# =============================================================================


_ACCOUNT_COLUMNS = """
    id, number, starting_balance, profit_target, drawdown_threshold,
    trailing_drawdown, trailing_stop_profit, consistency_percentage,
    reset_date, buffer, consider_buffer, min_pnl_to_count_as_day,
    payout_count
"""


def account_from_row(row: dict) -> Account:
    """Create Account from database row."""
    return Account(
        id=row["id"],
        number=row["number"],
        starting_balance=float(row["starting_balance"] or 0),
        profit_target=float(row["profit_target"] or 0),
        drawdown_threshold=float(row["drawdown_threshold"] or 0),
        trailing_drawdown=bool(row["trailing_drawdown"]),
        trailing_stop_profit=float(row.get("trailing_stop_profit") or 0),
        consistency_percentage=float(row.get("consistency_percentage") or 0),
        reset_date=row.get("reset_date"),
        buffer=float(row.get("buffer") or 0),
        consider_buffer=row.get("consider_buffer") is not False,
        min_pnl_to_count_as_day=float(row.get("min_pnl_to_count_as_day") or 0),
        payout_count=int(row.get("payout_count") or 0),
    )


def trade_from_row(row: dict) -> TradeEvent:
    """Create TradeEvent from database row."""
    return TradeEvent(
        id=str(row["id"]),
        account_number=row["account_number"],
        entry_date=row["entry_date"],
        pnl=float(row["pnl"]),
        commission=float(row.get("commission") or 0),
        updated_at=row.get("updated_at"),
    )


def payout_from_row(row: dict) -> PayoutEvent:
    """Create PayoutEvent from database row."""
    return PayoutEvent(
        id=str(row["id"]),
        account_number=row["account_number"],
        date=row["date"],
        amount=float(row["amount"]),
        status=PayoutStatus(row["status"]),
        updated_at=row.get("updated_at"),
    )


class PostgresAccountRepository:
    """asyncpg-backed repository."""

    def __init__(self, pool):
        """Initialize with database connection pool."""
        self._pool = pool

    async def load_account(self, number: str) -> Optional[Account]:
        query = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE number = $1"
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, number)
        return account_from_row(dict(row)) if row else None

    async def list_accounts(self) -> list[Account]:
        query = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts ORDER BY number"
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query)
        return [account_from_row(dict(r)) for r in rows]

    async def load_trades(self, number: str) -> list[TradeEvent]:
        query = """
            SELECT id, account_number, entry_date, pnl, commission, updated_at
            FROM trades
            WHERE account_number = $1
            ORDER BY entry_date ASC, id ASC
        """
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, number)
        return [trade_from_row(dict(r)) for r in rows]

    async def load_payouts(self, number: str) -> list[PayoutEvent]:
        query = """
            SELECT id, account_number, date, amount, status, updated_at
            FROM payouts
            WHERE account_number = $1
            ORDER BY date ASC, id ASC
        """
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, number)
        return [payout_from_row(dict(r)) for r in rows]

    async def load_payout(self, payout_id: str) -> Optional[PayoutEvent]:
        query = """
            SELECT id, account_number, date, amount, status, updated_at
            FROM payouts
            WHERE id = $1
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, payout_id)
        return payout_from_row(dict(row)) if row else None

    async def save_account(self, account: Account) -> Account:
        query = f"""
            INSERT INTO accounts (
                number, starting_balance, profit_target, drawdown_threshold,
                trailing_drawdown, trailing_stop_profit, consistency_percentage,
                reset_date, buffer, consider_buffer, min_pnl_to_count_as_day,
                payout_count
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
            ON CONFLICT (number) DO UPDATE SET
                starting_balance = EXCLUDED.starting_balance,
                profit_target = EXCLUDED.profit_target,
                drawdown_threshold = EXCLUDED.drawdown_threshold,
                trailing_drawdown = EXCLUDED.trailing_drawdown,
                trailing_stop_profit = EXCLUDED.trailing_stop_profit,
                consistency_percentage = EXCLUDED.consistency_percentage,
                reset_date = EXCLUDED.reset_date,
                buffer = EXCLUDED.buffer,
                consider_buffer = EXCLUDED.consider_buffer,
                min_pnl_to_count_as_day = EXCLUDED.min_pnl_to_count_as_day,
                payout_count = EXCLUDED.payout_count,
                updated_at = NOW()
            RETURNING {_ACCOUNT_COLUMNS}
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                query,
                account.number,
                account.starting_balance,
                account.profit_target,
                account.drawdown_threshold,
                account.trailing_drawdown,
                account.trailing_stop_profit,
                account.consistency_percentage,
                account.reset_date,
                account.buffer,
                account.consider_buffer,
                account.min_pnl_to_count_as_day,
                account.payout_count,
            )
        logger.debug("account_saved", number=account.number)
        return account_from_row(dict(row))

    async def save_payout(self, payout: PayoutEvent) -> PayoutEvent:
        query = """
            INSERT INTO payouts (id, account_number, date, amount, status)
            VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (id) DO UPDATE SET
                account_number = EXCLUDED.account_number,
                date = EXCLUDED.date,
                amount = EXCLUDED.amount,
                status = EXCLUDED.status,
                updated_at = NOW()
            RETURNING id, account_number, date, amount, status, updated_at
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                query,
                payout.id,
                payout.account_number,
                payout.date,
                payout.amount,
                payout.status.value,
            )
        logger.debug("payout_saved", payout_id=payout.id, status=payout.status.value)
        return payout_from_row(dict(row))

    async def delete_payout(self, payout_id: str) -> bool:
        query = "DELETE FROM payouts WHERE id = $1"
        async with self._pool.acquire() as conn:
            result = await conn.execute(query, payout_id)
        # asyncpg returns the command tag, e.g. "DELETE 1"
        return result.endswith(" 1")

