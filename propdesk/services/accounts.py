"""Account service: metrics evaluation, payout bookkeeping, cycle rollover.

Loads records through an AccountRepository, runs the pure accounting engine
and memoizes results. Writes are single-record repository calls.
"""

from datetime import datetime
from typing import Optional

import structlog

from propdesk.repositories.accounts import AccountRepository
from propdesk.schemas.accounts import (
    Account,
    AccountMetrics,
    PayoutEvent,
    TradeEvent,
)
from propdesk.services.accounting import (
    DEFAULT_PAYOUT_POLICY,
    MetricsCache,
    PayoutPolicy,
    compute_account_metrics,
    compute_metrics_key,
)
from propdesk.services.accounting.events import local_day, resolve_timezone

logger = structlog.get_logger(__name__)


class AccountNotFoundError(Exception):
    """Raised when an account number is unknown."""


class PayoutNotFoundError(Exception):
    """Raised when a payout ID is unknown."""


class PayoutOwnershipError(Exception):
    """Raised when an edit would move a payout to another account."""


class AccountService:
    """Orchestrates repository reads/writes around the accounting engine."""

    def __init__(
        self,
        repo: AccountRepository,
        cache: Optional[MetricsCache] = None,
        policy: PayoutPolicy = DEFAULT_PAYOUT_POLICY,
    ):
        self.repo = repo
        self.cache = cache
        self.policy = policy

    async def _require_account(self, number: str) -> Account:
        account = await self.repo.load_account(number)
        if account is None:
            raise AccountNotFoundError(f"Account not found: {number}")
        return account

    def _evaluate(
        self,
        account: Account,
        trades: list[TradeEvent],
        payouts: list[PayoutEvent],
        now: datetime,
        timezone: str,
    ) -> AccountMetrics:
        def compute() -> AccountMetrics:
            metrics = compute_account_metrics(
                account, trades, payouts, now, timezone, self.policy
            )
            logger.info(
                "account_metrics_computed",
                account_number=account.number,
                trades=len(trades),
                payouts=len(payouts),
                current_balance=metrics.current_balance,
                is_breached=metrics.is_breached,
            )
            return metrics

        if self.cache is None:
            return compute()
        key = compute_metrics_key(account, trades, payouts, now, timezone)
        return self.cache.get_or_compute(key, compute)

    # ----------------------------------------------------------------------
    # Reads
    # ----------------------------------------------------------------------

    async def get_metrics(
        self, number: str, now: datetime, timezone: str = "UTC"
    ) -> AccountMetrics:
        """Compute metrics for one account.

        Raises:
            AccountNotFoundError: unknown account number
            AccountingError: malformed records or timezone
        """
        account = await self._require_account(number)
        trades = await self.repo.load_trades(number)
        payouts = await self.repo.load_payouts(number)
        return self._evaluate(account, trades, payouts, now, timezone)

    async def get_all_metrics(
        self, now: datetime, timezone: str = "UTC"
    ) -> list[AccountMetrics]:
        """Compute metrics for every stored account, ordered by number."""
        results = []
        for account in await self.repo.list_accounts():
            trades = await self.repo.load_trades(account.number)
            payouts = await self.repo.load_payouts(account.number)
            results.append(self._evaluate(account, trades, payouts, now, timezone))
        return results

    # ----------------------------------------------------------------------
    # Payout bookkeeping
    # ----------------------------------------------------------------------

    async def record_payout(self, payout: PayoutEvent) -> PayoutEvent:
        """Insert or edit a payout. New payouts increment the account counter.

        Raises:
            AccountNotFoundError: payout references an unknown account
            PayoutOwnershipError: the ID belongs to a payout of another account
        """
        account = await self._require_account(payout.account_number)
        existing = await self.repo.load_payout(payout.id)
        if existing is not None and existing.account_number != payout.account_number:
            raise PayoutOwnershipError(
                f"Payout {payout.id} belongs to account {existing.account_number}"
            )
        saved = await self.repo.save_payout(payout)

        if existing is None:
            await self.repo.save_account(
                account.model_copy(update={"payout_count": account.payout_count + 1})
            )

        logger.info(
            "payout_recorded",
            payout_id=saved.id,
            account_number=saved.account_number,
            amount=saved.amount,
            status=saved.status.value,
            edited=existing is not None,
        )
        return saved

    async def remove_payout(self, payout_id: str) -> PayoutEvent:
        """Delete a payout and decrement its account's counter (not below 0).

        Raises:
            PayoutNotFoundError: unknown payout ID
        """
        payout = await self.repo.load_payout(payout_id)
        if payout is None:
            raise PayoutNotFoundError(f"Payout not found: {payout_id}")

        await self.repo.delete_payout(payout_id)

        account = await self.repo.load_account(payout.account_number)
        if account is not None:
            await self.repo.save_account(
                account.model_copy(
                    update={"payout_count": max(0, account.payout_count - 1)}
                )
            )
        else:
            logger.warning(
                "payout_account_missing",
                payout_id=payout_id,
                account_number=payout.account_number,
            )

        logger.info(
            "payout_removed", payout_id=payout_id, account_number=payout.account_number
        )
        return payout

    # ----------------------------------------------------------------------
    # Maintenance
    # ----------------------------------------------------------------------

    async def reset_expired_accounts(
        self, now: datetime, timezone: str = "UTC"
    ) -> list[str]:
        """Clear reset dates that are due, starting a new evaluation cycle.

        A reset date is due once it is on or before today in ``timezone``.

        Returns:
            Account numbers that were reset
        """
        today = local_day(now, resolve_timezone(timezone))
        reset: list[str] = []

        for account in await self.repo.list_accounts():
            if account.reset_date is None or account.reset_date > today:
                continue
            await self.repo.save_account(account.model_copy(update={"reset_date": None}))
            reset.append(account.number)
            logger.info(
                "account_reset",
                account_number=account.number,
                reset_date=account.reset_date.isoformat(),
            )

        return reset
