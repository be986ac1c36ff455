"""Account metrics and payout endpoints."""

from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from propdesk.config import get_settings
from propdesk.core.lifespan import get_account_service
from propdesk.schemas.accounts import AccountMetrics, PayoutCreate, PayoutEvent
from propdesk.services.accounting import AccountingError
from propdesk.services.accounts import (
    AccountNotFoundError,
    AccountService,
    PayoutNotFoundError,
    PayoutOwnershipError,
)

_log = structlog.get_logger(__name__)

router = APIRouter(tags=["accounts"])


def require_service() -> AccountService:
    """Resolve the account service or fail with 503."""
    service = get_account_service()
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Account service not available",
        )
    return service


def _timezone_or_default(tz: Optional[str]) -> str:
    return tz or get_settings().default_timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Metrics
# =============================================================================


@router.get("/accounts/metrics", response_model=list[AccountMetrics])
async def list_account_metrics(
    tz: Optional[str] = Query(None, alias="timezone", description="IANA timezone"),
    service: AccountService = Depends(require_service),
) -> list[AccountMetrics]:
    """Metrics for every account."""
    try:
        return await service.get_all_metrics(_utcnow(), _timezone_or_default(tz))
    except AccountingError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/accounts/{number}/metrics", response_model=AccountMetrics)
async def get_account_metrics(
    number: str,
    tz: Optional[str] = Query(None, alias="timezone", description="IANA timezone"),
    service: AccountService = Depends(require_service),
) -> AccountMetrics:
    """
    Full computed state of one account.

    Returns balance, high-water mark, drawdown floor, target progress,
    consistency, payout projection and the daily series for charting.
    """
    try:
        return await service.get_metrics(number, _utcnow(), _timezone_or_default(tz))
    except AccountNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AccountingError as e:
        _log.warning("account_metrics_rejected", account_number=number, error=str(e))
        raise HTTPException(status_code=422, detail=str(e))


# =============================================================================
# Payouts
# =============================================================================


@router.post(
    "/accounts/{number}/payouts",
    response_model=PayoutEvent,
    status_code=status.HTTP_201_CREATED,
)
async def record_payout(
    number: str,
    body: PayoutCreate,
    service: AccountService = Depends(require_service),
) -> PayoutEvent:
    """Record a new payout, or edit one in place when ``id`` is sent."""
    fields = body.model_dump(exclude_none=True)
    payout = PayoutEvent(account_number=number, **fields)
    try:
        return await service.record_payout(payout)
    except AccountNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PayoutOwnershipError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/payouts/{payout_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payout(
    payout_id: str,
    service: AccountService = Depends(require_service),
) -> Response:
    try:
        await service.remove_payout(payout_id)
    except PayoutNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Maintenance
# =============================================================================


@router.post("/accounts/reset-expired")
async def reset_expired_accounts(
    tz: Optional[str] = Query(None, alias="timezone", description="IANA timezone"),
    service: AccountService = Depends(require_service),
) -> dict:
    """Clear reset dates that have come due (start of a new cycle)."""
    try:
        reset = await service.reset_expired_accounts(_utcnow(), _timezone_or_default(tz))
    except AccountingError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"reset": reset, "count": len(reset)}
